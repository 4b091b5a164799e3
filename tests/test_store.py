import stat

import pytest
from conftest import make_endpoint, write_conf

from wg_rotator.errors import ConfigMalformed, ConfigNotFound, DuplicateName
from wg_rotator.store import ConfigStore


def test_load_reads_every_conf_in_sorted_order(config_dir):
    write_conf(config_dir, "b", 2)
    write_conf(config_dir, "a", 1)
    (config_dir / "notes.txt").write_text("ignored")

    store = ConfigStore(config_dir)
    loaded = store.load()

    assert [d.name for d in loaded] == ["a", "b"]
    assert store.names() == ["a", "b"]
    assert loaded[0].public_key == "PK_A"
    assert all(not d.active for d in loaded)


def test_load_returns_each_descriptor_once(config_dir):
    write_conf(config_dir, "a", 1)
    store = ConfigStore(config_dir)
    store.load()
    store.load()
    assert store.names() == ["a"]


def test_load_missing_directory(tmp_path):
    store = ConfigStore(tmp_path / "nope")
    with pytest.raises(ConfigNotFound):
        store.load()


def test_malformed_entry_aborts_whole_load(config_dir):
    write_conf(config_dir, "a", 1)
    bad = write_conf(config_dir, "b", 2)
    bad.write_text(bad.read_text().replace("PrivateKey = SK_B\n", ""))

    store = ConfigStore(config_dir)
    with pytest.raises(ConfigMalformed) as exc:
        store.load()

    assert exc.value.name == "b"
    assert store.pool == ()


def test_failed_reload_keeps_previous_pool(config_dir):
    write_conf(config_dir, "a", 1)
    store = ConfigStore(config_dir)
    store.load()

    (config_dir / "broken.conf").write_text("[Interface]\n")
    with pytest.raises(ConfigMalformed):
        store.load()
    assert store.names() == ["a"]


def test_directories_named_conf_are_skipped(config_dir):
    (config_dir / "dir.conf").mkdir()
    write_conf(config_dir, "a", 1)

    store = ConfigStore(config_dir)
    store.load()
    assert store.names() == ["a"]


def test_unreadable_entry_aborts_load_and_keeps_pool(config_dir):
    write_conf(config_dir, "a", 1)
    store = ConfigStore(config_dir)
    store.load()

    # lien cassé: listé comme un .conf mais illisible
    (config_dir / "b.conf").symlink_to(config_dir / "gone.conf")
    with pytest.raises(ConfigNotFound):
        store.load()

    assert store.names() == ["a"]


def test_read_missing_file(config_dir):
    with pytest.raises(ConfigNotFound):
        ConfigStore(config_dir).read(config_dir / "missing.conf")


def test_add_persists_and_appends(config_dir):
    store = ConfigStore(config_dir)
    store.load()

    path = store.add(make_endpoint("new", 9))

    assert path == config_dir / "new.conf"
    assert stat.S_IMODE(path.stat().st_mode) == 0o600
    assert store.names() == ["new"]

    reloaded = ConfigStore(config_dir)
    reloaded.load()
    assert reloaded.pool == store.pool


def test_add_never_persists_active_flag(config_dir):
    store = ConfigStore(config_dir)
    store.add(make_endpoint("new").with_active(True))
    assert store.get("new").active is False


def test_add_duplicate_name(make_store):
    store = make_store("a")
    with pytest.raises(DuplicateName):
        store.add(make_endpoint("a"))
    assert store.names() == ["a"]


def test_add_rejects_incomplete_or_unsafe_descriptors(config_dir):
    store = ConfigStore(config_dir)
    with pytest.raises(ConfigMalformed):
        store.add(make_endpoint("../escape"))
    incomplete = make_endpoint("x").__class__(
        name="x", private_key="", public_key="PK", address="10.0.0.2/32", endpoint="h:1",
    )
    with pytest.raises(ConfigMalformed):
        store.add(incomplete)
    assert store.names() == []
    assert list(config_dir.iterdir()) == []


def test_import_file_uses_given_name(config_dir, tmp_path):
    src = write_conf(tmp_path, "outside", 4)
    store = ConfigStore(config_dir)

    d = store.import_file(src, name="lyon")

    assert d.name == "lyon"
    assert (config_dir / "lyon.conf").exists()
    assert store.get("lyon").endpoint == "198.51.100.4:51820"


def test_init_creates_directory(tmp_path):
    store = ConfigStore(tmp_path / "a" / "b")
    store.init()
    assert store.load() == []
