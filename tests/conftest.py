import pytest

from wg_rotator.errors import ControlPlaneError
from wg_rotator.models import EndpointDescriptor
from wg_rotator.store import ConfigStore
from wg_rotator.wireguard import Session


CONF_TEMPLATE = """[Interface]
PrivateKey = {private_key}
Address = 10.64.0.{n}/32
DNS = 10.64.0.1

[Peer]
PublicKey = {public_key}
AllowedIPs = 0.0.0.0/0, ::/0
Endpoint = 198.51.100.{n}:51820
"""


def make_endpoint(name, n=1):
    return EndpointDescriptor(
        name=name,
        private_key=f"SK_{name.upper()}",
        public_key=f"PK_{name.upper()}",
        address=f"10.64.0.{n}/32",
        endpoint=f"198.51.100.{n}:51820",
        allowed_ips="0.0.0.0/0, ::/0",
        dns="10.64.0.1",
    )


def wg_show(descriptor):
    """Mimics `wg show all` output for one connected peer."""
    return (
        "interface: wgrot0\n"
        "  public key: LOCAL_PUBKEY\n"
        "  private key: (hidden)\n"
        "  listening port: 41234\n"
        "\n"
        f"peer: {descriptor.public_key}\n"
        f"  endpoint: {descriptor.endpoint}\n"
        f"  allowed ips: {descriptor.allowed_ips}\n"
        "  latest handshake: 3 seconds ago\n"
    )


class FakeControlPlane:
    """In-memory control plane: records calls, one tunnel at a time."""

    def __init__(self):
        self.calls = []
        self.up = None
        self.fail_bring_up = False
        self.fail_tear_down = False
        self.fail_status = False
        self.external_status = None

    def bring_up(self, descriptor):
        self.calls.append(("up", descriptor.name))
        if self.fail_bring_up:
            raise ControlPlaneError("wg-quick up failed")
        if self.up is not None:
            raise ControlPlaneError(f"'{self.up.name}' is still up")
        self.up = descriptor
        return Session(interface="wgrot0", config_path=f"/tmp/{descriptor.name}.conf")

    def tear_down(self, session=None):
        self.calls.append(("down", session))
        if self.fail_tear_down:
            raise ControlPlaneError("wg-quick down failed")
        self.up = None
        self.external_status = None

    def read_status(self):
        self.calls.append(("status",))
        if self.fail_status:
            raise ControlPlaneError("wg show failed")
        if self.external_status is not None:
            return self.external_status
        return wg_show(self.up) if self.up else ""

    def actions(self):
        return [c for c in self.calls if c[0] != "status"]


def write_conf(directory, name, n=1):
    d = make_endpoint(name, n)
    path = directory / f"{name}.conf"
    path.write_text(CONF_TEMPLATE.format(private_key=d.private_key, public_key=d.public_key, n=n))
    return path


@pytest.fixture
def control_plane():
    return FakeControlPlane()


@pytest.fixture
def config_dir(tmp_path):
    d = tmp_path / "configs"
    d.mkdir()
    return d


@pytest.fixture
def make_store(config_dir):
    def _make(*names):
        for i, name in enumerate(names, start=1):
            write_conf(config_dir, name, i)
        store = ConfigStore(config_dir)
        store.load()
        return store
    return _make
