# src/wg_rotator/store.py
from __future__ import annotations
import re
from pathlib import Path
from typing import List, Optional, Tuple, Union

from .conf import parse_conf, render_conf
from .errors import ConfigMalformed, ConfigNotFound, DuplicateName
from .logging_setup import get_logger
from .models import EndpointDescriptor

logger = get_logger(__name__)

CONF_SUFFIX = ".conf"

_NAME_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.=+-]*$")


def name_from_path(path: Path) -> str:
    name = path.name
    if name.endswith(CONF_SUFFIX):
        name = name[: -len(CONF_SUFFIX)]
    return name


class ConfigStore:
    """
    Pool d'endpoints adossé à un répertoire de fichiers <name>.conf.

    Seul le store ajoute des descripteurs au pool; le contrôleur ne fait que le lire.
    """

    def __init__(self, config_dir: Union[str, Path]):
        self.config_dir = Path(config_dir)
        self._pool: List[EndpointDescriptor] = []

    @property
    def pool(self) -> Tuple[EndpointDescriptor, ...]:
        return tuple(self._pool)

    def names(self) -> List[str]:
        return [d.name for d in self._pool]

    def get(self, name: str) -> Optional[EndpointDescriptor]:
        for d in self._pool:
            if d.name == name:
                return d
        return None

    # ---------- Fichiers ----------

    def init(self) -> Path:
        self.config_dir.mkdir(parents=True, exist_ok=True)
        return self.config_dir

    def list_files(self) -> List[Path]:
        if not self.config_dir.is_dir():
            raise ConfigNotFound(f"Config directory not found: {self.config_dir}")
        return sorted(
            p for p in self.config_dir.iterdir()
            if p.name.endswith(CONF_SUFFIX) and not p.is_dir()
        )

    def read(self, path: Union[str, Path], name: Optional[str] = None) -> EndpointDescriptor:
        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigNotFound(f"Config file {path} cannot be read: {exc}") from exc
        return parse_conf(text, name or name_from_path(path))

    def load(self, source: Union[str, Path, None] = None) -> List[EndpointDescriptor]:
        """
        Lit tous les .conf du répertoire (ordre alphabétique) et remplace le pool.

        Une seule entrée illisible ou malformée annule tout le chargement:
        le pool reste alors inchangé.
        """
        if source is not None:
            self.config_dir = Path(source)

        loaded = [self.read(p) for p in self.list_files()]

        self._pool = loaded
        logger.info("Loaded endpoint pool", config_dir=str(self.config_dir), count=len(loaded))
        return list(loaded)

    def add(self, descriptor: EndpointDescriptor) -> Path:
        if descriptor.name in self.names():
            raise DuplicateName(f"Endpoint '{descriptor.name}' already exists")
        if not _NAME_RE.match(descriptor.name):
            raise ConfigMalformed(descriptor.name or "<unnamed>", ["name"])
        missing = descriptor.missing_fields()
        if missing:
            raise ConfigMalformed(descriptor.name, missing)

        # Le flag active n'est jamais persisté
        descriptor = descriptor.with_active(False)

        self.init()
        path = self.config_dir / f"{descriptor.name}{CONF_SUFFIX}"
        if path.exists():
            raise DuplicateName(f"Config file {path} already exists")

        with path.open("w", encoding="utf-8") as f:
            f.write(render_conf(descriptor))
        path.chmod(0o600)

        self._pool.append(descriptor)
        logger.info("Added endpoint", name=descriptor.name, path=str(path))
        return path

    def import_file(self, path: Union[str, Path], name: Optional[str] = None) -> EndpointDescriptor:
        descriptor = self.read(path, name)
        self.add(descriptor)
        return descriptor
