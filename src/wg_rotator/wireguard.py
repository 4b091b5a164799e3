# src/wg_rotator/wireguard.py
from __future__ import annotations
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Protocol

from .conf import render_conf
from .errors import ControlPlaneError, ControlPlaneTimeout
from .logging_setup import get_logger
from .models import EndpointDescriptor
from .settings import Settings

logger = get_logger(__name__)


@dataclass(frozen=True)
class Session:
    """Identité d'un tunnel monté: à repasser telle quelle à tear_down()."""
    interface: str
    config_path: Path


class ControlPlane(Protocol):
    """Ce que le contrôleur attend du plan de contrôle VPN."""

    def bring_up(self, descriptor: EndpointDescriptor) -> Session:
        ...

    def tear_down(self, session: Optional[Session] = None) -> None:
        """Démonte `session`, ou tout ce que gère ce plan de contrôle si None."""
        ...

    def read_status(self) -> str:
        ...


# ---------- Exécution des commandes ----------

def _which(binary: str) -> str:
    path = shutil.which(binary)
    if path is None:
        raise ControlPlaneError(f"'{binary}' not found in PATH (is wireguard-tools installed?)")
    return path


def run_cmd(
    cmd: List[str],
    check: bool = True,
    timeout: Optional[float] = None,
    sudo: bool = False,
) -> subprocess.CompletedProcess:
    _which(cmd[0])
    if sudo:
        cmd = ["sudo", "-n", *cmd]

    logger.debug("Running command", cmd=" ".join(cmd))
    try:
        proc = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout)
    except subprocess.TimeoutExpired as exc:
        raise ControlPlaneTimeout(f"'{' '.join(cmd)}' timed out after {timeout}s") from exc
    except OSError as exc:
        raise ControlPlaneError(f"'{' '.join(cmd)}' could not be started: {exc}") from exc

    if check and proc.returncode != 0:
        err = (proc.stderr or proc.stdout or "").strip()
        logger.error("Command failed", cmd=" ".join(cmd), returncode=proc.returncode, stderr=err)
        raise ControlPlaneError(f"'{' '.join(cmd)}' exited with {proc.returncode}: {err}")
    return proc


# ---------- wg-quick ----------

class WgQuickControlPlane:
    """
    Plan de contrôle basé sur wg-quick(8) et wg(8).

    Un seul fichier <runtime_dir>/<interface>.conf est monté à la fois;
    le démontage vise ce fichier, jamais une liste de PID.
    """

    def __init__(self, settings: Settings):
        self.interface = settings.interface
        self.runtime_dir = Path(settings.runtime_dir)
        self.use_sudo = settings.use_sudo
        self.timeout = settings.command_timeout

    @property
    def config_path(self) -> Path:
        return self.runtime_dir / f"{self.interface}.conf"

    def _run(self, *args: str) -> str:
        return run_cmd(list(args), timeout=self.timeout, sudo=self.use_sudo).stdout

    def write_conf(self, descriptor: EndpointDescriptor) -> Path:
        path = self.config_path
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            # wg-quick refuse les fichiers lisibles par tous; 600 avant d'écrire la clé
            path.touch(mode=0o600, exist_ok=True)
            path.chmod(0o600)
            with path.open("w", encoding="utf-8") as f:
                f.write(render_conf(descriptor))
        except OSError as exc:
            raise ControlPlaneError(f"Cannot write {path}: {exc}") from exc
        return path

    def bring_up(self, descriptor: EndpointDescriptor) -> Session:
        path = self.write_conf(descriptor)
        self._run("wg-quick", "up", str(path))
        logger.info("Interface up", interface=self.interface, endpoint=descriptor.endpoint)
        return Session(interface=self.interface, config_path=path)

    def tear_down(self, session: Optional[Session] = None) -> None:
        # run_cmd convertit déjà les OSError en ControlPlaneError
        path = session.config_path if session else self.config_path
        self._run("wg-quick", "down", str(path))
        logger.info("Interface down", interface=session.interface if session else self.interface)

    def read_status(self) -> str:
        """
        Status de l'interface gérée uniquement: ce qui est observé doit être
        ce que tear_down() sait démonter. Vide si l'interface n'est pas montée.
        """
        if self.interface not in self._run("wg", "show", "interfaces").split():
            return ""
        return self._run("wg", "show", self.interface)
