# src/wg_rotator/controller.py
"""
Connection lifecycle controller.

Keeps track of the endpoint last brought up ("current") and drives the control
plane so that at most one tunnel from the pool is applied at any time. The
control plane's live status stays the source of truth for what is actually
connected; the current reference only says what to tear down next.

Not thread-safe: callers must serialize connect/disconnect/rotate.
"""
from __future__ import annotations
import random
from typing import List, Optional, Tuple

from .errors import (
    ConfigMalformed,
    ConnectFailed,
    ControlPlaneError,
    DisconnectFailed,
    EndpointNotFound,
    NoCurrentEndpoint,
    NoEndpointsAvailable,
    NoRotationCandidates,
)
from .logging_setup import get_logger
from .models import EndpointDescriptor
from .status import matches, parse_status
from .store import CONF_SUFFIX, ConfigStore
from .wireguard import ControlPlane, Session

logger = get_logger(__name__)


class ConnectionController:
    def __init__(
        self,
        store: ConfigStore,
        control_plane: ControlPlane,
        rng: Optional[random.Random] = None,
    ):
        self.store = store
        self.control_plane = control_plane
        self._rng = rng or random.SystemRandom()
        self._current: Optional[str] = None
        self._session: Optional[Session] = None

    # ---------- Etat ----------

    @property
    def current_name(self) -> Optional[str]:
        return self._current

    def _snapshot(self, d: EndpointDescriptor) -> EndpointDescriptor:
        return d.with_active(d.name == self._current)

    def get_configs(self) -> List[EndpointDescriptor]:
        # Les flags active sont calculés depuis la référence courante:
        # deux endpoints ne peuvent pas être actifs en même temps.
        return [self._snapshot(d) for d in self.store.pool]

    def _resolve(self, name: str) -> EndpointDescriptor:
        if name.endswith(CONF_SUFFIX):
            name = name[: -len(CONF_SUFFIX)]
        d = self.store.get(name)
        if d is None:
            raise EndpointNotFound(f"Unknown endpoint '{name}'")
        return d

    # ---------- Lecture du plan de contrôle ----------

    def status(self) -> str:
        return self.control_plane.read_status()

    def is_connected(self, descriptor: EndpointDescriptor) -> bool:
        live = parse_status(self.status())
        return bool(live.endpoint) and live.endpoint == descriptor.endpoint

    def get_current_config(self) -> Optional[EndpointDescriptor]:
        """Endpoint du pool réellement connecté d'après le status, ou None."""
        live = self.status()
        if not live or not live.strip():
            return None
        for d in self.store.pool:
            if matches(d, live):
                return self._snapshot(d)
        return None

    def reconcile(self) -> Optional[EndpointDescriptor]:
        """
        Adopte la connexion réellement active comme référence courante.

        Utile au démarrage d'un nouveau processus: sans ça, disconnect() ne
        saurait pas qu'un tunnel monté plus tôt doit être démonté.
        """
        live = self.get_current_config()
        if live is None:
            return None
        if live.name != self._current:
            logger.info("Adopting live connection", name=live.name, previous=self._current)
            self._current = live.name
            self._session = None
        return self._snapshot(live)

    def current_keys(self) -> Tuple[str, str]:
        if self._current is None:
            raise NoCurrentEndpoint("Not connected")
        d = self._resolve(self._current)
        return d.private_key, d.public_key

    # ---------- Transitions ----------

    def connect(self, name: Optional[str] = None) -> EndpointDescriptor:
        if name is not None:
            target = self._resolve(name)
        else:
            try:
                target = self.get_current_config()
            except ControlPlaneError as exc:
                raise ConnectFailed(f"Cannot read status to find the current endpoint: {exc}") from exc
            if target is None:
                raise NoCurrentEndpoint("No endpoint in the pool matches the live status")

        missing = [f for f in ("private_key", "public_key") if not getattr(target, f)]
        if missing:
            raise ConfigMalformed(target.name, missing)

        try:
            already = self.is_connected(target)
        except ControlPlaneError as exc:
            raise ConnectFailed(f"Cannot read status before connecting '{target.name}': {exc}") from exc

        # Démontage avant montage, toujours: jamais deux configs appliquées
        if already:
            logger.info("Already connected, reconnecting", name=target.name)
        if already or self._current is not None:
            try:
                self.disconnect(force=already)
            except DisconnectFailed as exc:
                raise ConnectFailed(f"Cannot tear down before connecting '{target.name}': {exc}") from exc

        try:
            session = self.control_plane.bring_up(target)
        except ControlPlaneError as exc:
            logger.error("Connect failed", name=target.name, error=str(exc))
            raise ConnectFailed(f"Cannot connect to '{target.name}': {exc}") from exc

        self._current = target.name
        self._session = session
        logger.info("Connected", name=target.name, endpoint=target.endpoint)
        return self._snapshot(target)

    def disconnect(self, force: bool = False) -> None:
        """
        Démonte le tunnel courant. Sans référence courante c'est un no-op,
        sauf si force=True (démontage complet côté plan de contrôle).
        """
        if self._current is None and not force:
            return

        try:
            self.control_plane.tear_down(self._session)
        except ControlPlaneError as exc:
            logger.error("Disconnect failed", name=self._current, error=str(exc))
            raise DisconnectFailed(f"Cannot disconnect '{self._current}': {exc}") from exc

        logger.info("Disconnected", name=self._current)
        self._current = None
        self._session = None

    def rotate(self) -> EndpointDescriptor:
        pool = self.store.pool
        if not pool:
            raise NoEndpointsAvailable("No endpoints available")

        previous = self._current
        candidates = [d for d in pool if d.name != previous]
        # Vérifié avant de démonter: un échec ne touche pas à la connexion
        if not candidates:
            raise NoRotationCandidates(f"No other endpoint than '{previous}' to rotate to")

        if previous is not None:
            self.disconnect()

        selected = self._rng.choice(candidates)
        logger.info("Rotating", previous=previous, selected=selected.name, candidates=len(candidates))
        return self.connect(selected.name)
