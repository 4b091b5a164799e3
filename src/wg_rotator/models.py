
# src/wg_rotator/models.py
from __future__ import annotations
from dataclasses import dataclass, replace
from typing import List, Tuple


# Champs sans lesquels un endpoint ne peut pas être monté
REQUIRED_FIELDS = ("private_key", "public_key", "endpoint", "address")

# Paires (Clé, Valeur) telles que lues dans le fichier, ex ("MTU", "1420")
ExtraKeys = Tuple[Tuple[str, str], ...]


@dataclass(frozen=True)
class EndpointDescriptor:
    name: str                  # ex "fr-paris-1" (nom du fichier sans .conf)
    private_key: str
    public_key: str            # clé publique du peer distant
    address: str               # ex "10.64.0.2/32"
    endpoint: str              # ex "1.2.3.4:51820", clé de réconciliation
    allowed_ips: str = ""      # en général "0.0.0.0/0, ::/0"
    dns: str = ""
    preshared_key: str = ""
    interface_extra: ExtraKeys = ()   # ex MTU, ListenPort, PostUp...
    peer_extra: ExtraKeys = ()        # ex PersistentKeepalive
    active: bool = False

    def missing_fields(self) -> List[str]:
        return [f for f in REQUIRED_FIELDS if not getattr(self, f)]

    def with_active(self, active: bool) -> "EndpointDescriptor":
        return replace(self, active=active)
