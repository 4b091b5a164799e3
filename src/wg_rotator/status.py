# src/wg_rotator/status.py
"""
Parsing of the text printed by `wg show`.

The format is not a stable contract, so parsing is permissive: unknown lines
are ignored and absent fields stay empty. Nothing here raises.
"""
from __future__ import annotations
import re

from .models import EndpointDescriptor


# Sous-chaîne recherchée dans la ligne -> champ du descripteur
STATUS_KEYS = (
    ("public key", "public_key"),
    ("endpoint", "endpoint"),
    ("allowed ips", "allowed_ips"),
    ("address", "address"),
    ("dns", "dns"),
)

_PATTERNS = {
    key: re.compile(re.escape(key) + r"\s*:\s*(.*)", re.IGNORECASE)
    for key, _ in STATUS_KEYS
}


def parse_status(raw_status: str) -> EndpointDescriptor:
    fields = {field: "" for _, field in STATUS_KEYS}

    for line in (raw_status or "").splitlines():
        lowered = line.lower()
        for key, field in STATUS_KEYS:
            if key not in lowered:
                continue
            m = _PATTERNS[key].search(line)
            if m:
                # la dernière ligne trouvée gagne
                fields[field] = m.group(1).strip()

    return EndpointDescriptor(name="", private_key="", **fields)


def matches(descriptor: EndpointDescriptor, live_status: str) -> bool:
    """True si la clé publique ou privée du descripteur apparaît dans le status."""
    if not live_status:
        return False
    keys = [k for k in (descriptor.public_key, descriptor.private_key) if k]
    return any(k in live_status for k in keys)
