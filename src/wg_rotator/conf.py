# src/wg_rotator/conf.py
from __future__ import annotations
import re
from typing import Dict, List, Tuple

from .errors import ConfigMalformed
from .models import EndpointDescriptor


# Clé du fichier .conf -> champ du descripteur
CONF_KEYS = {
    "privatekey": "private_key",
    "address": "address",
    "dns": "dns",
    "publickey": "public_key",
    "presharedkey": "preshared_key",
    "allowedips": "allowed_ips",
    "endpoint": "endpoint",
}

_LINE_RE = re.compile(r"^\s*([A-Za-z]+)\s*=\s*(.*?)\s*$")
_SECTION_RE = re.compile(r"^\s*\[\s*([A-Za-z]+)\s*\]\s*$")


# ---------- Lecture ----------

def parse_conf(text: str, name: str) -> EndpointDescriptor:
    """
    Extrait les champs `Key = Value` d'un fichier WireGuard.

    La première occurrence d'une clé connue gagne. Les autres clés (MTU,
    PersistentKeepalive, PostUp...) sont conservées par section pour être
    réécrites telles quelles par render_conf().
    Lève ConfigMalformed si PrivateKey, PublicKey, Endpoint ou Address manquent.
    """
    if not name:
        raise ConfigMalformed("<unnamed>", ["name"])

    fields: Dict[str, str] = {}
    extra: Dict[str, List[Tuple[str, str]]] = {"interface": [], "peer": []}
    section = "interface"
    for line in text.splitlines():
        s = _SECTION_RE.match(line)
        if s:
            section = "peer" if s.group(1).lower() == "peer" else "interface"
            continue
        m = _LINE_RE.match(line)
        if not m:
            continue
        key, value = m.group(1), m.group(2)
        field = CONF_KEYS.get(key.lower())
        if field is None:
            extra[section].append((key, value))
        elif field not in fields:
            fields[field] = value

    descriptor = EndpointDescriptor(
        name=name,
        private_key=fields.get("private_key", ""),
        public_key=fields.get("public_key", ""),
        address=fields.get("address", ""),
        endpoint=fields.get("endpoint", ""),
        allowed_ips=fields.get("allowed_ips", ""),
        dns=fields.get("dns", ""),
        preshared_key=fields.get("preshared_key", ""),
        interface_extra=tuple(extra["interface"]),
        peer_extra=tuple(extra["peer"]),
    )

    missing = descriptor.missing_fields()
    if missing:
        raise ConfigMalformed(name, missing)
    return descriptor


# ---------- Rendu ----------

def render_conf(descriptor: EndpointDescriptor) -> str:
    d = descriptor

    lines = [
        "[Interface]",
        f"PrivateKey = {d.private_key}",
        f"Address = {d.address}",
    ]

    if d.dns:
        lines.append(f"DNS = {d.dns}")
    lines += [f"{k} = {v}" for k, v in d.interface_extra]

    lines += [
        "",
        "[Peer]",
        f"PublicKey = {d.public_key}",
    ]

    if d.preshared_key:
        lines.append(f"PresharedKey = {d.preshared_key}")

    if d.allowed_ips:
        lines.append(f"AllowedIPs = {d.allowed_ips}")

    lines.append(f"Endpoint = {d.endpoint}")
    lines += [f"{k} = {v}" for k, v in d.peer_extra]

    return "\n".join(lines).strip() + "\n"
