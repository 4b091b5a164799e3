import argparse
import sys
from pathlib import Path
import qrcode

from wg_rotator.conf import render_conf
from wg_rotator.controller import ConnectionController
from wg_rotator.errors import WgRotatorError
from wg_rotator.logging_setup import setup_logging
from wg_rotator.models import EndpointDescriptor
from wg_rotator.settings import get_settings
from wg_rotator.store import ConfigStore
from wg_rotator.wireguard import WgQuickControlPlane


def build_controller(settings=None, reconcile=True):
    settings = settings or get_settings()

    store = ConfigStore(settings.config_dir)
    store.init()
    store.load()

    controller = ConnectionController(store, WgQuickControlPlane(settings))
    # Un nouveau processus ne connaît pas le tunnel monté par le précédent
    if reconcile:
        controller.reconcile()
    return controller


def _print_endpoint(d):
    mark = "*" if d.active else "-"
    print(f"{mark} {d.name} ({d.endpoint})")


# ---------------------------------------------------
# Commande : list
# ---------------------------------------------------

def cmd_list(args, controller):
    configs = controller.get_configs()

    print("=== Endpoints ===")
    if not configs:
        print("Aucun endpoint.")
        return
    for d in configs:
        _print_endpoint(d)


# ---------------------------------------------------
# Commandes : connect / disconnect / rotate
# ---------------------------------------------------

def cmd_connect(args, controller):
    d = controller.connect(args.name)
    print(f"[OK] Connecté : {d.name} ({d.endpoint})")


def cmd_disconnect(args, controller):
    name = controller.current_name
    controller.disconnect()
    if name:
        print(f"[OK] Déconnecté : {name}")
    else:
        print("Aucune connexion active.")


def cmd_rotate(args, controller):
    previous = controller.current_name
    d = controller.rotate()
    print(f"[OK] Rotation : {previous or '(aucun)'} -> {d.name} ({d.endpoint})")


# ---------------------------------------------------
# Commandes : current / status
# ---------------------------------------------------

def cmd_current(args, controller):
    d = controller.get_current_config()
    if d is None:
        print("Aucun endpoint connecté.")
        return
    print(f"Nom       : {d.name}")
    print(f"Endpoint  : {d.endpoint}")
    print(f"Adresse   : {d.address}")
    print(f"PublicKey : {d.public_key}")


def cmd_status(args, controller):
    out = controller.status()
    print(out.rstrip() if out.strip() else "Aucune interface WireGuard active.")


# ---------------------------------------------------
# Commandes : add / import / export / generate-qr
# ---------------------------------------------------

def cmd_add(args, controller):
    d = EndpointDescriptor(
        name=args.name,
        private_key=args.private_key,
        public_key=args.public_key,
        address=args.address,
        endpoint=args.endpoint,
        allowed_ips=args.allowed_ips,
        dns=args.dns,
    )
    path = controller.store.add(d)
    print(f"[+] Endpoint ajouté : {d.name}")
    print(f"[+] Fichier : {path}")


def cmd_import(args, controller):
    d = controller.store.import_file(args.path, args.name)
    print(f"[+] Endpoint importé : {d.name} ({d.endpoint})")


def _find(controller, name):
    for d in controller.get_configs():
        if d.name == name:
            return d
    return None


def cmd_export(args, controller):
    d = _find(controller, args.name)
    if d is None:
        print("[ERREUR] Endpoint introuvable.")
        return 1
    print(render_conf(d), end="")


def cmd_generate_qr(args, controller):
    d = _find(controller, args.name)
    if d is None:
        print("[ERREUR] Endpoint introuvable.")
        return 1

    img = qrcode.make(render_conf(d))
    out_dir = Path(args.output)
    out_dir.mkdir(parents=True, exist_ok=True)
    path = out_dir / f"{d.name}.png"
    img.save(path)

    print(f"[OK] QR code généré : {path}")


# ---------------------------------------------------
# CLI / Parser
# ---------------------------------------------------

def build_parser():
    parser = argparse.ArgumentParser(prog="wg-rotator")
    sub = parser.add_subparsers(dest="cmd")

    # list
    p_list = sub.add_parser("list")
    p_list.set_defaults(func=cmd_list, live=True)

    # connect
    p_connect = sub.add_parser("connect")
    p_connect.add_argument("name", nargs="?")
    p_connect.set_defaults(func=cmd_connect, live=True)

    # disconnect
    p_disc = sub.add_parser("disconnect")
    p_disc.set_defaults(func=cmd_disconnect, live=True)

    # rotate
    p_rot = sub.add_parser("rotate")
    p_rot.set_defaults(func=cmd_rotate, live=True)

    # current / status
    p_cur = sub.add_parser("current")
    p_cur.set_defaults(func=cmd_current)

    p_status = sub.add_parser("status")
    p_status.set_defaults(func=cmd_status)

    # add
    p_add = sub.add_parser("add")
    p_add.add_argument("name")
    p_add.add_argument("--private-key", required=True)
    p_add.add_argument("--public-key", required=True)
    p_add.add_argument("--address", required=True)
    p_add.add_argument("--endpoint", required=True)
    p_add.add_argument("--allowed-ips", default="0.0.0.0/0, ::/0")
    p_add.add_argument("--dns", default="")
    p_add.set_defaults(func=cmd_add)

    # import
    p_imp = sub.add_parser("import")
    p_imp.add_argument("path")
    p_imp.add_argument("--name")
    p_imp.set_defaults(func=cmd_import)

    p_export = sub.add_parser("export")
    p_export.add_argument("name")
    p_export.set_defaults(func=cmd_export)

    # generate-qr
    p_qr = sub.add_parser("generate-qr")
    p_qr.add_argument("name")
    p_qr.add_argument("--output", default="qrcodes")
    p_qr.set_defaults(func=cmd_generate_qr)

    return parser


def main(argv=None, controller=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        return 0

    try:
        if controller is None:
            settings = get_settings()
            setup_logging(settings.log_level, settings.log_file)
            controller = build_controller(settings, reconcile=getattr(args, "live", False))
        return args.func(args, controller) or 0
    except WgRotatorError as exc:
        print(f"[ERREUR] {exc}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
