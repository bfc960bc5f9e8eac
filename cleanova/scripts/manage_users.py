# cleanova/scripts/manage_users.py
"""
Alta de usuarios y gestión de suscripciones desde línea de comandos.
Ejecutar con:
    python -m cleanova.scripts.manage_users create user@example.com --password secreto --subscribed
    python -m cleanova.scripts.manage_users subscribe user@example.com
    python -m cleanova.scripts.manage_users unsubscribe user@example.com
"""
import argparse
import getpass
import logging
import sys

from cleanova.crud.crud_user import create_user, get_user_by_email, set_subscription
from cleanova.db.session import SessionLocal

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Gestión de usuarios de Cleanova")
    sub = parser.add_subparsers(dest="command", required=True)

    create = sub.add_parser("create", help="Crear un usuario")
    create.add_argument("email")
    create.add_argument("--password")
    create.add_argument("--full-name")
    create.add_argument("--subscribed", action="store_true")

    for name in ("subscribe", "unsubscribe"):
        p = sub.add_parser(name, help=f"{name} a un usuario existente")
        p.add_argument("email")

    args = parser.parse_args(argv)
    db = SessionLocal()
    try:
        user = get_user_by_email(db, email=args.email)
        if args.command == "create":
            if user:
                logger.info(f"El usuario '{args.email}' ya existe.")
                return 0
            password = args.password or getpass.getpass("Contraseña: ")
            create_user(db, email=args.email, password=password,
                        full_name=args.full_name, is_subscribed=args.subscribed)
            logger.info(f"Usuario '{args.email}' creado (suscrito={args.subscribed}).")
            return 0

        if not user:
            logger.error(f"El usuario '{args.email}' no existe.")
            return 1
        set_subscription(db, user, args.command == "subscribe")
        logger.info(f"Suscripción de '{args.email}': {user.is_subscribed}")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
