#!/usr/bin/env python3
"""
Resource Directory -- command line entry point.

Usage:
  python main.py serve
  python main.py serve --reload
  python main.py seed data/resources.json
  python main.py create-user alice
  python main.py create-user admin --admin

Configuration comes from the environment or a .env file (see core/config.py):
  SECRET_KEY    Required unless DEBUG=true. At least 32 characters.
  SERVER_PORT   Port for `serve` (default 3000).
  DATABASE_URL  SQLAlchemy URL (default: SQLite file next to the code).
"""

import argparse
import getpass
import logging
import sys

from sqlalchemy.exc import IntegrityError

from core.config import get_settings

logger = logging.getLogger("resdir.cli")


def _serve(args: argparse.Namespace) -> int:
    import uvicorn

    port = args.port or get_settings().server_port
    logger.info("Serving on http://localhost:%d", port)
    uvicorn.run("asgi:app", host=args.host, port=port, reload=args.reload)
    return 0


def _seed(args: argparse.Namespace) -> int:
    from directory.seed import load_seed_file, seed_directory
    from directory.store import ResourceStore

    try:
        data = load_seed_file(args.path)
    except ValueError as exc:
        print(f"  [!] {exc}")
        return 1

    store = ResourceStore()
    try:
        result = seed_directory(store, data)
    finally:
        store.close()

    print(f"  {result.categories_created} categories and {result.resources_created} resources created.")
    for error in result.errors:
        print(f"  [!] {error}")
    return 0


def _create_user(args: argparse.Namespace) -> int:
    from auth.models import User
    from auth.store import UserStore
    from auth.tokens import hash_password

    password = getpass.getpass("Password: ")
    if len(password) < 8:
        print("  [!] Password must be at least 8 characters.")
        return 1
    if password != getpass.getpass("Repeat password: "):
        print("  [!] Passwords do not match.")
        return 1

    store = UserStore()
    try:
        user_id = store.create_user(
            User(username=args.username, hashed_password=hash_password(password), is_admin=args.admin)
        )
    except IntegrityError:
        print(f"  [!] A user named '{args.username}' already exists.")
        return 1
    finally:
        store.close()

    role = "administrator" if args.admin else "user"
    print(f"  Created {role} '{args.username}' (id {user_id}).")
    return 0


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    parser = argparse.ArgumentParser(
        prog="resdir",
        description="Filterable resource directory.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command")

    serve = subparsers.add_parser("serve", help="Run the web server")
    serve.add_argument("--host", default="127.0.0.1", help="Interface to bind (default: 127.0.0.1)")
    serve.add_argument("--port", type=int, default=None, help="Port (default: SERVER_PORT, 3000)")
    serve.add_argument("--reload", action="store_true", help="Restart on code changes (development)")
    serve.set_defaults(handler=_serve)

    seed = subparsers.add_parser("seed", help="Import categories and resources from a JSON file")
    seed.add_argument("path", metavar="PATH", help="Seed file (see directory/seed.py for the format)")
    seed.set_defaults(handler=_seed)

    create_user = subparsers.add_parser("create-user", help="Create a user account")
    create_user.add_argument("username")
    create_user.add_argument("--admin", action="store_true", help="Grant administrator rights")
    create_user.set_defaults(handler=_create_user)

    args = parser.parse_args()
    if not getattr(args, "handler", None):
        parser.print_help()
        return

    sys.exit(args.handler(args))


if __name__ == "__main__":
    main()
