"""
Command line entry point.

    mongo-rest [--config PATH] serve [--host HOST] [--port PORT]
    mongo-rest [--config PATH] create-user --email EMAIL [--password PASSWORD]
"""
import argparse
import asyncio
import getpass
import os
import sys
from typing import Optional, Sequence

from mongo_rest.config import CONFIG_PATH_ENV, DEFAULT_CONFIG_PATH, Settings
from mongo_rest.core.errors import MongoRestError
from mongo_rest.core.logging import get_logger, setup_logging
from mongo_rest.database.connections import ConnectionResolver
from mongo_rest.main import create_app
from mongo_rest.services.auth_service import AuthService

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mongo-rest",
        description="REST interface over a MongoDB-compatible document store",
    )
    parser.add_argument(
        "--config",
        default=os.environ.get(CONFIG_PATH_ENV, DEFAULT_CONFIG_PATH),
        help="Configuration file (JSON or YAML)",
    )
    commands = parser.add_subparsers(dest="command")

    serve = commands.add_parser("serve", help="Run the HTTP server (default)")
    serve.add_argument("--host", help="Bind address, overrides server.address")
    serve.add_argument("--port", type=int, help="Bind port, overrides server.port")

    create_user = commands.add_parser("create-user", help="Add a user to the auth users store")
    create_user.add_argument("--email", required=True, help="Login email")
    create_user.add_argument("--password", help="Password (prompted when omitted)")

    return parser


def serve(settings: Settings, host: Optional[str], port: Optional[int]) -> None:
    """Run the application under Uvicorn."""
    import uvicorn

    uvicorn.run(
        create_app(settings),
        host=host or settings.server.address,
        port=port or settings.server.port,
        log_level=settings.log_level.lower(),
    )


async def create_user(settings: Settings, email: str, password: str) -> str:
    """Insert a user with a hashed password into the configured users store."""
    if settings.auth is None:
        raise MongoRestError("No auth section configured")

    resolver = ConnectionResolver(settings.db)
    try:
        service = AuthService.from_resolver(resolver, settings.auth)
        return await service.create_user(email, password)
    finally:
        resolver.close()


def prompt_password() -> Optional[str]:
    first = getpass.getpass("Password: ")
    second = getpass.getpass("Repeat password: ")
    if first != second:
        return None
    return first


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = Settings.from_file(args.config)
    setup_logging(settings.log_level, settings.json_logs)

    if args.command == "create-user":
        password = args.password or prompt_password()
        if not password:
            print("Passwords do not match or are empty", file=sys.stderr)
            return 1
        try:
            user_id = asyncio.run(create_user(settings, args.email, password))
        except MongoRestError as e:
            print(f"Cannot create user: {e.detail}", file=sys.stderr)
            return 1
        logger.info("user_created", email=args.email, user_id=user_id)
        return 0

    serve(
        settings,
        host=getattr(args, "host", None),
        port=getattr(args, "port", None),
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
