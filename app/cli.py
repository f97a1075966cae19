#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Command line entry point
========================
    initiatives-tracker                 initialise the database and serve
    initiatives-tracker --prune         also delete unreferenced asset files
    initiatives-tracker -c --no-serve   create a login and exit
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import argparse
import asyncio
import getpass
import logging
from typing import Callable, Optional, Sequence

import uvicorn

from app.core.config import get_settings
from app.core.database import dispose_db, get_session_factory, init_db
from app.services.logins import AccountError, create_login, generate_password
from app.services.uploads import prune_assets

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="initiatives-tracker")
    parser.add_argument(
        "-c", "--create-login", action="store_true",
        help="interactively create a login before starting",
    )
    parser.add_argument(
        "--prune", action="store_true",
        help="delete asset files no row refers to",
    )
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=3000)
    parser.add_argument(
        "--no-serve", action="store_true",
        help="run the maintenance steps and exit",
    )
    return parser


# -----------------------------------------------------------------------------

def prompt_new_login(
    ask: Callable[[str], str] = input,
    ask_secret: Callable[[str], str] = getpass.getpass,
) -> tuple[str, str, bool, bool]:
    """Ask for username, password and admin flag.

    Returns ``(username, password, is_admin, generated)``; a blank password
    answer means a generated one.
    """
    username = ""
    while not username:
        username = ask("Username: ").strip()

    password = ask_secret("Password (leave empty to generate one): ")
    generated = not password
    if generated:
        password = generate_password(16)

    is_admin = ask("Is admin? [y/N] ").strip().lower() in ("y", "yes")
    return username, password, is_admin, generated


# -----------------------------------------------------------------------------

async def prepare(args: argparse.Namespace) -> None:
    await init_db()
    factory = get_session_factory()
    try:
        if args.prune:
            async with factory() as db:
                removed = await prune_assets(db)
            for name in removed:
                print(f"Removed {name}")

        if args.create_login:
            username, password, is_admin, _generated = prompt_new_login()
            async with factory() as db:
                try:
                    await create_login(db, username, password, is_admin)
                    await db.commit()
                except AccountError as e:
                    print(e)
                    return
            print(f"Created {'admin ' if is_admin else ''}login")
            print(f"  username: {username}")
            print(f"  password: {password}")
    finally:
        await dispose_db()


# -----------------------------------------------------------------------------

def main(argv: Optional[Sequence[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
    )

    asyncio.run(prepare(args))

    if not args.no_serve:
        uvicorn.run("app.main:app", host=args.host, port=args.port)


if __name__ == "__main__":
    main()
