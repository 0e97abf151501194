"""CLI for CareLink: create tables, seed users, issue session tokens."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys


async def cmd_init_db(args):
    from carelink.db.engine import create_tables

    await create_tables()
    print("Tables created")


async def cmd_create_user(args):
    from carelink.db import crud
    from carelink.db.engine import async_session_factory, create_tables

    await create_tables()
    async with async_session_factory() as db:
        user = await crud.create_user(
            db,
            account_type=args.account_type,
            role="admin" if args.admin else "user",
            full_name=args.name,
            email=args.email or "",
            phone=args.phone or "",
            profession=args.profession or "",
            is_verified=args.verified,
        )
    print(f"User created: {user.full_name} (id={user.id}, type={user.account_type}, role={user.role})")


async def cmd_issue_token(args):
    from carelink.db import crud
    from carelink.db.engine import async_session_factory
    from carelink.services.auth import create_session

    async with async_session_factory() as db:
        user = await crud.get_user(db, args.user_id)
        if not user:
            print(f"User {args.user_id} not found")
            sys.exit(1)
        token = await create_session(user, db)
    print(token)


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    parser = argparse.ArgumentParser(prog="carelink", description="CareLink booking core admin CLI")
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("init-db", help="Create database tables")

    p = sub.add_parser("create-user", help="Create a patient, partner or admin user")
    p.add_argument("--name", required=True)
    p.add_argument("--email")
    p.add_argument("--phone")
    p.add_argument("--account-type", choices=["patient", "partner"], default="patient")
    p.add_argument("--profession", help="Partner profession, e.g. nursing, physiotherapy, ambulance")
    p.add_argument("--verified", action="store_true", help="Mark partner KYC as verified")
    p.add_argument("--admin", action="store_true")

    p = sub.add_parser("issue-token", help="Issue a session token for a user")
    p.add_argument("user_id")

    args = parser.parse_args()
    if not args.command:
        parser.print_help()
        sys.exit(1)

    if args.command == "init-db":
        asyncio.run(cmd_init_db(args))
    elif args.command == "create-user":
        asyncio.run(cmd_create_user(args))
    elif args.command == "issue-token":
        asyncio.run(cmd_issue_token(args))


if __name__ == "__main__":
    main()
