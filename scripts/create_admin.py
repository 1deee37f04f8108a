"""Create the first super admin account.

Usage:
    python -m scripts.create_admin --email admin@ralfarm.ro --password '...' [--full-name NAME]
"""

from __future__ import annotations

import argparse
import asyncio
import sys

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from ralfarm.middleware.logging import configure_structured_logging
from ralfarm.models.enums import UserRoleEnum
from ralfarm.models.user import User
from ralfarm.schemas.user import UserCreate
from ralfarm.services.errors import ConflictError
from ralfarm.services.user_service import UserService

logger = structlog.get_logger("ralfarm.scripts.create_admin")

DEFAULT_FULL_NAME = "Super Administrator"


async def create_super_admin(
    db: AsyncSession,
    email: str,
    password: str,
    full_name: str = DEFAULT_FULL_NAME,
) -> User:
    payload = UserCreate(
        email=email,
        password=password,
        full_name=full_name,
        role=UserRoleEnum.super_admin,
    )
    user = await UserService(db).create_user(payload)
    await db.commit()
    return user


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create a RalFarm super admin")
    parser.add_argument("--email", required=True)
    parser.add_argument("--password", required=True)
    parser.add_argument("--full-name", default=DEFAULT_FULL_NAME)
    return parser.parse_args(argv)


async def _run(args: argparse.Namespace) -> int:
    from ralfarm.database import async_session_factory, engine

    try:
        async with async_session_factory() as session:
            user = await create_super_admin(session, args.email, args.password, args.full_name)
    except ConflictError as exc:
        logger.error("super_admin_exists", email=args.email, error=str(exc))
        return 1
    finally:
        await engine.dispose()
    logger.info("super_admin_created", user_id=str(user.id), email=user.email)
    return 0


def main(argv: list[str] | None = None) -> int:
    configure_structured_logging()
    return asyncio.run(_run(_parse_args(argv)))


if __name__ == "__main__":
    sys.exit(main())
