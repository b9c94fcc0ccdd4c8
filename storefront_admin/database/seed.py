"""
Database Seeding

Creates the schema, fills the order status master and optionally adds a
staff account.

Usage:
    python -m storefront_admin.database.seed
    python -m storefront_admin.database.seed --login-id admin --password secret123
"""

import argparse
import asyncio
from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront_admin.config import get_settings
from storefront_admin.config.logging import configure_logging
from storefront_admin.database.connection import close_database, create_schema, get_db, init_database
from storefront_admin.database.models import Member, OrderStatusMaster
from storefront_admin.enums import DEFAULT_ORDER_STATUSES
from storefront_admin.serving.security import PasswordEncoder

logger = structlog.get_logger(__name__)


async def seed_order_statuses(session: AsyncSession) -> int:
    """Insert the missing order status labels; returns how many were added."""
    result = await session.execute(select(OrderStatusMaster.id))
    existing = set(result.scalars().all())

    added = 0
    for status, name, sort_no in DEFAULT_ORDER_STATUSES:
        if status in existing:
            continue
        session.add(OrderStatusMaster(id=status, name=name, sort_no=sort_no))
        added += 1

    await session.flush()
    logger.info("Order statuses seeded", added=added)
    return added


async def create_member(
    session: AsyncSession,
    login_id: str,
    password: str,
    name: str,
    encoder: PasswordEncoder,
) -> Optional[Member]:
    """Create a staff account unless the login id is taken."""
    result = await session.execute(select(Member).where(Member.login_id == login_id))
    if result.scalar_one_or_none() is not None:
        logger.warning("Staff member already exists", login_id=login_id)
        return None

    salt = encoder.create_salt()
    member = Member(
        name=name,
        login_id=login_id,
        password=encoder.encode_password(password, salt),
        salt=salt,
        is_active=True,
    )
    session.add(member)
    await session.flush()
    logger.info("Staff member created", login_id=login_id, member_id=member.id)
    return member


async def main(args: argparse.Namespace) -> None:
    settings = get_settings()
    configure_logging(settings=settings)

    logger.info("Starting database seeding...")
    await init_database()

    try:
        await create_schema()
        async with get_db() as session:
            await seed_order_statuses(session)
            if args.login_id:
                encoder = PasswordEncoder(settings.security.auth_magic.get_secret_value())
                await create_member(session, args.login_id, args.password, args.name, encoder)
        logger.info("Database seeding completed successfully!")
    except Exception as e:
        logger.error("Seeding failed", error=str(e))
        raise
    finally:
        await close_database()


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed the storefront admin database")
    parser.add_argument("--login-id", help="Create a staff member with this login id")
    parser.add_argument("--password", default="", help="Password for the new staff member")
    parser.add_argument("--name", default="Administrator", help="Display name for the new staff member")
    args = parser.parse_args(argv)

    if args.login_id and not args.password:
        parser.error("--password is required with --login-id")
    return args


def run() -> None:
    """Console script entry point."""
    asyncio.run(main(parse_args()))


if __name__ == "__main__":
    run()
