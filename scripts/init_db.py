"""Database initialization script.

Creates database tables and, optionally, a demo doctor with the built-in
prescription and medical certificate templates.

Usage:
    python -m scripts.init_db
    python -m scripts.init_db --demo-doctor dr.smith@example.com "Dr. Smith"
"""

import argparse
import asyncio

from sqlmodel import select

from medidoc.core.config import get_settings
from medidoc.core.logging_config import setup_logging
from medidoc.db.models import Doctor, Template
from medidoc.db.session import close_db, get_session_maker, init_db
from medidoc.strategies.template_engine import DEFAULT_TEMPLATES


async def seed_demo_doctor(email: str, name: str) -> None:
    """Create a doctor with the default templates unless the email exists."""
    session_maker = get_session_maker()
    async with session_maker() as session:
        result = await session.execute(select(Doctor).where(Doctor.email == email))
        if result.scalar_one_or_none() is not None:
            print(f"Doctor {email} already exists, skipping seed")
            return

        doctor = Doctor(email=email, name=name)
        session.add(doctor)
        await session.flush()

        for key, content in DEFAULT_TEMPLATES.items():
            session.add(
                Template(
                    doctor_id=doctor.id,
                    name=key.replace("_", " ").title(),
                    category=key,
                    content_json=content.to_storage(),
                    builder_version=1,
                )
            )

        await session.commit()
        print(f"Created demo doctor {doctor.id} with {len(DEFAULT_TEMPLATES)} templates")


async def main(demo_doctor: list[str] | None) -> None:
    """Initialize the database."""
    settings = get_settings()
    setup_logging(settings)
    try:
        await init_db(settings)
        print("Database initialized successfully!")

        if demo_doctor:
            await seed_demo_doctor(*demo_doctor)
    finally:
        await close_db()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument(
        "--demo-doctor",
        nargs=2,
        metavar=("EMAIL", "NAME"),
        help="Also create a doctor profile with the default templates",
    )
    args = parser.parse_args()
    asyncio.run(main(args.demo_doctor))
