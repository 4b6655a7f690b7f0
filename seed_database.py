"""
Seed the database with an admin account and a few sample contests.

Usage:
    python seed_database.py admin@yourdomain.com
    python seed_database.py admin@yourdomain.com --with-contests
"""
import asyncio
import sys

from app.config import settings
from app.database import Database
from app.models.auth.token import Principal
from app.models.auth.user import UserRole
from app.models.contest.contest import ContestCreate, ContestStatus
from app.services.auth.user import UserService, normalize_email
from app.services.contest.contest import ContestService


SAMPLE_CONTESTS = [
    {
        "name": "Weekend Logo Challenge",
        "type": "design",
        "description": "Design a logo for a neighbourhood coffee shop.",
        "prize": 300,
        "entry_fee": 5,
        "task": "Submit a link to a PNG or SVG of your logo."
    },
    {
        "name": "Flash Fiction: 500 Words",
        "type": "writing",
        "description": "Tell a complete story in at most 500 words.",
        "prize": 150,
        "entry_fee": 2,
        "task": "Paste your story or a link to it."
    },
    {
        "name": "Landing Page Sprint",
        "type": "development",
        "description": "Build a responsive landing page for a fitness app.",
        "prize": 800,
        "entry_fee": 10,
        "task": "Submit the deployed URL and the repository link."
    },
]


async def seed_admin(database: Database, email: str) -> Principal:
    """Create the admin account or promote the existing user"""
    print(f"[*] Seeding admin {email}...")
    user_service = UserService(database)
    user = await user_service.upsert_on_login(email, name="Administrator")

    if user.get("role") != UserRole.ADMIN.value:
        await database.users.update_where(
            {"email": user["email"]},
            {"role": UserRole.ADMIN.value}
        )
        print(f"  [OK] {email} is now an admin")
    else:
        print(f"  [SKIP] {email} is already an admin")

    return Principal(email=user["email"], role=UserRole.ADMIN)


async def seed_contests(database: Database, admin: Principal):
    """Create sample contests; the first two are confirmed, the last stays pending"""
    print("\n[*] Seeding contests...")
    contest_service = ContestService(database)

    for index, data in enumerate(SAMPLE_CONTESTS):
        existing = await database.contests.get_by({"name": data["name"]})
        if existing:
            print(f"  [SKIP] Contest '{data['name']}' already exists")
            continue

        contest = await contest_service.create_contest(ContestCreate(**data), admin, creator_name="Administrator")
        if index < 2:
            await contest_service.set_status(str(contest["_id"]), ContestStatus.CONFIRMED, admin)
            print(f"  [OK] Created and confirmed: {data['name']}")
        else:
            print(f"  [OK] Created (pending): {data['name']}")


async def main(admin_email: str, with_contests: bool = False):
    """Main seeding function"""
    print("=" * 60)
    print("Starting database seed...")
    print("=" * 60)

    database = await Database.connect(settings)
    try:
        admin = await seed_admin(database, normalize_email(admin_email))
        if with_contests:
            await seed_contests(database, admin)

        print()
        print("=" * 60)
        print("Database seeding completed successfully!")
        print("=" * 60)
    finally:
        database.close()


if __name__ == "__main__":
    args = [arg for arg in sys.argv[1:] if not arg.startswith("--")]
    if not args:
        print(__doc__)
        sys.exit(1)

    asyncio.run(main(args[0], with_contests="--with-contests" in sys.argv))
