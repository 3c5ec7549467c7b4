"""
Seed script -- populates the database with sample data for reviewers.

Run after migrations:
    python seed.py

Creates:
  - 4 sample users, one group with an admin and three members
  - 12 Swiss and 6 Slovenian locations (country pools)
  - 8 world capitals (world pool, category ``capitals``)
  - 6 garden spots on the ``garten`` image map
  - 1 active group game on ``country:switzerland`` with no round released
"""

import asyncio

from sqlalchemy import text

from geoquiz.domain.enums import Difficulty, GameMode, GameStatus, MemberRole
from geoquiz.infrastructure.database import async_session_factory, dispose_engine
from geoquiz.infrastructure.models import (
    GameModel,
    GroupMemberModel,
    GroupModel,
    ImageLocationModel,
    LocationModel,
    UserModel,
    WorldLocationModel,
)


USERS = [
    {"name": "Anna Meier", "email": "anna@example.com", "hint_enabled": False},
    {"name": "Luka Novak", "email": "luka@example.com", "hint_enabled": True},
    {"name": "Marco Rossi", "email": "marco@example.com", "hint_enabled": False},
    {"name": "Nina Kovač", "email": "nina@example.com", "hint_enabled": True},
]

SWISS = [
    ("Bern", 46.9480, 7.4474, Difficulty.EASY),
    ("Zürich", 47.3769, 8.5417, Difficulty.EASY),
    ("Genf", 46.2044, 6.1432, Difficulty.EASY),
    ("Basel", 47.5596, 7.5886, Difficulty.EASY),
    ("Lugano", 46.0037, 8.9511, Difficulty.MEDIUM),
    ("Luzern", 47.0502, 8.3093, Difficulty.MEDIUM),
    ("St. Gallen", 47.4245, 9.3767, Difficulty.MEDIUM),
    ("Chur", 46.8508, 9.5320, Difficulty.MEDIUM),
    ("Sion", 46.2331, 7.3606, Difficulty.MEDIUM),
    ("Zermatt", 46.0207, 7.7491, Difficulty.HARD),
    ("Scuol", 46.7967, 10.2980, Difficulty.HARD),
    ("Delémont", 47.3649, 7.3445, Difficulty.HARD),
]

SLOVENIAN = [
    ("Ljubljana", 46.0569, 14.5058, Difficulty.EASY),
    ("Maribor", 46.5547, 15.6459, Difficulty.EASY),
    ("Koper", 45.5469, 13.7294, Difficulty.MEDIUM),
    ("Bled", 46.3683, 14.1146, Difficulty.MEDIUM),
    ("Novo mesto", 45.8011, 15.1711, Difficulty.HARD),
    ("Murska Sobota", 46.6581, 16.1610, Difficulty.HARD),
]

CAPITALS = [
    ("Paris", 48.8566, 2.3522),
    ("Tokyo", 35.6762, 139.6503),
    ("Canberra", -35.2809, 149.1300),
    ("Brasília", -15.7939, -47.8828),
    ("Nairobi", -1.2921, 36.8219),
    ("Ottawa", 45.4215, -75.6972),
    ("Reykjavík", 64.1466, -21.9426),
    ("Wellington", -41.2865, 174.7762),
]

GARDEN = [
    ("Apfelbaum", 420.0, 610.0),
    ("Teich", 1180.0, 1320.0),
    ("Gartenhaus", 1905.0, 402.0),
    ("Kompost", 215.0, 2104.0),
    ("Gemüsebeet", 980.0, 1750.0),
    ("Sandkasten", 1620.0, 1045.0),
]


async def seed():
    async with async_session_factory() as session:
        # Check if already seeded
        result = await session.execute(text("SELECT count(*) FROM users"))
        if result.scalar() > 0:
            print("Database already seeded. Skipping.")
            return

        # ── Users & group ─────────────────────────────────────────────
        users = [UserModel(**u) for u in USERS]
        session.add_all(users)
        await session.flush()

        group = GroupModel(name="Stammtisch", invite_code="ALPS2026", owner_id=users[0].id)
        session.add(group)
        await session.flush()
        session.add_all(
            GroupMemberModel(
                group_id=group.id,
                user_id=u.id,
                role=MemberRole.ADMIN if i == 0 else MemberRole.MEMBER,
            )
            for i, u in enumerate(users)
        )
        print(f"  Created {len(users)} users in group {group.name!r}")

        # ── Location pools ────────────────────────────────────────────
        for country, rows in (("Switzerland", SWISS), ("Slovenia", SLOVENIAN)):
            session.add_all(
                LocationModel(
                    name=name, latitude=lat, longitude=lng, country=country, difficulty=level
                )
                for name, lat, lng, level in rows
            )
        session.add_all(
            WorldLocationModel(name=name, latitude=lat, longitude=lng, category="capitals")
            for name, lat, lng in CAPITALS
        )
        session.add_all(
            ImageLocationModel(name=name, x=x, y=y, image_map_id="garten")
            for name, x, y in GARDEN
        )
        print(
            f"  Created {len(SWISS) + len(SLOVENIAN)} country, "
            f"{len(CAPITALS)} world and {len(GARDEN)} image locations"
        )

        # ── Game (admin releases round 1 via the API) ─────────────────
        session.add(
            GameModel(
                mode=GameMode.GROUP,
                group_id=group.id,
                name="Herbstrunde",
                country="switzerland",
                game_type="country:switzerland",
                locations_per_round=3,
                time_limit_seconds=60,
                status=GameStatus.ACTIVE,
                current_round=0,
            )
        )
        await session.flush()
        print("  Created 1 active game")

        await session.commit()
        print("\nSeed complete!")


async def main():
    print("Seeding database...")
    await seed()
    await dispose_engine()


if __name__ == "__main__":
    asyncio.run(main())
