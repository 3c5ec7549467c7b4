"""Initial schema: location pools, groups, games, rounds and guesses.

Revision ID: 001
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


revision = "001"
down_revision = None
branch_labels = None
depends_on = None

# Shared by all three pools; created once up front
DIFFICULTY = postgresql.ENUM("easy", "medium", "hard", name="difficulty", create_type=False)


def upgrade() -> None:
    DIFFICULTY.create(op.get_bind(), checkfirst=True)

    # ── users ─────────────────────────────────────────────────────────
    op.create_table(
        "users",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(120), nullable=True),
        sa.Column("email", sa.String(255), unique=True, nullable=True),
        sa.Column("hint_enabled", sa.Boolean, default=False, nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    )

    # ── groups / group_members ────────────────────────────────────────
    op.create_table(
        "groups",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("invite_code", sa.String(16), unique=True, nullable=False),
        sa.Column("owner_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("locations_per_round", sa.Integer, default=5, nullable=False),
        sa.Column("time_limit_seconds", sa.Integer, nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    )
    op.create_table(
        "group_members",
        sa.Column("group_id", sa.Integer, sa.ForeignKey("groups.id"), primary_key=True),
        sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id"), primary_key=True),
        sa.Column(
            "role",
            sa.Enum("admin", "member", name="memberrole"),
            default="member",
            nullable=False,
        ),
        sa.Column(
            "joined_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    )

    # ── location pools ────────────────────────────────────────────────
    for table, selector in (("locations", "country"), ("world_locations", "category")):
        op.create_table(
            table,
            sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
            sa.Column("name", sa.String(200), nullable=False),
            sa.Column("name_de", sa.String(200), nullable=True),
            sa.Column("name_en", sa.String(200), nullable=True),
            sa.Column("name_sl", sa.String(200), nullable=True),
            sa.Column("latitude", sa.Float, nullable=False),
            sa.Column("longitude", sa.Float, nullable=False),
            sa.Column(selector, sa.String(80), nullable=False),
            sa.Column(
                "difficulty",
                DIFFICULTY,
                default="medium",
            ),
            sa.Column(
                "created_at",
                sa.DateTime(timezone=True),
                server_default=sa.func.now(),
            ),
        )
        op.create_index(f"idx_{table}_{selector}", table, [selector])

    op.create_table(
        "image_locations",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("name_de", sa.String(200), nullable=True),
        sa.Column("name_en", sa.String(200), nullable=True),
        sa.Column("image_map_id", sa.String(40), nullable=False),
        sa.Column("x", sa.Float, nullable=False),
        sa.Column("y", sa.Float, nullable=False),
        sa.Column(
            "difficulty",
            DIFFICULTY,
            default="medium",
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    )
    op.create_index("idx_image_locations_map", "image_locations", ["image_map_id"])

    # ── games ─────────────────────────────────────────────────────────
    op.create_table(
        "games",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "mode",
            sa.Enum("group", "solo", "training", name="gamemode"),
            default="group",
            nullable=False,
        ),
        sa.Column("group_id", sa.Integer, sa.ForeignKey("groups.id"), nullable=True),
        sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id"), nullable=True),
        sa.Column("name", sa.String(120), nullable=True),
        sa.Column("country", sa.String(40), default="switzerland", nullable=False),
        sa.Column("game_type", sa.String(60), nullable=True),
        sa.Column("locations_per_round", sa.Integer, default=5, nullable=False),
        sa.Column("time_limit_seconds", sa.Integer, nullable=True),
        sa.Column(
            "status",
            sa.Enum("active", "completed", name="gamestatus"),
            default="active",
            nullable=False,
        ),
        sa.Column("current_round", sa.Integer, default=0, nullable=False),
        sa.Column("leaderboard_revealed", sa.Boolean, default=False, nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    )
    op.create_index("idx_games_group_status", "games", ["group_id", "status"])
    op.create_index("idx_games_user", "games", ["user_id"])

    # ── game_rounds ───────────────────────────────────────────────────
    op.create_table(
        "game_rounds",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("game_id", sa.Integer, sa.ForeignKey("games.id"), nullable=False),
        sa.Column("round_number", sa.Integer, nullable=False),
        sa.Column("location_index", sa.Integer, default=1, nullable=False),
        sa.Column("location_id", sa.Integer, nullable=False),
        sa.Column(
            "location_source",
            sa.Enum(
                "locations",
                "worldLocations",
                "imageLocations",
                name="locationsource",
            ),
            default="locations",
            nullable=False,
        ),
        sa.Column("country", sa.String(40), default="switzerland", nullable=False),
        sa.Column("game_type", sa.String(60), nullable=True),
        sa.Column("time_limit_seconds", sa.Integer, nullable=True),
        sa.UniqueConstraint(
            "game_id", "round_number", "location_index", name="uq_game_rounds_slot"
        ),
    )
    op.create_index("idx_game_rounds_game", "game_rounds", ["game_id"])

    # ── guesses ───────────────────────────────────────────────────────
    op.create_table(
        "guesses",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "game_round_id", sa.Integer, sa.ForeignKey("game_rounds.id"), nullable=False
        ),
        sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("latitude", sa.Float, nullable=True),
        sa.Column("longitude", sa.Float, nullable=True),
        sa.Column("distance_km", sa.Float, nullable=False),
        sa.Column("time_seconds", sa.Integer, nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.UniqueConstraint("game_round_id", "user_id", name="uq_guesses_round_user"),
    )
    op.create_index("idx_guesses_user", "guesses", ["user_id"])


def downgrade() -> None:
    op.drop_table("guesses")
    op.drop_table("game_rounds")
    op.drop_table("games")
    op.drop_table("image_locations")
    op.drop_table("world_locations")
    op.drop_table("locations")
    op.drop_table("group_members")
    op.drop_table("groups")
    op.drop_table("users")
    for enum_name in ("locationsource", "gamestatus", "gamemode", "difficulty", "memberrole"):
        op.execute(f"DROP TYPE IF EXISTS {enum_name}")
