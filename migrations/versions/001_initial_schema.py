"""Initial schema: users and rides.

Revision ID: 001
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


revision = "001"
down_revision = None
branch_labels = None
depends_on = None

ROLE = sa.Enum("passenger", "driver", name="role")
RIDE_TYPE = sa.Enum("bike", "car", "rickshaw", name="ridetype")
RIDE_STATUS = sa.Enum(
    "requested",
    "accepted",
    "in_progress",
    "completed",
    "cancelled",
    name="ridestatus",
)


def upgrade() -> None:
    # ── users ─────────────────────────────────────────────────────────
    op.create_table(
        "users",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("email", sa.String(255), unique=True, nullable=False),
        sa.Column("phone", sa.String(32), unique=True, nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("role", ROLE, nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    )

    # ── rides ─────────────────────────────────────────────────────────
    op.create_table(
        "rides",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "passenger_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False
        ),
        sa.Column(
            "driver_id", sa.Integer, sa.ForeignKey("users.id"), nullable=True
        ),
        sa.Column("pickup_location", sa.String(255), nullable=False),
        sa.Column("drop_location", sa.String(255), nullable=False),
        sa.Column("distance_km", sa.Float, nullable=False),
        sa.Column("ride_type", RIDE_TYPE, nullable=False),
        sa.Column("fare", sa.Float, nullable=False),
        sa.Column("discounted_fare", sa.Float, nullable=True),
        sa.Column("status", RIDE_STATUS, nullable=False),
        sa.Column("cancelled_by", ROLE, nullable=True),
        sa.Column("rating", sa.Float, nullable=True),
        sa.Column("requested_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.CheckConstraint("fare > 0", name="ck_rides_fare_positive"),
        sa.CheckConstraint("distance_km > 0", name="ck_rides_distance_positive"),
        sa.CheckConstraint(
            "discounted_fare IS NULL OR discounted_fare <= fare",
            name="ck_rides_discount_not_above_fare",
        ),
        sa.CheckConstraint(
            "rating IS NULL OR (rating >= 1 AND rating <= 5)",
            name="ck_rides_rating_range",
        ),
    )
    op.create_index("idx_rides_status", "rides", ["status"])
    op.create_index("idx_rides_passenger", "rides", ["passenger_id"])
    op.create_index("idx_rides_driver", "rides", ["driver_id"])
    op.create_index("idx_rides_requested_at", "rides", ["requested_at"])

    # One active ride per party
    op.create_index(
        "uq_rides_passenger_active",
        "rides",
        ["passenger_id"],
        unique=True,
        postgresql_where=sa.text(
            "status IN ('requested', 'accepted', 'in_progress')"
        ),
    )
    op.create_index(
        "uq_rides_driver_active",
        "rides",
        ["driver_id"],
        unique=True,
        postgresql_where=sa.text("status IN ('accepted', 'in_progress')"),
    )


def downgrade() -> None:
    op.drop_table("rides")
    op.drop_table("users")
    op.execute("DROP TYPE IF EXISTS ridestatus")
    op.execute("DROP TYPE IF EXISTS ridetype")
    op.execute("DROP TYPE IF EXISTS role")
