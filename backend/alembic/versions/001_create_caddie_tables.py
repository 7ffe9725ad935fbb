"""Create CaddieAI tables

Revision ID: 001
Revises: None
Create Date: 2026-10-19 00:00:00.000000+00:00

What:  Course catalogue (courses, holes), golfer profiles (users), saved
       courses (user_courses), rounds and GPS fixes (locations).

Rollback: downgrade() drops every table (destructive).
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), nullable=False,
                  server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), nullable=False,
                  server_default=sa.text("CURRENT_TIMESTAMP")),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=False, server_default=sa.text("''")),
        sa.Column("last_name", sa.String(100), nullable=False, server_default=sa.text("''")),
        sa.Column("handicap", sa.Float(), nullable=True),
        sa.Column("skill_level", sa.String(50), nullable=True),
        sa.Column("playing_style", sa.String(50), nullable=True),
        sa.Column("preferences", sa.JSON(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )

    op.create_table(
        "courses",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("address", sa.String(255), nullable=True),
        sa.Column("city", sa.String(100), nullable=True),
        sa.Column("state", sa.String(100), nullable=True),
        sa.Column("country", sa.String(100), nullable=False),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("website", sa.String(255), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("total_holes", sa.Integer(), nullable=False, server_default=sa.text("18")),
        sa.Column("par_total", sa.Integer(), nullable=False, server_default=sa.text("72")),
        sa.Column("slope_rating", sa.Integer(), nullable=True),
        sa.Column("course_rating", sa.Float(), nullable=True),
        sa.Column("yardage_total", sa.Integer(), nullable=True),
        sa.Column("green_fee_range", sa.String(100), nullable=True),
        sa.Column("timezone", sa.String(64), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        sa.Column("boundary", sa.JSON(), nullable=True),
        sa.Column("amenities", sa.JSON(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_courses_name", "courses", ["name"])
    # Case-insensitive name uniqueness; the service checks first, this catches races
    op.create_index("uq_courses_name_lower", "courses", [sa.text("lower(name)")], unique=True)
    op.create_index("idx_courses_location", "courses", ["latitude", "longitude"])

    op.create_table(
        "holes",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("course_id", sa.Integer(), nullable=False),
        sa.Column("hole_number", sa.Integer(), nullable=False),
        sa.Column("par", sa.Integer(), nullable=False),
        sa.Column("yardage_men", sa.Integer(), nullable=True),
        sa.Column("yardage_women", sa.Integer(), nullable=True),
        sa.Column("stroke_index", sa.Integer(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("hazards", sa.JSON(), nullable=True),
        sa.Column("pin_latitude", sa.Float(), nullable=True),
        sa.Column("pin_longitude", sa.Float(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["course_id"], ["courses.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("course_id", "hole_number", name="uq_holes_course_number"),
    )

    op.create_table(
        "user_courses",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("course_name", sa.String(200), nullable=False),
        sa.Column("address", sa.String(255), nullable=True),
        sa.Column("city", sa.String(100), nullable=True),
        sa.Column("state", sa.String(100), nullable=True),
        sa.Column("country", sa.String(100), nullable=True),
        sa.Column("latitude", sa.Float(), nullable=False),
        sa.Column("longitude", sa.Float(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("user_id", "course_name", name="uq_user_courses_user_name"),
    )
    op.create_index("idx_user_courses_user", "user_courses", ["user_id"])

    op.create_table(
        "rounds",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("course_id", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(50), nullable=False, server_default=sa.text("'not_started'")),
        sa.Column("current_hole", sa.Integer(), nullable=True),
        sa.Column("start_time", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("end_time", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("total_score", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["course_id"], ["courses.id"], ondelete="CASCADE"),
    )
    op.create_index("idx_rounds_user", "rounds", ["user_id"])

    op.create_table(
        "locations",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("round_id", sa.Integer(), nullable=True),
        sa.Column("latitude", sa.Float(), nullable=False),
        sa.Column("longitude", sa.Float(), nullable=False),
        sa.Column("accuracy_meters", sa.Float(), nullable=True),
        sa.Column("distance_to_pin_meters", sa.Float(), nullable=True),
        sa.Column("position_on_hole", sa.String(50), nullable=True),
        sa.Column("recorded_at", sa.TIMESTAMP(timezone=True), nullable=False,
                  server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["round_id"], ["rounds.id"], ondelete="CASCADE"),
    )
    op.create_index("idx_locations_round_time", "locations", ["round_id", "recorded_at"])


def downgrade() -> None:
    op.drop_index("idx_locations_round_time", table_name="locations")
    op.drop_table("locations")
    op.drop_index("idx_rounds_user", table_name="rounds")
    op.drop_table("rounds")
    op.drop_index("idx_user_courses_user", table_name="user_courses")
    op.drop_table("user_courses")
    op.drop_table("holes")
    op.drop_index("idx_courses_location", table_name="courses")
    op.drop_index("uq_courses_name_lower", table_name="courses")
    op.drop_index("idx_courses_name", table_name="courses")
    op.drop_table("courses")
    op.drop_table("users")
