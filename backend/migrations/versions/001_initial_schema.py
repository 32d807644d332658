"""Initial schema: regions, districts, geo_source_refs, categories, jobs, import_logs.

Revision ID: 001
Revises:
Create Date: 2026-10-19
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    # Canonical geography
    op.create_table(
        "regions",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("name_uz", sa.String(255), nullable=False),
        sa.Column("name_ru", sa.String(255)),
        sa.Column("slug", sa.String(100), unique=True),
    )
    op.create_table(
        "districts",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("name_uz", sa.String(255), nullable=False),
        sa.Column("name_ru", sa.String(255)),
        sa.Column("region_id", sa.Integer, sa.ForeignKey("regions.id"), index=True),
    )
    op.create_table(
        "geo_source_refs",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("source", sa.String(50), nullable=False),
        sa.Column("kind", sa.String(10), nullable=False),
        sa.Column("external_id", sa.String(50), nullable=False),
        sa.Column("canonical_id", sa.Integer, nullable=False),
        sa.Column("external_name", sa.String(255)),
        *_timestamps(),
        sa.UniqueConstraint("source", "kind", "external_id", name="uq_geo_source_ref"),
    )

    # Categories
    op.create_table(
        "categories",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("key", sa.String(30), unique=True, nullable=False),
        sa.Column("name_uz", sa.String(255), nullable=False),
        sa.Column("name_ru", sa.String(255)),
        sa.Column("icon", sa.String(50)),
        sa.Column("sort_order", sa.Integer, nullable=False, server_default=sa.text("0")),
    )

    # Jobs
    op.create_table(
        "jobs",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("source", sa.String(50), nullable=False, index=True),
        sa.Column("source_id", sa.String(100)),
        sa.Column("source_url", sa.Text),
        sa.Column("is_imported", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("title_uz", sa.Text, nullable=False),
        sa.Column("title_ru", sa.Text),
        sa.Column("description_uz", sa.Text),
        sa.Column("description_ru", sa.Text),
        sa.Column("requirements_uz", sa.Text),
        sa.Column("requirements_ru", sa.Text),
        sa.Column("company_name", sa.String(255)),
        sa.Column("salary_min", sa.Integer),
        sa.Column("salary_max", sa.Integer),
        sa.Column("payment_type", sa.Integer),
        sa.Column("employment_type", sa.String(20), server_default="full_time"),
        sa.Column("work_mode", sa.String(20)),
        sa.Column("experience", sa.String(20), server_default="no_experience"),
        sa.Column("experience_years", sa.Integer),
        sa.Column("education_level", sa.String(20), server_default="any"),
        sa.Column("gender", sa.String(10)),
        sa.Column("age_min", sa.Integer),
        sa.Column("age_max", sa.Integer),
        sa.Column("working_hours", sa.String(50)),
        sa.Column("working_days", sa.String(50)),
        sa.Column("skills", postgresql.JSONB, server_default=sa.text("'[]'::jsonb")),
        sa.Column("benefits", sa.Text),
        sa.Column("vacancy_count", sa.Integer, server_default=sa.text("1")),
        sa.Column("views_count", sa.Integer, server_default=sa.text("0")),
        sa.Column("contact_phone", sa.String(20)),
        sa.Column("contact_telegram", sa.String(100)),
        sa.Column("contact_email", sa.String(255)),
        sa.Column("additional_phone", sa.String(20)),
        sa.Column("hr_name", sa.String(255)),
        sa.Column("has_contact", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("region_id", sa.Integer, sa.ForeignKey("regions.id"), index=True),
        sa.Column("district_id", sa.Integer, sa.ForeignKey("districts.id"), index=True),
        sa.Column("region_name", sa.String(255)),
        sa.Column("district_name", sa.String(255)),
        sa.Column("address", sa.Text),
        sa.Column("latitude", sa.Float),
        sa.Column("longitude", sa.Float),
        sa.Column("category_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("categories.id"), index=True),
        sa.Column("source_category", sa.Text),
        sa.Column("source_subcategory", sa.Text),
        sa.Column("is_for_students", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("is_for_disabled", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("is_for_women", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("is_for_graduates", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.text("true"), index=True),
        sa.Column("source_status", sa.String(20), server_default="active", index=True),
        sa.Column("last_seen_at", sa.DateTime(timezone=True)),
        sa.Column("last_checked_at", sa.DateTime(timezone=True)),
        sa.Column("last_synced_at", sa.DateTime(timezone=True)),
        sa.Column("source_created_at", sa.DateTime(timezone=True)),
        sa.Column("source_updated_at", sa.DateTime(timezone=True)),
        sa.Column("raw_source_json", postgresql.JSONB),
        *_timestamps(),
        sa.UniqueConstraint("source", "source_id", name="uq_jobs_source_source_id"),
    )
    op.create_index("idx_job_source_status", "jobs", ["source", "source_status"])
    op.create_index("idx_job_region_district", "jobs", ["region_id", "district_id"])
    op.create_index("idx_job_active_category", "jobs", ["is_active", "category_id"])

    # Import / sync audit log
    op.create_table(
        "import_logs",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("source", sa.String(50), nullable=False, index=True),
        sa.Column("triggered_by", sa.String(20), nullable=False, server_default="api"),
        sa.Column("operation_type", sa.String(10), nullable=False),
        sa.Column("status", sa.String(30), nullable=False, server_default="running"),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False, index=True),
        sa.Column("completed_at", sa.DateTime(timezone=True)),
        *[
            sa.Column(name, sa.Integer, nullable=False, server_default=sa.text("0"))
            for name in (
                "total_found", "new_imported", "updated", "duplicates", "validation_errors", "errors",
                "total_checked", "still_active", "removed_at_source", "marked_filled", "reactivated", "unchanged",
            )
        ],
        sa.Column("error_details", postgresql.JSONB),
        sa.Column("notes", sa.Text),
    )


def downgrade() -> None:
    op.drop_table("import_logs")
    op.drop_index("idx_job_active_category", table_name="jobs")
    op.drop_index("idx_job_region_district", table_name="jobs")
    op.drop_index("idx_job_source_status", table_name="jobs")
    op.drop_table("jobs")
    op.drop_table("categories")
    op.drop_table("geo_source_refs")
    op.drop_table("districts")
    op.drop_table("regions")
