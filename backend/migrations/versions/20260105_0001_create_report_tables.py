"""create report tables

Revision ID: 20260105_0001
Revises:
Create Date: 2026-01-05

"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


revision = "20260105_0001"
down_revision = None
branch_labels = None
depends_on = None


REPORT_TYPES = ("emergency", "non_emergency")
REPORT_STATUSES = ("pending", "in_progress", "resolved")
USER_ROLES = ("citizen", "admin")


def upgrade():
    bind = op.get_bind()
    insp = inspect(bind)
    tables = set(insp.get_table_names())

    if "users" not in tables:
        op.create_table(
            "users",
            sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column("name", sa.String(length=120), nullable=False),
            sa.Column("email", sa.String(length=255), nullable=False, unique=True),
            sa.Column("role", sa.Enum(*USER_ROLES, name="user_role_enum"), nullable=False, server_default="citizen"),
            sa.Column("created_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        )

    if "categories" not in tables:
        op.create_table(
            "categories",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("name", sa.String(length=120), nullable=False, unique=True),
            sa.Column("type", sa.Enum(*REPORT_TYPES, name="category_type_enum"), nullable=False),
        )
        op.create_index("ix_categories_type", "categories", ["type"], unique=False)

    if "subcategories" not in tables:
        op.create_table(
            "subcategories",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("name", sa.String(length=120), nullable=False),
            sa.Column("category_id", sa.Integer(), nullable=False),
            sa.ForeignKeyConstraint(["category_id"], ["categories.id"], ondelete="RESTRICT"),
            sa.UniqueConstraint("category_id", "name", name="uq_subcategories_category_name"),
        )
        op.create_index("ix_subcategories_category_id", "subcategories", ["category_id"], unique=False)

    if "officers" not in tables:
        op.create_table(
            "officers",
            sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column("name", sa.String(length=120), nullable=False),
            sa.Column("department", sa.String(length=120), nullable=False),
            sa.Column("contact", sa.String(length=255), nullable=True),
        )

    if "reports" not in tables:
        op.create_table(
            "reports",
            sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column("title", sa.String(length=200), nullable=False),
            sa.Column("description", sa.Text(), nullable=False),
            sa.Column("type", sa.Enum(*REPORT_TYPES, name="report_type_enum"), nullable=False),
            sa.Column(
                "status",
                sa.Enum(*REPORT_STATUSES, name="report_status_enum"),
                nullable=False,
                server_default="pending",
            ),
            sa.Column("category_id", sa.Integer(), nullable=False),
            sa.Column("subcategory_id", sa.Integer(), nullable=True),
            sa.Column("location_address", sa.Text(), nullable=True),
            sa.Column("location_lat", sa.Float(), nullable=True),
            sa.Column("location_lng", sa.Float(), nullable=True),
            sa.Column("assigned_officer_id", sa.Integer(), nullable=True),
            sa.Column("resolution_details", sa.Text(), nullable=True),
            sa.Column("reporter_id", sa.Integer(), nullable=False),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.Column("updated_at", sa.DateTime(), nullable=False),
            sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
            sa.ForeignKeyConstraint(["category_id"], ["categories.id"], ondelete="RESTRICT"),
            sa.ForeignKeyConstraint(["subcategory_id"], ["subcategories.id"], ondelete="RESTRICT"),
            sa.ForeignKeyConstraint(["assigned_officer_id"], ["officers.id"], ondelete="RESTRICT"),
            sa.ForeignKeyConstraint(["reporter_id"], ["users.id"], ondelete="RESTRICT"),
        )
        op.create_index("ix_reports_type", "reports", ["type"], unique=False)
        op.create_index("ix_reports_status", "reports", ["status"], unique=False)
        op.create_index("ix_reports_category_id", "reports", ["category_id"], unique=False)
        op.create_index("ix_reports_reporter_id", "reports", ["reporter_id"], unique=False)
        op.create_index("ix_reports_created_at", "reports", ["created_at"], unique=False)

    if "report_images" not in tables:
        op.create_table(
            "report_images",
            sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column("ref", sa.String(length=500), nullable=False),
            sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("report_id", sa.Integer(), nullable=False),
            sa.ForeignKeyConstraint(["report_id"], ["reports.id"], ondelete="CASCADE"),
        )
        op.create_index("ix_report_images_report_id", "report_images", ["report_id"], unique=False)

    if "report_events" not in tables:
        op.create_table(
            "report_events",
            sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column("report_id", sa.Integer(), nullable=False),
            sa.Column("reporter_id", sa.Integer(), nullable=False),
            sa.Column("kind", sa.String(length=20), nullable=False),
            sa.Column("change", sa.String(length=20), nullable=False),
            sa.Column("status", sa.String(length=20), nullable=False),
            sa.Column("version", sa.Integer(), nullable=False),
            sa.Column("created_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
            sa.ForeignKeyConstraint(["report_id"], ["reports.id"], ondelete="CASCADE"),
        )
        op.create_index("ix_report_events_report_id", "report_events", ["report_id"], unique=False)
        op.create_index("ix_report_events_reporter_id", "report_events", ["reporter_id"], unique=False)


def downgrade():
    bind = op.get_bind()
    insp = inspect(bind)
    tables = set(insp.get_table_names())

    for table in ("report_events", "report_images", "reports", "officers", "subcategories", "categories", "users"):
        if table in tables:
            op.drop_table(table)
