"""Initial schema: schools, devices, device logs, repair tickets, users

Revision ID: 3a1c9e7b5d20
Revises:
Create Date: 2026-10-12 09:14:03.512806

"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "3a1c9e7b5d20"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    """Create every application table with its CHECK constraints."""
    op.create_table(
        "schools",
        sa.Column("id", sa.String(length=50), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("allow_new_devices", sa.Boolean(), nullable=False),
        sa.Column("logo_url", sa.Text(), nullable=True),
        sa.Column("address", sa.String(length=500), nullable=True),
        sa.Column("contact", sa.String(length=200), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "devices",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("asset_tag", sa.String(length=100), nullable=False),
        sa.Column("serial", sa.String(length=100), nullable=True),
        sa.Column("model", sa.String(length=50), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("school_id", sa.String(length=50), nullable=False),
        sa.Column("assigned_to_name", sa.String(length=200), nullable=True),
        sa.Column("assigned_at", sa.DateTime(), nullable=True),
        sa.Column("assigned_reason", sa.String(length=50), nullable=True),
        sa.Column("homeroom_teacher", sa.String(length=200), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint(
            "status IN ('available', 'checked_out')", name="CK_devices_status"
        ),
        sa.CheckConstraint(
            "model IN ('chromebook', 'laptop', 'av-cart', 'dvd-player', 'projector')",
            name="CK_devices_model",
        ),
        sa.CheckConstraint(
            "(status = 'available' AND assigned_to_name IS NULL "
            "AND assigned_at IS NULL AND assigned_reason IS NULL "
            "AND homeroom_teacher IS NULL) OR "
            "(status = 'checked_out' AND assigned_to_name IS NOT NULL "
            "AND assigned_at IS NOT NULL)",
            name="CK_devices_assignment",
        ),
        sa.ForeignKeyConstraint(["school_id"], ["schools.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("asset_tag"),
    )
    op.create_index("ix_devices_school_id", "devices", ["school_id"])

    # No foreign key on device_id: log rows outlive their device.
    op.create_table(
        "device_logs",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("device_id", sa.String(length=36), nullable=True),
        sa.Column("asset_tag", sa.String(length=100), nullable=False),
        sa.Column("action", sa.String(length=20), nullable=False),
        sa.Column("user_name", sa.String(length=200), nullable=False),
        sa.Column("reason", sa.String(length=50), nullable=True),
        sa.Column("homeroom_teacher", sa.String(length=200), nullable=True),
        sa.Column("timestamp", sa.DateTime(), nullable=False),
        sa.Column("school_id", sa.String(length=50), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint(
            "action IN ('checkin', 'checkout')", name="CK_device_logs_action"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("IX_device_logs_timestamp", "device_logs", ["timestamp"])
    op.create_index("ix_device_logs_device_id", "device_logs", ["device_id"])
    op.create_index("ix_device_logs_asset_tag", "device_logs", ["asset_tag"])
    op.create_index("ix_device_logs_school_id", "device_logs", ["school_id"])

    op.create_table(
        "repair_tickets",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("full_name", sa.String(length=200), nullable=False),
        sa.Column("device_type", sa.String(length=20), nullable=False),
        sa.Column("device_barcode", sa.String(length=100), nullable=False),
        sa.Column("issue_type", sa.String(length=50), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("school_id", sa.String(length=50), nullable=False),
        sa.Column("is_staff", sa.Boolean(), nullable=False),
        sa.Column("operations_hero_id", sa.String(length=100), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint(
            "status IN ('open', 'closed')", name="CK_repair_tickets_status"
        ),
        sa.CheckConstraint(
            "device_type IN ('chromebook', 'windows', 'mac', 'other')",
            name="CK_repair_tickets_device_type",
        ),
        sa.ForeignKeyConstraint(["school_id"], ["schools.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_repair_tickets_device_barcode", "repair_tickets", ["device_barcode"]
    )
    op.create_index("ix_repair_tickets_school_id", "repair_tickets", ["school_id"])
    op.create_index("ix_repair_tickets_created_at", "repair_tickets", ["created_at"])

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("username", sa.String(length=100), nullable=False),
        sa.Column("email", sa.String(length=200), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("is_admin", sa.Boolean(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("last_login", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
        sa.UniqueConstraint("username"),
    )

    op.create_table(
        "sessions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("token", sa.String(length=128), nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("token"),
    )
    op.create_index("ix_sessions_user_id", "sessions", ["user_id"])

    op.create_table(
        "audit_log",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("action_type", sa.String(length=50), nullable=False),
        sa.Column("entity_type", sa.String(length=100), nullable=False),
        sa.Column("entity_id", sa.String(length=100), nullable=True),
        sa.Column("previous_value", sa.Text(), nullable=True),
        sa.Column("new_value", sa.Text(), nullable=True),
        sa.Column("ip_address", sa.String(length=45), nullable=True),
        sa.Column("user_agent", sa.String(length=500), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_audit_log_user_id", "audit_log", ["user_id"])


def downgrade():
    """Drop every application table."""
    op.drop_index("ix_audit_log_user_id", table_name="audit_log")
    op.drop_table("audit_log")
    op.drop_index("ix_sessions_user_id", table_name="sessions")
    op.drop_table("sessions")
    op.drop_table("users")
    op.drop_index("ix_repair_tickets_created_at", table_name="repair_tickets")
    op.drop_index("ix_repair_tickets_school_id", table_name="repair_tickets")
    op.drop_index("ix_repair_tickets_device_barcode", table_name="repair_tickets")
    op.drop_table("repair_tickets")
    op.drop_index("ix_device_logs_school_id", table_name="device_logs")
    op.drop_index("ix_device_logs_asset_tag", table_name="device_logs")
    op.drop_index("ix_device_logs_device_id", table_name="device_logs")
    op.drop_index("IX_device_logs_timestamp", table_name="device_logs")
    op.drop_table("device_logs")
    op.drop_index("ix_devices_school_id", table_name="devices")
    op.drop_table("devices")
    op.drop_table("schools")
