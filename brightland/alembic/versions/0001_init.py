"""init schema

Revision ID: 0001_init
Revises:
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa


revision = "0001_init"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "audit_events",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("actor_email", sa.String(length=200), nullable=True),
        sa.Column("action", sa.String(length=80), nullable=False),
        sa.Column("entity_type", sa.String(length=80), nullable=False),
        sa.Column("entity_id", sa.String(length=80), nullable=False),
        sa.Column("before_json", sa.Text(), nullable=True),
        sa.Column("after_json", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_audit_events_action", "audit_events", ["action"])

    op.create_table(
        "property_owners",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=160), nullable=False),
        sa.Column("email", sa.String(length=200), nullable=False),
        sa.Column("phone", sa.String(length=40), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_property_owners_email", "property_owners", ["email"], unique=True)

    op.create_table(
        "owned_properties",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("owner_id", sa.Integer(), sa.ForeignKey("property_owners.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("street", sa.String(length=255), nullable=True),
        sa.Column("city", sa.String(length=120), nullable=True),
        sa.Column("state", sa.String(length=2), nullable=True),
        sa.Column("zip", sa.String(length=10), nullable=True),
        sa.Column("monthly_rent", sa.Float(), nullable=True),
        sa.Column("status", sa.String(length=30), nullable=False, server_default="available"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("owner_id", "name", name="uq_owned_properties_owner_name"),
    )
    op.create_index("ix_owned_properties_owner_id", "owned_properties", ["owner_id"])
    op.create_index("ix_owned_properties_name", "owned_properties", ["name"])

    op.create_table(
        "maintenance_requests",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("full_name", sa.String(length=160), nullable=False),
        sa.Column("email", sa.String(length=200), nullable=False),
        sa.Column("phone", sa.String(length=40), nullable=False),
        sa.Column("address", sa.String(length=255), nullable=False),
        sa.Column("property_name", sa.String(length=200), nullable=True),
        sa.Column("project_description", sa.String(length=255), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("user_type", sa.String(length=20), nullable=False, server_default="tenant"),
        sa.Column("submitted_by", sa.String(length=10), nullable=False, server_default="user"),
        sa.Column("requires_approval", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("approval_status", sa.String(length=20), nullable=True),
        sa.Column("approved_by", sa.String(length=200), nullable=True),
        sa.Column("approval_date", sa.DateTime(), nullable=True),
        sa.Column("admin_notes", sa.Text(), nullable=False, server_default=""),
        sa.Column("problem_image_url", sa.String(length=500), nullable=True),
        sa.Column("finished_image_url", sa.String(length=500), nullable=True),
        sa.Column("is_deleted", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("deleted_at", sa.DateTime(), nullable=True),
        sa.Column("deleted_by", sa.String(length=200), nullable=True),
        sa.Column("proposed_budget", sa.Float(), nullable=True),
        sa.Column("actual_cost", sa.Float(), nullable=True),
        sa.Column("amount_to_bill", sa.Float(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_maintenance_requests_email", "maintenance_requests", ["email"])
    op.create_index("ix_maintenance_requests_property_name", "maintenance_requests", ["property_name"])
    op.create_index("ix_maintenance_requests_status", "maintenance_requests", ["status"])
    op.create_index("ix_maintenance_requests_deleted", "maintenance_requests", ["is_deleted", "deleted_at"])

    op.create_table(
        "conversation_messages",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "request_id",
            sa.Integer(),
            sa.ForeignKey("maintenance_requests.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("sender", sa.String(length=10), nullable=False),
        sa.Column("sender_name", sa.String(length=160), nullable=False),
        sa.Column("sender_email", sa.String(length=200), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("is_internal", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_conversation_messages_request_id", "conversation_messages", ["request_id"])

    op.create_table(
        "payment_requests",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "manager_request_id",
            sa.Integer(),
            sa.ForeignKey("maintenance_requests.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("property_name", sa.String(length=200), nullable=False),
        sa.Column("property_owner_email", sa.String(length=200), nullable=False),
        sa.Column("property_owner_name", sa.String(length=160), nullable=True),
        sa.Column("description", sa.String(length=255), nullable=False),
        sa.Column("amount", sa.Float(), nullable=False),
        sa.Column("actual_cost", sa.Float(), nullable=True),
        sa.Column("proposed_budget", sa.Float(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("due_date", sa.DateTime(), nullable=True),
        sa.Column("paid_date", sa.DateTime(), nullable=True),
        sa.Column("paid_amount", sa.Float(), nullable=True),
        sa.Column("payment_method", sa.String(length=40), nullable=True),
        sa.Column("payment_notes", sa.Text(), nullable=True),
        sa.Column("created_by", sa.String(length=200), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("manager_request_id", name="uq_payment_requests_manager_request"),
    )
    op.create_index("ix_payment_requests_status", "payment_requests", ["status"])
    op.create_index("ix_payment_requests_owner_status", "payment_requests", ["property_owner_email", "status"])

    op.create_table(
        "rental_applications",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("listing_name", sa.String(length=200), nullable=False),
        sa.Column(
            "property_id",
            sa.Integer(),
            sa.ForeignKey("owned_properties.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("user_email", sa.String(length=200), nullable=False),
        sa.Column("user_name", sa.String(length=160), nullable=False),
        sa.Column("user_phone", sa.String(length=40), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("admin_notes", sa.Text(), nullable=False, server_default=""),
        sa.Column("monthly_rent", sa.Float(), nullable=True),
        sa.Column("lease_start_date", sa.Date(), nullable=True),
        sa.Column("lease_end_date", sa.Date(), nullable=True),
        sa.Column("first_payment_amount", sa.Float(), nullable=True),
        sa.Column("first_payment_due", sa.Date(), nullable=True),
        sa.Column("is_prorated", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("gateway_customer_ref", sa.String(length=120), nullable=True),
        sa.Column("ach_source_ref", sa.String(length=120), nullable=True),
        sa.Column("card_source_ref", sa.String(length=120), nullable=True),
        sa.Column("has_checking_account", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("has_credit_card", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("security_deposit_paid", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("security_deposit_amount", sa.Float(), nullable=True),
        sa.Column("security_deposit_date", sa.DateTime(), nullable=True),
        sa.Column("security_deposit_ref", sa.String(length=120), nullable=True),
        sa.Column("auto_pay_enabled", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("subscription_ref", sa.String(length=120), nullable=True),
        sa.Column("next_payment_date", sa.Date(), nullable=True),
        sa.Column("last_payment_date", sa.Date(), nullable=True),
        sa.Column("rent_payment_status", sa.String(length=20), nullable=False, server_default="current"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_rental_applications_user_email", "rental_applications", ["user_email"])
    op.create_index("ix_rental_applications_status", "rental_applications", ["status"])

    op.create_table(
        "payments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "rental_application_id",
            sa.Integer(),
            sa.ForeignKey("rental_applications.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("user_email", sa.String(length=200), nullable=False),
        sa.Column("property_name", sa.String(length=200), nullable=False),
        sa.Column("payment_type", sa.String(length=30), nullable=False),
        sa.Column("amount", sa.Float(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("payment_method", sa.String(length=10), nullable=False),
        sa.Column("gateway_ref", sa.String(length=120), nullable=True),
        sa.Column("due_date", sa.Date(), nullable=False),
        sa.Column("paid_date", sa.Date(), nullable=True),
        sa.Column("description", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_payments_rental_application_id", "payments", ["rental_application_id"])
    op.create_index("ix_payments_user_status", "payments", ["user_email", "status"])


def downgrade():
    op.drop_table("payments")
    op.drop_table("rental_applications")
    op.drop_table("payment_requests")
    op.drop_table("conversation_messages")
    op.drop_table("maintenance_requests")
    op.drop_table("owned_properties")
    op.drop_table("property_owners")
    op.drop_table("audit_events")
