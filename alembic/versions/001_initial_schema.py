"""initial_schema

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19 00:00:00.000000

Creates the storefront tables: identity (users, profiles, user_roles,
login_attempts, two_factor_codes), catalog and ledger (products, orders,
order_items, transaction_audit) and fraud review (fraud_flags,
notification_outbox). Seeds the product catalog.
"""

import uuid
from decimal import Decimal
from typing import Sequence, Union

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

revision: str = "001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# Deterministic UUIDs derived from the product name keep the seed idempotent
_NS = uuid.NAMESPACE_DNS

_PRODUCTS = [
    ("Security Audit Template", "Comprehensive security audit checklist and documentation template", "49.99", "Templates", "photo-1563013544-824ae1b704d3"),
    ("Penetration Testing Guide", "Step-by-step guide for conducting professional penetration tests", "79.99", "Guides", "photo-1550751827-4bd374c3f58b"),
    ("Compliance Toolkit", "GDPR, HIPAA, and SOC2 compliance documentation bundle", "149.99", "Toolkits", "photo-1516321318423-f06f85e504b3"),
    ("Network Security Course", "Video course on advanced network security techniques", "199.99", "Courses", "photo-1558494949-ef010cbdcc31"),
    ("Incident Response Playbook", "Ready-to-use incident response procedures and templates", "89.99", "Templates", "photo-1504868584819-f8e8b4b6d7e3"),
    ("Security Awareness Training", "Employee security training materials and presentations", "129.99", "Courses", "photo-1552664730-d307ca884978"),
]

SEED_PRODUCTS = [
    {
        "id": str(uuid.uuid5(_NS, name)),
        "name": name,
        "description": description,
        "price": Decimal(price),
        "category": category,
        "image_url": f"https://images.unsplash.com/{image}?w=400",
        "is_active": True,
    }
    for name, description, price, category, image in _PRODUCTS
]


def _uuid_pk() -> sa.Column:
    return sa.Column("id", sa.UUID(as_uuid=False), primary_key=True)


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
    )


def _updated_at() -> sa.Column:
    return sa.Column(
        "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
    )


def _user_fk(name: str, nullable: bool = True, ondelete: str = "SET NULL") -> sa.Column:
    return sa.Column(
        name,
        sa.UUID(as_uuid=False),
        sa.ForeignKey("users.id", ondelete=ondelete),
        nullable=nullable,
    )


def upgrade() -> None:
    """Create all tables and seed the product catalog."""

    # -- identity --
    op.create_table(
        "users",
        _uuid_pk(),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        _created_at(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "profiles",
        _uuid_pk(),
        _user_fk("user_id", nullable=False, ondelete="CASCADE"),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("full_name", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(20), nullable=True),
        sa.Column("two_factor_enabled", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("account_locked", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("failed_login_attempts", sa.Integer, nullable=False, server_default="0"),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        _updated_at(),
        sa.UniqueConstraint("user_id", name="uq_profiles_user_id"),
    )

    op.create_table(
        "user_roles",
        _uuid_pk(),
        _user_fk("user_id", nullable=False, ondelete="CASCADE"),
        sa.Column("role", sa.String(30), nullable=False, server_default="customer"),
        _created_at(),
        _updated_at(),
        sa.UniqueConstraint("user_id", "role", name="uq_user_roles_user_role"),
    )
    op.create_index("ix_user_roles_user_id", "user_roles", ["user_id"])

    op.create_table(
        "login_attempts",
        _uuid_pk(),
        _user_fk("user_id"),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("ip_address", sa.String(64), nullable=True),
        sa.Column("user_agent", sa.Text, nullable=True),
        sa.Column("success", sa.Boolean, nullable=False),
        sa.Column("failure_reason", sa.Text, nullable=True),
        _created_at(),
    )

    op.create_table(
        "two_factor_codes",
        _uuid_pk(),
        sa.Column("user_id", sa.UUID(as_uuid=False), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("code", sa.String(6), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("used", sa.Boolean, nullable=False, server_default=sa.false()),
        _created_at(),
    )
    op.create_index("idx_two_factor_codes_user_email", "two_factor_codes", ["user_id", "email"])
    op.create_index("idx_two_factor_codes_expires", "two_factor_codes", ["expires_at"])

    # -- catalog and ledger --
    products = op.create_table(
        "products",
        _uuid_pk(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("image_url", sa.Text, nullable=True),
        sa.Column("category", sa.String(100), nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        _created_at(),
        _updated_at(),
    )

    op.create_table(
        "orders",
        _uuid_pk(),
        _user_fk("user_id", nullable=False, ondelete="CASCADE"),
        sa.Column("total_amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("payment_method", sa.String(20), nullable=False, server_default="demo"),
        _created_at(),
        _updated_at(),
    )
    op.create_index("ix_orders_user_id", "orders", ["user_id"])
    op.create_index("idx_order_user_created", "orders", ["user_id", "created_at"])

    op.create_table(
        "order_items",
        _uuid_pk(),
        sa.Column(
            "order_id",
            sa.UUID(as_uuid=False),
            sa.ForeignKey("orders.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "product_id",
            sa.UUID(as_uuid=False),
            sa.ForeignKey("products.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("quantity", sa.Integer, nullable=False, server_default="1"),
        sa.Column("price_at_purchase", sa.Numeric(10, 2), nullable=False),
        _created_at(),
    )
    op.create_index("ix_order_items_order_id", "order_items", ["order_id"])

    # -- fraud review --
    op.create_table(
        "fraud_flags",
        _uuid_pk(),
        _user_fk("user_id"),
        sa.Column(
            "order_id",
            sa.UUID(as_uuid=False),
            sa.ForeignKey("orders.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("flag_type", sa.String(30), nullable=False),
        sa.Column("severity", sa.String(10), nullable=False, server_default="medium"),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column(
            "metadata",
            postgresql.JSONB,
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column("resolved", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("resolved_at", sa.DateTime(timezone=True), nullable=True),
        _user_fk("resolved_by"),
        sa.Column("resolution_notes", sa.Text, nullable=True),
        sa.Column("resolution_type", sa.String(50), nullable=True),
        sa.Column("requires_approval", sa.Boolean, nullable=False, server_default=sa.false()),
        _user_fk("approved_by"),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("approval_status", sa.String(20), nullable=True),
        _created_at(),
        sa.CheckConstraint(
            "severity <> 'high' OR requires_approval", name="ck_fraud_flags_high_requires_approval"
        ),
    )
    op.create_index("idx_fraud_flags_user_id", "fraud_flags", ["user_id"])
    op.create_index("idx_fraud_flags_order_id", "fraud_flags", ["order_id"])
    op.create_index("idx_fraud_flags_resolved", "fraud_flags", ["resolved"])
    op.create_index("idx_fraud_flags_severity", "fraud_flags", ["severity"])

    op.create_table(
        "transaction_audit",
        _uuid_pk(),
        _user_fk("user_id"),
        sa.Column(
            "order_id",
            sa.UUID(as_uuid=False),
            sa.ForeignKey("orders.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("action_type", sa.String(20), nullable=False),
        sa.Column("entity_type", sa.String(50), nullable=False),
        sa.Column("entity_id", sa.UUID(as_uuid=False), nullable=True),
        sa.Column("old_value", postgresql.JSONB, nullable=True),
        sa.Column("new_value", postgresql.JSONB, nullable=True),
        _user_fk("performed_by"),
        _created_at(),
    )
    op.create_index("idx_transaction_audit_user_id", "transaction_audit", ["user_id"])
    op.create_index("idx_transaction_audit_order_id", "transaction_audit", ["order_id"])
    op.create_index("idx_transaction_audit_created_at", "transaction_audit", ["created_at"])

    op.create_table(
        "notification_outbox",
        _uuid_pk(),
        sa.Column(
            "flag_id",
            sa.UUID(as_uuid=False),
            sa.ForeignKey("fraud_flags.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("payload", postgresql.JSONB, nullable=False),
        sa.Column("attempts", sa.Integer, nullable=False, server_default="0"),
        sa.Column("last_error", sa.Text, nullable=True),
        sa.Column("delivered_at", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
    )
    op.create_index("idx_notification_outbox_pending", "notification_outbox", ["delivered_at"])

    op.bulk_insert(products, SEED_PRODUCTS)


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table("notification_outbox")
    op.drop_table("transaction_audit")
    op.drop_table("fraud_flags")
    op.drop_table("order_items")
    op.drop_table("orders")
    op.drop_table("products")
    op.drop_table("two_factor_codes")
    op.drop_table("login_attempts")
    op.drop_table("user_roles")
    op.drop_table("profiles")
    op.drop_table("users")
