"""initial schema: tenants, users, inventory, leads, keys, webhooks

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-19
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects.postgresql import ARRAY, UUID

# revision identifiers, used by Alembic.
revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id() -> sa.Column:
    return sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()"))


def _tenant_fk() -> sa.Column:
    return sa.Column("tenant_id", UUID(as_uuid=True), sa.ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False)


def _created_at() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"))


def upgrade() -> None:
    # --- tenants ---
    op.create_table(
        "tenants",
        _id(),
        sa.Column("subdomain", sa.Text(), nullable=False, unique=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("logo_url", sa.Text(), nullable=True),
        sa.Column("contact_email", sa.Text(), nullable=True),
        sa.Column("phone", sa.Text(), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("city", sa.Text(), nullable=True),
        sa.Column("state", sa.Text(), nullable=True),
        sa.Column("zip_code", sa.Text(), nullable=True),
        sa.Column("country", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true")),
        _created_at(),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()")),
    )

    # --- users ---
    op.create_table(
        "users",
        _id(),
        sa.Column("email", sa.Text(), nullable=False, unique=True),
        sa.Column("name", sa.Text(), nullable=True),
        sa.Column("password_hash", sa.Text(), nullable=True),
        sa.Column("email_verified", sa.Boolean(), server_default=sa.text("false")),
        sa.Column("role", sa.Text(), nullable=False, server_default="user"),
        _created_at(),
        sa.Column("last_signed_in", sa.DateTime(timezone=True), nullable=True),
    )

    # --- profiles ---
    op.create_table(
        "profiles",
        _id(),
        sa.Column("user_id", UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        _tenant_fk(),
        sa.Column("role", sa.Text(), nullable=False, server_default="viewer"),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true")),
        _created_at(),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()")),
        sa.UniqueConstraint("user_id", "tenant_id", name="uq_profiles_user_tenant"),
    )
    op.create_index("ix_profiles_tenant_id", "profiles", ["tenant_id"])

    # --- vehicles ---
    op.create_table(
        "vehicles",
        _id(),
        _tenant_fk(),
        sa.Column("make", sa.Text(), nullable=False),
        sa.Column("model", sa.Text(), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("price", sa.Float(), nullable=False),
        sa.Column("color", sa.Text(), nullable=True),
        sa.Column("mileage", sa.Integer(), nullable=True),
        sa.Column("fuel_type", sa.Text(), nullable=True),
        sa.Column("transmission", sa.Text(), nullable=True),
        sa.Column("body_type", sa.Text(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_available", sa.Boolean(), server_default=sa.text("true")),
        sa.Column("is_featured", sa.Boolean(), server_default=sa.text("false")),
        _created_at(),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()")),
    )
    op.create_index("ix_vehicles_tenant_id", "vehicles", ["tenant_id"])

    # --- images ---
    op.create_table(
        "images",
        _id(),
        _tenant_fk(),
        sa.Column("vehicle_id", UUID(as_uuid=True), sa.ForeignKey("vehicles.id", ondelete="CASCADE"), nullable=False),
        sa.Column("url", sa.Text(), nullable=False),
        sa.Column("file_key", sa.Text(), nullable=False),
        sa.Column("filename", sa.Text(), nullable=False),
        sa.Column("mime_type", sa.Text(), nullable=False, server_default="image/jpeg"),
        sa.Column("file_size", sa.Integer(), nullable=False),
        sa.Column("is_cover", sa.Boolean(), server_default=sa.text("false")),
        sa.Column("display_order", sa.Integer(), server_default="0"),
        _created_at(),
    )
    op.create_index("ix_images_vehicle_id", "images", ["vehicle_id"])

    # --- api_keys ---
    op.create_table(
        "api_keys",
        _id(),
        _tenant_fk(),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("key", sa.Text(), nullable=False, unique=True),
        sa.Column("key_prefix", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("role", sa.Text(), nullable=False, server_default="manager"),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true")),
        sa.Column("last_used_at", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
    )
    op.create_index("ix_api_keys_tenant_id", "api_keys", ["tenant_id"])

    # --- whatsapp_leads ---
    op.create_table(
        "whatsapp_leads",
        _id(),
        _tenant_fk(),
        sa.Column("vehicle_id", UUID(as_uuid=True), sa.ForeignKey("vehicles.id", ondelete="CASCADE"), nullable=False),
        sa.Column("visitor_id", sa.Text(), nullable=True),
        sa.Column("user_agent", sa.Text(), nullable=True),
        sa.Column("was_completed", sa.Boolean(), server_default=sa.text("true")),
        _created_at(),
    )
    op.create_index("ix_whatsapp_leads_tenant_id", "whatsapp_leads", ["tenant_id"])
    op.create_index("ix_whatsapp_leads_created_at", "whatsapp_leads", ["created_at"])

    # --- webhooks ---
    op.create_table(
        "webhooks",
        _id(),
        _tenant_fk(),
        sa.Column("url", sa.Text(), nullable=False),
        sa.Column("events", ARRAY(sa.String()), nullable=False),
        sa.Column("secret", sa.Text(), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true")),
        sa.Column("last_delivery_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_status_code", sa.Integer(), nullable=True),
        _created_at(),
    )
    op.create_index("ix_webhooks_tenant_id", "webhooks", ["tenant_id"])

    # --- auth_tokens ---
    op.create_table(
        "auth_tokens",
        _id(),
        sa.Column("token", sa.Text(), nullable=False, unique=True),
        sa.Column("type", sa.Text(), nullable=False),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        _created_at(),
    )


def downgrade() -> None:
    op.drop_table("auth_tokens")
    op.drop_table("webhooks")
    op.drop_table("whatsapp_leads")
    op.drop_table("api_keys")
    op.drop_table("images")
    op.drop_table("vehicles")
    op.drop_table("profiles")
    op.drop_table("users")
    op.drop_table("tenants")
