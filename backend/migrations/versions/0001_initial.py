"""Initial schema – users, oauth, otp_email and reset_pwd

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-18

Creates the user table and its three one-to-one credential tables.  Every
child row is keyed by a unique user_id with ON DELETE CASCADE, so deleting
a user removes its TOTP enrollment and any outstanding email codes.
"""

from alembic import op
import sqlalchemy as sa

# Alembic revision identifiers
revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None

_ACCOUNT_TYPES = ("User", "Seller", "Admin")
_REGION_TYPES = (
    "Northern America", "Central America", "Caribbean",
    "Northern South America", "Southern South America",
    "Western South America", "Eastern South America",
    "Scandinavia", "Southern Europe", "Western Europe", "Eastern Europe",
    "Central Europe",
    "Middle East", "Central Asia", "Eastern Asia", "Southern Asia",
    "Southeastern Asia", "Siberia",
    "Northern Africa", "Western Africa", "Central Africa", "Horn of Africa",
    "Southern Africa",
    "Australia and New Zealand", "Melanesia", "Micronesia", "Polynesia",
)


def _user_fk():
    return sa.Column(
        "user_id",
        sa.Uuid(),
        sa.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )


def _one_time_code_table(name: str) -> None:
    op.create_table(
        name,
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        _user_fk(),
        sa.Column("code_hash", sa.String(256), nullable=False),
        sa.Column("expiry", sa.DateTime(timezone=True), nullable=False),
    )


def upgrade() -> None:
    # -- users ----------------------------------------------------------
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("first_name", sa.String(64), nullable=False),
        sa.Column("last_name", sa.String(64), nullable=False),
        sa.Column("username", sa.String(64), nullable=False, unique=True),
        sa.Column("email", sa.String(128), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(256), nullable=False),
        sa.Column("is_verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_disabled", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "account",
            sa.Enum(*_ACCOUNT_TYPES, name="account_type"),
            nullable=False,
            server_default="User",
        ),
        sa.Column(
            "region",
            sa.Enum(*_REGION_TYPES, name="region_type", length=32),
            nullable=False,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_users_username", "users", ["username"])
    op.create_index("ix_users_email", "users", ["email"])

    # -- oauth (TOTP enrollment) ----------------------------------------
    op.create_table(
        "oauth",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        _user_fk(),
        sa.Column("enabled", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("secret", sa.String(512), nullable=False),
    )

    # -- emailed one-time codes -----------------------------------------
    _one_time_code_table("otp_email")
    _one_time_code_table("reset_pwd")


def downgrade() -> None:
    op.drop_table("reset_pwd")
    op.drop_table("otp_email")
    op.drop_table("oauth")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_index("ix_users_username", table_name="users")
    op.drop_table("users")
    sa.Enum(name="region_type").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="account_type").drop(op.get_bind(), checkfirst=True)
