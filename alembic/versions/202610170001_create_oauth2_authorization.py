"""create oauth2_authorization

Revision ID: 202610170001
Revises:
Create Date: 2026-10-17 00:00:01
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "202610170001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _token_columns(prefix: str) -> list:
    return [
        sa.Column(f"{prefix}_value", sa.LargeBinary(), nullable=True),
        sa.Column(f"{prefix}_issued_at", sa.DateTime(), nullable=True),
        sa.Column(f"{prefix}_expires_at", sa.DateTime(), nullable=True),
        sa.Column(f"{prefix}_metadata", sa.Text(), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        "oauth2_authorization",
        sa.Column("id", sa.String(length=100), nullable=False),
        sa.Column("registered_client_id", sa.String(length=100), nullable=False),
        sa.Column("principal_name", sa.String(length=200), nullable=False),
        sa.Column("authorization_grant_type", sa.String(length=100), nullable=False),
        sa.Column("attributes", sa.Text(), nullable=True),
        sa.Column("state", sa.String(length=500), nullable=True),
        *_token_columns("authorization_code"),
        *_token_columns("access_token"),
        sa.Column("access_token_type", sa.String(length=100), nullable=True),
        sa.Column("access_token_scopes", sa.String(length=1000), nullable=True),
        *_token_columns("oidc_id_token"),
        *_token_columns("refresh_token"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_oauth2_authorization_state", "oauth2_authorization", ["state"])


def downgrade() -> None:
    op.drop_index("idx_oauth2_authorization_state", table_name="oauth2_authorization")
    op.drop_table("oauth2_authorization")
