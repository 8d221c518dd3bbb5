"""promo_redemptions_and_system_settings

Revision ID: 9e4d27b1c8f3
Revises: 6b1f0c3a9d52
Create Date: 2026-10-19 09:41:07.552310

Production-safe migration: only creates tables that do not exist yet.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision: str = '9e4d27b1c8f3'
down_revision: Union[str, None] = '6b1f0c3a9d52'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

NOW = sa.text('(CURRENT_TIMESTAMP)')


def table_exists(table_name: str) -> bool:
    """Check if a table exists in the database."""
    bind = op.get_bind()
    inspector = inspect(bind)
    return table_name in inspector.get_table_names()


def upgrade() -> None:
    if not table_exists('promo_redemptions'):
        op.create_table('promo_redemptions',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.Integer(), nullable=False),
            sa.Column('promo_code_id', sa.Integer(), nullable=False),
            sa.Column('redeemed_at', sa.DateTime(timezone=True), server_default=NOW, nullable=False),
            sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
            sa.ForeignKeyConstraint(['promo_code_id'], ['promo_codes.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('user_id', 'promo_code_id', name='uq_promo_redemptions_user_code')
        )
        op.create_index(op.f('ix_promo_redemptions_id'), 'promo_redemptions', ['id'], unique=False)
        op.create_index(op.f('ix_promo_redemptions_user_id'), 'promo_redemptions', ['user_id'], unique=False)
        op.create_index(op.f('ix_promo_redemptions_promo_code_id'), 'promo_redemptions', ['promo_code_id'], unique=False)

        # Subscriptions already carrying a code count as one redemption
        op.execute(
            "INSERT INTO promo_redemptions (user_id, promo_code_id) "
            "SELECT user_id, promo_code_id FROM subscriptions WHERE promo_code_id IS NOT NULL"
        )

    if not table_exists('system_settings'):
        op.create_table('system_settings',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('key', sa.String(), nullable=False),
            sa.Column('value', sa.JSON(), nullable=True),
            sa.Column('updated_by', sa.Integer(), nullable=True),
            sa.Column('updated_at', sa.DateTime(timezone=True), server_default=NOW, nullable=False),
            sa.ForeignKeyConstraint(['updated_by'], ['users.id'], ondelete='SET NULL'),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_system_settings_id'), 'system_settings', ['id'], unique=False)
        op.create_index(op.f('ix_system_settings_key'), 'system_settings', ['key'], unique=True)


def downgrade() -> None:
    for table in ('system_settings', 'promo_redemptions'):
        if table_exists(table):
            op.drop_table(table)
