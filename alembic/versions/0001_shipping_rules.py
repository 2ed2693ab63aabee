"""add shipping rules, system settings and shipping quotes

Revision ID: 0001
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

UTC_NOW = sa.text("timezone('utc', now())")


def upgrade() -> None:
    op.create_table(
        'shipping_rules',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('rule_type', sa.String(length=32), nullable=False),
        sa.Column('condition_type', sa.String(length=32), nullable=False),
        sa.Column('condition_value', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('discount_type', sa.String(length=16), nullable=True),
        sa.Column('discount_value', sa.Float(), nullable=True),
        sa.Column('shipping_methods', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('production_days', sa.Integer(), nullable=True),
        sa.Column('priority', sa.Integer(), server_default='0', nullable=False),
        sa.Column('active', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=False), server_default=UTC_NOW, nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=False), server_default=UTC_NOW, nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_shipping_rules_id'), 'shipping_rules', ['id'], unique=False)
    op.create_index('ix_shipping_rules_active_priority', 'shipping_rules', ['active', 'priority'], unique=False)

    op.create_table(
        'system_settings',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('key', sa.String(length=128), nullable=False),
        sa.Column('value', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_system_settings_key'), 'system_settings', ['key'], unique=True)

    op.create_table(
        'shipping_quotes',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('environment', sa.String(length=16), server_default='production', nullable=False),
        sa.Column('destination_postal_code', sa.String(length=8), nullable=False),
        sa.Column('destination_state', sa.String(length=2), nullable=True),
        sa.Column('order_value', sa.Float(), nullable=False),
        sa.Column('products_snapshot', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column('options', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('applied_rules', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('free_shipping_applied', sa.Boolean(), nullable=False),
        sa.Column('free_shipping_rule_id', sa.Integer(), nullable=True),
        sa.Column('production_days_added', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=False), server_default=UTC_NOW, nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=False), server_default=UTC_NOW, nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_shipping_quotes_id'), 'shipping_quotes', ['id'], unique=False)
    op.create_index(
        op.f('ix_shipping_quotes_destination_postal_code'), 'shipping_quotes', ['destination_postal_code'], unique=False
    )


def downgrade() -> None:
    op.drop_index(op.f('ix_shipping_quotes_destination_postal_code'), table_name='shipping_quotes')
    op.drop_index(op.f('ix_shipping_quotes_id'), table_name='shipping_quotes')
    op.drop_table('shipping_quotes')
    op.drop_index(op.f('ix_system_settings_key'), table_name='system_settings')
    op.drop_table('system_settings')
    op.drop_index('ix_shipping_rules_active_priority', table_name='shipping_rules')
    op.drop_index(op.f('ix_shipping_rules_id'), table_name='shipping_rules')
    op.drop_table('shipping_rules')
