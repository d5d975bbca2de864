"""create promotions table

Revision ID: a7c1e2d3f456
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = 'a7c1e2d3f456'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'promotions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('code', sa.String(100), nullable=False, comment='プロモーションコード'),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('valid_from', sa.DateTime(), nullable=True, comment='適用開始日時 (UTC)'),
        sa.Column('valid_until', sa.DateTime(), nullable=True, comment='適用終了日時 (UTC)'),
        sa.Column('min_order', sa.Numeric(10, 2), nullable=False, comment='最低注文金額'),
        sa.Column('discount_percent', sa.Numeric(5, 2), nullable=False, comment='割引率 (%)'),
        sa.Column('usage_limit', sa.Integer(), nullable=True, comment='最大使用回数 (null=無制限)'),
        sa.Column('used_count', sa.Integer(), nullable=False, comment='使用済み回数'),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('code'),
    )


def downgrade() -> None:
    op.drop_table('promotions')
