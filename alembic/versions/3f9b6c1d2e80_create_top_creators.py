"""Create top_creators leaderboard table

Revision ID: 3f9b6c1d2e80
Revises:
Create Date: 2026-03-02 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f9b6c1d2e80'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    # users / categories / creators / reviews / contracts are owned upstream
    op.create_table('top_creators',
        sa.Column('top_creator_id', sa.Text(), nullable=False),
        sa.Column('category_id', sa.Text(), nullable=False),
        sa.Column('creator_id', sa.Text(), nullable=False),
        sa.Column('rank_position', sa.Integer(), nullable=False),
        sa.Column('score', sa.Numeric(10, 4), nullable=False),
        sa.Column('follower_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('avg_review_score', sa.Numeric(3, 2), nullable=False, server_default='0'),
        sa.Column('collab_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_updated', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['category_id'], ['categories.category_id']),
        sa.ForeignKeyConstraint(['creator_id'], ['creators.creator_id']),
        sa.PrimaryKeyConstraint('top_creator_id'),
        sa.UniqueConstraint('category_id', 'creator_id', name='unique_category_creator'),
        sa.CheckConstraint('rank_position >= 1', name='ck_top_creator_rank_position'),
        sa.CheckConstraint('score >= 0 AND score <= 1', name='ck_top_creator_score'),
        sa.CheckConstraint('follower_count >= 0', name='ck_top_creator_follower_count'),
        sa.CheckConstraint('avg_review_score >= 0 AND avg_review_score <= 5',
                           name='ck_top_creator_avg_review'),
        sa.CheckConstraint('collab_count >= 0', name='ck_top_creator_collab_count'),
    )
    op.create_index('idx_category_rank', 'top_creators', ['category_id', 'rank_position'])
    op.create_index('idx_last_updated', 'top_creators', ['last_updated'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('idx_last_updated', 'top_creators')
    op.drop_index('idx_category_rank', 'top_creators')
    op.drop_table('top_creators')
