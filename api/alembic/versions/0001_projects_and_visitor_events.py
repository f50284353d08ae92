"""projects + visitor_events

Revision ID: 0001
Revises:
Create Date: 2026-10-18 12:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table('projects',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('domain', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )

    # Events are append-only and go away with their project
    op.create_table('visitor_events',
        sa.Column('id', sa.String(length=32), nullable=False),
        sa.Column('project_id', sa.String(length=64), nullable=False),
        sa.Column('visitor_id', sa.String(length=255), nullable=False),
        sa.Column('variation', sa.String(length=1), nullable=False),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
        sa.Column('user_agent', sa.Text(), nullable=True),
        sa.Column('referrer', sa.Text(), nullable=True),
        sa.CheckConstraint("variation IN ('A', 'B', 'C', 'D')", name='ck_visitor_events_variation'),
        sa.ForeignKeyConstraint(['project_id'], ['projects.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_visitor_events_project_id'), 'visitor_events', ['project_id'], unique=False)
    op.create_index('ix_visitor_events_project_variation', 'visitor_events', ['project_id', 'variation'], unique=False)


def downgrade() -> None:
    op.drop_index('ix_visitor_events_project_variation', table_name='visitor_events')
    op.drop_index(op.f('ix_visitor_events_project_id'), table_name='visitor_events')
    op.drop_table('visitor_events')
    op.drop_table('projects')
