"""commitments, config and push subscriptions

Revision ID: 20261018_000001
Revises:
Create Date: 2026-10-18 00:00:01.000000

"""
from typing import Sequence, Union

from alembic import op  # type: ignore[attr-defined]
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '20261018_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'commitments',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('transcript_id', sa.Integer(), nullable=True),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('deadline', sa.DateTime(timezone=True), nullable=True),
        sa.Column('assignee', sa.String(255), nullable=True),
        sa.Column('task_type', sa.String(50), nullable=True),
        sa.Column('status', sa.String(50), nullable=False, server_default='pending'),
        sa.Column('created_date', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('completed_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completion_note', sa.Text(), nullable=True),
    )
    op.create_index(op.f('ix_commitments_id'), 'commitments', ['id'], unique=False)
    op.create_index(op.f('ix_commitments_transcript_id'), 'commitments', ['transcript_id'], unique=False)
    op.create_index(op.f('ix_commitments_deadline'), 'commitments', ['deadline'], unique=False)
    op.create_index(op.f('ix_commitments_status'), 'commitments', ['status'], unique=False)

    op.create_table(
        'config',
        sa.Column('key', sa.String(255), primary_key=True),
        sa.Column('value', sa.Text(), nullable=False),
        sa.Column('updated_date', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
    )

    op.create_table(
        'push_subscriptions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.String(255), nullable=False, server_default='default'),
        sa.Column('endpoint', sa.Text(), nullable=False, unique=True),
        sa.Column('keys', sa.Text(), nullable=False),
        sa.Column('created_date', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
    )
    op.create_index(op.f('ix_push_subscriptions_id'), 'push_subscriptions', ['id'], unique=False)
    op.create_index(op.f('ix_push_subscriptions_user_id'), 'push_subscriptions', ['user_id'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_push_subscriptions_user_id'), table_name='push_subscriptions')
    op.drop_index(op.f('ix_push_subscriptions_id'), table_name='push_subscriptions')
    op.drop_table('push_subscriptions')

    op.drop_table('config')

    op.drop_index(op.f('ix_commitments_status'), table_name='commitments')
    op.drop_index(op.f('ix_commitments_deadline'), table_name='commitments')
    op.drop_index(op.f('ix_commitments_transcript_id'), table_name='commitments')
    op.drop_index(op.f('ix_commitments_id'), table_name='commitments')
    op.drop_table('commitments')
