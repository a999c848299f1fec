"""create issues, follow_ups and issue_counters

Creates the issue aggregate tables (issues with their follow_ups) and the
single-row counter used to hand out sequential issue numbers.

Revision ID: create_issue_tables
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'create_issue_tables'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

issue_status = sa.Enum('pending', 'resolved', 'rejected', name='issuestatus')
follow_up_status = sa.Enum('normal', 'rejected', 'resolved', name='followupstatus')


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'issues',
        sa.Column('id', sa.String(length=32), primary_key=True),
        sa.Column('issue_number', sa.String(length=32), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=True),
        sa.Column('description', sa.String(length=4000), nullable=True),
        sa.Column('area', sa.String(length=40), nullable=False),
        sa.Column('location', sa.String(length=300), nullable=True),
        sa.Column('creator', sa.String(length=120), nullable=True),
        sa.Column('phone', sa.String(length=30), nullable=True),
        sa.Column('images', sa.JSON(), nullable=False),
        sa.Column('deadline', sa.DateTime(timezone=True), nullable=True),
        sa.Column('status', issue_status, nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False),
    )
    op.create_index('ix_issues_issue_number', 'issues', ['issue_number'], unique=True)
    op.create_index('ix_issues_area', 'issues', ['area'])
    op.create_index('ix_issues_status', 'issues', ['status'])
    op.create_index('ix_issues_created_at', 'issues', ['created_at'])
    op.create_index('ix_issues_created_at_id', 'issues', ['created_at', 'id'])

    op.create_table(
        'follow_ups',
        sa.Column('id', sa.String(length=32), primary_key=True),
        sa.Column('issue_id', sa.String(length=32), sa.ForeignKey('issues.id', ondelete='CASCADE'), nullable=False),
        sa.Column('handler_id', sa.String(length=64), nullable=True),
        sa.Column('handler_name', sa.String(length=120), nullable=False),
        sa.Column('handle_description', sa.String(length=4000), nullable=True),
        sa.Column('handle_images', sa.JSON(), nullable=False),
        sa.Column('handle_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('status', follow_up_status, nullable=False),
        sa.Column('rejection_reason', sa.String(length=1000), nullable=True),
        sa.Column('rejected_by', sa.String(length=120), nullable=True),
        sa.Column('rejected_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_follow_ups_issue_id', 'follow_ups', ['issue_id'])

    op.create_table(
        'issue_counters',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('value', sa.Integer(), nullable=False),
    )
    # seed the counter row so concurrent first inserts lock instead of racing
    op.execute("INSERT INTO issue_counters (id, value) VALUES (1, 0)")


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('issue_counters')
    op.drop_index('ix_follow_ups_issue_id', table_name='follow_ups')
    op.drop_table('follow_ups')
    op.drop_index('ix_issues_created_at_id', table_name='issues')
    op.drop_index('ix_issues_created_at', table_name='issues')
    op.drop_index('ix_issues_status', table_name='issues')
    op.drop_index('ix_issues_area', table_name='issues')
    op.drop_index('ix_issues_issue_number', table_name='issues')
    op.drop_table('issues')
    issue_status.drop(op.get_bind(), checkfirst=True)
    follow_up_status.drop(op.get_bind(), checkfirst=True)
