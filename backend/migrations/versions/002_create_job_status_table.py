"""create job_status table

Revision ID: 002
Revises: 001
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '002'
down_revision = '001'
branch_labels = None
depends_on = None


JOB_RUN_STATUSES = ('Pending', 'InProgress', 'Completed', 'Error')


def upgrade() -> None:
    """Create the job run status table."""

    op.create_table(
        'job_status',
        sa.Column('id', sa.BigInteger().with_variant(sa.Integer(), 'sqlite'), primary_key=True, autoincrement=True),
        sa.Column('job_id', sa.String(255), nullable=False, comment='Run id of the job execution'),
        sa.Column('status', sa.Enum(*JOB_RUN_STATUSES, name='jobrunstatus'), nullable=False),
        sa.Column('error_message', sa.Text, nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.UniqueConstraint('job_id', name='uq_job_status_job_id'),
    )


def downgrade() -> None:
    """Drop the job run status table."""
    op.drop_table('job_status')
    if op.get_bind().dialect.name == 'postgresql':
        op.execute('DROP TYPE IF EXISTS jobrunstatus')
