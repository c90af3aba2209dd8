"""create education_organization table

Revision ID: 001
Revises:
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create the education organization cache table."""

    op.create_table(
        'education_organization',
        sa.Column('id', sa.BigInteger().with_variant(sa.Integer(), 'sqlite'), primary_key=True, autoincrement=True),
        sa.Column('instance_id', sa.Integer, nullable=False, comment='ODS instance id (not enforced, lives in the admin database)'),
        sa.Column('instance_name', sa.String(100), nullable=False, comment='Instance name at the time the row was inserted'),
        sa.Column('education_organization_id', sa.BigInteger, nullable=False),
        sa.Column('name_of_institution', sa.String(75), nullable=False),
        sa.Column('short_name_of_institution', sa.String(75), nullable=True),
        sa.Column('discriminator', sa.String(128), nullable=False, comment="Organization type, e.g. 'edfi.School'"),
        sa.Column('parent_id', sa.BigInteger, nullable=True),
        sa.Column('last_modified_date', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('last_refreshed', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.UniqueConstraint('instance_id', 'education_organization_id', name='uq_education_organization_instance_edorg'),
    )

    op.create_index('ix_education_organization_instance_id', 'education_organization', ['instance_id'])


def downgrade() -> None:
    """Drop the education organization cache table."""
    op.drop_index('ix_education_organization_instance_id', table_name='education_organization')
    op.drop_table('education_organization')
