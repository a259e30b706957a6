"""add_compliance_requirements

Revision ID: 8d41e6b2c9f3
Revises: 3f9c2a7d1b04
Create Date: 2026-10-19 14:30:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID


# revision identifiers, used by Alembic.
revision: str = '8d41e6b2c9f3'
down_revision: Union[str, Sequence[str], None] = '3f9c2a7d1b04'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema - Add organization compliance requirements."""
    op.create_table(
        'compliance_requirements',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('organization_id', UUID(as_uuid=True), nullable=False),
        sa.Column('opportunity_id', UUID(as_uuid=True), nullable=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('doc_type', sa.String(length=32), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_mandatory', sa.Boolean(), server_default='true', nullable=False),
        sa.Column('enforcement_level', sa.String(length=32), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['opportunity_id'], ['opportunities.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(
        'ix_compliance_requirements_organization_id',
        'compliance_requirements',
        ['organization_id'],
    )


def downgrade() -> None:
    """Downgrade schema - Drop organization compliance requirements."""
    op.drop_index('ix_compliance_requirements_organization_id', table_name='compliance_requirements')
    op.drop_table('compliance_requirements')
