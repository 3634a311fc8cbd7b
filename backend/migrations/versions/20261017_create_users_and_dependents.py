"""Create users and dependents tables

Revision ID: 3c1f0a9d7b21
Revises:
Create Date: 2026-10-17 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3c1f0a9d7b21'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


FILING_STATUS = sa.Enum(
    'single', 'married-joint', 'married-separate', 'head-of-household', 'qualifying-widow',
    name='filing_status',
)
TAX_CLASSIFICATION = sa.Enum(
    'individual', 'sole_proprietor', 'c_corporation', 's_corporation',
    'partnership', 'trust_estate', 'llc', 'other',
    name='tax_classification',
)
FORM_COMPLETION_STATUS = sa.Enum('not_started', 'in_progress', 'completed', name='form_completion_status')


def upgrade() -> None:
    op.create_table('users',
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password', sa.String(length=255), nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=True),
        sa.Column('last_name', sa.String(length=100), nullable=True),
        sa.Column('filing_status', FILING_STATUS, nullable=True),
        # W-9 fields
        sa.Column('tax_classification', TAX_CLASSIFICATION, nullable=True),
        sa.Column('business_name', sa.String(length=200), nullable=True),
        sa.Column('ssn', sa.String(length=11), nullable=True),
        sa.Column('ein', sa.String(length=10), nullable=True),
        # JSON payloads
        sa.Column('address', sa.JSON(), nullable=True),
        sa.Column('income', sa.JSON(), nullable=True),
        sa.Column('deductions', sa.JSON(), nullable=True),
        # Document status
        sa.Column('w9_uploaded', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('w9_upload_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('w9_file_name', sa.String(length=255), nullable=True),
        sa.Column('w2_uploaded', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('w2_upload_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('w2_file_name', sa.String(length=255), nullable=True),
        sa.Column('form_completion_status', FORM_COMPLETION_STATUS, nullable=False, server_default='not_started'),
        sa.Column('last_login', sa.DateTime(timezone=True), nullable=True),
        # Base model columns
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table('dependents',
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('relationship', sa.String(length=100), nullable=True),
        sa.Column('dob', sa.Date(), nullable=True),
        sa.Column('ssn', sa.String(length=11), nullable=True),
        # Base model columns
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_dependents_user', 'dependents', ['user_id'], unique=False)


def downgrade() -> None:
    op.drop_index('idx_dependents_user', table_name='dependents')
    op.drop_table('dependents')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
    FORM_COMPLETION_STATUS.drop(op.get_bind(), checkfirst=True)
    TAX_CLASSIFICATION.drop(op.get_bind(), checkfirst=True)
    FILING_STATUS.drop(op.get_bind(), checkfirst=True)
