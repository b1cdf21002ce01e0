"""Create companies and users tables

Revision ID: 20261019_000001
Revises: None
Create Date: 2026-10-19

Creates the company table read for email branding and the users table
holding credentials, role and email verification state.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20261019_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the companies and users tables."""
    op.create_table(
        'companies',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('logo_url', sa.String(length=500), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'users',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column(
            'role',
            sa.Enum('EMPLOYEE', 'ADMIN', 'SUPER_ADMIN', name='user_role', create_constraint=True),
            nullable=False,
            server_default='EMPLOYEE'
        ),
        sa.Column('company_id', sa.String(length=36), nullable=True),
        sa.Column('is_email_verified', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('verification_token', sa.String(length=64), nullable=True),
        sa.Column('verification_token_expiry', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(
            ['company_id'],
            ['companies.id'],
            name='fk_users_company_id',
            ondelete='SET NULL'
        ),
        sa.CheckConstraint(
            '(verification_token IS NULL AND verification_token_expiry IS NULL) '
            'OR (verification_token IS NOT NULL AND verification_token_expiry IS NOT NULL)',
            name='ck_users_verification_token_pair'
        ),
    )

    # Create indexes for common queries
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_role', 'users', ['role'])
    op.create_index('ix_users_company_id', 'users', ['company_id'])


def downgrade() -> None:
    """Drop the users and companies tables."""
    op.drop_index('ix_users_company_id', table_name='users')
    op.drop_index('ix_users_role', table_name='users')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
    op.drop_table('companies')

    # Drop the enum type where the dialect has one
    if op.get_bind().dialect.name == "postgresql":
        op.execute("DROP TYPE IF EXISTS user_role")
