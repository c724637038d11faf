"""initial_schema

Revision ID: 4a1f0c2d9e3b
Revises:
Create Date: 2025-06-02 10:14:52.418203

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
import sqlmodel


# revision identifiers, used by Alembic.
revision: str = '4a1f0c2d9e3b'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

USER_ROLE = sa.Enum('SUPER_ADMIN', 'ADMIN', 'USER', name='userrole')
USER_TYPE = sa.Enum('ADMIN', 'MODERATOR', 'USER', name='usertype')
MEMBERSHIP_CATEGORY = sa.Enum('FREE', 'YEARLY', 'PERMANENT', name='membershipcategory')
USER_STATUS = sa.Enum('ACTIVE', 'INACTIVE', name='userstatus')


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'users',
        sa.Column('id', sqlmodel.sql.sqltypes.AutoString(length=32), nullable=False),
        sa.Column('first_name', sqlmodel.sql.sqltypes.AutoString(length=100), nullable=False),
        sa.Column('last_name', sqlmodel.sql.sqltypes.AutoString(length=100), nullable=False),
        sa.Column('phone', sqlmodel.sql.sqltypes.AutoString(length=20), nullable=False),
        sa.Column('email', sqlmodel.sql.sqltypes.AutoString(length=255), nullable=True),
        sa.Column('role', USER_ROLE, nullable=False),
        sa.Column('user_type', USER_TYPE, nullable=False),
        sa.Column('membership_category', MEMBERSHIP_CATEGORY, nullable=False),
        sa.Column('status', USER_STATUS, nullable=False),
        sa.Column('password', sqlmodel.sql.sqltypes.AutoString(length=255), nullable=False),
        sa.Column('refresh_token', sqlmodel.sql.sqltypes.AutoString(length=128), nullable=True),
        sa.Column('password_reset_token', sqlmodel.sql.sqltypes.AutoString(length=128), nullable=True),
        sa.Column('password_reset_sent_at', sa.DateTime(), nullable=True),
        sa.Column('password_reset_expires_at', sa.DateTime(), nullable=True),
        sa.Column('last_login', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_users_phone', 'users', ['phone'], unique=True)
    op.create_index('idx_users_email', 'users', ['email'], unique=True)
    # Looked up by hash when a reset link is redeemed
    op.create_index('idx_users_password_reset_token', 'users', ['password_reset_token'])

    op.create_table(
        'faq_categories',
        sa.Column('id', sa.Integer(), nullable=False, autoincrement=True),
        sa.Column('name', sqlmodel.sql.sqltypes.AutoString(length=100), nullable=False),
        sa.Column('order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_faq_categories_name', 'faq_categories', ['name'], unique=True)

    op.create_table(
        'faqs',
        sa.Column('id', sa.Integer(), nullable=False, autoincrement=True),
        sa.Column('category_id', sa.Integer(), nullable=False),
        sa.Column('question', sqlmodel.sql.sqltypes.AutoString(length=500), nullable=False),
        sa.Column('answer', sa.Text(), nullable=False),
        sa.Column('order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('show_home_page', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['category_id'], ['faq_categories.id'], ondelete='CASCADE'),
    )
    op.create_index('idx_faqs_category_id', 'faqs', ['category_id'])
    op.create_index('idx_faqs_show_home_page', 'faqs', ['show_home_page'])

    op.create_table(
        'email_logs',
        sa.Column('id', sa.Integer(), nullable=False, autoincrement=True),
        sa.Column('recipient_email', sqlmodel.sql.sqltypes.AutoString(length=255), nullable=False),
        sa.Column('recipient_name', sqlmodel.sql.sqltypes.AutoString(length=200), nullable=True),
        sa.Column('subject', sqlmodel.sql.sqltypes.AutoString(length=255), nullable=False),
        sa.Column('template_name', sqlmodel.sql.sqltypes.AutoString(length=100), nullable=True),
        sa.Column('status', sqlmodel.sql.sqltypes.AutoString(length=20), nullable=False),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('retry_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('sent_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_email_logs_recipient', 'email_logs', ['recipient_email'])
    op.create_index('idx_email_logs_status', 'email_logs', ['status'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('idx_email_logs_status', table_name='email_logs')
    op.drop_index('idx_email_logs_recipient', table_name='email_logs')
    op.drop_table('email_logs')

    op.drop_index('idx_faqs_show_home_page', table_name='faqs')
    op.drop_index('idx_faqs_category_id', table_name='faqs')
    op.drop_table('faqs')

    op.drop_index('idx_faq_categories_name', table_name='faq_categories')
    op.drop_table('faq_categories')

    op.drop_index('idx_users_password_reset_token', table_name='users')
    op.drop_index('idx_users_email', table_name='users')
    op.drop_index('idx_users_phone', table_name='users')
    op.drop_table('users')
