"""create filemarket schema

Revision ID: 3f9c1a7d2b64
Revises:
Create Date: 2026-10-18 09:12:45.118204

"""
from datetime import datetime
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f9c1a7d2b64'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('password', sa.String(), nullable=False),
        sa.Column('is_admin', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('is_verified', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('bio', sa.String(), nullable=True),
        sa.Column('avatar_url', sa.String(), nullable=True),
        sa.Column('reset_token', sa.String(), nullable=True),
        sa.Column('reset_token_expires', sa.DateTime(), nullable=True),
        sa.Column('verification_token', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_reset_token', 'users', ['reset_token'])
    op.create_index('ix_users_verification_token', 'users', ['verification_token'])

    op.create_table(
        'categories',
        sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('slug', sa.String(), nullable=False),
        sa.Column('description', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_categories_name', 'categories', ['name'], unique=True)
    op.create_index('ix_categories_slug', 'categories', ['slug'], unique=True)

    op.create_table(
        'files',
        sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('description', sa.String(), nullable=True),
        sa.Column(
            'category_id', sa.Integer(),
            sa.ForeignKey('categories.id', ondelete='SET NULL'), nullable=True,
        ),
        sa.Column('price', sa.Float(), server_default='0', nullable=False),
        sa.Column('is_free', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('file_name', sa.String(), nullable=False),
        sa.Column('file_path', sa.String(), nullable=False),
        sa.Column('file_size', sa.Integer(), server_default='0', nullable=False),
        sa.Column('file_type', sa.String(), nullable=True),
        sa.Column('preview_url', sa.String(), nullable=True),
        sa.Column('download_url', sa.String(), nullable=True),
        sa.Column('is_downloadable', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column('download_limit_days', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint('price >= 0', name='ck_files_price_non_negative'),
    )
    op.create_index('ix_files_title', 'files', ['title'])

    op.create_table(
        'payment_methods',
        sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('type', sa.String(), nullable=False),
        sa.Column('details', sa.String(), nullable=True),
        sa.Column('instructions', sa.String(), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )

    op.create_table(
        'payments',
        sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
        sa.Column(
            'user_id', sa.Integer(),
            sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False,
        ),
        sa.Column(
            'file_id', sa.Integer(),
            sa.ForeignKey('files.id', ondelete='CASCADE'), nullable=False,
        ),
        sa.Column(
            'payment_method_id', sa.Integer(),
            sa.ForeignKey('payment_methods.id', ondelete='SET NULL'), nullable=True,
        ),
        sa.Column('amount', sa.Float(), nullable=False),
        sa.Column('status', sa.String(), server_default='pending', nullable=False),
        sa.Column('transaction_id', sa.String(), nullable=True),
        sa.Column('payment_details', sa.String(), nullable=True),
        sa.Column('payment_instructions', sa.String(), nullable=True),
        sa.Column('admin_notes', sa.String(), nullable=True),
        sa.Column('verified_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_payments_user_id', 'payments', ['user_id'])
    op.create_index('ix_payments_file_id', 'payments', ['file_id'])

    op.create_table(
        'purchases',
        sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
        sa.Column(
            'user_id', sa.Integer(),
            sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False,
        ),
        sa.Column(
            'file_id', sa.Integer(),
            sa.ForeignKey('files.id', ondelete='CASCADE'), nullable=False,
        ),
        sa.Column(
            'payment_id', sa.Integer(),
            sa.ForeignKey('payments.id', ondelete='SET NULL'), nullable=True,
        ),
        sa.Column('amount', sa.Float(), nullable=False),
        sa.Column('status', sa.String(), server_default='pending', nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('user_id', 'file_id', name='uq_purchases_user_file'),
    )
    op.create_index('ix_purchases_user_id', 'purchases', ['user_id'])
    op.create_index('ix_purchases_file_id', 'purchases', ['file_id'])

    op.create_table(
        'downloads',
        sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
        sa.Column(
            'user_id', sa.Integer(),
            sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False,
        ),
        sa.Column(
            'file_id', sa.Integer(),
            sa.ForeignKey('files.id', ondelete='CASCADE'), nullable=False,
        ),
        sa.Column(
            'purchase_id', sa.Integer(),
            sa.ForeignKey('purchases.id', ondelete='SET NULL'), nullable=True,
        ),
        sa.Column('download_count', sa.Integer(), server_default='0', nullable=False),
        sa.Column('last_downloaded_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('user_id', 'file_id', name='uq_downloads_user_file'),
    )
    op.create_index('ix_downloads_user_id', 'downloads', ['user_id'])
    op.create_index('ix_downloads_file_id', 'downloads', ['file_id'])

    site_settings = op.create_table(
        'site_settings',
        sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
        sa.Column('key_name', sa.String(), nullable=False),
        sa.Column('value', sa.String(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_site_settings_key_name', 'site_settings', ['key_name'], unique=True)

    now = datetime.utcnow()
    op.bulk_insert(site_settings, [
        {'key_name': 'site_name', 'value': 'File Market', 'updated_at': now},
        {'key_name': 'currency', 'value': 'USD', 'updated_at': now},
        {'key_name': 'tax_rate', 'value': '0', 'updated_at': now},
    ])


def downgrade() -> None:
    op.drop_table('site_settings')
    op.drop_table('downloads')
    op.drop_table('purchases')
    op.drop_table('payments')
    op.drop_table('payment_methods')
    op.drop_table('files')
    op.drop_table('categories')
    op.drop_table('users')
