"""Initial schema: customers, agents, payment methods, billers, receipts, reset tokens, audit

Revision ID: 3f1c2a7b9d04
Revises: 
Create Date: 2026-03-02 09:15:42.318207

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c2a7b9d04'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

PAYMENT_METHOD_TYPE = sa.Enum('CREDIT_CARD', 'DEBIT_CARD', 'BANK_ACCOUNT', name='paymentmethodtype')
BILLER_CATEGORY = sa.Enum(
    'UTILITIES', 'TELECOM', 'INSURANCE', 'CREDIT_CARD', 'LOAN', 'SUBSCRIPTION', 'OTHER', name='billercategory'
)


def _base_columns() -> list[sa.Column]:
    return [
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    ]


def _base_indexes(table: str) -> None:
    op.create_index(op.f(f'ix_{table}_id'), table, ['id'])
    op.create_index(op.f(f'ix_{table}_created_at'), table, ['created_at'])


def upgrade() -> None:
    """Create all tables for the bill-payment platform."""
    # 1. Users table (no dependencies)
    op.create_table(
        'users',
        *_base_columns(),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('first_name', sa.String(), nullable=False),
        sa.Column('last_name', sa.String(), nullable=False),
        sa.Column('phone', sa.String(), nullable=True),
        sa.Column('customer_number', sa.String(), nullable=False),
        sa.Column('password_hash', sa.String(), nullable=False),
        sa.Column('date_of_birth', sa.Date(), nullable=False),
        sa.Column('ssn_last4', sa.String(length=4), nullable=False),
        sa.Column('address_line1', sa.String(), nullable=False),
        sa.Column('address_line2', sa.String(), nullable=True),
        sa.Column('city', sa.String(), nullable=False),
        sa.Column('state', sa.String(), nullable=False),
        sa.Column('postal_code', sa.String(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    _base_indexes('users')
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)
    op.create_index(op.f('ix_users_customer_number'), 'users', ['customer_number'], unique=True)
    op.create_index(op.f('ix_users_date_of_birth'), 'users', ['date_of_birth'])
    op.create_index(op.f('ix_users_ssn_last4'), 'users', ['ssn_last4'])

    # 2. Agents table (no dependencies)
    op.create_table(
        'agents',
        *_base_columns(),
        sa.Column('username', sa.String(), nullable=False),
        sa.Column('password_hash', sa.String(), nullable=False),
        sa.Column('full_name', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=True),
        sa.Column('phone', sa.String(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    _base_indexes('agents')
    op.create_index(op.f('ix_agents_username'), 'agents', ['username'], unique=True)

    # 3. Agent to customer links (depends on agents, users)
    op.create_table(
        'agent_customers',
        sa.Column('agent_id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['agent_id'], ['agents.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('agent_id', 'user_id')
    )

    # 4. Payment methods table (depends on users)
    op.create_table(
        'payment_methods',
        *_base_columns(),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('type', PAYMENT_METHOD_TYPE, nullable=False),
        sa.Column('provider', sa.String(), nullable=False),
        sa.Column('nickname', sa.String(), nullable=True),
        sa.Column('cardholder_name', sa.String(), nullable=True),
        sa.Column('brand', sa.String(), nullable=True),
        sa.Column('account_number', sa.Text(), nullable=False),
        sa.Column('last4', sa.String(length=4), nullable=False),
        sa.Column('exp_month', sa.Integer(), nullable=True),
        sa.Column('exp_year', sa.Integer(), nullable=True),
        sa.Column('security_code', sa.Text(), nullable=True),
        sa.Column('billing_address_line1', sa.String(), nullable=True),
        sa.Column('billing_address_line2', sa.String(), nullable=True),
        sa.Column('billing_city', sa.String(), nullable=True),
        sa.Column('billing_state', sa.String(), nullable=True),
        sa.Column('billing_postal_code', sa.String(), nullable=True),
        sa.Column('is_default', sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    _base_indexes('payment_methods')
    op.create_index(op.f('ix_payment_methods_user_id'), 'payment_methods', ['user_id'])

    # 5. Billers table (depends on users)
    op.create_table(
        'billers',
        *_base_columns(),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('category', BILLER_CATEGORY, nullable=False),
        sa.Column('account_id', sa.String(), nullable=False),
        sa.Column('contact_info', sa.String(), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    _base_indexes('billers')
    op.create_index(op.f('ix_billers_user_id'), 'billers', ['user_id'])

    # 6. Receipts table (depends on users, billers)
    op.create_table(
        'receipts',
        *_base_columns(),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('biller_id', sa.Uuid(), nullable=False),
        sa.Column('amount', sa.Integer(), nullable=False),
        sa.Column('paid_on', sa.Date(), nullable=False),
        sa.Column('confirmation', sa.String(), nullable=False),
        sa.Column('notes', sa.String(), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['biller_id'], ['billers.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    _base_indexes('receipts')
    op.create_index(op.f('ix_receipts_user_id'), 'receipts', ['user_id'])
    op.create_index(op.f('ix_receipts_biller_id'), 'receipts', ['biller_id'])
    op.create_index(op.f('ix_receipts_paid_on'), 'receipts', ['paid_on'])
    op.create_index(op.f('ix_receipts_confirmation'), 'receipts', ['confirmation'], unique=True)

    # 7. Password reset tokens table (depends on users)
    op.create_table(
        'password_reset_tokens',
        *_base_columns(),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('token', sa.String(), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('used_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    _base_indexes('password_reset_tokens')
    op.create_index(op.f('ix_password_reset_tokens_user_id'), 'password_reset_tokens', ['user_id'])
    op.create_index(op.f('ix_password_reset_tokens_token'), 'password_reset_tokens', ['token'], unique=True)

    # 8. Audit logs table (no foreign keys)
    op.create_table(
        'audit_logs',
        *_base_columns(),
        sa.Column('entity_type', sa.String(), nullable=False),
        sa.Column('entity_id', sa.Uuid(), nullable=False),
        sa.Column('action', sa.String(), nullable=False),
        sa.Column('user_id', sa.String(), nullable=True),
        sa.Column('changes', sa.JSON(), nullable=False),
        sa.Column('request_id', sa.String(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    _base_indexes('audit_logs')
    op.create_index(op.f('ix_audit_logs_entity_type'), 'audit_logs', ['entity_type'])
    op.create_index(op.f('ix_audit_logs_entity_id'), 'audit_logs', ['entity_id'])


def downgrade() -> None:
    """Drop all tables."""
    # Drop tables in reverse dependency order; indexes go with their tables
    op.drop_table('audit_logs')
    op.drop_table('password_reset_tokens')
    op.drop_table('receipts')
    op.drop_table('billers')
    op.drop_table('payment_methods')
    op.drop_table('agent_customers')
    op.drop_table('agents')
    op.drop_table('users')

    # Drop enums (no-op on databases without named enum types)
    BILLER_CATEGORY.drop(op.get_bind(), checkfirst=True)
    PAYMENT_METHOD_TYPE.drop(op.get_bind(), checkfirst=True)
