"""Create wallets, user_transactions and user_balances tables

Revision ID: 20261019_000001
Revises:
Create Date: 2026-10-19

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
    # Wallet bindings (address -> user), maintained outside this service
    op.create_table(
        'wallets',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.String(64), nullable=False),
        sa.Column('address', sa.String(42), nullable=False),
        sa.Column('network', sa.String(32), nullable=False, server_default='BSC_MAINNET'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('address', 'network', name='uq_wallets_address_network'),
    )
    op.create_index('ix_wallets_user_id', 'wallets', ['user_id'])
    op.create_index('ix_wallets_address', 'wallets', ['address'])

    # Append-only log of applied transactions
    op.create_table(
        'user_transactions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('transaction_hash', sa.String(66), nullable=False),
        sa.Column('user_id', sa.String(64), nullable=False),
        sa.Column('wallet_address', sa.String(42), nullable=False),
        sa.Column('direction', sa.String(8), nullable=False),
        sa.Column('kind', sa.String(16), nullable=False),
        sa.Column('transaction_type', sa.String(20), nullable=False),
        sa.Column('amount', sa.DECIMAL(36, 18), nullable=False),
        sa.Column('token_symbol', sa.String(32), nullable=False),
        sa.Column('token_address', sa.String(42), nullable=True),
        sa.Column('network', sa.String(32), nullable=False),
        sa.Column('block_number', sa.BigInteger(), nullable=False),
        sa.Column('transaction_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('source', sa.String(16), nullable=False, server_default='poll'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('transaction_hash', 'user_id', name='uq_user_transactions_hash_user'),
    )
    op.create_index('ix_user_transactions_user_id', 'user_transactions', ['user_id'])
    op.create_index(
        'ix_user_transactions_user_network_block',
        'user_transactions',
        ['user_id', 'network', 'block_number'],
    )

    # Balance aggregates per (user, token, network)
    op.create_table(
        'user_balances',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.String(64), nullable=False),
        sa.Column('token_symbol', sa.String(32), nullable=False),
        sa.Column('network', sa.String(32), nullable=False),
        sa.Column('balance', sa.DECIMAL(36, 18), nullable=False, server_default='0'),
        sa.Column('token_address', sa.String(42), nullable=True),
        sa.Column('last_updated', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'token_symbol', 'network', name='uq_user_balances_key'),
    )
    op.create_index('ix_user_balances_user_id', 'user_balances', ['user_id'])


def downgrade() -> None:
    op.drop_index('ix_user_balances_user_id', 'user_balances')
    op.drop_table('user_balances')

    op.drop_index('ix_user_transactions_user_network_block', 'user_transactions')
    op.drop_index('ix_user_transactions_user_id', 'user_transactions')
    op.drop_table('user_transactions')

    op.drop_index('ix_wallets_address', 'wallets')
    op.drop_index('ix_wallets_user_id', 'wallets')
    op.drop_table('wallets')
