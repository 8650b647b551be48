"""create_ledger_schema

Revision ID: 3f9c2a7d1b84
Revises:
Create Date: 2026-10-19 09:12:41.503118

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f9c2a7d1b84'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """
    Create the household ledger schema.

    Creates:
    - accounts (versioned, soft-deletable, erasable)
    - ledgers (versioned, soft-deletable) and memberships
    - category_templates, categories, transactions, budgets
    - deleted_accounts and deletion_job_logs (erasure audit)
    """
    # 1. Accounts
    op.create_table(
        'accounts',
        sa.Column('id', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('display_name', sa.String(length=50), nullable=True),
        sa.Column('avatar_url', sa.String(length=1024), nullable=True),
        sa.Column('currency', sa.String(length=3), nullable=False),
        sa.Column('timezone', sa.String(length=64), nullable=False),
        sa.Column('erased_at', sa.DateTime(), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_accounts_erased_at', 'accounts', ['erased_at'])
    op.create_index('ix_accounts_deleted_at', 'accounts', ['deleted_at'])

    # 2. Ledgers
    op.create_table(
        'ledgers',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=50), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('currency', sa.String(length=3), nullable=False),
        sa.Column('created_by', sa.String(length=255), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['created_by'], ['accounts.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_ledgers_created_by', 'ledgers', ['created_by'])
    op.create_index('ix_ledgers_deleted_at', 'ledgers', ['deleted_at'])

    # 3. Memberships
    op.create_table(
        'memberships',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('ledger_id', sa.String(length=36), nullable=False),
        sa.Column('account_id', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=6), nullable=False),
        sa.Column('joined_at', sa.DateTime(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['ledger_id'], ['ledgers.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('ledger_id', 'account_id', name='uq_ledger_account')
    )
    op.create_index('ix_memberships_ledger_id', 'memberships', ['ledger_id'])
    op.create_index('ix_memberships_account_id', 'memberships', ['account_id'])
    op.create_index('ix_memberships_deleted_at', 'memberships', ['deleted_at'])

    # 4. Categories
    op.create_table(
        'category_templates',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=20), nullable=False),
        sa.Column('type', sa.String(length=7), nullable=False),
        sa.Column('color', sa.String(length=7), nullable=False),
        sa.Column('icon', sa.String(length=50), nullable=False),
        sa.Column('sort_order', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_table(
        'categories',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('ledger_id', sa.String(length=36), nullable=False),
        sa.Column('template_id', sa.String(length=36), nullable=True),
        sa.Column('name', sa.String(length=20), nullable=False),
        sa.Column('type', sa.String(length=7), nullable=False),
        sa.Column('color', sa.String(length=7), nullable=False),
        sa.Column('icon', sa.String(length=50), nullable=False),
        sa.Column('sort_order', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['ledger_id'], ['ledgers.id']),
        sa.ForeignKeyConstraint(['template_id'], ['category_templates.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_categories_ledger_id', 'categories', ['ledger_id'])
    op.create_index('ix_categories_deleted_at', 'categories', ['deleted_at'])

    # 5. Transactions
    op.create_table(
        'transactions',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('ledger_id', sa.String(length=36), nullable=False),
        sa.Column('category_id', sa.String(length=36), nullable=False),
        sa.Column('created_by', sa.String(length=255), nullable=True),
        sa.Column('amount', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('type', sa.String(length=7), nullable=False),
        sa.Column('title', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('transaction_date', sa.Date(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['ledger_id'], ['ledgers.id']),
        sa.ForeignKeyConstraint(['category_id'], ['categories.id']),
        sa.ForeignKeyConstraint(['created_by'], ['accounts.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_transactions_ledger_id', 'transactions', ['ledger_id'])
    op.create_index('ix_transactions_category_id', 'transactions', ['category_id'])
    op.create_index('ix_transactions_created_by', 'transactions', ['created_by'])
    op.create_index('ix_transactions_transaction_date', 'transactions', ['transaction_date'])
    op.create_index('ix_transactions_deleted_at', 'transactions', ['deleted_at'])
    op.create_index('ix_transactions_ledger_date', 'transactions', ['ledger_id', 'transaction_date'])

    # 6. Budgets
    op.create_table(
        'budgets',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('ledger_id', sa.String(length=36), nullable=False),
        sa.Column('category_id', sa.String(length=36), nullable=False),
        sa.Column('created_by', sa.String(length=255), nullable=True),
        sa.Column('amount', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('period', sa.String(length=7), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('month', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['ledger_id'], ['ledgers.id']),
        sa.ForeignKeyConstraint(['category_id'], ['categories.id']),
        sa.ForeignKeyConstraint(['created_by'], ['accounts.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_budgets_ledger_id', 'budgets', ['ledger_id'])
    op.create_index('ix_budgets_category_id', 'budgets', ['category_id'])
    op.create_index('ix_budgets_deleted_at', 'budgets', ['deleted_at'])

    # 7. Erasure audit
    op.create_table(
        'deleted_accounts',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('original_account_id', sa.String(length=255), nullable=False),
        sa.Column('email_hash', sa.String(length=64), nullable=True),
        sa.Column('deleted_at', sa.DateTime(), nullable=False),
        sa.Column('erased_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_deleted_accounts_original_account_id', 'deleted_accounts', ['original_account_id'])
    op.create_table(
        'deletion_job_logs',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('executed_at', sa.DateTime(), nullable=False),
        sa.Column('accounts_processed', sa.Integer(), nullable=False),
        sa.Column('error_count', sa.Integer(), nullable=False),
        sa.Column('errors', sa.JSON(), nullable=True),
        sa.Column('details', sa.JSON(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )


def downgrade() -> None:
    """Drop the household ledger schema."""
    op.drop_table('deletion_job_logs')
    op.drop_index('ix_deleted_accounts_original_account_id', table_name='deleted_accounts')
    op.drop_table('deleted_accounts')
    op.drop_table('budgets')
    op.drop_table('transactions')
    op.drop_table('categories')
    op.drop_table('category_templates')
    op.drop_table('memberships')
    op.drop_table('ledgers')
    op.drop_table('accounts')
