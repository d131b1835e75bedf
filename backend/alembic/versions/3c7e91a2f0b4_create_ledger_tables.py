"""create ledger tables

Revision ID: 3c7e91a2f0b4
Revises:
Create Date: 2026-10-19 09:12:41.318206

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3c7e91a2f0b4'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Reference catalog
    op.create_table('general_categories',
    sa.Column('id', sa.Uuid(), nullable=False),
    sa.Column('name', sa.String(length=100), nullable=False),
    sa.Column('category_type', sa.Enum('INCOME', 'EXPENSE', 'BOTH', name='categorytype'), nullable=False),
    sa.Column('description', sa.Text(), nullable=True),
    sa.Column('is_system', sa.Boolean(), nullable=False),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
    sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
    sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('general_categories', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_general_categories_name'), ['name'], unique=False)

    op.create_table('concepts',
    sa.Column('id', sa.Uuid(), nullable=False),
    sa.Column('name', sa.String(length=100), nullable=False),
    sa.Column('general_id', sa.Uuid(), nullable=True),
    sa.Column('category_type', sa.Enum('INCOME', 'EXPENSE', 'BOTH', name='categorytype'), nullable=True),
    sa.Column('description', sa.Text(), nullable=True),
    sa.Column('is_system', sa.Boolean(), nullable=False),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
    sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
    sa.ForeignKeyConstraint(['general_id'], ['general_categories.id'], ondelete='SET NULL'),
    sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('concepts', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_concepts_name'), ['name'], unique=False)
        batch_op.create_index(batch_op.f('ix_concepts_general_id'), ['general_id'], unique=False)

    op.create_table('subconcepts',
    sa.Column('id', sa.Uuid(), nullable=False),
    sa.Column('name', sa.String(length=100), nullable=False),
    sa.Column('concept_id', sa.Uuid(), nullable=True),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
    sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
    sa.ForeignKeyConstraint(['concept_id'], ['concepts.id'], ondelete='SET NULL'),
    sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('subconcepts', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_subconcepts_concept_id'), ['concept_id'], unique=False)

    op.create_table('providers',
    sa.Column('id', sa.Uuid(), nullable=False),
    sa.Column('name', sa.String(length=200), nullable=False),
    sa.Column('tax_id', sa.String(length=50), nullable=True),
    sa.Column('is_active', sa.Boolean(), nullable=False),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
    sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
    sa.PrimaryKeyConstraint('id')
    )

    # Transaction ledger
    op.create_table('transactions',
    sa.Column('id', sa.Uuid(), nullable=False),
    sa.Column('type', sa.Enum('INCOME', 'EXPENSE', name='transactiontype'), nullable=False),
    sa.Column('date', sa.Date(), nullable=False),
    sa.Column('description', sa.String(length=500), nullable=True),
    sa.Column('amount', sa.Float(), nullable=False),
    sa.Column('status', sa.Enum('UNPAID', 'PARTIAL', 'PAID', name='paymentstatus'), nullable=False),
    sa.Column('total_paid', sa.Float(), nullable=False),
    sa.Column('balance', sa.Float(), nullable=False),
    sa.Column('general_id', sa.Uuid(), nullable=True),
    sa.Column('concept_id', sa.Uuid(), nullable=True),
    sa.Column('subconcept_id', sa.Uuid(), nullable=True),
    sa.Column('provider_id', sa.Uuid(), nullable=True),
    sa.Column('division', sa.String(length=50), nullable=True),
    sa.Column('is_carryover', sa.Boolean(), nullable=False),
    sa.Column('carryover_from_year', sa.Integer(), nullable=True),
    sa.Column('carryover_from_month', sa.Integer(), nullable=True),
    sa.Column('notes', sa.Text(), nullable=True),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
    sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
    sa.ForeignKeyConstraint(['general_id'], ['general_categories.id'], ondelete='SET NULL'),
    sa.ForeignKeyConstraint(['concept_id'], ['concepts.id'], ondelete='SET NULL'),
    sa.ForeignKeyConstraint(['subconcept_id'], ['subconcepts.id'], ondelete='SET NULL'),
    sa.ForeignKeyConstraint(['provider_id'], ['providers.id'], ondelete='SET NULL'),
    sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('transactions', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_transactions_type'), ['type'], unique=False)
        batch_op.create_index(batch_op.f('ix_transactions_date'), ['date'], unique=False)
        batch_op.create_index(batch_op.f('ix_transactions_status'), ['status'], unique=False)
        batch_op.create_index(batch_op.f('ix_transactions_general_id'), ['general_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_transactions_concept_id'), ['concept_id'], unique=False)
        batch_op.create_index('ix_transactions_type_date', ['type', 'date'], unique=False)

    op.create_table('transaction_payments',
    sa.Column('id', sa.Uuid(), nullable=False),
    sa.Column('transaction_id', sa.Uuid(), nullable=False),
    sa.Column('amount', sa.Float(), nullable=False),
    sa.Column('date', sa.Date(), nullable=False),
    sa.Column('reference', sa.String(length=255), nullable=True),
    sa.Column('notes', sa.Text(), nullable=True),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
    sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
    sa.ForeignKeyConstraint(['transaction_id'], ['transactions.id'], ondelete='CASCADE'),
    sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('transaction_payments', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_transaction_payments_transaction_id'), ['transaction_id'], unique=False)

    # Monthly carryover store
    op.create_table('monthly_carryovers',
    sa.Column('id', sa.Uuid(), nullable=False),
    sa.Column('key', sa.String(length=7), nullable=False),
    sa.Column('year', sa.Integer(), nullable=False),
    sa.Column('month', sa.Integer(), nullable=False),
    sa.Column('previous_year', sa.Integer(), nullable=False),
    sa.Column('previous_month', sa.Integer(), nullable=False),
    sa.Column('total_income', sa.Float(), nullable=False),
    sa.Column('previous_carryover', sa.Float(), nullable=False),
    sa.Column('total_paid_expenses', sa.Float(), nullable=False),
    sa.Column('carryover_balance', sa.Float(), nullable=False),
    sa.Column('transactions_count', sa.Integer(), nullable=False),
    sa.Column('calculated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
    sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('key'),
    sa.UniqueConstraint('year', 'month', name='uq_monthly_carryovers_year_month')
    )
    with op.batch_alter_table('monthly_carryovers', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_monthly_carryovers_year'), ['year'], unique=False)
        batch_op.create_index(batch_op.f('ix_monthly_carryovers_month'), ['month'], unique=False)


def downgrade() -> None:
    with op.batch_alter_table('monthly_carryovers', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_monthly_carryovers_month'))
        batch_op.drop_index(batch_op.f('ix_monthly_carryovers_year'))
    op.drop_table('monthly_carryovers')

    with op.batch_alter_table('transaction_payments', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_transaction_payments_transaction_id'))
    op.drop_table('transaction_payments')

    with op.batch_alter_table('transactions', schema=None) as batch_op:
        batch_op.drop_index('ix_transactions_type_date')
        batch_op.drop_index(batch_op.f('ix_transactions_concept_id'))
        batch_op.drop_index(batch_op.f('ix_transactions_general_id'))
        batch_op.drop_index(batch_op.f('ix_transactions_status'))
        batch_op.drop_index(batch_op.f('ix_transactions_date'))
        batch_op.drop_index(batch_op.f('ix_transactions_type'))
    op.drop_table('transactions')

    op.drop_table('providers')

    with op.batch_alter_table('subconcepts', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_subconcepts_concept_id'))
    op.drop_table('subconcepts')

    with op.batch_alter_table('concepts', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_concepts_general_id'))
        batch_op.drop_index(batch_op.f('ix_concepts_name'))
    op.drop_table('concepts')

    with op.batch_alter_table('general_categories', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_general_categories_name'))
    op.drop_table('general_categories')
