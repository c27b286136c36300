"""create sales and payments

Revision ID: sales_payments_001
Revises:
Create Date: 2025-10-24

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'sales_payments_001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


payment_status = sa.Enum(
    'fully-paid', 'partial', 'no-payment', 'overdue',
    name='payment_status',
)
payment_method = sa.Enum(
    'cash', 'mobile_money', 'bank_transfer', 'card',
    name='payment_method',
)


def upgrade() -> None:
    op.create_table(
        'sales',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('sale_number', sa.String(100), nullable=False),
        sa.Column('order_id', sa.Integer(), nullable=True),
        sa.Column('customer_name', sa.String(150), nullable=False),
        sa.Column('customer_phone', sa.String(20), nullable=True),
        sa.Column('total_amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('cost_amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('profit_amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('payment_status', payment_status, nullable=False),
        sa.Column('due_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('order_id'),
    )
    op.create_index('ix_sales_sale_number', 'sales', ['sale_number'], unique=True)
    op.create_index('ix_sales_customer_phone', 'sales', ['customer_phone'])
    op.create_index('ix_sales_payment_status', 'sales', ['payment_status'])
    op.create_index('ix_sales_due_date', 'sales', ['due_date'])
    # Overdue and near-due queries
    op.create_index('ix_sales_payment_status_due_date', 'sales', ['payment_status', 'due_date'])

    op.create_table(
        'payments',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('sale_id', sa.Integer(), sa.ForeignKey('sales.id', ondelete='CASCADE'), nullable=False),
        sa.Column('method', payment_method, nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('reference', sa.String(100), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('paid_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_payments_sale_id', 'payments', ['sale_id'])
    op.create_index('ix_payments_method', 'payments', ['method'])
    op.create_index('ix_payments_paid_at', 'payments', ['paid_at'])


def downgrade() -> None:
    op.drop_table('payments')
    op.drop_table('sales')
    payment_method.drop(op.get_bind(), checkfirst=True)
    payment_status.drop(op.get_bind(), checkfirst=True)
