"""initial sales, installments, expenses and job cards schema

Revision ID: 3c1f0a9d2b7e
Revises:
Create Date: 2026-01-05 09:12:41.503118

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '3c1f0a9d2b7e'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

sale_status = sa.Enum('PENDING', 'COMPLETED', 'CANCELLED', name='salestatus')
installment_status = sa.Enum('PENDING', 'PAID', name='installmentstatus')
expense_status = sa.Enum('DRAFT', 'PENDING', 'APPROVED', 'PAID', 'REJECTED', 'CANCELLED', name='expensestatus')
job_card_status = sa.Enum(
    'DRAFT', 'PENDING_CLIENT_CONFIRMATION', 'IN_PROGRESS', 'COMPLETED', 'CANCELLED', name='jobcardstatus'
)


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_by', sa.String(), nullable=True),
        sa.Column('updated_by', sa.String(), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        'system_logs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('action', sa.String(), nullable=False),
        sa.Column('entity_type', sa.String(), nullable=False),
        sa.Column('entity_id', sa.String(), nullable=False),
        sa.Column('performed_by', sa.String(), nullable=True),
        sa.Column('old_values', sa.JSON(), nullable=True),
        sa.Column('new_values', sa.JSON(), nullable=True),
        sa.Column('meta', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_system_logs_id', 'system_logs', ['id'])
    op.create_index('ix_system_logs_entity_type', 'system_logs', ['entity_type'])
    op.create_index('ix_system_logs_entity_id', 'system_logs', ['entity_id'])

    op.create_table(
        'roles',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False, unique=True),
        sa.Column('description', sa.String(), nullable=True),
    )
    op.create_index('ix_roles_id', 'roles', ['id'])

    op.create_table(
        'employees',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('first_name', sa.String(), nullable=False),
        sa.Column('last_name', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=False, unique=True),
        sa.Column('phone', sa.String(), nullable=True),
        sa.Column('status', sa.String(), nullable=False, server_default='active'),
        sa.Column('role_id', sa.Integer(), sa.ForeignKey('roles.id'), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_employees_id', 'employees', ['id'])

    op.create_table(
        'clients',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('company_name', sa.String(), nullable=False),
        sa.Column('contact_person', sa.String(), nullable=True),
        sa.Column('email', sa.String(), nullable=True),
        sa.Column('phone', sa.String(), nullable=True),
        sa.Column('alternate_phone', sa.String(), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('backend_base_url', sa.String(), nullable=True),
        sa.Column('api_user_name', sa.String(), nullable=True),
        sa.Column('api_password', sa.String(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_clients_id', 'clients', ['id'])

    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('sku', sa.String(), nullable=True, unique=True),
        sa.Column('unit_price', sa.Numeric(12, 2), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_products_id', 'products', ['id'])

    op.create_table(
        'sales',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('sale_number', sa.String(), nullable=False),
        sa.Column('client_id', sa.Integer(), sa.ForeignKey('clients.id'), nullable=False),
        sa.Column('sale_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('status', sale_status, nullable=False),
        sa.Column('total_amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('agreed_monthly_installment_amount', sa.Numeric(12, 2), nullable=True),
        sa.Column('paid_amount', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('requested_payment_date_extension', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('payment_extension_due_date', sa.Date(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_sales_id', 'sales', ['id'])
    op.create_index('ix_sales_sale_number', 'sales', ['sale_number'], unique=True)

    op.create_table(
        'sale_items',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('sale_id', sa.Integer(), sa.ForeignKey('sales.id'), nullable=False),
        sa.Column('product_id', sa.Integer(), sa.ForeignKey('products.id'), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price', sa.Numeric(12, 2), nullable=False),
        sa.Column('total_price', sa.Numeric(12, 2), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_sale_items_id', 'sale_items', ['id'])

    op.create_table(
        'sale_installments',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('sale_id', sa.Integer(), sa.ForeignKey('sales.id'), nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('due_date', sa.Date(), nullable=True),
        sa.Column('paid_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('status', installment_status, nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_sale_installments_id', 'sale_installments', ['id'])
    op.create_index('ix_sale_installments_sale_id', 'sale_installments', ['sale_id'])

    op.create_table(
        'expense_categories',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False, unique=True),
        sa.Column('description', sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_expense_categories_id', 'expense_categories', ['id'])

    op.create_table(
        'job_cards',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('job_number', sa.String(), nullable=False),
        sa.Column('client_id', sa.Integer(), sa.ForeignKey('clients.id'), nullable=False),
        sa.Column('visit_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('location', sa.String(), nullable=True),
        sa.Column('contact_person', sa.String(), nullable=True),
        sa.Column('purpose', sa.Text(), nullable=True),
        sa.Column('work_summary', sa.Text(), nullable=True),
        sa.Column('findings', sa.Text(), nullable=True),
        sa.Column('recommendations', sa.Text(), nullable=True),
        sa.Column('status', job_card_status, nullable=False),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('cancelled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('support_staff_id', sa.Integer(), sa.ForeignKey('employees.id'), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_job_cards_id', 'job_cards', ['id'])
    op.create_index('ix_job_cards_job_number', 'job_cards', ['job_number'], unique=True)

    op.create_table(
        'job_tasks',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('job_card_id', sa.Integer(), sa.ForeignKey('job_cards.id'), nullable=False),
        sa.Column('module_name', sa.String(), nullable=True),
        sa.Column('task_type', sa.String(), nullable=True),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('start_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('end_time', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_job_tasks_id', 'job_tasks', ['id'])

    op.create_table(
        'job_expenses',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('job_card_id', sa.Integer(), sa.ForeignKey('job_cards.id'), nullable=False),
        sa.Column('category', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('has_receipt', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('receipt_url', sa.String(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_job_expenses_id', 'job_expenses', ['id'])

    op.create_table(
        'job_card_approvals',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('job_card_id', sa.Integer(), sa.ForeignKey('job_cards.id'), nullable=False),
        sa.Column('role', sa.String(), nullable=False),
        sa.Column('approver_name', sa.String(), nullable=True),
        sa.Column('approver_title', sa.String(), nullable=True),
        sa.Column('comment', sa.Text(), nullable=True),
        sa.Column('signed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('signature_type', sa.String(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_job_card_approvals_id', 'job_card_approvals', ['id'])

    op.create_table(
        'expenses',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('expense_number', sa.String(), nullable=False),
        sa.Column('category_id', sa.Integer(), sa.ForeignKey('expense_categories.id'), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('expense_date', sa.Date(), nullable=False),
        sa.Column('vendor', sa.String(), nullable=True),
        sa.Column('reference_number', sa.String(), nullable=True),
        sa.Column('payment_method', sa.String(), nullable=True),
        sa.Column('status', expense_status, nullable=False),
        sa.Column('has_receipt', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('receipt_url', sa.String(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('job_card_id', sa.Integer(), sa.ForeignKey('job_cards.id'), nullable=True),
        sa.Column('job_expense_id', sa.Integer(), sa.ForeignKey('job_expenses.id'), nullable=True, unique=True),
        sa.Column('submitted_by_id', sa.Integer(), sa.ForeignKey('employees.id'), nullable=True),
        sa.Column('approved_by_id', sa.Integer(), sa.ForeignKey('employees.id'), nullable=True),
        sa.Column('approved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('rejected_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_expenses_id', 'expenses', ['id'])
    op.create_index('ix_expenses_expense_number', 'expenses', ['expense_number'], unique=True)
    op.create_index('ix_expenses_job_card_id', 'expenses', ['job_card_id'])


def downgrade() -> None:
    for table in (
        'expenses',
        'job_card_approvals',
        'job_expenses',
        'job_tasks',
        'job_cards',
        'expense_categories',
        'sale_installments',
        'sale_items',
        'sales',
        'products',
        'clients',
        'employees',
        'roles',
        'system_logs',
    ):
        op.drop_table(table)

    bind = op.get_bind()
    for enum_type in (expense_status, job_card_status, installment_status, sale_status):
        enum_type.drop(bind, checkfirst=True)
