"""client integrations, product categories and soft-delete statuses

Revision ID: 8e2b4c6d1f30
Revises: 3c1f0a9d2b7e
Create Date: 2026-02-16 14:03:27.219584

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '8e2b4c6d1f30'
down_revision: Union[str, None] = '3c1f0a9d2b7e'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_by', sa.String(), nullable=True),
        sa.Column('updated_by', sa.String(), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        'product_categories',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False, unique=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('status', sa.String(), nullable=False, server_default='active'),
        *_timestamps(),
    )
    op.create_index('ix_product_categories_id', 'product_categories', ['id'])

    op.create_table(
        'client_integrations',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('client_id', sa.Integer(), sa.ForeignKey('clients.id', ondelete='CASCADE'), nullable=False),
        sa.Column('label', sa.String(), nullable=False),
        sa.Column('value', sa.Text(), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_client_integrations_id', 'client_integrations', ['id'])
    op.create_index('ix_client_integrations_client_id', 'client_integrations', ['client_id'])

    op.add_column('clients', sa.Column('status', sa.String(), nullable=False, server_default='active'))

    with op.batch_alter_table('products') as batch_op:
        batch_op.add_column(sa.Column('status', sa.String(), nullable=False, server_default='active'))
        batch_op.add_column(sa.Column('category_id', sa.Integer(), nullable=True))
        batch_op.create_foreign_key(
            'fk_products_category_id_product_categories', 'product_categories', ['category_id'], ['id']
        )


def downgrade() -> None:
    with op.batch_alter_table('products') as batch_op:
        batch_op.drop_constraint('fk_products_category_id_product_categories', type_='foreignkey')
        batch_op.drop_column('category_id')
        batch_op.drop_column('status')

    op.drop_column('clients', 'status')

    op.drop_index('ix_client_integrations_client_id', table_name='client_integrations')
    op.drop_index('ix_client_integrations_id', table_name='client_integrations')
    op.drop_table('client_integrations')
    op.drop_index('ix_product_categories_id', table_name='product_categories')
    op.drop_table('product_categories')
