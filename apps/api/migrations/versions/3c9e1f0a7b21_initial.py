"""initial

Revision ID: 3c9e1f0a7b21
Revises: 
Create Date: 2026-10-18 09:12:05.118204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '3c9e1f0a7b21'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id() -> sa.Column:
    return sa.Column('id', sa.String(length=64), nullable=False)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    ]


def _company_id() -> sa.Column:
    return sa.Column('company_id', sa.String(length=64), nullable=True)


def _tenant_owned(name: str, *columns: sa.Column) -> None:
    """Create a table with id, timestamps and the tenant column."""
    op.create_table(name,
    _id(),
    *columns,
    *_timestamps(),
    _company_id(),
    sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ondelete='CASCADE'),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f(f'ix_{name}_company_id'), name, ['company_id'], unique=False)


def upgrade() -> None:
    # Tenants
    op.create_table('companies',
    _id(),
    sa.Column('name', sa.String(length=255), nullable=False),
    *_timestamps(),
    sa.PrimaryKeyConstraint('id')
    )

    _tenant_owned('users',
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=True),
        sa.Column('role', sa.String(length=32), nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true(), nullable=False),
    )
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)

    _tenant_owned('clients',
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
    )
    _tenant_owned('projects',
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('client_id', sa.String(length=64), sa.ForeignKey('clients.id', ondelete='SET NULL'), nullable=True),
    )

    op.create_table('tasks',
    _id(),
    sa.Column('title', sa.String(length=255), nullable=False),
    sa.Column('project_id', sa.String(length=64), nullable=False),
    *_timestamps(),
    sa.ForeignKeyConstraint(['project_id'], ['projects.id'], ondelete='CASCADE'),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_tasks_project_id'), 'tasks', ['project_id'], unique=False)

    _tenant_owned('payments',
        sa.Column('amount', sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False),
        sa.Column('reference', sa.String(length=100), nullable=True),
    )
    _tenant_owned('invoices',
        sa.Column('invoice_number', sa.String(length=50), nullable=False),
        sa.Column('total', sa.Numeric(precision=14, scale=2), nullable=False),
    )
    op.create_index(op.f('ix_invoices_invoice_number'), 'invoices', ['invoice_number'], unique=False)

    _tenant_owned('products',
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('sku', sa.String(length=100), nullable=True),
    )
    _tenant_owned('leads',
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('source', sa.String(length=100), nullable=True),
    )
    _tenant_owned('opportunities',
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('stage', sa.String(length=50), nullable=False),
    )

    # Permission table
    op.create_table('permission_grants',
    _id(),
    sa.Column('action', sa.String(length=16), nullable=False),
    sa.Column('resource_type', sa.String(length=32), nullable=False),
    sa.Column('role', sa.String(length=32), nullable=False),
    *_timestamps(),
    sa.CheckConstraint("role <> 'SUPER_ADMIN'", name='ck_permission_grant_not_super_admin'),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('action', 'resource_type', 'role', name='uq_permission_grant')
    )
    op.create_index(op.f('ix_permission_grants_resource_type'), 'permission_grants', ['resource_type'], unique=False)

    # Audit trail (append-only, no foreign keys: records outlive their subjects)
    op.create_table('audit_logs',
    _id(),
    sa.Column('principal_id', sa.String(length=64), nullable=True),
    sa.Column('tenant_id', sa.String(length=64), nullable=True),
    sa.Column('action', sa.String(length=50), nullable=False),
    sa.Column('resource_type', sa.String(length=32), nullable=False),
    sa.Column('resource_id', sa.String(length=255), nullable=True),
    sa.Column('outcome', sa.String(length=16), nullable=False),
    sa.Column('detail', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_audit_logs_tenant_created', 'audit_logs', ['tenant_id', 'created_at'], unique=False)
    op.create_index('ix_audit_logs_principal_created', 'audit_logs', ['principal_id', 'created_at'], unique=False)


def downgrade() -> None:
    op.drop_index('ix_audit_logs_principal_created', table_name='audit_logs')
    op.drop_index('ix_audit_logs_tenant_created', table_name='audit_logs')
    op.drop_table('audit_logs')
    op.drop_index(op.f('ix_permission_grants_resource_type'), table_name='permission_grants')
    op.drop_table('permission_grants')
    for name in ('opportunities', 'leads', 'products', 'invoices', 'payments'):
        op.drop_table(name)
    op.drop_table('tasks')
    for name in ('projects', 'clients', 'users'):
        op.drop_table(name)
    op.drop_table('companies')
