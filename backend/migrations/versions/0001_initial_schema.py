"""initial trading schema

Revision ID: 0001_initial_schema
Revises: 
Create Date: 2026-10-17
"""
from __future__ import annotations
from alembic import op
import sqlalchemy as sa

revision = '0001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def _stamps(with_created=True):
    cols = []
    if with_created:
        cols.append(sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP')))
    cols.append(sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP')))
    return cols


def upgrade():
    op.create_table('suppliers',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('country', sa.String(length=100), nullable=True),
        sa.Column('region', sa.String(length=255), nullable=True),
        sa.Column('contact_name', sa.String(length=255), nullable=True),
        sa.Column('contact_email', sa.String(length=320), nullable=True),
        sa.Column('contact_phone', sa.String(length=50), nullable=True),
        sa.Column('lead_time_days', sa.Integer(), nullable=True),
        sa.Column('order_cadence_days', sa.Integer(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('1')),
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.Column('updated_by', sa.Integer(), nullable=True),
        *_stamps(),
    )
    op.create_index('ix_suppliers_name', 'suppliers', ['name'])
    op.create_index('ix_suppliers_is_active', 'suppliers', ['is_active'])

    op.create_table('clients',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('business_type', sa.String(length=100), nullable=True),
        sa.Column('contact_name', sa.String(length=255), nullable=True),
        sa.Column('contact_email', sa.String(length=320), nullable=True),
        sa.Column('contact_phone', sa.String(length=50), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('special_discount', sa.Numeric(5, 2), server_default='0'),
        sa.Column('payment_terms', sa.String(length=100), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('1')),
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.Column('updated_by', sa.Integer(), nullable=True),
        *_stamps(),
    )
    op.create_index('ix_clients_name', 'clients', ['name'])
    op.create_index('ix_clients_is_active', 'clients', ['is_active'])

    op.create_table('users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('email', sa.String(length=320), nullable=False, unique=True),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=32), nullable=False, server_default='employee'),
        sa.Column('linked_client_id', sa.Integer(), sa.ForeignKey('clients.id'), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('1')),
        sa.Column('last_signed_in_at', sa.DateTime(timezone=True), nullable=True),
        *_stamps(with_created=False),
    )
    op.create_index('ix_users_email', 'users', ['email'])
    op.create_index('ix_users_role', 'users', ['role'])

    op.create_table('revoked_tokens',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('jti', sa.String(length=64), nullable=False, unique=True),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('revoked_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP')),
    )
    op.create_index('ix_revoked_tokens_jti', 'revoked_tokens', ['jti'])

    op.create_table('security_states',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('panic_mode', sa.Boolean(), nullable=False, server_default=sa.text('0')),
        sa.Column('session_expired', sa.Boolean(), nullable=False, server_default=sa.text('0')),
        sa.Column('simulation_mode', sa.Boolean(), nullable=False, server_default=sa.text('0')),
        sa.Column('last_activity_at', sa.DateTime(timezone=True), nullable=True),
        *_stamps(with_created=False),
    )

    op.create_table('audit_logs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('user_name', sa.String(length=255), nullable=True),
        sa.Column('action', sa.String(length=64), nullable=False),
        sa.Column('entity_type', sa.String(length=64), nullable=True),
        sa.Column('entity_id', sa.String(length=64), nullable=True),
        sa.Column('previous_data', sa.JSON(), nullable=True),
        sa.Column('new_data', sa.JSON(), nullable=True),
        sa.Column('meta', sa.JSON(), nullable=True),
        sa.Column('role_snapshot', sa.String(length=32), nullable=True),
        sa.Column('ip_address', sa.String(length=45), nullable=True),
        sa.Column('user_agent', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP')),
    )
    op.create_index('ix_audit_logs_user_id', 'audit_logs', ['user_id'])
    op.create_index('ix_audit_logs_action', 'audit_logs', ['action'])
    op.create_index('ix_audit_logs_entity_type', 'audit_logs', ['entity_type'])

    op.create_table('matcha_skus',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('supplier_id', sa.Integer(), sa.ForeignKey('suppliers.id'), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('grade', sa.String(length=32), nullable=False),
        sa.Column('quality_tier', sa.Integer(), server_default='3'),
        sa.Column('is_seasonal', sa.Boolean(), server_default=sa.text('0')),
        sa.Column('harvest_season', sa.String(length=50), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('1')),
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.Column('updated_by', sa.Integer(), nullable=True),
        *_stamps(),
    )
    op.create_index('ix_matcha_skus_supplier_id', 'matcha_skus', ['supplier_id'])
    op.create_index('ix_matcha_skus_name', 'matcha_skus', ['name'])
    op.create_index('ix_matcha_skus_is_active', 'matcha_skus', ['is_active'])

    op.create_table('pricing',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('sku_id', sa.Integer(), sa.ForeignKey('matcha_skus.id'), nullable=False),
        sa.Column('cost_price_jpy', sa.Numeric(12, 2), nullable=False),
        sa.Column('exchange_rate', sa.Numeric(10, 4), nullable=False),
        sa.Column('shipping_fee_per_kg', sa.Numeric(10, 2), server_default='15.00'),
        sa.Column('import_tax_rate', sa.Numeric(5, 4), server_default='0.09'),
        sa.Column('landed_cost_sgd', sa.Numeric(12, 2), nullable=False),
        sa.Column('selling_price_per_kg', sa.Numeric(12, 2), nullable=False),
        sa.Column('effective_from', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('effective_to', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_current_price', sa.Boolean(), nullable=False, server_default=sa.text('1')),
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.Column('updated_by', sa.Integer(), nullable=True),
        *_stamps(),
    )
    op.create_index('ix_pricing_sku_id', 'pricing', ['sku_id'])
    op.create_index(
        'uq_pricing_current_per_sku', 'pricing', ['sku_id'], unique=True,
        sqlite_where=sa.text('is_current_price = 1'),
        postgresql_where=sa.text('is_current_price'),
    )

    op.create_table('exchange_rates',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('from_currency', sa.String(length=3), nullable=False, server_default='JPY'),
        sa.Column('to_currency', sa.String(length=3), nullable=False, server_default='SGD'),
        sa.Column('rate', sa.Numeric(12, 6), nullable=False),
        sa.Column('source', sa.String(length=100), nullable=True),
        sa.Column('recorded_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('created_by', sa.Integer(), nullable=True),
    )
    op.create_index('ix_exchange_rates_recorded_at', 'exchange_rates', ['recorded_at'])

    op.create_table('client_product_relations',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('client_id', sa.Integer(), sa.ForeignKey('clients.id'), nullable=False),
        sa.Column('sku_id', sa.Integer(), sa.ForeignKey('matcha_skus.id'), nullable=False),
        sa.Column('cost_price_jpy', sa.Numeric(12, 2), nullable=False),
        sa.Column('exchange_rate', sa.Numeric(12, 6), nullable=False),
        sa.Column('shipping_fee_per_kg', sa.Numeric(10, 2), nullable=False, server_default='15.00'),
        sa.Column('import_tax_rate', sa.Numeric(5, 4), nullable=False, server_default='0.09'),
        sa.Column('selling_price_per_kg', sa.Numeric(12, 2), nullable=False),
        sa.Column('discount_percent', sa.Numeric(5, 2), nullable=False, server_default='0'),
        sa.Column('monthly_volume_kg', sa.Numeric(12, 3), nullable=False, server_default='0'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('1')),
        sa.Column('created_by', sa.Integer(), nullable=True),
        *_stamps(),
    )
    op.create_index('ix_client_product_relations_client_id', 'client_product_relations', ['client_id'])
    op.create_index('ix_client_product_relations_sku_id', 'client_product_relations', ['sku_id'])

    op.create_table('inventory',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('sku_id', sa.Integer(), sa.ForeignKey('matcha_skus.id'), nullable=False, unique=True),
        sa.Column('total_stock_kg', sa.Numeric(12, 3), nullable=False, server_default='0'),
        sa.Column('allocated_stock_kg', sa.Numeric(12, 3), nullable=False, server_default='0'),
        sa.Column('low_stock_threshold_kg', sa.Numeric(12, 3), nullable=False, server_default='5'),
        sa.Column('last_order_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('last_arrival_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('next_expected_arrival', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_by', sa.Integer(), nullable=True),
        *_stamps(with_created=False),
        sa.CheckConstraint('allocated_stock_kg >= 0', name='ck_inventory_allocated_non_negative'),
        sa.CheckConstraint('allocated_stock_kg <= total_stock_kg', name='ck_inventory_allocated_within_total'),
    )
    op.create_index('ix_inventory_sku_id', 'inventory', ['sku_id'])

    op.create_table('inventory_transactions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('inventory_id', sa.Integer(), sa.ForeignKey('inventory.id'), nullable=False),
        sa.Column('sku_id', sa.Integer(), nullable=False),
        sa.Column('transaction_type', sa.String(length=32), nullable=False),
        sa.Column('quantity_kg', sa.Numeric(12, 3), nullable=False),
        sa.Column('reference_type', sa.String(length=50), nullable=True),
        sa.Column('reference_id', sa.Integer(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP')),
    )
    op.create_index('ix_inventory_transactions_inventory_id', 'inventory_transactions', ['inventory_id'])
    op.create_index('ix_inventory_transactions_sku_id', 'inventory_transactions', ['sku_id'])

    op.create_table('client_orders',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('client_id', sa.Integer(), sa.ForeignKey('clients.id'), nullable=False),
        sa.Column('sku_id', sa.Integer(), sa.ForeignKey('matcha_skus.id'), nullable=False),
        sa.Column('quantity_kg', sa.Numeric(12, 3), nullable=False),
        sa.Column('unit_price_sgd', sa.Numeric(12, 2), nullable=False),
        sa.Column('total_price_sgd', sa.Numeric(12, 2), nullable=False),
        sa.Column('profit_sgd', sa.Numeric(12, 2), nullable=True),
        sa.Column('order_date', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('delivery_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('status', sa.String(length=32), nullable=False, server_default='pending'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_by', sa.Integer(), nullable=True),
        *_stamps(),
    )
    op.create_index('ix_client_orders_client_id', 'client_orders', ['client_id'])
    op.create_index('ix_client_orders_sku_id', 'client_orders', ['sku_id'])
    op.create_index('ix_client_orders_order_date', 'client_orders', ['order_date'])
    op.create_index('ix_client_orders_status', 'client_orders', ['status'])

    op.create_table('supplier_orders',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('supplier_id', sa.Integer(), sa.ForeignKey('suppliers.id'), nullable=False),
        sa.Column('order_date', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('expected_arrival_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('actual_arrival_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('total_cost_jpy', sa.Numeric(14, 2), nullable=True),
        sa.Column('total_cost_sgd', sa.Numeric(14, 2), nullable=True),
        sa.Column('exchange_rate_used', sa.Numeric(10, 4), nullable=True),
        sa.Column('status', sa.String(length=32), nullable=False, server_default='draft'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_by', sa.Integer(), nullable=True),
        *_stamps(),
    )
    op.create_index('ix_supplier_orders_supplier_id', 'supplier_orders', ['supplier_id'])
    op.create_index('ix_supplier_orders_status', 'supplier_orders', ['status'])

    op.create_table('supplier_order_items',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('supplier_order_id', sa.Integer(), sa.ForeignKey('supplier_orders.id', ondelete='CASCADE'), nullable=False),
        sa.Column('sku_id', sa.Integer(), sa.ForeignKey('matcha_skus.id'), nullable=False),
        sa.Column('quantity_kg', sa.Numeric(12, 3), nullable=False),
        sa.Column('unit_price_jpy', sa.Numeric(12, 2), nullable=False),
        sa.Column('total_price_jpy', sa.Numeric(14, 2), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP')),
    )
    op.create_index('ix_supplier_order_items_supplier_order_id', 'supplier_order_items', ['supplier_order_id'])

    op.create_table('demand_forecasts',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('client_id', sa.Integer(), sa.ForeignKey('clients.id'), nullable=True),
        sa.Column('sku_id', sa.Integer(), sa.ForeignKey('matcha_skus.id'), nullable=True),
        sa.Column('forecast_month', sa.String(length=7), nullable=False),
        sa.Column('projected_demand_kg', sa.Numeric(12, 3), nullable=False),
        sa.Column('actual_demand_kg', sa.Numeric(12, 3), nullable=True),
        sa.Column('confidence_level', sa.Numeric(5, 2), nullable=True),
        sa.Column('ai_generated', sa.Boolean(), server_default=sa.text('0')),
        sa.Column('notes', sa.Text(), nullable=True),
        *_stamps(),
    )
    op.create_index('ix_demand_forecasts_client_id', 'demand_forecasts', ['client_id'])
    op.create_index('ix_demand_forecasts_sku_id', 'demand_forecasts', ['sku_id'])
    op.create_index('ix_demand_forecasts_forecast_month', 'demand_forecasts', ['forecast_month'])

    op.create_table('notifications',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('type', sa.String(length=32), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('severity', sa.String(length=16), nullable=False, server_default='info'),
        sa.Column('is_read', sa.Boolean(), server_default=sa.text('0')),
        sa.Column('entity_type', sa.String(length=64), nullable=True),
        sa.Column('entity_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP')),
    )
    op.create_index('ix_notifications_user_id', 'notifications', ['user_id'])
    op.create_index('ix_notifications_is_read', 'notifications', ['is_read'])

    op.create_table('system_settings',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('key', sa.String(length=100), nullable=False, unique=True),
        sa.Column('value', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('updated_by', sa.Integer(), nullable=True),
        *_stamps(with_created=False),
    )
    op.create_index('ix_system_settings_key', 'system_settings', ['key'])

    op.create_table('data_versions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('entity_type', sa.String(length=64), nullable=False),
        sa.Column('entity_id', sa.Integer(), nullable=False),
        sa.Column('version_number', sa.Integer(), nullable=False),
        sa.Column('data', sa.JSON(), nullable=False),
        sa.Column('change_description', sa.Text(), nullable=True),
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.Column('created_by_name', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP')),
    )
    with op.batch_alter_table('data_versions') as batch_op:
        batch_op.create_unique_constraint('uq_data_version_number', ['entity_type', 'entity_id', 'version_number'])


def downgrade():
    for tbl in [
        'data_versions', 'system_settings', 'notifications', 'demand_forecasts', 'supplier_order_items',
        'supplier_orders', 'client_orders', 'inventory_transactions', 'inventory', 'client_product_relations',
        'exchange_rates', 'pricing', 'matcha_skus', 'audit_logs', 'security_states', 'revoked_tokens',
        'users', 'clients', 'suppliers',
    ]:
        op.drop_table(tbl)
