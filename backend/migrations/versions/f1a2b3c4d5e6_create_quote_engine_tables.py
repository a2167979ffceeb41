"""create_quote_engine_tables

Revision ID: f1a2b3c4d5e6
Revises:
Create Date: 2026-10-16 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'f1a2b3c4d5e6'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


product_type = sa.Enum('GARDEN_ROOM', 'HOUSE_EXTENSION', 'HOUSE_BUILD', name='producttype')
floor_type = sa.Enum('NONE', 'WOODEN', 'TILE', name='floortype')
wall_finish = sa.Enum('NONE', 'PANEL', 'SKIM_PAINT', name='internalwallfinish')
glazing_type = sa.Enum('WINDOW', 'EXTERNAL_DOOR', 'SKYLIGHT', name='glazingelementtype')
payment_status = sa.Enum(
    'PRE_QUOTE', 'QUOTED', 'DEPOSIT_PAID', 'IN_PRODUCTION', 'COMPLETED', 'CANCELLED', 'REFUNDED',
    name='paymentstatus',
)
payment_type = sa.Enum('DEPOSIT', 'INSTALLMENT', 'FINAL', 'REFUND', 'ADJUSTMENT', name='paymenttype')


def upgrade() -> None:
    """Create configuration, quote, payment, counter and audit tables."""
    op.create_table(
        'product_configurations',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('product_type', product_type, nullable=False),
        sa.Column('width_m', sa.Numeric(8, 3), nullable=False),
        sa.Column('depth_m', sa.Numeric(8, 3), nullable=False),
        sa.Column('height_m', sa.Numeric(8, 3), nullable=False),
        sa.Column('cladding_area_sqm', sa.Numeric(10, 2), nullable=False),
        sa.Column('bathroom_half', sa.Integer(), nullable=False),
        sa.Column('bathroom_three_quarter', sa.Integer(), nullable=False),
        sa.Column('electrical_switches', sa.Integer(), nullable=False),
        sa.Column('electrical_sockets', sa.Integer(), nullable=False),
        sa.Column('electrical_downlight', sa.Integer(), nullable=False),
        sa.Column('electrical_heater', sa.Integer(), nullable=True),
        sa.Column('electrical_undersink_heater', sa.Integer(), nullable=True),
        sa.Column('electrical_elec_boiler', sa.Integer(), nullable=True),
        sa.Column('internal_doors', sa.Integer(), nullable=False),
        sa.Column('internal_wall_finish', wall_finish, nullable=False),
        sa.Column('internal_wall_area_sqm', sa.Numeric(10, 2), nullable=True),
        sa.Column('heaters', sa.Integer(), nullable=False),
        sa.Column('floor_type', floor_type, nullable=False),
        sa.Column('floor_area_sqm', sa.Numeric(10, 2), nullable=False),
        sa.Column('delivery_distance_km', sa.Numeric(10, 2), nullable=True),
        sa.Column('delivery_cost', sa.Numeric(12, 2), nullable=False),
        sa.Column('extras_esp_insulation', sa.Numeric(10, 2), nullable=True),
        sa.Column('extras_render', sa.Numeric(10, 2), nullable=True),
        sa.Column('extras_steel_door', sa.Integer(), nullable=True),
        sa.Column('extras_other', sa.JSON(), nullable=False),
        sa.Column('permitted_development_flags', sa.JSON(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=False),
        sa.Column('estimate_currency', sa.String(3), nullable=False),
        sa.Column('estimate_subtotal_ex_vat', sa.Numeric(12, 2), nullable=False),
        sa.Column('estimate_vat_rate', sa.Numeric(5, 4), nullable=False),
        sa.Column('estimate_vat_amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('estimate_total_inc_vat', sa.Numeric(12, 2), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_product_configurations_product_type', 'product_configurations', ['product_type'])
    op.create_index('ix_product_configurations_created_at', 'product_configurations', ['created_at'])
    op.create_index('ix_product_configurations_total', 'product_configurations', ['estimate_total_inc_vat'])

    op.create_table(
        'glazing_elements',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('configuration_id', sa.Uuid(), nullable=False),
        sa.Column('element_type', glazing_type, nullable=False),
        sa.Column('width_m', sa.Numeric(8, 3), nullable=False),
        sa.Column('height_m', sa.Numeric(8, 3), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['configuration_id'], ['product_configurations.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_glazing_elements_configuration', 'glazing_elements', ['configuration_id'])

    op.create_table(
        'quote_requests',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('quote_number', sa.String(32), nullable=False),
        sa.Column('configuration_id', sa.Uuid(), nullable=False),
        sa.Column('customer_first_name', sa.String(100), nullable=False),
        sa.Column('customer_last_name', sa.String(100), nullable=False),
        sa.Column('customer_email', sa.String(255), nullable=False),
        sa.Column('customer_phone_prefix', sa.String(8), nullable=False),
        sa.Column('customer_phone_number', sa.String(32), nullable=False),
        sa.Column('customer_address_line1', sa.String(255), nullable=False),
        sa.Column('customer_address_line2', sa.String(255), nullable=True),
        sa.Column('customer_town', sa.String(100), nullable=True),
        sa.Column('customer_county', sa.String(50), nullable=False),
        sa.Column('customer_eircode', sa.String(8), nullable=False),
        sa.Column('desired_install_timeframe', sa.String(100), nullable=True),
        sa.Column('payment_status', payment_status, nullable=False),
        sa.Column('total_paid', sa.Numeric(12, 2), nullable=False),
        sa.Column('expected_installments', sa.Integer(), nullable=True),
        sa.Column('last_payment_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('submitted_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('retention_expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.ForeignKeyConstraint(['configuration_id'], ['product_configurations.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('quote_number', name='uq_quote_requests_quote_number'),
    )
    op.create_index('ix_quote_requests_configuration', 'quote_requests', ['configuration_id'])
    op.create_index('ix_quote_requests_status', 'quote_requests', ['payment_status'])
    op.create_index('ix_quote_requests_email', 'quote_requests', ['customer_email'])
    op.create_index('ix_quote_requests_submitted_at', 'quote_requests', ['submitted_at'])
    op.create_index('ix_quote_requests_retention', 'quote_requests', ['retention_expires_at'])

    op.create_table(
        'payment_history',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('quote_id', sa.Uuid(), nullable=False),
        sa.Column('sequence', sa.Integer(), nullable=False),
        sa.Column('payment_type', payment_type, nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('installment_number', sa.Integer(), nullable=True),
        sa.Column('note', sa.Text(), nullable=True),
        sa.Column('recorded_by', sa.String(100), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.ForeignKeyConstraint(['quote_id'], ['quote_requests.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('quote_id', 'sequence', name='uq_payment_history_quote_sequence'),
    )
    op.create_index('ix_payment_history_quote', 'payment_history', ['quote_id'])

    op.create_table(
        'quote_number_counters',
        sa.Column('epoch', sa.String(16), nullable=False),
        sa.Column('last_value', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('epoch'),
    )

    op.create_table(
        'audit_logs',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('table_name', sa.String(100), nullable=False),
        sa.Column('record_id', sa.String(255), nullable=False),
        sa.Column('action', sa.String(50), nullable=False),
        sa.Column('changed_by', sa.String(100), nullable=True),
        sa.Column('old_values', sa.JSON(), nullable=True),
        sa.Column('new_values', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_audit_table_record', 'audit_logs', ['table_name', 'record_id'])
    op.create_index('ix_audit_created_at', 'audit_logs', ['created_at'])
    op.create_index('ix_audit_action', 'audit_logs', ['action'])


def downgrade() -> None:
    """Drop every quote engine table."""
    op.drop_table('audit_logs')
    op.drop_table('quote_number_counters')
    op.drop_index('ix_payment_history_quote', table_name='payment_history')
    op.drop_table('payment_history')
    op.drop_table('quote_requests')
    op.drop_index('ix_glazing_elements_configuration', table_name='glazing_elements')
    op.drop_table('glazing_elements')
    op.drop_table('product_configurations')
    bind = op.get_bind()
    for enum_type in (payment_type, payment_status, glazing_type, wall_finish, floor_type, product_type):
        enum_type.drop(bind, checkfirst=True)
