from __future__ import annotations
import logging
from decimal import Decimal
from typing import Optional
from flask import abort
from sqlalchemy import select

from matcha_trade import get_db
from matcha_trade.config.business import DEFAULT_LOW_STOCK_THRESHOLD_KG
from matcha_trade.models.inventory import Inventory, InventoryTransaction
from matcha_trade.models.notification import Notification
from matcha_trade.models.sku import MatchaSku
from matcha_trade.utils.dates import utcnow

logger = logging.getLogger(__name__)

ZERO = Decimal('0')


def get_or_create_inventory(sku_id: int) -> Inventory:
    session = get_db()
    inv = session.execute(select(Inventory).where(Inventory.sku_id == sku_id)).scalar_one_or_none()
    if inv is None:
        inv = Inventory(
            sku_id=sku_id,
            total_stock_kg=ZERO,
            allocated_stock_kg=ZERO,
            low_stock_threshold_kg=DEFAULT_LOW_STOCK_THRESHOLD_KG,
        )
        session.add(inv)
        session.flush()
    return inv


def assert_stock_invariant(total: Decimal, allocated: Decimal):
    if total < 0:
        abort(400, description='total_stock_kg cannot be negative')
    if allocated < 0:
        abort(400, description='allocated_stock_kg cannot be negative')
    if allocated > total:
        abort(400, description='allocated_stock_kg cannot exceed total_stock_kg')


def next_levels(transaction_type: str, quantity: Decimal, total: Decimal, allocated: Decimal):
    """Return (total, allocated) after applying a transaction; aborts on invalid input."""
    if transaction_type not in InventoryTransaction.ALL_TYPES:
        abort(400, description='transaction_type invalid')
    if transaction_type != InventoryTransaction.TYPE_ADJUSTMENT and quantity <= 0:
        abort(400, description='quantity_kg must be positive')
    if transaction_type == InventoryTransaction.TYPE_PURCHASE:
        total += quantity
    elif transaction_type == InventoryTransaction.TYPE_SALE:
        total -= quantity
        allocated -= min(quantity, allocated)
    elif transaction_type == InventoryTransaction.TYPE_ALLOCATION:
        allocated += quantity
    elif transaction_type == InventoryTransaction.TYPE_DEALLOCATION:
        allocated -= quantity
    else:
        total += quantity
    assert_stock_invariant(total, allocated)
    return total, allocated


def apply_transaction(sku_id: int, transaction_type: str, quantity: Decimal, *, reference_type: Optional[str] = None,
                      reference_id: Optional[int] = None, notes: Optional[str] = None, user_id: Optional[int] = None):
    """Record a stock movement and update the SKU's inventory row (flushed, not committed)."""
    session = get_db()
    if session.get(MatchaSku, sku_id) is None:
        abort(404, description='SKU not found')
    inv = get_or_create_inventory(sku_id)
    total, allocated = next_levels(
        transaction_type, quantity, Decimal(inv.total_stock_kg), Decimal(inv.allocated_stock_kg),
    )
    inv.total_stock_kg = total
    inv.allocated_stock_kg = allocated
    inv.updated_by = user_id
    if transaction_type == InventoryTransaction.TYPE_PURCHASE:
        inv.last_arrival_date = utcnow()
    txn = InventoryTransaction(
        inventory_id=inv.id,
        sku_id=sku_id,
        transaction_type=transaction_type,
        quantity_kg=quantity,
        reference_type=reference_type,
        reference_id=reference_id,
        notes=notes,
        created_by=user_id,
    )
    session.add(txn)
    session.flush()
    return inv, txn


def low_stock_severity(inv: Inventory) -> Optional[str]:
    """None while stock is comfortable; critical at half the threshold or less."""
    available = inv.available_stock_kg
    threshold = Decimal(inv.low_stock_threshold_kg)
    if available > threshold:
        return None
    if available <= threshold / 2:
        return Notification.SEVERITY_CRITICAL
    return Notification.SEVERITY_WARNING


def low_stock_query():
    session = get_db()
    return session.query(Inventory).filter(
        Inventory.total_stock_kg - Inventory.allocated_stock_kg <= Inventory.low_stock_threshold_kg
    )

__all__ = [
    'get_or_create_inventory', 'assert_stock_invariant', 'next_levels', 'apply_transaction',
    'low_stock_severity', 'low_stock_query',
]
