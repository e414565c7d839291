"""Business defaults shared by pricing, inventory and alerting services."""
from decimal import Decimal

DEFAULT_SHIPPING_FEE_PER_KG = Decimal('15.00')  # SGD
DEFAULT_IMPORT_TAX_RATE = Decimal('0.09')
DEFAULT_LOW_STOCK_THRESHOLD_KG = Decimal('5')

# Landed cost movement (percent) that raises a price_change notification
PRICE_CHANGE_WARNING_PCT = Decimal('5')
PRICE_CHANGE_CRITICAL_PCT = Decimal('10')

LOW_MARGIN_WARNING_PCT = Decimal('15')

DEFAULT_SUPPLIER_COUNTRY = 'Japan'
DEFAULT_LEAD_TIME_DAYS = 30
DEFAULT_ORDER_CADENCE_DAYS = 45

MASK = '••••••'
