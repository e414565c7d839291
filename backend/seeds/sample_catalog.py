"""Seed definitions for demo accounts, default settings and a sample trading book.
(Consumed by scripts/seed_data.py – used as a single source of truth.)
"""

# email -> (name, role, linked client name or None)
USERS = {
    'admin@example.com': ('Owner', 'super_admin', None),
    'manager@example.com': ('Ops Manager', 'manager', None),
    'staff@example.com': ('Warehouse Staff', 'employee', None),
    'buyer@kissa.example.com': ('Kissa Buyer', 'business_client', 'Kissa Cafe'),
}

SETTINGS = {
    'default_shipping_fee_per_kg': ('15.00', 'SGD per kg added to landed cost'),
    'default_import_tax_rate': ('0.09', 'GST applied on import'),
    'low_stock_threshold_kg': ('5', 'Default alert threshold for new SKUs'),
    'session_timeout_minutes': ('15', 'Inactivity before the session locks'),
}

SUPPLIERS = [
    {'name': 'Uji Hikari Farm', 'region': 'Uji, Kyoto', 'lead_time_days': 30, 'order_cadence_days': 45},
    {'name': 'Nishio Green Co', 'region': 'Nishio, Aichi', 'lead_time_days': 21, 'order_cadence_days': 30},
]

CLIENTS = [
    {'name': 'Kissa Cafe', 'business_type': 'cafe', 'payment_terms': 'NET30', 'special_discount': '5'},
    {'name': 'Sora Patisserie', 'business_type': 'retailer', 'payment_terms': 'COD', 'special_discount': '0'},
]

# (supplier name, sku name, grade, quality tier, cost JPY/kg, JPY per SGD, sell SGD/kg, stock kg)
SKUS = [
    ('Uji Hikari Farm', 'Hikari Ceremonial', 'ceremonial', 5, '28000', '110', '420', '12'),
    ('Uji Hikari Farm', 'Hikari Premium', 'premium', 4, '16000', '110', '260', '20'),
    ('Nishio Green Co', 'Nishio Culinary', 'culinary', 3, '7000', '110', '120', '40'),
    ('Nishio Green Co', 'Nishio Latte Grade', 'food_grade', 2, '4200', '110', '80', '3'),
]
