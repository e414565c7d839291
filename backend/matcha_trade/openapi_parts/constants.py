"""Centralized constants for the OpenAPI spec builder.

Ordering here is the ordering of the generated document, so keep additions at the
end of each registry.
"""
from typing import Dict, List, Optional, Tuple

# Entity registry: (SchemaName, list path, single path or None, read permission)
ENTITIES: List[Tuple[str, str, Optional[str], str]] = [
    ("Supplier", "/catalog/suppliers", "/catalog/suppliers/{supplier_id}", "suppliers:view"),
    ("Client", "/catalog/clients", "/catalog/clients/{client_id}", "clients:view"),
    ("MatchaSku", "/catalog/skus", "/catalog/skus/{sku_id}", "products:view"),
    ("Pricing", "/pricing", "/pricing/{pricing_id}", "pricing:view"),
    ("ExchangeRate", "/pricing/exchange-rates", None, "pricing:view"),
    ("ClientProductRelation", "/pricing/relations", "/pricing/relations/{relation_id}", "pricing:view"),
    ("Inventory", "/inventory", "/inventory/sku/{sku_id}", "inventory:view"),
    ("InventoryTransaction", "/inventory/transactions", None, "inventory:view"),
    ("ClientOrder", "/orders/client", "/orders/client/{order_id}", "orders:view"),
    ("SupplierOrder", "/orders/supplier", "/orders/supplier/{order_id}", "orders:view"),
    ("DemandForecast", "/forecasts", None, "orders:view"),
    ("Notification", "/notifications", None, "notifications:view"),
    ("SystemSetting", "/settings", "/settings/{key}", "settings:view"),
    ("AuditLog", "/iam/audit/logs", None, "audit:view"),
    ("User", "/iam/users", None, "users:view"),
]

# State-changing endpoints: (path, method, summary, permission or tier)
MUTATIONS: List[Tuple[str, str, str, str]] = [
    ("/catalog/suppliers", "post", "Create supplier", "suppliers:create"),
    ("/catalog/suppliers/{supplier_id}", "put", "Update supplier", "suppliers:update"),
    ("/catalog/suppliers/{supplier_id}", "delete", "Deactivate supplier", "suppliers:delete"),
    ("/catalog/clients", "post", "Create client", "clients:create"),
    ("/catalog/clients/{client_id}", "put", "Update client", "clients:update"),
    ("/catalog/clients/{client_id}", "delete", "Deactivate client", "clients:delete"),
    ("/catalog/skus", "post", "Create SKU", "products:create"),
    ("/catalog/skus/{sku_id}", "put", "Update SKU", "products:update"),
    ("/catalog/skus/{sku_id}", "delete", "Deactivate SKU", "products:delete"),
    ("/pricing", "post", "Set current price", "pricing:update"),
    ("/pricing/{pricing_id}", "put", "Update price", "pricing:update"),
    ("/pricing/exchange-rates", "post", "Record exchange rate", "pricing:update"),
    ("/pricing/relations", "post", "Create client-product relation", "pricing:update"),
    ("/pricing/relations/{relation_id}", "put", "Update client-product relation", "pricing:update"),
    ("/pricing/relations/{relation_id}", "delete", "Delete client-product relation", "pricing:update"),
    ("/inventory/sku/{sku_id}", "put", "Update inventory levels", "inventory:update"),
    ("/inventory/transactions", "post", "Record inventory transaction", "inventory:update"),
    ("/orders/client", "post", "Create client order", "orders:create"),
    ("/orders/client/{order_id}", "put", "Update client order", "orders:update"),
    ("/orders/client/{order_id}", "delete", "Delete client order", "orders:delete"),
    ("/orders/supplier", "post", "Create supplier order", "orders:create"),
    ("/orders/supplier/{order_id}", "put", "Update supplier order", "orders:update"),
    ("/orders/supplier/{order_id}/items", "post", "Add supplier order item", "orders:update"),
    ("/forecasts", "post", "Create forecast", "orders:update"),
    ("/forecasts/{forecast_id}", "put", "Record actual demand", "orders:update"),
    ("/versions/{entity_type}/{entity_id}/rollback", "post", "Roll back to a version", "tier:admin"),
    ("/notifications", "post", "Send notification", "notifications:manage"),
    ("/settings/{key}", "put", "Upsert setting", "settings:update"),
    ("/iam/users/{user_id}/role", "put", "Change user role", "users:manage_roles"),
]

SORT_PARAM_MAP: Dict[str, str] = {
    "Supplier": "SortSuppliersParam",
    "Client": "SortClientsParam",
    "MatchaSku": "SortSkusParam",
}

SORT_DETAILS: Dict[str, str] = {
    "SortSuppliersParam": "Multi-field sort (name,created_at,updated_at,id). Prefix - for desc",
    "SortClientsParam": "Multi-field sort (name,created_at,updated_at,id). Prefix - for desc",
    "SortSkusParam": "Multi-field sort (name,created_at,updated_at,id). Prefix - for desc",
}

__all__ = [
    "ENTITIES",
    "MUTATIONS",
    "SORT_PARAM_MAP",
    "SORT_DETAILS",
]
