"""Deterministic OpenAPI spec builder.

Scope:
- Auth and security endpoints
- For each tracked entity: list + single GET & HEAD with caching headers
- Mutations with their required permission
- Reusable params: limit, offset, per-entity sort

Schemas are derived from the mapped tables so they cannot drift from the models.
`create_app` serves the result at /openapi.json.
"""
from typing import Any, Dict, Optional
from .openapi_parts.constants import ENTITIES, MUTATIONS, SORT_DETAILS
from .openapi_parts.paths import build_entity_paths, build_mutation, schema_from_model, path_params
from .models.authz import User
from .models.audit import AuditLog
from .models.supplier import Supplier
from .models.client import Client
from .models.sku import MatchaSku
from .models.pricing import Pricing, ExchangeRate
from .models.relation import ClientProductRelation
from .models.inventory import Inventory, InventoryTransaction
from .models.client_order import ClientOrder
from .models.supplier_order import SupplierOrder
from .models.forecast import DemandForecast
from .models.notification import Notification
from .models.setting import SystemSetting

__all__ = ["build_openapi_spec"]

SCHEMA_MODELS = {
    "Supplier": Supplier,
    "Client": Client,
    "MatchaSku": MatchaSku,
    "Pricing": Pricing,
    "ExchangeRate": ExchangeRate,
    "ClientProductRelation": ClientProductRelation,
    "Inventory": Inventory,
    "InventoryTransaction": InventoryTransaction,
    "ClientOrder": ClientOrder,
    "SupplierOrder": SupplierOrder,
    "DemandForecast": DemandForecast,
    "Notification": Notification,
    "SystemSetting": SystemSetting,
    "AuditLog": AuditLog,
    "User": User,
}


def _simple(summary: str, permission: Optional[str] = None, method_ok: str = "200") -> Dict[str, Any]:
    op: Dict[str, Any] = {"summary": summary, "responses": {method_ok: {"description": "OK"}}}
    if permission:
        op["x-required-permissions"] = [permission]
    return op


def build_openapi_spec() -> Dict[str, Any]:
    schemas = {name: schema_from_model(SCHEMA_MODELS[name]) for name, *_ in ENTITIES}
    # Status lifecycles enforced at runtime
    schemas["ClientOrder"]["x-transitions"] = list(ClientOrder.ALL_STATUSES)
    schemas["SupplierOrder"]["x-transitions"] = list(SupplierOrder.ALL_STATUSES)

    components: Dict[str, Any] = {
        "schemas": schemas
        | {
            "Pagination": {
                "type": "object",
                "properties": {
                    "total": {"type": "integer"},
                    "limit": {"type": "integer"},
                    "offset": {"type": "integer"},
                    "returned": {"type": "integer"},
                },
                "required": ["total", "limit", "offset", "returned"],
            },
            "Error": {
                "type": "object",
                "properties": {
                    "error": {
                        "type": "object",
                        "properties": {
                            "status": {"type": "integer"},
                            "title": {"type": "string"},
                            "detail": {"type": "string"},
                        },
                    }
                },
                "required": ["error"],
            },
        },
        "responses": {
            "NotFound": {"description": "Not Found"},
            "BadRequest": {"description": "Bad Request"},
            "Forbidden": {"description": "Forbidden"},
            "Locked": {"description": "Session locked (panic mode)"},
        },
        "securitySchemes": {"BearerAuth": {"type": "http", "scheme": "bearer", "bearerFormat": "JWT"}},
        "parameters": {},
    }

    params = components["parameters"]
    params.update({
        "LimitParam": {"name": "limit", "in": "query", "schema": {"type": "integer", "default": 50}},
        "OffsetParam": {"name": "offset", "in": "query", "schema": {"type": "integer", "default": 0}},
    })
    for pname, desc in SORT_DETAILS.items():
        params[pname] = {"name": "sort", "in": "query", "schema": {"type": "string"}, "description": desc}

    paths: Dict[str, Any] = {
        "/iam/auth/login": {"post": {**_simple("Login"), "security": []}},
        "/iam/auth/logout": {"post": _simple("Revoke current token")},
        "/iam/auth/me": {"get": _simple("Current user with permissions and capabilities")},
        "/iam/auth/navigation": {"get": _simple("Navigation items visible to the caller")},
        "/iam/auth/can-access": {"get": _simple("Whether the caller may open a dashboard path")},
        "/security/state": {"get": _simple("Panic, simulation and watermark state")},
        "/security/panic": {"post": _simple("Lock the session")},
        "/security/unlock": {"post": _simple("Unlock the session")},
        "/security/simulation": {"post": _simple("Toggle simulation mode")},
        "/security/export-confirmations": {"post": _simple("Confirm an export", method_ok="201")},
        "/exports/{dataset}": {"get": {**_simple("Download a watermarked CSV export"),
                                       "parameters": path_params("/exports/{dataset}")}},
        "/analytics/monthly-profit": {"get": _simple("Monthly profit", "analytics:financial")},
        "/analytics/client-profitability": {"get": _simple("Profit by client", "analytics:financial")},
        "/analytics/sku-profitability": {"get": _simple("Profit by SKU", "analytics:financial")},
        "/analytics/business-context": {"get": _simple("Trading book snapshot", "analytics:financial")},
        "/analytics/my-account": {"get": _simple("Client account summary", "analytics:view")},
        "/forecasts/predictions": {"get": _simple("Demand predictions", "ai:predictions")},
        "/versions/{entity_type}/{entity_id}": {"get": {**_simple("Version history", "audit:view"),
                                                        "parameters": path_params("/versions/{entity_type}/{entity_id}")}},
    }

    for schema_name, list_path, single_path, permission in ENTITIES:
        for k, v in build_entity_paths(schema_name, list_path, single_path, permission).items():
            paths.setdefault(k, {}).update(v)

    for path, method, summary, permission in MUTATIONS:
        paths.setdefault(path, {})[method] = build_mutation(path, method, summary, permission)

    # Add operationIds & tags
    tag_desc: Dict[str, str] = {}
    for path, ops in paths.items():
        tag = path.split("/")[1].capitalize()
        for method, od in ops.items():
            rid = path.strip("/").replace("/", "_").replace("{", "").replace("}", "").replace("-", "_")
            od["operationId"] = f"{method}_{rid}"
            od["tags"] = [tag]
        tag_desc[tag] = f"{tag} endpoints"

    return {
        "openapi": "3.0.3",
        "info": {"title": "Matcha Trade Desk API", "version": "0.1.0"},
        "paths": paths,
        "components": components,
        "security": [{"BearerAuth": []}],
        "tags": [{"name": n, "description": d} for n, d in sorted(tag_desc.items())],
    }
