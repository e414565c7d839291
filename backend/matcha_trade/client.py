"""
Thin HTTP client for the Matcha Trade Desk API.

What it provides:
- JWT login and bearer-authenticated requests over a requests.Session
- query(): GETs cached per URL and revalidated with If-None-Match (a 304 is served from cache)
- mutate(): state-changing calls that drop cached reads under the mutated resource
  and under the related prefixes listed in INVALIDATION_MAP
- ApiError(status, title, detail) for every non-2xx answer
- Typed helpers for the common procedures

Dependencies:
- requests (pip install requests)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Optional, Tuple
from urllib.parse import urlencode

import requests

# Mutating a resource under the key also stales cached reads under these prefixes
INVALIDATION_MAP: Dict[str, Tuple[str, ...]] = {
    "/catalog": ("/versions", "/analytics", "/inventory", "/pricing"),
    "/pricing": ("/analytics", "/notifications"),
    "/inventory": ("/analytics", "/notifications"),
    "/orders": ("/analytics", "/forecasts"),
    "/forecasts": ("/analytics",),
    "/versions": ("/catalog",),
    "/settings": (),
    "/notifications": (),
    "/iam": (),
    # panic and simulation change what every read returns
    "/security": ("/",),
}

# Every mutation writes an audit entry
ALWAYS_INVALIDATE: Tuple[str, ...] = ("/iam/audit",)


class ApiError(RuntimeError):
    def __init__(self, status: int, title: str, detail: Optional[str] = None):
        super().__init__(f"{status} {title}: {detail}" if detail else f"{status} {title}")
        self.status = status
        self.title = title
        self.detail = detail

    @classmethod
    def from_response(cls, resp) -> "ApiError":
        try:
            body = resp.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and isinstance(body.get("error"), dict):
            err = body["error"]
            return cls(err.get("status", resp.status_code), err.get("title", ""), err.get("detail"))
        if isinstance(body, dict) and "msg" in body:
            # flask-jwt-extended token errors
            return cls(resp.status_code, "Unauthorized", body["msg"])
        return cls(resp.status_code, "Error", getattr(resp, "text", None))


@dataclass
class CacheEntry:
    etag: str
    data: Any


def resource_prefix(path: str) -> str:
    """'/pricing/relations/3' -> '/pricing'."""
    head = path.split("?", 1)[0].strip("/").split("/", 1)[0]
    return f"/{head}"


@dataclass
class ApiClient:
    base_url: str
    token: Optional[str] = None
    session: Any = field(default_factory=requests.Session)
    timeout: int = 30
    cache: Dict[str, CacheEntry] = field(default_factory=dict)

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _url(self, path: str) -> str:
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"

    @staticmethod
    def cache_key(path: str, params: Optional[Dict[str, Any]] = None) -> str:
        key = "/" + path.lstrip("/")
        if params:
            clean = {k: v for k, v in params.items() if v is not None}
            if clean:
                key = f"{key}?{urlencode(sorted(clean.items()))}"
        return key

    def _send(self, method: str, path: str, *, json: Any = None, params: Dict[str, Any] | None = None,
              headers: Dict[str, str] | None = None):
        all_headers = self._headers()
        all_headers.update(headers or {})
        clean = {k: v for k, v in (params or {}).items() if v is not None} or None
        return self.session.request(
            method,
            self._url(path),
            json=json,
            params=clean,
            headers=all_headers,
            timeout=self.timeout,
        )

    # ----------------------------
    # Core
    # ----------------------------

    def login(self, email: str, password: str) -> Dict[str, Any]:
        resp = self._send("POST", "/iam/auth/login", json={"email": email, "password": password})
        if resp.status_code >= 400:
            raise ApiError.from_response(resp)
        data = resp.json()
        self.token = data["access_token"]
        self.cache.clear()
        return data

    def logout(self) -> None:
        try:
            self.mutate("POST", "/iam/auth/logout")
        finally:
            self.token = None
            self.cache.clear()

    def query(self, path: str, params: Dict[str, Any] | None = None) -> Any:
        key = self.cache_key(path, params)
        cached = self.cache.get(key)
        headers = {"If-None-Match": cached.etag} if cached else None
        resp = self._send("GET", path, params=params, headers=headers)
        if resp.status_code == 304 and cached:
            return cached.data
        if resp.status_code >= 400:
            raise ApiError.from_response(resp)
        data = resp.json()
        etag = resp.headers.get("ETag")
        if etag:
            self.cache[key] = CacheEntry(etag=etag, data=data)
        return data

    def invalidate(self, prefixes: Iterable[str]) -> None:
        prefixes = tuple(prefixes)
        for key in list(self.cache):
            path = key.split("?", 1)[0]
            if any(p == "/" or path == p or path.startswith(p.rstrip("/") + "/") for p in prefixes):
                del self.cache[key]

    def mutate(self, method: str, path: str, json: Any = None) -> Any:
        resp = self._send(method, path, json=json)
        if resp.status_code >= 400:
            raise ApiError.from_response(resp)
        prefix = resource_prefix(path)
        self.invalidate((prefix,) + INVALIDATION_MAP.get(prefix, ()) + ALWAYS_INVALIDATE)
        if resp.status_code == 204:
            return None
        return resp.json()

    # ----------------------------
    # Catalog
    # ----------------------------

    def list_suppliers(self, **params) -> Any:
        return self.query("/catalog/suppliers", params)

    def get_supplier(self, supplier_id: int) -> Any:
        return self.query(f"/catalog/suppliers/{supplier_id}")

    def create_supplier(self, **fields) -> Any:
        return self.mutate("POST", "/catalog/suppliers", fields)

    def update_supplier(self, supplier_id: int, **fields) -> Any:
        return self.mutate("PUT", f"/catalog/suppliers/{supplier_id}", fields)

    def list_clients(self, **params) -> Any:
        return self.query("/catalog/clients", params)

    def create_client(self, **fields) -> Any:
        return self.mutate("POST", "/catalog/clients", fields)

    def list_skus(self, **params) -> Any:
        return self.query("/catalog/skus", params)

    def create_sku(self, **fields) -> Any:
        return self.mutate("POST", "/catalog/skus", fields)

    # ----------------------------
    # Pricing
    # ----------------------------

    def list_pricing(self, **params) -> Any:
        return self.query("/pricing", params)

    def current_price(self, sku_id: int) -> Any:
        return self.query(f"/pricing/sku/{sku_id}")

    def pricing_history(self, sku_id: int) -> Any:
        return self.query(f"/pricing/sku/{sku_id}/history")

    def create_pricing(self, *, sku_id: int, cost_price_jpy, exchange_rate, selling_price_per_kg,
                       shipping_fee_per_kg=None, import_tax_rate=None) -> Any:
        body = {
            "sku_id": sku_id,
            "cost_price_jpy": cost_price_jpy,
            "exchange_rate": exchange_rate,
            "selling_price_per_kg": selling_price_per_kg,
        }
        if shipping_fee_per_kg is not None:
            body["shipping_fee_per_kg"] = shipping_fee_per_kg
        if import_tax_rate is not None:
            body["import_tax_rate"] = import_tax_rate
        return self.mutate("POST", "/pricing", body)

    def latest_exchange_rate(self) -> Any:
        return self.query("/pricing/exchange-rates/latest")

    def list_relations(self, **params) -> Any:
        return self.query("/pricing/relations", params)

    # ----------------------------
    # Inventory & orders
    # ----------------------------

    def list_inventory(self, **params) -> Any:
        return self.query("/inventory", params)

    def low_stock(self) -> Any:
        return self.query("/inventory/low-stock")

    def create_inventory_transaction(self, *, sku_id: int, transaction_type: str, quantity_kg,
                                     notes: Optional[str] = None, reference_type: Optional[str] = None,
                                     reference_id: Optional[int] = None) -> Any:
        body = {"sku_id": sku_id, "transaction_type": transaction_type, "quantity_kg": quantity_kg}
        for key, value in (("notes", notes), ("reference_type", reference_type), ("reference_id", reference_id)):
            if value is not None:
                body[key] = value
        return self.mutate("POST", "/inventory/transactions", body)

    def list_client_orders(self, **params) -> Any:
        return self.query("/orders/client", params)

    def create_client_order(self, **fields) -> Any:
        return self.mutate("POST", "/orders/client", fields)

    def update_client_order(self, order_id: int, **fields) -> Any:
        return self.mutate("PUT", f"/orders/client/{order_id}", fields)

    # ----------------------------
    # Versions, notifications, analytics
    # ----------------------------

    def versions(self, entity_type: str, entity_id: int) -> Any:
        return self.query(f"/versions/{entity_type}/{entity_id}")

    def rollback(self, entity_type: str, entity_id: int, version_number: int) -> Any:
        return self.mutate("POST", f"/versions/{entity_type}/{entity_id}/rollback",
                           {"version_number": version_number})

    def list_notifications(self, unread_only: bool = False) -> Any:
        return self.query("/notifications", {"unread_only": "true" if unread_only else None})

    def mark_notification_read(self, notification_id: int) -> Any:
        return self.mutate("PUT", f"/notifications/{notification_id}/read")

    def monthly_profit(self, months: int = 12) -> Any:
        return self.query("/analytics/monthly-profit", {"months": months})

    def my_account(self, client_id: Optional[int] = None) -> Any:
        return self.query("/analytics/my-account", {"client_id": client_id})

    # ----------------------------
    # Security
    # ----------------------------

    def security_state(self) -> Any:
        return self.query("/security/state")

    def panic(self) -> Any:
        return self.mutate("POST", "/security/panic")

    def unlock(self, confirm: str) -> Any:
        return self.mutate("POST", "/security/unlock", {"confirm": confirm})

    def set_simulation(self, enabled: bool) -> Any:
        return self.mutate("POST", "/security/simulation", {"enabled": enabled})

    def export_csv(self, dataset: str) -> str:
        """Confirm then download an export; returns the CSV text."""
        confirmation = self.mutate("POST", "/security/export-confirmations",
                                   {"dataset": dataset, "acknowledged": True})
        resp = self._send("GET", f"/exports/{dataset}",
                          headers={"X-Export-Confirmation": confirmation["confirmation_token"]})
        if resp.status_code >= 400:
            raise ApiError.from_response(resp)
        return resp.text


__all__ = ["ApiClient", "ApiError", "CacheEntry", "INVALIDATION_MAP", "resource_prefix"]
