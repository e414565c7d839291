"""Audit logging decorator to reduce repetitive add_audit() calls in route handlers.

Usage examples:

@audit_log('CREATE', entity='supplier', entity_id_key='id')
def create_supplier():
    ... return _supplier_json(s), 201

@audit_log('UPDATE', entity='supplier', entity_id_key='id',
           diff_keys=Supplier.VERSIONED_FIELDS,
           pre_fetch=lambda a, kw: _prefetch_supplier(kw.get('supplier_id')))
def update_supplier(supplier_id): ...

Parameters:
  action: required audit action code (e.g. CREATE, UPDATE, SETTING.SET)
  entity: optional entity type label (supplier, client, sku, ...)
  entity_id_key: key in the returned JSON object whose value becomes entity_id.
  entity_id_arg: name of the path parameter to use for entity_id (fallback if entity_id_key absent).
  meta_keys: list of keys to project from returned JSON into meta dict (shallow copy).
  meta_builder: callable returning a meta dict; receives (data, original_return_value, args, kwargs).
    If provided it overrides meta_keys.
  diff_keys / pre_fetch: pre_fetch returns the JSON snapshot before the change; it is stored
    as previous_data and changed diff_keys land in meta['changes'].
  record_new_data: store the returned JSON as new_data (default True).

Return handling:
  Flask view functions commonly return one of:
    dict
    (dict, status)
    (dict, status, headers)
  The decorator extracts the first element as the JSON payload while preserving the original
  return value. The payload is captured before response redaction runs.

Simulated requests (simulation mode) are never audited.
"""
from __future__ import annotations

import logging
from functools import wraps
from typing import Any, Callable, Iterable, Optional, Dict
from flask import g

from matcha_trade.services.audit import add_audit
from matcha_trade import get_db

logger = logging.getLogger(__name__)


def _extract_payload(rv: Any):
    """Return (data, original_rv) where data is the JSON-able dict for inspection."""
    if isinstance(rv, tuple) and rv:
        data = rv[0]
        return data, rv
    return rv, rv


def _diff(before: Dict[str, Any], after: Dict[str, Any], keys: Iterable[str]) -> Dict[str, Any]:
    changes = {}
    for k in keys:
        if k in before and k in after and before.get(k) != after.get(k):
            changes[k] = {'before': before.get(k), 'after': after.get(k)}
    return changes


def audit_log(
    action: str,
    *,
    entity: Optional[str] = None,
    entity_id_key: Optional[str] = None,
    entity_id_arg: Optional[str] = None,
    meta_keys: Optional[Iterable[str]] = None,
    meta_builder: Optional[Callable[[dict, Any, tuple, dict], dict]] = None,
    commit: bool = True,
    diff_keys: Optional[Iterable[str]] = None,
    pre_fetch: Optional[Callable[[tuple, dict], Optional[Dict[str, Any]]]] = None,
    record_new_data: bool = True,
):
    def outer(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            before_snapshot = pre_fetch(args, kwargs) if pre_fetch else None
            rv = fn(*args, **kwargs)
            if g.get('simulated'):
                return rv
            try:
                data, _ = _extract_payload(rv)
                if not isinstance(data, dict):
                    data = {}
                entity_id = None
                if entity_id_key and entity_id_key in data:
                    entity_id = data.get(entity_id_key)
                elif entity_id_arg and entity_id_arg in kwargs:
                    entity_id = kwargs.get(entity_id_arg)
                meta = None
                if meta_builder:
                    meta = meta_builder(data, rv, args, kwargs)
                elif meta_keys:
                    meta = {k: data.get(k) for k in meta_keys if k in data}
                if diff_keys and isinstance(before_snapshot, dict):
                    changes = _diff(before_snapshot, data, diff_keys)
                    if changes:
                        meta = dict(meta or {})
                        meta['changes'] = changes
                add_audit(
                    action, entity, entity_id,
                    previous_data=before_snapshot if isinstance(before_snapshot, dict) else None,
                    new_data=data if (record_new_data and data) else None,
                    meta=meta,
                )
                if commit:
                    get_db().commit()
            except Exception:
                # the mutation itself is already committed; keep the response
                logger.exception('audit write failed for %s', action)
                get_db().rollback()
            return rv
        return wrapper
    return outer
