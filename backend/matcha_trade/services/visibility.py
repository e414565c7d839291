"""Field-level masking of financial data.

Responses are walked recursively and any sensitive key the caller may not see is
replaced by MASK. Panic mode masks every sensitive key regardless of role.
"""
from __future__ import annotations
from typing import Any, Dict, Mapping
from flask import json

from matcha_trade.config.business import MASK

COST_FIELDS = frozenset({
    'cost_price_jpy', 'landed_cost_sgd', 'exchange_rate', 'unit_price_jpy', 'total_price_jpy',
    'total_cost_jpy', 'total_cost_sgd', 'cost_sgd', 'landed_cost', 'shipping_fee_per_kg',
    'import_tax_rate', 'exchange_rate_used', 'tax',
})
MARGIN_FIELDS = frozenset({
    'profit_sgd', 'margin_percent', 'profit_per_kg', 'monthly_profit', 'annual_profit', 'total_profit',
})
TERMS_FIELDS = frozenset({'payment_terms', 'special_discount'})

FIELD_CAPABILITY = {
    **{f: 'can_view_costs' for f in COST_FIELDS},
    **{f: 'can_view_margins' for f in MARGIN_FIELDS},
    **{f: 'can_view_supplier_terms' for f in TERMS_FIELDS},
}


def hidden_fields(capabilities: Mapping[str, bool], panic: bool = False) -> frozenset:
    if panic:
        return frozenset(FIELD_CAPABILITY)
    return frozenset(f for f, cap in FIELD_CAPABILITY.items() if not capabilities.get(cap))


def _walk(value: Any, hidden: frozenset):
    if isinstance(value, dict):
        return {
            k: (MASK if k in hidden and v is not None else _walk(v, hidden))
            for k, v in value.items()
        }
    if isinstance(value, list):
        return [_walk(v, hidden) for v in value]
    return value


def redact(payload: Any, capabilities: Mapping[str, bool], panic: bool = False):
    """Return a copy of payload with hidden fields masked."""
    hidden = hidden_fields(capabilities, panic)
    if not hidden:
        return payload
    return _walk(payload, hidden)


def redact_response(response, capabilities: Dict[str, bool], panic: bool = False):
    if not response.is_json or response.status_code == 304:
        return response
    data = response.get_json(silent=True)
    if data is None:
        return response
    hidden = hidden_fields(capabilities, panic)
    if hidden:
        response.set_data(json.dumps(_walk(data, hidden)))
    return response

__all__ = ['COST_FIELDS', 'MARGIN_FIELDS', 'TERMS_FIELDS', 'hidden_fields', 'redact', 'redact_response']
