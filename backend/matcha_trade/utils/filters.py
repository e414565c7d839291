from __future__ import annotations
from typing import Any, Dict
from flask import abort


def eq(column):
    return lambda qu, v: qu.filter(column == v)


def contains(column):
    return lambda qu, v: qu.filter(column.ilike(f'%{v}%'))


def apply_filters(query, specs: Dict[str, Dict[str, Any]], params: Dict[str, Any]):
    """Generic filter builder.

    specs: { param_name: { 'op': callable(query, value)->query, 'coerce': type/func, 'validate': callable(optional) } }
    Params that are absent or empty are skipped.
    """
    for name, meta in specs.items():
        raw = params.get(name)
        if raw is None or raw == '':
            continue
        val = raw
        if 'coerce' in meta:
            try:
                val = meta['coerce'](val)
            except (TypeError, ValueError):
                abort(400, description=f'{name} invalid')
        if 'validate' in meta and not meta['validate'](val):
            abort(400, description=f'{name} invalid')
        query = meta['op'](query, val)
    return query


def parse_bool_param(raw: str) -> bool:
    if raw.lower() in ('true', '1', 'yes'):
        return True
    if raw.lower() in ('false', '0', 'no'):
        return False
    raise ValueError(raw)

__all__ = ['apply_filters', 'eq', 'contains', 'parse_bool_param']
