from __future__ import annotations
from typing import Callable, Iterable, Optional, Tuple
from flask import request, abort, make_response, jsonify, g
from sqlalchemy.orm import Query
from matcha_trade.config.pagination import normalize_pagination, DEFAULT_LIMIT
from matcha_trade.services.visibility import hidden_fields
import hashlib
from datetime import datetime, timezone, timedelta
from email.utils import parsedate_to_datetime, format_datetime

TIMESTAMP_TOLERANCE = timedelta(seconds=1)

def canonicalize_timestamp(dt: datetime) -> datetime:
    """Return UTC tz-aware timestamp truncated to whole seconds (microseconds removed)."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).replace(microsecond=0)

def _iso(dt: datetime) -> str:
    return canonicalize_timestamp(dt).isoformat().replace('+00:00', 'Z')

def apply_pagination(q: Query, default_limit: int = DEFAULT_LIMIT) -> Tuple[Query, int, int, int]:
    try:
        limit, offset = normalize_pagination(request.args.get('limit'), request.args.get('offset'), default_limit)
    except ValueError as e:
        abort(400, description=str(e))
    total = q.count()
    return q.offset(offset).limit(limit), total, limit, offset

def visibility_token() -> str:
    """Masked field set of the current caller; a 304 must never revive a body redacted differently."""
    caps = g.get('capabilities')
    if caps is None:
        return ''
    return ','.join(sorted(hidden_fields(caps, g.get('panic', False))))

def compute_etag(ids: Iterable[int], total: int, limit: int, offset: int, latest_ts: Optional[str] = '',
                 visibility: str = '') -> str:
    seed = f"{list(ids)}|{total}|{limit}|{offset}|{latest_ts or ''}|{visibility}"
    return hashlib.sha256(seed.encode()).hexdigest()[:32]

def build_list_payload(rows: list, total: int, limit: int, offset: int):
    return {
        'data': rows,
        'pagination': {
            'total': total,
            'limit': limit,
            'offset': offset,
            'returned': len(rows)
        }
    }

def _http_date(dt: datetime) -> str:
    """Return RFC1123 HTTP-date string in GMT."""
    return format_datetime(dt, usegmt=True)

def _set_validators(resp, etag: str, latest_ts: Optional[datetime]):
    resp.headers['ETag'] = etag
    if latest_ts:
        latest_c = canonicalize_timestamp(latest_ts)
        resp.headers['Last-Modified'] = _http_date(latest_c)
        # canonical ISO copy for clients that prefer it
        resp.headers['X-Last-Modified-ISO'] = _iso(latest_c)
    return resp

def latest_timestamp(rows: list, attr: str = 'updated_at') -> Optional[datetime]:
    stamps = [canonicalize_timestamp(getattr(r, attr)) for r in rows if getattr(r, attr, None) is not None]
    return max(stamps) if stamps else None

def make_cached_list_response(rows: list, total: int, limit: int, offset: int, latest_ts: Optional[datetime] = None):
    ids = [r.get('id') for r in rows]
    latest_iso = _iso(latest_ts) if isinstance(latest_ts, datetime) else ''
    etag = compute_etag(ids, total, limit, offset, latest_iso, visibility_token())
    resp = make_response(build_list_payload(rows, total, limit, offset))
    _set_validators(resp, etag, latest_ts)
    return resp, etag

def _parse_if_modified_since(header_val: str) -> Optional[datetime]:
    if not header_val:
        return None
    try:
        dt = datetime.fromisoformat(header_val.replace('Z', '+00:00'))
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt
    except ValueError:
        pass
    try:
        dt = parsedate_to_datetime(header_val)
    except (TypeError, ValueError):
        return None
    if dt and dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt

def handle_conditional(etag_value: str, latest_ts: Optional[datetime]):
    """Evaluate conditional request headers.

    Precedence: If-None-Match over If-Modified-Since (per RFC 9110 semantics).
    Returns a 304 response object if conditions satisfied, else None.
    """
    inm = request.headers.get('If-None-Match')
    if inm and inm.strip('"') == etag_value:
        return _set_validators(make_response('', 304), etag_value, latest_ts)
    ims_raw = request.headers.get('If-Modified-Since')
    if not inm and ims_raw and latest_ts:
        ims_dt = _parse_if_modified_since(ims_raw)
        if ims_dt and canonicalize_timestamp(latest_ts) <= canonicalize_timestamp(ims_dt) + TIMESTAMP_TOLERANCE:
            return _set_validators(make_response('', 304), etag_value, latest_ts)
    return None

def respond_list(q: Query, serialize: Callable, ts_attr: str = 'updated_at', default_limit: int = DEFAULT_LIMIT):
    """Paginate q, serialize rows and answer GET/HEAD with cache validators (or 304)."""
    paged_q, total, limit, offset = apply_pagination(q, default_limit)
    rows = paged_q.all()
    latest_ts = latest_timestamp(rows, ts_attr)
    resp, etag = make_cached_list_response([serialize(r) for r in rows], total, limit, offset, latest_ts)
    cond = handle_conditional(etag, latest_ts)
    if cond:
        return cond
    if request.method == 'HEAD':
        resp.set_data(b'')
    return resp

def respond_single(obj, body: dict, ts_attr: str = 'updated_at'):
    latest_ts = getattr(obj, ts_attr, None)
    etag = compute_etag([obj.id], 1, 1, 0, _iso(latest_ts) if latest_ts else '', visibility_token())
    cond = handle_conditional(etag, latest_ts)
    if cond:
        return cond
    resp = _set_validators(make_response(jsonify(body)), etag, latest_ts)
    if request.method == 'HEAD':
        resp.set_data(b'')
    return resp
