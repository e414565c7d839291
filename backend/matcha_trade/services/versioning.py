"""Point-in-time snapshots of catalog entities and rollback to them.

Snapshot numbers increase per (entity_type, entity_id), starting at 1. A rollback
restores the versioned fields and appends a fresh version, so history is never
rewritten.
"""
from __future__ import annotations
import logging
from decimal import Decimal
from typing import Optional
from flask import abort
from sqlalchemy import select, func, Numeric

from matcha_trade import get_db
from matcha_trade.models.version import DataVersion
from matcha_trade.models.supplier import Supplier
from matcha_trade.models.client import Client
from matcha_trade.models.sku import MatchaSku

logger = logging.getLogger(__name__)

VERSIONED_MODELS = {
    'supplier': Supplier,
    'client': Client,
    'sku': MatchaSku,
}


def _json_value(value):
    if isinstance(value, Decimal):
        return str(value)
    return value


def snapshot(obj) -> dict:
    data = {'id': obj.id}
    for field in obj.VERSIONED_FIELDS:
        data[field] = _json_value(getattr(obj, field))
    return data


def next_version_number(entity_type: str, entity_id: int) -> int:
    session = get_db()
    latest = session.execute(
        select(func.max(DataVersion.version_number))
        .where(DataVersion.entity_type == entity_type, DataVersion.entity_id == entity_id)
    ).scalar()
    return (latest or 0) + 1


def create_version(entity_type: str, obj, description: Optional[str] = None, user=None) -> DataVersion:
    session = get_db()
    version = DataVersion(
        entity_type=entity_type,
        entity_id=obj.id,
        version_number=next_version_number(entity_type, obj.id),
        data=snapshot(obj),
        change_description=description,
        created_by=user.id if user is not None else None,
        created_by_name=(user.name or user.email) if user is not None else None,
    )
    session.add(version)
    return version


def list_versions(entity_type: str, entity_id: int):
    session = get_db()
    return session.execute(
        select(DataVersion)
        .where(DataVersion.entity_type == entity_type, DataVersion.entity_id == entity_id)
        .order_by(DataVersion.version_number.desc())
    ).scalars().all()


def _restore_value(model, field: str, value):
    column = model.__table__.columns.get(field)
    if value is not None and column is not None and isinstance(column.type, Numeric):
        return Decimal(str(value))
    return value


def rollback(entity_type: str, entity_id: int, version_number: int, user=None):
    """Restore entity to version_number. Returns (entity, before_snapshot, new_version)."""
    session = get_db()
    version = session.execute(
        select(DataVersion).where(
            DataVersion.entity_type == entity_type,
            DataVersion.entity_id == entity_id,
            DataVersion.version_number == version_number,
        )
    ).scalar_one_or_none()
    if version is None:
        abort(404, description='Version not found')
    model = VERSIONED_MODELS.get(entity_type)
    if model is None:
        abort(400, description=f'Rollback not supported for {entity_type}')
    entity = session.get(model, entity_id)
    if entity is None:
        abort(404, description=f'{entity_type} not found')
    before = snapshot(entity)
    for field in model.VERSIONED_FIELDS:
        if field in version.data:
            setattr(entity, field, _restore_value(model, field, version.data[field]))
    if hasattr(entity, 'updated_by') and user is not None:
        entity.updated_by = user.id
    session.flush()
    new_version = create_version(entity_type, entity, f'Rolled back to version {version_number}', user)
    logger.info('%s %s rolled back to version %s', entity_type, entity_id, version_number)
    return entity, before, new_version

__all__ = ['VERSIONED_MODELS', 'snapshot', 'next_version_number', 'create_version', 'list_versions', 'rollback']
