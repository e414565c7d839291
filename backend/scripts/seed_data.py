#!/usr/bin/env python
"""Idempotent seed script for demo accounts, settings and a sample trading book.

Usage:
    python backend/scripts/seed_data.py                  # seed accounts + settings
    python backend/scripts/seed_data.py --with-samples   # also suppliers, clients, SKUs, prices, stock
    python backend/scripts/seed_data.py --show-users     # print role -> user summary afterwards
    python backend/scripts/seed_data.py --dry-run        # run logic then rollback (no DB changes)
"""
from __future__ import annotations
import os, sys, argparse, textwrap, logging
from decimal import Decimal
from sqlalchemy import select

# Allow running from repo root
sys.path.append(os.path.abspath('backend'))
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from matcha_trade import create_app, get_db  # noqa: E402
from matcha_trade.models.authz import Base, User  # noqa: E402
from matcha_trade.models import (  # noqa: E402,F401
    audit, security, notification, version, forecast, client_order, supplier_order, relation,
)
from matcha_trade.models.supplier import Supplier  # noqa: E402
from matcha_trade.models.client import Client  # noqa: E402
from matcha_trade.models.sku import MatchaSku  # noqa: E402
from matcha_trade.models.pricing import Pricing, ExchangeRate  # noqa: E402
from matcha_trade.models.inventory import InventoryTransaction  # noqa: E402
from matcha_trade.models.setting import SystemSetting  # noqa: E402
from matcha_trade.config.business import DEFAULT_SHIPPING_FEE_PER_KG, DEFAULT_IMPORT_TAX_RATE  # noqa: E402
from matcha_trade.constants.permissions import ROLE_DISPLAY_NAMES  # noqa: E402
from matcha_trade.services.pricing import landed_cost  # noqa: E402
from matcha_trade.services.inventory import apply_transaction  # noqa: E402
from matcha_trade.services.versioning import create_version  # noqa: E402

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'seeds')))
from sample_catalog import USERS, SETTINGS, SUPPLIERS, CLIENTS, SKUS  # noqa: E402

logger = logging.getLogger('matcha_trade.seed')


def _by_name(session, model, name):
    return session.execute(select(model).where(model.name == name)).scalar_one_or_none()


def ensure_clients(session):
    created = 0
    for row in CLIENTS:
        if _by_name(session, Client, row['name']) is None:
            c = Client(
                name=row['name'],
                business_type=row.get('business_type'),
                payment_terms=row.get('payment_terms'),
                special_discount=Decimal(row.get('special_discount', '0')),
            )
            session.add(c)
            session.flush()
            create_version('client', c, 'Seeded')
            created += 1
    return created


def ensure_users(session):
    password = os.getenv('SEED_USER_PASSWORD', 'ChangeMe123!')
    created = 0
    for email, (name, role, client_name) in USERS.items():
        if session.execute(select(User).where(User.email == email)).scalar_one_or_none():
            continue
        linked = _by_name(session, Client, client_name) if client_name else None
        if client_name and linked is None:
            print(f"[WARN] Client '{client_name}' missing; skipping {email}")
            continue
        u = User(name=name, email=email, role=role, linked_client_id=linked.id if linked else None)
        u.set_password(password)
        session.add(u)
        created += 1
    session.flush()
    return created


def ensure_settings(session):
    created = 0
    for key, (value, description) in SETTINGS.items():
        if session.execute(select(SystemSetting).where(SystemSetting.key == key)).scalar_one_or_none() is None:
            session.add(SystemSetting(key=key, value=value, description=description))
            created += 1
    return created


def ensure_samples(session):
    created = 0
    for row in SUPPLIERS:
        if _by_name(session, Supplier, row['name']) is None:
            s = Supplier(**row)
            session.add(s)
            session.flush()
            create_version('supplier', s, 'Seeded')
            created += 1
    rates = set()
    for supplier_name, sku_name, grade, tier, cost, rate, sell, stock in SKUS:
        if _by_name(session, MatchaSku, sku_name) is not None:
            continue
        supplier = _by_name(session, Supplier, supplier_name)
        sku = MatchaSku(supplier_id=supplier.id, name=sku_name, grade=grade, quality_tier=tier)
        session.add(sku)
        session.flush()
        create_version('sku', sku, 'Seeded')
        cost_d, rate_d = Decimal(cost), Decimal(rate)
        session.add(Pricing(
            sku_id=sku.id,
            cost_price_jpy=cost_d,
            exchange_rate=rate_d,
            shipping_fee_per_kg=DEFAULT_SHIPPING_FEE_PER_KG,
            import_tax_rate=DEFAULT_IMPORT_TAX_RATE,
            landed_cost_sgd=landed_cost(cost_d, rate_d, DEFAULT_SHIPPING_FEE_PER_KG, DEFAULT_IMPORT_TAX_RATE),
            selling_price_per_kg=Decimal(sell),
            is_current_price=True,
        ))
        apply_transaction(sku.id, InventoryTransaction.TYPE_PURCHASE, Decimal(stock),
                          reference_type='manual', notes='Opening stock')
        rates.add(rate_d)
        created += 1
    for rate_d in sorted(rates):
        session.add(ExchangeRate(rate=rate_d, source='seed'))
    return created


def print_user_summary(session):
    users = session.execute(select(User).order_by(User.role, User.email)).scalars().all()
    if not users:
        print("[INFO] No users present.")
        return
    email_w = max(len(u.email) for u in users)
    print(f"{'Email'.ljust(email_w)} | Role")
    print('-' * (email_w + 24))
    for u in users:
        print(f"{u.email.ljust(email_w)} | {ROLE_DISPLAY_NAMES.get(u.role, u.role)}")


def parse_args(argv=None):
    p = argparse.ArgumentParser(
        description="Seed demo accounts, settings and sample data",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""Examples:\n  seed normally: seed_data.py\n  dry run: seed_data.py --dry-run\n  with samples: seed_data.py --with-samples --show-users\n""")
    )
    p.add_argument('--show-users', action='store_true', help='Print users and roles after seeding')
    p.add_argument('--dry-run', action='store_true', help='Rollback after operations (no commit)')
    p.add_argument('--with-samples', action='store_true', help='Also seed suppliers, clients, SKUs, prices and stock')
    return p.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    app = create_app()
    with app.app_context():
        session = get_db()
        # Lightweight bootstrap when migrations have not run; prefer alembic upgrade
        Base.metadata.create_all(session.get_bind())
        try:
            created_c = ensure_clients(session)
            created_u = ensure_users(session)
            created_s = ensure_settings(session)
            created_x = ensure_samples(session) if args.with_samples else 0
            summary = f"Users: {created_u}, Clients: {created_c}, Settings: {created_s}, Sample SKUs/suppliers: {created_x}"
            if args.dry_run:
                session.rollback()
                print(f"[DRY-RUN] (rolled back) would create {summary}")
            else:
                session.commit()
                print(f"[DONE] Created {summary}")
            if args.show_users:
                print('\nUsers:')
                print_user_summary(session)
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

if __name__ == '__main__':
    main()
