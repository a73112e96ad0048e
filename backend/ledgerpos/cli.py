# Overview: Flask CLI command groups for bootstrap, ledger verification and shift maintenance.

# backend/ledgerpos/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to "ledgerpos:create_app".
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init-db
#   Create all tables (idempotent).
# - python -m flask system seed-demo
#   Create a demo store, staff (owner/manager/cashier), products and customers.
#
# Ledger verification:
# - python -m flask ledger verify-stock [--product-id 1]
#   Check inventory log chains against Product.stock.
# - python -m flask ledger verify-credit [--customer-id 1]
#   Check credit ledgers against Customer.current_balance_cents.
#
# Shifts:
# - python -m flask shifts list --store-id 1 --status open
#   List recent shifts.
# - python -m flask shifts reconcile 12
#   Recompute a shift's totals from its sales and repair the row.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Customer, Product, Staff, Store
from .services import credit_ledger, shift_service, stock_ledger
from .signals import notify_records_changed


@click.group('system')
def system_group():
    """System bootstrap commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Database schema ready.")


@system_group.command('seed-demo')
@click.option('--store-name', default='Main Store', show_default=True, help='Store name')
@click.option('--store-code', default='MAIN', show_default=True, help='Store code (unique)')
@with_appcontext
def seed_demo(store_name, store_code):
    """Seed a demo store. Safe to re-run: an existing store code is reused."""
    store = db.session.query(Store).filter_by(code=store_code).first()
    if store is not None:
        click.echo(f"SKIP Store {store_code} already exists (id={store.id}).")
        return

    store = Store(name=store_name, code=store_code)
    db.session.add(store)
    db.session.flush()

    staff = [
        Staff(store_id=store.id, name="Olivia Owner", role="owner"),
        Staff(store_id=store.id, name="Marco Manager", role="manager"),
        Staff(store_id=store.id, name="Cara Cashier", role="cashier"),
    ]
    db.session.add_all(staff)

    products = [
        Product(store_id=store.id, name="Flat White", price_cents=450, cost_cents=120, min_stock_level=10),
        Product(store_id=store.id, name="Croissant", price_cents=325, cost_cents=90, min_stock_level=5),
        Product(store_id=store.id, name="Orange Juice", price_cents=400, cost_cents=150, unit="bottle", min_stock_level=6),
    ]
    db.session.add_all(products)

    db.session.add_all([
        Customer(store_id=store.id, name="Walk-in Regular", credit_limit_cents=10000),
        Customer(store_id=store.id, name="Corner Office", credit_limit_cents=0, risk_tag="low"),
    ])
    db.session.commit()

    # Opening stock goes through the ledger so the log chain starts at zero
    for product, qty in zip(products, (40, 24, 18)):
        stock_ledger.receive_stock(product.id, qty, reason="Opening stock", actor_id=staff[0].id, actor_name=staff[0].name)

    notify_records_changed("staff", [s.id for s in staff])
    click.echo(f"PASS Seeded store {store.code} (id={store.id}).")
    for member in staff:
        click.echo(f"  staff id={member.id:<4} {member.role:<8} {member.name}")


@click.group('ledger')
def ledger_group():
    """Ledger verification commands."""


@ledger_group.command('verify-stock')
@click.option('--product-id', type=int, help='Check a single product')
@with_appcontext
def verify_stock(product_id):
    """Verify inventory log chains. Exits non-zero on any break."""
    ids = [product_id] if product_id else [pid for (pid,) in db.session.query(Product.id).order_by(Product.id)]

    failures = 0
    for pid in ids:
        report = stock_ledger.verify_stock_chain(pid)
        status = "OK  " if report["ok"] else "FAIL"
        click.echo(f"{status} product {pid:<5} {report['product_name']:<30} stock={report['stock']} entries={report['entries']}")
        for problem in report["problems"]:
            click.echo(f"       - {problem}")
        failures += 0 if report["ok"] else 1

    if failures:
        raise SystemExit(1)


@ledger_group.command('verify-credit')
@click.option('--customer-id', type=int, help='Check a single customer')
@with_appcontext
def verify_credit(customer_id):
    """Verify credit ledgers. Exits non-zero on any mismatch."""
    ids = [customer_id] if customer_id else [cid for (cid,) in db.session.query(Customer.id).order_by(Customer.id)]

    failures = 0
    for cid in ids:
        report = credit_ledger.verify_customer_balance(cid)
        status = "OK  " if report["ok"] else "FAIL"
        click.echo(
            f"{status} customer {cid:<5} {report['customer_name']:<30} "
            f"balance={report['balance_cents']} unapplied={report['unapplied_cents']}"
        )
        for problem in report["problems"]:
            click.echo(f"       - {problem}")
        failures += 0 if report["ok"] else 1

    if failures:
        raise SystemExit(1)


@click.group('shifts')
def shifts_group():
    """Shift inspection and repair commands."""


@shifts_group.command('list')
@click.option('--store-id', type=int, help='Filter by store')
@click.option('--status', type=click.Choice(['open', 'closed']), help='Filter by status')
@click.option('--limit', type=int, default=20, show_default=True)
@with_appcontext
def list_shifts(store_id, status, limit):
    """List recent shifts."""
    shifts = shift_service.list_shifts(store_id=store_id, status=status, limit=limit)
    if not shifts:
        click.echo("No shifts found.")
        return

    click.echo(f"{'ID':<6} {'Staff':<24} {'Status':<8} {'Total':>10} {'Cash':>10} {'Variance':>10}")
    for shift in shifts:
        variance = "-" if shift.variance_cents is None else str(shift.variance_cents)
        click.echo(
            f"{shift.id:<6} {shift.staff_name:<24} {shift.status:<8} "
            f"{shift.total_sales_cents:>10} {shift.cash_sales_cents:>10} {variance:>10}"
        )


@shifts_group.command('reconcile')
@click.argument('shift_id', type=int)
@click.option('--store-id', type=int, default=None, help='Only reconcile if the shift belongs to this store')
@with_appcontext
def reconcile_shift(shift_id, store_id):
    """Recompute a shift's totals from its sales."""
    corrections = shift_service.reconcile_shift_totals(shift_id, store_id=store_id)
    if not corrections:
        click.echo(f"PASS Shift {shift_id} totals already match its sales.")
        return

    for c in corrections:
        click.echo(f"FIXED {c['field']}: {c['recorded']} -> {c['actual']}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(ledger_group)
    app.cli.add_command(shifts_group)
