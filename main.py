"""
POS Back Office: command line entry point.

Usage:
    python main.py login admin s3cret
    python main.py import products.xlsx
    python main.py export out.xlsx --category <id> --sort price --desc
    python main.py inventory --filter low_stock
    python main.py logout
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

import structlog
from dotenv import load_dotenv

# .env values reach os.environ before settings are read
load_dotenv()

from config import settings

# Configure structured logging
logging.basicConfig(format="%(message)s", stream=sys.stderr, level=settings.log_level.upper())

structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer() if settings.is_production
            else structlog.dev.ConsoleRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

from exceptions import AppError, NotAuthenticatedError
from integrations.pos_api import get_pos_client
from services.category_service import get_category_service
from services.export_service import get_export_service
from services.import_service import get_import_service
from services.inventory_service import StockFilter, get_inventory_service
from services.product_service import SORTABLE_FIELDS, ProductQuery, get_product_service
from services.user_service import get_user_service

logger = structlog.get_logger(__name__)


# ===================
# COMMANDS
# ===================

def cmd_login(args: argparse.Namespace) -> int:
    user = get_user_service().login(args.username, args.password)
    print(f"Signed in as {user.username} ({user.role})")
    return 0


def cmd_logout(args: argparse.Namespace) -> int:
    get_user_service().logout()
    print("Signed out")
    return 0


def cmd_import(args: argparse.Namespace) -> int:
    _require_login()
    summary = get_import_service().import_file(args.file)

    print(summary.message())
    for line in summary.details:
        print(f"  {line}")
    for line in summary.warnings:
        print(f"  Warning: {line}")

    return 1 if summary.rejected else 0


def cmd_export(args: argparse.Namespace) -> int:
    _require_login()
    query = ProductQuery(
        search=args.search,
        category_id=args.category,
        manufacturer_id=args.manufacturer,
        sort_by=args.sort,
        descending=args.desc,
    )
    products = get_product_service().list_products(query)

    categories = get_category_service()
    output = get_export_service().generate_products_excel(
        products,
        categories.get_categories(),
        categories.get_manufacturers(),
    )

    Path(args.out).write_bytes(output.getvalue())
    print(f"Exported {len(products)} product(s) to {args.out}")
    return 0


def cmd_inventory(args: argparse.Namespace) -> int:
    _require_login()
    summary = get_inventory_service().overview(StockFilter(args.filter), search=args.search)

    print(
        f"Products: {summary.total_products}  In stock: {summary.in_stock_count}  "
        f"Low (<= {summary.low_stock_threshold}): {summary.low_stock_count}  "
        f"Out: {summary.out_of_stock_count}"
    )
    for p in summary.products:
        sizes = ", ".join(f"{s.size}: {s.stock}" for s in p.sizes) or "-"
        print(f"  {p.code:<16} {p.title:<40} {p.total_stock:>6}  [{sizes}]")
    return 0


def _require_login() -> None:
    if get_user_service().restore_session() is None:
        raise NotAuthenticatedError()


# ===================
# PARSER
# ===================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="POS back office: product import/export and inventory",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    sub = parser.add_subparsers(dest="command", required=True)

    login = sub.add_parser("login", help="Sign in and store the session")
    login.add_argument("username")
    login.add_argument("password")
    login.set_defaults(func=cmd_login)

    logout = sub.add_parser("logout", help="Forget the stored session")
    logout.set_defaults(func=cmd_logout)

    imp = sub.add_parser("import", help="Import products from .xlsx/.xls/.csv")
    imp.add_argument("file")
    imp.set_defaults(func=cmd_import)

    exp = sub.add_parser("export", help="Export products to .xlsx")
    exp.add_argument("out", help="Output path, e.g. ProductsExport.xlsx")
    exp.add_argument("--search", help="Match title or code")
    exp.add_argument("--category", help="Category id")
    exp.add_argument("--manufacturer", help="Manufacturer id")
    exp.add_argument("--sort", choices=sorted(SORTABLE_FIELDS), help="Field to sort by")
    exp.add_argument("--desc", action="store_true", help="Sort descending")
    exp.set_defaults(func=cmd_export)

    inv = sub.add_parser("inventory", help="Stock overview")
    inv.add_argument(
        "--filter",
        default=StockFilter.ALL.value,
        choices=[f.value for f in StockFilter],
    )
    inv.add_argument("--search", help="Match title or code")
    inv.set_defaults(func=cmd_inventory)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    session = get_pos_client().session

    try:
        return args.func(args)
    except AppError as e:
        logger.error("command_failed", command=args.command, code=e.code, error=e.message)
        print(f"Error: {e.message}", file=sys.stderr)
        return 2
    finally:
        session.save(settings.session_file)


if __name__ == "__main__":
    sys.exit(main())
