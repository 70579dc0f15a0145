"""Command-line interface for operating the tour-booking database.

Provides subcommands: `init-db`, `list`, `top-tours`, `export`, `tour-stats`,
`monthly-plan` and `reconcile-ratings`. Each command is implemented as a
`cmd_*` function that accepts an argparse namespace.
"""
from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Any

import pandas as pd
from pymongo.database import Database

from tour_booking.config import get_settings
from tour_booking.db import BOOKINGS, REVIEWS, TOURS, USERS, ensure_indexes, get_client, get_db
from tour_booking.handlers import catch_errors, get_all
from tour_booking.logging_config import configure_logging
from tour_booking.query.builder import build_query
from tour_booking.query.params import parse_query_string
from tour_booking.services import Services, build_services, tour_reviews_filter
from tour_booking.tours.catalog import alias_top_tours, monthly_plan, tour_stats

log = logging.getLogger(__name__)


# --------------------------------------------------
# Helpers
# --------------------------------------------------
def _connect() -> Database[dict[str, Any]]:
    s = get_settings()
    client = get_client(s.mongo_uri, s.mongo_tls)
    return get_db(client, s.mongo_db)


def _params(items: list[str]) -> dict[str, Any]:
    """Turn `["price[gte]=500", "sort=price"]` into a parameter mapping."""
    return parse_query_string("&".join(items))


def _print(payload: Any) -> None:
    print(json.dumps(payload, indent=2, default=str))


def _list(services: Services, args: argparse.Namespace, params: dict[str, Any]) -> None:
    repo = services.repository(args.resource)
    parent = tour_reviews_filter(args.tour) if args.resource == REVIEWS and args.tour else None
    handler = catch_errors(get_all, get_settings().app_env)
    status, body = handler(repo, params, parent)
    _print(body)
    if status >= 400:
        raise SystemExit(1)


# --------------------------------------------------
# Commands
# --------------------------------------------------
def cmd_init_db(_: argparse.Namespace) -> None:
    """Create the indexes every collection relies on."""
    db = _connect()
    ensure_indexes(db)


def cmd_list(args: argparse.Namespace) -> None:
    """Print one page of a resource as a list envelope."""
    services = build_services(_connect())
    _list(services, args, _params(args.params))


def cmd_top_tours(args: argparse.Namespace) -> None:
    """Print the five best-rated, cheapest tours."""
    services = build_services(_connect())
    args.resource, args.tour = TOURS, None
    _list(services, args, alias_top_tours(_params(args.params)))


def cmd_export(args: argparse.Namespace) -> None:
    """Write the query results of a resource to a CSV file."""
    services = build_services(_connect())
    repo = services.repository(args.resource)
    docs = repo.find(build_query(_params(args.params), cast=repo.cast))
    out = Path(args.output)
    out.parent.mkdir(parents=True, exist_ok=True)
    pd.json_normalize(docs).to_csv(out, index=False)
    log.info("Exported %d %s documents to %s", len(docs), args.resource, out)


def cmd_tour_stats(_: argparse.Namespace) -> None:
    db = _connect()
    _print(tour_stats(db[TOURS]))


def cmd_monthly_plan(args: argparse.Namespace) -> None:
    db = _connect()
    _print(monthly_plan(db[TOURS], args.year))


def cmd_reconcile_ratings(_: argparse.Namespace) -> None:
    """Recompute rating statistics for every tour."""
    services = build_services(_connect())
    n = services.ratings.reconcile_all()
    log.info("Reconciled %d tours", n)


# --------------------------------------------------
# CLI
# --------------------------------------------------
def build_parser() -> argparse.ArgumentParser:
    """Build and return the top-level argument parser for the CLI.

    Returns:
        Configured argparse.ArgumentParser instance.
    """
    p = argparse.ArgumentParser(prog="tour-booking")
    sub = p.add_subparsers(dest="cmd", required=True)

    sub.add_parser("init-db")

    resources = [TOURS, REVIEWS, BOOKINGS, USERS]

    p_list = sub.add_parser("list")
    p_list.add_argument("resource", choices=resources)
    p_list.add_argument("params", nargs="*", help="key=value or field[op]=value")
    p_list.add_argument("--tour", default=None, help="only reviews of this tour id")

    p_top = sub.add_parser("top-tours")
    p_top.add_argument("params", nargs="*")

    p_export = sub.add_parser("export")
    p_export.add_argument("resource", choices=resources)
    p_export.add_argument("output")
    p_export.add_argument("params", nargs="*")

    sub.add_parser("tour-stats")

    p_plan = sub.add_parser("monthly-plan")
    p_plan.add_argument("year", type=int)

    sub.add_parser("reconcile-ratings")

    return p


COMMANDS = {
    "init-db": cmd_init_db,
    "list": cmd_list,
    "top-tours": cmd_top_tours,
    "export": cmd_export,
    "tour-stats": cmd_tour_stats,
    "monthly-plan": cmd_monthly_plan,
    "reconcile-ratings": cmd_reconcile_ratings,
}


def main() -> None:
    """CLI entry point: parse args, configure logging and dispatch commands."""
    settings = get_settings()
    configure_logging(Path("logs/tour_booking.log"), settings.log_level)

    args = build_parser().parse_args()
    COMMANDS[args.cmd](args)


if __name__ == "__main__":
    main()
