import argparse
import json
from pathlib import Path
from typing import List

from . import __version__
from .config import Settings
from .database import load_store_from_database, save_store_to_database
from .directory import (
    DealerView,
    DirectoryError,
    DirectoryService,
    User,
    dealer_counts_by_state,
)
from .env import load_env
from .logger import get_logger
from .schema import validate_dealer
from .search import SearchFilters, parse_search_query
from .seed import build_demo_store, generate_dealers, seed_catalog, DEMO_DEALERS
from .storage import DealerStore, load_dealers, save_dealers


def load_store(settings: Settings) -> DealerStore:
    """Database if present, else the JSON dataset, else the demo dealers with sample reviews."""
    logger = get_logger()
    if settings.db_path.exists():
        logger.debug("Loading store from database", path=str(settings.db_path))
        store = load_store_from_database(settings.db_path)
        if not store.makes():
            seed_catalog(store)
        return store
    dealers = load_dealers(settings.data_path)
    if dealers:
        logger.debug("Loading store from JSON", path=str(settings.data_path), dealers=len(dealers))
        return build_demo_store(dealers)
    logger.debug("No data found, using demo dealers")
    return build_demo_store()


def build_service(settings: Settings) -> DirectoryService:
    return DirectoryService(
        load_store(settings),
        threshold=settings.match_threshold,
        suggestion_limit=settings.suggestion_limit,
        max_query_length=settings.max_query_length,
    )


def _print_dealers(views: List[DealerView], as_json: bool) -> None:
    if as_json:
        print(json.dumps([v.to_dict() for v in views], indent=2))
        return
    if not views:
        print("No matching results.")
        return
    for v in views:
        d = v.dealer
        print(f"{d.id}  {d.name} - {d.city}, {d.state} {d.zip}")
        print(f"  Brands: {', '.join(d.brands) or '-'}")
        print(f"  Rating: {v.rating} ({v.reviews_count} reviews)  Phone: {d.phone or '-'}")


def cmd_search(args: argparse.Namespace, settings: Settings) -> None:
    service = build_service(settings)
    if any([args.state, args.city, args.zip, args.brand]):
        filters = SearchFilters(state=args.state, city=args.city, zip=args.zip, brand=args.brand, q=args.query or "")
    else:
        filters = parse_search_query(args.query)
    _print_dealers(service.list_dealers(filters), args.json)


def cmd_suggest(args: argparse.Namespace, settings: Settings) -> None:
    suggestions = build_service(settings).suggest(args.query)
    if args.json:
        print(json.dumps([s.to_dict() for s in suggestions], indent=2))
        return
    for s in suggestions:
        print(f"[{s.kind}] {s.value} (score={s.score})")


def cmd_list(args: argparse.Namespace, settings: Settings) -> None:
    service = build_service(settings)
    _print_dealers(service.list_dealers(SearchFilters(state=args.state)), args.json)


def cmd_states(args: argparse.Namespace, settings: Settings) -> None:
    service = build_service(settings)
    if args.counts:
        for state, count in dealer_counts_by_state(service.store.snapshot()):
            print(f"{state}: {count}")
        return
    print(" ".join(service.states()))


def cmd_show(args: argparse.Namespace, settings: Settings) -> None:
    service = build_service(settings)
    try:
        detail = service.get_dealer(args.dealer_id)
    except DirectoryError as e:
        raise SystemExit(str(e))
    _print_dealers([detail.view], False)
    print()
    for r in detail.reviews:
        print(f"- {r.user_name} ({r.rating}/5, {r.time:%Y-%m-%d}): {r.review}")


def cmd_review(args: argparse.Namespace, settings: Settings) -> None:
    service = build_service(settings)
    user = User(id=args.user_id, first_name=args.first_name, last_name=args.last_name)
    payload = {
        "review": args.text,
        "rating": args.rating,
        "purchase": args.purchase,
        "purchase_date": args.purchase_date,
        "car_make": args.car_make,
        "car_model": args.car_model,
        "car_year": args.car_year,
    }
    try:
        detail = service.add_review(args.dealer_id, user, payload)
    except DirectoryError as e:
        raise SystemExit(str(e))
    save_store_to_database(service.store, settings.db_path)
    print(f"Review: {detail.featured}")
    print(f"Dealer rating: {detail.view.rating} ({detail.view.reviews_count} reviews)")


def cmd_seed(args: argparse.Namespace, settings: Settings) -> None:
    output = Path(args.output) if args.output else settings.data_path
    if args.demo:
        dealers = list(DEMO_DEALERS)
    else:
        dealers = generate_dealers(args.per_state if args.per_state is not None else settings.per_state)
    save_dealers(output, dealers)
    states = len({d.state for d in dealers})
    print(f"Wrote {len(dealers)} dealers to {output} across {states} states.")


def cmd_import_osm(args: argparse.Namespace, settings: Settings) -> None:
    from . import osm

    states = [s.strip().upper() for s in args.states.split(",") if s.strip()] if args.states else osm.STATE_CODES
    output = Path(args.output) if args.output else settings.data_path
    dealers = osm.import_dealers(states, url=settings.overpass_url, per_state=args.per_state)

    valid = []
    for d in dealers:
        errors = validate_dealer(d.to_dict())
        if errors:
            get_logger().warning("Skipping invalid dealer", dealer_id=d.id, errors=errors)
            continue
        valid.append(d)

    save_dealers(output, valid)
    print(f"Wrote {len(valid)} dealerships to {output}.")
    print("Attribution: Data (c) OpenStreetMap contributors (ODbL).")
    get_logger().log_metrics_summary()


def cmd_migrate(args: argparse.Namespace, settings: Settings) -> None:
    source = Path(args.json) if args.json else settings.data_path
    db_path = Path(args.db) if args.db else settings.db_path
    dealers = load_dealers(source)
    if not dealers:
        raise SystemExit(f"No dealers found in {source}")
    store = build_demo_store(dealers, with_reviews=not args.no_reviews)
    written, reviews = save_store_to_database(store, db_path)
    print(f"Migrated {written} dealers and {reviews} reviews into {db_path}")


def main(argv=None):
    load_env()
    settings = Settings.from_env()
    get_logger(level=settings.log_level)

    parser = argparse.ArgumentParser(prog="dealersplus", description="Dealers Plus: dealer directory and reviews")
    parser.add_argument("--version", action="store_true", help="Show version")

    subparsers = parser.add_subparsers(dest="command")

    srch = subparsers.add_parser("search", help="Search dealers by free text, ZIP or \"City, ST\"")
    srch.add_argument("query", nargs="?", default="", help="Search text")
    srch.add_argument("--state", help="Exact state code filter")
    srch.add_argument("--city", help="Exact city filter")
    srch.add_argument("--zip", help="Exact ZIP filter")
    srch.add_argument("--brand", help="Brand filter")
    srch.add_argument("--json", action="store_true", help="Print JSON")
    srch.set_defaults(func=cmd_search)

    sug = subparsers.add_parser("suggest", help="Typeahead suggestions for a partial query")
    sug.add_argument("query", help="Partial search text")
    sug.add_argument("--json", action="store_true", help="Print JSON")
    sug.set_defaults(func=cmd_suggest)

    lst = subparsers.add_parser("list", help="List dealers")
    lst.add_argument("--state", help="Only dealers in this state")
    lst.add_argument("--json", action="store_true", help="Print JSON")
    lst.set_defaults(func=cmd_list)

    sts = subparsers.add_parser("states", help="List states that have dealers")
    sts.add_argument("--counts", action="store_true", help="Show dealer count per state")
    sts.set_defaults(func=cmd_states)

    shw = subparsers.add_parser("show", help="Show a dealer and its reviews")
    shw.add_argument("dealer_id", help="Dealer id, e.g. D001")
    shw.set_defaults(func=cmd_show)

    rev = subparsers.add_parser("review", help="Add a review for a dealer")
    rev.add_argument("dealer_id", help="Dealer id")
    rev.add_argument("--user-id", required=True, help="Id of the (already authenticated) user")
    rev.add_argument("--first-name", required=True)
    rev.add_argument("--last-name", required=True)
    rev.add_argument("--text", required=True, help="Review text")
    rev.add_argument("--rating", required=True, type=int, help="Rating 1-5")
    rev.add_argument("--purchase", action="store_true", help="Bought a car here")
    rev.add_argument("--purchase-date", help="Purchase date (MM/DD/YYYY)")
    rev.add_argument("--car-make")
    rev.add_argument("--car-model")
    rev.add_argument("--car-year", type=int)
    rev.set_defaults(func=cmd_review)

    sd = subparsers.add_parser("seed", help="Write a synthetic dealers dataset")
    sd.add_argument("--per-state", type=int, help="Dealers per state (default: PER_STATE or 15)")
    sd.add_argument("--demo", action="store_true", help="Write only the five demo dealers")
    sd.add_argument("--output", help="Output JSON path (default: DEALERS_PLUS_DATA)")
    sd.set_defaults(func=cmd_seed)

    osm_p = subparsers.add_parser("import-osm", help="Import real dealerships from OpenStreetMap")
    osm_p.add_argument("--states", help="Comma-separated state codes (default: all 50)")
    osm_p.add_argument("--per-state", type=int, default=50, help="Cap per state (default 50)")
    osm_p.add_argument("--output", help="Output JSON path (default: DEALERS_PLUS_DATA)")
    osm_p.set_defaults(func=cmd_import_osm)

    mig = subparsers.add_parser("migrate", help="Load a dealers JSON file into the SQLite database")
    mig.add_argument("--json", help="Dealers JSON (default: DEALERS_PLUS_DATA)")
    mig.add_argument("--db", help="SQLite path (default: DEALERS_PLUS_DB)")
    mig.add_argument("--no-reviews", action="store_true", help="Do not add sample reviews")
    mig.set_defaults(func=cmd_migrate)

    args = parser.parse_args(argv)

    if args.version:
        print(__version__)
        return

    if hasattr(args, "func"):
        args.func(args, settings)
        return

    parser.print_help()


if __name__ == "__main__":
    main()
