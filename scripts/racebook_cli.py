#!/usr/bin/env python3
"""
Command-line access to the race book.

Usage:
    python scripts/racebook_cli.py stats
    python scripts/racebook_cli.py races --search saratoga --page 2
    python scripts/racebook_cli.py upcoming
    python scripts/racebook_cli.py predict <race_id>
    python scripts/racebook_cli.py predict --upcoming
    python scripts/racebook_cli.py fetch demo --max-races 5
    python scripts/racebook_cli.py export backup.json
    python scripts/racebook_cli.py import backup.json
    python scripts/racebook_cli.py clear --yes
"""

import argparse
import asyncio
import json
import sys
from datetime import date
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from feeds.simulated import APIError, SimulatedRaceAPI
from racebook.config import DATA_DIR
from racebook.formatting import format_currency, format_date, format_time
from racebook.predictor import Predictor
from racebook.query import paginate, search_items
from racebook.repository import RaceRepository
from racebook.stats import get_recent_activity, get_stats
from racebook.storage import JsonFileStore


def cmd_stats(repo: RaceRepository, args) -> int:
    stats = get_stats(repo)
    if args.json:
        print(json.dumps(stats.to_dict(), indent=2))
        return 0

    print(f"Races:        {stats.total_races} ({stats.completed_races} completed)")
    print(f"Horses:       {stats.total_horses}")
    print(f"Prize money:  {format_currency(stats.total_prize_money)}")
    print(f"Accuracy:     {stats.prediction_accuracy}% "
          f"({stats.correct_predictions}/{stats.total_predictions})")
    return 0


def cmd_activity(repo: RaceRepository, args) -> int:
    entries = get_recent_activity(repo)
    if not entries:
        print("No recent activity")
    for entry in entries:
        print(f"{format_date(entry.date)} {format_time(entry.date)}  [{entry.type}] {entry.description}")
    return 0


RACE_SEARCH_FIELDS = ("name", "track", "id", "source")


def cmd_races(repo: RaceRepository, args) -> int:
    races = search_items(repo.get_races(), args.search, RACE_SEARCH_FIELDS)
    try:
        page = paginate(races, page=args.page, per_page=args.per_page)
    except ValueError as e:
        print(f"Invalid page: {e}")
        return 2

    if not page.items:
        print("No races found")
    for race in page.items:
        print(f"{race.get('id')}  {format_date(race.get('date'))}  "
              f"{race.get('track')} - {race.get('name')}")
    if page.total_pages > 1:
        print(f"Page {page.current_page} of {page.total_pages} ({page.total_items} races)")
    return 0


def cmd_upcoming(repo: RaceRepository, args) -> int:
    races = repo.get_upcoming_races()
    if not races:
        print("No upcoming races")
    for race in races:
        runners = len(race.get("horses") or [])
        print(f"{race.get('id')}  {format_date(race.get('date'))} {format_time(race.get('date'))}  "
              f"{race.get('track')} - {race.get('name')} ({runners} runners)")
    return 0


def cmd_predict(repo: RaceRepository, args) -> int:
    predictor = Predictor(repo)

    if args.upcoming:
        results = predictor.predict_upcoming(overwrite=args.overwrite)
        for race_id, result in results.items():
            print(f"{race_id}: {result.message}")
        print(f"Predicted {sum(1 for r in results.values() if r)} of {len(results)} races")
        return 0

    if not args.race_id:
        print("Give a race id or --upcoming")
        return 2

    result = predictor.make_prediction(args.race_id)
    if not result:
        print(f"Prediction failed: {result.message}")
        return 1

    race = repo.get_race_by_id(args.race_id)
    for i, pick in enumerate(race["predictions"], start=1):
        print(f"{i}. {pick['horse']}  {pick['confidence']:.0%}")
    return 0


def cmd_fetch(repo: RaceRepository, args) -> int:
    latency = (0.0, 0.0) if args.no_delay else None
    api = SimulatedRaceAPI(latency=latency)
    try:
        result = asyncio.run(api.fetch_races(
            args.provider,
            date_from=args.date_from,
            date_to=args.date_to,
            max_races=args.max_races,
        ))
    except APIError as e:
        print(f"Fetch failed: {e.message}")
        return 1

    if args.dry_run:
        print(f"Fetched {len(result.races)} races from {result.provider} (dry run)")
        return 0

    added = repo.import_races_from_api(result.races)
    print(f"Fetched {len(result.races)} races from {result.provider}, imported {added}")
    return 0


def cmd_export(repo: RaceRepository, args) -> int:
    path = Path(args.path or f"horse-racing-data-{date.today().isoformat()}.json")
    path.write_text(repo.export_data(), encoding="utf-8")
    print(f"Saved: {path}")
    return 0


def cmd_import(repo: RaceRepository, args) -> int:
    path = Path(args.path)
    if not path.exists():
        print(f"File not found: {path}")
        return 1

    result = repo.import_data(path.read_text(encoding="utf-8"))
    if not result:
        print(f"Import failed: {result.message}")
        return 1
    print(f"Imported {', '.join(result.details.get('written', [])) or 'nothing'}")
    return 0


def cmd_clear(repo: RaceRepository, args) -> int:
    if not args.yes:
        print("Refusing to clear without --yes")
        return 2
    result = repo.clear_all_data()
    print(result.message)
    return 0 if result else 1


def cmd_check(repo: RaceRepository, args) -> int:
    repaired = repo.check_data_integrity()
    print(f"Repaired: {', '.join(repaired)}" if repaired else "Stored data is valid")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Horse racing race book")
    parser.add_argument("--data-dir", type=str, help=f"Data directory (default: {DATA_DIR})")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("stats", help="Show totals and prediction accuracy")
    p.add_argument("--json", action="store_true", help="Print as JSON")
    p.set_defaults(func=cmd_stats)

    p = sub.add_parser("activity", help="Show recent activity")
    p.set_defaults(func=cmd_activity)

    p = sub.add_parser("races", help="List and search stored races")
    p.add_argument("--search", type=str, help="Match name, track, id or source (case-insensitive)")
    p.add_argument("--page", type=int, default=1, help="Page number (default: 1)")
    p.add_argument("--per-page", type=int, default=10, help="Races per page (default: 10)")
    p.set_defaults(func=cmd_races)

    p = sub.add_parser("upcoming", help="List upcoming races")
    p.set_defaults(func=cmd_upcoming)

    p = sub.add_parser("predict", help="Predict a race")
    p.add_argument("race_id", nargs="?", help="Race id")
    p.add_argument("--upcoming", action="store_true", help="Predict all upcoming races")
    p.add_argument("--overwrite", action="store_true", help="Re-predict races that already have picks")
    p.set_defaults(func=cmd_predict)

    p = sub.add_parser("fetch", help="Fetch races from the simulated provider feed")
    p.add_argument("provider", help="Provider name recorded as the race source")
    p.add_argument("--date-from", type=str, help="ISO start date")
    p.add_argument("--date-to", type=str, help="ISO end date")
    p.add_argument("--max-races", type=int, default=10, help="Number of races (default: 10)")
    p.add_argument("--no-delay", action="store_true", help="Skip simulated latency")
    p.add_argument("--dry-run", action="store_true", help="Fetch without importing")
    p.set_defaults(func=cmd_fetch)

    p = sub.add_parser("export", help="Write a JSON snapshot")
    p.add_argument("path", nargs="?", help="Output file")
    p.set_defaults(func=cmd_export)

    p = sub.add_parser("import", help="Restore a JSON snapshot")
    p.add_argument("path", help="Snapshot file")
    p.set_defaults(func=cmd_import)

    p = sub.add_parser("clear", help="Delete all races and horses")
    p.add_argument("--yes", action="store_true", help="Confirm")
    p.set_defaults(func=cmd_clear)

    p = sub.add_parser("check", help="Repair malformed stored data")
    p.set_defaults(func=cmd_check)

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    data_dir = Path(args.data_dir) if args.data_dir else DATA_DIR
    repo = RaceRepository(JsonFileStore(data_dir))
    return args.func(repo, args)


if __name__ == "__main__":
    sys.exit(main())
