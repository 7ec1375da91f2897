from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import List, Optional

import pyarrow as pa
import pyarrow.csv as pacsv
import pyarrow.parquet as pq

from .catalogs import InvalidKeyError
from .config import load_config
from .logging_utils import setup_logging
from .tidy import TidyRunner


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="nhl-etl")
    parser.add_argument("--config", help="Path to a config YAML file")
    sub = parser.add_subparsers(dest="command", required=True)

    schedule = sub.add_parser("schedule", help="Schedule and final scores of one or more seasons")
    schedule.add_argument("--seasons", nargs="+", required=True, help="Season ids, e.g. 20192020")
    schedule.add_argument("--no-regular", action="store_true", help="Drop regular-season games")
    schedule.add_argument("--no-playoffs", action="store_true", help="Drop playoff games")
    schedule.add_argument("--tz", help="IANA time zone for game_datetime (default: local)")
    schedule.add_argument("--keep-id", action="store_true", help="Keep *_id columns")
    schedule.add_argument("--output", help="Write to .parquet or .csv instead of stdout")

    draft = sub.add_parser("draft", help="Entry-draft picks of one or more years")
    draft.add_argument("--years", nargs="+", required=True, help="Draft years, e.g. 2019 2020")
    draft.add_argument("--keep-id", action="store_true", help="Keep *_id columns")
    draft.add_argument("--output", help="Write to .parquet or .csv instead of stdout")

    return parser.parse_args(argv)


def write_table(table: pa.Table, output: Optional[str]) -> None:
    if not output:
        for row in table.to_pylist():
            sys.stdout.write(json.dumps(row, default=str) + "\n")
        return
    path = Path(output)
    path.parent.mkdir(parents=True, exist_ok=True)
    if path.suffix == ".parquet":
        pq.write_table(table, path)
    elif path.suffix == ".csv":
        pacsv.write_csv(table, path)
    else:
        raise ValueError(f"unsupported output format: {path.suffix or output}")


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    cfg = load_config(args.config)
    logger = setup_logging(cfg.log_level)

    async def _run() -> pa.Table:
        runner = TidyRunner(cfg, logger=logger)
        try:
            if args.command == "schedule":
                return await runner.schedule(
                    args.seasons,
                    include_regular=not args.no_regular,
                    include_playoffs=not args.no_playoffs,
                    timezone=args.tz,
                    keep_identifiers=args.keep_id,
                )
            return await runner.draft(args.years, keep_identifiers=args.keep_id)
        finally:
            await runner.close()

    try:
        table = asyncio.run(_run())
    except InvalidKeyError as exc:
        sys.stderr.write(f"nhl-etl: error: {exc}\n")
        return 2
    write_table(table, args.output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
