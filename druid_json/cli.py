#!/usr/bin/env python3
"""Inspect Druid result files of any size from the command line."""

import argparse, itertools, json, pathlib, logging, sys, time
from typing import Any, Dict, List, Optional, TextIO

from druid_json.byte_source import BufferedByteSource
from druid_json.config import DEFAULT_CHUNK_SIZE, Settings
from druid_json.errors import ConfigurationError, DruidJsonError
from druid_json.field_reader import FieldReader
from druid_json.schema import parse_metric_names
from druid_json.table import DruidJsonTable

logger = logging.getLogger(__name__)


def describe_schema(table: DruidJsonTable) -> List[Dict[str, Any]]:
    return [{"name": c.name, "type": c.declared_type, "metric": c.is_metric} for c in table.schema]


def _tsv_cell(value: Any) -> str:
    if value is None:
        return ''
    return str(value).replace('\t', '\\t').replace('\n', '\\n')


def dump_rows(table: DruidJsonTable, out: TextIO, limit: Optional[int] = None, fmt: str = 'json') -> int:
    names = table.schema.names
    if fmt == 'tsv':
        out.write('\t'.join(names) + '\n')
    written = 0
    with table.open_cursor() as cursor:
        while (limit is None or written < limit) and cursor.next():
            row = cursor.row()
            if fmt == 'tsv':
                out.write('\t'.join(_tsv_cell(v) for v in row) + '\n')
            else:
                out.write(json.dumps(dict(zip(names, row))) + '\n')
            written += 1
    return written


def dump_records(path: pathlib.Path, out: TextIO, limit: Optional[int] = None,
                 chunk_size: int = DEFAULT_CHUNK_SIZE) -> int:
    """Write flattened records as they are read, without any schema check."""
    written = 0
    with BufferedByteSource.open(path, chunk_size) as source:
        # islice stops before pulling the record after the limit.
        for record in itertools.islice(FieldReader(source).iter_records(), limit):
            out.write(json.dumps([[label, text, kind.value] for label, text, kind in record]) + '\n')
            written += 1
    return written


def process(table: DruidJsonTable, progress_every: int) -> int:
    start = time.time()
    recs = 0
    with table.open_cursor() as cursor:
        while cursor.next():
            recs += 1
            if recs % progress_every == 0:
                logger.info("%s rows | offset %s", recs, cursor.offset)
    logger.info("Done %s rows in %.2fs", recs, time.time()-start)
    return recs


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="druid-json", description="Read Druid query results as rows")
    sub = ap.add_subparsers(dest="command", required=True)

    def add_common(p):
        p.add_argument("file", type=pathlib.Path)
        p.add_argument("--metrics", default="", help="comma separated metric columns (read as REAL)")

    add_common(sub.add_parser("schema", help="print the probed columns"))
    rows = sub.add_parser("rows", help="print rows")
    add_common(rows)
    rows.add_argument("--limit", type=int, help="stop after N rows")
    rows.add_argument("--format", choices=("json", "tsv"), default="json")
    add_common(sub.add_parser("count", help="count rows"))
    records = sub.add_parser("records", help="print flattened records without a schema check")
    records.add_argument("file", type=pathlib.Path)
    records.add_argument("--limit", type=int, help="stop after N records")
    return ap


def cli(argv: Optional[List[str]] = None, out: Optional[TextIO] = None) -> int:
    out = out or sys.stdout
    args = build_parser().parse_args(argv)
    try:
        settings = Settings.from_env()
    except ConfigurationError as e:
        print(f"configuration error: {e}", file=sys.stderr)
        return 2
    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        if args.command == "records":
            dump_records(args.file, out, limit=args.limit, chunk_size=settings.chunk_size)
            return 0
        table = DruidJsonTable(args.file, parse_metric_names(args.metrics), settings=settings)
        if args.command == "schema":
            out.write(json.dumps(describe_schema(table), indent=2) + '\n')
        elif args.command == "rows":
            dump_rows(table, out, limit=args.limit, fmt=args.format)
        else:
            out.write(f"{process(table, settings.progress_every)}\n")
    except DruidJsonError as e:
        logger.error("%s: %s", args.file, e)
        print(f"error: {e}", file=sys.stderr)
        return 1
    return 0


def main():
    sys.exit(cli())


if __name__ == "__main__":
    main()
