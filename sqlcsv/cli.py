# sqlcsv/cli.py

import argparse
import logging
import sqlite3
import sys
from pathlib import Path

from . import __version__, config
from .converter import Converter
from .exceptions import SqlCsvError

logger = logging.getLogger(__name__)


def _read_query(args) -> str:
    if args.query:
        return args.query
    # utf-8-sig drops the BOM some editors put on .sql files
    return Path(args.file).read_text(encoding='utf-8-sig')


def export(args) -> int:
    """Run a query against a SQLite database and write the result as CSV."""
    options = {'write_headers': not args.no_headers}
    if args.headers:
        options['headers'] = [h.strip() for h in args.headers.split(',')]
    if args.time_format:
        options['time_format'] = args.time_format
    if args.timezone:
        options['timezone'] = args.timezone
    if args.delimiter:
        options['delimiter'] = '\t' if args.delimiter == '\\t' else args.delimiter

    try:
        if args.config:
            config.set_config_file(args.config)
    except (FileNotFoundError, SqlCsvError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        sql = _read_query(args)
    except OSError as e:
        print(f"Error: cannot read query file: {e}", file=sys.stderr)
        return 1

    try:
        conn = sqlite3.connect(args.database)
    except sqlite3.Error as e:
        print(f"Error: cannot open database {args.database}: {e}", file=sys.stderr)
        return 1

    logger.debug(f"Running query against {args.database}:\n{sql}")
    try:
        cursor = conn.execute(sql)
        converter = Converter(cursor, **options)
        if args.output:
            converter.write_to_file(args.output)
        else:
            converter.write_to(sys.stdout)
    except (SqlCsvError, sqlite3.Error, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        conn.close()

    if args.output:
        print(f"Wrote {converter.row_count} rows to {args.output}", file=sys.stderr)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='sqlcsv', description='Export query results to CSV')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    parser.add_argument('--log-level', default='WARNING',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='Log level for messages written to stderr')
    subparsers = parser.add_subparsers(dest='command', required=True)

    # export
    export_parser = subparsers.add_parser('export', help='Run a SQLite query and write CSV')
    export_parser.add_argument('database', help='SQLite database file')
    source = export_parser.add_mutually_exclusive_group(required=True)
    source.add_argument('--query', '-q', help='SQL to run')
    source.add_argument('--file', '-f', help='File containing the SQL to run')
    export_parser.add_argument('--output', '-o', help='Output CSV file (default: stdout)')
    export_parser.add_argument('--no-headers', action='store_true',
                               help='Do not write the header record')
    export_parser.add_argument('--headers', help='Comma-separated header override')
    export_parser.add_argument('--time-format', help='strftime pattern for dates and times')
    export_parser.add_argument('--timezone', help='Zone for naive datetimes (default: settings)')
    export_parser.add_argument('--delimiter', '-d', help=r"Field delimiter, '\t' for tab")
    export_parser.add_argument('--config', '-c', help='sqlcsv.yml settings file')
    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level),
                        format='%(levelname)s %(name)s: %(message)s',
                        stream=sys.stderr)

    if args.command == 'export':
        return export(args)
    return 2


if __name__ == '__main__':
    sys.exit(main())
