"""
cli.py

Run one query against a directory of tables:

    flat-db <db_path> "SELECT * FROM clients WHERE id = 1;"

SELECT output goes to stdout; errors go to stderr as "[KIND]: message"
and the process exits with status 1.
"""
import argparse
import sys

from flat_db.database import Database
from flat_db.errors import QueryError
from flat_db.logger import get_logger, set_level

logger = get_logger(__name__)


def build_parser():
    parser = argparse.ArgumentParser(
        prog="flat-db",
        description="Run a SQL-like query against a directory of flat text tables.",
    )
    parser.add_argument("db_path", help="directory holding one <table>.csv file per table")
    parser.add_argument("query", help="INSERT / UPDATE / DELETE / SELECT statement")
    parser.add_argument(
        "--extension",
        default=None,
        help="table file extension (default: FLAT_DB_EXTENSION or .csv)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="override FLAT_DB_LOG_LEVEL",
    )
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    if args.log_level:
        set_level(args.log_level)

    db = Database(args.db_path, extension=args.extension)

    try:
        output = db.execute(args.query)
    except QueryError as e:
        logger.debug("Query failed: %r", args.query)
        print(str(e), file=sys.stderr)
        return 1

    if output is not None:
        sys.stdout.write(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
