"""
flat_db package

A small query engine over flat comma separated text tables.
"""

from .database import Database
from .errors import InvalidColumn, InvalidSyntax, InvalidTable, OtherError, QueryError
from .query import execute_query, select_tables
from .sql_parser import format_command, parse

__all__ = [
    "Database",
    "parse",
    "format_command",
    "execute_query",
    "select_tables",
    "QueryError",
    "InvalidTable",
    "InvalidColumn",
    "InvalidSyntax",
    "OtherError",
]
