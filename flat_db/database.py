# flat_db/database.py
import os
import tempfile
from contextlib import contextmanager

from flat_db.config import get_db_config
from flat_db.errors import InvalidTable, OtherError
from flat_db.logger import get_logger

logger = get_logger(__name__)

WILDCARD = "*"


def split_row(line, width):
    """Split a data line into exactly `width` fields (pads with "", drops extras)"""
    fields = line.split(",")
    if len(fields) < width:
        fields.extend([""] * (width - len(fields)))
    return fields[:width]


class TableWriter:
    """Write side of Database.rewrite(): lines go to the temporary file."""

    def __init__(self, file):
        self.file = file
        self.count = 0

    def write_line(self, line):
        self.file.write(line + "\n")
        self.count += 1

    def write_row(self, fields):
        self.write_line(",".join(fields))


class Database:
    """
    A directory of flat text tables, one file per table.

    The first line of a table file is the comma separated header,
    every following line is one row aligned to it.
    """

    def __init__(self, path=None, extension=None):
        config = get_db_config()
        self.path = path if path is not None else config["path"]
        self.extension = extension if extension is not None else config["extension"]

    def __repr__(self):
        return f"Database({self.path!r})"

    # SQL entry point

    def execute(self, command: str):
        """Parse and run one statement. Returns the SELECT text or None."""
        from flat_db.query import execute_query
        from flat_db.sql_parser import parse

        parsed = parse(command)
        return execute_query(parsed, self)

    # Table names

    def table_path(self, table_name):
        if (
            not table_name
            or table_name.startswith(".")
            or "/" in table_name
            or os.sep in table_name
            or (os.altsep and os.altsep in table_name)
        ):
            raise InvalidTable(f"Invalid table name '{table_name}'")
        return os.path.join(self.path, table_name + self.extension)

    def table_exists(self, table_name):
        try:
            return os.path.isfile(self.table_path(table_name))
        except InvalidTable:
            return False

    def list_tables(self):
        """Every table in the store, sorted by name"""
        try:
            entries = os.listdir(self.path)
        except OSError as e:
            raise OtherError(f"reading directory {self.path} failed: {e}") from e

        tables = []
        for entry in entries:
            name, ext = os.path.splitext(entry)
            if ext != self.extension or not name or name.startswith("."):
                continue
            if os.path.isfile(os.path.join(self.path, entry)):
                tables.append(name)

        if not tables:
            raise InvalidTable("No tables found in the directory")

        return sorted(tables)

    def resolve_tables(self, tables):
        """Expand the wildcard table name into every table in the store"""
        if len(tables) == 1 and tables[0] == WILDCARD:
            return self.list_tables()
        return list(tables)

    # Reading

    def _open(self, table_name):
        path = self.table_path(table_name)
        try:
            return open(path, "r", encoding="utf-8", newline="")
        except OSError as e:
            raise InvalidTable(f"Error opening table '{table_name}': {e}") from e

    @staticmethod
    def _read_header(file, table_name):
        try:
            first_line = file.readline()
        except (OSError, UnicodeDecodeError) as e:
            raise InvalidTable(f"Error reading table '{table_name}': {e}") from e

        first_line = first_line.rstrip("\r\n")
        if not first_line.strip():
            raise InvalidTable(f"Table '{table_name}' has no header")

        return [column.strip() for column in first_line.split(",")]

    def read_header(self, table_name):
        """Only the header of a table, without touching its rows"""
        with self._open(table_name) as f:
            return self._read_header(f, table_name)

    @contextmanager
    def scan(self, table_name):
        """
        Open a table for one pass over its rows.

        Yields (header, rows) where rows produces (line, fields) pairs:
        the raw line without its line ending, and the fields padded/cut
        to the header width. Blank lines are skipped.
        """
        f = self._open(table_name)
        try:
            header = self._read_header(f, table_name)
            logger.debug("Scanning table '%s' (%d columns)", table_name, len(header))
            yield header, self._rows(f, table_name, len(header))
        finally:
            f.close()

    @staticmethod
    def _rows(file, table_name, width):
        while True:
            try:
                line = file.readline()
            except (OSError, UnicodeDecodeError) as e:
                raise OtherError(f"Error reading line of '{table_name}': {e}") from e
            if not line:
                return
            line = line.rstrip("\r\n")
            if not line.strip():
                continue
            yield line, split_row(line.strip(), width)

    def get_table(self, table_name):
        """Whole table as {"columns": header, "rows": [row dicts]}, or None if missing"""
        if not self.table_exists(table_name):
            return None
        with self.scan(table_name) as (header, rows):
            return {
                "columns": header,
                "rows": [dict(zip(header, fields)) for _, fields in rows],
            }

    # Writing

    def append_row(self, table_name, fields):
        """Append one row in place. Not protected by the atomic replace."""
        path = self.table_path(table_name)
        try:
            with open(path, "rb") as f:
                f.seek(0, os.SEEK_END)
                needs_newline = False
                if f.tell() > 0:
                    f.seek(-1, os.SEEK_END)
                    needs_newline = f.read(1) != b"\n"
        except OSError as e:
            raise InvalidTable(f"Error opening table '{table_name}': {e}") from e

        try:
            with open(path, "a", encoding="utf-8", newline="") as f:
                if needs_newline:
                    f.write("\n")
                f.write(",".join(fields) + "\n")
        except OSError as e:
            raise OtherError(f"Writing to table '{table_name}' failed: {e}") from e

    @contextmanager
    def rewrite(self, table_name, header):
        """
        Build a replacement body for a table.

        Yields a TableWriter over a temporary file in the store directory
        (header already written). The table is swapped for it with
        os.replace only when the block finishes cleanly; on any error the
        temporary file is removed and the table is left untouched.
        """
        path = self.table_path(table_name)
        try:
            tmp = tempfile.NamedTemporaryFile(
                "w",
                dir=self.path,
                prefix=f".{table_name}.",
                suffix=".tmp",
                delete=False,
                encoding="utf-8",
                newline="",
            )
        except OSError as e:
            raise OtherError(f"Creating temporary file for '{table_name}' failed: {e}") from e

        try:
            with tmp:
                writer = TableWriter(tmp)
                tmp.write(",".join(header) + "\n")
                yield writer
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp.name, path)
        except OSError as e:
            self._discard(tmp.name)
            raise OtherError(f"Rewriting table '{table_name}' failed: {e}") from e
        except BaseException:
            self._discard(tmp.name)
            raise

        logger.debug("Replaced table '%s' (%d rows)", table_name, writer.count)

    @staticmethod
    def _discard(path):
        if os.path.exists(path):
            os.remove(path)
