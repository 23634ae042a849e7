# flat_db/query.py
from functools import cmp_to_key

from flat_db.condition import compare_values, condition_columns, should_filter
from flat_db.database import WILDCARD
from flat_db.errors import InvalidColumn
from flat_db.logger import get_logger
from flat_db.sql_parser import DESCENDING

logger = get_logger(__name__)


def execute_query(parsed, db):
    """
    Execute a parsed command against a Database.
    Write commands return None, SELECT returns its text output.
    """
    query_type = parsed["type"]

    if query_type == "INSERT":
        return insert_into(parsed, db)

    elif query_type == "UPDATE":
        return update_table(parsed, db)

    elif query_type == "DELETE":
        return delete_from(parsed, db)

    elif query_type == "SELECT":
        return select_from(parsed, db)

    else:
        raise ValueError(f"Unknown query type: {query_type}")


def warn_unknown_filter_columns(table_name, header, where):
    """Comparisons on missing columns are just false; worth a warning though"""
    for column in condition_columns(where):
        if column not in header:
            logger.warning(
                "WHERE references column '%s' not in table '%s'; it never matches",
                column,
                table_name,
            )


def build_insert_row(header, columns, values):
    """One output row sized to the header, by position or by column name"""
    if len(values) > len(header):
        raise InvalidColumn("Can't insert more values than the amount of columns")

    row = [""] * len(header)

    if not columns:
        for i, value in enumerate(values):
            row[i] = value
        return row

    positions = {column: i for i, column in enumerate(header)}
    for column, value in zip(columns, values):
        if column not in positions:
            raise InvalidColumn(f"Column '{column}' not found in the table")
        row[positions[column]] = value

    return row


def insert_into(parsed, db):
    """INSERT INTO t [(c, ...)] VALUES (v, ...)"""
    for table_name in db.resolve_tables(parsed["tables"]):
        header = db.read_header(table_name)
        row = build_insert_row(header, parsed["columns"], parsed["values"])
        db.append_row(table_name, row)
        logger.info("1 row inserted into '%s'", table_name)

    return None


def update_table(parsed, db):
    """UPDATE t SET col = value, col2 = value2 [WHERE condition]"""
    updates = parsed["updates"]
    where = parsed.get("where")

    for table_name in db.resolve_tables(parsed["tables"]):
        header = db.read_header(table_name)
        for column in updates:
            if column not in header:
                raise InvalidColumn(
                    f"Column to update '{column}' not found in table '{table_name}'"
                )
        warn_unknown_filter_columns(table_name, header, where)

        updated = 0
        # scan closes before rewrite swaps the file in
        with db.rewrite(table_name, header) as writer, db.scan(table_name) as (_, rows):
            for line, fields in rows:
                if should_filter(where, dict(zip(header, fields))):
                    # by position, so a repeated header name keeps each field
                    writer.write_row([updates.get(c, f) for c, f in zip(header, fields)])
                    updated += 1
                else:
                    writer.write_line(line)

        logger.info("%d row(s) updated in '%s'", updated, table_name)

    return None


def delete_from(parsed, db):
    """DELETE FROM t [WHERE condition]; without WHERE every row goes"""
    where = parsed.get("where")

    for table_name in db.resolve_tables(parsed["tables"]):
        header = db.read_header(table_name)
        warn_unknown_filter_columns(table_name, header, where)

        deleted = 0
        with db.rewrite(table_name, header) as writer, db.scan(table_name) as (_, rows):
            for line, fields in rows:
                if should_filter(where, dict(zip(header, fields))):
                    deleted += 1
                else:
                    writer.write_line(line)

        logger.info("%d row(s) deleted from '%s'", deleted, table_name)

    return None


def check_select_columns(header, columns):
    """Requested columns in requested order; '*' is the whole header"""
    if len(columns) == 1 and columns[0] == WILDCARD:
        return list(header)

    for column in columns:
        if column not in header:
            raise InvalidColumn(f"Column to select '{column}' not found in the table")

    return list(columns)


def sort_rows(rows, columns, order_by):
    """
    Stable multi-key sort of projected rows.
    Keys are compared like WHERE values: numbers when both sides are integers.
    """
    keys = []
    for order in order_by:
        if order["column"] not in columns:
            raise InvalidColumn(f"Column '{order['column']}' not found in headers")
        keys.append((columns.index(order["column"]), order["direction"] == DESCENDING))

    def compare(a, b):
        for index, descending in keys:
            result = compare_values(a[index], b[index])
            if result != 0:
                return -result if descending else result
        return 0

    rows.sort(key=cmp_to_key(compare))
    return rows


def select_tables(parsed, db):
    """
    SELECT cols FROM t [WHERE condition] [ORDER BY ...]

    Returns one {"table", "columns", "rows"} block per target table,
    in table-list order.
    """
    where = parsed.get("where")
    order_by = parsed.get("order_by")
    results = []

    for table_name in db.resolve_tables(parsed["tables"]):
        with db.scan(table_name) as (header, rows):
            columns = check_select_columns(header, parsed["columns"])
            positions = [header.index(column) for column in columns]
            warn_unknown_filter_columns(table_name, header, where)

            selected = []
            for _, fields in rows:
                if should_filter(where, dict(zip(header, fields))):
                    selected.append([fields[i] for i in positions])

        if order_by:
            sort_rows(selected, columns, order_by)

        logger.debug("%d row(s) selected from '%s'", len(selected), table_name)
        results.append({"table": table_name, "columns": columns, "rows": selected})

    return results


def format_select_output(results):
    """Header line then one line per row, for each table block"""
    output = []
    for block in results:
        output.append(",".join(block["columns"]) + "\n")
        for row in block["rows"]:
            output.append(",".join(row) + "\n")
    return "".join(output)


def select_from(parsed, db):
    return format_select_output(select_tables(parsed, db))
