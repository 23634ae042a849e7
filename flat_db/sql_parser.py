# flat_db/sql_parser.py
from flat_db.condition import OPERATORS, and_, comparison, not_, or_
from flat_db.database import WILDCARD
from flat_db.errors import InvalidColumn, InvalidSyntax
from flat_db.lexer import (
    OPERATOR_CHARS,
    QUOTE,
    SYMBOLS,
    TERMINATOR,
    QueryCursor,
    split_outside_quotes,
    strip_quotes,
)

ASCENDING = "ASC"
DESCENDING = "DESC"

KEYWORDS = {
    "INTO", "VALUES", "SET", "FROM", "WHERE", "ORDER", "BY",
    ASCENDING, DESCENDING, "AND", "OR", "NOT",
}


def parse(command: str):
    """Parse a query into a command dict tagged by "type"."""
    if not command.rstrip().endswith(TERMINATOR):
        command = command.rstrip() + TERMINATOR

    cursor = QueryCursor(command)
    verb = cursor.next_word()

    if verb is None or verb == TERMINATOR:
        raise InvalidSyntax("No command found")

    command_type = verb.upper()

    if command_type == "INSERT":
        return parse_insert(cursor)

    elif command_type == "UPDATE":
        return parse_update(cursor)

    elif command_type == "DELETE":
        return parse_delete(cursor)

    elif command_type == "SELECT":
        return parse_select(cursor)

    else:
        raise InvalidSyntax(f"Unknown command: {verb}")


def parse_insert(cursor):
    """
    Parse: INSERT INTO t[,t...] [(c[,c...])] VALUES (v[,v...]);
    Example: INSERT INTO users (id, name) VALUES (1, 'Juan');
    """
    cursor.expect("INTO")
    tables = extract_table_names(cursor)

    columns = []
    if cursor.peek_char() == "(":
        columns = extract_value_list(cursor)

    cursor.expect("VALUES")
    values = extract_value_list(cursor)
    cursor.expect_end()

    if columns and len(columns) != len(values):
        raise InvalidColumn(
            f"Number of columns ({len(columns)}) and values ({len(values)}) must match"
        )

    return {
        "type": "INSERT",
        "tables": tables,
        "columns": columns,
        "values": values,
    }


def parse_update(cursor):
    """
    Parse: UPDATE t[,t...] SET c=v[,c=v...] [WHERE <cond>];
    Example: UPDATE users SET name = 'Juan', age = 30 WHERE id = 1;
    """
    tables = extract_table_names(cursor)
    cursor.expect("SET")
    updates = extract_assignments(cursor)
    where = parse_optional_where(cursor)
    cursor.expect_end()

    return {
        "type": "UPDATE",
        "tables": tables,
        "updates": updates,
        "where": where,
    }


def parse_delete(cursor):
    """
    Parse: DELETE FROM t[,t...] [WHERE <cond>];
    Example: DELETE FROM users WHERE id = 1;
    """
    cursor.expect("FROM")
    tables = extract_table_names(cursor)
    where = parse_optional_where(cursor)
    cursor.expect_end()

    return {
        "type": "DELETE",
        "tables": tables,
        "where": where,
    }


def parse_select(cursor):
    """
    Parse: SELECT (c[,c...]|*) FROM t[,t...] [WHERE <cond>] [ORDER BY c [ASC|DESC], ...];
    Example: SELECT name, age FROM users WHERE age > 18 ORDER BY age DESC;
    WHERE and ORDER BY may come in either order.
    """
    columns = extract_select_columns(cursor)
    cursor.expect("FROM")
    tables = extract_table_names(cursor)

    where = None
    order_by = None

    while True:
        word = cursor.next_keyword()
        if word == "WHERE":
            where = parse_where(cursor)
        elif word == "ORDER":
            order_by = extract_order_by(cursor)
        elif word == TERMINATOR:
            cursor.unread()
            break
        else:
            raise InvalidSyntax(
                f"Expected 'WHERE', 'ORDER BY', or end of query. Found {word}"
            )

    cursor.expect_end()

    return {
        "type": "SELECT",
        "columns": columns,
        "tables": tables,
        "where": where,
        "order_by": order_by,
    }


# Clause extractors

def extract_table_names(cursor):
    """t1, t2, ... (or the wildcard *)"""
    tables = []

    while True:
        name, quoted = cursor.next_token()
        if name is None or (name in SYMBOLS and not quoted):
            if tables:
                raise InvalidSyntax("Expected table name after ','")
            raise InvalidSyntax("Missing table names")
        tables.append(name)

        if cursor.peek_char() != ",":
            break
        cursor.next_word()

    return tables


def extract_value_list(cursor):
    """(a, 'b c', d) -> ["a", "b c", "d"]"""
    inner = cursor.take_parenthesized()
    if not inner.strip():
        raise InvalidSyntax("Expected at least one value between parentheses")
    return [strip_quotes(item) for item in split_outside_quotes(inner)]


def extract_assignments(cursor):
    """
    SET clause: c1 = v1, c2 = 'v 2' up to WHERE or the end of the query.
    An empty value (c1 = ) is a valid assignment of "".
    """
    text = cursor.take_until("WHERE", TERMINATOR)
    if text is None or not text:
        raise InvalidSyntax("Expected assignments after 'SET'")

    updates = {}
    for assignment in split_outside_quotes(text):
        assignment = assignment.strip()
        parts = split_outside_quotes(assignment, "=")
        if len(parts) < 2:
            raise InvalidSyntax(f"No equal sign found in update: {assignment}")

        key = parts[0].strip()
        if not key:
            raise InvalidSyntax("Key in update expression cannot be empty")

        updates[strip_quotes(key)] = strip_quotes("=".join(parts[1:]))

    return updates


def extract_select_columns(cursor):
    """Everything before FROM: '*' or a comma separated column list"""
    text = cursor.take_until("FROM")
    if text is None:
        raise InvalidSyntax("Expected 'FROM' after headers")

    columns = [column.strip() for column in split_outside_quotes(text)]
    if not all(columns):
        raise InvalidSyntax("Expected headers or '*' after 'SELECT' command")

    return [strip_quotes(column) for column in columns]


def extract_order_by(cursor):
    """BY c1 [ASC|DESC], c2 [ASC|DESC] ...; direction defaults to ASC"""
    cursor.expect("BY")
    order_by = []

    while True:
        column, quoted = cursor.next_token()
        if column is None or (column in SYMBOLS and not quoted):
            if order_by:
                raise InvalidSyntax("Expected column after ','")
            raise InvalidSyntax("Expected at least one column to sort by")

        direction = ASCENDING
        word = cursor.next_keyword()
        if word in (ASCENDING, DESCENDING):
            direction = word
        elif word is not None:
            cursor.unread()

        order_by.append({"column": column, "direction": direction})

        if cursor.peek_char() != ",":
            break
        cursor.next_word()

    return order_by


# Condition parser
#
# where_clause := or_expr
# or_expr      := and_expr ("OR" and_expr)*
# and_expr     := not_expr ("AND" not_expr)*
# not_expr     := "NOT" comparison | comparison
# comparison   := "(" or_expr ")" | column op literal

def parse_optional_where(cursor):
    word = cursor.next_keyword()
    if word == "WHERE":
        return parse_where(cursor)
    if word is not None:
        cursor.unread()
    return None


def parse_where(cursor):
    """Condition after WHERE; stops before ORDER, ')' or the terminator"""
    return parse_or(cursor)


def parse_or(cursor):
    left = parse_and(cursor)
    while True:
        word = cursor.next_keyword()
        if word != "OR":
            if word is not None:
                cursor.unread()
            return left
        left = or_(left, parse_and(cursor))


def parse_and(cursor):
    left = parse_not(cursor)
    while True:
        word = cursor.next_keyword()
        if word != "AND":
            if word is not None:
                cursor.unread()
            return left
        left = and_(left, parse_not(cursor))


def parse_not(cursor):
    word = cursor.next_keyword()
    if word is None:
        raise InvalidSyntax("Unexpected end of condition")
    if word == "NOT":
        return not_(parse_comparison(cursor))
    cursor.unread()
    return parse_comparison(cursor)


def parse_comparison(cursor):
    left, quoted = cursor.next_token()

    if left == "(" and not quoted:
        condition = parse_or(cursor)
        if cursor.next_keyword() != ")":
            raise InvalidSyntax("Missing closing ')'")
        return condition

    if left is None or (left in SYMBOLS and not quoted):
        raise InvalidSyntax("Missing left operand")

    operator, quoted = cursor.next_token()
    if operator is None or (operator in SYMBOLS and not quoted):
        raise InvalidSyntax(f"Missing operator after '{left}'")
    if quoted or operator not in OPERATORS:
        raise InvalidSyntax(f"{operator} is not a comparison operator")

    right = cursor.next_literal()
    if right is None:
        raise InvalidSyntax(f"Missing right operand in '{left} {operator}'")

    return comparison(left, operator, right)


# Re-serialization

PRECEDENCE = {"OR": 1, "AND": 2, "NOT": 3, "COMPARISON": 4}


def quote(value):
    return f"{QUOTE}{value}{QUOTE}"


def identifier(name):
    """Table or column name, quoted when it would not read back as one bare word"""
    if name == WILDCARD:
        return name
    if (
        not name
        or name in KEYWORDS
        or any(c.isspace() or c in SYMBOLS or c in OPERATOR_CHARS for c in name)
    ):
        return quote(name)
    return name


def format_condition(condition):
    """Condition tree back to query text, parenthesized only where needed"""
    node_type = condition["type"]

    if node_type == "COMPARISON":
        return f"{identifier(condition['column'])} {condition['operator']} {quote(condition['value'])}"

    if node_type == "NOT":
        inner = condition["condition"]
        text = format_condition(inner)
        if inner["type"] != "COMPARISON":
            text = f"({text})"
        return f"NOT {text}"

    # Trees fold to the left, so a right child of equal precedence needs parentheses
    level = PRECEDENCE[node_type]
    left = format_condition(condition["left"])
    right = format_condition(condition["right"])
    if PRECEDENCE[condition["left"]["type"]] < level:
        left = f"({left})"
    if PRECEDENCE[condition["right"]["type"]] <= level:
        right = f"({right})"
    return f"{left} {node_type} {right}"


def format_command(parsed):
    """Command dict back to canonical query text; parse(format_command(c)) == c"""
    query_type = parsed["type"]
    tables = ", ".join(identifier(t) for t in parsed["tables"])

    if query_type == "INSERT":
        values = ", ".join(quote(v) for v in parsed["values"])
        columns = ""
        if parsed["columns"]:
            columns = " (" + ", ".join(identifier(c) for c in parsed["columns"]) + ")"
        return f"INSERT INTO {tables}{columns} VALUES ({values});"

    where = ""
    if parsed.get("where") is not None:
        where = " WHERE " + format_condition(parsed["where"])

    if query_type == "UPDATE":
        updates = ", ".join(f"{identifier(k)} = {quote(v)}" for k, v in parsed["updates"].items())
        return f"UPDATE {tables} SET {updates}{where};"

    elif query_type == "DELETE":
        return f"DELETE FROM {tables}{where};"

    elif query_type == "SELECT":
        columns = ", ".join(identifier(c) for c in parsed["columns"])
        order = ""
        if parsed.get("order_by"):
            order = " ORDER BY " + ", ".join(
                f"{identifier(o['column'])} {o['direction']}" for o in parsed["order_by"]
            )
        return f"SELECT {columns} FROM {tables}{where}{order};"

    else:
        raise ValueError(f"Unknown query type: {query_type}")
