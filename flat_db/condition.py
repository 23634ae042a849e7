# flat_db/condition.py
import re

OPERATORS = ("=", "!=", ">", "<", ">=", "<=")

INTEGER_RE = re.compile(r"[+-]?[0-9]+")


def comparison(column, operator, value):
    """COMPARISON node: column <operator> 'value'"""
    return {"type": "COMPARISON", "column": column, "operator": operator, "value": value}


def and_(left, right):
    return {"type": "AND", "left": left, "right": right}


def or_(left, right):
    return {"type": "OR", "left": left, "right": right}


def not_(condition):
    return {"type": "NOT", "condition": condition}


def as_integer(value):
    """int(value) if value is written as a plain integer, otherwise None"""
    if INTEGER_RE.fullmatch(value):
        return int(value)
    return None


def compare_values(left, right):
    """
    Three-way comparison used by WHERE and ORDER BY.

    When both sides parse as integers they are compared as numbers,
    otherwise as text ("10" < "9" as text, but 10 > 9 as numbers).
    """
    left_int = as_integer(left)
    right_int = as_integer(right)

    if left_int is not None and right_int is not None:
        left, right = left_int, right_int

    if left < right:
        return -1
    if left > right:
        return 1
    return 0


def check_operator(operator, result):
    """Does a compare_values() result satisfy the operator?"""
    if operator == "=":
        return result == 0
    if operator == "!=":
        return result != 0
    if operator == ">":
        return result > 0
    if operator == "<":
        return result < 0
    if operator == ">=":
        return result >= 0
    if operator == "<=":
        return result <= 0
    raise ValueError(f"Unsupported comparison operator: {operator}")


def evaluate(condition, row):
    """
    Evaluate a condition tree against one row (column -> value mapping).
    A comparison on a column the row does not have is simply false.
    """
    node_type = condition["type"]

    if node_type == "AND":
        left = evaluate(condition["left"], row)
        right = evaluate(condition["right"], row)
        return left and right

    elif node_type == "OR":
        left = evaluate(condition["left"], row)
        right = evaluate(condition["right"], row)
        return left or right

    elif node_type == "NOT":
        return not evaluate(condition["condition"], row)

    elif node_type == "COMPARISON":
        column = condition["column"]
        if column not in row:
            return False
        result = compare_values(row[column], condition["value"])
        return check_operator(condition["operator"], result)

    else:
        raise ValueError(f"Unknown condition type: {node_type}")


def should_filter(condition, row):
    """A missing condition accepts every row"""
    if condition is None:
        return True
    return evaluate(condition, row)


def condition_columns(condition):
    """Every column name referenced by the tree, in reading order"""
    if condition is None:
        return []
    node_type = condition["type"]
    if node_type == "COMPARISON":
        return [condition["column"]]
    if node_type == "NOT":
        return condition_columns(condition["condition"])
    return condition_columns(condition["left"]) + condition_columns(condition["right"])
