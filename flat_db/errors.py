# flat_db/errors.py


class QueryError(ValueError):
    """Base error for everything a statement can fail with.

    str(error) gives the single user-visible message, tagged with its kind:
    "[INVALID_TABLE]: Table 'x' does not exist"
    """

    kind = "ERROR"

    def __init__(self, message):
        super().__init__(message)
        self.message = message

    def __str__(self):
        return f"[{self.kind}]: {self.message}"


class InvalidTable(QueryError):
    """Table missing or unreadable"""

    kind = "INVALID_TABLE"


class InvalidColumn(QueryError):
    """Unknown column, or value count mismatch"""

    kind = "INVALID_COLUMN"


class InvalidSyntax(QueryError):
    """Grammar violation anywhere in parsing"""

    kind = "INVALID_SYNTAX"


class OtherError(QueryError):
    """I/O or store-listing failures not tied to a table or column"""

    kind = "ERROR"
