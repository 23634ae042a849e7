# flat_db/lexer.py
from typing import List, Optional, Tuple

from flat_db.errors import InvalidSyntax

SYMBOLS = "(),;"
OPERATOR_CHARS = "=!<>"
QUOTE = "'"
TERMINATOR = ";"


def strip_quotes(value: str) -> str:
    """Remove one pair of surrounding single quotes, if present"""
    value = value.strip()
    if len(value) > 1 and value.startswith(QUOTE) and value.endswith(QUOTE):
        return value[1:-1]
    return value


def split_outside_quotes(text: str, separator: str = ",") -> List[str]:
    """Split on separator, ignoring separators inside single quotes"""
    parts = []
    current = ""
    in_quotes = False

    for char in text:
        if char == QUOTE:
            in_quotes = not in_quotes
        if char == separator and not in_quotes:
            parts.append(current)
            current = ""
        else:
            current += char

    parts.append(current)
    return parts


class QueryCursor:
    """
    Reads a query one token at a time.

    The query text is never modified: the cursor only moves an index over it.
    Every read records where its token started, so unread() can step back
    over any number of reads (the grammar only ever needs one).

    Tokens:
        - bare words, ending at whitespace, a symbol, a quote or an operator char
        - 'quoted text', returned without the quotes, spaces and symbols included
        - operators: a run of = ! < > characters ("=", "!=", ">=", ...)
        - the symbols ( ) , ; as single-character tokens

    Values read with next_literal() are not split at operator chars:
    "name = Hi!" compares against "Hi!".
    """

    def __init__(self, text: str):
        self.text = text
        self.pos = 0
        self._history: List[int] = []

    def __repr__(self):
        return f"QueryCursor({self.text[self.pos:]!r})"

    def _skip_spaces(self):
        while self.pos < len(self.text) and self.text[self.pos].isspace():
            self.pos += 1

    def _read(self) -> Tuple[Optional[str], bool]:
        """Read the next token, returning (token, was_quoted)"""
        self._skip_spaces()
        text = self.text
        start = self.pos

        if start >= len(text):
            return None, False

        char = text[start]
        quoted = False

        if char in SYMBOLS:
            end = start + 1
            word = char
        elif char == QUOTE:
            closing = text.find(QUOTE, start + 1)
            if closing == -1:
                raise InvalidSyntax(f"Missing closing quote in: {text[start:].strip()}")
            end = closing + 1
            word = text[start + 1:closing]
            quoted = True
        elif char in OPERATOR_CHARS:
            end = start
            while end < len(text) and text[end] in OPERATOR_CHARS:
                end += 1
            word = text[start:end]
        else:
            end = start
            while end < len(text):
                c = text[end]
                if c.isspace() or c in SYMBOLS or c in OPERATOR_CHARS or c == QUOTE:
                    break
                end += 1
            word = text[start:end]

        self.pos = end
        self._history.append(start)
        return word, quoted

    def next_word(self) -> Optional[str]:
        """Next token, or None when the query is exhausted"""
        word, _ = self._read()
        return word

    def next_token(self) -> Tuple[Optional[str], bool]:
        """Next token and whether it was quoted, so '(' can name a column"""
        return self._read()

    def next_keyword(self) -> Optional[str]:
        """Next token as written: quoted text keeps its quotes and never reads as a keyword"""
        word, quoted = self._read()
        if quoted:
            return self.text[self._history[-1]:self.pos]
        return word

    def next_literal(self) -> Optional[str]:
        """
        Next value token; None (nothing consumed) if a symbol or the end follows.
        A bare value runs to whitespace or a symbol, operator characters included.
        """
        char = self.peek_char()
        if char is None or char in SYMBOLS:
            return None
        if char == QUOTE:
            return self.next_word()

        self._skip_spaces()
        start = end = self.pos
        while end < len(self.text):
            c = self.text[end]
            if c.isspace() or c in SYMBOLS:
                break
            end += 1

        self.pos = end
        self._history.append(start)
        return self.text[start:end]

    def peek_char(self) -> Optional[str]:
        """Next non-space character, without consuming it"""
        i = self.pos
        while i < len(self.text) and self.text[i].isspace():
            i += 1
        return self.text[i] if i < len(self.text) else None

    def unread(self):
        """Step back to where the most recent read started"""
        self.pos = self._history.pop()

    def at_end(self) -> bool:
        return self.peek_char() is None

    def expect(self, expected: str):
        """Consume the next token, failing unless it is the bare keyword expected"""
        word, quoted = self._read()
        if word is None:
            raise InvalidSyntax(f"Expected '{expected}', found nothing")
        if quoted or word != expected:
            raise InvalidSyntax(f"Expected '{expected}', found '{word}'")

    def expect_end(self):
        """The statement must stop here: a terminator and nothing after it"""
        word, quoted = self._read()
        if word is None:
            raise InvalidSyntax("Expected ';', found nothing")
        if quoted or word != TERMINATOR:
            raise InvalidSyntax(f"Expected end of query, found '{word}'")
        rest = self.text[self.pos:].strip()
        if rest:
            raise InvalidSyntax(f"Unexpected text after ';': {rest}")

    def take_until(self, *stops: str) -> Optional[str]:
        """
        Raw text up to the first bare token in stops (which is left unread).
        Returns None, consuming nothing, if no stop token follows.
        unread() afterwards rewinds over the whole chunk.
        """
        self._skip_spaces()
        start = self.pos
        depth = len(self._history)

        while True:
            token_start = self.pos
            word, quoted = self._read()
            if word is None:
                self.pos = start
                del self._history[depth:]
                return None
            if not quoted and word in stops:
                self.pos = token_start
                del self._history[depth:]
                self._history.append(start)
                return self.text[start:token_start].strip()

    def take_parenthesized(self) -> str:
        """Raw text between '(' and its closing ')'; quoted ')' does not close"""
        self._skip_spaces()
        start = self.pos
        text = self.text

        if start >= len(text) or text[start] != "(":
            raise InvalidSyntax("No opening parenthesis found")

        in_quotes = False
        for i in range(start + 1, len(text)):
            char = text[i]
            if char == QUOTE:
                in_quotes = not in_quotes
            elif char == ")" and not in_quotes:
                self._history.append(start)
                self.pos = i + 1
                return text[start + 1:i]

        raise InvalidSyntax("No closing parenthesis found")
