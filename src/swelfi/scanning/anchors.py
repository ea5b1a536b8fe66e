"""Anchor-scan combinators for semi-structured tool output.

The ``iw`` and ``iwlist`` parsers do not model the full grammar of the
tools' indented output.  They walk a :class:`TextCursor` forward to a
literal anchor, then extract one fixed-shape field after it.  A missing
anchor raises :class:`AnchorNotFound`; a field that is present but
malformed raises :class:`FieldFormatError`.
"""

from __future__ import annotations

import re

from swelfi.wireless_common import AnchorNotFound, FieldFormatError

_FLOAT_RE = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")
_DIGITS_RE = re.compile(r"\d+")


class TextCursor:
    """A forward-only position inside *text*, bounded by *end*.

    All searches start at the current position and never look past
    ``end``, so a cursor can be confined to one record of a larger text.
    """

    def __init__(self, text: str, pos: int = 0, end: int | None = None) -> None:
        self.text = text
        self.pos = pos
        self.end = len(text) if end is None else end

    def __repr__(self) -> str:
        return f"TextCursor(pos={self.pos}, end={self.end})"

    def at_end(self) -> bool:
        return self.pos >= self.end

    def find(self, anchor: str) -> int | None:
        """Return the index of the next *anchor*, or None.  Does not move."""
        idx = self.text.find(anchor, self.pos, self.end)
        return None if idx == -1 else idx

    def skip_past(self, anchor: str) -> None:
        """Move just past the next occurrence of *anchor*."""
        idx = self.find(anchor)
        if idx is None:
            raise AnchorNotFound(anchor)
        self.pos = idx + len(anchor)

    def skip_past_on_line(self, anchor: str) -> None:
        """Like :meth:`skip_past`, but *anchor* must occur on the current line."""
        eol = self._line_end()
        idx = self.text.find(anchor, self.pos, eol)
        if idx == -1:
            raise AnchorNotFound(anchor)
        self.pos = idx + len(anchor)

    def expect(self, literal: str) -> None:
        """Consume *literal* at the current position."""
        if not self.text.startswith(literal, self.pos, self.end):
            raise FieldFormatError(f"expected {literal!r} at {self.pos}")
        self.pos += len(literal)

    def rest_of_line(self) -> str:
        """Return the text up to end-of-line (or end) and move onto the newline."""
        eol = self._line_end()
        value = self.text[self.pos:eol]
        self.pos = eol
        return value.rstrip("\r")

    def take_float(self) -> float:
        """Consume a decimal floating-point number."""
        match = _FLOAT_RE.match(self.text, self.pos, self.end)
        if match is None:
            raise FieldFormatError(f"expected a number at {self.pos}")
        try:
            value = float(match.group())
        except ValueError as exc:
            raise FieldFormatError(f"bad number at {self.pos}: {exc}") from exc
        self.pos = match.end()
        return value

    def take_int(self) -> int:
        """Consume an unsigned decimal integer."""
        match = _DIGITS_RE.match(self.text, self.pos, self.end)
        if match is None:
            raise FieldFormatError(f"expected digits at {self.pos}")
        try:
            value = int(match.group())
        except ValueError as exc:
            raise FieldFormatError(f"bad integer at {self.pos}: {exc}") from exc
        self.pos = match.end()
        return value

    def take_quoted(self, quote: str = '"') -> str:
        """Consume a *quote*-delimited string.  No escape handling."""
        self.expect(quote)
        close = self.text.find(quote, self.pos, self.end)
        if close == -1:
            raise FieldFormatError(f"unterminated {quote} string at {self.pos}")
        value = self.text[self.pos:close]
        self.pos = close + len(quote)
        return value

    def _line_end(self) -> int:
        eol = self.text.find("\n", self.pos, self.end)
        return self.end if eol == -1 else eol
