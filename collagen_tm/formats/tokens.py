"""Whitespace token stream over a text file, with line and single-character reads."""

from __future__ import annotations

import math
from typing import Optional, Tuple


class TokenReader:
    """
    Cursor over text. next_token / next_char skip whitespace (including newlines);
    read_line returns the rest of the current line and moves past its newline.
    """

    def __init__(self, text: str):
        self.text = text
        self.pos = 0
        self.line_no = 1

    def at_end(self) -> bool:
        return self.pos >= len(self.text)

    def mark(self) -> Tuple[int, int]:
        return self.pos, self.line_no

    def reset(self, mark: Tuple[int, int]) -> None:
        """Return to a position saved by mark()."""
        self.pos, self.line_no = mark

    def _skip_space(self) -> None:
        text = self.text
        while self.pos < len(text) and text[self.pos].isspace():
            if text[self.pos] == "\n":
                self.line_no += 1
            self.pos += 1

    def next_token(self) -> Optional[str]:
        """Next whitespace-delimited token, or None at end of text."""
        self._skip_space()
        if self.at_end():
            return None
        start = self.pos
        while self.pos < len(self.text) and not self.text[self.pos].isspace():
            self.pos += 1
        return self.text[start:self.pos]

    def next_char(self) -> Optional[str]:
        """Next non-whitespace character, or None at end of text."""
        self._skip_space()
        if self.at_end():
            return None
        ch = self.text[self.pos]
        self.pos += 1
        return ch

    def read_line(self) -> Optional[str]:
        """Remainder of the current line without its line ending, or None at end of text."""
        if self.at_end():
            return None
        end = self.text.find("\n", self.pos)
        if end < 0:
            line = self.text[self.pos:]
            self.pos = len(self.text)
        else:
            line = self.text[self.pos:end]
            self.pos = end + 1
            self.line_no += 1
        return line.rstrip("\r")

    def next_float(self) -> float:
        tok = self.next_token()
        if tok is None:
            raise ValueError(f"line {self.line_no}: expected a number, found end of file")
        try:
            value = float(tok)
        except ValueError:
            raise ValueError(f"line {self.line_no}: expected a number, found {tok!r}") from None
        if not math.isfinite(value):
            raise ValueError(f"line {self.line_no}: expected a finite number, found {tok!r}")
        return value

    def next_int(self) -> int:
        tok = self.next_token()
        if tok is None:
            raise ValueError(f"line {self.line_no}: expected an integer, found end of file")
        try:
            return int(tok)
        except ValueError:
            raise ValueError(f"line {self.line_no}: expected an integer, found {tok!r}") from None
