"""
Utilities for reading mangled text.
"""

from typing import Optional

from msvc_demangler.errors import BadNumber

# Returned by `Cursor.take_one()` when the input is exhausted.
END = ""


class Cursor:
    """
    Read-only view over the unconsumed part of a mangled symbol.

    All consumption is prefix-based: a failed `consume()` leaves the cursor untouched.
    Only the most recently taken character can be pushed back.
    """

    def __init__(self, text: str):
        self._text = text
        self._pos = 0
        # The last character returned by `take_one()`, if it may still be pushed back.
        self._unget: Optional[str] = None

    def __len__(self) -> int:
        return len(self._text) - self._pos

    def __repr__(self) -> str:
        return f"Cursor({self.remaining()!r})"

    def empty(self) -> bool:
        return self._pos >= len(self._text)

    def remaining(self) -> str:
        """
        Return the unconsumed text without advancing.
        """
        return self._text[self._pos :]

    def starts_with(self, literal: str) -> bool:
        return self._text.startswith(literal, self._pos)

    def peek(self) -> str:
        """
        Return the next character without consuming it, or `END` if the input is exhausted.
        """
        return self._text[self._pos : self._pos + 1]

    def consume(self, literal: str) -> bool:
        """
        If the remaining text starts with `literal`, advance past it and return `True`.
        Otherwise, leave the cursor unchanged and return `False`.
        """
        if not literal or not self.starts_with(literal):
            return False
        self._pos += len(literal)
        self._unget = None
        return True

    def take_one(self) -> str:
        """
        Remove and return the next character, or return `END` if the input is exhausted.
        """
        char = self.peek()
        if char == END:
            self._unget = None
            return END
        self._pos += 1
        self._unget = char
        return char

    def push_back(self, char: str):
        """
        Undo the previous `take_one()`. Pushing back `END` does nothing.
        """
        if char == END:
            return
        assert self._unget == char, f"Cannot push back {char!r}; it was not the last char taken."
        self._pos -= 1
        self._unget = None

    def read_until(self, terminator: str) -> Optional[str]:
        """
        Read all text up to the next `terminator`, consuming the terminator as well.

        If the terminator does not occur in the remaining text, return `None` and leave the
        cursor unchanged.
        """
        end = self._text.find(terminator, self._pos)
        if end < 0:
            return None
        value = self._text[self._pos : end]
        self._pos = end + len(terminator)
        self._unget = None
        return value

    def is_digit(self) -> bool:
        """
        Determine if the next character is a decimal digit.
        """
        return "0" <= self.peek() <= "9"


def read_number(src: Cursor) -> int:
    """
    Read a mangled number from the source. Numbers have the following forms:

    - An optional `?` prefix, which negates the number.
    - A single decimal digit, encoding the values 1 to 10 (`0` is 1, `9` is 10).
    - A run of "hex digits" `A`-`P` (`A` is 0, `P` is 15), most significant first,
      terminated by `@`. An empty run is zero.

    If the number is not terminated, a `BadNumber` error is raised.
    """
    negate = src.consume("?")

    if src.is_digit():
        value = int(src.take_one()) + 1
        return -value if negate else value

    rest = src.remaining()
    value = 0
    for i, char in enumerate(rest):
        if char == "@":
            src.consume(rest[: i + 1])
            return -value if negate else value
        if not "A" <= char <= "P":
            break
        value = (value << 4) + ord(char) - ord("A")

    raise BadNumber(f"bad number: {rest}")
