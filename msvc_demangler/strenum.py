"""
String-valued enum base class.
"""

from enum import Enum


class StrEnum(str, Enum):
    """
    Enum whose members are also strings. `str(member)` returns the member's value.
    """

    def __str__(self) -> str:
        return str(self.value)
