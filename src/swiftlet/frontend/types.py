"""
Swiftlet Type System
====================

Swiftlet has four value types plus a marker for "no value":

| Source name | Type     | Values                       |
|-------------|----------|------------------------------|
| Int         | INTEGER  | arbitrary precision integers |
| Bool        | BOOLEAN  | true, false                  |
| String      | STRING   | text                         |
| Void        | NONE     | (statements, print)          |
| (none)      | FUNCTION | a function declaration       |

There is no inference, widening or conversion: two types are compatible
only when they are the same member.
"""

from enum import Enum
from typing import Optional


class Type(Enum):
    """The type of an expression, declaration or statement."""
    INTEGER = "integer"
    BOOLEAN = "boolean"
    STRING = "string"
    FUNCTION = "function"
    NONE = "none"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def from_string(cls, name: str) -> Optional["Type"]:
        """
        Map a type name written in source code to its Type.

        Args:
            name: Type name as spelled in the source, e.g. "Int"

        Returns:
            The matching Type, or None if the name is not a type
        """
        return TYPE_NAMES.get(name)


TYPE_NAMES: dict[str, Type] = {
    "Int": Type.INTEGER,
    "Bool": Type.BOOLEAN,
    "String": Type.STRING,
    "Void": Type.NONE,
}
