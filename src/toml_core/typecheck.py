"""Structural types used to check array homogeneity and record key types.

The set of types is closed:

- ``BaseType``: Integer, Float, Datetime, String, Bool, Table
- ``ArrayType``: an array of one component type
- ``TupleType``: ordered component types (no syntax produces one yet)
- ``PolymorphicType``: the element type of ``[]``; equal to anything
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union

from .errors import InternalError, SemanticError
from .tokens import Token, TokenType


# ---------------------------------------------------------------------------
# Type variants
# ---------------------------------------------------------------------------

class BaseKind(Enum):
    Integer = "Integer"
    Float = "Float"
    Datetime = "Datetime"
    String = "String"
    Bool = "Bool"
    # Tables are opaque: their contents may be heterogeneous.
    Table = "Table"


@dataclass(frozen=True, slots=True)
class BaseType:
    kind: BaseKind

    @property
    def name(self) -> str:
        return self.kind.value

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True, slots=True)
class PolymorphicType:
    # Every polymorphic type shares one name; a distinct type variable per
    # empty array would be needed to tell them apart.
    @property
    def name(self) -> str:
        return "a"

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True, slots=True)
class ArrayType:
    of: TomlType

    @property
    def name(self) -> str:
        return "Array"

    def __str__(self) -> str:
        return f"[{self.of}]"


@dataclass(frozen=True, slots=True)
class TupleType:
    of: tuple[TomlType, ...]

    @property
    def name(self) -> str:
        return "Tuple"

    def __str__(self) -> str:
        return "(" + ", ".join(str(t) for t in self.of) + ")"


TomlType = Union[BaseType, PolymorphicType, ArrayType, TupleType]

INTEGER = BaseType(BaseKind.Integer)
FLOAT = BaseType(BaseKind.Float)
DATETIME = BaseType(BaseKind.Datetime)
STRING = BaseType(BaseKind.String)
BOOL = BaseType(BaseKind.Bool)
TABLE = BaseType(BaseKind.Table)
POLYMORPHIC = PolymorphicType()


# ---------------------------------------------------------------------------
# Equality
# ---------------------------------------------------------------------------

def components(t: TomlType) -> tuple[TomlType, ...]:
    """Return the component types of *t* (empty for leaf types)."""
    if isinstance(t, ArrayType):
        return (t.of,)
    if isinstance(t, TupleType):
        return t.of
    if isinstance(t, (BaseType, PolymorphicType)):
        return ()
    raise InternalError(f"Unknown structural type {t!r}.")


def type_equal(t1: TomlType, t2: TomlType) -> bool:
    """Two types are equal if either is polymorphic, or if they share a name
    and have pairwise equal component lists of the same length."""
    if isinstance(t1, PolymorphicType) or isinstance(t2, PolymorphicType):
        return True
    if t1.name != t2.name:
        return False

    cs1, cs2 = components(t1), components(t2)
    if len(cs1) != len(cs2):
        return False
    return all(type_equal(a, b) for a, b in zip(cs1, cs2))


# ---------------------------------------------------------------------------
# Inference
# ---------------------------------------------------------------------------

_PRIMITIVES: dict[TokenType, BaseType] = {
    TokenType.INTEGER: INTEGER,
    TokenType.FLOAT: FLOAT,
    TokenType.DATETIME: DATETIME,
    TokenType.STRING: STRING,
    TokenType.BOOL: BOOL,
}


def type_of_token(token: Token) -> BaseType:
    """Type of a primitive value token."""
    try:
        return _PRIMITIVES[token.type]
    except KeyError:
        raise InternalError(
            f"Cannot infer primitive type of token {token!r}."
        ) from None


def type_of_array(types: list[TomlType]) -> ArrayType:
    """Unify element types, left to right, into one array type.

    ``[]`` is an array of the polymorphic type.  The first element that
    does not match the first element's type is reported.
    """
    if not types:
        return ArrayType(POLYMORPHIC)

    the_type = types[0]
    for t in types[1:]:
        if not type_equal(the_type, t):
            raise SemanticError(
                f"Array contains values of type '{the_type}' and '{t}', "
                "but arrays must be homogeneous."
            )
    return ArrayType(the_type)


def type_of_tuple(types: list[TomlType]) -> TupleType:
    """Any combination of component types makes a valid tuple."""
    return TupleType(tuple(types))
