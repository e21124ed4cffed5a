from dataclasses import dataclass
from typing import Tuple, Union


# Signed 64-bit integer range accepted for integer literals
INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1


@dataclass(frozen=True)
class AddOp:
    pass


@dataclass(frozen=True)
class SubOp:
    pass


@dataclass(frozen=True)
class MulOp:
    pass


@dataclass(frozen=True)
class DivOp:
    pass


@dataclass(frozen=True)
class IntegerLiteral:
    value: int


@dataclass(frozen=True)
class FloatLiteral:
    value: float


@dataclass(frozen=True)
class Factor:
    """Tightest-binding level: a literal or a parenthesized Expression."""
    value: Union[IntegerLiteral, FloatLiteral, 'Expression']


@dataclass(frozen=True)
class Term:
    """Multiplicative chain: left (op, Factor) (op, Factor) ...

    Operators in `right` are only MulOp or DivOp, kept in source order.
    """
    left: Factor
    right: Tuple[Tuple[Union[MulOp, DivOp], Factor], ...] = ()


@dataclass(frozen=True)
class Expression:
    """Additive chain: left (op, Term) (op, Term) ...

    Operators in `right` are only AddOp or SubOp, kept in source order.
    """
    left: Term
    right: Tuple[Tuple[Union[AddOp, SubOp], Term], ...] = ()


@dataclass(frozen=True)
class Program:
    expressions: Tuple[Expression, ...]


Operator = Union[AddOp, SubOp, MulOp, DivOp]
Literal = Union[IntegerLiteral, FloatLiteral]
Token = Union[AddOp, SubOp, MulOp, DivOp, IntegerLiteral, FloatLiteral,
              Factor, Term, Expression, Program]

ADDITIVE_OPS = (AddOp, SubOp)
MULTIPLICATIVE_OPS = (MulOp, DivOp)

OPERATOR_SYMBOLS = {
    AddOp: '+',
    SubOp: '-',
    MulOp: '*',
    DivOp: '/',
}

# Operator codes in the order the generic operator rule tries them
_OPERATOR_CODES = (AddOp, SubOp, MulOp, DivOp)


def operator_index(op) -> int:
    """Get the integer code (0..3) of an operator token."""
    for i, cls in enumerate(_OPERATOR_CODES):
        if type(op) is cls:
            return i
    raise ValueError(f"not an operator token: {op!r}")


def operator_from_index(index: int):
    """Build the operator token for an integer code (0..3)."""
    if not isinstance(index, int) or not 0 <= index < len(_OPERATOR_CODES):
        raise ValueError(f"invalid operator code: {index!r}")
    return _OPERATOR_CODES[index]()


def is_operator(node) -> bool:
    return isinstance(node, (AddOp, SubOp, MulOp, DivOp))


def is_literal(node) -> bool:
    return isinstance(node, (IntegerLiteral, FloatLiteral))
