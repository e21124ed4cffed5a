"""Structural validation of expression trees and of generated listings."""
from dataclasses import dataclass
from typing import List, Optional

from lark import Lark, Transformer, v_args
from lark.exceptions import UnexpectedInput

from . import ast


class ValidationError(Exception):
    """Exception raised for validation errors."""
    pass


class ListingError(Exception):
    """The generated assembly text does not follow the listing grammar."""
    pass


class Validator:
    """Checks the invariants the parser guarantees on trees built by hand.

    - Factor wraps exactly one literal or one Expression.
    - Term operators are only Mul/Div; Expression operators only Add/Sub.
    - A Program holds at least one Expression.
    """

    def __init__(self, program, num_registers=None):
        self.program = program
        self.num_registers = num_registers
        self.errors = []
        self.warnings = []

    def validate(self):
        """Run all validation checks on the program."""
        if not isinstance(self.program, ast.Program):
            raise ValidationError(f"Validation failed:\nexpected a Program, got {type(self.program).__name__}")
        if not self.program.expressions:
            self.errors.append("Program has no expressions")
        for i, expr in enumerate(self.program.expressions):
            self._validate_expression(expr, f"expression {i}")

        if self.errors:
            error_msg = "\n".join(self.errors)
            raise ValidationError(f"Validation failed:\n{error_msg}")

        if self.num_registers is not None:
            needed = registers_needed(self.program)
            if needed > self.num_registers:
                self.warnings.append(
                    f"program needs {needed} registers at its peak, only {self.num_registers} available"
                )
        return self.warnings

    def _validate_expression(self, expr, where):
        if not isinstance(expr, ast.Expression):
            self.errors.append(f"{where}: expected Expression, got {type(expr).__name__}")
            return
        self._validate_term(expr.left, where)
        for op, term in expr.right:
            if not isinstance(op, ast.ADDITIVE_OPS):
                self.errors.append(f"{where}: Expression operator must be '+' or '-', got {op!r}")
            self._validate_term(term, where)

    def _validate_term(self, term, where):
        if not isinstance(term, ast.Term):
            self.errors.append(f"{where}: expected Term, got {type(term).__name__}")
            return
        self._validate_factor(term.left, where)
        for op, factor in term.right:
            if not isinstance(op, ast.MULTIPLICATIVE_OPS):
                self.errors.append(f"{where}: Term operator must be '*' or '/', got {op!r}")
            self._validate_factor(factor, where)
            if isinstance(op, ast.DivOp) and _is_zero_literal(factor):
                self.warnings.append(f"{where}: division by literal zero")

    def _validate_factor(self, factor, where):
        if not isinstance(factor, ast.Factor):
            self.errors.append(f"{where}: expected Factor, got {type(factor).__name__}")
            return
        value = factor.value
        if isinstance(value, ast.IntegerLiteral):
            if isinstance(value.value, bool) or not isinstance(value.value, int):
                self.errors.append(f"{where}: integer literal holds {value.value!r}")
            elif not ast.INT64_MIN <= value.value <= ast.INT64_MAX:
                self.errors.append(f"{where}: integer literal {value.value} is out of 64-bit range")
        elif isinstance(value, ast.FloatLiteral):
            if not isinstance(value.value, float):
                self.errors.append(f"{where}: float literal holds {value.value!r}")
        elif isinstance(value, ast.Expression):
            self._validate_expression(value, where)
        else:
            self.errors.append(f"{where}: Factor must wrap a literal or an Expression, got {type(value).__name__}")


def _is_zero_literal(factor):
    return isinstance(factor, ast.Factor) and ast.is_literal(factor.value) and factor.value.value == 0


def registers_needed(node) -> int:
    """Peak number of simultaneously live registers when compiling `node`.

    An operator holds both operands and its result at once, so any chain
    with an operator needs at least three. Results of earlier expressions in
    a Program stay live while the later ones are evaluated.
    """
    if ast.is_literal(node):
        return 1
    if isinstance(node, ast.Factor):
        return registers_needed(node.value)
    if isinstance(node, (ast.Term, ast.Expression)):
        peak = registers_needed(node.left)
        for _op, operand in node.right:
            peak = max(peak, 1 + registers_needed(operand), 3)
        return peak
    if isinstance(node, ast.Program):
        return max((i + registers_needed(expr) for i, expr in enumerate(node.expressions)), default=0)
    raise TypeError(f"cannot size {type(node).__name__}")


# ========================
# Listing grammar
# ========================

LISTING_GRAMMAR = r"""
start: _line*

_line: _NL
     | directive _NL
     | instruction _NL

directive: SECTION
?instruction: load | binop
load: "LOAD" REG IMM
binop: OPCODE REG REG REG

SECTION: ".code" | ".data"
OPCODE: "ADD" | "SUB" | "MUL" | "DIV"
REG: /\$[0-9]+/
IMM: /#-?[0-9]+(\.[0-9]+)?([eE][+-]?[0-9]+)?/

_NL: /(\r?\n)+/

%import common.WS_INLINE
%ignore WS_INLINE
"""

_listing_parser = None


def _get_listing_parser():
    global _listing_parser
    if _listing_parser is None:
        _listing_parser = Lark(LISTING_GRAMMAR, parser="lalr", propagate_positions=False)
    return _listing_parser


@dataclass(frozen=True)
class Instruction:
    section: str
    opcode: str
    operands: tuple


def _number(text):
    if any(c in text for c in ".eE"):
        return float(text)
    return int(text)


@v_args(inline=True)
class ListingBuilder(Transformer):
    def directive(self, section):
        return str(section)

    def load(self, register, immediate):
        return ("LOAD", (int(register[1:]), _number(immediate[1:])))

    def binop(self, opcode, first, second, result):
        return (str(opcode), (int(first[1:]), int(second[1:]), int(result[1:])))

    def start(self, *items):
        section = None
        instructions = []
        for item in items:
            if isinstance(item, str):
                section = item
            else:
                opcode, operands = item
                instructions.append(Instruction(section=section, opcode=opcode, operands=operands))
        return instructions


def parse_listing(text: str) -> List[Instruction]:
    """Parse generated assembly text into instructions.

    Each instruction records the section marker it appears under (None when
    it precedes any marker).
    """
    try:
        tree = _get_listing_parser().parse(text if text.endswith("\n") else text + "\n")
    except UnexpectedInput as e:
        raise ListingError(f"malformed listing: {e}") from e
    return ListingBuilder().transform(tree)


def validate_listing(text: str, num_registers: Optional[int] = None) -> List[Instruction]:
    """Check the listing grammar, section markers and register ids."""
    instructions = parse_listing(text)
    markers = [line.strip() for line in text.split("\n") if line.strip() in (".code", ".data")]
    if ".code" not in markers or ".data" not in markers:
        raise ListingError("listing must contain both .code and .data markers")
    if markers.index(".code") > markers.index(".data"):
        raise ListingError(".code marker must come before .data")
    if num_registers is not None:
        for ins in instructions:
            regs = ins.operands[:1] if ins.opcode == "LOAD" else ins.operands
            for r in regs:
                if r >= num_registers:
                    raise ListingError(f"{ins.opcode} uses ${r}, outside the {num_registers}-register file")
    return instructions
