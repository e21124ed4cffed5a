"""Recursive-descent parser for arithmetic expression programs.

Grammar (whitespace is allowed before every rule and consumed after it):

    program    := expression+
    expression := term (('+' | '-') term)*
    term       := factor (('*' | '/') factor)*
    factor     := literal | '(' expression ')'
    literal    := '-'? DIGITS ('.' DIGITS)?

Precedence is encoded by the rule nesting; every alternation is an ordered
choice and the first match wins.
"""
import math
import re
import sys

from . import ast


_NUMBER_RE = re.compile(r"-?[0-9]+(?:\.[0-9]+)?")

# Deepest parenthesis nesting accepted before the parser gives up
MAX_NESTING = 200

# Decimal digits in the largest signed 64-bit magnitude
_INT64_DIGITS = 19

_ANY_OPS = (ast.AddOp, ast.SubOp, ast.MulOp, ast.DivOp)


class ParseSyntaxError(SyntaxError):
    """A grammar rule failed to match.

    `rule` names the rule that got furthest into the input, `remainder` is
    the unconsumed input from that point on.
    """

    def __init__(self, rule, remainder, position=0, expected=None):
        self.rule = rule
        self.remainder = remainder
        self.position = position
        self.expected = expected
        found = repr(remainder[:16]) if remainder else "end of input"
        message = f"{rule}: expected {expected or 'input'} at position {position}, found {found}"
        super().__init__(message)


class LiteralConversionError(ValueError):
    """A numeric literal does not fit its target representation."""

    def __init__(self, text, kind):
        self.text = text
        self.kind = kind
        super().__init__(f"{kind} literal out of range: {text}")


def _describe(ops):
    return " or ".join(f"'{ast.OPERATOR_SYMBOLS[op]}'" for op in ops)


class Parser:
    def __init__(self, text: str):
        self.print_debug = False
        self.text = text
        self.pos = 0
        self.nesting = 0
        # (position, rule, expected) of the furthest failure seen so far
        self.furthest = (-1, None, None)

    # -- helpers ---------------------------------------------------------

    def _skip_ws(self):
        text = self.text
        while self.pos < len(text) and text[self.pos].isspace():
            self.pos += 1

    def _peek(self, ch):
        return self.text.startswith(ch, self.pos)

    def _fail(self, rule, expected, pos=None):
        """Record a failed match; ties go to the rule that failed last."""
        pos = self.pos if pos is None else pos
        if pos >= self.furthest[0]:
            self.furthest = (pos, rule, expected)
        return None

    def error(self) -> ParseSyntaxError:
        pos, rule, expected = self.furthest
        if rule is None:
            pos, rule, expected = self.pos, "program", "end of input"
        return ParseSyntaxError(rule, self.text[pos:], pos, expected)

    # -- rules -----------------------------------------------------------

    def literal(self):
        start = self.pos
        self._skip_ws()
        m = _NUMBER_RE.match(self.text, self.pos)
        if not m:
            self._fail("literal", "a number")
            self.pos = start
            return None
        end = m.end()
        if end < len(self.text):
            nxt = self.text[end]
            if nxt.isalnum() or nxt in "_.":
                self._fail("literal", "end of number", end)
                self.pos = start
                return None

        digits = m.group(0)
        if "." in digits:
            value = float(digits)
            if not math.isfinite(value):
                raise LiteralConversionError(digits, "float")
            node = ast.FloatLiteral(value=value)
        else:
            # Longer numerals cannot fit in 64 bits; reject them before int() does
            if len(digits.lstrip("-").lstrip("0")) > _INT64_DIGITS:
                raise LiteralConversionError(digits, "integer")
            try:
                value = int(digits)
            except ValueError as e:
                raise LiteralConversionError(digits, "integer") from e
            if not ast.INT64_MIN <= value <= ast.INT64_MAX:
                raise LiteralConversionError(digits, "integer")
            node = ast.IntegerLiteral(value=value)

        self.pos = end
        self._skip_ws()
        return node

    def operator(self, choices=_ANY_OPS, rule="operator"):
        start = self.pos
        self._skip_ws()
        for op in choices:
            if self._peek(ast.OPERATOR_SYMBOLS[op]):
                self.pos += 1
                self._skip_ws()
                return op()
        self._fail(rule, _describe(choices))
        self.pos = start
        return None

    def factor(self):
        start = self.pos
        self._skip_ws()
        lit = self.literal()
        if lit is not None:
            self._skip_ws()
            return ast.Factor(value=lit)

        if not self._peek("("):
            self._fail("factor", "a number or '('")
            self.pos = start
            return None

        if self.nesting >= MAX_NESTING:
            raise ParseSyntaxError("factor", self.text[self.pos:], self.pos,
                                   f"at most {MAX_NESTING} nested parentheses")
        self.pos += 1
        self.nesting += 1
        try:
            inner = self.expression()
        finally:
            self.nesting -= 1
        if inner is None:
            self.pos = start
            return None
        self._skip_ws()
        if not self._peek(")"):
            self._fail("factor", "')'")
            self.pos = start
            return None
        self.pos += 1
        self._skip_ws()
        return ast.Factor(value=inner)

    def term(self):
        start = self.pos
        self._skip_ws()
        left = self.factor()
        if left is None:
            self.pos = start
            return None
        right = []
        while True:
            save = self.pos
            op = self.operator(ast.MULTIPLICATIVE_OPS, "term")
            if op is None:
                break
            operand = self.factor()
            if operand is None:
                self.pos = save
                break
            right.append((op, operand))
        self._skip_ws()
        return ast.Term(left=left, right=tuple(right))

    def expression(self):
        start = self.pos
        self._skip_ws()
        left = self.term()
        if left is None:
            self.pos = start
            return None
        right = []
        while True:
            save = self.pos
            op = self.operator(ast.ADDITIVE_OPS, "expression")
            if op is None:
                break
            operand = self.term()
            if operand is None:
                self.pos = save
                break
            right.append((op, operand))
        self._skip_ws()
        return ast.Expression(left=left, right=tuple(right))

    def program(self):
        start = self.pos
        self._skip_ws()
        expressions = []
        while True:
            expr = self.expression()
            if expr is None:
                break
            expressions.append(expr)
        if not expressions:
            self.pos = start
            return None
        self._skip_ws()
        if self.print_debug:
            print(f"[DEBUG] program: {len(expressions)} expression(s), stopped at {self.pos}", file=sys.stderr)
        return ast.Program(expressions=tuple(expressions))


def _run_rule(name, text):
    parser = Parser(text)
    node = getattr(parser, name)()
    if node is None:
        raise parser.error()
    return node, text[parser.pos:]


def parse_literal(text: str):
    """Parse a leading literal. Returns (node, remainder)."""
    return _run_rule("literal", text)


def parse_operator(text: str):
    """Parse a leading operator (+, -, *, /). Returns (node, remainder)."""
    return _run_rule("operator", text)


def parse_factor(text: str):
    return _run_rule("factor", text)


def parse_term(text: str):
    return _run_rule("term", text)


def parse_expression(text: str):
    return _run_rule("expression", text)


def parse(text: str) -> ast.Program:
    """Parse a whole source text into a Program.

    Raises ParseSyntaxError when no expression matches or when anything but
    whitespace is left over, and LiteralConversionError for out-of-range
    numerals.
    """
    parser = Parser(text)
    program = parser.program()
    if program is None or parser.pos < len(text):
        raise parser.error()
    return program
