"""Utility functions for code generation."""

from . import ast


CODE_MARKER = ".code"
DATA_MARKER = ".data"

OPCODES = {
    ast.AddOp: 'ADD',
    ast.SubOp: 'SUB',
    ast.MulOp: 'MUL',
    ast.DivOp: 'DIV',
}

# Additive instructions take their operands as <right> <left>, multiplicative
# ones as <left> <right>, where right is the first register popped off the
# in-use stack and left the second.
RIGHT_FIRST_OPS = (ast.AddOp, ast.SubOp)


def reg(register) -> str:
    return f"${register}"


def format_immediate(literal) -> str:
    """Render a literal as an immediate operand (#value)."""
    if isinstance(literal, ast.FloatLiteral):
        return f"#{literal.value!r}"
    if isinstance(literal, ast.IntegerLiteral):
        return f"#{literal.value}"
    raise TypeError(f"not a literal: {literal!r}")


def format_load(register, literal) -> str:
    return f"LOAD {reg(register)} {format_immediate(literal)}"


def opcode_for(op) -> str:
    try:
        return OPCODES[type(op)]
    except KeyError:
        raise TypeError(f"not an operator: {op!r}") from None


def operand_order(op, left, right):
    """Order the two source registers the way the opcode expects them."""
    if isinstance(op, RIGHT_FIRST_OPS):
        return (right, left)
    return (left, right)


def format_binop(op, left, right, result) -> str:
    first, second = operand_order(op, left, right)
    return f"{opcode_for(op)} {reg(first)} {reg(second)} {reg(result)}"


def _has_marker(lines, marker):
    return any(line.strip() == marker for line in lines)


def ensure_sections(text: str) -> str:
    """Make sure the listing carries `.code` and `.data` markers.

    A missing `.code` is prepended; a missing `.data` is inserted right after
    the `.code` line. Markers already present are left where they are.
    """
    lines = text.split("\n") if text else []
    if not _has_marker(lines, CODE_MARKER):
        lines.insert(0, CODE_MARKER)
    if not _has_marker(lines, DATA_MARKER):
        code_at = next(i for i, line in enumerate(lines) if line.strip() == CODE_MARKER)
        lines.insert(code_at + 1, DATA_MARKER)
    return "\n".join(lines)
