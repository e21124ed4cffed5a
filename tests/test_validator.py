import pytest

from arithc import ast
from arithc.parser import parse
from arithc.validator import (
    Instruction,
    ListingError,
    ValidationError,
    Validator,
    parse_listing,
    registers_needed,
    validate_listing,
)


def one(value):
    return ast.Factor(ast.IntegerLiteral(value))


def test_parsed_programs_are_valid():
    assert Validator(parse("(1+2)*3 - 4/5\n6")).validate() == []


def test_term_rejects_additive_operator():
    bad = ast.Program((ast.Expression(ast.Term(one(1), ((ast.AddOp(), one(2)),))),))
    with pytest.raises(ValidationError, match="Term operator"):
        Validator(bad).validate()


def test_expression_rejects_multiplicative_operator():
    bad = ast.Program((ast.Expression(ast.Term(one(1)), ((ast.MulOp(), ast.Term(one(2))),)),))
    with pytest.raises(ValidationError, match="Expression operator"):
        Validator(bad).validate()


def test_factor_must_wrap_literal_or_expression():
    bad = ast.Program((ast.Expression(ast.Term(ast.Factor(ast.Term(one(1))))),))
    with pytest.raises(ValidationError, match="Factor must wrap"):
        Validator(bad).validate()


@pytest.mark.parametrize("value", [True, "7", 7.0])
def test_integer_literal_must_hold_a_plain_int(value):
    bad = ast.Program((ast.Expression(ast.Term(ast.Factor(ast.IntegerLiteral(value)))),))
    with pytest.raises(ValidationError, match="integer literal holds"):
        Validator(bad).validate()


def test_out_of_range_integer_in_hand_built_tree():
    bad = ast.Program((ast.Expression(ast.Term(one(2 ** 63))),))
    with pytest.raises(ValidationError, match="out of 64-bit range"):
        Validator(bad).validate()


def test_empty_program_is_invalid():
    with pytest.raises(ValidationError):
        Validator(ast.Program(())).validate()
    with pytest.raises(ValidationError):
        Validator(ast.Expression(ast.Term(one(1)))).validate()


def test_division_by_literal_zero_warns():
    warnings = Validator(parse("1/0")).validate()
    assert warnings == ["expression 0: division by literal zero"]


def test_register_pressure_warning():
    warnings = Validator(parse("1+2"), num_registers=2).validate()
    assert len(warnings) == 1
    assert "needs 3 registers" in warnings[0]


@pytest.mark.parametrize("source, needed", [
    ("5", 1),
    ("1+2", 3),
    ("(4*3)-1", 3),
    ("1 2 3", 3),
    ("1 2 3 4", 4),
    ("1+(2+(3+4))", 5),
])
def test_registers_needed(source, needed):
    assert registers_needed(parse(source)) == needed


def test_parse_listing():
    text = ".code\n.data\nLOAD $0 #4\nLOAD $1 #-1.5\nMUL $0 $1 $2\n"
    assert parse_listing(text) == [
        Instruction(".data", "LOAD", (0, 4)),
        Instruction(".data", "LOAD", (1, -1.5)),
        Instruction(".data", "MUL", (0, 1, 2)),
    ]


def test_parse_listing_without_markers_and_blank_lines():
    instructions = parse_listing("\n  ADD $1 $0 $2  \n\nLOAD $3 #1e+20")
    assert instructions[0] == Instruction(None, "ADD", (1, 0, 2))
    assert instructions[1].operands == (3, 1e20)


@pytest.mark.parametrize("text", [
    "LOAD 0 #4",
    "LOAD $0 4",
    "PUSH $1",
    "ADD $1 $0",
    ".text\nLOAD $0 #1",
])
def test_malformed_listing(text):
    with pytest.raises(ListingError):
        parse_listing(text)


def test_validate_listing_requires_markers_in_order():
    with pytest.raises(ListingError):
        validate_listing("LOAD $0 #1")
    with pytest.raises(ListingError):
        validate_listing(".data\n.code\nLOAD $0 #1")
    assert len(validate_listing(".code\n.data\nLOAD $0 #1")) == 1


def test_validate_listing_checks_register_file():
    with pytest.raises(ListingError, match=r"\$31"):
        validate_listing(".code\n.data\nLOAD $31 #1", num_registers=31)
    with pytest.raises(ListingError, match=r"\$4"):
        validate_listing(".code\n.data\nADD $0 $1 $4", num_registers=4)
