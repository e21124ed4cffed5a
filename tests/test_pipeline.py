import pytest

from arithc.parser import LiteralConversionError, ParseSyntaxError
from arithc.pipeline import compile_source
from arithc.register_allocator import RegisterExhausted


def test_compile_source_without_assembler():
    result = compile_source("(4*3)-1")
    assert len(result.instructions) == 5
    assert result.instructions[2].startswith("MUL")
    assert result.instructions[4] == "SUB $0 $2 $1"
    assert result.listing.startswith(".code\n.data\n")
    assert result.bytecode is None
    assert result.errors == []


def test_compile_source_with_assembler(toy_assembler):
    result = compile_source("5", assembler=toy_assembler)
    assert result.instructions == ["LOAD $0 #5"]
    assert result.bytecode == b"\x01\x00i\x05" + b"\x00" * 7
    assert toy_assembler.calls == [result.listing]


def test_assembler_rejection_is_reported(rejecting_assembler):
    result = compile_source("1+2", assembler=rejecting_assembler)
    assert result.bytecode == b""
    assert len(result.errors) == 1


def test_parse_failures_propagate():
    with pytest.raises(ParseSyntaxError):
        compile_source("")
    with pytest.raises(LiteralConversionError):
        compile_source("-9223372036854775809")


def test_register_exhaustion_propagates_after_warning(capsys):
    with pytest.raises(RegisterExhausted):
        compile_source("1+2", num_registers=2)
    assert "Warning: program needs 3 registers" in capsys.readouterr().err


def test_validation_warnings_are_returned():
    result = compile_source("4/0")
    assert result.warnings == ["expression 0: division by literal zero"]


def test_validation_can_be_skipped():
    result = compile_source("4/0", validate=False)
    assert result.warnings == []
    assert result.instructions == ["LOAD $0 #4", "LOAD $1 #0", "DIV $0 $1 $2"]
