import struct

import pytest

from arithc.assembler import AssemblerError
from arithc.validator import parse_listing


OPCODE_BYTES = {"LOAD": 0x01, "ADD": 0x10, "SUB": 0x11, "MUL": 0x12, "DIV": 0x13}


class ToyAssembler:
    """Encodes each instruction as an opcode byte followed by its operands."""

    def __init__(self):
        self.calls = []

    def assemble(self, text):
        self.calls.append(text)
        out = bytearray()
        for ins in parse_listing(text):
            out.append(OPCODE_BYTES[ins.opcode])
            if ins.opcode == "LOAD":
                register, value = ins.operands
                out.append(register)
                if isinstance(value, float):
                    out += b"f" + struct.pack("<d", value)
                else:
                    out += b"i" + struct.pack("<q", value)
            else:
                out += bytes(ins.operands)
        return bytes(out)


class RejectingAssembler:
    def __init__(self, message="unknown mnemonic"):
        self.message = message
        self.calls = []

    def assemble(self, text):
        self.calls.append(text)
        raise AssemblerError(self.message)


@pytest.fixture
def toy_assembler():
    return ToyAssembler()


@pytest.fixture
def rejecting_assembler():
    return RejectingAssembler()
