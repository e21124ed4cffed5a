"""Source text to listing (and optionally bytecode) in one call."""
import sys
from dataclasses import dataclass, field
from typing import List, Optional

from . import ast
from . import parser
from .codegen import Compiler
from .register_allocator import DEFAULT_NUM_REGISTERS
from .validator import Validator


@dataclass
class CompileResult:
    program: ast.Program
    instructions: List[str]
    listing: str
    bytecode: Optional[bytes] = None
    warnings: List[str] = field(default_factory=list)
    errors: List[Exception] = field(default_factory=list)


def compile_source(src: str, assembler=None, validate=True, num_registers=DEFAULT_NUM_REGISTERS,
                   print_debug=False) -> CompileResult:
    """Parse, check and compile `src`.

    Parse and allocation failures propagate to the caller. When an assembler
    is given, `bytecode` holds its output, or b"" if it rejected the listing
    (the failure is in `errors`).
    """
    program = parser.parse(src)

    warnings = []
    if validate:
        warnings = Validator(program, num_registers=num_registers).validate()
        for warning in warnings:
            print(f"Warning: {warning}", file=sys.stderr)

    cg = Compiler(num_registers=num_registers)
    cg.print_debug = print_debug
    instructions = cg.compile(program)
    result = CompileResult(program=program, instructions=instructions, listing=cg.gen(), warnings=warnings)

    if assembler is not None:
        result.bytecode = cg.to_bytecode(assembler)
        result.errors = list(cg.errors)
    return result
