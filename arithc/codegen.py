import sys

from . import ast
from . import codegen_utils
from .assembler import assemble_listing
from .register_allocator import RegisterAllocator, DEFAULT_NUM_REGISTERS


class CompileError(Exception):
    """The tree holds something the code generator cannot translate."""
    pass


class Compiler:
    """Single-pass code generator over a parsed Program.

    Values are evaluated post-order: a chain visits its left operand, then
    for each (operator, operand) pair the operand first and the operator
    second, so both source registers are live when the operator is emitted.

    One instance compiles one tree at a time; `compile` resets all state
    before walking.
    """

    def __init__(self, num_registers=DEFAULT_NUM_REGISTERS):
        self.print_debug = False  # Set to True to enable debug printing
        self.reg_alloc = RegisterAllocator(num_registers)
        self.lines = []
        self.errors = []

    @property
    def num_registers(self):
        return self.reg_alloc.num_registers

    def emit(self, s):
        self.lines.append(s)

    def reset(self):
        """Forget emitted code and release every register."""
        self.reg_alloc.reset()
        self.lines = []
        self.errors = []

    def _debug(self, msg):
        if self.print_debug:
            print(f"[DEBUG] {msg}", file=sys.stderr)

    def compile(self, program: ast.Program):
        """Generate instructions for `program`. Returns the emitted lines."""
        self.reset()
        self.visit(program)
        return list(self.lines)

    def visit(self, node):
        if isinstance(node, ast.Program):
            self._debug("Visiting program")
            for expression in node.expressions:
                self.visit(expression)
            self._debug("Done visiting program")
        elif isinstance(node, (ast.Expression, ast.Term)):
            self._debug(f"Visiting {type(node).__name__.lower()}")
            self.visit(node.left)
            for op, operand in node.right:
                self.visit(operand)
                self.visit(op)
        elif isinstance(node, ast.Factor):
            self.visit(node.value)
        elif ast.is_literal(node):
            self._visit_literal(node)
        elif ast.is_operator(node):
            self._visit_operator(node)
        else:
            raise CompileError(f"cannot compile {type(node).__name__}: {node!r}")

    def _visit_literal(self, literal):
        self._debug(f"Visited {type(literal).__name__} with value of: {literal.value!r}")
        register = self.reg_alloc.allocate()
        self.emit(codegen_utils.format_load(register, literal))
        self.reg_alloc.push_live(register)

    def _visit_operator(self, op):
        # Check both conditions first so a failure leaves the pools as they were
        self.reg_alloc.require_live(2)
        self.reg_alloc.require_free(1)
        right = self.reg_alloc.pop_live()
        left = self.reg_alloc.pop_live()
        result = self.reg_alloc.allocate()
        self.emit(codegen_utils.format_binop(op, left, right, result))
        self._debug(f"{codegen_utils.opcode_for(op)}: ${left}, ${right} -> ${result}")
        self.reg_alloc.free(right)
        self.reg_alloc.free(left)
        self.reg_alloc.push_live(result)

    def gen(self) -> str:
        """Return the listing with its section markers."""
        return codegen_utils.ensure_sections("\n".join(self.lines))

    def to_bytecode(self, assembler) -> bytes:
        """Assemble the current listing.

        Returns b"" when the assembler rejects it; the error is kept in
        `self.errors` and reported on stderr.
        """
        return assemble_listing(self.gen(), assembler, num_registers=self.num_registers, errors=self.errors)

    def allocation_summary(self):
        return self.reg_alloc.get_allocation_summary()

    def dump_asm(self, stream=None):
        stream = stream if stream is not None else sys.stderr
        for line in self.lines:
            print(line, file=stream)

    def dump_used_registers(self, stream=None):
        self._dump_registers("Used Registers", self.reg_alloc.used_regs, stream)

    def dump_free_registers(self, stream=None):
        self._dump_registers("Free Registers", self.reg_alloc.free_regs, stream)

    def _dump_registers(self, title, registers, stream):
        stream = stream if stream is not None else sys.stderr
        print("--------------------", file=stream)
        print(f"|{title:^18}|", file=stream)
        print("--------------------", file=stream)
        for r in registers:
            print(codegen_utils.reg(r), file=stream)
