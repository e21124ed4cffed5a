"""Register allocation for the register-based virtual machine."""

DEFAULT_NUM_REGISTERS = 31


class AllocationError(Exception):
    """Base class for register allocation failures."""
    pass


class RegisterExhausted(AllocationError):
    """All registers hold live values; there is no spilling to fall back on."""
    pass


class OperandStackUnderflow(AllocationError):
    """An operator needed more live values than the in-use stack holds."""
    pass


class RegisterAllocator:
    """Manages a fixed pool of numbered registers as two LIFO stacks.

    Free registers:
    - Start as ids num_registers-1 .. 0 so the first allocation yields 0.
    - The most recently freed id is the next one handed out.

    Live registers:
    - Every loaded or computed value pushes its register onto the in-use
      stack; operators pop their operands from the top (right operand first).

    There is no spilling: when the free pool is empty, allocation raises
    RegisterExhausted and the allocator state is left untouched.
    """

    def __init__(self, num_registers=DEFAULT_NUM_REGISTERS):
        if num_registers < 1:
            raise ValueError(f"register pool needs at least one register, got {num_registers}")
        self.num_registers = num_registers
        self.free_regs = []
        self.used_regs = []
        self.reset()

    def allocate(self):
        """Take a register id from the free pool."""
        if not self.free_regs:
            raise RegisterExhausted(
                f"all {self.num_registers} registers are live "
                f"(in use: {', '.join(f'${r}' for r in self.used_regs)})"
            )
        return self.free_regs.pop()

    def free(self, register):
        """Return a register id to the free pool."""
        if register in self.free_regs:
            raise ValueError(f"register ${register} is already free")
        self.free_regs.append(register)

    def push_live(self, register):
        """Mark a register as holding a live intermediate value."""
        self.used_regs.append(register)

    def pop_live(self):
        if not self.used_regs:
            raise OperandStackUnderflow("operand stack underflow")
        return self.used_regs.pop()

    def require_live(self, count):
        """Raise OperandStackUnderflow unless `count` live values are available."""
        if len(self.used_regs) < count:
            raise OperandStackUnderflow(
                f"operand stack underflow: need {count} live value(s), have {len(self.used_regs)}"
            )

    def require_free(self, count=1):
        if len(self.free_regs) < count:
            raise RegisterExhausted(
                f"need {count} free register(s), {len(self.free_regs)} of {self.num_registers} available"
            )

    def save_context(self):
        """Save current allocation state."""
        return (list(self.free_regs), list(self.used_regs))

    def restore_context(self, state):
        """Restore allocation state."""
        free_regs, used_regs = state
        self.free_regs = list(free_regs)
        self.used_regs = list(used_regs)

    def reset(self):
        """Release every register (for a new compilation)."""
        self.free_regs = list(reversed(range(self.num_registers)))
        self.used_regs = []

    def get_allocation_summary(self):
        """Get human-readable summary of current allocations (for debugging)."""
        return {
            'free': list(self.free_regs),
            'in_use': list(self.used_regs),
            'available': len(self.free_regs),
            'live': len(self.used_regs),
        }
