"""Hand-off of generated listings to an external assembler."""
import sys
from typing import Protocol

from .validator import ListingError, validate_listing


class AssemblerError(Exception):
    """The assembler rejected the listing it was given."""
    pass


class Assembler(Protocol):
    """Anything that turns listing text into a VM instruction stream.

    Implementations raise AssemblerError when the text is rejected.
    """

    def assemble(self, text: str) -> bytes:
        ...


def assemble_listing(text: str, assembler: Assembler, num_registers=None, stream=None, errors=None) -> bytes:
    """Validate `text` and pass it to `assembler`.

    Returns the assembled bytes, or b"" after printing a diagnostic when the
    listing is malformed or the assembler rejects it. The failure itself is
    appended to `errors` when a list is given.
    """
    stream = stream if stream is not None else sys.stderr
    try:
        validate_listing(text, num_registers=num_registers)
    except ListingError as e:
        print(f"Listing error: {e}", file=stream)
        if errors is not None:
            errors.append(e)
        return b""

    try:
        bytecode = assembler.assemble(text)
    except AssemblerError as e:
        print(f"Assembler error: {e}", file=stream)
        if errors is not None:
            errors.append(e)
        return b""

    if not isinstance(bytecode, (bytes, bytearray)):
        raise TypeError(f"assembler returned {type(bytecode).__name__}, expected bytes")
    return bytes(bytecode)
