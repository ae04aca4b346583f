"""Exception hierarchy for the Intcode VM.

Every fault is fatal at the point where it happens: the engine never retries
or substitutes a default value. All errors derive from IntcodeError so a
caller driving several machines can treat any of them as fatal to the whole
composition with a single except clause.
"""

from typing import Optional


class IntcodeError(RuntimeError):
    """Base class for all VM faults.

    Attributes:
        pc: Program counter at the time of the fault (None if unknown)
    """

    def __init__(self, message: str, pc: Optional[int] = None):
        self.pc = pc
        if pc is not None:
            message = f"{message} (pc={pc})"
        super().__init__(message)


class ProgramFormatError(IntcodeError, ValueError):
    """Program text is not a comma-separated list of integers."""


class UnknownOpcode(IntcodeError):
    """Low two digits of an instruction word select no known operation."""

    def __init__(self, opcode: int, pc: Optional[int] = None):
        self.opcode = opcode
        super().__init__(f"Unknown opcode: {opcode}", pc)


class UnknownAddressingMode(IntcodeError):
    """A parameter mode digit is outside {0, 1, 2}."""

    def __init__(self, mode: int, pc: Optional[int] = None):
        self.mode = mode
        super().__init__(f"Unknown addressing mode: {mode}", pc)


class InvalidWriteTarget(IntcodeError):
    """Immediate mode used for a parameter that is written to."""


class NegativeAddress(IntcodeError):
    """A resolved memory address is negative."""

    def __init__(self, address: int, pc: Optional[int] = None):
        self.address = address
        super().__init__(f"Negative address: {address}", pc)


class InputExhausted(IntcodeError):
    """Input instruction executed with an empty input queue."""


class EmptyOutputLog(IntcodeError):
    """Last output requested before any output was produced."""


class IntegerOverflow(IntcodeError, OverflowError):
    """Arithmetic result does not fit in a signed 64-bit word."""

    def __init__(self, value: int, pc: Optional[int] = None):
        self.value = value
        super().__init__(f"Result {value} exceeds signed 64-bit range", pc)


class CycleLimitExceeded(IntcodeError):
    """Optional cycle safety limit was reached before the VM halted."""


class VMHaltedError(IntcodeError):
    """A single step was requested on a halted VM."""
