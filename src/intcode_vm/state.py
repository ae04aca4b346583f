"""VMState: Memory tape and machine registers for the Intcode VM.

This module defines the state owned by a single VM instance. Nothing in here
is ever shared between instances: each VM gets its own Memory and its own
registers, and all hand-off between machines happens by value.

State Components:
    - Memory: growable tape of signed 64-bit words, code and data alike
    - PC: Program counter
    - Relative base: offset register for relative-mode addressing
    - Status: Running, SuspendedOnOutput or Halted
    - Cycle count: Total executed instructions
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List

from .errors import NegativeAddress, ProgramFormatError


logger = logging.getLogger(__name__)

# 64-bit signed word bounds
INT64_MIN = -(2**63)
INT64_MAX = (2**63) - 1


def require_int(value, what: str = "Value") -> int:
    """Return value unchanged if it is a plain int.

    Raises:
        ProgramFormatError: For bools, floats, strings and anything else
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise ProgramFormatError(f"{what} is not an integer: {value!r}")
    return value


class ExecutionStatus(Enum):
    """Execution status of a VM. HALTED is terminal."""
    RUNNING = "running"
    SUSPENDED_ON_OUTPUT = "suspended_on_output"
    HALTED = "halted"


class Memory:
    """Addressable, automatically growing store of signed integers.

    Any address that is read or written becomes valid afterwards: the tape is
    extended with zero cells until its length exceeds the address. Growth at
    least doubles the address to amortize repeated extension.
    """

    def __init__(self, program: Iterable[int] = ()):
        self._cells: List[int] = [require_int(v, "Program word") for v in program]

    def __len__(self) -> int:
        return len(self._cells)

    def __getitem__(self, address: int) -> int:
        return self.read(address)

    def __setitem__(self, address: int, value: int) -> None:
        self.write(address, value)

    def read(self, address: int) -> int:
        """Read the word at address, growing the tape if needed.

        Raises:
            NegativeAddress: If address < 0
        """
        self._ensure(address)
        return self._cells[address]

    def write(self, address: int, value: int) -> None:
        """Store value at address, growing the tape if needed.

        Raises:
            NegativeAddress: If address < 0
        """
        self._ensure(address)
        self._cells[address] = value

    def snapshot(self) -> List[int]:
        """Copy of the full tape, including zero cells added by growth."""
        return list(self._cells)

    def _ensure(self, address: int) -> None:
        if address < 0:
            raise NegativeAddress(address)
        size = len(self._cells)
        if address < size:
            return
        new_size = max(address + 1, 2 * address)
        self._cells.extend([0] * (new_size - size))
        logger.debug("Memory grown from %d to %d cells", size, new_size)


@dataclass
class VMState:
    """Mutable register file and memory of one VM.

    Attributes:
        memory: The program tape (exclusively owned)
        pc: Program counter (address of the next instruction word)
        relative_base: Offset for relative-mode operands
        status: Current execution status
        cycle_count: Number of instructions executed so far
    """
    memory: Memory = field(default_factory=Memory)
    pc: int = 0
    relative_base: int = 0
    status: ExecutionStatus = ExecutionStatus.RUNNING
    cycle_count: int = 0

    @property
    def halted(self) -> bool:
        return self.status is ExecutionStatus.HALTED

    def snapshot(self) -> dict:
        """Snapshot of the registers for tracing.

        Memory is excluded for efficiency; use Memory.snapshot() for it.
        """
        return {
            "pc": self.pc,
            "relative_base": self.relative_base,
            "status": self.status.value,
            "cycle_count": self.cycle_count,
        }

    def validate(self) -> bool:
        """Validate state integrity.

        Checks:
            - PC and cycle count are non-negative
            - Every memory word is an int within signed 64-bit bounds

        Returns:
            True if state is valid, False otherwise
        """
        if self.pc < 0 or self.cycle_count < 0:
            return False

        for value in self.memory.snapshot():
            if not isinstance(value, int):
                return False
            if value < INT64_MIN or value > INT64_MAX:
                return False

        return True

    def __str__(self) -> str:
        """Human-readable state representation."""
        return (f"[Cycle {self.cycle_count}] PC={self.pc} RB={self.relative_base} "
                f"MEM={len(self.memory)} {self.status.value.upper()}")


def create_initial_state(program: Iterable[int]) -> VMState:
    """Create initial VM state with a program loaded.

    The program is copied, so the caller's list is never mutated.

    Args:
        program: Ordered list of signed integers

    Returns:
        Fresh VMState at pc=0, relative_base=0
    """
    return VMState(
        memory=Memory(program),
        pc=0,
        relative_base=0,
        status=ExecutionStatus.RUNNING,
        cycle_count=0,
    )
