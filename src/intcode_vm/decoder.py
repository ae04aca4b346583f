"""Decoder: turns the word at the program counter into an Instruction.

Architecture:
    Memory[pc] -> opcode (value mod 100) + mode digits -> Instruction

The instruction word packs the operation in its two low decimal digits and
one addressing mode per operand in the digits above (hundreds for operand 0,
thousands for operand 1, ten-thousands for operand 2). Operand raw values
are the words that follow the instruction word.

Instructions are transient: they are rebuilt on every fetch because a
program may overwrite its own code.
"""

import re
from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path
from typing import Dict, List, Tuple, Union

from .errors import ProgramFormatError, UnknownAddressingMode, UnknownOpcode
from .state import INT64_MAX, INT64_MIN, Memory


class Opcode(IntEnum):
    """Fixed opcode table."""
    ADD = 1
    MULTIPLY = 2
    INPUT = 3
    OUTPUT = 4
    JUMP_IF_TRUE = 5
    JUMP_IF_FALSE = 6
    LESS_THAN = 7
    EQUALS = 8
    ADJUST_RELATIVE_BASE = 9
    HALT = 99


class Mode(IntEnum):
    """Operand addressing modes."""
    POSITION = 0
    IMMEDIATE = 1
    RELATIVE = 2


# Number of operands read for each opcode
OPERAND_COUNTS: Dict[Opcode, int] = {
    Opcode.ADD: 3,
    Opcode.MULTIPLY: 3,
    Opcode.INPUT: 1,
    Opcode.OUTPUT: 1,
    Opcode.JUMP_IF_TRUE: 2,
    Opcode.JUMP_IF_FALSE: 2,
    Opcode.LESS_THAN: 3,
    Opcode.EQUALS: 3,
    Opcode.ADJUST_RELATIVE_BASE: 1,
    Opcode.HALT: 0,
}


@dataclass(frozen=True)
class Operand:
    """A raw operand word and the mode used to interpret it."""
    value: int
    mode: Mode


@dataclass(frozen=True)
class Instruction:
    """Decoded instruction.

    Attributes:
        opcode: Operation selected by the low two digits
        operands: Ordered operands with their addressing modes
        pc: Address the instruction word was fetched from
    """
    opcode: Opcode
    operands: Tuple[Operand, ...]
    pc: int = 0

    @property
    def width(self) -> int:
        """Number of memory words occupied by the instruction."""
        return 1 + len(self.operands)

    def __str__(self) -> str:
        prefix = {Mode.POSITION: "", Mode.IMMEDIATE: "#", Mode.RELATIVE: "rb+"}
        args = ", ".join(f"{prefix[op.mode]}{op.value}" for op in self.operands)
        return f"{self.opcode.name} {args}".strip()


def parse_mode(word: int, index: int, pc: int = 0) -> Mode:
    """Extract the addressing mode of operand `index` from an instruction word.

    Raises:
        UnknownAddressingMode: If the digit is not 0, 1 or 2
    """
    digit = (word // 10 ** (index + 2)) % 10
    try:
        return Mode(digit)
    except ValueError:
        raise UnknownAddressingMode(digit, pc) from None


def parse_opcode(word: int, pc: int = 0) -> Opcode:
    """Extract the opcode from an instruction word.

    Raises:
        UnknownOpcode: If the low two digits are not in the opcode table
    """
    if word < 0:
        raise UnknownOpcode(word, pc)
    try:
        return Opcode(word % 100)
    except ValueError:
        raise UnknownOpcode(word % 100, pc) from None


def decode(memory: Memory, pc: int) -> Instruction:
    """Decode the instruction at pc.

    Args:
        memory: VM memory
        pc: Address of the instruction word

    Returns:
        Fully resolved Instruction

    Raises:
        UnknownOpcode: Opcode not in the table
        UnknownAddressingMode: Mode digit outside {0, 1, 2}
    """
    word = memory.read(pc)
    opcode = parse_opcode(word, pc)

    operands = tuple(
        Operand(memory.read(pc + 1 + i), parse_mode(word, i, pc))
        for i in range(OPERAND_COUNTS[opcode])
    )
    return Instruction(opcode, operands, pc)


# =============================================================================
# Program loading
# =============================================================================

_INT_RE = re.compile(r"^[+-]?\d+$")


def parse_program(source: str) -> List[int]:
    """Parse the comma-separated text form of a program.

    Whitespace around fields is ignored, as are empty fields (for example a
    trailing comma or newline).

    Args:
        source: Program text, e.g. "1,0,0,0,99"

    Returns:
        List of program words

    Raises:
        ProgramFormatError: If a field is not a signed decimal integer or
            does not fit in a signed 64-bit word
    """
    program = []
    for index, field in enumerate(source.split(",")):
        field = field.strip()
        if not field:
            continue
        if not _INT_RE.match(field):
            raise ProgramFormatError(f"Field {index} is not an integer: {field!r}")
        value = int(field)
        if value < INT64_MIN or value > INT64_MAX:
            raise ProgramFormatError(f"Field {index} exceeds signed 64-bit range: {field}")
        program.append(value)
    return program


def load_program(path: Union[str, Path]) -> List[int]:
    """Read and parse a program file."""
    return parse_program(Path(path).read_text())
