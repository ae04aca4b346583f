"""Intcode VM: stored-program integer machine with suspend-on-output.

This package implements a virtual machine that executes a linear sequence
of signed integers as both code and data, with three addressing modes and a
growable memory tape. Execution suspends after every output, so several
instances can be composed into pipelines and feedback rings on one thread.

Architecture:
    MEMORY -> FETCH -> DECODE -> INSTRUCTION -> REGISTRY -> EXECUTE -> STATE
               |         |           |             |            |
             [PC]   [mod 100 +   [opcode +     [Frozen      [Suspend on
                    mode digits]  operands]    handlers]     output/halt]

Modules:
    errors: Exception hierarchy (all faults are fatal)
    state: Growable Memory and VMState
    decoder: Opcode/Mode tables, instruction decoder, program parser
    channel: Input queue and output log
    registry: Opcode handlers
    vm: Main IntcodeVM engine
    orchestrator: Pipelines and feedback rings of several VMs
"""

__version__ = "0.1.0"
__author__ = "Intcode VM Project"

from .errors import IntcodeError
from .state import ExecutionStatus, Memory, VMState
from .decoder import Instruction, Mode, Opcode, Operand, decode, load_program, parse_program
from .registry import OpcodeRegistry
from .vm import IntcodeVM, run_program
from .orchestrator import find_max_signal, find_noun_verb, run_feedback_ring, run_pipeline

__all__ = [
    "IntcodeError",
    "ExecutionStatus",
    "Memory",
    "VMState",
    "Instruction",
    "Mode",
    "Opcode",
    "Operand",
    "decode",
    "load_program",
    "parse_program",
    "OpcodeRegistry",
    "IntcodeVM",
    "run_program",
    "find_max_signal",
    "find_noun_verb",
    "run_feedback_ring",
    "run_pipeline",
]
