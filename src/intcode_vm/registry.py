"""OpcodeRegistry: Verified opcode semantics for the Intcode VM.

This module implements the registry pattern for VM operations: every opcode
in the fixed table maps to exactly one handler, and the registry is frozen
after initialization. Freezing checks that the table is exhaustive, so an
opcode can never be decoded without a handler to run it.

Registry Keys:
    ADD: mem[dst] = a + b
    MULTIPLY: mem[dst] = a * b
    INPUT: mem[dst] = next queued input
    OUTPUT: append a to the output log, then suspend
    JUMP_IF_TRUE: pc = b if a != 0
    JUMP_IF_FALSE: pc = b if a == 0
    LESS_THAN: mem[dst] = 1 if a < b else 0
    EQUALS: mem[dst] = 1 if a == b else 0
    ADJUST_RELATIVE_BASE: relative_base += a
    HALT: stop execution

Each handler mutates the VM state in place and returns True when execution
must suspend (after an output), False otherwise.
"""

from typing import Callable, Dict, Optional

from .channel import InputQueue, OutputLog
from .decoder import Instruction, Mode, Opcode, Operand
from .errors import (
    InputExhausted,
    IntegerOverflow,
    InvalidWriteTarget,
    NegativeAddress,
    UnknownOpcode,
)
from .state import INT64_MAX, INT64_MIN, ExecutionStatus, VMState


Handler = Callable[[VMState, InputQueue, OutputLog, Instruction], bool]


# =============================================================================
# Operand resolution
# =============================================================================

def read_value(state: VMState, operand: Operand, pc: int = 0) -> int:
    """Value of an operand for reading.

    Immediate yields the raw value; Position and Relative read memory.
    """
    if operand.mode is Mode.IMMEDIATE:
        return operand.value
    return state.memory.read(_address(state, operand, pc))


def write_address(state: VMState, operand: Operand, pc: int = 0) -> int:
    """Address an operand designates as a write target.

    Raises:
        InvalidWriteTarget: If the operand is in immediate mode
    """
    if operand.mode is Mode.IMMEDIATE:
        raise InvalidWriteTarget(f"Immediate operand {operand.value} used as write target", pc)
    return _address(state, operand, pc)


def _address(state: VMState, operand: Operand, pc: int) -> int:
    if operand.mode is Mode.RELATIVE:
        address = operand.value + state.relative_base
    else:
        address = operand.value
    if address < 0:
        raise NegativeAddress(address, pc)
    return address


def check_word(value: int, pc: int = 0) -> int:
    """Ensure value fits a signed 64-bit word.

    Raises:
        IntegerOverflow: If it does not
    """
    if value < INT64_MIN or value > INT64_MAX:
        raise IntegerOverflow(value, pc)
    return value


class OpcodeRegistry:
    """Verified registry of opcode handlers.

    The registry is frozen after initialization to ensure
    no runtime modifications can occur.

    Attributes:
        _handlers: Dictionary mapping opcodes to handler functions
        _frozen: Whether the registry is locked against modifications
    """

    def __init__(self):
        """Initialize registry with all opcode handlers."""
        self._handlers: Dict[Opcode, Handler] = {}
        self._frozen = False
        self._register_all_handlers()
        self.freeze()

    def _register_all_handlers(self) -> None:
        """Register all opcode handlers."""
        # Arithmetic
        self.register(Opcode.ADD, self._op_add)
        self.register(Opcode.MULTIPLY, self._op_multiply)

        # I/O
        self.register(Opcode.INPUT, self._op_input)
        self.register(Opcode.OUTPUT, self._op_output)

        # Control flow
        self.register(Opcode.JUMP_IF_TRUE, self._op_jump_if_true)
        self.register(Opcode.JUMP_IF_FALSE, self._op_jump_if_false)

        # Comparison
        self.register(Opcode.LESS_THAN, self._op_less_than)
        self.register(Opcode.EQUALS, self._op_equals)

        # Special
        self.register(Opcode.ADJUST_RELATIVE_BASE, self._op_adjust_relative_base)
        self.register(Opcode.HALT, self._op_halt)

    def register(self, opcode: Opcode, handler: Handler) -> None:
        """Register an opcode handler.

        Args:
            opcode: Opcode from the fixed table
            handler: Function taking (state, inputs, outputs, instruction)

        Raises:
            RuntimeError: If registry is frozen
            ValueError: If opcode already registered
        """
        if self._frozen:
            raise RuntimeError("Cannot register handlers: registry is frozen")
        if opcode in self._handlers:
            raise ValueError(f"Handler already registered: {opcode.name}")
        self._handlers[opcode] = handler

    def freeze(self) -> None:
        """Freeze the registry, checking that every opcode has a handler.

        Raises:
            RuntimeError: If an opcode in the table has no handler
        """
        missing = set(Opcode) - set(self._handlers)
        if missing:
            names = ", ".join(sorted(op.name for op in missing))
            raise RuntimeError(f"Opcodes without handler: {names}")
        self._frozen = True

    def is_frozen(self) -> bool:
        """Check if registry is frozen."""
        return self._frozen

    def get_valid_opcodes(self) -> set:
        """Get set of all registered opcodes."""
        return set(self._handlers.keys())

    def execute(self, state: VMState, inputs: InputQueue, outputs: OutputLog,
                instruction: Instruction) -> bool:
        """Execute a decoded instruction.

        Args:
            state: VM state (mutated in place)
            inputs: Input queue of the VM
            outputs: Output log of the VM
            instruction: Decoded instruction at state.pc

        Returns:
            True if execution must suspend after this instruction

        Raises:
            UnknownOpcode: If the opcode has no handler
        """
        handler = self._handlers.get(instruction.opcode)
        if handler is None:
            raise UnknownOpcode(int(instruction.opcode), instruction.pc)

        suspend = handler(state, inputs, outputs, instruction)
        state.cycle_count += 1
        return suspend

    # =========================================================================
    # Arithmetic
    # =========================================================================

    def _op_add(self, state: VMState, inputs: InputQueue, outputs: OutputLog,
                instruction: Instruction) -> bool:
        a, b, dst = instruction.operands
        pc = instruction.pc
        result = check_word(read_value(state, a, pc) + read_value(state, b, pc), pc)
        state.memory.write(write_address(state, dst, pc), result)
        state.pc += instruction.width
        return False

    def _op_multiply(self, state: VMState, inputs: InputQueue, outputs: OutputLog,
                     instruction: Instruction) -> bool:
        a, b, dst = instruction.operands
        pc = instruction.pc
        result = check_word(read_value(state, a, pc) * read_value(state, b, pc), pc)
        state.memory.write(write_address(state, dst, pc), result)
        state.pc += instruction.width
        return False

    # =========================================================================
    # I/O
    # =========================================================================

    def _op_input(self, state: VMState, inputs: InputQueue, outputs: OutputLog,
                  instruction: Instruction) -> bool:
        """INPUT dst - Store the next queued input.

        The destination is resolved before the queue is popped, so a bad
        operand never consumes an input value.
        """
        (dst,) = instruction.operands
        address = write_address(state, dst, instruction.pc)
        if not len(inputs):
            raise InputExhausted("Input instruction executed with empty input queue", instruction.pc)
        state.memory.write(address, inputs.pop())
        state.pc += instruction.width
        return False

    def _op_output(self, state: VMState, inputs: InputQueue, outputs: OutputLog,
                   instruction: Instruction) -> bool:
        """OUTPUT a - Append a to the output log and suspend."""
        (a,) = instruction.operands
        outputs.append(read_value(state, a, instruction.pc))
        state.pc += instruction.width
        state.status = ExecutionStatus.SUSPENDED_ON_OUTPUT
        return True

    # =========================================================================
    # Control flow
    # =========================================================================

    def _op_jump_if_true(self, state: VMState, inputs: InputQueue, outputs: OutputLog,
                         instruction: Instruction) -> bool:
        cond, target = instruction.operands
        pc = instruction.pc
        if read_value(state, cond, pc) != 0:
            state.pc = read_value(state, target, pc)
        else:
            state.pc += instruction.width
        return False

    def _op_jump_if_false(self, state: VMState, inputs: InputQueue, outputs: OutputLog,
                          instruction: Instruction) -> bool:
        cond, target = instruction.operands
        pc = instruction.pc
        if read_value(state, cond, pc) == 0:
            state.pc = read_value(state, target, pc)
        else:
            state.pc += instruction.width
        return False

    # =========================================================================
    # Comparison
    # =========================================================================

    def _op_less_than(self, state: VMState, inputs: InputQueue, outputs: OutputLog,
                      instruction: Instruction) -> bool:
        a, b, dst = instruction.operands
        pc = instruction.pc
        result = 1 if read_value(state, a, pc) < read_value(state, b, pc) else 0
        state.memory.write(write_address(state, dst, pc), result)
        state.pc += instruction.width
        return False

    def _op_equals(self, state: VMState, inputs: InputQueue, outputs: OutputLog,
                   instruction: Instruction) -> bool:
        a, b, dst = instruction.operands
        pc = instruction.pc
        result = 1 if read_value(state, a, pc) == read_value(state, b, pc) else 0
        state.memory.write(write_address(state, dst, pc), result)
        state.pc += instruction.width
        return False

    # =========================================================================
    # Special
    # =========================================================================

    def _op_adjust_relative_base(self, state: VMState, inputs: InputQueue, outputs: OutputLog,
                                 instruction: Instruction) -> bool:
        (a,) = instruction.operands
        state.relative_base += read_value(state, a, instruction.pc)
        state.pc += instruction.width
        return False

    def _op_halt(self, state: VMState, inputs: InputQueue, outputs: OutputLog,
                 instruction: Instruction) -> bool:
        state.pc += instruction.width
        state.status = ExecutionStatus.HALTED
        return True


# Singleton registry instance
_registry: Optional[OpcodeRegistry] = None


def get_registry() -> OpcodeRegistry:
    """Get the singleton opcode registry instance.

    Returns:
        The frozen OpcodeRegistry instance
    """
    global _registry
    if _registry is None:
        _registry = OpcodeRegistry()
    return _registry
