"""IntcodeVM: fetch-decode-execute engine with suspend-on-output.

This module implements the execution pipeline of one VM instance:
    MEMORY -> FETCH -> DECODE -> INSTRUCTION -> REGISTRY -> EXECUTE -> STATE

Execution is an explicit, resumable state machine. run_until_output()
returns to the caller as soon as one value has been output (or the program
halted), which lets several instances be driven deterministically on a
single thread with one value handed off at a time.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from .channel import InputQueue, OutputLog
from .decoder import Instruction, decode, parse_program
from .errors import CycleLimitExceeded, VMHaltedError
from .registry import OpcodeRegistry, get_registry
from .state import ExecutionStatus, VMState, create_initial_state


logger = logging.getLogger(__name__)


@dataclass
class ExecutionTraceEntry:
    """Single entry in the execution trace.

    Attributes:
        cycle: Cycle number (0-indexed)
        instruction: Decoded instruction
        pre_state: Register snapshot before execution
        post_state: Register snapshot after execution
        output: Value produced, if the instruction was an output
    """
    cycle: int
    instruction: Instruction
    pre_state: dict
    post_state: dict
    output: Optional[int] = None


class IntcodeVM:
    """A single Intcode machine.

    Each instance exclusively owns its memory, registers and queues. The
    only state shared between instances is the frozen opcode registry,
    which holds no per-machine data.

    Attributes:
        state: Memory and registers
        inputs: FIFO input queue
        output_log: Append-only output log
        registry: Opcode handlers
        trace: Execution trace entries (only when record_trace is set)
        max_cycles: Optional safety limit on executed instructions
    """

    def __init__(
        self,
        program: Iterable[int],
        max_cycles: Optional[int] = None,
        record_trace: bool = False,
        registry: Optional[OpcodeRegistry] = None,
    ):
        """Create a fresh VM at pc=0 with empty queues.

        Args:
            program: Ordered list of signed integers (copied)
            max_cycles: Raise CycleLimitExceeded after this many instructions
            record_trace: Record an ExecutionTraceEntry per instruction
            registry: Opcode registry (defaults to the shared frozen one)
        """
        self.state: VMState = create_initial_state(program)
        self.inputs = InputQueue()
        self.output_log = OutputLog()
        self.registry = registry or get_registry()
        self.max_cycles = max_cycles
        self.record_trace = record_trace
        self.trace: List[ExecutionTraceEntry] = []

    @classmethod
    def from_source(cls, source: str, **kwargs) -> "IntcodeVM":
        """Create a VM from comma-separated program text."""
        return cls(parse_program(source), **kwargs)

    # =========================================================================
    # Input supply
    # =========================================================================

    def set_inputs(self, values: Iterable[int]) -> None:
        """Append values, in order, to the input queue."""
        self.inputs.extend(values)

    # =========================================================================
    # Execution
    # =========================================================================

    def step(self) -> bool:
        """Execute a single instruction.

        Returns:
            True if the instruction suspended execution (output or halt)

        Raises:
            VMHaltedError: If the VM already halted
            CycleLimitExceeded: If max_cycles is set and has been reached
            IntcodeError: Any decode or execution fault
        """
        state = self.state
        if state.halted:
            raise VMHaltedError("VM is halted", state.pc)

        if self.max_cycles is not None and state.cycle_count >= self.max_cycles:
            raise CycleLimitExceeded(f"Max cycles ({self.max_cycles}) exceeded", state.pc)

        state.status = ExecutionStatus.RUNNING
        instruction = decode(state.memory, state.pc)

        if not self.record_trace:
            return self.registry.execute(state, self.inputs, self.output_log, instruction)

        pre_state = state.snapshot()
        produced = len(self.output_log)
        suspend = self.registry.execute(state, self.inputs, self.output_log, instruction)
        self.trace.append(ExecutionTraceEntry(
            cycle=pre_state["cycle_count"],
            instruction=instruction,
            pre_state=pre_state,
            post_state=state.snapshot(),
            output=self.output_log.last() if len(self.output_log) > produced else None,
        ))
        return suspend

    def run_until_output(self) -> ExecutionStatus:
        """Run until one value is output or the program halts.

        No-op if the VM is already halted.

        Returns:
            SUSPENDED_ON_OUTPUT or HALTED
        """
        if self.state.halted:
            return self.state.status

        while not self.step():
            pass

        if self.state.halted:
            logger.debug("VM halted at pc=%d after %d cycles",
                         self.state.pc, self.state.cycle_count)
        else:
            logger.debug("VM suspended on output %d at pc=%d",
                         self.output_log.last(), self.state.pc)
        return self.state.status

    def run(self) -> List[int]:
        """Run until the program halts, collecting every output.

        Returns:
            The full output log
        """
        while not self.state.halted:
            self.run_until_output()
        return self.outputs()

    # =========================================================================
    # Result retrieval
    # =========================================================================

    def outputs(self) -> List[int]:
        """Snapshot of the output log."""
        return self.output_log.snapshot()

    def get_last_output(self) -> int:
        """Most recent output.

        Raises:
            EmptyOutputLog: If nothing has been output yet
        """
        return self.output_log.last()

    def memory_snapshot(self) -> List[int]:
        """Copy of the current memory tape."""
        return self.state.memory.snapshot()

    @property
    def pc(self) -> int:
        return self.state.pc

    @property
    def relative_base(self) -> int:
        return self.state.relative_base

    @property
    def status(self) -> ExecutionStatus:
        return self.state.status

    def is_halted(self) -> bool:
        return self.state.halted

    def get_cycle_count(self) -> int:
        return self.state.cycle_count

    def print_trace(self) -> None:
        """Print execution trace in human-readable format."""
        print("=" * 70)
        print("INTCODE EXECUTION TRACE")
        print("=" * 70)

        for entry in self.trace:
            print(f"\n[Cycle {entry.cycle}] PC={entry.pre_state['pc']}")
            print(f"  Instruction: {entry.instruction}")

            pre_rb = entry.pre_state["relative_base"]
            post_rb = entry.post_state["relative_base"]
            if pre_rb != post_rb:
                print(f"  RB: {pre_rb} → {post_rb}")

            if entry.output is not None:
                print(f"  Output: {entry.output}")

        print("\n" + "=" * 70)
        print("FINAL STATE")
        print("=" * 70)
        print(f"  {self.state}")
        print(f"  Outputs: {self.outputs()}")

    def get_summary(self) -> dict:
        """Get execution summary.

        Returns:
            Dictionary with execution statistics and final state
        """
        return {
            "cycles": self.get_cycle_count(),
            "halted": self.is_halted(),
            "status": self.status.value,
            "pc": self.pc,
            "relative_base": self.relative_base,
            "memory_size": len(self.state.memory),
            "outputs": self.outputs(),
            "pending_inputs": self.inputs.pending(),
            "trace_length": len(self.trace),
        }


def run_program(program: Iterable[int], inputs: Iterable[int] = (),
                max_cycles: Optional[int] = None) -> Tuple[List[int], List[int]]:
    """Run a program to completion.

    Returns:
        (outputs, final memory)
    """
    vm = IntcodeVM(program, max_cycles=max_cycles)
    vm.set_inputs(inputs)
    outputs = vm.run()
    return outputs, vm.memory_snapshot()
