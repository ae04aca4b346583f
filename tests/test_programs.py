"""Integration tests for complete Intcode programs."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest
from intcode_vm import ExecutionStatus, IntcodeVM, run_program
from intcode_vm.errors import (
    CycleLimitExceeded, EmptyOutputLog, InputExhausted, IntegerOverflow,
    InvalidWriteTarget, NegativeAddress, ProgramFormatError, UnknownAddressingMode,
    UnknownOpcode,
    VMHaltedError,
)


QUINE = [109, 1, 204, -1, 1001, 100, 1, 100, 1008, 100, 16, 101, 1006, 101, 0, 99]


class TestArithmeticPrograms:
    """Programs using only add, multiply and halt."""

    @pytest.mark.parametrize("program, expected, pc", [
        ([1, 0, 0, 0, 99], [2, 0, 0, 0, 99], 5),
        ([2, 3, 0, 3, 99], [2, 3, 0, 6, 99], 5),
        ([2, 4, 4, 5, 99, 0], [2, 4, 4, 5, 99, 9801], 5),
        ([1, 1, 1, 4, 99, 5, 6, 0, 99], [30, 1, 1, 4, 2, 5, 6, 0, 99], 9),
    ])
    def test_final_memory(self, program, expected, pc):
        """Final memory matches direct arithmetic interpretation."""
        vm = IntcodeVM(program)
        vm.run()
        assert vm.memory_snapshot() == expected
        assert vm.pc == pc
        assert vm.is_halted() is True

    def test_immediate_operands(self):
        """Immediate operands are used as literal values."""
        vm = IntcodeVM([1101, 100, -1, 4, 0])
        vm.run()
        assert vm.memory_snapshot() == [1101, 100, -1, 4, 99]

    def test_caller_program_unchanged(self):
        """Running never mutates the caller's program list."""
        program = [1, 0, 0, 0, 99]
        IntcodeVM(program).run()
        assert program == [1, 0, 0, 0, 99]

    def test_immediate_halt(self):
        """Program with just HALT."""
        vm = IntcodeVM([99])
        assert vm.run() == []
        assert vm.get_cycle_count() == 1
        assert vm.pc == 1


class TestInputOutput:
    """Programs using input and output."""

    def test_input_then_output(self):
        """Input is stored and echoed."""
        vm = IntcodeVM([1, 1, 1, 4, 99, 5, 6, 0, 3, 0, 4, 0, 99])
        vm.set_inputs([99])
        vm.run()
        assert vm.memory_snapshot() == [99, 1, 1, 4, 2, 5, 6, 0, 3, 0, 4, 0, 99]
        assert vm.outputs() == [99]

    def test_inputs_consumed_in_order(self):
        """Queued inputs are consumed front to back."""
        vm = IntcodeVM([3, 0, 3, 1, 4, 0, 4, 1, 99])
        vm.set_inputs([7])
        vm.set_inputs([8])
        assert vm.run() == [7, 8]

    @pytest.mark.parametrize("program, value, expected", [
        ([3, 9, 8, 9, 10, 9, 4, 9, 99, -1, 8], 8, 1),
        ([3, 9, 8, 9, 10, 9, 4, 9, 99, -1, 8], 7, 0),
        ([3, 9, 7, 9, 10, 9, 4, 9, 99, -1, 8], 5, 1),
        ([3, 9, 7, 9, 10, 9, 4, 9, 99, -1, 8], 9, 0),
        ([3, 3, 1108, -1, 8, 3, 4, 3, 99], 8, 1),
        ([3, 3, 1107, -1, 8, 3, 4, 3, 99], 8, 0),
    ])
    def test_comparisons(self, program, value, expected):
        """Less-than and equals in position and immediate mode."""
        vm = IntcodeVM(program)
        vm.set_inputs([value])
        assert vm.run() == [expected]


class TestJumps:
    """Jump instructions in both addressing modes."""

    @pytest.mark.parametrize("program", [
        [3, 12, 6, 12, 15, 1, 13, 14, 13, 4, 13, 99, -1, 0, 1, 9],
        [3, 3, 1105, -1, 9, 1101, 0, 0, 12, 4, 12, 99, 1],
    ])
    @pytest.mark.parametrize("value, expected", [(0, 0), (9, 1)])
    def test_zero_or_nonzero(self, program, value, expected):
        """Outputs 0 if the input was 0, otherwise 1."""
        vm = IntcodeVM(program)
        vm.set_inputs([value])
        assert vm.run() == [expected]


class TestRelativeMode:
    """Relative base and growable memory."""

    def test_quine(self):
        """The quine outputs a copy of itself."""
        vm = IntcodeVM(QUINE)
        assert vm.run() == QUINE

    def test_relative_input_beyond_program(self):
        """Relative writes far past the program grow memory."""
        program = [
            109, 100,   # relative base = 100
            109, 25,    # relative base += 25
            109, -20,   # relative base -= 20
            203, 50,    # first input -> 105 + 50
            3, 50,      # second input -> 50
            99,
        ]
        vm = IntcodeVM(program)
        vm.set_inputs([111, 55])
        vm.run()
        memory = vm.memory_snapshot()
        assert vm.relative_base == 105
        assert memory[155] == 111
        assert memory[50] == 55
        assert memory[11:50] == [0] * 39
        assert memory[51:155] == [0] * 104

    def test_relative_read(self):
        """Relative reads add the relative base."""
        vm = IntcodeVM([109, 5, 204, 0, 99, 42])
        assert vm.run() == [42]


class TestLargeValues:
    """Values beyond 32 bits are not truncated."""

    def test_large_literal(self):
        """A large immediate is output exactly."""
        vm = IntcodeVM([104, 1125899906842624, 99])
        vm.run()
        assert vm.get_last_output() == 1125899906842624

    def test_sixteen_digit_product(self):
        """Multiplication yields a 16 digit number."""
        vm = IntcodeVM([1102, 34915192, 34915192, 7, 4, 7, 99, 0])
        vm.run()
        assert len(str(vm.get_last_output())) == 16

    def test_overflow_is_fatal(self):
        """Results beyond signed 64 bits raise."""
        vm = IntcodeVM([1102, 2**62, 4, 0, 99])
        with pytest.raises(IntegerOverflow) as exc:
            vm.run()
        assert exc.value.pc == 0
        assert vm.is_halted() is False


class TestSuspendResume:
    """run_until_output returns after each output."""

    def test_one_output_per_call(self):
        """Each call appends exactly one output, in program order."""
        vm = IntcodeVM([104, 1, 1101, 0, 0, 20, 104, 2, 99])

        assert vm.run_until_output() is ExecutionStatus.SUSPENDED_ON_OUTPUT
        assert vm.outputs() == [1]

        assert vm.run_until_output() is ExecutionStatus.SUSPENDED_ON_OUTPUT
        assert vm.outputs() == [1, 2]

        assert vm.run_until_output() is ExecutionStatus.HALTED
        assert vm.outputs() == [1, 2]

    def test_halted_is_noop(self):
        """run_until_output on a halted VM changes nothing."""
        vm = IntcodeVM([104, 5, 99])
        vm.run()
        cycles = vm.get_cycle_count()
        assert vm.run_until_output() is ExecutionStatus.HALTED
        assert vm.get_cycle_count() == cycles

    def test_inputs_between_runs(self):
        """Inputs can be supplied between resumptions."""
        vm = IntcodeVM([3, 0, 4, 0, 3, 0, 4, 0, 99])
        vm.set_inputs([10])
        vm.run_until_output()
        assert vm.get_last_output() == 10
        vm.set_inputs([20])
        vm.run_until_output()
        assert vm.get_last_output() == 20


class TestExecutionErrors:
    """Every fault aborts execution."""

    def test_unknown_opcode(self):
        with pytest.raises(UnknownOpcode):
            IntcodeVM([42]).run()

    def test_unknown_mode(self):
        with pytest.raises(UnknownAddressingMode):
            IntcodeVM([301, 0, 0, 0, 99]).run()

    def test_immediate_write_target(self):
        """Immediate destination is rejected, for input too."""
        with pytest.raises(InvalidWriteTarget):
            IntcodeVM([11101, 1, 1, 0, 99]).run()
        vm = IntcodeVM([103, 5, 99])
        vm.set_inputs([1])
        with pytest.raises(InvalidWriteTarget):
            vm.run()
        assert vm.inputs.pending() == [1]

    def test_input_exhausted(self):
        vm = IntcodeVM([3, 0, 99])
        with pytest.raises(InputExhausted) as exc:
            vm.run()
        assert exc.value.pc == 0
        assert vm.pc == 0

    def test_empty_output_log(self):
        vm = IntcodeVM([99])
        vm.run()
        with pytest.raises(EmptyOutputLog):
            vm.get_last_output()

    def test_non_int_program_and_inputs(self):
        """Floats are rejected rather than truncated."""
        with pytest.raises(ProgramFormatError):
            IntcodeVM([1.9, 0, 0, 0, 99])
        vm = IntcodeVM([3, 0, 4, 0, 99])
        with pytest.raises(ProgramFormatError):
            vm.set_inputs([7.5])
        assert vm.inputs.pending() == []

    def test_negative_relative_address(self):
        with pytest.raises(NegativeAddress) as exc:
            IntcodeVM([109, -5, 204, 0, 99]).run()
        assert exc.value.address == -5

    def test_negative_position_address(self):
        with pytest.raises(NegativeAddress):
            IntcodeVM([4, -1, 99]).run()

    def test_step_after_halt(self):
        vm = IntcodeVM([99])
        vm.run()
        with pytest.raises(VMHaltedError):
            vm.step()

    def test_step_reports_suspension(self):
        """step() is True after an output and after the halt, False otherwise."""
        vm = IntcodeVM([1, 0, 0, 0, 104, 7, 99])
        assert [vm.step(), vm.step(), vm.step()] == [False, True, True]
        assert vm.is_halted()


class TestExecutionTrace:
    """Test execution trace functionality."""

    def test_trace_records_all_cycles(self):
        """Trace has entry for each cycle."""
        vm = IntcodeVM([1, 0, 0, 0, 104, 7, 99], record_trace=True)
        vm.run()

        assert len(vm.trace) == 3
        assert [str(e.instruction).split()[0] for e in vm.trace] == ["ADD", "OUTPUT", "HALT"]
        assert vm.trace[0].pre_state["pc"] == 0
        assert vm.trace[0].post_state["pc"] == 4
        assert vm.trace[1].output == 7
        assert vm.trace[0].output is None

    def test_trace_off_by_default(self):
        """No trace is kept unless requested."""
        vm = IntcodeVM([104, 1, 99])
        vm.run()
        assert vm.trace == []

    def test_summary(self):
        """Summary reports final state."""
        vm = IntcodeVM([3, 0, 104, 1, 99])
        vm.set_inputs([5, 6])
        vm.run()
        summary = vm.get_summary()
        assert summary["halted"] is True
        assert summary["cycles"] == 3
        assert summary["outputs"] == [1]
        assert summary["pending_inputs"] == [6]
        assert summary["status"] == "halted"


class TestMaxCyclesSafety:
    """Test optional max cycles safety limit."""

    def test_max_cycles_stops_execution(self):
        """Infinite loop stops at max cycles."""
        vm = IntcodeVM([1105, 1, 0], max_cycles=10)

        with pytest.raises(CycleLimitExceeded, match="Max cycles"):
            vm.run()

        assert vm.get_cycle_count() == 10


class TestConvenience:
    """Helper constructors and functions."""

    def test_from_source(self):
        vm = IntcodeVM.from_source("104,3,99\n")
        assert vm.run() == [3]

    def test_run_program(self):
        outputs, memory = run_program([3, 0, 4, 0, 99], [12])
        assert outputs == [12]
        assert memory[0] == 12
