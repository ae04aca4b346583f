#!/usr/bin/env python3
"""Intcode VM Command Line Interface.

Run Intcode programs, or compose several copies of one program into a
pipeline or feedback ring.

Usage:
    python main.py --program day9.txt --input 1
    python main.py --program day7.txt --ring 9,8,7,6,5
"""

import argparse
import logging
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent / "src"))

from intcode_vm import IntcodeError, IntcodeVM, parse_program
from intcode_vm.orchestrator import find_max_signal, find_noun_verb, run_feedback_ring, run_pipeline


def parse_values(text: str) -> list:
    """Parse a comma-separated list of integers from the command line."""
    try:
        return parse_program(text)
    except IntcodeError as e:
        raise argparse.ArgumentTypeError(str(e))


def main():
    parser = argparse.ArgumentParser(
        description="Intcode VM: stored-program integer machine",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Run a program with one input value
    python main.py --program programs/boost.txt --input 1

    # Run with full trace output
    python main.py --inline "1,0,0,0,99" --trace --dump-memory

    # Five instances in a feedback ring
    python main.py --program programs/amp.txt --ring 9,8,7,6,5

    # Best phase ordering for a linear pipeline
    python main.py --program programs/amp.txt --pipeline 0,1,2,3,4 --search

    # Noun/verb pair that leaves 19690720 at address 0
    python main.py --program programs/gravity.txt --noun-verb 19690720
        """
    )

    parser.add_argument(
        "--program", "-p",
        type=str,
        help="Path to program file (comma-separated integers)"
    )
    parser.add_argument(
        "--inline", "-i",
        type=str,
        help="Inline program text"
    )
    parser.add_argument(
        "--input", "-n",
        type=int,
        action="append",
        default=[],
        help="Input value (repeat for several)"
    )
    topology = parser.add_mutually_exclusive_group()
    topology.add_argument(
        "--pipeline",
        type=parse_values,
        help="Run a linear pipeline seeded with these comma-separated values"
    )
    topology.add_argument(
        "--ring",
        type=parse_values,
        help="Run a feedback ring seeded with these comma-separated values"
    )
    topology.add_argument(
        "--noun-verb",
        type=int,
        metavar="TARGET",
        help="Find noun,verb (addresses 1 and 2) that leave TARGET at address 0"
    )
    parser.add_argument(
        "--search",
        action="store_true",
        help="With --pipeline/--ring, try every ordering of the seeds"
    )
    parser.add_argument(
        "--max-cycles",
        type=int,
        default=None,
        help="Maximum execution cycles (safety limit). Default: unlimited"
    )
    parser.add_argument(
        "--trace", "-t",
        action="store_true",
        help="Print full execution trace"
    )
    parser.add_argument(
        "--dump-memory",
        action="store_true",
        help="Print final memory contents"
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Minimal output (outputs only)"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging"
    )

    args = parser.parse_args()

    # Validate arguments
    if not args.program and not args.inline:
        parser.error("Either --program or --inline is required")

    if args.search and not (args.pipeline or args.ring):
        parser.error("--search requires --pipeline or --ring")

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s"
    )

    # Load program
    if args.program:
        program_path = Path(args.program)
        if not program_path.exists():
            print(f"Error: Program file not found: {args.program}")
            return 1
        source = program_path.read_text()
        if not args.quiet:
            print(f"Loading program: {args.program}")
    else:
        source = args.inline
        if not args.quiet:
            print("Running inline program")

    try:
        program = parse_program(source)
    except IntcodeError as e:
        print(f"Error: {e}")
        return 1

    if args.noun_verb is not None:
        try:
            pair = find_noun_verb(program, args.noun_verb, max_cycles=args.max_cycles)
        except IntcodeError as e:
            print(f"Execution error: {e}")
            return 1
        if pair is None:
            print(f"No noun/verb pair produces {args.noun_verb}")
            return 1
        noun, verb = pair
        if args.quiet:
            print(100 * noun + verb)
        else:
            print(f"Noun: {noun}, Verb: {verb}, Answer: {100 * noun + verb}")
        return 0

    # Composed topologies
    seeds = args.pipeline or args.ring
    if seeds:
        feedback = args.ring is not None
        try:
            if args.search:
                signal, ordering = find_max_signal(
                    program, seeds, feedback=feedback, max_cycles=args.max_cycles
                )
                if not args.quiet:
                    print(f"Best ordering: {','.join(str(s) for s in ordering)}")
            elif feedback:
                signal = run_feedback_ring(program, seeds, max_cycles=args.max_cycles)
            else:
                signal = run_pipeline(program, seeds, max_cycles=args.max_cycles)
        except IntcodeError as e:
            print(f"Execution error: {e}")
            return 1
        print(signal if args.quiet else f"Signal: {signal}")
        return 0

    # Single instance
    vm = IntcodeVM(program, max_cycles=args.max_cycles, record_trace=args.trace)
    vm.set_inputs(args.input)

    if not args.quiet:
        print("-" * 60)
        print("Executing...")
        print("-" * 60)

    error = None
    try:
        vm.run()
    except IntcodeError as e:
        error = e
        print(f"Execution error: {e}")

    # Output
    if args.trace:
        vm.print_trace()
    elif not args.quiet:
        print()
        summary = vm.get_summary()
        print(f"Cycles: {summary['cycles']}")
        print(f"Halted: {summary['halted']}")
        print(f"Outputs: {summary['outputs']}")
    else:
        for value in vm.outputs():
            print(value)

    if args.dump_memory:
        print(",".join(str(v) for v in vm.memory_snapshot()))

    # Return exit code based on halted state
    return 0 if error is None and vm.is_halted() else 1


if __name__ == "__main__":
    sys.exit(main())
