"""Composition of several VM instances into pipelines and feedback rings.

Instances never share memory: the only communication is a single signal
value handed from one machine's output log to the next machine's input
queue. Scheduling is cooperative round-robin on one thread, so exactly one
instance runs at a time until it outputs one value or halts.

Any IntcodeError raised by any instance propagates unchanged and aborts the
whole composition. The optional max_cycles limit applies to each instance
separately.
"""

import logging
from itertools import permutations
from typing import List, Optional, Sequence, Tuple

from .vm import IntcodeVM, run_program


logger = logging.getLogger(__name__)


def run_pipeline(program: Sequence[int], seeds: Sequence[int], initial_signal: int = 0,
                 max_cycles: Optional[int] = None) -> int:
    """Run a linear pipeline, one instance per seed.

    Instance i receives seeds[i] followed by the previous instance's last
    output (initial_signal for the first) and runs to completion.

    Args:
        program: Program shared by every instance (each gets its own copy)
        seeds: Per-instance seed values, e.g. phase settings
        initial_signal: Signal fed to the first instance
        max_cycles: Per-instance cycle limit

    Returns:
        Final output of the last instance

    Raises:
        ValueError: If seeds is empty
    """
    if not seeds:
        raise ValueError("Pipeline needs at least one seed")

    signal = initial_signal
    for index, seed in enumerate(seeds):
        vm = IntcodeVM(program, max_cycles=max_cycles)
        vm.set_inputs([seed, signal])
        vm.run()
        signal = vm.get_last_output()
        logger.debug("Pipeline stage %d (seed %d) -> %d", index, seed, signal)
    return signal


def build_ring(program: Sequence[int], seeds: Sequence[int],
               max_cycles: Optional[int] = None) -> List[IntcodeVM]:
    """Create one instance per seed, each with its seed already queued."""
    vms = []
    for seed in seeds:
        vm = IntcodeVM(program, max_cycles=max_cycles)
        vm.set_inputs([seed])
        vms.append(vm)
    return vms


def run_feedback_ring(program: Sequence[int], seeds: Sequence[int], initial_signal: int = 0,
                      max_cycles: Optional[int] = None) -> int:
    """Run instances in a feedback ring until the last one halts.

    The signal is passed around the ring one output at a time: each turn
    queues the current signal into the current instance, resumes it until
    its next output (or halt), and takes its last output as the new signal.
    An instance that already halted receives no more input; its last
    output is passed on unchanged.

    Args:
        program: Program shared by every instance (each gets its own copy)
        seeds: Per-instance seed values, queued once before the first turn
        initial_signal: Signal fed to the first instance on the first turn
        max_cycles: Per-instance cycle limit

    Returns:
        The signal at the moment the last instance halted

    Raises:
        ValueError: If seeds is empty
    """
    if not seeds:
        raise ValueError("Feedback ring needs at least one seed")

    vms = build_ring(program, seeds, max_cycles=max_cycles)
    last = vms[-1]
    signal = initial_signal
    index = 0

    while not last.is_halted():
        vm = vms[index]
        if not vm.is_halted():
            vm.set_inputs([signal])
            vm.run_until_output()
        signal = vm.get_last_output()
        logger.debug("Ring hand-off from instance %d: %d", index, signal)
        index = (index + 1) % len(vms)

    return signal


def find_max_signal(program: Sequence[int], phases: Sequence[int], feedback: bool = False,
                    max_cycles: Optional[int] = None) -> Tuple[int, Tuple[int, ...]]:
    """Try every ordering of phases and return the best one.

    Args:
        program: Program run by every instance
        phases: Seed values to permute
        feedback: Use a feedback ring instead of a linear pipeline
        max_cycles: Per-instance cycle limit

    Returns:
        (highest final signal, ordering that produced it)

    Raises:
        ValueError: If phases is empty
    """
    if not phases:
        raise ValueError("Need at least one phase setting")

    runner = run_feedback_ring if feedback else run_pipeline
    best: Optional[Tuple[int, Tuple[int, ...]]] = None
    for ordering in permutations(phases):
        signal = runner(program, ordering, max_cycles=max_cycles)
        if best is None or signal > best[0]:
            best = (signal, ordering)

    logger.info("Best ordering %s -> %d", best[1], best[0])
    return best


def find_noun_verb(program: Sequence[int], target: int, limit: int = 100,
                   max_cycles: Optional[int] = None) -> Optional[Tuple[int, int]]:
    """Search for the inputs that make a program leave target in memory[0].

    Every pair 0 <= noun, verb < limit is tried in order (noun outermost):
    the noun is stored at address 1, the verb at address 2, and the program
    runs to completion on its own copy.

    Args:
        program: Program to patch and run
        target: Value wanted at address 0 after halting
        limit: Exclusive upper bound for noun and verb
        max_cycles: Per-run cycle limit

    Returns:
        (noun, verb) of the first match, or None
    """
    patched = list(program)
    if len(patched) < 3:
        patched.extend([0] * (3 - len(patched)))

    for noun in range(limit):
        for verb in range(limit):
            patched[1] = noun
            patched[2] = verb
            _, memory = run_program(patched, max_cycles=max_cycles)
            if memory[0] == target:
                logger.info("Noun %d, verb %d -> %d", noun, verb, target)
                return noun, verb

    return None
