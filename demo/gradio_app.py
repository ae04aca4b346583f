"""Intcode VM Interactive Demo.

A Gradio web interface for running and inspecting Intcode programs.

Usage:
    cd /path/to/intcode-vm
    python demo/gradio_app.py

Features:
    - Paste or load example programs
    - Run a single instance with queued inputs
    - Compose instances into a pipeline or feedback ring
    - See step-by-step execution trace and final memory
"""

import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import gradio as gr
from intcode_vm import IntcodeError, IntcodeVM, parse_program
from intcode_vm.orchestrator import find_max_signal, run_feedback_ring, run_pipeline


# =============================================================================
# Example Programs
# =============================================================================

EXAMPLE_PROGRAMS = {
    "Quine": "109,1,204,-1,1001,100,1,100,1008,100,16,101,1006,101,0,99",
    "Add in place": "1,9,10,3,2,3,11,0,99,30,40,50",
    "Echo input": "3,0,4,0,99",
    "Equal to 8": "3,9,8,9,10,9,4,9,99,-1,8",
    "Large product": "1102,34915192,34915192,7,4,7,99,0",
    "Feedback amplifier": ("3,26,1001,26,-4,26,3,27,1002,27,2,27,1,27,26,"
                           "27,4,27,1001,28,-1,28,1005,28,6,99,0,0,5"),
    "Custom": ""
}

TOPOLOGIES = ["single", "pipeline", "ring"]


# =============================================================================
# Execution Functions
# =============================================================================

def run_single(program: list, inputs: list, max_cycles: int) -> tuple:
    """Run one instance and format summary, trace and memory."""
    vm = IntcodeVM(program, max_cycles=max_cycles, record_trace=True)
    vm.set_inputs(inputs)

    try:
        vm.run()
    except IntcodeError as e:
        error_msg = str(e)
    else:
        error_msg = None

    summary = vm.get_summary()
    summary_lines = [
        "EXECUTION SUMMARY",
        "=" * 40,
        f"Cycles: {summary['cycles']}",
        f"Halted: {'Yes' if summary['halted'] else 'No'}",
        f"Outputs: {summary['outputs']}",
    ]
    if error_msg:
        summary_lines.append(f"\nRuntime: {error_msg}")
    summary_text = "\n".join(summary_lines)

    trace_lines = [
        "EXECUTION TRACE",
        "=" * 60,
    ]
    for entry in vm.trace[:100]:
        line = f"[{entry.cycle:>5}] PC={entry.pre_state['pc']:<5} {entry.instruction}"
        if entry.output is not None:
            line += f"  -> {entry.output}"
        trace_lines.append(line)
    if len(vm.trace) > 100:
        trace_lines.append(f"\n... ({len(vm.trace) - 100} more entries)")
    trace_text = "\n".join(trace_lines)

    memory_text = ",".join(str(v) for v in vm.memory_snapshot())
    return summary_text, trace_text, memory_text


def run_program(source: str, inputs_text: str, topology: str, search: bool,
                max_cycles: int) -> tuple:
    """Execute a program in the chosen topology.

    Args:
        source: Comma-separated program text
        inputs_text: Comma-separated inputs (single) or seeds (pipeline/ring)
        topology: 'single', 'pipeline' or 'ring'
        search: Try every ordering of the seeds
        max_cycles: Maximum execution cycles per instance

    Returns:
        Tuple of (summary_text, trace_text, memory_text)
    """
    if not source.strip():
        return "Error: No program provided", "", ""

    try:
        program = parse_program(source)
        values = parse_program(inputs_text)

        limit = int(max_cycles)
        if topology == "single":
            return run_single(program, values, limit)

        feedback = topology == "ring"
        if search:
            signal, ordering = find_max_signal(
                program, values, feedback=feedback, max_cycles=limit
            )
            text = f"Best ordering: {list(ordering)}\nSignal: {signal}"
        elif feedback:
            text = f"Signal: {run_feedback_ring(program, values, max_cycles=limit)}"
        else:
            text = f"Signal: {run_pipeline(program, values, max_cycles=limit)}"
        return text, "", ""

    except (IntcodeError, ValueError) as e:
        return f"Error: {str(e)}", "", ""


def load_example(example_name: str) -> str:
    """Load an example program."""
    return EXAMPLE_PROGRAMS.get(example_name, "")


# =============================================================================
# Gradio Interface
# =============================================================================

def create_demo():
    """Create and return the Gradio demo interface."""

    with gr.Blocks(title="Intcode VM Demo", theme=gr.themes.Soft()) as demo:
        gr.Markdown("""
        # Intcode VM

        A stored-program machine where code and data share one growable tape
        of signed integers. Execution suspends after every output, so several
        machines can be chained into pipelines and feedback rings.

        **Architecture**: `fetch -> decode -> registry -> execute -> suspend`
        """)

        with gr.Row():
            with gr.Column(scale=2):
                gr.Markdown("### Program")

                example_dropdown = gr.Dropdown(
                    choices=list(EXAMPLE_PROGRAMS.keys()),
                    value="Quine",
                    label="Load Example"
                )

                program_input = gr.Textbox(
                    value=EXAMPLE_PROGRAMS["Quine"],
                    label="Program",
                    lines=8,
                    placeholder="Comma-separated integers..."
                )

                inputs_box = gr.Textbox(
                    value="",
                    label="Inputs (single) or seeds (pipeline/ring)",
                    placeholder="e.g. 9,8,7,6,5"
                )

                gr.Markdown("### Settings")

                with gr.Row():
                    topology_radio = gr.Radio(
                        choices=TOPOLOGIES,
                        value="single",
                        label="Topology"
                    )
                    search_box = gr.Checkbox(
                        value=False,
                        label="Search all seed orderings"
                    )

                max_cycles = gr.Slider(
                    minimum=100,
                    maximum=1000000,
                    value=100000,
                    step=100,
                    label="Max Cycles"
                )

                run_button = gr.Button("Run Program", variant="primary")

            with gr.Column(scale=3):
                summary_output = gr.Textbox(
                    label="Summary",
                    lines=8,
                    interactive=False
                )
                trace_output = gr.Textbox(
                    label="Execution Trace",
                    lines=16,
                    interactive=False
                )
                memory_output = gr.Textbox(
                    label="Final Memory",
                    lines=4,
                    interactive=False
                )

        with gr.Accordion("Instruction Set", open=False):
            gr.Markdown("""
            | Opcode | Name | Effect |
            |--------|------|--------|
            | 1 | ADD | `c = a + b` |
            | 2 | MULTIPLY | `c = a * b` |
            | 3 | INPUT | `a = next input` |
            | 4 | OUTPUT | output `a`, suspend |
            | 5 | JUMP_IF_TRUE | `if a != 0: pc = b` |
            | 6 | JUMP_IF_FALSE | `if a == 0: pc = b` |
            | 7 | LESS_THAN | `c = a < b` |
            | 8 | EQUALS | `c = a == b` |
            | 9 | ADJUST_RELATIVE_BASE | `rb += a` |
            | 99 | HALT | stop |

            **Modes** (hundreds, thousands, ten-thousands digit):
            0 = position, 1 = immediate, 2 = relative
            """)

        example_dropdown.change(
            fn=load_example,
            inputs=[example_dropdown],
            outputs=[program_input]
        )

        run_button.click(
            fn=run_program,
            inputs=[program_input, inputs_box, topology_radio, search_box, max_cycles],
            outputs=[summary_output, trace_output, memory_output]
        )

    return demo


# =============================================================================
# Main
# =============================================================================

if __name__ == "__main__":
    demo = create_demo()
    demo.launch(
        share=False,
        server_name="0.0.0.0",
        server_port=7861,
        show_error=True
    )
