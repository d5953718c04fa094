from loguru import logger

from ...utils.ir_nodes import input_function_sets, instruction_types
from .reporter import render_value

DEFAULT_INPUT_FUNCTIONS = frozenset(input_function_sets["reference"])


def is_input_call(instruction, input_functions=DEFAULT_INPUT_FUNCTIONS):
    """Recognition is by the direct callee's name only; the signature is never checked."""
    if instruction.opcode not in instruction_types["call"]:
        return False
    return instruction.called_function_name in input_functions


def detect_inputs(procedure, input_functions=DEFAULT_INPUT_FUNCTIONS):
    """
    Collect the input-origin values of a procedure.

    Every operand of a recognised input call from index 1 on is taken, since
    operand 0 is the routine itself. The result keeps detection order and
    holds each value once; membership is by identity. Every operand occurrence
    is logged, repeats included.
    """
    inputs = []
    seen = set()
    for instruction in procedure.instructions():
        if not is_input_call(instruction, input_functions):
            continue
        for operand in instruction.operands[1:]:
            logger.info(
                "Detected input variable from {}: {}",
                instruction.called_function_name, render_value(operand),
            )
            if operand not in seen:
                seen.add(operand)
                inputs.append(operand)
    return inputs
