from loguru import logger

from ...ir_parser.ir_model import Argument, Constant, GlobalValue, Instruction

RULE = "=" * 45


def get_line_number(instruction):
    """Source line from the debug location, 0 when there is none."""
    if instruction.debug_line is None:
        return 0
    return instruction.debug_line


def render_value(value):
    if isinstance(value, Instruction):
        return value.render()
    if isinstance(value, (GlobalValue, Argument)):
        return f"{value.type_text} {value.ident}"
    if isinstance(value, Constant):
        return value.text
    return value.ident


def report(procedure, key_points):
    """
    Log the influenced key points of one procedure and return the lines.

    Entries whose influencing list is empty stay in `key_points` but are
    not printed.
    """
    lines = [f"=== Seminal Input Analysis Results for Function: {procedure.name} ==="]
    for instruction, inputs in key_points.items():
        if not inputs:
            continue
        rendered = " ".join(render_value(value) for value in inputs)
        lines.append(f"Line {get_line_number(instruction)}: Influenced by inputs: {rendered}")
    lines.append(RULE)
    for line in lines:
        logger.info(line)
    return lines


def to_structured(key_points):
    return {
        instruction.ident: {
            "line": get_line_number(instruction),
            "opcode": instruction.opcode,
            "inputs": [value.ident for value in inputs],
        }
        for instruction, inputs in key_points.items()
    }
