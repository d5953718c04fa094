from ...utils.ir_nodes import dependency_modes
from .key_points import is_key_point


def check_mode(mode):
    if mode not in dependency_modes:
        raise ValueError(f"Unknown dependency mode {mode!r}; expected one of {dependency_modes}")
    return mode


def depends_on(procedure, instruction, value, mode="block"):
    """
    Same-block use heuristic.

    In "block" mode an instruction depends on `value` when it consumes the
    value itself, or when any consumer of the value sits in the same basic
    block, whatever its position relative to `instruction`, so a key point
    ahead of the consumer still counts. "direct" mode keeps only the first
    criterion.
    """
    check_mode(mode)
    for user in procedure.users(value):
        if user is instruction:
            return True
        if mode == "block" and user.block is instruction.block:
            return True
    return False


def propagate(procedure, inputs, mode="block"):
    """Map every key point, in program order, to the inputs it depends on."""
    check_mode(mode)
    key_points = {}
    for instruction in procedure.instructions():
        if not is_key_point(instruction):
            continue
        key_points[instruction] = [
            value for value in inputs
            if depends_on(procedure, instruction, value, mode)
        ]
    return key_points
