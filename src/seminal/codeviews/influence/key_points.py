from ...utils.ir_nodes import instruction_types

key_point_opcodes = frozenset(instruction_types["branch_like"] + instruction_types["call"])


def is_key_point(instruction):
    """Branches and calls are reported whether or not any input reaches them."""
    return instruction.opcode in key_point_opcodes
