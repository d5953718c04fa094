import re

import llvmlite.binding as llvm
from loguru import logger

from .ir_model import Constant, MetadataValue, Module
from ..utils.ir_nodes import instruction_types

assembly_error = re.compile(r':(\d+):\d+: error: ([^\n]*)')
debug_reference = re.compile(r',\s*!dbg\s+!(\d+)')
di_location = re.compile(
    r'^!(\d+) = (?:distinct )?!DILocation\([^)]*line:\s*(\d+)', re.MULTILINE
)
metadata_attachments = re.compile(r'(?:,\s*![A-Za-z_.][\w.]*\s+!\d+)+\s*$')

local_kinds = ["argument", "basic_block", "instruction"]
global_kinds = ["function", "global_variable", "global_alias", "global_ifunc"]


class LLParseError(Exception):
    def __init__(self, message, line_no=None):
        if line_no is not None:
            message = f"line {line_no}: {message}"
        super().__init__(message)
        self.line_no = line_no


def debug_locations(module_text):
    """Map `!DILocation` metadata ids of a printed module to source lines."""
    return {
        match.group(1): int(match.group(2))
        for match in di_location.finditer(module_text)
    }


def printed_instructions(function_text):
    """
    Split a printed function body into one text per instruction.

    An instruction starts on a line indented by two spaces. Deeper indented
    lines and a closing `]` continue it. Debug records are not instructions.
    """
    texts = []
    for line in function_text.splitlines():
        if not line.startswith("  "):
            continue
        stripped = line.strip()
        if not stripped or stripped.startswith(("#dbg_", ";")):
            continue
        if line[2] in " ]" and texts:
            texts[-1] += " " + stripped
        else:
            texts.append(stripped)
    return texts


def header_line(value_text):
    for line in value_text.splitlines():
        if line and not line.startswith(";"):
            return line.rstrip(" {")
    return ""


def return_type(function):
    return str(function.global_value_type).partition(" (")[0]


class LLParser:
    """
    Builds a Module from textual LLVM IR.

    llvmlite parses and verifies the assembly. Its functions, blocks and
    instructions are then copied into the identity-compared model, each
    LLVM operand mapped to the model value it refers to. Source lines come
    from the printed module: `!dbg` ids of each printed instruction are
    looked up among the printed `!DILocation` records, which share one
    numbering.
    """

    def __init__(self, src_code):
        self.src_code = src_code
        self.module = Module()
        self.values = {}
        self.ref = self._parse_assembly(src_code)
        self.module.name = self.ref.source_file or self.module.name
        self.locations = debug_locations(str(self.ref))
        self._add_globals()
        for function in self.ref.functions:
            if not function.is_declaration:
                self._build_procedure(function)

    def _parse_assembly(self, src_code):
        try:
            ref = llvm.parse_assembly(src_code)
            ref.verify()
        except RuntimeError as err:
            match = assembly_error.search(str(err))
            if match is None:
                raise LLParseError(str(err).strip()) from err
            raise LLParseError(match.group(2).strip(), int(match.group(1))) from err
        return ref

    def _add_globals(self):
        slot = 0
        for kind, refs in (("variable", self.ref.global_variables), ("function", self.ref.functions)):
            for ref in refs:
                name = ref.name
                if not name:
                    name = str(slot)
                    slot += 1
                self.values[ref] = self.module.add_global(name, "ptr", kind, header_line(str(ref)))

    def _build_procedure(self, function):
        procedure = self.module.add_procedure(self.values[function].name, return_type(function))

        # Unnamed arguments, blocks and non-void instructions share one slot counter.
        slot = 0
        for argument in function.arguments:
            name = argument.name
            if not name:
                name = str(slot)
                slot += 1
            self.values[argument] = procedure.add_argument(name, str(argument.type))

        pending = []
        for block_ref in function.blocks:
            name = block_ref.name
            if not name:
                name = str(slot)
                slot += 1
            block = procedure.add_block(name)
            self.values[block_ref] = block
            for instruction_ref in block_ref.instructions:
                name = instruction_ref.name or None
                if name is None and str(instruction_ref.type) != "void":
                    name = str(slot)
                    slot += 1
                instruction = block.append(instruction_ref.opcode, name=name)
                self.values[instruction_ref] = instruction
                pending.append((instruction, instruction_ref))

        texts = printed_instructions(str(function))
        if len(texts) != len(pending):
            raise LLParseError(
                f"printed body of @{procedure.name} has {len(texts)} instructions, "
                f"expected {len(pending)}"
            )

        for (instruction, instruction_ref), text in zip(pending, texts):
            procedure.set_operands(instruction, self._operands(instruction, instruction_ref))
            reference = debug_reference.search(text)
            if reference:
                instruction.debug_ref = reference.group(1)
                instruction.debug_line = self.locations.get(instruction.debug_ref)
            instruction.text = metadata_attachments.sub("", text)
            logger.debug("Parsed {} in {}:{}", instruction.opcode, instruction.block.name, instruction.index)

        if pending and all(instruction.debug_line is None for instruction, _ in pending):
            logger.warning("No debug locations in @{}; lines report as 0", procedure.name)
        logger.debug(
            "Built @{} with {} blocks and {} instructions",
            procedure.name, len(procedure.blocks), len(pending),
        )
        return procedure

    def _operands(self, instruction, instruction_ref):
        operands = [self._value(operand, instruction) for operand in instruction_ref.operands]
        if instruction.opcode in instruction_types["call"] and operands:
            # LLVM keeps the callee last, after the arguments and bundle operands.
            operands.insert(0, operands.pop())
        return operands

    def _value(self, operand, instruction):
        kind = operand.value_kind.name
        if kind in local_kinds or kind in global_kinds:
            value = self.values.get(operand)
            if value is not None:
                return value
            if kind in local_kinds:
                raise LLParseError(f"operand of {instruction.ident} is not defined in this module")
            value = self.module.add_global(operand.name, "ptr", kind)
            self.values[operand] = value
            return value
        if kind == "metadata_as_value":
            return MetadataValue(str(operand).strip(), "metadata")
        return Constant(str(operand).strip(), str(operand.type))


def parse_module(src_code):
    return LLParser(src_code).module
