import networkx as nx


class MalformedIRError(Exception):
    """Raised when a procedure breaks the block-membership or def-use contract."""


class Value:
    """
    Handle to a computed or referenced quantity inside a procedure.

    Values compare by identity: two syntactically identical instructions are
    still distinct values, so no __eq__/__hash__ override is defined here or
    in any subclass.
    """

    sigil = "%"

    def __init__(self, name=None, type_text=""):
        self.name = name
        self.type_text = type_text

    @property
    def ident(self):
        if self.name is None:
            return "<unnamed>"
        return self.sigil + self.name

    def __repr__(self):
        return f"<{type(self).__name__} {self.ident}>"


class Argument(Value):
    """Formal parameter of a procedure"""

    def __init__(self, name, type_text, position):
        super().__init__(name, type_text)
        self.position = position


class GlobalValue(Value):
    """Global variable, function declaration or function definition"""

    sigil = "@"

    def __init__(self, name, type_text="ptr", kind="variable", text=""):
        super().__init__(name, type_text)
        self.kind = kind
        self.text = text

    @property
    def is_function(self):
        return self.kind == "function"


class Constant(Value):
    """Operand with no name of its own, such as `i32 0` or inline asm"""

    def __init__(self, text, type_text=""):
        super().__init__(None, type_text)
        self.text = text

    @property
    def ident(self):
        return self.text


class MetadataValue(Constant):
    """
    Opaque `metadata ...` call argument.

    The metadata wrapper, not any value it wraps, is the operand, so no use
    of a wrapped value is recorded.
    """


class BasicBlock(Value):
    def __init__(self, name, procedure):
        super().__init__(name, "label")
        self.procedure = procedure
        self.instructions = []

    def append(self, opcode, operands=(), name=None, text=None, line=None):
        """Create an instruction at the end of this block and record its uses."""
        instruction = Instruction(
            opcode,
            list(operands),
            name=name,
            text=text,
            debug_line=line,
        )
        instruction.block = self
        instruction.index = len(self.instructions)
        self.instructions.append(instruction)
        self.procedure.register_uses(instruction)
        return instruction

    def __iter__(self):
        return iter(self.instructions)

    def __len__(self):
        return len(self.instructions)


class Instruction(Value):
    def __init__(self, opcode, operands, name=None, text=None, debug_line=None, debug_ref=None):
        super().__init__(name)
        self.opcode = opcode
        self.operands = operands
        self.block = None
        self.index = None
        self.text = text
        self.debug_line = debug_line
        self.debug_ref = debug_ref

    @property
    def ident(self):
        if self.name is not None:
            return self.sigil + self.name
        return f"{self.block.name}#{self.index}"

    @property
    def callee(self):
        """Operand 0 of a call; None for every other opcode."""
        if self.opcode == "call" and self.operands:
            return self.operands[0]
        return None

    @property
    def called_function_name(self):
        """Name of the directly called function, None for indirect calls."""
        callee = self.callee
        if isinstance(callee, GlobalValue) and callee.is_function:
            return callee.name
        return None

    def render(self):
        if self.text:
            return self.text
        operands = ", ".join(operand.ident for operand in self.operands)
        if self.name is not None:
            return f"{self.ident} = {self.opcode} {operands}".rstrip()
        return f"{self.opcode} {operands}".rstrip()


class Procedure:
    """
    A procedure body: ordered basic blocks plus the def-use graph.

    The def-use graph is a MultiDiGraph with one edge per operand slot,
    from the used value to the consuming instruction, keyed by operand index.
    """

    def __init__(self, name, return_type="void"):
        self.name = name
        self.return_type = return_type
        self.arguments = []
        self.blocks = []
        self.def_use = nx.MultiDiGraph()

    def add_argument(self, name, type_text="i32"):
        argument = Argument(name, type_text, len(self.arguments))
        self.arguments.append(argument)
        return argument

    def add_block(self, name):
        block = BasicBlock(name, self)
        self.blocks.append(block)
        return block

    def register_uses(self, instruction):
        self.def_use.add_node(instruction)
        for position, operand in enumerate(instruction.operands):
            self.def_use.add_edge(operand, instruction, key=position)

    def set_operands(self, instruction, operands):
        """Replace the operand list of an already placed instruction."""
        stale = [
            (operand, instruction, position)
            for position, operand in enumerate(instruction.operands)
        ]
        self.def_use.remove_edges_from(stale)
        instruction.operands = list(operands)
        self.register_uses(instruction)

    def users(self, value):
        """Distinct instructions consuming `value`; callers must not rely on the order."""
        if value not in self.def_use:
            return []
        return list(self.def_use.successors(value))

    def instructions(self):
        for block in self.blocks:
            yield from block.instructions

    def block_named(self, name):
        for block in self.blocks:
            if block.name == name:
                return block
        return None

    def verify(self):
        """Fail fast if block membership or def-use symmetry is broken."""
        owned = {}
        for block in self.blocks:
            if block.procedure is not self:
                raise MalformedIRError(f"block {block.name} does not belong to {self.name}")
            for position, instruction in enumerate(block.instructions):
                if instruction in owned:
                    raise MalformedIRError(
                        f"instruction {instruction.ident} appears in blocks "
                        f"{owned[instruction].name} and {block.name}"
                    )
                if instruction.block is not block or instruction.index != position:
                    raise MalformedIRError(
                        f"instruction {instruction.ident} has a stale block/index"
                    )
                owned[instruction] = block

        for value, user, position in self.def_use.edges(keys=True):
            if user not in owned:
                raise MalformedIRError(f"user {user.ident} is not placed in any block")
            if position >= len(user.operands) or user.operands[position] is not value:
                raise MalformedIRError(
                    f"use of {value.ident} by {user.ident} has no matching operand"
                )

        for instruction in owned:
            for position, operand in enumerate(instruction.operands):
                if not self.def_use.has_edge(operand, instruction, key=position):
                    raise MalformedIRError(
                        f"operand {position} of {instruction.ident} is missing its use edge"
                    )

    def __repr__(self):
        return f"<Procedure @{self.name} blocks={len(self.blocks)}>"


class Module:
    def __init__(self, name="module"):
        self.name = name
        self.globals = {}
        self.procedures = []

    def add_global(self, name, type_text="ptr", kind="variable", text=""):
        if name in self.globals:
            return self.globals[name]
        value = GlobalValue(name, type_text, kind, text)
        self.globals[name] = value
        return value

    def add_procedure(self, name, return_type="void"):
        procedure = Procedure(name, return_type)
        self.procedures.append(procedure)
        self.add_global(name, "ptr", "function")
        return procedure

    def procedure_named(self, name):
        for procedure in self.procedures:
            if procedure.name == name:
                return procedure
        return None

    def __iter__(self):
        return iter(self.procedures)
