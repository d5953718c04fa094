instruction_types = {
    "branch_like": [
        "br",
    ],
    "call": [
        "call",
    ],
}

input_function_sets = {
    "reference": [
        "scanf",
    ],
    "libc": [
        "scanf", "__isoc99_scanf",
        "fscanf", "__isoc99_fscanf",
        "sscanf", "__isoc99_sscanf",
        "gets", "fgets", "getline", "getdelim",
        "fread", "read", "recv", "recvfrom", "recvmsg",
        "getchar", "fgetc", "getc", "getenv",
    ],
}

dependency_modes = [
    "block",
    "direct",
]


def resolve_input_functions(spec):
    """Accept a preset name or an iterable of routine names."""
    if isinstance(spec, str):
        if spec not in input_function_sets:
            raise ValueError(
                f"Unknown input function set {spec!r}; "
                f"expected one of {sorted(input_function_sets)}"
            )
        return frozenset(input_function_sets[spec])
    return frozenset(spec)
