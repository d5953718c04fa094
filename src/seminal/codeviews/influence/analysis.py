import time
from dataclasses import dataclass, field

from loguru import logger

from ...utils.ir_nodes import resolve_input_functions
from .input_detector import detect_inputs
from .propagator import check_mode, propagate
from .reporter import report, to_structured

debug = False

DEFAULT_PROPERTIES = {
    "input_functions": "reference",
    "dependency_mode": "block",
}


@dataclass
class InfluenceResult:
    """Outcome of analysing one procedure; owned by the caller, not the engine."""
    procedure: object
    inputs: list = field(default_factory=list)
    key_points: dict = field(default_factory=dict)
    lines: list = field(default_factory=list)

    def influenced(self):
        return {instruction: inputs for instruction, inputs in self.key_points.items() if inputs}

    def to_dict(self):
        return {
            "procedure": self.procedure.name,
            "inputs": [value.ident for value in self.inputs],
            "key_points": to_structured(self.key_points),
        }


class SeminalInputAnalysis:
    """
    Per-procedure driver for detection, propagation and reporting.

    Nothing from one run is kept on the instance, so analysing A then B
    gives the same result for B as a fresh instance.
    """

    def __init__(self, properties=None):
        self.properties = dict(DEFAULT_PROPERTIES)
        if properties:
            self.properties.update(properties)
        self.input_functions = resolve_input_functions(self.properties["input_functions"])
        self.mode = check_mode(self.properties["dependency_mode"])

    def run_on_procedure(self, procedure):
        logger.info("Analyzing function: {}", procedure.name)
        procedure.verify()

        start = time.time()
        inputs = detect_inputs(procedure, self.input_functions)
        end_detect = time.time()
        key_points = propagate(procedure, inputs, self.mode)
        end_propagate = time.time()
        lines = report(procedure, key_points)

        if debug:
            logger.info("Detect: {:.3f}s, propagate: {:.3f}s",
                        end_detect - start, end_propagate - end_detect)
        return InfluenceResult(procedure, inputs, key_points, lines)
