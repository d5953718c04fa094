from .codeviews.influence.analysis import InfluenceResult, SeminalInputAnalysis
from .codeviews.influence.influence_driver import InfluenceDriver
from .ir_parser.ll_parser import LLParser, parse_module

__version__ = "0.1.0"
