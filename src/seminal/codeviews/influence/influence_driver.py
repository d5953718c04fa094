from loguru import logger

from .analysis import SeminalInputAnalysis
from ...ir_parser.ll_parser import LLParser
from ...utils import postprocessor


class InfluenceDriver:
    def __init__(
        self,
        src_code="",
        module=None,
        output_file=None,
        graph_format="json",
        properties=None,
        functions=None,
        output_png=False,
    ):
        self.src_code = src_code
        self.properties = properties
        if module is None:
            module = LLParser(src_code).module
        self.module = module

        self.analysis = SeminalInputAnalysis(properties)
        self.results = []
        for procedure in self.module.procedures:
            if functions and procedure.name not in functions:
                continue
            self.results.append(self.analysis.run_on_procedure(procedure))

        if functions:
            analysed = {result.procedure.name for result in self.results}
            for name in functions:
                if name not in analysed:
                    logger.warning("Function {} is not defined in {}", name, self.module.name)

        self.graph = postprocessor.influence_to_networkx(self.results)
        self.json = postprocessor.networkx_to_json(self.graph)
        if output_file:
            if graph_format == "all" or graph_format == "json":
                self.json = postprocessor.write_networkx_to_json(
                    self.graph, output_file
                )
            if graph_format == "all" or graph_format == "dot":
                postprocessor.write_to_dot(
                    self.graph, output_file.rsplit(".", 1)[0] + ".dot", output_png=output_png
                )

    def get_graph(self):
        return self.graph

    def result_for(self, name):
        for result in self.results:
            if result.procedure.name == name:
                return result
        return None

    def to_dict(self):
        return {
            "module": self.module.name,
            "procedures": [result.to_dict() for result in self.results],
        }
