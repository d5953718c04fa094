import copy
import json
from subprocess import check_call

import networkx as nx
from networkx.readwrite import json_graph

from ..codeviews.influence.reporter import get_line_number, render_value


def influence_to_networkx(results):
    """
    Build the influence graph of a set of analysis results.

    Nodes are integers; input nodes point at the key points they influence
    through "influences" edges. Key points with no influencing input are
    kept as isolated nodes.
    """
    graph = nx.MultiDiGraph()
    node_ids = {}

    def node_for(value, kind, procedure):
        if (procedure, value) in node_ids:
            return node_ids[(procedure, value)]
        node_id = len(node_ids)
        node_ids[(procedure, value)] = node_id
        attributes = {
            "kind": kind,
            "procedure": procedure.name,
            "ident": value.ident,
            "label": render_value(value),
        }
        if kind == "key_point":
            attributes["line"] = get_line_number(value)
            attributes["opcode"] = value.opcode
        graph.add_node(node_id, **attributes)
        return node_id

    for result in results:
        for value in result.inputs:
            node_for(value, "input", result.procedure)
        for instruction, inputs in result.key_points.items():
            target = node_for(instruction, "key_point", result.procedure)
            for value in inputs:
                graph.add_edge(node_ids[(result.procedure, value)], target, edge_type="influences")
    return graph


def networkx_to_json(graph):
    """Convert a networkx graph to a json object"""
    graph_json = json_graph.node_link_data(graph)
    return graph_json


def write_networkx_to_json(graph, filename):
    """Convert a networkx graph to a json object and write it out"""
    graph_json = json_graph.node_link_data(graph)
    with open(filename, "w") as f:
        json.dump(graph_json, f)
    return graph_json


def escape_dot_label(label):
    label = str(label)
    # Backslashes first so later escapes survive
    label = label.replace('\\', '\\\\')
    label = label.replace('"', '\\"')
    label = label.replace('\n', ' ')
    label = label.replace('\r', ' ')
    return f'"{label}"'


def write_to_dot(og_graph, filename, output_png=False):
    graph = copy.deepcopy(og_graph)
    # IR text is full of %, @, quotes and commas; quote every free-text attribute
    for node in graph.nodes:
        for attr_name in ['label', 'ident', 'procedure']:
            if attr_name in graph.nodes[node]:
                graph.nodes[node][attr_name] = escape_dot_label(graph.nodes[node][attr_name])

    nx.nx_pydot.write_dot(graph, filename)
    if output_png:
        check_call(
            ["dot", "-Tpng", filename, "-o", filename.rsplit(".", 1)[0] + ".png"]
        )
