"""
FREE DIAGRAMS: Schema presentations as explicit graphs

free_diagram(schema) turns the generators of a schema into a directed
multigraph: one node per object generator, one edge per morphism generator.
Attribute generators are not part of the graph.
"""

import logging

import networkx as nx

from .schema import Schema

logger = logging.getLogger(__name__)


def free_diagram(schema: Schema) -> nx.MultiDiGraph:
    """
    Graph of a schema presentation.

    Nodes are object indices tagged with `ob` (generator name). Edges are
    (dom, codom, key) with key the morphism index, tagged with `hom`.
    Endpoints are resolved by name, so a dangling dom/codom raises
    SchemaError (a LookupError).
    """
    graph = nx.MultiDiGraph(name=schema.name)
    for i, name in enumerate(schema.obs):
        graph.add_node(i, ob=name)
    for h, hom in enumerate(schema.homs):
        graph.add_edge(schema.ob_index(hom.dom), schema.ob_index(hom.codom), key=h, hom=hom.name)
    logger.debug(
        "Free diagram of %s: %d vertices, %d edges",
        schema.name or "schema", graph.number_of_nodes(), graph.number_of_edges()
    )
    return graph


def incoming(graph: nx.MultiDiGraph, node: int):
    """Edges (src, key) into `node`, ordered by morphism index"""
    return sorted(((src, key) for src, _, key in graph.in_edges(node, keys=True)),
                  key=lambda edge: edge[1])
