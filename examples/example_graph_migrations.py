#!/usr/bin/env python3
"""
Example: Migrating a directed graph
Demonstrates delta, conjunctive and sigma migrations on the path graph 0 → 1 → 2 → 3
"""

import logging
import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from catmigrate import (
    DataMigration,
    Diagram,
    DiagramHom,
    DiagramKind,
    FinFunctor,
    Instance,
    QueryFunctor,
    Schema,
    conj_query,
    migrate,
)

GRAPH = Schema(obs=["V", "E"], homs=[("src", "E", "V"), ("tgt", "E", "V")], name="Graph")


def main():
    logging.basicConfig(level=logging.INFO, format="%(name)s: %(message)s")

    X = Instance.from_tables(GRAPH, V=4, E=3, src=[0, 1, 2], tgt=[1, 2, 3])

    print("=" * 80)
    print("GRAPH MIGRATIONS")
    print("=" * 80)
    print(f"Input: {X}\n")

    # Delta: reverse every edge
    transpose = DataMigration.delta_from_maps(
        GRAPH, GRAPH, {"V": "V", "E": "E"}, {"src": "tgt", "tgt": "src"}
    )
    reversed_graph = migrate(X, transpose)
    print("Delta (transpose)")
    print(f"  src: {reversed_graph.subpart('src')}")
    print(f"  tgt: {reversed_graph.subpart('tgt')}\n")

    # Conjunctive: paths of length two, with their first and second edge
    shape = Schema(obs=["e1", "e2", "v"], homs=[("t1", "e1", "v"), ("s2", "e2", "v")])
    paths = conj_query(shape, GRAPH, {"e1": "E", "e2": "E", "v": "V"}, {"t1": "tgt", "s2": "src"})
    edge = Diagram.single(GRAPH, "E", DiagramKind.CONJUNCTIVE)
    two_paths = Schema(obs=["P2", "Ed"], homs=[("first", "P2", "Ed"), ("second", "P2", "Ed")])
    Q = QueryFunctor(
        two_paths, GRAPH,
        {"P2": paths, "Ed": edge},
        {
            "first": DiagramHom.build(paths, edge, {"E": "e1"}),
            "second": DiagramHom.build(paths, edge, {"E": "e2"}),
        },
    )
    Y, limits = migrate(X, DataMigration.conjunctive(Q), return_limits=True, tabular=True)
    print("Conjunctive (paths of length two)")
    for record in limits["P2"].records():
        print(f"  {record}")
    print(f"  first: {Y.subpart('first')}  second: {Y.subpart('second')}\n")

    # Sigma: collapse the graph to a point, one row per connected component
    point = Schema(obs=["P"])
    collapse = FinFunctor(GRAPH, point, {"V": "P", "E": "P"}, {"src": (), "tgt": ()})
    components = migrate(X, DataMigration.sigma(collapse))
    print("Sigma (connected components)")
    print(f"  components: {components.nparts('P')}")

    print("\n" + "=" * 80)
    print("SUMMARY")
    print("=" * 80)
    print(f"✓ Transposed edges: {reversed_graph.nparts('E')}")
    print(f"✓ Paths of length two: {Y.nparts('P2')}")
    print(f"✓ Connected components: {components.nparts('P')}")


if __name__ == "__main__":
    main()
