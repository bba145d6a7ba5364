"""
COMMA CATEGORIES: (F ↓ d) for every object d of an acyclic free schema

For F: C → D and d ∈ D, the comma category (F ↓ d) has
- objects (c, f) with c ∈ C and f: F(c) → d
- morphisms h: (c, f) → (c′, f′) with h: c → c′ in C and F(h) ; f′ = f

These categories are built together, in topological order over D:
1. seed (c, id_d) for every c with F(c) = d
2. add every h with F(h) = id_d between seeded objects
3. for every g: d′ → d, copy (F ↓ d′) relabelled (c, f) ↦ (c, f ; g), copy
   its morphisms, and add h: (c, f ; g) → (codom h, id_d) whenever
   F(h) = f ; g exactly
4. record the copy as the inclusion (F ↓ d′) → (F ↓ d)

Step 3 matches morphisms syntactically. That is only correct because D is
free: with equations, F(h) = f ; g would have to be decided up to the
equations instead.
"""

from typing import Dict, List, Optional, Tuple
from dataclasses import dataclass, field
import logging

import networkx as nx

from .errors import CycleError
from .free_diagrams import free_diagram, incoming
from .functors import FinFunctor
from .schema import Path

logger = logging.getLogger(__name__)


@dataclass
class CommaCategory:
    """(F ↓ d) as a graph: objects (c, f) and generating morphisms (src, tgt, h)"""
    target: int
    obs: List[Tuple[int, Path]] = field(default_factory=list)
    homs: List[Tuple[int, int, int]] = field(default_factory=list)

    def add_ob(self, c: int, f: Path) -> int:
        self.obs.append((c, f))
        return len(self.obs) - 1

    def add_hom(self, src: int, tgt: int, h: int) -> int:
        self.homs.append((src, tgt, h))
        return len(self.homs) - 1


@dataclass(frozen=True)
class CommaInclusion:
    """Inclusion (F ↓ d′) → (F ↓ d) induced by g: d′ → d"""
    src: int
    tgt: int
    vertex_map: Tuple[int, ...]
    edge_map: Tuple[int, ...]


@dataclass
class CommaDiagram:
    """Diagram D → Cat: obs[d] = (F ↓ d), homs[g] = inclusion along g"""
    functor: FinFunctor
    obs: List[CommaCategory]
    homs: List[CommaInclusion]


def comma_categories(functor: FinFunctor) -> CommaDiagram:
    """
    Build (F ↓ d) for every d in the codomain of F, plus the inclusions.

    Raises:
        CycleError: if the codomain schema has a cycle (self loops included);
            nothing is built in that case
    """
    C, D = functor.dom, functor.codom
    graph = free_diagram(D)
    try:
        worklist = list(nx.topological_sort(graph))
    except nx.NetworkXUnfeasible as e:
        raise CycleError(
            f"Comma categories need an acyclic codomain; {D!r} has a cycle"
        ) from e

    cats = [CommaCategory(target=d) for d in range(len(D.obs))]
    inclusions: List[Optional[CommaInclusion]] = [None] * len(D.homs)

    for d in worklist:
        cat = cats[d]
        id_d = Path.identity(d)

        seeds = {c: cat.add_ob(c, id_d) for c in functor.ob_preimage(d)}
        for h in functor.hom_preimage(id_d):
            cat.add_hom(seeds[C.hom_dom(h)], seeds[C.hom_codom(h)], h)

        for d_prev, g in incoming(graph, d):
            inclusions[g] = _include(functor, cat, cats[d_prev], D.hom_path(g), seeds)

        logger.debug(
            "(F ↓ %s): %d objects, %d morphisms",
            D.obs[d], len(cat.obs), len(cat.homs)
        )

    return CommaDiagram(functor=functor, obs=cats, homs=inclusions)


def _include(
    functor: FinFunctor,
    cat: CommaCategory,
    prev: CommaCategory,
    g: Path,
    seeds: Dict[int, int]
) -> CommaInclusion:
    """Copy `prev` into `cat` along g and return the inclusion"""
    C = functor.dom
    vertex_map = [cat.add_ob(c, f.then(g)) for c, f in prev.obs]
    edge_map = [cat.add_hom(vertex_map[s], vertex_map[t], h) for s, t, h in prev.homs]

    for v in vertex_map:
        c, f = cat.obs[v]
        for h in functor.hom_preimage(f):
            if C.hom_dom(h) == c:
                cat.add_hom(v, seeds[C.hom_codom(h)], h)

    return CommaInclusion(
        src=prev.target, tgt=cat.target,
        vertex_map=tuple(vertex_map), edge_map=tuple(edge_map)
    )
