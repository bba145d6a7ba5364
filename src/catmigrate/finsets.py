"""
FINSETS: Limits and colimits of finite diagrams of finite sets

The finite set of size n is {0, ..., n-1}. A diagram is a list of vertex
sizes plus functions between vertices. This module is the solver behind the
migration engine:

- limit(D): the generalized join of D, with one projection leg per vertex
- colimit(D): the disjoint union of D's vertices quotiented by its functions
- Limit.universal / Colimit.universal: the unique mediating function out of
  (resp. into) a compatible cone (resp. cocone)
"""

from typing import Dict, List, Optional, Tuple
from dataclasses import dataclass, field

from networkx.utils import UnionFind

from .errors import SolverError


# ============================================================================
# FINITE FUNCTIONS
# ============================================================================

@dataclass(frozen=True)
class FinFunction:
    """Total function {0..len(values)-1} → {0..codom-1}"""
    values: Tuple[int, ...]
    codom: int

    def __post_init__(self):
        object.__setattr__(self, "values", tuple(self.values))
        for v in self.values:
            if not 0 <= v < self.codom:
                raise SolverError(f"Value {v} outside codomain of size {self.codom}")

    @property
    def dom(self) -> int:
        return len(self.values)

    def __call__(self, x: int) -> int:
        return self.values[x]

    def compose(self, other: 'FinFunction') -> 'FinFunction':
        """Diagrammatic composition: apply self, then other"""
        if self.codom != other.dom:
            raise SolverError(
                f"Cannot compose functions: codomain {self.codom} != domain {other.dom}"
            )
        return FinFunction(tuple(other.values[v] for v in self.values), other.codom)

    @staticmethod
    def identity(n: int) -> 'FinFunction':
        return FinFunction(tuple(range(n)), n)


@dataclass
class FinDiagram:
    """
    Free diagram of finite sets.
    obs[j] is the size of vertex j; homs holds (function, src, tgt) triples.
    """
    obs: List[int] = field(default_factory=list)
    homs: List[Tuple[FinFunction, int, int]] = field(default_factory=list)

    def __post_init__(self):
        for func, src, tgt in self.homs:
            if not (0 <= src < len(self.obs) and 0 <= tgt < len(self.obs)):
                raise SolverError(f"Edge {src} → {tgt} refers to a missing vertex")
            if func.dom != self.obs[src] or func.codom != self.obs[tgt]:
                raise SolverError(
                    f"Edge {src} → {tgt} has type {func.dom} → {func.codom}, "
                    f"expected {self.obs[src]} → {self.obs[tgt]}"
                )


@dataclass(frozen=True)
class Cone:
    """Apex with one leg per diagram vertex (into the vertex)"""
    apex: int
    legs: Tuple[FinFunction, ...]


@dataclass(frozen=True)
class Cocone:
    """Apex with one leg per diagram vertex (out of the vertex)"""
    apex: int
    legs: Tuple[FinFunction, ...]


# ============================================================================
# LIMITS
# ============================================================================

@dataclass
class Limit:
    """Limit of a FinDiagram: rows are tuples with one element per vertex"""
    diagram: FinDiagram
    rows: List[Tuple[int, ...]]
    legs: List[FinFunction]
    _index: Dict[Tuple[int, ...], int] = field(init=False, repr=False)

    def __post_init__(self):
        self._index = {row: i for i, row in enumerate(self.rows)}

    @property
    def apex(self) -> int:
        return len(self.rows)

    def universal(self, cone: Cone) -> FinFunction:
        """Unique function from the cone's apex into this limit"""
        if len(cone.legs) != len(self.diagram.obs):
            raise SolverError(
                f"Cone has {len(cone.legs)} legs, diagram has {len(self.diagram.obs)} vertices"
            )
        for j, leg in enumerate(cone.legs):
            if leg.dom != cone.apex or leg.codom != self.diagram.obs[j]:
                raise SolverError(f"Cone leg {j} has the wrong type")
        values = []
        for x in range(cone.apex):
            key = tuple(leg.values[x] for leg in cone.legs)
            row = self._index.get(key)
            if row is None:
                raise SolverError(f"Cone element {x} does not factor through the limit")
            values.append(row)
        return FinFunction(tuple(values), self.apex)


def _join_order(diagram: FinDiagram) -> List[Tuple[int, Optional[int], List[int]]]:
    """
    Order vertices for the join. Each step is (vertex, forcing edge, checked
    edges): a forcing edge has an already placed source, so the vertex value
    is computed rather than enumerated; checked edges close on this step.
    """
    placed = set()
    steps = []
    remaining = list(range(len(diagram.obs)))
    while remaining:
        choice = None
        for v in remaining:
            for e, (_, src, tgt) in enumerate(diagram.homs):
                if tgt == v and src in placed:
                    choice = (v, e)
                    break
            if choice:
                break
        if choice is None:
            choice = (remaining[0], None)
        v, forcing = choice
        remaining.remove(v)
        placed.add(v)
        checks = [
            e for e, (_, src, tgt) in enumerate(diagram.homs)
            if e != forcing and v in (src, tgt) and src in placed and tgt in placed
        ]
        steps.append((v, forcing, checks))
    return steps


def limit(diagram: FinDiagram) -> Limit:
    """
    Limit of a finite diagram of finite sets.
    The limit of the empty diagram is the one-point set.
    """
    n = len(diagram.obs)
    partials: List[List[Optional[int]]] = [[None] * n]
    for v, forcing, checks in _join_order(diagram):
        extended = []
        for partial in partials:
            if forcing is not None:
                func, src, _ = diagram.homs[forcing]
                candidates = (func.values[partial[src]],)
            else:
                candidates = range(diagram.obs[v])
            for x in candidates:
                partial[v] = x
                if all(
                    diagram.homs[e][0].values[partial[diagram.homs[e][1]]]
                    == partial[diagram.homs[e][2]]
                    for e in checks
                ):
                    extended.append(list(partial))
            partial[v] = None
        partials = extended
        if not partials:
            break

    rows = sorted(tuple(p) for p in partials)
    legs = [
        FinFunction(tuple(row[j] for row in rows), diagram.obs[j])
        for j in range(n)
    ]
    return Limit(diagram=diagram, rows=rows, legs=legs)


@dataclass
class TabularLimit:
    """Limit whose rows are read as records keyed by shape object names"""
    limit: Limit
    names: Tuple[str, ...]

    def __post_init__(self):
        if len(self.names) != len(self.limit.diagram.obs):
            raise SolverError("TabularLimit needs one column name per vertex")

    @property
    def apex(self) -> int:
        return self.limit.apex

    def columns(self) -> Dict[str, List[int]]:
        return {name: list(leg.values) for name, leg in zip(self.names, self.limit.legs)}

    def records(self) -> List[Dict[str, int]]:
        return [dict(zip(self.names, row)) for row in self.limit.rows]


# ============================================================================
# COLIMITS
# ============================================================================

@dataclass
class Colimit:
    """Colimit of a FinDiagram: equivalence classes of the disjoint union"""
    diagram: FinDiagram
    apex: int
    legs: List[FinFunction]

    def universal(self, cocone: Cocone) -> FinFunction:
        """Unique function from this colimit into the cocone's apex"""
        if len(cocone.legs) != len(self.diagram.obs):
            raise SolverError(
                f"Cocone has {len(cocone.legs)} legs, diagram has {len(self.diagram.obs)} vertices"
            )
        values: List[Optional[int]] = [None] * self.apex
        for j, (leg, own) in enumerate(zip(cocone.legs, self.legs)):
            if leg.dom != self.diagram.obs[j] or leg.codom != cocone.apex:
                raise SolverError(f"Cocone leg {j} has the wrong type")
            for x in range(leg.dom):
                cls, y = own.values[x], leg.values[x]
                if values[cls] is None:
                    values[cls] = y
                elif values[cls] != y:
                    raise SolverError(
                        f"Cocone identifies class {cls} with both {values[cls]} and {y}"
                    )
        return FinFunction(tuple(values), cocone.apex)


def colimit(diagram: FinDiagram) -> Colimit:
    """
    Colimit of a finite diagram of finite sets.
    Classes are numbered by first appearance, vertex by vertex, so a vertex
    whose elements are all distinct classes keeps its order.
    """
    offsets = []
    total = 0
    for size in diagram.obs:
        offsets.append(total)
        total += size

    classes = UnionFind(range(total))
    for func, src, tgt in diagram.homs:
        for x, y in enumerate(func.values):
            classes.union(offsets[src] + x, offsets[tgt] + y)

    numbering: Dict[int, int] = {}
    legs = []
    for j, size in enumerate(diagram.obs):
        values = []
        for x in range(size):
            root = classes[offsets[j] + x]
            if root not in numbering:
                numbering[root] = len(numbering)
            values.append(numbering[root])
        legs.append(values)
    apex = len(numbering)
    return Colimit(
        diagram=diagram,
        apex=apex,
        legs=[FinFunction(tuple(values), apex) for values in legs],
    )
