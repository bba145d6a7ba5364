"""
DIAGRAMS: Queries over a schema

A diagram in a schema C is a small shape schema J together with a
structure-preserving map J → C (not necessarily injective). The kind fixes
how the diagram is read as a query:

- CONJUNCTIVE: read contravariantly, answered by a limit (a generalized join)
- GLUE: read covariantly, answered by a colimit (union with identification)

A gluc query is a gluing diagram whose objects are conjunctive diagrams and
whose morphisms are conjunctive diagram morphisms: a colimit of limits. With
a discrete outer shape it is a "duc" query (disjoint union of conjunctive
queries).
"""

from typing import Dict, Optional, Tuple, Union
from dataclasses import dataclass
from enum import Enum

from .errors import SchemaError
from .finsets import FinDiagram
from .instance import Instance
from .schema import Path, PathSpec, Schema


class DiagramKind(Enum):
    """How a diagram is interpreted as a query"""
    CONJUNCTIVE = "conjunctive"  # limits
    GLUE = "glue"                # colimits


# ============================================================================
# DIAGRAMS
# ============================================================================

@dataclass(frozen=True)
class Diagram:
    """
    Diagram J → C.
    obs[j] is the C-object of shape object j; homs[e] the C-path of shape
    morphism e.
    """
    shape: Schema
    codom: Schema
    obs: Tuple[int, ...]
    homs: Tuple[Path, ...]
    kind: DiagramKind = DiagramKind.GLUE

    def __post_init__(self):
        if len(self.obs) != len(self.shape.obs) or len(self.homs) != len(self.shape.homs):
            raise SchemaError("Diagram must map every shape generator")
        for c in self.obs:
            if not 0 <= c < len(self.codom.obs):
                raise SchemaError(f"Diagram object image {c} is not an object of the codomain")
        for e, path in enumerate(self.homs):
            self.codom.check_path(path)
            if (path.dom, path.codom) != (
                self.obs[self.shape.hom_dom(e)], self.obs[self.shape.hom_codom(e)]
            ):
                raise SchemaError(
                    f"Image of shape morphism '{self.shape.homs[e].name}' does not "
                    f"preserve its domain and codomain"
                )

    @staticmethod
    def build(
        shape: Schema,
        codom: Schema,
        ob_map: Dict[str, str],
        hom_map: Optional[Dict[str, PathSpec]] = None,
        kind: DiagramKind = DiagramKind.GLUE
    ) -> 'Diagram':
        """Diagram from generator names; hom images may be names, name lists or ()"""
        hom_map = hom_map or {}
        missing = [o for o in shape.obs if o not in ob_map]
        if missing:
            raise SchemaError(f"Diagram does not map shape objects {missing}")
        obs = tuple(codom.ob_index(ob_map[o]) for o in shape.obs)
        homs = []
        for e, hom in enumerate(shape.homs):
            if hom.name not in hom_map:
                raise SchemaError(f"Diagram does not map shape morphism '{hom.name}'")
            homs.append(codom.to_path(hom_map[hom.name], dom=obs[shape.hom_dom(e)]))
        return Diagram(shape, codom, obs, tuple(homs), kind)

    @staticmethod
    def single(codom: Schema, ob: str, kind: DiagramKind = DiagramKind.GLUE) -> 'Diagram':
        """One-object diagram picking out `ob`"""
        return Diagram.build(Schema(obs=[ob]), codom, {ob: ob}, kind=kind)

    def is_discrete(self) -> bool:
        return not self.shape.homs

    def ob_names(self) -> Tuple[str, ...]:
        return self.shape.obs

    def to_fin_diagram(self, instance: Instance) -> FinDiagram:
        """The diagram of finite sets X ∘ D"""
        return FinDiagram(
            obs=[instance.nparts(c) for c in self.obs],
            homs=[
                (instance.path_function(path), self.shape.hom_dom(e), self.shape.hom_codom(e))
                for e, path in enumerate(self.homs)
            ],
        )


def conj_query(
    shape: Schema,
    codom: Schema,
    ob_map: Dict[str, str],
    hom_map: Optional[Dict[str, PathSpec]] = None
) -> Diagram:
    """Conjunctive query: a diagram answered by its limit"""
    return Diagram.build(shape, codom, ob_map, hom_map, kind=DiagramKind.CONJUNCTIVE)


def glue_query(
    shape: Schema,
    codom: Schema,
    ob_map: Dict[str, str],
    hom_map: Optional[Dict[str, PathSpec]] = None
) -> Diagram:
    """Gluing query: a diagram answered by its colimit"""
    return Diagram.build(shape, codom, ob_map, hom_map, kind=DiagramKind.GLUE)


# ============================================================================
# DIAGRAM MORPHISMS
# ============================================================================

def _hom_sides(dom: Diagram, codom: Diagram) -> Tuple[Diagram, Diagram]:
    """(diagram indexing the components, diagram they point into)"""
    if dom.kind == DiagramKind.CONJUNCTIVE:
        return codom, dom
    return dom, codom


@dataclass(frozen=True)
class DiagramHom:
    """
    Morphism of diagrams D → D′ over the same schema.

    CONJUNCTIVE: one component per shape object j′ of D′, (j, p) with
                 j in D and p: D(j) → D′(j′). Induces lim D → lim D′.
    GLUE:        one component per shape object j of D, (j′, p) with
                 j′ in D′ and p: D(j) → D′(j′). Induces colim D → colim D′.
    """
    dom: Diagram
    codom: Diagram
    components: Tuple[Tuple[int, Path], ...]

    def __post_init__(self):
        if self.dom.kind != self.codom.kind:
            raise SchemaError("Diagram morphism between diagrams of different kinds")
        if self.dom.codom != self.codom.codom:
            raise SchemaError("Diagram morphism between diagrams in different schemas")
        indexing, other = _hom_sides(self.dom, self.codom)
        if len(self.components) != len(indexing.obs):
            raise SchemaError("Diagram morphism needs one component per indexing object")
        for k, (j, path) in enumerate(self.components):
            if not 0 <= j < len(other.obs):
                raise SchemaError(f"Component {k} points at a missing shape object {j}")
            self.dom.codom.check_path(path)
            src, tgt = (other.obs[j], indexing.obs[k]) if self.is_conjunctive() \
                else (indexing.obs[k], other.obs[j])
            if (path.dom, path.codom) != (src, tgt):
                raise SchemaError(f"Component {k} has the wrong domain or codomain")

    def is_conjunctive(self) -> bool:
        return self.dom.kind == DiagramKind.CONJUNCTIVE

    @staticmethod
    def build(
        dom: Diagram,
        codom: Diagram,
        mapping: Dict[str, Union[str, Tuple[str, PathSpec]]]
    ) -> 'DiagramHom':
        """
        Morphism from shape object names. `mapping` is keyed by the indexing
        diagram's objects (D′ for conjunctive, D for glue); each value is the
        other diagram's object name, optionally paired with a path.
        """
        indexing, other = _hom_sides(dom, codom)
        conjunctive = dom.kind == DiagramKind.CONJUNCTIVE
        components = []
        for k, name in enumerate(indexing.shape.obs):
            if name not in mapping:
                raise SchemaError(f"Diagram morphism does not map shape object '{name}'")
            value = mapping[name]
            target, spec = (value, None) if isinstance(value, str) else value
            j = other.shape.ob_index(target)
            src = other.obs[j] if conjunctive else indexing.obs[k]
            components.append((j, dom.codom.to_path(spec, dom=src)))
        return DiagramHom(dom, codom, tuple(components))

    @staticmethod
    def identity(diagram: Diagram) -> 'DiagramHom':
        return DiagramHom(
            diagram, diagram,
            tuple((j, Path.identity(c)) for j, c in enumerate(diagram.obs))
        )


# ============================================================================
# GLUC QUERIES (COLIMITS OF LIMITS)
# ============================================================================

@dataclass(frozen=True)
class GlucQuery:
    """Gluing of conjunctive queries: shape J, one conjunctive diagram per object"""
    shape: Schema
    codom: Schema
    obs: Tuple[Diagram, ...]
    homs: Tuple[DiagramHom, ...]

    def __post_init__(self):
        if len(self.obs) != len(self.shape.obs) or len(self.homs) != len(self.shape.homs):
            raise SchemaError("Gluc query must map every outer shape generator")
        for diagram in self.obs:
            if diagram.kind != DiagramKind.CONJUNCTIVE or diagram.codom != self.codom:
                raise SchemaError("Gluc query objects must be conjunctive queries in its schema")
        for e, hom in enumerate(self.homs):
            if not hom.is_conjunctive():
                raise SchemaError("Gluc query morphisms must be conjunctive diagram morphisms")
            if hom.dom != self.obs[self.shape.hom_dom(e)] or hom.codom != self.obs[self.shape.hom_codom(e)]:
                raise SchemaError(
                    f"Image of outer morphism '{self.shape.homs[e].name}' has the wrong ends"
                )

    @staticmethod
    def build(
        shape: Schema,
        codom: Schema,
        obs: Dict[str, Diagram],
        homs: Optional[Dict[str, DiagramHom]] = None
    ) -> 'GlucQuery':
        homs = homs or {}
        try:
            return GlucQuery(
                shape, codom,
                tuple(obs[o] for o in shape.obs),
                tuple(homs[h.name] for h in shape.homs),
            )
        except KeyError as e:
            raise SchemaError(f"Gluc query does not map outer generator {e}") from None

    @staticmethod
    def duc(codom: Schema, queries: Dict[str, Diagram]) -> 'GlucQuery':
        """Disjoint union of conjunctive queries"""
        return GlucQuery.build(Schema(obs=list(queries)), codom, queries)

    def is_duc(self) -> bool:
        return not self.shape.homs


@dataclass(frozen=True)
class GlucHom:
    """
    Morphism of gluc queries G → G′: for each outer object j of G, a pair
    (j′, conjunctive morphism G(j) → G′(j′)).
    """
    dom: GlucQuery
    codom: GlucQuery
    components: Tuple[Tuple[int, DiagramHom], ...]

    def __post_init__(self):
        if len(self.components) != len(self.dom.obs):
            raise SchemaError("Gluc morphism needs one component per outer object")
        for j, (j2, hom) in enumerate(self.components):
            if not 0 <= j2 < len(self.codom.obs):
                raise SchemaError(f"Gluc component {j} points at a missing outer object {j2}")
            if hom.dom != self.dom.obs[j] or hom.codom != self.codom.obs[j2]:
                raise SchemaError(f"Gluc component {j} has the wrong domain or codomain")

    @staticmethod
    def build(
        dom: GlucQuery,
        codom: GlucQuery,
        mapping: Dict[str, Tuple[str, DiagramHom]]
    ) -> 'GlucHom':
        components = []
        for name in dom.shape.obs:
            if name not in mapping:
                raise SchemaError(f"Gluc morphism does not map outer object '{name}'")
            target, hom = mapping[name]
            components.append((codom.shape.ob_index(target), hom))
        return GlucHom(dom, codom, tuple(components))
