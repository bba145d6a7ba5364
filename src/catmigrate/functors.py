"""
FUNCTORS: Schema functors driving data migrations

Two shapes of schema functor:

- FinFunctor F: D → C, given on generators: objects to objects, morphisms
  to paths, attributes to attribute paths. Drives delta (Δ_F: C-sets →
  D-sets) and sigma (Σ_F: D-sets → C-sets) migrations.
- QueryFunctor Q: D → Diag(C), one query per object of D and one query
  morphism per morphism of D. Drives conjunctive, glue and gluc migrations
  (C-sets → D-sets).

Schemas are free, so functors are only checked to preserve domains and
codomains; no equations are verified.
"""

from typing import Dict, List, Optional, Tuple, Union
from enum import Enum

from .diagrams import Diagram, DiagramHom, DiagramKind, GlucHom, GlucQuery
from .errors import SchemaError
from .schema import AttrPath, AttrPathSpec, Path, PathSpec, Schema


class MigrationKind(Enum):
    """The five migration semantics"""
    DELTA = "delta"              # pullback along F: D → C
    CONJUNCTIVE = "conjunctive"  # limits of conjunctive queries
    GLUE = "glue"                # colimits of gluing queries
    GLUC = "gluc"                # colimits of limits
    SIGMA = "sigma"              # left pushforward along F: C → D


# ============================================================================
# FUNCTORS BETWEEN SCHEMAS
# ============================================================================

class FinFunctor:
    """
    Functor between finitely presented free schemas, F: dom → codom.

    Args:
        dom, codom: Schemas
        ob_map: Object name → object name, for every object of dom
        hom_map: Morphism name → path in codom (name, list of names, or ()
                 for an identity), for every morphism of dom
        attr_map: Attribute name → attribute path in codom, for every
                  attribute of dom; value types must agree by name
    """

    def __init__(
        self,
        dom: Schema,
        codom: Schema,
        ob_map: Dict[str, str],
        hom_map: Optional[Dict[str, PathSpec]] = None,
        attr_map: Optional[Dict[str, AttrPathSpec]] = None
    ):
        hom_map = hom_map or {}
        attr_map = attr_map or {}
        missing = [o for o in dom.obs if o not in ob_map]
        if missing:
            raise SchemaError(f"Functor does not map objects {missing}")
        obs = tuple(codom.ob_index(ob_map[o]) for o in dom.obs)

        homs = []
        for h, hom in enumerate(dom.homs):
            if hom.name not in hom_map:
                raise SchemaError(f"Functor does not map morphism '{hom.name}'")
            homs.append(codom.to_path(hom_map[hom.name], dom=obs[dom.hom_dom(h)]))

        attrs = []
        for attr in dom.attrs:
            if attr.name not in attr_map:
                raise SchemaError(f"Functor does not map attribute '{attr.name}'")
            attrs.append(codom.to_attr_path(attr_map[attr.name]))

        self._init(dom, codom, obs, tuple(homs), tuple(attrs))

    def _init(
        self,
        dom: Schema,
        codom: Schema,
        obs: Tuple[int, ...],
        homs: Tuple[Path, ...],
        attrs: Tuple[AttrPath, ...]
    ) -> None:
        self.dom = dom
        self.codom = codom
        self.obs = obs
        self.homs = homs
        self.attrs = attrs
        self._validate()

        self._ob_preimage: Dict[int, List[int]] = {}
        for c, d in enumerate(obs):
            self._ob_preimage.setdefault(d, []).append(c)
        self._hom_preimage: Dict[Path, List[int]] = {}
        for h, path in enumerate(homs):
            self._hom_preimage.setdefault(path, []).append(h)

    @classmethod
    def from_indices(
        cls,
        dom: Schema,
        codom: Schema,
        obs: Tuple[int, ...],
        homs: Tuple[Path, ...],
        attrs: Tuple[AttrPath, ...] = ()
    ) -> 'FinFunctor':
        functor = cls.__new__(cls)
        functor._init(dom, codom, tuple(obs), tuple(homs), tuple(attrs))
        return functor

    def _validate(self) -> None:
        dom, codom = self.dom, self.codom
        if len(self.obs) != len(dom.obs) or len(self.homs) != len(dom.homs) \
                or len(self.attrs) != len(dom.attrs):
            raise SchemaError("Functor must map every generator of its domain")
        for d in self.obs:
            if not 0 <= d < len(codom.obs):
                raise SchemaError(f"Object image {d} outside the codomain")
        for h, path in enumerate(self.homs):
            codom.check_path(path)
            if (path.dom, path.codom) != (self.obs[dom.hom_dom(h)], self.obs[dom.hom_codom(h)]):
                raise SchemaError(
                    f"Image of morphism '{dom.homs[h].name}' does not preserve its "
                    f"domain and codomain"
                )
        for a, attr_path in enumerate(self.attrs):
            codom.check_path(attr_path.path)
            if not 0 <= attr_path.attr < len(codom.attrs) \
                    or attr_path.path.codom != codom.attr_dom(attr_path.attr):
                raise SchemaError(f"Image of attribute '{dom.attrs[a].name}' is malformed")
            if attr_path.dom != self.obs[dom.attr_dom(a)]:
                raise SchemaError(f"Image of attribute '{dom.attrs[a].name}' starts at the wrong object")
            if codom.attr_type(attr_path.attr) != dom.attr_type(a):
                raise SchemaError(
                    f"Attribute '{dom.attrs[a].name}' of type {dom.attr_type(a)} mapped to "
                    f"type {codom.attr_type(attr_path.attr)}"
                )

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def ob(self, c: int) -> int:
        return self.obs[c]

    def hom(self, h: int) -> Path:
        return self.homs[h]

    def attr(self, a: int) -> AttrPath:
        return self.attrs[a]

    def map_path(self, path: Path) -> Path:
        """F applied to a path of the domain"""
        image = Path.identity(self.obs[path.dom])
        for h in path.homs:
            image = image.then(self.homs[h])
        return image

    def map_attr_path(self, attr_path: AttrPath) -> AttrPath:
        target = self.attrs[attr_path.attr]
        return AttrPath(self.map_path(attr_path.path).then(target.path), target.attr)

    def ob_preimage(self, d: int) -> Tuple[int, ...]:
        """Objects c of the domain with F(c) = d"""
        return tuple(self._ob_preimage.get(d, ()))

    def hom_preimage(self, path: Path) -> Tuple[int, ...]:
        """Morphism generators h of the domain with F(h) = path, syntactically"""
        return tuple(self._hom_preimage.get(path, ()))

    # ------------------------------------------------------------------
    # Composition
    # ------------------------------------------------------------------

    def compose(self, other: 'FinFunctor') -> 'FinFunctor':
        """
        Composition self ∘ other: apply `other` first.
        For other: E → D and self: D → C this is E → C.
        """
        if other.codom != self.dom:
            raise SchemaError("Cannot compose functors: codomain and domain differ")
        return FinFunctor.from_indices(
            other.dom, self.codom,
            tuple(self.obs[d] for d in other.obs),
            tuple(self.map_path(p) for p in other.homs),
            tuple(self.map_attr_path(a) for a in other.attrs),
        )

    @staticmethod
    def identity(schema: Schema) -> 'FinFunctor':
        return FinFunctor.from_indices(
            schema, schema,
            tuple(range(len(schema.obs))),
            tuple(schema.hom_path(h) for h in range(len(schema.homs))),
            tuple(AttrPath(Path.identity(schema.attr_dom(a)), a) for a in range(len(schema.attrs))),
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FinFunctor):
            return NotImplemented
        return (self.dom, self.codom, self.obs, self.homs, self.attrs) == \
            (other.dom, other.codom, other.obs, other.homs, other.attrs)

    __hash__ = None

    def __repr__(self) -> str:
        obs = {self.dom.obs[c]: self.codom.obs[d] for c, d in enumerate(self.obs)}
        return f"FinFunctor({obs})"


# ============================================================================
# FUNCTORS INTO QUERIES
# ============================================================================

Query = Union[Diagram, GlucQuery]
QueryHom = Union[DiagramHom, GlucHom]


class QueryFunctor:
    """
    Functor Q: dom → Diag(codom), one query per object of dom.

    The kind is read off the queries: all conjunctive diagrams, all gluing
    diagrams, or all gluc queries. Only conjunctive functors may map
    attributes: attr_map sends an attribute a: d → T to (j, p) with j a shape
    object of Q(d) and p an attribute path of codom starting at Q(d)(j).
    """

    def __init__(
        self,
        dom: Schema,
        codom: Schema,
        ob_map: Dict[str, Query],
        hom_map: Optional[Dict[str, QueryHom]] = None,
        attr_map: Optional[Dict[str, Tuple[str, AttrPathSpec]]] = None
    ):
        hom_map = hom_map or {}
        attr_map = attr_map or {}
        self.dom = dom
        self.codom = codom

        missing = [o for o in dom.obs if o not in ob_map]
        if missing:
            raise SchemaError(f"Query functor does not map objects {missing}")
        self.obs: Tuple[Query, ...] = tuple(ob_map[o] for o in dom.obs)
        self.kind = self._infer_kind()
        for query in self.obs:
            if query.codom != codom:
                raise SchemaError("Every query must be a query in the codomain schema")

        homs = []
        for h, hom in enumerate(dom.homs):
            if hom.name not in hom_map:
                raise SchemaError(f"Query functor does not map morphism '{hom.name}'")
            image = hom_map[hom.name]
            expected = GlucHom if self.kind == MigrationKind.GLUC else DiagramHom
            if not isinstance(image, expected):
                raise SchemaError(f"Image of '{hom.name}' must be a {expected.__name__}")
            if image.dom != self.obs[dom.hom_dom(h)] or image.codom != self.obs[dom.hom_codom(h)]:
                raise SchemaError(
                    f"Image of morphism '{hom.name}' does not go between the images "
                    f"of its domain and codomain"
                )
            homs.append(image)
        self.homs: Tuple[QueryHom, ...] = tuple(homs)

        if dom.attrs and self.kind != MigrationKind.CONJUNCTIVE:
            raise SchemaError(f"{self.kind.value} migrations cannot populate attributes")
        attrs = []
        for a, attr in enumerate(dom.attrs):
            if attr.name not in attr_map:
                raise SchemaError(f"Query functor does not map attribute '{attr.name}'")
            leg_name, spec = attr_map[attr.name]
            query = self.obs[dom.attr_dom(a)]
            j = query.shape.ob_index(leg_name)
            attr_path = codom.to_attr_path(spec)
            if attr_path.dom != query.obs[j]:
                raise SchemaError(f"Attribute '{attr.name}' is read from the wrong object")
            attrs.append((j, attr_path))
        self.attrs: Tuple[Tuple[int, AttrPath], ...] = tuple(attrs)

    def _infer_kind(self) -> MigrationKind:
        kinds = set()
        for query in self.obs:
            if isinstance(query, GlucQuery):
                kinds.add(MigrationKind.GLUC)
            elif isinstance(query, Diagram) and query.kind == DiagramKind.CONJUNCTIVE:
                kinds.add(MigrationKind.CONJUNCTIVE)
            elif isinstance(query, Diagram):
                kinds.add(MigrationKind.GLUE)
            else:
                raise SchemaError(f"Not a query: {query!r}")
        if len(kinds) > 1:
            raise SchemaError(f"Query functor mixes query kinds: {sorted(k.value for k in kinds)}")
        # An empty domain has no queries to inspect.
        return kinds.pop() if kinds else MigrationKind.CONJUNCTIVE

    def ob(self, c: int) -> Query:
        return self.obs[c]

    def hom(self, h: int) -> QueryHom:
        return self.homs[h]

    def attr(self, a: int) -> Tuple[int, AttrPath]:
        return self.attrs[a]

    def __repr__(self) -> str:
        return f"QueryFunctor({self.kind.value}, obs={list(self.dom.obs)})"
