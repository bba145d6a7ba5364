"""
MIGRATIONS: Functorial data migration between schema instances

A DataMigration is one of five kinds, each a functor between categories of
instances:

- DELTA        Δ_F(X) = X ∘ F for F: D → C            (C-sets → D-sets)
- CONJUNCTIVE  Y(d) = lim (X ∘ Q(d))                   (C-sets → D-sets)
- GLUE         Y(d) = colim (X ∘ Q(d))                 (C-sets → D-sets)
- GLUC         Y(d) = colim_j lim (X ∘ Q(d)(j))        (C-sets → D-sets)
- SIGMA        Σ_F(X)(d) = colim_{(F ↓ d)} X ∘ π        (C-sets → D-sets)

Σ_F is left adjoint to Δ_F. Σ then Δ is not the identity in general; only
Σ along the identity functor gives back X unchanged.

migrate() builds every object of the target schema first, then every
morphism, then attributes. A target instance is returned only once fully
assembled.
"""

from typing import Any, Callable, Dict, Optional, Tuple, Union
from dataclasses import dataclass
import logging

from .comma import CommaDiagram, comma_categories
from .config import MigrationConfig
from .diagrams import DiagramHom
from .errors import DomainMismatchError, SchemaError
from .finsets import (
    Cocone, Cone, FinDiagram, FinFunction, Limit, TabularLimit,
    colimit, limit,
)
from .functors import FinFunctor, MigrationKind, QueryFunctor
from .instance import Instance
from .schema import AttrPathSpec, PathSpec, Schema

logger = logging.getLogger(__name__)


# ============================================================================
# MIGRATION DATA
# ============================================================================

@dataclass(frozen=True)
class DataMigration:
    """
    Tagged migration: `kind` selects the semantics, `functor` carries the
    schema functor. Sigma migrations also hold their comma categories,
    computed once at construction.
    """
    kind: MigrationKind
    functor: Union[FinFunctor, QueryFunctor]
    comma: Optional[CommaDiagram] = None

    @property
    def source_schema(self) -> Schema:
        """Schema of the instances this migration consumes"""
        if self.kind == MigrationKind.SIGMA:
            return self.functor.dom
        return self.functor.codom

    @property
    def target_schema(self) -> Schema:
        """Schema of the instances this migration produces"""
        if self.kind == MigrationKind.SIGMA:
            return self.functor.codom
        return self.functor.dom

    @staticmethod
    def delta(functor: FinFunctor) -> 'DataMigration':
        """Pullback along F: D → C"""
        return DataMigration(MigrationKind.DELTA, functor)

    @staticmethod
    def delta_from_maps(
        dom: Schema,
        codom: Schema,
        ob_map: Dict[str, str],
        hom_map: Optional[Dict[str, PathSpec]] = None,
        attr_map: Optional[Dict[str, AttrPathSpec]] = None
    ) -> 'DataMigration':
        """Pullback along the functor given by generator maps, dom → codom"""
        return DataMigration.delta(FinFunctor(dom, codom, ob_map, hom_map, attr_map))

    @staticmethod
    def query(functor: QueryFunctor) -> 'DataMigration':
        """Conjunctive, glue or gluc migration, as the functor's queries say"""
        return DataMigration(functor.kind, functor)

    @staticmethod
    def conjunctive(functor: QueryFunctor) -> 'DataMigration':
        return DataMigration._checked_query(functor, MigrationKind.CONJUNCTIVE)

    @staticmethod
    def glue(functor: QueryFunctor) -> 'DataMigration':
        return DataMigration._checked_query(functor, MigrationKind.GLUE)

    @staticmethod
    def gluc(functor: QueryFunctor) -> 'DataMigration':
        return DataMigration._checked_query(functor, MigrationKind.GLUC)

    @staticmethod
    def _checked_query(functor: QueryFunctor, kind: MigrationKind) -> 'DataMigration':
        # Functors on an empty schema carry no queries, so any kind fits.
        if functor.obs and functor.kind != kind:
            raise SchemaError(f"Expected {kind.value} queries, got {functor.kind.value}")
        return DataMigration(kind, functor)

    @staticmethod
    def sigma(functor: FinFunctor) -> 'DataMigration':
        """
        Left pushforward along F: C → D.

        Raises:
            CycleError: if D is not acyclic
            SchemaError: if D has attributes
        """
        if functor.codom.attrs:
            raise SchemaError("Sigma migrations cannot populate attributes of the target schema")
        return DataMigration(MigrationKind.SIGMA, functor, comma_categories(functor))


# ============================================================================
# ENTRY POINTS
# ============================================================================

def migrate(
    instance: Instance,
    migration: DataMigration,
    config: Optional[MigrationConfig] = None,
    return_limits: bool = False,
    tabular: bool = False
) -> Union[Instance, Tuple[Instance, Dict[str, Any]]]:
    """
    Migrate `instance` along `migration` into a new instance.

    Args:
        instance: Source instance, never modified
        migration: The migration to apply
        config: Engine options; defaults when omitted
        return_limits: Conjunctive only; also return the limit of each
            target object, keyed by object name
        tabular: With return_limits, wrap each limit as a TabularLimit
            whose columns are named by the query's shape objects

    Raises:
        DomainMismatchError: instance schema is not the migration's source
        InstanceError: source instance is not total (validate_source)
        SolverError: a limit or colimit could not be formed
    """
    config = config or MigrationConfig()
    if return_limits and migration.kind != MigrationKind.CONJUNCTIVE:
        raise ValueError("return_limits is only available for conjunctive migrations")

    _check_domain(instance.schema, migration.source_schema, config)
    if config.validate_source:
        instance.validate()

    handler = _HANDLERS[migration.kind]
    result, limits = handler(instance, migration, config)
    logger.info("%s migration: %r → %r", migration.kind.value, instance, result)

    if not return_limits:
        return result
    if tabular:
        queries = migration.functor.obs
        limits = {
            name: TabularLimit(lim, queries[d].ob_names())
            for d, (name, lim) in enumerate(limits.items())
        }
    return result, limits


def migrate_into(
    target: Instance,
    instance: Instance,
    migration: DataMigration,
    config: Optional[MigrationConfig] = None
) -> Dict[str, range]:
    """
    Mutating variant of migrate: append the migrated rows to `target`.
    Returns the row ranges added per object. `target` is untouched if the
    migration fails.
    """
    result = migrate(instance, migration, config)
    if target.schema != result.schema:
        raise DomainMismatchError(
            f"Target instance schema {target.schema!r} is not {result.schema!r}"
        )
    return target.copy_parts(result)


def _check_domain(actual: Schema, expected: Schema, config: MigrationConfig) -> None:
    if actual == expected:
        return
    if not config.strict_domain_check and actual.is_structurally_equal(expected):
        logger.warning(
            "Instance schema %r differs from %r by names only; migrating anyway",
            actual, expected
        )
        return
    raise DomainMismatchError(f"Instance of {actual!r} given to a migration out of {expected!r}")


# ============================================================================
# DELTA
# ============================================================================

def _migrate_delta(X: Instance, migration: DataMigration, config: MigrationConfig):
    F: FinFunctor = migration.functor
    D = F.dom
    Y = Instance(D)
    for d in range(len(D.obs)):
        Y.add_parts(d, X.nparts(F.ob(d)))
    for h, hom in enumerate(D.homs):
        Y.set_subpart(Y.parts(hom.dom), hom.name, X.path_function(F.hom(h)).values)
    for a, attr in enumerate(D.attrs):
        Y.set_subpart(Y.parts(attr.dom), attr.name, X.attr_values(F.attr(a)))
    return Y, None


# ============================================================================
# CONJUNCTIVE
# ============================================================================

def _conj_universal(X: Instance, hom: DiagramHom, dom_lim: Limit, codom_lim: Limit) -> FinFunction:
    """lim D → lim D′ induced by a conjunctive diagram morphism D → D′"""
    legs = tuple(
        dom_lim.legs[j].compose(X.path_function(path))
        for j, path in hom.components
    )
    return codom_lim.universal(Cone(dom_lim.apex, legs))


def _migrate_conjunctive(X: Instance, migration: DataMigration, config: MigrationConfig):
    Q: QueryFunctor = migration.functor
    D = Q.dom
    Y = Instance(D)

    limits = []
    for d in range(len(D.obs)):
        lim = limit(Q.ob(d).to_fin_diagram(X))
        logger.debug("lim Q(%s): %d rows", D.obs[d], lim.apex)
        limits.append(lim)
        Y.add_parts(d, lim.apex)

    for h, hom in enumerate(D.homs):
        func = _conj_universal(X, Q.hom(h), limits[D.hom_dom(h)], limits[D.hom_codom(h)])
        Y.set_subpart(Y.parts(hom.dom), hom.name, func.values)

    for a, attr in enumerate(D.attrs):
        j, attr_path = Q.attr(a)
        values = X.attr_values(attr_path)
        leg = limits[D.attr_dom(a)].legs[j]
        Y.set_subpart(Y.parts(attr.dom), attr.name, [values[x] for x in leg.values])

    return Y, dict(zip(D.obs, limits))


# ============================================================================
# GLUE
# ============================================================================

def _migrate_glue(X: Instance, migration: DataMigration, config: MigrationConfig):
    Q: QueryFunctor = migration.functor
    D = Q.dom
    Y = Instance(D)

    colimits = []
    for d in range(len(D.obs)):
        colim = colimit(Q.ob(d).to_fin_diagram(X))
        logger.debug("colim Q(%s): %d rows", D.obs[d], colim.apex)
        colimits.append(colim)
        Y.add_parts(d, colim.apex)

    for h, hom in enumerate(D.homs):
        dom_colim, codom_colim = colimits[D.hom_dom(h)], colimits[D.hom_codom(h)]
        legs = tuple(
            X.path_function(path).compose(codom_colim.legs[j])
            for j, path in Q.hom(h).components
        )
        func = dom_colim.universal(Cocone(codom_colim.apex, legs))
        Y.set_subpart(Y.parts(hom.dom), hom.name, func.values)

    return Y, None


# ============================================================================
# GLUC
# ============================================================================

def _migrate_gluc(X: Instance, migration: DataMigration, config: MigrationConfig):
    Q: QueryFunctor = migration.functor
    D = Q.dom
    Y = Instance(D)

    inner_limits = []
    colimits = []
    for d in range(len(D.obs)):
        G = Q.ob(d)
        lims = [limit(query.to_fin_diagram(X)) for query in G.obs]
        edges = [
            (
                _conj_universal(X, G.homs[e], lims[G.shape.hom_dom(e)], lims[G.shape.hom_codom(e)]),
                G.shape.hom_dom(e),
                G.shape.hom_codom(e),
            )
            for e in range(len(G.homs))
        ]
        colim = colimit(FinDiagram(obs=[lim.apex for lim in lims], homs=edges))
        logger.debug("colim lim Q(%s): %d rows", D.obs[d], colim.apex)
        inner_limits.append(lims)
        colimits.append(colim)
        Y.add_parts(d, colim.apex)

    for h, hom in enumerate(D.homs):
        d, d2 = D.hom_dom(h), D.hom_codom(h)
        legs = tuple(
            _conj_universal(X, component, inner_limits[d][j], inner_limits[d2][j2])
            .compose(colimits[d2].legs[j2])
            for j, (j2, component) in enumerate(Q.hom(h).components)
        )
        func = colimits[d].universal(Cocone(colimits[d2].apex, legs))
        Y.set_subpart(Y.parts(hom.dom), hom.name, func.values)

    return Y, None


# ============================================================================
# SIGMA
# ============================================================================

def _migrate_sigma(X: Instance, migration: DataMigration, config: MigrationConfig):
    F: FinFunctor = migration.functor
    comma = migration.comma
    D = F.codom
    Y = Instance(D)

    colimits = []
    for d in range(len(D.obs)):
        cat = comma.obs[d]
        diagram = FinDiagram(
            obs=[X.nparts(c) for c, _ in cat.obs],
            homs=[(X.hom_function(h), src, tgt) for src, tgt, h in cat.homs],
        )
        colim = colimit(diagram)
        logger.debug("Σ(%s): colimit over %d comma objects, %d rows",
                     D.obs[d], len(cat.obs), colim.apex)
        colimits.append(colim)
        Y.add_parts(d, colim.apex)

    for g, hom in enumerate(D.homs):
        d, d2 = D.hom_dom(g), D.hom_codom(g)
        if config.skip_empty_domains and Y.nparts(d) == 0:
            continue
        inclusion = comma.homs[g]
        legs = tuple(colimits[d2].legs[v] for v in inclusion.vertex_map)
        func = colimits[d].universal(Cocone(colimits[d2].apex, legs))
        Y.set_subpart(Y.parts(hom.dom), hom.name, func.values)

    return Y, None


_HANDLERS: Dict[MigrationKind, Callable] = {
    MigrationKind.DELTA: _migrate_delta,
    MigrationKind.CONJUNCTIVE: _migrate_conjunctive,
    MigrationKind.GLUE: _migrate_glue,
    MigrationKind.GLUC: _migrate_gluc,
    MigrationKind.SIGMA: _migrate_sigma,
}
