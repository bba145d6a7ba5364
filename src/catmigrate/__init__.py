"""
CATMIGRATE: Functorial data migration for categorical databases

Transports instances of one finitely presented schema to another along
schema functors: delta, conjunctive, glue, gluc and sigma migrations.
"""

import logging

__version__ = "1.0.0"

from .errors import (
    MigrationError,
    SchemaError,
    CycleError,
    SolverError,
    DomainMismatchError,
    InstanceError,
    ConfigError,
)

from .schema import (
    Schema,
    HomGenerator,
    AttrGenerator,
    Path,
    AttrPath,
    load_schema,
)

from .instance import Instance

from .finsets import (
    FinFunction,
    FinDiagram,
    Cone,
    Cocone,
    Limit,
    Colimit,
    TabularLimit,
    limit,
    colimit,
)

from .free_diagrams import free_diagram

from .diagrams import (
    Diagram,
    DiagramKind,
    DiagramHom,
    GlucQuery,
    GlucHom,
    conj_query,
    glue_query,
)

from .functors import (
    FinFunctor,
    QueryFunctor,
    MigrationKind,
)

from .comma import (
    CommaCategory,
    CommaInclusion,
    CommaDiagram,
    comma_categories,
)

from .config import MigrationConfig, load_config

from .migrations import (
    DataMigration,
    migrate,
    migrate_into,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    # Errors
    "MigrationError",
    "SchemaError",
    "CycleError",
    "SolverError",
    "DomainMismatchError",
    "InstanceError",
    "ConfigError",

    # Schemas and instances
    "Schema",
    "HomGenerator",
    "AttrGenerator",
    "Path",
    "AttrPath",
    "load_schema",
    "Instance",

    # Finite sets
    "FinFunction",
    "FinDiagram",
    "Cone",
    "Cocone",
    "Limit",
    "Colimit",
    "TabularLimit",
    "limit",
    "colimit",

    # Diagrams and functors
    "free_diagram",
    "Diagram",
    "DiagramKind",
    "DiagramHom",
    "GlucQuery",
    "GlucHom",
    "conj_query",
    "glue_query",
    "FinFunctor",
    "QueryFunctor",
    "MigrationKind",

    # Comma categories
    "CommaCategory",
    "CommaInclusion",
    "CommaDiagram",
    "comma_categories",

    # Migration
    "MigrationConfig",
    "load_config",
    "DataMigration",
    "migrate",
    "migrate_into",
]
