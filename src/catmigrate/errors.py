"""
ERRORS: Failure kinds of the migration engine

Every error is fatal for the `migrate` call that raised it: the computation
is deterministic, so nothing is retried and no partial instance is returned.
"""


class MigrationError(Exception):
    """Base class for all catmigrate failures"""


class SchemaError(MigrationError, LookupError):
    """
    Malformed presentation: dangling generator references, maps that do not
    preserve domains/codomains, or schema features a migration cannot handle.
    """


class CycleError(MigrationError):
    """Comma categories requested over a target category that is not acyclic"""


class SolverError(MigrationError):
    """Limit/colimit computation failed (malformed diagram, non-factoring cone)"""


class DomainMismatchError(MigrationError):
    """Instance schema does not match the schema a migration consumes"""


class InstanceError(MigrationError):
    """Instance data violating totality or row-range invariants"""


class ConfigError(MigrationError):
    """Configuration file unreadable or invalid"""
