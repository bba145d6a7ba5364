"""
CONFIG: Engine options and their YAML loader

Usage:
    from catmigrate.config import load_config

    config = load_config("catmigrate.yaml")   # defaults when the file is absent

File format:
    migration:
      strict_domain_check: false
      validate_source: true
      skip_empty_domains: true
"""

from typing import Any, Dict, Optional
from dataclasses import dataclass, fields, asdict
import logging
import os

import yaml

from .errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "CATMIGRATE_CONFIG"


@dataclass(frozen=True)
class MigrationConfig:
    """
    Options of a single migrate call.

    strict_domain_check: require the instance schema to equal the schema the
        migration consumes. When False, a schema with the same indexed shape
        but different generator names is accepted with a warning.
    validate_source: check totality of the source instance before migrating.
    skip_empty_domains: sigma migrations skip morphisms whose domain has no
        rows instead of computing an empty universal map.
    """
    strict_domain_check: bool = True
    validate_source: bool = True
    skip_empty_domains: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> 'MigrationConfig':
        if not isinstance(data, dict):
            raise ConfigError("Migration config must be a mapping.")
        known = {f.name for f in fields(MigrationConfig)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown migration config keys: {unknown}")
        for key, value in data.items():
            if not isinstance(value, bool):
                raise ConfigError(f"Config key '{key}' must be true or false, got {value!r}")
        return MigrationConfig(**data)


def load_config(path: Optional[str] = None) -> MigrationConfig:
    """
    Load the `migration` section of a YAML file over the defaults.

    Args:
        path: Config file; falls back to $CATMIGRATE_CONFIG. A missing file
              yields the defaults.
    """
    path = path or os.environ.get(CONFIG_ENV_VAR)
    if not path or not os.path.exists(path):
        logger.debug("No migration config at %s, using defaults", path)
        return MigrationConfig()

    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Cannot read migration config {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Migration config {path} must be a mapping.")

    config = MigrationConfig.from_dict(data.get("migration") or {})
    logger.debug("Loaded migration config from %s: %s", path, config)
    return config
