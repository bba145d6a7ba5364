"""
SCHEMA: Finite presentations of free categories

A schema presents a category by generators:
- Object generators O (tables)
- Morphism generators m: c → c' with c, c' ∈ O (foreign keys)
- Attribute generators a: c → T with T an external value type (data columns)

Morphisms of the presented category are paths of morphism generators. The
category is free: no equations are imposed, so two paths are equal exactly
when they are the same sequence of generators.

Generators are stored in arena-indexed tuples with name → index maps built
once at construction. Everything downstream works on indices.
"""

from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union
from dataclasses import dataclass
import logging

import yaml

from .errors import SchemaError

logger = logging.getLogger(__name__)


# ============================================================================
# GENERATORS
# ============================================================================

@dataclass(frozen=True)
class HomGenerator:
    """Morphism generator m: dom → codom"""
    name: str
    dom: str
    codom: str


@dataclass(frozen=True)
class AttrGenerator:
    """Attribute generator a: dom → codom, codom being a value type name"""
    name: str
    dom: str
    codom: str


# ============================================================================
# PATHS (MORPHISMS OF THE FREE CATEGORY)
# ============================================================================

@dataclass(frozen=True)
class Path:
    """
    Morphism of a free category: morphism generator indices in diagrammatic
    order, so Path(homs=(f, g)) is "f then g". The empty path is id_dom.
    """
    dom: int
    codom: int
    homs: Tuple[int, ...] = ()

    def is_identity(self) -> bool:
        return not self.homs

    def then(self, other: 'Path') -> 'Path':
        """Diagrammatic composition: self ; other"""
        if self.codom != other.dom:
            raise SchemaError(
                f"Cannot compose paths: codomain {self.codom} is not domain {other.dom}"
            )
        return Path(self.dom, other.codom, self.homs + other.homs)

    @staticmethod
    def identity(ob: int) -> 'Path':
        return Path(ob, ob, ())


@dataclass(frozen=True)
class AttrPath:
    """A path followed by an attribute generator: c → ... → c' → T"""
    path: Path
    attr: int

    @property
    def dom(self) -> int:
        return self.path.dom


PathSpec = Union[Path, str, Sequence[str], None]
AttrPathSpec = Union[AttrPath, str, Sequence[str]]


# ============================================================================
# SCHEMA
# ============================================================================

def _as_generator(cls, spec):
    if isinstance(spec, cls):
        return spec
    try:
        name, dom, codom = spec
    except (TypeError, ValueError):
        raise SchemaError(f"Cannot read {cls.__name__} from {spec!r}") from None
    return cls(name=str(name), dom=str(dom), codom=str(codom))


def _index(names: Sequence[str], kind: str) -> Dict[str, int]:
    index: Dict[str, int] = {}
    for i, name in enumerate(names):
        if name in index:
            raise SchemaError(f"Duplicate {kind} generator '{name}'")
        index[name] = i
    return index


class Schema:
    """
    Finite presentation of a free category with attributes.

    Args:
        obs: Object generator names
        homs: Morphism generators, as HomGenerator or (name, dom, codom)
        attrs: Attribute generators, as AttrGenerator or (name, dom, type)
        attr_types: Value type names; inferred from attrs when omitted
        name: Optional label, used in messages only

    Raises:
        SchemaError: on duplicate names or dangling dom/codom references
    """

    def __init__(
        self,
        obs: Iterable[str],
        homs: Iterable[Any] = (),
        attrs: Iterable[Any] = (),
        attr_types: Iterable[str] = (),
        name: str = ""
    ):
        self.name = name
        self.obs: Tuple[str, ...] = tuple(str(o) for o in obs)
        self.homs: Tuple[HomGenerator, ...] = tuple(
            _as_generator(HomGenerator, h) for h in homs
        )
        self.attrs: Tuple[AttrGenerator, ...] = tuple(
            _as_generator(AttrGenerator, a) for a in attrs
        )
        types = list(attr_types)
        for attr in self.attrs:
            if attr.codom not in types:
                types.append(attr.codom)
        self.attr_types: Tuple[str, ...] = tuple(types)

        self._ob_index = _index(self.obs, "object")
        self._hom_index = _index([h.name for h in self.homs], "morphism")
        self._attr_index = _index([a.name for a in self.attrs], "attribute")
        self._type_index = _index(self.attr_types, "value type")

        clashes = (
            set(self._ob_index) & set(self._hom_index)
            | set(self._ob_index) & set(self._attr_index)
            | set(self._hom_index) & set(self._attr_index)
            | set(self._type_index) & (
                set(self._ob_index) | set(self._hom_index) | set(self._attr_index)
            )
        )
        if clashes:
            raise SchemaError(f"Generator names used twice: {sorted(clashes)}")

        self._hom_dom = tuple(self.ob_index(h.dom) for h in self.homs)
        self._hom_codom = tuple(self.ob_index(h.codom) for h in self.homs)
        self._attr_dom = tuple(self.ob_index(a.dom) for a in self.attrs)

        self._homs_into: List[List[int]] = [[] for _ in self.obs]
        self._homs_out_of: List[List[int]] = [[] for _ in self.obs]
        self._attrs_of: List[List[int]] = [[] for _ in self.obs]
        for h, (d, c) in enumerate(zip(self._hom_dom, self._hom_codom)):
            self._homs_out_of[d].append(h)
            self._homs_into[c].append(h)
        for a, d in enumerate(self._attr_dom):
            self._attrs_of[d].append(a)

    # ------------------------------------------------------------------
    # Name lookup
    # ------------------------------------------------------------------

    def _label(self) -> str:
        return f"schema '{self.name}'" if self.name else "schema"

    def ob_index(self, name: str) -> int:
        try:
            return self._ob_index[name]
        except KeyError:
            raise SchemaError(f"Unknown object generator '{name}' in {self._label()}") from None

    def hom_index(self, name: str) -> int:
        try:
            return self._hom_index[name]
        except KeyError:
            raise SchemaError(f"Unknown morphism generator '{name}' in {self._label()}") from None

    def attr_index(self, name: str) -> int:
        try:
            return self._attr_index[name]
        except KeyError:
            raise SchemaError(f"Unknown attribute generator '{name}' in {self._label()}") from None

    def has_ob(self, name: str) -> bool:
        return name in self._ob_index

    def has_hom(self, name: str) -> bool:
        return name in self._hom_index

    def has_attr(self, name: str) -> bool:
        return name in self._attr_index

    # ------------------------------------------------------------------
    # Indexed structure
    # ------------------------------------------------------------------

    def hom_dom(self, h: int) -> int:
        return self._hom_dom[h]

    def hom_codom(self, h: int) -> int:
        return self._hom_codom[h]

    def attr_dom(self, a: int) -> int:
        return self._attr_dom[a]

    def attr_type(self, a: int) -> str:
        return self.attrs[a].codom

    def homs_into(self, ob: int) -> Tuple[int, ...]:
        return tuple(self._homs_into[ob])

    def homs_out_of(self, ob: int) -> Tuple[int, ...]:
        return tuple(self._homs_out_of[ob])

    def attrs_of(self, ob: int) -> Tuple[int, ...]:
        return tuple(self._attrs_of[ob])

    def hom_path(self, h: int) -> Path:
        """The generator h as a path of length one"""
        return Path(self._hom_dom[h], self._hom_codom[h], (h,))

    # ------------------------------------------------------------------
    # Building paths from names
    # ------------------------------------------------------------------

    def identity(self, ob: str) -> Path:
        return Path.identity(self.ob_index(ob))

    def path(self, *names: str) -> Path:
        """
        Path from morphism generator names in diagrammatic order.
        path("src") is src; path("f", "g") is f then g.
        """
        if not names:
            raise SchemaError("Empty path needs an explicit object: use identity()")
        homs = tuple(self.hom_index(n) for n in names)
        for prev, nxt in zip(homs, homs[1:]):
            if self._hom_codom[prev] != self._hom_dom[nxt]:
                raise SchemaError(
                    f"Morphisms '{self.homs[prev].name}' and '{self.homs[nxt].name}' "
                    f"are not composable"
                )
        return Path(self._hom_dom[homs[0]], self._hom_codom[homs[-1]], homs)

    def attr_path(self, *names: str) -> AttrPath:
        """Path of morphism names ending in one attribute name"""
        if not names:
            raise SchemaError("Attribute path needs at least an attribute name")
        attr = self.attr_index(names[-1])
        if len(names) == 1:
            path = Path.identity(self._attr_dom[attr])
        else:
            path = self.path(*names[:-1])
            if path.codom != self._attr_dom[attr]:
                raise SchemaError(
                    f"Attribute '{names[-1]}' does not start where path {names[:-1]} ends"
                )
        return AttrPath(path, attr)

    def to_path(self, spec: PathSpec, dom: Optional[int] = None) -> Path:
        """
        Normalize a path given as Path, a generator name, a sequence of names,
        or None/() for the identity on `dom`.
        """
        if isinstance(spec, Path):
            return spec
        if isinstance(spec, str):
            return self.path(spec)
        if not spec:
            if dom is None:
                raise SchemaError("Identity path needs a known domain")
            return Path.identity(dom)
        return self.path(*spec)

    def to_attr_path(self, spec: AttrPathSpec) -> AttrPath:
        if isinstance(spec, AttrPath):
            return spec
        if isinstance(spec, str):
            return self.attr_path(spec)
        return self.attr_path(*spec)

    def check_path(self, path: Path) -> None:
        """Raise SchemaError unless `path` is a well-formed path of this schema"""
        n_obs, n_homs = len(self.obs), len(self.homs)
        if not (0 <= path.dom < n_obs and 0 <= path.codom < n_obs):
            raise SchemaError(f"Path {path} has endpoints outside {self._label()}")
        current = path.dom
        for h in path.homs:
            if not 0 <= h < n_homs or self._hom_dom[h] != current:
                raise SchemaError(f"Path {path} is not composable in {self._label()}")
            current = self._hom_codom[h]
        if current != path.codom:
            raise SchemaError(f"Path {path} does not end at its declared codomain")

    def format_path(self, path: Path) -> str:
        if path.is_identity():
            return f"id({self.obs[path.dom]})"
        return ";".join(self.homs[h].name for h in path.homs)

    # ------------------------------------------------------------------
    # Comparison
    # ------------------------------------------------------------------

    def _signature(self) -> Tuple:
        return (self.obs, self.homs, self.attrs, self.attr_types)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Schema):
            return NotImplemented
        return self._signature() == other._signature()

    def __hash__(self) -> int:
        return hash(self._signature())

    def is_structurally_equal(self, other: 'Schema') -> bool:
        """Same indexed shape and value types, generator names ignored"""
        return (
            len(self.obs) == len(other.obs)
            and self._hom_dom == other._hom_dom
            and self._hom_codom == other._hom_codom
            and self._attr_dom == other._attr_dom
            and tuple(a.codom for a in self.attrs) == tuple(a.codom for a in other.attrs)
        )

    def __repr__(self) -> str:
        label = f" {self.name!r}" if self.name else ""
        return (
            f"Schema{label}(obs={list(self.obs)}, "
            f"homs={[h.name for h in self.homs]}, attrs={[a.name for a in self.attrs]})"
        )

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "obs": list(self.obs),
            "homs": {h.name: [h.dom, h.codom] for h in self.homs},
            "attr_types": list(self.attr_types),
            "attrs": {a.name: [a.dom, a.codom] for a in self.attrs},
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> 'Schema':
        if not isinstance(data, dict):
            raise SchemaError("Schema must be a dict.")
        obs = data.get("obs", [])
        homs = data.get("homs", {}) or {}
        attrs = data.get("attrs", {}) or {}
        if not isinstance(obs, list):
            raise SchemaError("obs must be a list of object names.")
        if not isinstance(homs, dict) or not isinstance(attrs, dict):
            raise SchemaError("homs and attrs must map names to [dom, codom].")
        for name, ends in list(homs.items()) + list(attrs.items()):
            if not isinstance(ends, (list, tuple)) or len(ends) != 2:
                raise SchemaError(f"Generator {name} must have exactly [dom, codom].")
        return Schema(
            obs=obs,
            homs=[(name, ends[0], ends[1]) for name, ends in homs.items()],
            attrs=[(name, ends[0], ends[1]) for name, ends in attrs.items()],
            attr_types=data.get("attr_types", []) or [],
            name=str(data.get("name", "")),
        )


def load_schema(path: str) -> Schema:
    """
    Load a schema presentation from a YAML file.

    Format:
        name: Graph
        obs: [V, E]
        homs:
          src: [E, V]
          tgt: [E, V]
        attrs:
          weight: [E, Weight]
    """
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise SchemaError(f"Cannot read schema from {path}: {e}") from e
    schema = Schema.from_dict(data or {})
    logger.debug("Loaded %r from %s", schema, path)
    return schema
