"""
INSTANCE: In-memory store for schema instances

An instance X of a schema assigns
- to every object generator c a finite set of rows X(c) = {0, ..., n-1}
- to every morphism generator m: c → c' a total function X(c) → X(c')
- to every attribute generator a: c → T a total function X(c) → values

Rows are plain integers and functions are stored column-wise, one list per
generator. Columns of newly added rows stay unset (None) until assigned;
validate() checks totality.
"""

from typing import Any, Dict, Iterable, List, Optional, Union
import logging

from .errors import InstanceError, SchemaError
from .finsets import FinFunction
from .schema import AttrPath, Path, Schema

logger = logging.getLogger(__name__)

Rows = Union[int, Iterable[int]]


class Instance:
    """Finite set-valued functor on a schema, stored as tables"""

    def __init__(self, schema: Schema):
        self.schema = schema
        self._nparts: List[int] = [0] * len(schema.obs)
        self._homs: List[List[Optional[int]]] = [[] for _ in schema.homs]
        self._attrs: List[List[Any]] = [[] for _ in schema.attrs]

    # ------------------------------------------------------------------
    # Rows
    # ------------------------------------------------------------------

    def _ob(self, ob: Union[str, int]) -> int:
        return self.schema.ob_index(ob) if isinstance(ob, str) else ob

    def nparts(self, ob: Union[str, int]) -> int:
        return self._nparts[self._ob(ob)]

    def parts(self, ob: Union[str, int]) -> range:
        return range(self.nparts(ob))

    def add_parts(self, ob: Union[str, int], n: int) -> range:
        """Add n rows to ob; their columns are unset until assigned"""
        if n < 0:
            raise InstanceError(f"Cannot add {n} rows")
        c = self._ob(ob)
        start = self._nparts[c]
        self._nparts[c] = start + n
        for h in self.schema.homs_out_of(c):
            self._homs[h].extend([None] * n)
        for a in self.schema.attrs_of(c):
            self._attrs[a].extend([None] * n)
        return range(start, start + n)

    def add_part(self, ob: Union[str, int], **subparts: Any) -> int:
        row = self.add_parts(ob, 1).start
        for name, value in subparts.items():
            self.set_subpart(row, name, value)
        return row

    # ------------------------------------------------------------------
    # Columns
    # ------------------------------------------------------------------

    def _column(self, name: str):
        """(column list, hom index or None, attr index or None)"""
        if self.schema.has_hom(name):
            h = self.schema.hom_index(name)
            return self._homs[h], h, None
        if self.schema.has_attr(name):
            a = self.schema.attr_index(name)
            return self._attrs[a], None, a
        raise SchemaError(f"'{name}' is neither a morphism nor an attribute of {self.schema!r}")

    def subpart(self, name: str, row: Optional[int] = None) -> Any:
        """Value of a morphism/attribute at row, or a copy of the whole column"""
        column, _, _ = self._column(name)
        if row is None:
            return list(column)
        try:
            return column[row]
        except IndexError:
            raise InstanceError(f"Row {row} out of range for '{name}'") from None

    def set_subpart(self, rows: Rows, name: str, values: Any) -> None:
        """
        Assign a morphism/attribute on one row or many rows.
        With many rows, values is a sequence of the same length.
        """
        column, h, _ = self._column(name)
        if isinstance(rows, int):
            rows, values = [rows], [values]
        else:
            rows, values = list(rows), list(values)
        if len(rows) != len(values):
            raise InstanceError(
                f"set_subpart on '{name}' got {len(rows)} rows and {len(values)} values"
            )
        bound = self._nparts[self.schema.hom_codom(h)] if h is not None else None
        for row, value in zip(rows, values):
            if not 0 <= row < len(column):
                raise InstanceError(f"Row {row} out of range for '{name}'")
            if bound is not None and not (isinstance(value, int) and 0 <= value < bound):
                raise InstanceError(
                    f"Value {value!r} for '{name}' is not a row of "
                    f"'{self.schema.obs[self.schema.hom_codom(h)]}' ({bound} rows)"
                )
            column[row] = value

    # ------------------------------------------------------------------
    # Functions
    # ------------------------------------------------------------------

    def hom_function(self, h: int) -> FinFunction:
        column = self._homs[h]
        if any(v is None for v in column):
            raise InstanceError(f"Morphism '{self.schema.homs[h].name}' is not total")
        return FinFunction(tuple(column), self._nparts[self.schema.hom_codom(h)])

    def path_function(self, path: Path) -> FinFunction:
        """The composite function of a path; the identity for an empty path"""
        func = FinFunction.identity(self._nparts[path.dom])
        for h in path.homs:
            func = func.compose(self.hom_function(h))
        return func

    def attr_values(self, attr_path: AttrPath) -> List[Any]:
        column = self._attrs[attr_path.attr]
        if any(v is None for v in column):
            raise InstanceError(f"Attribute '{self.schema.attrs[attr_path.attr].name}' is not total")
        return [column[x] for x in self.path_function(attr_path.path).values]

    # ------------------------------------------------------------------
    # Invariants and copying
    # ------------------------------------------------------------------

    def validate(self) -> None:
        """Raise InstanceError unless every column is total and in range"""
        for h, column in enumerate(self._homs):
            name = self.schema.homs[h].name
            bound = self._nparts[self.schema.hom_codom(h)]
            for row, value in enumerate(column):
                if value is None:
                    raise InstanceError(f"Morphism '{name}' undefined at row {row}")
                if not 0 <= value < bound:
                    raise InstanceError(f"Morphism '{name}' maps row {row} outside its codomain")
        for a, column in enumerate(self._attrs):
            for row, value in enumerate(column):
                if value is None:
                    raise InstanceError(
                        f"Attribute '{self.schema.attrs[a].name}' undefined at row {row}"
                    )

    def copy(self) -> 'Instance':
        other = Instance(self.schema)
        other._nparts = list(self._nparts)
        other._homs = [list(c) for c in self._homs]
        other._attrs = [list(c) for c in self._attrs]
        return other

    def copy_parts(self, other: 'Instance') -> Dict[str, range]:
        """
        Append all rows of `other` (same schema) to this instance, shifting
        morphism values by the rows already present. Returns the added ranges.
        """
        if other.schema != self.schema:
            raise SchemaError("copy_parts needs instances of the same schema")
        added = {
            name: self.add_parts(c, other._nparts[c])
            for c, name in enumerate(self.schema.obs)
        }
        for h, hom in enumerate(self.schema.homs):
            shift = added[hom.codom].start
            rows = added[hom.dom]
            self._homs[h][rows.start:rows.stop] = [
                None if v is None else v + shift for v in other._homs[h]
            ]
        for a, attr in enumerate(self.schema.attrs):
            rows = added[attr.dom]
            self._attrs[a][rows.start:rows.stop] = list(other._attrs[a])
        logger.debug("Appended %r, now %r", other, self)
        return added

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Instance):
            return NotImplemented
        return (
            self.schema == other.schema
            and self._nparts == other._nparts
            and self._homs == other._homs
            and self._attrs == other._attrs
        )

    def __repr__(self) -> str:
        sizes = ", ".join(f"{o}={n}" for o, n in zip(self.schema.obs, self._nparts))
        return f"Instance({sizes})"

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            "parts": dict(zip(self.schema.obs, self._nparts)),
            "subparts": {
                **{h.name: list(c) for h, c in zip(self.schema.homs, self._homs)},
                **{a.name: list(c) for a, c in zip(self.schema.attrs, self._attrs)},
            },
        }

    @staticmethod
    def from_dict(schema: Schema, data: Dict[str, Any]) -> 'Instance':
        """
        Build an instance from {"parts": {ob: n}, "subparts": {name: [values]}}.
        Columns must list one value per row of their domain.
        """
        if not isinstance(data, dict):
            raise InstanceError("Instance data must be a dict.")
        instance = Instance(schema)
        for ob, n in (data.get("parts") or {}).items():
            instance.add_parts(ob, int(n))
        for name, values in (data.get("subparts") or {}).items():
            values = list(values)
            instance.set_subpart(range(len(values)), name, values)
        return instance

    @staticmethod
    def from_tables(schema: Schema, **columns: Any) -> 'Instance':
        """
        Shorthand: Instance.from_tables(schema, V=3, src=[0, 1], tgt=[1, 2]).
        Objects take a row count, morphisms and attributes a column.
        """
        parts = {k: v for k, v in columns.items() if schema.has_ob(k)}
        subparts = {k: v for k, v in columns.items() if k not in parts}
        return Instance.from_dict(schema, {"parts": parts, "subparts": subparts})
