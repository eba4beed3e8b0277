# llamaio/utils/query_params.py
"""
Interpretation of the listing query parameters.

``where``, ``sort`` and ``select`` arrive as JSON text. They are validated
into typed pieces (field constraints, ordered sort keys, a projection) before
anything is translated into a database query, so a bad parameter is always a
400 naming the parameter rather than a store error.
"""

import json
from collections import namedtuple
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from llamaio.models import fields as field_kinds
from llamaio.models.fields import FieldSpec
from llamaio.utils.errors import MalformedParameter
from llamaio.utils.object_id import is_valid_object_id
from llamaio.utils.parsing import parse_bool, parse_non_negative_int, parse_timestamp

Constraint = namedtuple("Constraint", ["field", "op", "value"])

COMPARISON_OPERATORS = {"$eq", "$ne", "$gt", "$gte", "$lt", "$lte"}
SET_OPERATORS = {"$in", "$nin"}

_SORT_DIRECTIONS = {
    1: 1, -1: -1,
    "1": 1, "-1": -1,
    "asc": 1, "ascending": 1,
    "desc": -1, "descending": -1,
}


def _bad(param: str, reason: str) -> MalformedParameter:
    return MalformedParameter(f'Invalid value for "{param}" parameter: {reason}')


def parse_json_param(value: Optional[str], name: str) -> Any:
    """Decode a JSON-encoded query parameter; None when it was not supplied"""
    if value is None:
        return None
    try:
        return json.loads(value)
    except (TypeError, ValueError):
        raise MalformedParameter(f'Invalid JSON for "{name}" parameter')


def parse_count_flag(value: Optional[str]) -> bool:
    if value is None:
        return False
    try:
        return parse_bool(value)
    except ValueError:
        raise MalformedParameter('Invalid value for "count" parameter')


# ---------------------------------------------------------------------------
# where
# ---------------------------------------------------------------------------

def _coerce(kind: str, value: Any) -> Any:
    if kind == field_kinds.BOOLEAN:
        return parse_bool(value)
    if kind == field_kinds.TIMESTAMP:
        parsed = parse_timestamp(value)
        if parsed is None:
            raise ValueError(f"not a timestamp: {value!r}")
        return parsed
    if kind in (field_kinds.ID, field_kinds.LIST):
        if not isinstance(value, str):
            raise ValueError(f"not an id: {value!r}")
        return value
    # plain text
    if isinstance(value, bool) or value is None:
        raise ValueError(f"not a string: {value!r}")
    if isinstance(value, (int, float)):
        return str(value)
    if not isinstance(value, str):
        raise ValueError(f"not a string: {value!r}")
    return value


def _field_constraints(name: str, field_spec: FieldSpec, value: Any) -> List[Constraint]:
    is_operator_doc = isinstance(value, dict) and value and all(
        key.startswith("$") for key in value
    )
    if isinstance(value, (dict, list)) and not is_operator_doc:
        raise _bad("where", f'field "{name}" must be a value or an operator object')

    if not is_operator_doc:
        value = {"$eq": value}

    constraints = []
    for op, operand in value.items():
        if field_spec.kind == field_kinds.LIST and op not in field_kinds.LIST_OPERATORS:
            raise _bad("where", f'"{op}" is not supported on list field "{name}"')
        try:
            if op in COMPARISON_OPERATORS:
                coerced = _coerce(field_spec.kind, operand)
            elif op in SET_OPERATORS:
                if not isinstance(operand, list):
                    raise _bad("where", f'"{op}" on "{name}" needs a list')
                coerced = [_coerce(field_spec.kind, item) for item in operand]
            else:
                raise _bad("where", f'unsupported operator "{op}"')
        except ValueError as exc:
            raise _bad("where", f'field "{name}": {exc}')
        constraints.append(Constraint(name, op, coerced))
    return constraints


def parse_where(where: Any, api_fields: Mapping[str, FieldSpec]) -> List[Constraint]:
    if where is None:
        return []
    if not isinstance(where, dict):
        raise _bad("where", "expected a JSON object")

    constraints = []
    for name, value in where.items():
        if name.startswith("$"):
            raise _bad("where", f'unsupported operator "{name}"')
        field_spec = api_fields.get(name)
        if field_spec is None:
            raise _bad("where", f'unknown field "{name}"')
        if field_spec.kind not in field_kinds.FILTERABLE_KINDS:
            raise _bad("where", f'field "{name}" cannot be filtered')
        constraints.extend(_field_constraints(name, field_spec, value))
    return constraints


def validate_where_ids(where: Any, resource_name: str):
    """Reject where._id / where._id.$in values that are not store ids"""
    if not isinstance(where, dict) or "_id" not in where:
        return
    value = where["_id"]
    if isinstance(value, dict):
        ids = value.get("$in")
        if isinstance(ids, list) and not all(is_valid_object_id(item) for item in ids):
            raise MalformedParameter(f"Invalid Ids for {resource_name}")
    elif not is_valid_object_id(value):
        raise MalformedParameter(f"The provided {resource_name} id is not valid")


def id_lookup(where: Any) -> Tuple[Optional[str], Optional[List[str]]]:
    """
    Detect a where that only selects by id.

    Returns (single_id, None) for {"_id": "<id>"}, (None, ids) for
    {"_id": {"$in": [...]}} and (None, None) otherwise.
    """
    if not isinstance(where, dict) or list(where) != ["_id"]:
        return None, None
    value = where["_id"]
    if isinstance(value, str):
        return value, None
    if isinstance(value, dict) and isinstance(value.get("$in"), list):
        return None, [str(item) for item in value["$in"]]
    return None, None


# ---------------------------------------------------------------------------
# sort / select
# ---------------------------------------------------------------------------

def parse_sort(sort: Any, api_fields: Mapping[str, FieldSpec]) -> List[Tuple[str, int]]:
    if sort is None:
        return []
    if not isinstance(sort, dict):
        raise _bad("sort", "expected a JSON object")

    keys = []
    for name, direction in sort.items():
        field_spec = api_fields.get(name)
        if field_spec is None:
            raise _bad("sort", f'unknown field "{name}"')
        if field_spec.kind not in field_kinds.SORTABLE_KINDS:
            raise _bad("sort", f'field "{name}" cannot be sorted')
        if isinstance(direction, str):
            direction = direction.lower()
        if (
            isinstance(direction, bool)
            or not isinstance(direction, (int, float, str))
            or direction not in _SORT_DIRECTIONS
        ):
            raise _bad("sort", f'direction for "{name}" must be 1 or -1')
        keys.append((name, _SORT_DIRECTIONS[direction]))
    return keys


class Projection:
    """Inclusion or exclusion set over document fields; _id kept unless excluded"""

    def __init__(self, fields: Dict[str, bool]):
        fields = dict(fields)
        id_flag = fields.pop("_id", None)
        modes = set(fields.values())
        if len(modes) > 1:
            raise _bad("select", "cannot mix inclusion and exclusion")

        if modes:
            self.inclusive = modes == {True}
        else:
            # {"_id": 1} returns only the id, {"_id": 0} everything else
            self.inclusive = id_flag is True
        self.fields = set(fields)
        self.include_id = id_flag is not False

    def apply(self, document: Dict[str, Any]) -> Dict[str, Any]:
        if self.inclusive:
            return {
                key: value for key, value in document.items()
                if key in self.fields or (key == "_id" and self.include_id)
            }
        return {
            key: value for key, value in document.items()
            if key not in self.fields and (key != "_id" or self.include_id)
        }


def parse_select(select: Any) -> Optional[Projection]:
    if select is None:
        return None
    if not isinstance(select, dict):
        raise _bad("select", "expected a JSON object")

    fields = {}
    for name, flag in select.items():
        if isinstance(flag, bool):
            fields[name] = flag
        elif flag in (0, 1):
            fields[name] = bool(flag)
        else:
            raise _bad("select", f'"{name}" must be 0 or 1')
    if not fields:
        return None
    return Projection(fields)


# ---------------------------------------------------------------------------
# full listing request
# ---------------------------------------------------------------------------

@dataclass
class ListQuery:
    where: Any = None
    constraints: List[Constraint] = field(default_factory=list)
    sort: List[Tuple[str, int]] = field(default_factory=list)
    projection: Optional[Projection] = None
    skip: int = 0
    limit: Optional[int] = None
    count: bool = False
    has_skip: bool = False
    has_limit: bool = False

    def page_count(self, total: int) -> int:
        """Size of the page skip/limit would select out of ``total`` matches"""
        if not (self.has_skip or self.has_limit):
            return total
        remaining = max(total - self.skip, 0)
        if self.has_limit and self.limit:
            return min(remaining, self.limit)
        return remaining


def parse_list_query(
    api_fields: Mapping[str, FieldSpec],
    resource_name: str,
    where: Optional[str] = None,
    sort: Optional[str] = None,
    select: Optional[str] = None,
    skip: Optional[str] = None,
    limit: Optional[str] = None,
    count: Optional[str] = None,
    default_limit: Optional[int] = None,
) -> ListQuery:
    where_value = parse_json_param(where, "where")
    sort_value = parse_json_param(sort, "sort")
    select_value = parse_json_param(select, "select")

    validate_where_ids(where_value, resource_name)

    limit_value = parse_non_negative_int(limit, default_limit)
    return ListQuery(
        where=where_value,
        constraints=parse_where(where_value, api_fields),
        sort=parse_sort(sort_value, api_fields),
        projection=parse_select(select_value),
        skip=parse_non_negative_int(skip, 0),
        # limit=0 means no limit
        limit=limit_value or None,
        count=parse_count_flag(count),
        has_skip=skip is not None,
        has_limit=limit is not None,
    )
