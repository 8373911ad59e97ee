"""
Query filter builder: translates the allow-listed request parameters into a `FilterQuery`

Only `limit`, `offset`, `sort`, `filter` and `author` are used, everything else is dropped.
The descriptor is executed by the collection accessor.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional
import sacrud
from .config import get_int_config
from .errors import ValidationError

FILTER_PARAMS = ("limit", "offset", "sort", "filter", "author")
# filter=my: only the records authored by the acting identity
FILTER_MY = "my"


@dataclass(frozen=True)
class FilterQuery:
    """
    Collection query descriptor
    """

    limit: int
    offset: int = 0
    sort: Optional[str] = None
    filter: Optional[str] = None
    author: Optional[str] = None
    expressions: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def only_mine(self) -> bool:
        return self.filter == FILTER_MY


def _parse_int(params: Mapping[str, Any], name: str, default: int) -> int:
    value = params.get(name)
    if value is None or value == "":
        return default
    try:
        result = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f'Invalid "{name}" value "{value}"')
    if result < 0:
        raise ValidationError(f'"{name}" must not be negative')
    return result


def _parse_str(params: Mapping[str, Any], name: str) -> Optional[str]:
    value = params.get(name)
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise ValidationError(f'Invalid "{name}" value "{value}"')
    return value


def parse_filter_expressions(filter_arg: str) -> List[Dict[str, Any]]:
    """
    :param filter_arg: json encoded filter, e.g. `[{"name": "email", "op": "eq", "val": "a@b.c"}]`
    :return: list of filter dicts with "name", "op" and "val" keys

    Each filter object has the following fields:
    - name: The name of the field you want to filter on.
    - op: The operation you want to use: like, ilike, in, notin, eq, ne, ge, gt, le, lt
    - val: The value that you want to compare.
    """
    try:
        filters = json.loads(filter_arg)
    except json.decoder.JSONDecodeError:
        raise ValidationError(f"Invalid filter format: {filter_arg}")

    if not isinstance(filters, list):
        filters = [filters]

    result = []
    for filt in filters:
        if not isinstance(filt, dict) or not filt.get("name") or not isinstance(filt["name"], str):
            raise ValidationError(f"Invalid filter '{filt}'")
        result.append({"name": filt["name"], "op": str(filt.get("op", "eq")).strip("_"), "val": filt.get("val")})
    return result


def build_filter(params: Optional[Mapping[str, Any]], default_limit: Optional[int] = None, max_limit: Optional[int] = None) -> FilterQuery:
    """
    :param params: request parameters
    :param default_limit: limit used when the request doesn't specify one
    :param max_limit: upper bound for the limit
    :return: FilterQuery
    """
    params = params or {}
    if default_limit is None:
        default_limit = get_int_config("DEFAULT_PAGE_LIMIT", 250)
    if max_limit is None:
        max_limit = get_int_config("MAX_PAGE_LIMIT", 1000)

    ignored = set(params) - set(FILTER_PARAMS)
    if ignored:
        sacrud.log.debug(f"Ignoring request parameters {sorted(ignored)}")

    limit = _parse_int(params, "limit", default_limit)
    if limit > max_limit:
        limit = max_limit
    offset = _parse_int(params, "offset", 0)

    sort = _parse_str(params, "sort")
    filter_arg = _parse_str(params, "filter")
    author = _parse_str(params, "author")

    expressions = []
    if filter_arg and filter_arg != FILTER_MY:
        expressions = parse_filter_expressions(filter_arg)

    return FilterQuery(limit=limit, offset=offset, sort=sort, filter=filter_arg, author=author, expressions=expressions)
