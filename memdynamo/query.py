"""Range queries against a table or one of its secondary indexes.

Secondary indexes own no storage, so an index query always walks the
whole base table and selects the items that carry the index's keys.
"""
import typing as ty
from logging import getLogger

from .exceptions import ArgumentError, ValidationError
from .schema import is_indexed, key_names, resolve_index
from .store import MemoryStore
from .types import Item, KeyAttributeType, KeyCondition
from .values import copy_item, normalize_value, ordering_key, value_kind

logger = getLogger(__name__)


def key_condition(
    hash_key_name: str,
    hash_value: KeyAttributeType,
    *,
    range_key_name: str = "",
    gte: ty.Optional[KeyAttributeType] = None,
    lte: ty.Optional[KeyAttributeType] = None,
) -> KeyCondition:
    """gte alone is `>=`, lte alone is `<=`, and both together are BETWEEN."""
    if gte is not None and lte is not None:
        return KeyCondition(hash_key_name, hash_value, range_key_name, "BETWEEN", (gte, lte))
    if gte is not None:
        return KeyCondition(hash_key_name, hash_value, range_key_name, ">=", (gte,))
    if lte is not None:
        return KeyCondition(hash_key_name, hash_value, range_key_name, "<=", (lte,))
    return KeyCondition(hash_key_name, hash_value)


def validate_key_condition(
    condition: KeyCondition, hash_key_name: str, range_key_name: str
) -> None:
    """Raises the service's ValidationException when the condition names
    attributes other than the keys of the table or index being queried."""
    if condition.operator and not range_key_name:
        raise ValidationError("Query key condition not supported")
    missed = list()
    if condition.hash_key_name != hash_key_name:
        missed.append(hash_key_name)
    if condition.operator and condition.range_key_name != range_key_name:
        missed.append(range_key_name)
    if missed:
        raise ValidationError(f"Query condition missed key schema element: {', '.join(missed)}")


def _range_predicate(condition: KeyCondition) -> ty.Callable[[ty.Any], bool]:
    bounds = [ordering_key(v) for v in condition.range_values]
    if condition.operator == ">=":
        return lambda value: ordering_key(value) >= bounds[0]
    if condition.operator == "<=":
        return lambda value: ordering_key(value) <= bounds[0]
    if condition.operator == "BETWEEN":
        if bounds[0] > bounds[1]:
            raise ValidationError(
                "Invalid KeyConditionExpression: The BETWEEN operator requires "
                "upper bound to be greater than or equal to lower bound"
            )
        return lambda value: bounds[0] <= ordering_key(value) <= bounds[1]
    if condition.operator:
        raise ValidationError(f"Unsupported range operator {condition.operator}")
    return lambda value: True


def query(
    store: MemoryStore,
    table_name: str,
    condition: KeyCondition,
    *,
    index_name: ty.Optional[str] = None,
    limit: ty.Optional[int] = None,
    reverse: bool = False,
) -> ty.List[Item]:
    """Items matching the condition, ascending by range key unless reversed.

    Items with equal range values keep table-internal order.
    """
    if limit is not None and limit < 1:
        raise ArgumentError(f"Limit must be at least 1, not {limit}")
    table = store.table(table_name)
    index = resolve_index(table.schema, index_name)
    validate_key_condition(condition, index.hash_key_name, index.range_key_name)
    condition = condition._replace(
        hash_value=normalize_value(condition.hash_value),
        range_values=tuple(normalize_value(v) for v in condition.range_values),
    )
    if value_kind(condition.hash_value) not in ("S", "N", "B"):
        raise ValidationError(
            "One or more parameter values were invalid: "
            "Condition parameter type does not match schema type"
        )
    in_range = _range_predicate(condition)

    with table.lock:
        if index_name:
            required = key_names(index)
            candidates = [
                item
                for item in table
                if is_indexed(item, required)
                and item[index.hash_key_name] == condition.hash_value
            ]
        else:
            candidates = table.partition(condition.hash_value)
        results = [
            copy_item(item)
            for item in candidates
            if not index.range_key_name or in_range(item[index.range_key_name])
        ]

    if index.range_key_name:
        results.sort(key=lambda item: ordering_key(item[index.range_key_name]))
    if reverse:
        results.reverse()
    if limit is not None:
        results = results[:limit]
    logger.debug(
        f"Query {table_name}{'.' + index_name if index_name else ''} "
        f"for {condition} returned {len(results)} items"
    )
    return results


def query_range(
    store: MemoryStore,
    table_name: str,
    hash_key: KeyAttributeType,
    *,
    start: ty.Optional[KeyAttributeType] = None,
    end: ty.Optional[KeyAttributeType] = None,
    index_name: ty.Optional[str] = None,
    limit: ty.Optional[int] = None,
    scan_index_forward: bool = True,
) -> ty.List[Item]:
    """Query by values alone; key names come from the table or index schema."""
    index = resolve_index(store.schema(table_name), index_name)
    if (start is not None or end is not None) and not index.range_key_name:
        raise ArgumentError(
            f"{index_name or table_name} has no range key, so start and end cannot be used"
        )
    condition = key_condition(
        index.hash_key_name, hash_key, range_key_name=index.range_key_name, gte=start, lte=end
    )
    return query(
        store,
        table_name,
        condition,
        index_name=index_name,
        limit=limit,
        reverse=not scan_index_forward,
    )
