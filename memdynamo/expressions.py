"""Building and reading the small subset of KeyConditionExpressions we support.

Builders produce boto3-style query request dicts, so the same request
can be sent to a real Table resource or to a MemoryTable. The parser
understands exactly what the builders produce: equality on the hash
key, optionally followed by one of `>=`, `<=` or `BETWEEN` on the
range key.
"""
import re
import typing as ty
from copy import deepcopy

from .exceptions import ValidationError
from .types import KeyAttributeType, KeyCondition

TableQuery = ty.Dict[str, ty.Any]
QueryTransformer = ty.Callable[[TableQuery], TableQuery]

_NAME = r"(#?[A-Za-z0-9_.\-]+)"
_VALUE = r"(:[A-Za-z0-9_]+)"
_KEY_CONDITION = re.compile(
    rf"^\s*{_NAME}\s*=\s*{_VALUE}\s*"
    rf"(?:AND\s+{_NAME}\s*(?:(>=|<=)\s*{_VALUE}|(BETWEEN)\s+{_VALUE}\s+AND\s+{_VALUE}))?\s*$",
    re.IGNORECASE,
)


def single_partition(
    hash_key_name: str, partition_value: KeyAttributeType, index_name: ty.Optional[str] = None
) -> TableQuery:
    """The core of any query; you cannot query anything but a single partition."""
    query: TableQuery = dict()
    if index_name:
        query["IndexName"] = index_name
    query["KeyConditionExpression"] = "#partition = :partition"
    query["ExpressionAttributeNames"] = {"#partition": hash_key_name}
    query["ExpressionAttributeValues"] = {":partition": partition_value}
    return query


def within_range(
    range_key_name: str,
    *,
    gte: ty.Optional[KeyAttributeType] = None,
    lte: ty.Optional[KeyAttributeType] = None,
) -> QueryTransformer:
    expr_attr_values = dict()
    key_condition_expr = ""

    if gte is not None and lte is not None:
        expr_attr_values[":GTE"] = gte
        expr_attr_values[":LTE"] = lte
        key_condition_expr = " AND #sortBy BETWEEN :GTE AND :LTE"
    elif gte is not None:
        expr_attr_values[":GTE"] = gte
        key_condition_expr = " AND #sortBy >= :GTE"
    elif lte is not None:
        expr_attr_values[":LTE"] = lte
        key_condition_expr = " AND #sortBy <= :LTE"

    def tx_query(query: TableQuery) -> TableQuery:
        if not key_condition_expr:
            return query
        query = deepcopy(query)
        query["ExpressionAttributeNames"] = dict(
            query.get("ExpressionAttributeNames", dict()), **{"#sortBy": range_key_name}
        )
        query["ExpressionAttributeValues"] = dict(
            query.get("ExpressionAttributeValues", dict()), **expr_attr_values
        )
        query["KeyConditionExpression"] = (
            query.get("KeyConditionExpression", "") + key_condition_expr
        )
        return query

    return tx_query


def order(ascending: bool) -> QueryTransformer:
    def tx_query(query: TableQuery) -> TableQuery:
        return dict(query, ScanIndexForward=ascending)

    return tx_query


def limit(limit: ty.Optional[int]) -> QueryTransformer:
    def tx_query(query: TableQuery) -> TableQuery:
        return dict(query, Limit=limit) if limit else query

    return tx_query


def page(last_evaluated_key: ty.Optional[dict]) -> QueryTransformer:
    """Resume a scan on the page represented by the LastEvaluatedKey you
    previously received."""

    def tx_query(query: TableQuery) -> TableQuery:
        return dict(query, ExclusiveStartKey=last_evaluated_key) if last_evaluated_key else query

    return tx_query


def pipe(*funcs):
    """Left to right function composition"""

    def piped(arg):
        r = arg
        for f in funcs:
            r = f(r)
        return r

    return piped


def key_condition_request(
    hash_key_name: str,
    hash_value: KeyAttributeType,
    *,
    range_key_name: str = "",
    gte: ty.Optional[KeyAttributeType] = None,
    lte: ty.Optional[KeyAttributeType] = None,
    index_name: ty.Optional[str] = None,
    scan_index_forward: bool = True,
    max_items: ty.Optional[int] = None,
    exclusive_start_key: ty.Optional[dict] = None,
) -> TableQuery:
    """A complete query request for one partition, optionally narrowed to
    a range, ordered, limited and resumed from a LastEvaluatedKey."""
    return pipe(
        within_range(range_key_name, gte=gte, lte=lte),
        order(scan_index_forward),
        limit(max_items),
        page(exclusive_start_key),
    )(single_partition(hash_key_name, hash_value, index_name))


def _resolve_name(token: str, names: ty.Mapping[str, str]) -> str:
    if not token.startswith("#"):
        return token
    try:
        return names[token]
    except KeyError:
        raise ValidationError(
            "Invalid KeyConditionExpression: An expression attribute name used in the "
            f"document path is not defined; attribute name: {token}"
        )


def _resolve_value(token: str, values: ty.Mapping[str, ty.Any]) -> ty.Any:
    try:
        return values[token]
    except KeyError:
        raise ValidationError(
            "Invalid KeyConditionExpression: An expression attribute value used in "
            f"expression is not defined; attribute value: {token}"
        )


def parse_key_condition(
    expression: str,
    names: ty.Optional[ty.Mapping[str, str]] = None,
    values: ty.Optional[ty.Mapping[str, ty.Any]] = None,
) -> KeyCondition:
    """Reads `H = :h [AND R >= :v | AND R <= :v | AND R BETWEEN :a AND :b]`.

    Attribute names may be literal or #placeholders from `names`; values
    are :placeholders from `values`.
    """
    names = names or dict()
    values = values or dict()
    match = _KEY_CONDITION.match(expression or "")
    if not match:
        raise ValidationError(
            f"Invalid KeyConditionExpression: unsupported key condition {expression!r}"
        )
    hash_name, hash_value, range_name, operator, operand, between, low, high = match.groups()
    condition = KeyCondition(_resolve_name(hash_name, names), _resolve_value(hash_value, values))
    if operator:
        return condition._replace(
            range_key_name=_resolve_name(range_name, names),
            operator=operator,
            range_values=(_resolve_value(operand, values),),
        )
    if between:
        return condition._replace(
            range_key_name=_resolve_name(range_name, names),
            operator="BETWEEN",
            range_values=(_resolve_value(low, values), _resolve_value(high, values)),
        )
    return condition
