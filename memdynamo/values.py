"""How the store interprets attribute values.

Values are ordinary Python objects. The store classifies them by the
DynamoDB type they would be written as, and only ever looks inside a
value to merge an ADD or to order range keys.
"""
import typing as ty
import decimal
from copy import deepcopy

from .exceptions import ValidationError

decimal_context = decimal.Context(
    Emin=-128, Emax=126, prec=38, traps=[decimal.Clamped, decimal.Overflow, decimal.Underflow]
)

SCALAR_KINDS = ("S", "N", "B")
SET_KINDS = {"S": "SS", "N": "NS", "B": "BS"}
COLLECTION_KINDS = ("L", "SS", "NS", "BS")
ADDABLE_KINDS = ("N",) + COLLECTION_KINDS


def float_to_decimal(Float: float) -> decimal.Decimal:
    return decimal_context.create_decimal(Float)


def is_number(value: ty.Any) -> bool:
    return isinstance(value, (int, float, decimal.Decimal)) and not isinstance(value, bool)


def value_kind(value: ty.Any) -> str:
    """The DynamoDB type descriptor a value would be stored as."""
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "BOOL"
    if is_number(value):
        return "N"
    if isinstance(value, str):
        return "S"
    if isinstance(value, (bytes, bytearray)):
        return "B"
    if isinstance(value, (list, tuple)):
        return "L"
    if isinstance(value, ty.Mapping):
        return "M"
    if isinstance(value, (set, frozenset)):
        kinds = {value_kind(v) for v in value}
        if len(kinds) > 1 or not kinds <= set(SCALAR_KINDS):
            raise ValidationError(
                "One or more parameter values were invalid: "
                "A set may only contain strings, numbers, or binary values of a single type",
                "UpdateItem",
            )
        return SET_KINDS[kinds.pop()] if kinds else "NS"
    raise ValidationError(
        f"Unsupported type {type(value).__name__} for value {value!r}", "UpdateItem"
    )


def is_collection(value: ty.Any) -> bool:
    return isinstance(value, (list, tuple, set, frozenset))


def normalize_value(value: ty.Any) -> ty.Any:
    """Applied to every value on its way into the store.

    Floats become Decimals, bytearrays become bytes, tuples become lists
    and frozensets become sets, recursively, so stored data always looks
    like what boto3 would hand back.
    """
    if isinstance(value, float):
        return float_to_decimal(value)
    if isinstance(value, bytearray):
        return bytes(value)
    if isinstance(value, (list, tuple)):
        return [normalize_value(v) for v in value]
    if isinstance(value, (set, frozenset)):
        return {normalize_value(v) for v in value}
    if isinstance(value, ty.Mapping):
        return {k: normalize_value(v) for k, v in value.items()}
    return value


def add_values(existing: ty.Any, operand: ty.Any) -> ty.Any:
    """The ADD update action.

    Numbers sum, lists concatenate, sets union. Anything else, or a
    mismatch between the existing value and the operand, is rejected
    the way the service rejects it.
    """
    existing_kind = value_kind(existing)
    operand_kind = value_kind(operand)
    if existing_kind in SET_KINDS.values() and operand_kind in SET_KINDS.values():
        if not existing or not operand or existing_kind == operand_kind:
            return set(existing) | set(operand)
    elif existing_kind == operand_kind == "N":
        return existing + operand
    elif existing_kind == operand_kind == "L":
        return list(existing) + list(operand)
    raise ValidationError(
        "An operand in the update expression has an incorrect data type", "UpdateItem"
    )


_KIND_RANKS = {"N": 0, "S": 1, "B": 2}


def ordering_key(value: ty.Any) -> ty.Tuple[int, ty.Any]:
    """Sort key for range and index key values.

    Numbers compare numerically, strings by code point and binary by
    byte. Values of different kinds never compare equal; numbers sort
    first.
    """
    kind = value_kind(value)
    if kind not in _KIND_RANKS:
        raise ValidationError(f"Key values must be strings, numbers or binary, not {kind}")
    return _KIND_RANKS[kind], bytes(value) if kind == "B" else value


def sorted_values(values: ty.Iterable[ty.Any]) -> ty.List[ty.Any]:
    return sorted(values, key=ordering_key)


def copy_item(item: ty.Mapping[str, ty.Any]) -> ty.Dict[str, ty.Any]:
    """Items leave the store as deep copies so callers can never edit
    stored state without an explicit write."""
    return deepcopy(dict(item))
