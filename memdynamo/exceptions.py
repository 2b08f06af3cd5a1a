"""Exceptions raised by the in-memory store"""
from typing import Dict, Optional, Tuple, Type, TypeVar

from botocore.exceptions import ClientError

from .types import ItemKey


class DynamoDbException(Exception):
    """Base for every error raised by memdynamo"""


class DynamoDbItemException(DynamoDbException):
    def __init__(self, msg: str, *, key: Optional[ItemKey] = None, table_name: str = "", **kwargs):
        self.__dict__.update(kwargs)
        self.key = key
        self.table_name = table_name
        super().__init__(msg)


class ItemNotFoundException(DynamoDbItemException):
    """Being more specific that an item was not found"""


class SchemaError(DynamoDbException, ValueError):
    """A key does not have the shape its table's KeySchema requires."""


class ArgumentError(DynamoDbException, ValueError):
    """The caller supplied an inconsistent or unknown argument."""


class UnsplittableValueError(DynamoDbException, ValueError):
    def __init__(self, msg: str, *, attribute_name: str = ""):
        self.attribute_name = attribute_name
        super().__init__(msg)


class ValidationError(DynamoDbException, ClientError):
    """Shaped like the ValidationException the real service returns, so
    that code inspecting ClientError responses behaves the same against
    the double.

    `message` holds the bare service message.
    """

    CODE = "ValidationException"

    def __init__(self, message: str, operation_name: str = "Query"):
        self.message = message
        super().__init__(dict(Error=dict(Code=self.CODE, Message=message)), operation_name)


class DuplicateKeyError(ValidationError):
    """The service rejects a batch that requests the same key twice."""

    def __init__(
        self,
        message: str = "Provided list of item keys contains duplicates",
        operation_name: str = "BatchGetItem",
    ):
        super().__init__(message, operation_name)


X = TypeVar("X", bound=DynamoDbItemException)


_GENERATED_ITEM_EXCEPTION_TYPES: Dict[Tuple[str, str], type] = {
    ("Item", "ItemNotFoundException"): ItemNotFoundException
}


def get_item_exception_type(item_name: str, base_exc: Type[X]) -> Type[X]:
    if not item_name:
        return base_exc
    base_name = base_exc.__name__
    exc_key = (item_name, base_name)
    if exc_key not in _GENERATED_ITEM_EXCEPTION_TYPES:
        exc_minus_Item = base_name[4:] if base_name.startswith("Item") else base_name
        _GENERATED_ITEM_EXCEPTION_TYPES[exc_key] = type(
            f"{item_name}{exc_minus_Item}", (base_exc,), dict()
        )
    return _GENERATED_ITEM_EXCEPTION_TYPES[exc_key]


def raise_item_not_found(nicename: str, key, table_name: str = ""):
    key_value = next(iter(key.values())) if key and len(key) == 1 else key
    raise get_item_exception_type(nicename, ItemNotFoundException)(
        f"{nicename} '{key_value}' does not exist!", key=key, table_name=table_name
    )
