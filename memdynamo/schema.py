"""Looking at KeySchemas and the keys they describe"""
import typing as ty
from logging import getLogger

from .exceptions import ArgumentError, SchemaError
from .types import (
    BotoKeySchema,
    IndexDescription,
    InputItem,
    Item,
    ItemKey,
    KeyInput,
    KeySchema,
    PrimaryKey,
    SecondaryIndex,
)
from .values import normalize_value, value_kind

logger = getLogger(__name__)

IndexKeys = ty.Union[KeySchema, SecondaryIndex]


def resolve_index(schema: KeySchema, index_name: ty.Optional[str] = None) -> IndexKeys:
    """The table's own keys, or those of the named secondary index."""
    if not index_name:
        return schema
    try:
        return schema.secondary_indexes[index_name]
    except KeyError:
        raise ArgumentError(
            f"The table does not have the specified index: {index_name}. "
            f"Known indexes: {', '.join(sorted(schema.secondary_indexes)) or 'none'}"
        )


def key_names(index: IndexKeys) -> ty.Tuple[str, ...]:
    return tuple(filter(None, (index.hash_key_name, index.range_key_name)))


def cursor_key_names(schema: KeySchema, index_name: ty.Optional[str] = None) -> ty.Tuple[str, ...]:
    """The attributes that identify a position in a scan of the table or index.

    An index key is not unique, so the table's primary key attributes
    are always included.
    """
    names = list(key_names(schema))
    if index_name:
        names.extend(n for n in key_names(resolve_index(schema, index_name)) if n not in names)
    return tuple(names)


def _require_key_value(attr_name: str, value: ty.Any):
    if value_kind(value) not in ("S", "N", "B"):
        raise SchemaError(
            f"Key attribute {attr_name} must be a string, number or binary value, not {value!r}"
        )
    return value


def resolve_key(schema: KeySchema, key: KeyInput) -> PrimaryKey:
    """Accepts a PrimaryKey, a boto3-style key mapping, a (hash, range)
    tuple, or a bare hash value, and checks its shape against the schema.

    Attributes in a key mapping that are not part of the primary key are ignored.
    """
    if isinstance(key, PrimaryKey):
        hash_value, range_value = key
    elif isinstance(key, ty.Mapping):
        if schema.hash_key_name not in key:
            raise SchemaError(f"Key {dict(key)} is missing the hash key {schema.hash_key_name}")
        hash_value = key[schema.hash_key_name]
        range_value = None
        if schema.range_key_name:
            if schema.range_key_name not in key:
                raise SchemaError(
                    f"Key {dict(key)} is missing the range key {schema.range_key_name}"
                )
            range_value = key[schema.range_key_name]
    elif isinstance(key, tuple):
        if len(key) != 2:
            raise SchemaError(f"Key tuples must be (hash, range), not {key!r}")
        hash_value, range_value = key
    else:
        hash_value, range_value = key, None

    if range_value is not None and not schema.range_key_name:
        raise SchemaError(
            f"A range value {range_value!r} was supplied but the table has no range key"
        )
    if range_value is None and schema.range_key_name:
        raise SchemaError(f"The table requires a value for its range key {schema.range_key_name}")
    hash_value = _require_key_value(schema.hash_key_name, normalize_value(hash_value))
    if range_value is not None:
        range_value = _require_key_value(schema.range_key_name, normalize_value(range_value))
    return PrimaryKey(hash_value, range_value)


def key_to_item_key(schema: KeySchema, key: PrimaryKey) -> ItemKey:
    item_key = {schema.hash_key_name: key.hash}
    if schema.range_key_name:
        item_key[schema.range_key_name] = key.range
    return item_key


def extract_key_from_item(schema: KeySchema, item: InputItem) -> PrimaryKey:
    return resolve_key(schema, item)


def project(item: Item, attr_names: ty.Iterable[str]) -> Item:
    return {attr_name: item[attr_name] for attr_name in attr_names if attr_name in item}


def is_indexed(item: Item, attr_names: ty.Iterable[str]) -> bool:
    """Indexes are sparse: an item appears in one only when it carries
    every index key attribute as a string, number or binary value."""
    return all(
        attr_name in item and value_kind(item[attr_name]) in ("S", "N", "B")
        for attr_name in attr_names
    )


def boto_key_schema(index: IndexKeys) -> BotoKeySchema:
    """Render keys the way boto3 describes them on a Table resource."""
    described: BotoKeySchema = [
        dict(AttributeName=index.hash_key_name, KeyType="HASH")  # type: ignore
    ]
    if index.range_key_name:
        described.append(dict(AttributeName=index.range_key_name, KeyType="RANGE"))  # type: ignore
    return described


def boto_secondary_indexes(schema: KeySchema) -> ty.List[IndexDescription]:
    return [
        IndexDescription(IndexName=name, KeySchema=boto_key_schema(index))
        for name, index in schema.secondary_indexes.items()
    ]
