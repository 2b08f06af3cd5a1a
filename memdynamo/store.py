"""The in-memory tables themselves.

A MemoryStore owns every table by name. Tables appear the first time
they are touched and live as long as the store does.
"""
import threading
import typing as ty
from logging import getLogger

from .actions import UpdateActions, apply_update_actions, as_update_actions
from .constants import DEFAULT_HASH_KEY_NAME, DEFAULT_ITEM_NAME
from .exceptions import SchemaError, ValidationError, raise_item_not_found
from .schema import extract_key_from_item, key_to_item_key, resolve_key
from .types import InputItem, Item, KeyAttributeType, KeyInput, KeySchema, PrimaryKey
from .values import copy_item, normalize_value

logger = getLogger(__name__)

Partition = ty.Dict[KeyAttributeType, Item]


class Table:
    """Hash value -> item for hash-only schemas, or hash value -> range
    value -> item when the schema has a range key.

    Every read-modify-write holds `lock`.
    """

    def __init__(self, name: str, schema: KeySchema):
        self.name = name
        self.schema = schema
        self.lock = threading.RLock()
        self.data: ty.Dict[KeyAttributeType, ty.Union[Item, Partition]] = dict()

    def __repr__(self) -> str:
        return f"Table({self.name!r}, {self.schema!r})"

    def lookup(self, key: PrimaryKey) -> ty.Optional[Item]:
        entry = self.data.get(key.hash)
        if entry is None or not self.schema.range_key_name:
            return entry  # type: ignore
        return entry.get(key.range)  # type: ignore

    def store(self, key: PrimaryKey, item: Item) -> None:
        if not self.schema.range_key_name:
            self.data[key.hash] = item
        else:
            self.data.setdefault(key.hash, dict())[key.range] = item  # type: ignore

    def remove(self, key: PrimaryKey) -> bool:
        if not self.schema.range_key_name:
            return self.data.pop(key.hash, None) is not None
        partition = self.data.get(key.hash)
        if not partition or key.range not in partition:
            return False
        del partition[key.range]  # type: ignore
        if not partition:
            del self.data[key.hash]
        return True

    def partition(self, hash_value: KeyAttributeType) -> ty.List[Item]:
        """Stored (not copied) items sharing a hash value, in insertion order."""
        entry = self.data.get(hash_value)
        if entry is None:
            return []
        if not self.schema.range_key_name:
            return [entry]  # type: ignore
        return list(entry.values())  # type: ignore

    def __iter__(self) -> ty.Iterator[Item]:
        """Stored (not copied) items in table-internal order."""
        for entry in list(self.data.values()):
            if self.schema.range_key_name:
                yield from list(entry.values())  # type: ignore
            else:
                yield entry  # type: ignore

    def __len__(self) -> int:
        if not self.schema.range_key_name:
            return len(self.data)
        return sum(len(partition) for partition in self.data.values())  # type: ignore


class MemoryStore:
    """All tables, by name.

    Tables named in `schemas` use that KeySchema; any other table is
    created on first access with `default_schema`.
    """

    def __init__(
        self,
        default_schema: KeySchema = KeySchema(DEFAULT_HASH_KEY_NAME),
        schemas: ty.Optional[ty.Mapping[str, KeySchema]] = None,
    ):
        self.default_schema = default_schema
        self._schemas: ty.Dict[str, KeySchema] = dict(schemas or dict())
        self._tables: ty.Dict[str, Table] = dict()
        self._lock = threading.Lock()

    def define_table(self, table_name: str, key_schema: KeySchema) -> Table:
        with self._lock:
            existing = self._tables.get(table_name)
            known_schema = existing.schema if existing else self._schemas.get(table_name)
            if known_schema and known_schema != key_schema:
                raise SchemaError(
                    f"Table {table_name} is already defined with {known_schema}; "
                    f"cannot redefine it as {key_schema}"
                )
            self._schemas[table_name] = key_schema
        return self.table(table_name)

    def table(self, table_name: str) -> Table:
        with self._lock:
            if table_name not in self._tables:
                schema = self._schemas.get(table_name, self.default_schema)
                logger.debug(f"Creating table {table_name} with {schema}")
                self._tables[table_name] = Table(table_name, schema)
            return self._tables[table_name]

    def schema(self, table_name: str) -> KeySchema:
        return self.table(table_name).schema

    def table_names(self) -> ty.List[str]:
        return list(self._tables)

    def update_item(
        self,
        table_name: str,
        key: KeyInput,
        actions: UpdateActions,
    ) -> Item:
        """Applies every action to one copy of the item, then commits it.

        An item that does not exist yet starts out empty. If any action
        fails, nothing is written.
        """
        table = self.table(table_name)
        primary_key = resolve_key(table.schema, key)
        update_actions = as_update_actions(actions)
        item_key = key_to_item_key(table.schema, primary_key)
        for action in update_actions:
            if action.attribute_name in item_key and not (
                action.action == "PUT"
                and normalize_value(action.value) == item_key[action.attribute_name]
            ):
                raise ValidationError(
                    f"Cannot update attribute {action.attribute_name}. "
                    "This attribute is part of the key",
                    "UpdateItem",
                )

        with table.lock:
            existing = table.lookup(primary_key)
            item = copy_item(existing) if existing is not None else dict()
            apply_update_actions(item, update_actions)
            item.update(item_key)
            table.store(primary_key, item)
            logger.debug(
                f"UpdateItem {item_key} in table {table_name}",
                extra=dict(json=dict(actions=[a._asdict() for a in update_actions])),
            )
            return copy_item(item)

    def put_item(self, table_name: str, item: InputItem) -> Item:
        """Replaces the whole item addressed by its own key attributes."""
        table = self.table(table_name)
        primary_key = extract_key_from_item(table.schema, item)
        stored = normalize_value(dict(item))
        with table.lock:
            table.store(primary_key, stored)
        logger.debug(f"PutItem into table {table_name}", extra=dict(json=dict(item=item)))
        return copy_item(stored)

    def find_item(self, table_name: str, key: KeyInput) -> ty.Optional[Item]:
        table = self.table(table_name)
        primary_key = resolve_key(table.schema, key)
        with table.lock:
            item = table.lookup(primary_key)
            return copy_item(item) if item is not None else None

    def get_item(
        self, table_name: str, key: KeyInput, *, nicename: str = DEFAULT_ITEM_NAME
    ) -> Item:
        """Raises {nicename/Item}NotFoundException when the item does not exist."""
        nicename = nicename or DEFAULT_ITEM_NAME
        item = self.find_item(table_name, key)
        if item is None:
            schema = self.schema(table_name)
            raise_item_not_found(
                nicename, key_to_item_key(schema, resolve_key(schema, key)), table_name
            )
        logger.debug(f"Get{nicename} {key} from table {table_name}")
        return item  # type: ignore

    def delete_item(self, table_name: str, key: KeyInput) -> None:
        table = self.table(table_name)
        primary_key = resolve_key(table.schema, key)
        with table.lock:
            removed = table.remove(primary_key)
        logger.debug(f"DeleteItem {primary_key} from table {table_name}; existed: {removed}")

    def items(self, table_name: str) -> ty.List[Item]:
        """Copies of every item, in table-internal order."""
        table = self.table(table_name)
        with table.lock:
            return [copy_item(item) for item in table]

    def reset(self) -> None:
        """Drops every item in every table. Schemas are kept."""
        with self._lock:
            tables = list(self._tables.values())
        for table in tables:
            with table.lock:
                table.data.clear()
