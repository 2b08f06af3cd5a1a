"""A drop-in stand-in for boto3's DynamoDB service resource.

```
dynamodb = MemoryDynamoDB(default_schema=KeySchema("id"))
table = dynamodb.Table("widgets")
table.update_item(Key=dict(id="w1"), AttributeUpdates=dict(count=dict(Action="ADD", Value=1)))
```

Request and response shapes follow boto3's resource layer: plain
Python values in, plain Python values (with Decimals for numbers) out.
Only the legacy AttributeUpdates form of update_item and the simple
KeyConditionExpressions understood by `.expressions` are supported.
"""
import typing as ty
from logging import getLogger

from . import constants
from .batch import batch_get, batch_write
from .exceptions import ArgumentError, DuplicateKeyError
from .expressions import parse_key_condition
from .query import query
from .scan import resume_position, scan
from .schema import (
    boto_key_schema,
    boto_secondary_indexes,
    cursor_key_names,
    key_to_item_key,
    project,
    resolve_key,
)
from .store import MemoryStore
from .types import (
    AttributeUpdates,
    BotoKeySchema,
    IndexDescription,
    InputItem,
    ItemKey,
    KeySchema,
    PutOrDelete,
)

logger = getLogger(__name__)

_RETURN_VALUES = ("NONE", "ALL_OLD", "ALL_NEW")


def _reject_unsupported(operation: str, kwargs: dict) -> None:
    if kwargs:
        unsupported = ", ".join(sorted(kwargs))
        raise ArgumentError(
            f"{operation} arguments not supported by the in-memory table: {unsupported}"
        )


def _check_return_values(return_values: str, allowed: ty.Collection[str] = _RETURN_VALUES) -> None:
    if return_values not in allowed:
        raise ArgumentError(f"ReturnValues {return_values} is not one of {', '.join(allowed)}")


class MemoryBatchWriter:
    """Buffers puts and deletes and writes them BATCH_WRITE_SIZE at a time.

    Like boto3's BatchWriter, a buffered request for a key that is
    requested again is replaced when overwrite_by_pkeys is given.
    """

    def __init__(self, table: "MemoryTable", overwrite_by_pkeys: ty.Optional[ty.List[str]] = None):
        self._table = table
        self._overwrite_by_pkeys = overwrite_by_pkeys
        self._buffer: ty.List[PutOrDelete] = list()

    def put_item(self, Item: InputItem) -> None:
        self._add(PutOrDelete(put_item=Item, delete_key=None))

    def delete_item(self, Key: ItemKey) -> None:
        self._add(PutOrDelete(put_item=None, delete_key=Key))

    def _add(self, request: PutOrDelete) -> None:
        if self._overwrite_by_pkeys:
            new_key = self._requested_key(request)
            self._buffer = [b for b in self._buffer if self._requested_key(b) != new_key]
        self._buffer.append(request)
        if len(self._buffer) >= constants.BATCH_WRITE_SIZE:
            self._flush()

    def _requested_key(self, request: PutOrDelete) -> dict:
        keyed = request.get("put_item") or request.get("delete_key")
        return project(dict(keyed), self._overwrite_by_pkeys or ())  # type: ignore

    def _flush(self) -> None:
        buffered, self._buffer = self._buffer, list()
        if buffered:
            logger.debug(f"Flushing {len(buffered)} buffered writes to {self._table.name}")
            batch_write(self._table.store, self._table.name, buffered)

    def __enter__(self) -> "MemoryBatchWriter":
        return self

    def __exit__(self, exc_type, exc_value, tb) -> None:
        self._flush()


class MemoryTable:
    """Implements the parts of the boto3 Table resource described by
    `memdynamo.types.TableResource`."""

    def __init__(self, store: MemoryStore, name: str):
        self.store = store
        self.name = name

    def __repr__(self) -> str:
        return f"MemoryTable(name={self.name!r})"

    @property
    def schema(self) -> KeySchema:
        return self.store.schema(self.name)

    @property
    def key_schema(self) -> BotoKeySchema:
        return boto_key_schema(self.schema)

    @property
    def global_secondary_indexes(self) -> ty.Optional[ty.List[IndexDescription]]:
        return boto_secondary_indexes(self.schema) or None

    @property
    def local_secondary_indexes(self) -> ty.Optional[ty.List[IndexDescription]]:
        return None

    def get_item(self, Key: ItemKey, ConsistentRead: bool = False, **kwargs) -> dict:
        _reject_unsupported("GetItem", kwargs)
        item = self.store.find_item(self.name, Key)
        return dict(Item=item) if item is not None else dict()

    def put_item(self, Item: InputItem, ReturnValues: str = "NONE", **kwargs) -> dict:
        _reject_unsupported("PutItem", kwargs)
        _check_return_values(ReturnValues, ("NONE", "ALL_OLD"))
        old = self.store.find_item(self.name, Item) if ReturnValues == "ALL_OLD" else None
        self.store.put_item(self.name, Item)
        return dict(Attributes=old) if old else dict()

    def update_item(
        self,
        Key: ItemKey,
        AttributeUpdates: ty.Optional[AttributeUpdates] = None,
        ReturnValues: str = "NONE",
        **kwargs,
    ) -> dict:
        if "UpdateExpression" in kwargs:
            raise ArgumentError(
                "UpdateExpression is not supported by the in-memory table; use AttributeUpdates"
            )
        _reject_unsupported("UpdateItem", kwargs)
        _check_return_values(ReturnValues)
        old = self.store.find_item(self.name, Key) if ReturnValues == "ALL_OLD" else None
        new = self.store.update_item(self.name, Key, AttributeUpdates or dict())
        if ReturnValues == "ALL_NEW":
            return dict(Attributes=new)
        return dict(Attributes=old) if old else dict()

    def delete_item(self, Key: ItemKey, ReturnValues: str = "NONE", **kwargs) -> dict:
        _reject_unsupported("DeleteItem", kwargs)
        _check_return_values(ReturnValues, ("NONE", "ALL_OLD"))
        old = self.store.find_item(self.name, Key) if ReturnValues == "ALL_OLD" else None
        self.store.delete_item(self.name, Key)
        return dict(Attributes=old) if old else dict()

    def query(
        self,
        KeyConditionExpression: str,
        ExpressionAttributeNames: ty.Optional[ty.Mapping[str, str]] = None,
        ExpressionAttributeValues: ty.Optional[ty.Mapping[str, ty.Any]] = None,
        IndexName: ty.Optional[str] = None,
        Limit: ty.Optional[int] = None,
        ScanIndexForward: bool = True,
        ExclusiveStartKey: ty.Optional[ItemKey] = None,
        ConsistentRead: bool = False,
        **kwargs,
    ) -> dict:
        """Limit and ExclusiveStartKey page through the ordered results the
        same way they do for scan."""
        _reject_unsupported("Query", kwargs)
        if Limit is not None and Limit < 1:
            raise ArgumentError(f"Limit must be at least 1, not {Limit}")
        condition = parse_key_condition(
            KeyConditionExpression, ExpressionAttributeNames, ExpressionAttributeValues
        )
        items = query(
            self.store, self.name, condition, index_name=IndexName, reverse=not ScanIndexForward
        )
        names = cursor_key_names(self.schema, IndexName)
        start = resume_position(items, ExclusiveStartKey, names) if ExclusiveStartKey else 0
        end = len(items) if Limit is None else min(start + Limit, len(items))
        page = items[start:end]
        response: ty.Dict[str, ty.Any] = dict(Items=page, Count=len(page), ScannedCount=len(page))
        if page and end < len(items):
            response["LastEvaluatedKey"] = project(page[-1], names)
        return response

    def scan(
        self,
        IndexName: ty.Optional[str] = None,
        ExclusiveStartKey: ty.Optional[ItemKey] = None,
        Limit: ty.Optional[int] = None,
        Segment: ty.Optional[int] = None,
        TotalSegments: ty.Optional[int] = None,
        ConsistentRead: bool = False,
        **kwargs,
    ) -> dict:
        _reject_unsupported("Scan", kwargs)
        page = scan(
            self.store,
            self.name,
            index_name=IndexName,
            start_key=ExclusiveStartKey,
            limit=Limit,
            segment=Segment,
            total_segments=TotalSegments,
            consistent_read=ConsistentRead,
        )
        response: ty.Dict[str, ty.Any] = dict(
            Items=page.items, Count=len(page.items), ScannedCount=len(page.items)
        )
        if page.last_evaluated_key is not None:
            response["LastEvaluatedKey"] = page.last_evaluated_key
        return response

    def batch_writer(
        self, overwrite_by_pkeys: ty.Optional[ty.List[str]] = None
    ) -> MemoryBatchWriter:
        return MemoryBatchWriter(self, overwrite_by_pkeys)


class MemoryDynamoDB:
    """The service resource: tables by name, plus the batch operations
    that span tables."""

    def __init__(
        self,
        store: ty.Optional[MemoryStore] = None,
        default_schema: KeySchema = KeySchema(constants.DEFAULT_HASH_KEY_NAME),
    ):
        self.store = store if store is not None else MemoryStore(default_schema)

    def Table(self, name: str) -> MemoryTable:  # pylint: disable=invalid-name
        return MemoryTable(self.store, name)

    def define_table(self, name: str, key_schema: KeySchema) -> MemoryTable:
        self.store.define_table(name, key_schema)
        return self.Table(name)

    def batch_get_item(
        self, RequestItems: ty.Mapping[str, ty.Mapping[str, ty.Any]], **kwargs
    ) -> dict:
        """Every table's keys are checked for duplicates before any are read."""
        _reject_unsupported("BatchGetItem", kwargs)
        for table_name, request in RequestItems.items():
            schema = self.store.schema(table_name)
            keys = [resolve_key(schema, key) for key in request.get("Keys", [])]
            if len(set(keys)) != len(keys):
                raise DuplicateKeyError()
        responses = {
            table_name: batch_get(self.store, table_name, request.get("Keys", [])).found
            for table_name, request in RequestItems.items()
        }
        return dict(Responses=responses, UnprocessedKeys=dict())

    def batch_write_item(self, RequestItems: ty.Mapping[str, ty.Sequence[dict]], **kwargs) -> dict:
        _reject_unsupported("BatchWriteItem", kwargs)
        for table_name, requests in RequestItems.items():
            batch_write(
                self.store,
                table_name,
                (
                    PutOrDelete(
                        put_item=request.get("PutRequest", {}).get("Item"),
                        delete_key=request.get("DeleteRequest", {}).get("Key"),
                    )
                    for request in requests
                ),
            )
        return dict(UnprocessedItems=dict())

    def item_key(self, table_name: str, item: InputItem) -> ItemKey:
        """The key attributes of an item, as a boto3-style key."""
        schema = self.store.schema(table_name)
        return key_to_item_key(schema, resolve_key(schema, item))
