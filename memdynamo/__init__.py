"""An in-memory stand-in for a DynamoDB table service.

Import what you need from here; the layout of the underlying modules
may change.
"""
from .__about__ import __version__  # noqa
from .actions import as_update_actions, to_attribute_updates  # noqa
from .batch import BatchGetResult, batch_delete, batch_get, batch_put, batch_write  # noqa
from .exceptions import (  # noqa
    ArgumentError,
    DuplicateKeyError,
    DynamoDbException,
    ItemNotFoundException,
    SchemaError,
    UnsplittableValueError,
    ValidationError,
)
from .expressions import key_condition_request, parse_key_condition  # noqa
from .paginate import yield_items, yield_pages  # noqa
from .query import key_condition, query_range  # noqa
from .resource import MemoryDynamoDB, MemoryTable  # noqa
from .scan import ScanPage, scan_all  # noqa
from .splitter import split_attribute_updates, split_update, update_item_in_chunks  # noqa
from .store import MemoryStore  # noqa
from .types import KeyCondition, KeySchema, PrimaryKey, SecondaryIndex, UpdateAction  # noqa
