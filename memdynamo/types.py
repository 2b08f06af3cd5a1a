"""Basic types for in-memory DynamoDB data and operations"""
import typing as ty
from decimal import Decimal
from types import MappingProxyType

from typing_extensions import Literal, TypedDict

KeyAttributeType = ty.Union[int, str, float, Decimal, bytes]
ItemKey = ty.Mapping[str, KeyAttributeType]

AttrInput = ty.Mapping[str, ty.Any]
InputItem = AttrInput

AttrDict = ty.Dict[str, ty.Any]
Item = AttrDict

Action = Literal["PUT", "ADD", "DELETE"]
ACTIONS: ty.Tuple[str, ...] = ("PUT", "ADD", "DELETE")

RangeOperator = Literal[">=", "<=", "BETWEEN"]


class UpdateAction(ty.NamedTuple):
    attribute_name: str
    action: str = "PUT"
    value: ty.Any = None


AttributeUpdate = TypedDict("AttributeUpdate", {"Action": str, "Value": ty.Any}, total=False)
AttributeUpdates = ty.Mapping[str, AttributeUpdate]
# the boto3 legacy `AttributeUpdates` parameter shape


class PrimaryKey(ty.NamedTuple):
    """The canonical key within a table: a hash value and, for tables
    with a range key, a range value."""

    hash: KeyAttributeType
    range: ty.Optional[KeyAttributeType] = None


KeyInput = ty.Union[
    PrimaryKey, ItemKey, ty.Tuple[KeyAttributeType, KeyAttributeType], KeyAttributeType
]


class KeyCondition(ty.NamedTuple):
    """Equality on a hash key, optionally narrowed by one range operator."""

    hash_key_name: str
    hash_value: KeyAttributeType
    range_key_name: str = ""
    operator: ty.Optional[str] = None  # one of RangeOperator
    range_values: ty.Tuple[KeyAttributeType, ...] = ()


class SecondaryIndex(ty.NamedTuple):
    hash_key_name: str
    range_key_name: str = ""


class KeySchema(ty.NamedTuple):
    """Declared once per table and never changed afterwards.

    Secondary indexes are views over the table's items; they name
    attributes but own no data.
    """

    hash_key_name: str
    range_key_name: str = ""
    secondary_indexes: ty.Mapping[str, SecondaryIndex] = MappingProxyType({})


class KeyAndType(TypedDict):
    AttributeName: str
    KeyType: ty.Union[Literal["HASH"], Literal["RANGE"]]


BotoKeySchema = ty.List[KeyAndType]


class IndexDescription(TypedDict):
    IndexName: str
    KeySchema: BotoKeySchema


class PutOrDelete(TypedDict, total=False):
    put_item: ty.Optional[InputItem]
    delete_key: ty.Optional[KeyInput]


# pylint: disable=unused-argument,no-self-use


class TableResource:
    """A stub for a boto3 DynamoDB Table Resource.

    MemoryTable implements it; so does the real thing."""

    name: str

    key_schema: BotoKeySchema

    global_secondary_indexes: ty.Optional[ty.List[IndexDescription]]

    local_secondary_indexes: ty.Optional[ty.List[IndexDescription]]

    def get_item(self, Key: ItemKey, **kwargs) -> dict:
        ...

    def update_item(self, Key: ItemKey, **kwargs) -> dict:
        ...

    def put_item(self, Item: InputItem, **kwargs) -> dict:
        ...

    def batch_writer(
        self, overwrite_by_pkeys: ty.Optional[ty.List[str]] = None
    ) -> ty.ContextManager:
        ...

    def delete_item(self, Key: ItemKey, **kwargs) -> dict:
        ...

    def query(self, *args, **kwargs) -> dict:
        ...

    def scan(self, *args, **kwargs) -> dict:
        ...
