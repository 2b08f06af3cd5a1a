"""Shaping item updates so that no single request exceeds a payload size.

An update that would be too large is issued as several successive
updates. The first request for an attribute keeps its original action,
and any further pieces of the same list or set are ADDed on top, so the
sequence of requests produces the same item the single update would
have.
"""
import json
import typing as ty
from base64 import b64encode
from collections import deque
from logging import getLogger

from boto3.dynamodb.types import Binary, TypeSerializer

from . import constants
from .actions import UpdateActions, as_update_actions, to_attribute_updates
from .exceptions import UnsplittableValueError
from .types import AttributeUpdates, Item, ItemKey, TableResource, UpdateAction
from .values import is_collection, normalize_value, sorted_values

logger = getLogger(__name__)

SizeOf = ty.Callable[[UpdateAction], int]

__sr = TypeSerializer()


def _json_default(obj: ty.Any) -> ty.Any:
    if isinstance(obj, Binary):
        obj = obj.value
    if isinstance(obj, (bytes, bytearray)):
        return b64encode(obj).decode()
    raise TypeError(f"Cannot measure {obj!r}")


def action_size(action: UpdateAction) -> int:
    """Bytes taken by the action in the service's JSON wire format."""
    update: ty.Dict[str, ty.Any] = dict(Action=action.action)
    if action.value is not None:
        update["Value"] = __sr.serialize(normalize_value(action.value))
    encoded = json.dumps(
        {action.attribute_name: update},
        separators=(",", ":"),
        ensure_ascii=False,
        default=_json_default,
    )
    return len(encoded.encode("utf-8"))


def split_action(action: UpdateAction) -> ty.Tuple[UpdateAction, UpdateAction]:
    """Halves a list or set valued action. The second half is always an ADD."""
    name, kind, value = action
    if not is_collection(value):
        raise UnsplittableValueError(
            f"{name} is too large to save and is not splittable (not a list or set).",
            attribute_name=name,
        )
    is_set = isinstance(value, (set, frozenset))
    elements = sorted_values(value) if is_set else list(value)
    if len(elements) < 2:
        raise UnsplittableValueError(
            f"{name} is too large to save and cannot be split any further.", attribute_name=name
        )
    rebuild: ty.Callable[[ty.List[ty.Any]], ty.Any] = set if is_set else list
    middle = len(elements) // 2
    return (
        UpdateAction(name, kind, rebuild(elements[:middle])),
        UpdateAction(name, "ADD", rebuild(elements[middle:])),
    )


def split_update(
    actions: UpdateActions,
    max_bytes: ty.Optional[int] = None,
    *,
    size_of: ty.Optional[SizeOf] = None,
) -> ty.List[ty.List[UpdateAction]]:
    """Greedily packs actions, in order, into requests no larger than max_bytes.

    A request is closed when the next action would push it over the
    limit, or when the next action names an attribute the request
    already touches (a request may mention each attribute only once).
    A single action larger than the limit is halved recursively; only
    list and set values can be halved.
    """
    max_bytes = constants.MAX_UPDATE_BYTES if max_bytes is None else max_bytes
    size_of = size_of or action_size

    pending = deque(as_update_actions(actions))
    requests: ty.List[ty.List[UpdateAction]] = list()
    current: ty.List[UpdateAction] = list()
    current_size = 0

    while pending:
        action = pending.popleft()
        size = size_of(action)
        if size > max_bytes:
            first, second = split_action(action)
            logger.debug(f"Splitting {action.attribute_name} of {size} bytes (limit {max_bytes})")
            pending.appendleft(second)
            pending.appendleft(first)
            continue
        repeats_attribute = any(a.attribute_name == action.attribute_name for a in current)
        if current and (current_size + size > max_bytes or repeats_attribute):
            requests.append(current)
            current, current_size = list(), 0
        current.append(action)
        current_size += size

    if current:
        requests.append(current)
    if len(requests) > 1:
        logger.info(f"Split one update into {len(requests)} requests of at most {max_bytes} bytes")
    return requests


def split_attribute_updates(
    attribute_updates: UpdateActions,
    max_bytes: ty.Optional[int] = None,
    *,
    size_of: ty.Optional[SizeOf] = None,
) -> ty.List[AttributeUpdates]:
    """split_update for boto3-style AttributeUpdates mappings."""
    return [
        to_attribute_updates(request)
        for request in split_update(attribute_updates, max_bytes, size_of=size_of)
    ]


def update_item_in_chunks(
    table: TableResource,
    key: ItemKey,
    actions: UpdateActions,
    *,
    max_bytes: ty.Optional[int] = None,
    size_of: ty.Optional[SizeOf] = None,
) -> Item:
    """Issues a possibly oversized update as successive update_item calls
    and returns the item as it stands after the last one.

    Works with anything shaped like a boto3 Table resource.
    """
    item: Item = dict(key)
    for attribute_updates in split_attribute_updates(
        actions, max_bytes, size_of=size_of
    ):
        response = table.update_item(
            Key=dict(key), AttributeUpdates=attribute_updates, ReturnValues="ALL_NEW"
        )
        item = response.get("Attributes", item)
    return item
