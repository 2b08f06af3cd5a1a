"""Paginated scans of a table or secondary index"""
import typing as ty
import zlib
from decimal import Decimal
from logging import getLogger

from .exceptions import ArgumentError
from .schema import cursor_key_names, is_indexed, key_names, project, resolve_index
from .store import MemoryStore
from .types import Item, ItemKey, KeyAttributeType
from .values import copy_item, is_number, normalize_value, ordering_key

logger = getLogger(__name__)


class ScanPage(ty.NamedTuple):
    items: ty.List[Item]
    last_evaluated_key: ty.Optional[ItemKey] = None


def segment_of(hash_value: KeyAttributeType, total_segments: int) -> int:
    """Deterministic across processes, and equal numbers (1, Decimal('1.0'))
    always land in the same segment."""
    if is_number(hash_value):
        encoded = ("N" + str(Decimal(hash_value).normalize())).encode()
    elif isinstance(hash_value, (bytes, bytearray)):
        encoded = b"B" + bytes(hash_value)
    else:
        encoded = ("S" + str(hash_value)).encode("utf-8")
    return zlib.crc32(encoded) % total_segments


def _check_segments(segment: ty.Optional[int], total_segments: ty.Optional[int]) -> None:
    if (segment is None) != (total_segments is None):
        raise ArgumentError("segment and total_segments must be supplied together")
    if total_segments is None:
        return
    if total_segments < 1:
        raise ArgumentError(f"total_segments must be at least 1, not {total_segments}")
    if not 0 <= segment < total_segments:  # type: ignore
        raise ArgumentError(
            f"segment must be between 0 and {total_segments - 1} inclusive, not {segment}"
        )


def resume_position(items: ty.Sequence[Item], start_key: ItemKey, names: ty.Sequence[str]) -> int:
    """Index just past the item the cursor names; 0 if no item matches."""
    wanted = project(normalize_value(dict(start_key)), names)
    if wanted:
        for position, item in enumerate(items):
            if all(item.get(name) == value for name, value in wanted.items()):
                return position + 1
    logger.debug(f"Start key {dict(start_key)} matched no item; scanning from the beginning")
    return 0


def scan(
    store: MemoryStore,
    table_name: str,
    *,
    index_name: ty.Optional[str] = None,
    start_key: ty.Optional[ItemKey] = None,
    limit: ty.Optional[int] = None,
    segment: ty.Optional[int] = None,
    total_segments: ty.Optional[int] = None,
    consistent_read: bool = False,
) -> ScanPage:
    """One page of a scan.

    A table scan returns items in table-internal (insertion) order. An
    index scan returns only the items carrying the index keys, sorted
    ascending by the index's hash key; this ordering is kept for
    compatibility with existing callers even though the range key would
    be the more natural choice.

    `start_key` is exclusive, like ExclusiveStartKey. The page's
    `last_evaluated_key` is None once nothing remains. Every read is
    consistent, so `consistent_read` changes nothing.
    """
    _check_segments(segment, total_segments)
    if limit is not None and limit < 1:
        raise ArgumentError(f"Limit must be at least 1, not {limit}")
    table = store.table(table_name)
    schema = table.schema
    index = resolve_index(schema, index_name)
    names = cursor_key_names(schema, index_name)

    with table.lock:
        ordered = [item for item in table if not index_name or is_indexed(item, key_names(index))]
        if total_segments is not None:
            ordered = [
                item
                for item in ordered
                if segment_of(item[schema.hash_key_name], total_segments) == segment
            ]
        if index_name:
            ordered.sort(key=lambda item: ordering_key(item[index.hash_key_name]))

        start = resume_position(ordered, start_key, names) if start_key else 0
        end = len(ordered) if limit is None else min(start + limit, len(ordered))
        page = [copy_item(item) for item in ordered[start:end]]

    last_evaluated_key = project(page[-1], names) if page and end < len(ordered) else None
    logger.debug(
        f"Scan {table_name}{'.' + index_name if index_name else ''} returned "
        f"{len(page)} of {len(ordered)} items; more: {last_evaluated_key is not None}"
    )
    return ScanPage(page, last_evaluated_key)


def scan_all(store: MemoryStore, table_name: str, **scan_kwargs) -> ty.List[Item]:
    """Follows cursors until the scan is exhausted; `limit` becomes the page size."""
    items: ty.List[Item] = list()
    start_key = scan_kwargs.pop("start_key", None)
    while True:
        page = scan(store, table_name, start_key=start_key, **scan_kwargs)
        items.extend(page.items)
        if page.last_evaluated_key is None:
            return items
        start_key = page.last_evaluated_key
