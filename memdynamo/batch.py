"""Batched reads and writes against a single table"""
import timeit
import typing as ty
from logging import getLogger

from . import constants
from .exceptions import DuplicateKeyError
from .schema import resolve_key
from .store import MemoryStore
from .types import InputItem, Item, KeyInput, PrimaryKey, PutOrDelete
from .utils.iter import chunked, grouper_it
from .values import copy_item

logger = getLogger(__name__)


class BatchGetResult(ty.NamedTuple):
    found: ty.List[Item]
    not_found: ty.List[KeyInput]


def batch_get(store: MemoryStore, table_name: str, keys: ty.Iterable[KeyInput]) -> BatchGetResult:
    """Looks up many keys, returning found items in request order and the
    requested keys that had no item.

    Like the service, a request naming the same key twice is rejected
    before anything is read. Lookups happen in chunks of at most
    BATCH_GET_SIZE keys, each under the table lock.
    """
    requested = list(keys)
    if not requested:
        logger.debug("Performed 0 gets")
        return BatchGetResult(list(), list())

    table = store.table(table_name)
    resolved = [resolve_key(table.schema, key) for key in requested]
    if len(set(resolved)) != len(resolved):
        raise DuplicateKeyError()

    start = timeit.default_timer()
    found: ty.List[Item] = list()
    not_found: ty.List[KeyInput] = list()
    pairs: ty.Iterable[ty.Tuple[KeyInput, PrimaryKey]] = zip(requested, resolved)
    for batch in chunked(constants.BATCH_GET_SIZE, pairs):
        with table.lock:
            for key, primary_key in batch:
                item = table.lookup(primary_key)
                if item is None:
                    not_found.append(key)
                else:
                    found.append(copy_item(item))
    ms_elapsed = (timeit.default_timer() - start) * 1000
    logger.debug(
        f"BatchGet on {table_name} found {len(found)}/{len(requested)} items in {ms_elapsed:.1f} ms"
    )
    return BatchGetResult(found, not_found)


def batch_write(store: MemoryStore, table_name: str, requests: ty.Iterable[PutOrDelete]) -> int:
    """Applies each put or delete independently; nothing is rolled back
    if a later request fails. Returns the number of requests applied.
    """
    start = timeit.default_timer()
    num_written = 0
    table = store.table(table_name)
    for iter_batch in grouper_it(constants.BATCH_WRITE_SIZE, requests):
        batch = list(iter_batch)
        try:
            with table.lock:
                for request in batch:
                    put_item = request.get("put_item")
                    delete_key = request.get("delete_key")
                    if put_item:
                        store.put_item(table_name, put_item)
                    elif delete_key is not None:
                        store.delete_item(table_name, delete_key)
                    else:
                        logger.warning("Provided empty action - ignoring")
                        continue
                    num_written += 1
                    if num_written % 1000 == 0:
                        logger.info(
                            f"Large partial write report; have written {num_written} "
                            f"items to {table_name} in this batch"
                        )
        except Exception as e:
            logger.error(
                f"Failed to perform BatchWrite to table {table_name} with batch {batch}",
                extra=dict(json=dict(batch=batch)),
            )
            raise e
    if num_written:
        ms_elapsed = (timeit.default_timer() - start) * 1000
        logger.debug(
            f"BatchWrite to {table_name} wrote {num_written} items in "
            f"{int(ms_elapsed)} ms; {num_written / max(ms_elapsed, 0.001) * 1000:.02f}/s"
        )
    return num_written


def batch_put(store: MemoryStore, table_name: str, items: ty.Iterable[InputItem]) -> int:
    return batch_write(store, table_name, (dict(put_item=item, delete_key=None) for item in items))


def batch_delete(store: MemoryStore, table_name: str, keys: ty.Iterable[KeyInput]) -> int:
    return batch_write(store, table_name, (dict(delete_key=key, put_item=None) for key in keys))
