from logging import getLogger
from typing import Callable, Iterator, List

import pytest

from memdynamo.resource import MemoryDynamoDB, MemoryTable
from memdynamo.store import MemoryStore
from memdynamo.types import InputItem, Item, KeySchema, SecondaryIndex

logger = getLogger(__name__)

SCORES_TABLE_NAME = "scores"
SCORES_SCHEMA = KeySchema(
    "group",
    "rank",
    secondary_indexes=dict(
        by_player=SecondaryIndex("player", "points"), by_league=SecondaryIndex("league"),
    ),
)

PutItems = Callable[[List[InputItem]], List[Item]]


@pytest.fixture
def store() -> Iterator[MemoryStore]:
    memory_store = MemoryStore(schemas={SCORES_TABLE_NAME: SCORES_SCHEMA})
    yield memory_store
    memory_store.reset()


def make_putter(memory_store: MemoryStore, table_name: str) -> PutItems:
    def _put_items(items: List[InputItem]) -> List[Item]:
        logger.info(f"Putting {len(items)} test items into {table_name}")
        return [memory_store.put_item(table_name, item) for item in items]

    return _put_items


@pytest.fixture
def put_scores(store: MemoryStore) -> PutItems:
    return make_putter(store, SCORES_TABLE_NAME)


@pytest.fixture
def dynamodb(store: MemoryStore) -> MemoryDynamoDB:
    return MemoryDynamoDB(store)


@pytest.fixture
def scores_table(dynamodb: MemoryDynamoDB) -> MemoryTable:
    return dynamodb.Table(SCORES_TABLE_NAME)
