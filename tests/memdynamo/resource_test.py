from decimal import Decimal

import pytest
from botocore.exceptions import ClientError

from memdynamo.exceptions import ArgumentError, DuplicateKeyError
from memdynamo.resource import MemoryDynamoDB
from memdynamo.types import KeySchema, SecondaryIndex


def test_table_describes_its_keys(scores_table):
    assert scores_table.name == "scores"
    assert scores_table.key_schema == [
        dict(AttributeName="group", KeyType="HASH"),
        dict(AttributeName="rank", KeyType="RANGE"),
    ]
    assert {gsi["IndexName"] for gsi in scores_table.global_secondary_indexes} == {
        "by_player",
        "by_league",
    }
    assert scores_table.local_secondary_indexes is None
    assert MemoryDynamoDB().Table("plain").global_secondary_indexes is None


def test_item_crud_with_return_values():
    table = MemoryDynamoDB().Table("things")
    assert table.get_item(Key=dict(id="t")) == dict()
    assert table.put_item(Item=dict(id="t", n=1.5)) == dict()
    assert table.put_item(Item=dict(id="t", n=2), ReturnValues="ALL_OLD") == dict(
        Attributes=dict(id="t", n=Decimal("1.5"))
    )
    assert table.update_item(
        Key=dict(id="t"),
        AttributeUpdates=dict(n=dict(Action="ADD", Value=3), tags=dict(Action="PUT", Value={"a"})),
        ReturnValues="ALL_NEW",
    ) == dict(Attributes=dict(id="t", n=5, tags={"a"}))
    assert table.update_item(
        Key=dict(id="t"), AttributeUpdates=dict(tags=dict(Action="DELETE")), ReturnValues="ALL_OLD"
    ) == dict(Attributes=dict(id="t", n=5, tags={"a"}))
    assert table.get_item(Key=dict(id="t")) == dict(Item=dict(id="t", n=5))
    assert table.delete_item(Key=dict(id="t"), ReturnValues="ALL_OLD") == dict(
        Attributes=dict(id="t", n=5)
    )
    assert table.delete_item(Key=dict(id="t"), ReturnValues="ALL_OLD") == dict()


def test_unsupported_arguments_are_refused():
    table = MemoryDynamoDB().Table("things")
    with pytest.raises(ArgumentError):
        table.update_item(Key=dict(id="t"), UpdateExpression="SET a = :a")
    with pytest.raises(ArgumentError):
        table.put_item(Item=dict(id="t"), ConditionExpression="attribute_not_exists(id)")
    with pytest.raises(ArgumentError):
        table.put_item(Item=dict(id="t"), ReturnValues="ALL_NEW")


def test_query_pages_with_exclusive_start_key(scores_table):
    for rank in range(1, 5):
        scores_table.put_item(Item=dict(group="g", rank=rank))
    request = dict(
        KeyConditionExpression="#g = :g",
        ExpressionAttributeNames={"#g": "group"},
        ExpressionAttributeValues={":g": "g"},
        Limit=3,
    )
    first = scores_table.query(**request)
    assert [item["rank"] for item in first["Items"]] == [1, 2, 3]
    assert first["Count"] == 3
    assert first["LastEvaluatedKey"] == dict(group="g", rank=3)
    second = scores_table.query(ExclusiveStartKey=first["LastEvaluatedKey"], **request)
    assert [item["rank"] for item in second["Items"]] == [4]
    assert "LastEvaluatedKey" not in second

    backwards = scores_table.query(**dict(request, ScanIndexForward=False, Limit=None))
    assert [item["rank"] for item in backwards["Items"]] == [4, 3, 2, 1]


def test_query_refuses_a_zero_limit(scores_table):
    scores_table.put_item(Item=dict(group="g", rank=1))
    with pytest.raises(ArgumentError):
        scores_table.query(
            KeyConditionExpression="#g = :g",
            ExpressionAttributeNames={"#g": "group"},
            ExpressionAttributeValues={":g": "g"},
            Limit=0,
        )


def test_query_errors_look_like_client_errors(scores_table):
    with pytest.raises(ClientError) as ce_info:
        scores_table.query(KeyConditionExpression="team = :t", ExpressionAttributeValues={":t": 1})
    assert ce_info.value.response["Error"] == dict(
        Code="ValidationException", Message="Query condition missed key schema element: group"
    )


def test_scan_responses(scores_table):
    for rank in range(5):
        scores_table.put_item(Item=dict(group="g", rank=rank, player="p", points=rank))
    first = scores_table.scan(IndexName="by_player", Limit=3)
    assert first["Count"] == 3
    assert first["LastEvaluatedKey"] == dict(group="g", rank=2, player="p", points=2)
    rest = scores_table.scan(IndexName="by_player", ExclusiveStartKey=first["LastEvaluatedKey"])
    assert [item["rank"] for item in rest["Items"]] == [3, 4]
    assert "LastEvaluatedKey" not in rest
    with pytest.raises(ArgumentError):
        scores_table.scan(Segment=1)


def test_batch_writer_flushes_in_chunks_and_on_exit(scores_table):
    with scores_table.batch_writer() as writer:
        for rank in range(30):
            writer.put_item(Item=dict(group="g", rank=rank))
        assert len(scores_table.store.items("scores")) == 25
        writer.delete_item(Key=dict(group="g", rank=0))
    assert len(scores_table.store.items("scores")) == 29


def test_batch_writer_overwrites_by_keys(scores_table):
    with scores_table.batch_writer(overwrite_by_pkeys=["group", "rank"]) as writer:
        writer.put_item(Item=dict(group="g", rank=1, v=1))
        writer.put_item(Item=dict(group="g", rank=1, v=2))
        assert len(writer._buffer) == 1
    assert scores_table.get_item(Key=dict(group="g", rank=1))["Item"]["v"] == 2


def test_batch_get_item_across_tables():
    dynamodb = MemoryDynamoDB()
    dynamodb.Table("a").put_item(Item=dict(id="1"))
    ranked = dynamodb.define_table("b", KeySchema("h", "r"))
    ranked.put_item(Item=dict(h="x", r=1))
    response = dynamodb.batch_get_item(
        RequestItems=dict(
            a=dict(Keys=[dict(id="1"), dict(id="2")]), b=dict(Keys=[dict(h="x", r=1)])
        )
    )
    assert response == dict(
        Responses=dict(a=[dict(id="1")], b=[dict(h="x", r=1)]), UnprocessedKeys=dict()
    )


def test_batch_get_item_rejects_duplicates():
    dynamodb = MemoryDynamoDB()
    with pytest.raises(DuplicateKeyError):
        dynamodb.batch_get_item(RequestItems=dict(a=dict(Keys=[dict(id="1"), dict(id="1")])))


def test_batch_write_item():
    dynamodb = MemoryDynamoDB(
        default_schema=KeySchema("pk", secondary_indexes=dict(by_kind=SecondaryIndex("kind")))
    )
    dynamodb.Table("t").put_item(Item=dict(pk="gone"))
    assert dynamodb.batch_write_item(
        RequestItems=dict(
            t=[
                dict(PutRequest=dict(Item=dict(pk="new", kind="k"))),
                dict(DeleteRequest=dict(Key=dict(pk="gone"))),
            ]
        )
    ) == dict(UnprocessedItems=dict())
    assert dynamodb.Table("t").scan(IndexName="by_kind")["Items"] == [dict(pk="new", kind="k")]
    assert dynamodb.item_key("t", dict(pk="new", kind="k")) == dict(pk="new")
