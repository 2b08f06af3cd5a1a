import os

MAX_UPDATE_BYTES = int(os.environ.get("MEMDYNAMO_MAX_UPDATE_BYTES", 380_000))
# the service caps an item at 400 KB; this leaves headroom for the request envelope.

BATCH_GET_SIZE = int(os.environ.get("MEMDYNAMO_BATCH_GET_SIZE", 100))
# BatchGetItem accepts at most 100 keys per request.

BATCH_WRITE_SIZE = int(os.environ.get("MEMDYNAMO_BATCH_WRITE_SIZE", 25))
# BatchWriteItem accepts at most 25 requests.

DEFAULT_ITEM_NAME = "Item"
DEFAULT_HASH_KEY_NAME = "id"
