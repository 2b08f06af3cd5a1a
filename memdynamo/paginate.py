import typing as ty
from copy import deepcopy
from logging import getLogger

from .types import Item

logger = getLogger(__name__)

LastEvaluatedCallback = ty.Optional[ty.Callable[[ty.Any], ty.Any]]


def yield_pages(
    operation: ty.Callable[..., dict],
    # a Table's query or scan, real or in-memory
    request: dict,
    last_evaluated_callback: LastEvaluatedCallback = None,
) -> ty.Iterable[dict]:
    """Calls the operation repeatedly, passing each response's
    LastEvaluatedKey back as the next request's ExclusiveStartKey, and
    yields every response unchanged.

    A `Limit` in the request is treated as a budget for the whole
    iteration rather than a page size: each subsequent request asks for
    only what remains, and iteration stops once the budget is spent.
    If you want to resume later from where that left you, provide
    last_evaluated_callback and it will receive the final
    LastEvaluatedKey (None if the results were exhausted).
    """
    request = deepcopy(request)
    # we modify the request as we paginate but you shouldn't have to deal with that.

    starting_limit = request.get("Limit") or 0
    limit = starting_limit
    exclusive_start: ty.Any = request.get("ExclusiveStartKey") or ""

    while exclusive_start is not None:
        assert limit >= 0
        if exclusive_start:
            request["ExclusiveStartKey"] = exclusive_start
        if limit:
            request["Limit"] = limit
        page_response = operation(**request)
        yield page_response
        exclusive_start = page_response.get("LastEvaluatedKey") or None
        if starting_limit:
            limit = limit - len(page_response.get("Items", []))
            if limit <= 0:
                if last_evaluated_callback:
                    last_evaluated_callback(exclusive_start)
                exclusive_start = None


def yield_items(
    table_func, request: dict, last_evaluated_callback: LastEvaluatedCallback = None
) -> ty.Iterable[Item]:
    """Every item from every page of a query or scan."""
    for page in yield_pages(table_func, request, last_evaluated_callback):
        logger.debug("Retrieved a page of results")
        yield from page.get("Items", [])
