import typing as ty
import itertools

T = ty.TypeVar("T")


def grouper_it(n: int, iterable: ty.Iterable[T]) -> ty.Iterable[ty.Iterable[T]]:
    """Lazily yields successive chunks of at most n elements"""
    it = iter(iterable)
    while True:
        chunk_it = itertools.islice(it, n)
        try:
            first_el = next(chunk_it)
        except StopIteration:
            return
        yield itertools.chain((first_el,), chunk_it)


def chunked(n: int, iterable: ty.Iterable[T]) -> ty.Iterable[ty.List[T]]:
    """grouper_it, but each chunk is a list you may traverse more than once"""
    return (list(chunk) for chunk in grouper_it(n, iterable))
