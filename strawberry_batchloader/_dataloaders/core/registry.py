__all__ = [
    "KeyRegistry",
    "PendingRequest",
]

import dataclasses
import typing

if typing.TYPE_CHECKING:
    from strawberry_batchloader._dataloaders.core.deferred import DeferredValue


@dataclasses.dataclass(frozen=True, slots=True)
class PendingRequest[K: typing.Hashable, R]:
    """A key waiting for the next dispatch, together with the deferred value its callers hold."""

    key: K
    deferred: "DeferredValue[R]"


class KeyRegistry[K: typing.Hashable, R]:
    """
    Keys of one loader requested since its last dispatch, in the order they were first requested.
    """

    def __init__(self) -> None:
        self._queue: list[PendingRequest[K, R]] = []

    def __len__(self) -> int:
        return len(self._queue)

    def __bool__(self) -> bool:
        return bool(self._queue)

    def __iter__(self) -> typing.Iterator[PendingRequest[K, R]]:
        return iter(list(self._queue))

    @property
    def keys(self) -> list[K]:
        return [request.key for request in self._queue]

    def add(self, key: K, deferred: "DeferredValue[R]") -> bool:
        """
        Register a pending request.
        Returns True if it is the first one since the last dispatch, i.e. the loader needs scheduling.
        """
        needs_dispatch = not self._queue
        self._queue.append(PendingRequest(key=key, deferred=deferred))
        return needs_dispatch

    def discard(
        self,
        key: K,
        cache_key_fn: typing.Callable[[K], typing.Hashable] | None = None,
    ) -> PendingRequest[K, R] | None:
        """Remove the pending request of `key` (compared by `cache_key_fn`, if given) and return it."""
        if cache_key_fn is None:
            cache_key_fn = _identity
        wanted = cache_key_fn(key)
        for i, request in enumerate(self._queue):
            if cache_key_fn(request.key) == wanted:
                return self._queue.pop(i)
        return None

    def drain(self) -> list[PendingRequest[K, R]]:
        """Hand over all pending requests to the dispatcher, leaving the registry empty."""
        queue, self._queue = self._queue, []
        return queue


def _identity[K](key: K) -> K:
    return key
