__all__ = [
    "ResultCache",
]

import typing

if typing.TYPE_CHECKING:
    from strawberry_batchloader._dataloaders.core.deferred import DeferredValue


class ResultCache[K: typing.Hashable, R]:
    """
    Memo table of one loader, living as long as the loader's scope.

    Stores the deferred values themselves, so a key which is still in flight
    is served the same handle as the caller that requested it first.
    """

    def __init__(self, cache_key_fn: typing.Callable[[K], typing.Hashable] | None = None) -> None:
        self._cache_key_fn = cache_key_fn
        self._entries: dict[typing.Hashable, "DeferredValue[R]"] = {}

    def __contains__(self, key: K) -> bool:
        return self.cache_key(key) in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def cache_key(self, key: K) -> typing.Hashable:
        if self._cache_key_fn is None:
            return key
        return self._cache_key_fn(key)

    def get(self, key: K) -> "DeferredValue[R] | None":
        return self._entries.get(self.cache_key(key))

    def put(self, key: K, deferred: "DeferredValue[R]") -> None:
        self._entries[self.cache_key(key)] = deferred

    def delete(self, key: K) -> None:
        self._entries.pop(self.cache_key(key), None)

    def clear(self) -> None:
        self._entries.clear()

    def clear_settled(self) -> None:
        self._entries = {cache_key: d for cache_key, d in self._entries.items() if not d.done()}
