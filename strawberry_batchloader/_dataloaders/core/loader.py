__all__ = [
    "BatchFunction",
    "KeyLoader",
]

import logging
import threading
import typing

from strawberry_batchloader._app_settings import app_settings
from strawberry_batchloader._base import exceptions
from strawberry_batchloader._base.types import UNSET, MaybeUnset
from strawberry_batchloader._dataloaders.core.cache import ResultCache
from strawberry_batchloader._dataloaders.core.deferred import DeferredValue
from strawberry_batchloader._dataloaders.core.dispatcher import BaseDispatcher, Dispatcher
from strawberry_batchloader._dataloaders.core.registry import KeyRegistry, PendingRequest

logger = logging.getLogger(__name__)

type BatchFunction[K, R] = typing.Callable[[list[K]], typing.Sequence[R | BaseException]]


class KeyLoader[K: typing.Hashable, R]:
    """
    Binds one batch function with its own key registry and result cache.

    `load` never blocks, it returns a deferred value right away. Keys requested until
    the dispatcher flushes the loader are passed to the batch function in a single call,
    in the order they were first requested. Every key is fetched at most once during
    the lifetime of the loader (i.e. of its scope).

    EXAMPLE:
        def get_products(ids: list[str]) -> list[Product | None]:
            products = {p.pk: p for p in Product.objects.filter(pk__in=ids)}
            return [products.get(id_) for id_ in ids]

        loader = KeyLoader(get_products, tag="product")
        first, second = loader.load("123"), loader.load("234")
        loader.flush()  # calls get_products(["123", "234"]) once
        first.result()
    """

    dispatcher_class: typing.ClassVar[type[BaseDispatcher]] = Dispatcher
    deferred_class: typing.ClassVar[type[DeferredValue]] = DeferredValue

    def __init__(
        self,
        batch_fn: BatchFunction[K, R],
        *,
        tag: typing.Hashable | None = None,
        dispatcher: BaseDispatcher | None = None,
        max_batch_size: MaybeUnset[int | None] = UNSET,
        cache_key_fn: typing.Callable[[K], typing.Hashable] | None = None,
    ) -> None:
        self.batch_fn = batch_fn
        self.tag = tag if tag is not None else getattr(batch_fn, "__name__", type(self).__name__)
        self.dispatcher = dispatcher if dispatcher is not None else self.dispatcher_class()
        if max_batch_size is UNSET:
            max_batch_size = app_settings.LOADERS.MAX_BATCH_SIZE
        self.max_batch_size: int | None = max_batch_size
        self.registry: KeyRegistry[K, R] = KeyRegistry()
        self.cache: ResultCache[K, R] = ResultCache(cache_key_fn=cache_key_fn)
        self._lock = threading.RLock()
        self._closed: bool = False

    def __repr__(self) -> str:
        return f"<{type(self).__name__} tag={self.tag!r} pending={len(self.registry)} cached={len(self.cache)}>"

    @property
    def closed(self) -> bool:
        return self._closed

    def load(self, key: K) -> DeferredValue[R]:
        if self._closed:
            return self.deferred_class.rejected(
                exceptions.ScopeClosedError(f"Cannot load `{key!r}`, the `{self.tag}` loader is closed."),
            )
        with self._lock:
            cached = self.cache.get(key)
            if cached is not None:
                return cached
            deferred = self.deferred_class()
            self.cache.put(key, deferred)
            needs_dispatch = self.registry.add(key, deferred)
        if needs_dispatch:
            self.dispatcher.schedule(self)
        return deferred

    def load_many(self, keys: typing.Iterable[K]) -> list[DeferredValue[R]]:
        return [self.load(key) for key in keys]

    def flush(self) -> typing.Any:  # noqa: ANN401
        """Dispatch the pending keys now instead of waiting for the end of the tick."""
        return self.dispatcher.flush(self)

    def take_pending(self) -> list[PendingRequest[K, R]]:
        with self._lock:
            return self.registry.drain()

    def process_results(
        self,
        keys: list[K],  # noqa: ARG002
        results: typing.Any,  # noqa: ANN401
    ) -> typing.Sequence[R | BaseException]:
        """
        Hook for subclasses to implement custom processing of the raw batch function results.
        The returned sequence must be aligned with `keys`.
        """
        return results

    def call_batch_fn(self, keys: list[K]) -> typing.Sequence[R | BaseException]:
        return self.process_results(keys, self.batch_fn(keys))

    def prime(self, key: K, value: R, force: bool = False) -> None:
        self.prime_many({key: value}, force)

    def prime_many(self, data: typing.Mapping[K, R], force: bool = False) -> None:
        """
        Populate the cache with the specified values.
        Keys which are still waiting for a dispatch are resolved right away and won't be sent to the batch function.
        """
        to_resolve: list[tuple[DeferredValue[R], R]] = []
        with self._lock:
            for key, value in data.items():
                pending = self.registry.discard(key, self.cache.cache_key)
                if pending is not None:
                    to_resolve.append((pending.deferred, value))
                    continue
                cached = self.cache.get(key)
                if cached is None or force:
                    self.cache.put(key, self.deferred_class.resolved(value))
        for deferred, value in to_resolve:
            deferred.set_result(value)

    def clear(self, key: K) -> None:
        """
        Forget the cached value of `key`, the next `load` fetches it again.
        A key which is still pending or in flight is kept, its callers share the upcoming result.
        """
        with self._lock:
            cached = self.cache.get(key)
            if cached is not None and cached.done():
                self.cache.delete(key)

    def clear_all(self) -> None:
        """Forget all settled values. Pending and in-flight keys are kept, see `clear`."""
        with self._lock:
            self.cache.clear_settled()

    def close(self, error: BaseException | None = None) -> None:
        """Reject every request still waiting for a dispatch. Later loads are rejected with `ScopeClosedError`."""
        self._closed = True
        if error is None:
            error = exceptions.BatchCancelledError(f"The `{self.tag}` loader was closed before its batch was dispatched.")
        pending = self.take_pending()
        if pending:
            logger.debug("Cancelling %d pending keys of `%s` loader.", len(pending), self.tag)
        for request in pending:
            request.deferred.cancel(error)
