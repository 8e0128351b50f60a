__all__ = [
    "AsyncDeferredValue",
    "AsyncDispatcher",
    "AsyncKeyLoader",
]

import asyncio
import functools
import inspect
import logging
import typing

from asgiref.sync import sync_to_async

from strawberry_batchloader._app_settings import app_settings
from strawberry_batchloader._base import batch_logger, exceptions
from strawberry_batchloader._dataloaders.core.deferred import DeferredValue
from strawberry_batchloader._dataloaders.core.dispatcher import BaseDispatcher
from strawberry_batchloader._dataloaders.core.loader import KeyLoader

if typing.TYPE_CHECKING:
    from strawberry_batchloader._dataloaders.core.registry import PendingRequest

logger = logging.getLogger(__name__)


def _copy_outcome(future: asyncio.Future, deferred: DeferredValue) -> None:
    if future.cancelled():
        return
    error = deferred.exception()
    if error is not None:
        future.set_exception(error)
    else:
        future.set_result(deferred.result())


class AsyncDeferredValue[R](DeferredValue[R]):
    """A deferred value which can be awaited by asyncio resolvers."""

    def __await__(self) -> typing.Generator[typing.Any, None, R]:
        if not self.done():
            future = asyncio.get_running_loop().create_future()
            self.add_done_callback(functools.partial(_copy_outcome, future, self))
            return (yield from future)
        return self.result()


class AsyncDispatcher(BaseDispatcher):
    """
    Dispatcher of asyncio loaders.

    The first key of a loader schedules its flush with `loop.call_soon`, so the flush runs only after
    every resolver coroutine already queued in the current loop iteration had the chance to call `load`.
    """

    def __init__(self) -> None:
        super().__init__()
        self._handles: set[asyncio.Handle] = set()
        self._tasks: set[asyncio.Task] = set()

    def schedule(self, loader: "AsyncKeyLoader") -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop, `%s` loader waits for an explicit flush.", loader.tag)
            return
        handle: asyncio.Handle | None = None

        def start_flush() -> None:
            self._handles.discard(handle)
            task = loop.create_task(self.flush(loader))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

        handle = loop.call_soon(start_flush)
        self._handles.add(handle)
        logger.debug("Scheduled dispatch of `%s` loader.", loader.tag)

    async def flush(self, loader: "AsyncKeyLoader") -> None:
        batches = list(self._split(loader, loader.take_pending()))
        if batches:
            await asyncio.gather(*(self._dispatch_batch(loader, batch) for batch in batches))

    def close(self) -> None:
        for handle in self._handles:
            handle.cancel()
        self._handles.clear()
        for task in self._tasks:
            task.cancel()
        super().close()

    async def _dispatch_batch(self, loader: "AsyncKeyLoader", batch: list["PendingRequest"]) -> None:
        keys = [request.key for request in batch]
        logger.debug("Dispatching %d keys to `%s` loader.", len(keys), loader.tag)
        try:
            with batch_logger.record_batch(loader.tag, keys):
                results = await loader.call_batch_fn(keys)
        except asyncio.CancelledError:
            self._fail(loader, batch, exceptions.BatchCancelledError(f"Batch of `{loader.tag}` loader was cancelled."))
            raise
        except Exception as e:
            self._fail(loader, batch, e)
            return
        self._settle(loader, batch, results)


class AsyncKeyLoader[K: typing.Hashable, R](KeyLoader[K, R]):
    """
    Key loader for asyncio execution. Its deferred values are awaitable and its batch function
    may be a coroutine function. Plain batch functions run through `sync_to_async` (unless
    disabled by the `OFFLOAD_SYNC_BATCH_FUNCTIONS` setting), so they may use the Django ORM.

    EXAMPLE:
        async def get_products(ids: list[str]) -> list[Product | None]:
            products = {p.pk: p async for p in Product.objects.filter(pk__in=ids)}
            return [products.get(id_) for id_ in ids]

        catalog.register("product", get_products, loader_class=AsyncKeyLoader)

        @strawberry.field
        async def product(root: OrderItem, info: strawberry.Info) -> ProductType | None:
            return await current_scope().get_or_create("product").load(root.product_id)
    """

    dispatcher_class = AsyncDispatcher
    deferred_class = AsyncDeferredValue

    def load(self, key: K) -> AsyncDeferredValue[R]:
        return typing.cast(AsyncDeferredValue[R], super().load(key))

    def load_many(self, keys: typing.Iterable[K]) -> list[AsyncDeferredValue[R]]:
        return typing.cast(list[AsyncDeferredValue[R]], super().load_many(keys))

    def flush(self) -> typing.Awaitable[None]:
        return self.dispatcher.flush(self)

    async def call_batch_fn(self, keys: list[K]) -> typing.Sequence[R | BaseException]:
        if inspect.iscoroutinefunction(self.batch_fn):
            results = await self.batch_fn(keys)
        elif app_settings.LOADERS.OFFLOAD_SYNC_BATCH_FUNCTIONS:
            results = await sync_to_async(self.batch_fn, thread_sensitive=app_settings.LOADERS.THREAD_SENSITIVE)(keys)
        else:
            results = self.batch_fn(keys)
        if inspect.isawaitable(results):
            results = await results
        return self.process_results(keys, results)
