__all__ = [
    "BaseDispatcher",
    "Dispatcher",
]

import abc
import collections.abc
import itertools
import logging
import typing

from strawberry_batchloader._base import batch_logger, exceptions

if typing.TYPE_CHECKING:
    from strawberry_batchloader._dataloaders.core.loader import KeyLoader
    from strawberry_batchloader._dataloaders.core.registry import PendingRequest

logger = logging.getLogger(__name__)


class BaseDispatcher(abc.ABC):
    """
    Decides when the pending keys of a loader are flushed into its batch function
    and distributes the results back to the waiting deferred values.
    """

    def __init__(self) -> None:
        self._closed: bool = False

    @property
    def closed(self) -> bool:
        return self._closed

    @abc.abstractmethod
    def schedule(self, loader: "KeyLoader") -> None:
        """Called by the loader when its first key since the last dispatch is registered."""
        raise NotImplementedError  # pragma: nocover

    @abc.abstractmethod
    def flush(self, loader: "KeyLoader") -> typing.Any:  # noqa: ANN401
        """Dispatch all keys pending in the loader right now."""
        raise NotImplementedError  # pragma: nocover

    def close(self) -> None:
        self._closed = True

    @staticmethod
    def _split(
        loader: "KeyLoader",
        requests: list["PendingRequest"],
    ) -> typing.Iterator[list["PendingRequest"]]:
        if not requests:
            return
        if loader.max_batch_size is None:
            yield requests
            return
        for chunk in itertools.batched(requests, loader.max_batch_size):
            yield list(chunk)

    @staticmethod
    def _settle(
        loader: "KeyLoader",
        batch: list["PendingRequest"],
        results: typing.Any,  # noqa: ANN401
    ) -> None:
        if isinstance(results, str | bytes) or not isinstance(results, collections.abc.Sequence):
            received = None
        else:
            received = len(results)
        if received != len(batch):
            error = exceptions.MisalignedBatchResultError(tag=loader.tag, expected=len(batch), received=received)
            logger.warning("%s", error)
            BaseDispatcher._fail(loader, batch, error)
            return

        for request, result in zip(batch, results, strict=True):
            if request.deferred.done():
                # cancelled or primed in the meantime
                continue
            if isinstance(result, BaseException):
                request.deferred.set_exception(result)
            else:
                request.deferred.set_result(result)

    @staticmethod
    def _fail(
        loader: "KeyLoader",
        batch: list["PendingRequest"],
        error: BaseException,
    ) -> None:
        logger.debug("Batch of `%s` loader failed for %d keys: %r", loader.tag, len(batch), error)
        for request in batch:
            if not request.deferred.done():
                request.deferred.set_exception(error)


class Dispatcher(BaseDispatcher):
    """
    Dispatcher of synchronous loaders.

    Flushes are queued by `schedule` and run by `drain`, which the host calls once the current
    synchronous pass of the execution is over. Values settled during a flush may trigger further
    loads (nested fields); `drain` keeps going until nothing is scheduled.
    """

    def __init__(self) -> None:
        super().__init__()
        self._scheduled: list["KeyLoader"] = []

    @property
    def scheduled(self) -> list["KeyLoader"]:
        return list(self._scheduled)

    def schedule(self, loader: "KeyLoader") -> None:
        if loader not in self._scheduled:
            logger.debug("Scheduling dispatch of `%s` loader.", loader.tag)
            self._scheduled.append(loader)

    def flush(self, loader: "KeyLoader") -> None:
        if loader in self._scheduled:
            self._scheduled.remove(loader)
        for batch in self._split(loader, loader.take_pending()):
            self._dispatch_batch(loader, batch)

    def drain(self) -> int:
        """Flush scheduled loaders until there are none left. Returns the number of flushes."""
        flushes = 0
        while self._scheduled:
            self.flush(self._scheduled[0])
            flushes += 1
        return flushes

    def close(self) -> None:
        self._scheduled.clear()
        super().close()

    def _dispatch_batch(self, loader: "KeyLoader", batch: list["PendingRequest"]) -> None:
        keys = [request.key for request in batch]
        logger.debug("Dispatching %d keys to `%s` loader.", len(keys), loader.tag)
        try:
            with batch_logger.record_batch(loader.tag, keys):
                results = loader.call_batch_fn(keys)
        except Exception as e:
            self._fail(loader, batch, e)
            return
        self._settle(loader, batch, results)
