__all__ = [
    "DeferredValue",
]

import enum
import logging
import typing

import graphql_sync_dataloaders

from strawberry_batchloader._base import exceptions

logger = logging.getLogger(__name__)


class _State(enum.Enum):
    PENDING = "PENDING"
    RESOLVED = "RESOLVED"
    REJECTED = "REJECTED"


class DeferredValue[R](graphql_sync_dataloaders.SyncFuture):
    """
    A value which is not available yet. It is settled (resolved or rejected) exactly once.

    The loader keeps the producer side (`set_result`, `set_exception`) and hands the very same
    instance to every caller of `load` for a given key, who consume it via `result`, `exception`
    or `add_done_callback`. Done callbacks take no arguments, as those of `SyncFuture`.

    Being a `SyncFuture`, it can be returned from synchronous strawberry resolvers executed with
    a deferred execution context. It is intentionally not awaitable, graphql-core would treat
    it as a coroutine otherwise (see `AsyncDeferredValue` for asyncio resolvers).
    """

    def __init__(self) -> None:
        super().__init__()
        self._outcome_state: _State = _State.PENDING
        self._outcome_value: R | None = None
        self._outcome_error: BaseException | None = None
        self._done_callbacks: list[typing.Callable[[], None]] = []

    def __repr__(self) -> str:
        if self._outcome_state is _State.RESOLVED:
            return f"<{type(self).__name__} resolved={self._outcome_value!r}>"
        if self._outcome_state is _State.REJECTED:
            return f"<{type(self).__name__} rejected={self._outcome_error!r}>"
        return f"<{type(self).__name__} pending>"

    @classmethod
    def resolved(cls, value: R) -> typing.Self:
        deferred = cls()
        deferred.set_result(value)
        return deferred

    @classmethod
    def rejected(cls, error: BaseException) -> typing.Self:
        deferred = cls()
        deferred.set_exception(error)
        return deferred

    @classmethod
    def gather(cls, values: typing.Iterable["DeferredValue[R]"]) -> "DeferredValue[list[R]]":
        """
        Combine deferred values into one deferred list, keeping their order.
        The list is rejected with the error of the first member that gets rejected.
        """
        values = list(values)
        combined: DeferredValue[list[R]] = cls()
        if not values:
            combined.set_result([])
            return combined

        remaining = len(values)

        def on_member_done() -> None:
            nonlocal remaining
            if combined.done():
                return
            for value in values:
                if value.done() and value.exception() is not None:
                    combined.set_exception(value.exception())
                    return
            remaining -= 1
            if remaining == 0:
                combined.set_result([value.result() for value in values])

        for value in values:
            value.add_done_callback(on_member_done)
        return combined

    def done(self) -> bool:
        return self._outcome_state is not _State.PENDING

    def result(self) -> R:
        if self._outcome_state is _State.PENDING:
            raise exceptions.DeferredValueStateError("Deferred value is not settled yet.")
        if self._outcome_state is _State.REJECTED:
            raise self._outcome_error
        return self._outcome_value

    def exception(self) -> BaseException | None:
        if self._outcome_state is _State.PENDING:
            raise exceptions.DeferredValueStateError("Deferred value is not settled yet.")
        return self._outcome_error

    def add_done_callback(self, fn: typing.Callable[[], None]) -> None:
        if self.done():
            fn()
        else:
            self._done_callbacks.append(fn)

    def set_result(self, result: R) -> None:
        self._settle(_State.RESOLVED, value=result)

    def set_exception(self, exception: BaseException) -> None:
        self._settle(_State.REJECTED, error=exception)

    def cancel(self, error: BaseException | None = None) -> bool:
        """Reject the value with a cancellation error. Returns False if it was already settled."""
        if self.done():
            return False
        self.set_exception(error if error is not None else exceptions.BatchCancelledError("Load was cancelled."))
        return True

    def _settle(self, state: _State, value: R | None = None, error: BaseException | None = None) -> None:
        if self.done():
            raise exceptions.DeferredValueStateError(f"Deferred value is already settled: {self!r}")
        self._outcome_state = state
        self._outcome_value = value
        self._outcome_error = error
        callbacks, self._done_callbacks = self._done_callbacks, []
        for callback in callbacks:
            # siblings in the batch get settled even if a consumer fails
            try:
                callback()
            except Exception:
                logger.exception("Done callback %r of %r failed.", callback, self)
