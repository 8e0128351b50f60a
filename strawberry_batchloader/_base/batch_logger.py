__all__ = [
    "BatchLogger",
]

import contextlib
import dataclasses
import time
import typing
from collections import defaultdict

# instruments currently listening, see `BatchLogger.__enter__`
_active_loggers: list["BatchLogger"] = []


@dataclasses.dataclass
class _BatchCall:
    """Log of a single batch function call."""

    tag: typing.Hashable
    keys: list[typing.Hashable]
    duration: float | None = None
    exception: BaseException | None = None

    @property
    def num_keys(self) -> int:
        return len(self.keys)


@dataclasses.dataclass
class _BatchCallGroup:
    """Log of a group of batch function calls."""

    batches: list["_BatchCall"] = dataclasses.field(default_factory=list)

    def __str__(self) -> str:
        return f"{self.num_batches} batches in {self.total_duration:.3f}s"

    @property
    def total_duration(self) -> float:
        """Total duration of all batch calls in seconds."""
        return sum(b.duration for b in self.batches if b.duration is not None)

    @property
    def num_batches(self) -> int:
        """Number of batch calls."""
        return len(self.batches)

    @property
    def duplicates(self) -> dict[typing.Hashable, list[typing.Hashable]]:
        """Keys which were sent to the batch function of the same loader more than once."""
        tag_to_key_counts: dict[typing.Hashable, dict[typing.Hashable, int]] = defaultdict(lambda: defaultdict(int))
        for batch in self.batches:
            for key in batch.keys:
                tag_to_key_counts[batch.tag][key] += 1
        ret = {
            tag: [key for key, count in key_counts.items() if count > 1]
            for tag, key_counts in tag_to_key_counts.items()
        }
        return {tag: keys for tag, keys in ret.items() if keys}

    def for_tag(self, tag: typing.Hashable) -> "_BatchCallGroup":
        """Batch calls of a single loader."""
        return _BatchCallGroup(batches=[b for b in self.batches if b.tag == tag])


@dataclasses.dataclass
class BatchLogger(_BatchCallGroup):
    """
    Records the batch function calls made by the dispatchers.
    This can be used as an instrumentation tool for performance testing during development.

    Example usage:
        with BatchLogger() as bl:
            # execute some queries using the key loaders
        print(bl.batches)
    """

    def __enter__(self) -> typing.Self:
        _active_loggers.append(self)
        return self

    def __exit__(self, *args, **kwargs) -> None:
        try:
            _active_loggers.remove(self)
        except ValueError:
            pass


@contextlib.contextmanager
def record_batch(tag: typing.Hashable, keys: list[typing.Hashable]) -> typing.Iterator[_BatchCall]:
    """Measure one batch function call and report it to every active `BatchLogger`."""
    current_batch = _BatchCall(tag=tag, keys=list(keys))
    start = time.monotonic()
    try:
        yield current_batch
    except BaseException as e:
        current_batch.exception = e
        raise
    finally:
        current_batch.duration = time.monotonic() - start
        for batch_logger in list(_active_loggers):
            batch_logger.batches.append(current_batch)
