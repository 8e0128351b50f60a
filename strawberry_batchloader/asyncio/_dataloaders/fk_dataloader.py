__all__ = [
    "AsyncFKKeyLoader",
]

import typing

from strawberry_batchloader._dataloaders.fk_dataloader import FKKeyLoader
from strawberry_batchloader.asyncio._dataloaders import core


class AsyncFKKeyLoader[K: typing.Hashable, R](FKKeyLoader[K, R], core.AsyncKeyLoader[K, list[R] | R | None]):
    """Asyncio loader for reversed FK relationship, see `FKKeyLoader`."""
