__all__ = [
    "AsyncPKKeyLoader",
]

import typing

from strawberry_batchloader._dataloaders.pk_dataloader import PKKeyLoader, ResultType
from strawberry_batchloader.asyncio._dataloaders import core


class AsyncPKKeyLoader[K: typing.Hashable, R: ResultType](PKKeyLoader[K, R], core.AsyncKeyLoader[K, R]):
    """
    Asyncio loader of objects by their primary key.

    EXAMPLE - load Product of an OrderItem:
        @catalog.batch_function("product", loader_class=AsyncPKKeyLoader)
        async def get_products(ids: list[str]) -> list[models.Product]:
            return [p async for p in models.Product.objects.filter(pk__in=ids)]
    """
