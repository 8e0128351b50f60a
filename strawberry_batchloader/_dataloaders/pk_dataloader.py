__all__ = [
    "PKKeyLoader",
]

import operator
import typing

from strawberry_batchloader._dataloaders.core.loader import KeyLoader


class ResultType(typing.Protocol):
    pk: typing.Any


class PKKeyLoader[K: typing.Hashable, R: ResultType](KeyLoader[K, R]):
    """
    Loader of objects by their primary key.

    The batch function may return the found objects in any order and leave out the missing ones,
    the results are aligned with the keys here. A key without an object resolves to `None`.
    Exception entries among the results are ignored, use an `FKKeyLoader` mapping to reject single keys.

    EXAMPLE - load Product of an OrderItem:
        1. DATALOADER DEFINITION
        @catalog.batch_function("product", loader_class=PKKeyLoader)
        def get_products(ids: list[str]) -> list[models.Product]:
            return list(models.Product.objects.filter(pk__in=ids))

        2. USAGE
        @strawberry.type
        class OrderItemType:
            product: ProductType | None = loader_field("product", key="product_id")

    """

    # attribute of the result objects holding the key
    pk_attr: typing.ClassVar[str] = "pk"

    @typing.override
    def process_results(self, keys: list[K], results: typing.Iterable[R]) -> list[R | None]:
        get_pk = operator.attrgetter(self.pk_attr)
        # unordered results cannot say which key an exception belongs to
        key__res: dict[typing.Hashable, R] = {
            self.cache.cache_key(get_pk(r)): r for r in results if not isinstance(r, BaseException)
        }
        # ensure results are ordered in the same way as input keys
        return [key__res.get(self.cache.cache_key(key)) for key in keys]
