__all__ = [
    "FKKeyLoader",
]

import typing

from strawberry_batchloader._dataloaders.core.loader import BatchFunction, KeyLoader


class FKKeyLoader[K: typing.Hashable, R](KeyLoader[K, list[R] | R | None]):
    """
    Loader for reversed FK relationship (e.g., Items of an Order).

    The batch function returns a mapping of the parent key to the list of its children.
    Parents without children get an empty list (or `None` with `one_to_one=True`).
    An exception in place of the list rejects only that key.

    WARNING: This loader fetches *all* related objects for a given list of parent objects.

    EXAMPLE - load items of an order:
        FOR THE FOLLOWING DJANGO MODEL:
            class Order(models.Model):
                ...

            class OrderItem(models.Model):
                order = models.ForeignKey("Order", related_name="items", ...)

        1. DATALOADER DEFINITION
        catalog.register("order_items", reverse_fk_batch_function(models.OrderItem, "order"), loader_class=FKKeyLoader)

        2. USAGE
        @strawberry.type
        class OrderType:
            items: list[OrderItemType] = loader_field("order_items", key="pk")
    """

    def __init__(
        self,
        batch_fn: BatchFunction[K, typing.Any],
        *,
        one_to_one: bool = False,
        **kwargs: typing.Any,  # noqa: ANN401
    ) -> None:
        self.one_to_one = one_to_one
        super().__init__(batch_fn, **kwargs)

    @typing.override
    def process_results(self, keys: list[K], results: typing.Mapping[K, list[R]]) -> list[list[R]] | list[R | None]:
        if self.one_to_one:
            return [_first(results.get(key)) for key in keys]
        return [results.get(key, []) for key in keys]


def _first[R](children: list[R] | BaseException | None) -> R | BaseException | None:
    if isinstance(children, BaseException):
        return children
    return children[0] if children else None
