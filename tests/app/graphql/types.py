import enum

import strawberry

from strawberry_batchloader import (
    BatchLoaderExecutionContext,
    BatchLoaderScopeExtension,
    FKKeyLoader,
    LoaderCatalog,
    PKKeyLoader,
    current_scope,
    loader_field,
    model_batch_function,
    reverse_fk_batch_function,
)
from tests.app import models


class LoaderTag(enum.StrEnum):
    PRODUCT = "product"
    ORDER_ITEMS = "order_items"


catalog = LoaderCatalog()
catalog.register(LoaderTag.PRODUCT, model_batch_function(models.Product), loader_class=PKKeyLoader)
catalog.register(
    LoaderTag.ORDER_ITEMS,
    reverse_fk_batch_function(models.OrderItem, "order"),
    loader_class=FKKeyLoader,
)


@strawberry.type
class ProductType:
    product_id: str
    title: str


@strawberry.type
class OrderItemType:
    id: int
    name: str
    product_id: str | None
    product: ProductType | None = loader_field(LoaderTag.PRODUCT, key="product_id")


@strawberry.type
class OrderType:
    id: int
    name: str
    items: list[OrderItemType] = loader_field(LoaderTag.ORDER_ITEMS, key="pk")


@strawberry.type
class Query:
    @strawberry.field()
    def orders(self) -> list[OrderType]:
        return list(models.Order.objects.order_by("pk"))

    @strawberry.field()
    def order(self, id: int) -> OrderType | None:  # noqa: A002
        return models.Order.objects.filter(pk=id).first()

    @strawberry.field()
    def products(self, ids: list[str]) -> list[ProductType | None]:
        loader = current_scope().get_or_create(LoaderTag.PRODUCT)
        return loader.deferred_class.gather(loader.load_many(ids))


schema = strawberry.Schema(
    query=Query,
    extensions=[BatchLoaderScopeExtension.with_catalog(catalog)],
    execution_context_class=BatchLoaderExecutionContext,
)
