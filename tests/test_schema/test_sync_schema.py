import typing

import pytest

import strawberry_batchloader
from tests.app import factories, models
from tests.app.graphql.types import LoaderTag, catalog, schema

if typing.TYPE_CHECKING:
    from strawberry.types import ExecutionResult

ORDERS_QUERY = """
    {
        orders {
            id
            name
            items {
                id
                productId
                product {
                    productId
                    title
                }
            }
        }
    }
"""

# orders, one batch of order items, one batch of products
_ORDERS_QUERY_COUNT: int = 3


def run_query(query: str, variables: dict | None = None) -> "ExecutionResult":
    return schema.execute_sync(query, variable_values=variables)


def check_response_data(resp: "ExecutionResult", orders: typing.Iterable[models.Order]) -> None:
    assert resp.errors is None
    assert resp.data is not None
    data: list[dict] = resp.data["orders"]

    assert data == [
        {
            "id": order.pk,
            "name": order.name,
            "items": [
                {
                    "id": item.pk,
                    "productId": item.product_id,
                    "product": {
                        "productId": item.product.product_id,
                        "title": item.product.title,
                    },
                }
                for item in order.items.order_by("pk")
            ],
        }
        for order in sorted(orders, key=lambda o: o.pk)
    ]


@pytest.mark.django_db()
def test_sibling_resolvers_share_one_product_batch(django_assert_num_queries) -> None:
    order = factories.OrderFactory.create()
    for product_id in ["123", "234"]:
        factories.OrderItemFactory.create(order=order, product=factories.ProductFactory.create(product_id=product_id))

    with strawberry_batchloader.BatchLogger() as bl, django_assert_num_queries(_ORDERS_QUERY_COUNT):
        resp = run_query(ORDERS_QUERY)

    product_batches = bl.for_tag(LoaderTag.PRODUCT)
    assert product_batches.num_batches == 1
    assert product_batches.batches[0].keys == ["123", "234"]
    assert resp.data["orders"][0]["items"] == [
        {
            "id": item.pk,
            "productId": item.product_id,
            "product": {"productId": item.product_id, "title": f"title {item.product_id}"},
        }
        for item in order.items.order_by("pk")
    ]
    check_response_data(resp, [order])


@pytest.mark.django_db()
def test_nested_loaders_make_constant_number_of_queries(django_assert_num_queries) -> None:
    products = factories.ProductFactory.create_batch(4)
    orders = factories.OrderFactory.create_batch(5)
    for i, order in enumerate(orders):
        # orders share products, so the same product is requested by several items
        factories.OrderItemFactory.create(order=order, product=products[i % 4])
        factories.OrderItemFactory.create(order=order, product=products[(i + 1) % 4])

    with strawberry_batchloader.BatchLogger() as bl, django_assert_num_queries(_ORDERS_QUERY_COUNT):
        resp = run_query(ORDERS_QUERY)

    assert bl.duplicates == {}
    assert bl.for_tag(LoaderTag.ORDER_ITEMS).num_batches == 1
    assert bl.for_tag(LoaderTag.ORDER_ITEMS).batches[0].keys == [o.pk for o in orders]
    assert bl.for_tag(LoaderTag.PRODUCT).num_batches == 1
    assert sorted(bl.for_tag(LoaderTag.PRODUCT).batches[0].keys) == sorted(p.pk for p in products)
    check_response_data(resp, orders)


@pytest.mark.django_db()
def test_missing_product_resolves_to_null() -> None:
    factories.ProductFactory.create(product_id="123")
    resp = run_query(
        "query ($ids: [String!]!) { products(ids: $ids) { productId title } }",
        {"ids": ["123", "999", "123"]},
    )
    assert resp.errors is None
    assert resp.data == {
        "products": [
            {"productId": "123", "title": "title 123"},
            None,
            {"productId": "123", "title": "title 123"},
        ],
    }


@pytest.mark.django_db()
def test_each_operation_gets_its_own_scope() -> None:
    order = factories.OrderFactory.create(with_items=True)

    with strawberry_batchloader.BatchLogger() as bl:
        first = run_query(ORDERS_QUERY)
        second = run_query(ORDERS_QUERY)

    assert first.data == second.data
    # nothing is cached across operations
    assert bl.for_tag(LoaderTag.PRODUCT).num_batches == 2
    assert bl.for_tag(LoaderTag.ORDER_ITEMS).num_batches == 2
    assert bl.duplicates == {
        LoaderTag.ORDER_ITEMS: [order.pk],
        LoaderTag.PRODUCT: [item.product_id for item in order.items.order_by("pk")],
    }


@pytest.mark.django_db()
def test_no_scope_leaks_out_of_operation() -> None:
    run_query(ORDERS_QUERY)
    with pytest.raises(strawberry_batchloader.ScopeNotActiveError):
        strawberry_batchloader.current_scope()


def test_scope_extension_is_passed_as_class_bound_to_catalog() -> None:
    extension_classes = [ext for ext in schema.extensions if isinstance(ext, type)]
    assert len(extension_classes) == len(schema.extensions)
    (extension_class,) = extension_classes
    assert issubclass(extension_class, strawberry_batchloader.BatchLoaderScopeExtension)
    assert extension_class.catalog is catalog
    # every operation gets its own instance
    assert extension_class() is not extension_class()
    assert strawberry_batchloader.BatchLoaderScopeExtension.catalog is None
