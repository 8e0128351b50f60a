__all__ = [
    "loader_field",
    "loader_resolver",
]

import operator
import typing

import strawberry

from strawberry_batchloader._dataloaders.core.scope import current_scope

if typing.TYPE_CHECKING:
    from strawberry_batchloader._dataloaders.core.deferred import DeferredValue

type KeyGetter = str | typing.Callable[[typing.Any], typing.Any]


def get_key_getter(key: KeyGetter) -> typing.Callable[[typing.Any], typing.Any]:
    if callable(key):
        return key
    return operator.attrgetter(key)


def loader_resolver(
    tag: typing.Hashable,
    key: KeyGetter,
    *,
    many: bool = False,
) -> typing.Callable[[typing.Any, strawberry.Info], "DeferredValue | None"]:
    """
    Resolver loading the field value with the `tag` loader of the current batch scope.
    :param key: Attribute name of the parent object holding the key, or a callable taking the parent and returning it.
    :param many: The key getter returns an iterable of keys, the field resolves to the list of their values.
    """
    get_key = get_key_getter(key)

    # the first arg needs to be called 'root'
    def resolver(root: typing.Any, info: strawberry.Info) -> typing.Any:  # noqa: ANN401, ARG001
        key_value = get_key(root)
        if key_value is None:
            return None
        loader = current_scope().get_or_create(tag)
        if many:
            return loader.deferred_class.gather(loader.load_many(key_value))
        return loader.load(key_value)

    return resolver


def loader_field(
    tag: typing.Hashable,
    key: KeyGetter,
    *,
    many: bool = False,
    name: str | None = None,
    description: str | None = None,
    **kwargs,
) -> typing.Any:  # noqa: ANN401
    """
    A field resolved by a key loader, for schemas executed synchronously with `BatchLoaderExecutionContext`.

    Example:
    -------
        DEFINE THE STRAWBERRY TYPES AS:
            @strawberry.type
            class OrderItemType:
                product_id: str
                product: ProductType | None = loader_field("product", key="product_id")

            @strawberry.type
            class OrderType:
                items: list[OrderItemType] = loader_field("order_items", key="pk")

    """
    return strawberry.field(
        resolver=loader_resolver(tag, key, many=many),
        name=name,
        description=description,
        **kwargs,
    )
