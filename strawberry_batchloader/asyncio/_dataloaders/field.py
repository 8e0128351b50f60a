__all__ = [
    "async_loader_field",
    "async_loader_resolver",
]

import typing

import strawberry

from strawberry_batchloader._dataloaders.core.scope import current_scope
from strawberry_batchloader._dataloaders.field import KeyGetter, get_key_getter
from strawberry_batchloader.asyncio._dataloaders.core import AsyncKeyLoader


def async_loader_resolver(
    tag: typing.Hashable,
    key: KeyGetter,
    *,
    many: bool = False,
) -> typing.Callable[[typing.Any, strawberry.Info], typing.Awaitable[typing.Any]]:
    """Async version of `loader_resolver`. The `tag` loader must be an `AsyncKeyLoader`."""
    get_key = get_key_getter(key)

    async def resolver(root: typing.Any, info: strawberry.Info) -> typing.Any:  # noqa: ANN401, ARG001
        key_value = get_key(root)
        if key_value is None:
            return None
        loader = current_scope().get_or_create(tag)
        if not isinstance(loader, AsyncKeyLoader):
            raise TypeError(f"The `{tag}` loader is not an `{AsyncKeyLoader.__name__}`, it cannot be awaited.")
        if many:
            return await loader.deferred_class.gather(loader.load_many(key_value))
        return await loader.load(key_value)

    return resolver


def async_loader_field(
    tag: typing.Hashable,
    key: KeyGetter,
    *,
    many: bool = False,
    name: str | None = None,
    description: str | None = None,
    **kwargs,
) -> typing.Any:  # noqa: ANN401
    """A field resolved by an asyncio key loader, see `loader_field`."""
    return strawberry.field(
        resolver=async_loader_resolver(tag, key, many=many),
        name=name,
        description=description,
        **kwargs,
    )
