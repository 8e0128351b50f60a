__all__ = [
    "BatchLoaderScopeExtension",
]

import typing

import strawberry.extensions

from strawberry_batchloader._dataloaders.core.scope import LoaderCatalog, batch_scope

if typing.TYPE_CHECKING:
    from strawberry.types import ExecutionContext


class BatchLoaderScopeExtension(strawberry.extensions.SchemaExtension):
    """
    Opens a fresh batch scope for every GraphQL operation, so loaders (and their caches)
    are shared by all resolvers of one operation and never across operations.

    The schema gets the extension class, strawberry instantiates it for every operation.
    Bind the loader catalog with `with_catalog` (or subclass and set `catalog`):
    >>> schema = strawberry.Schema(
    ...     query=Query,
    ...     extensions=[BatchLoaderScopeExtension.with_catalog(catalog)],
    ...     execution_context_class=BatchLoaderExecutionContext,  # only for synchronous execution
    ... )
    """

    catalog: typing.ClassVar[LoaderCatalog | None] = None

    def __init__(self, *, execution_context: "ExecutionContext | None" = None) -> None:
        if execution_context is not None:
            self.execution_context = execution_context

    @classmethod
    def with_catalog(cls, catalog: LoaderCatalog) -> type[typing.Self]:
        """Subclass of the extension building the loaders of `catalog`."""
        return typing.cast(type[typing.Self], type(cls.__name__, (cls,), {"catalog": catalog}))

    def on_operation(self) -> typing.Iterator[None]:
        context = getattr(self, "execution_context", None)
        with batch_scope(self.catalog, context=getattr(context, "context", None)):
            yield
