__all__ = [
    "LoaderCatalog",
    "LoaderDefinition",
    "ScopeRegistry",
    "batch_scope",
    "current_scope",
]

import contextlib
import contextvars
import dataclasses
import logging
import threading
import typing

from strawberry_batchloader._base import exceptions
from strawberry_batchloader._base.types import UNSET, MaybeUnset
from strawberry_batchloader._dataloaders.core.dispatcher import BaseDispatcher, Dispatcher
from strawberry_batchloader._dataloaders.core.loader import BatchFunction, KeyLoader

logger = logging.getLogger(__name__)

type BatchFunctionFactory = typing.Callable[["ScopeRegistry"], BatchFunction]

scope_context_var = contextvars.ContextVar["ScopeRegistry"]("batchloader_scope_context_var")


@dataclasses.dataclass(frozen=True)
class LoaderDefinition:
    """How to build the loader of one tag, once per scope."""

    tag: typing.Hashable
    batch_fn_factory: BatchFunctionFactory
    loader_class: type[KeyLoader] = KeyLoader
    options: dict[str, typing.Any] = dataclasses.field(default_factory=dict)

    def build(self, scope: "ScopeRegistry", dispatcher: BaseDispatcher) -> KeyLoader:
        return self.loader_class(
            self.batch_fn_factory(scope),
            tag=self.tag,
            dispatcher=dispatcher,
            **self.options,
        )


class LoaderCatalog:
    """
    Loader definitions known to the application, keyed by an explicit tag (a string or an enum member).
    Built once at startup and shared by every scope; holds no per-request state.

    Example:
    -------
        catalog = LoaderCatalog()

        @catalog.batch_function("product", loader_class=PKKeyLoader)
        def get_products(ids: list[str]) -> list[Product]:
            return list(Product.objects.filter(pk__in=ids))

    """

    def __init__(self) -> None:
        self._definitions: dict[typing.Hashable, LoaderDefinition] = {}

    def __contains__(self, tag: typing.Hashable) -> bool:
        return tag in self._definitions

    def __len__(self) -> int:
        return len(self._definitions)

    @property
    def tags(self) -> list[typing.Hashable]:
        return list(self._definitions)

    def get(self, tag: typing.Hashable) -> LoaderDefinition:
        try:
            return self._definitions[tag]
        except KeyError as e:
            raise exceptions.LoaderNotRegisteredError(tag=tag) from e

    def register_factory(
        self,
        tag: typing.Hashable,
        factory: BatchFunctionFactory,
        *,
        loader_class: type[KeyLoader] = KeyLoader,
        **options: typing.Any,  # noqa: ANN401
    ) -> LoaderDefinition:
        """Register a factory which receives the scope and returns the batch function for it."""
        if tag in self._definitions:
            raise exceptions.LoaderAlreadyRegisteredError(tag=tag)
        definition = LoaderDefinition(tag=tag, batch_fn_factory=factory, loader_class=loader_class, options=options)
        self._definitions[tag] = definition
        return definition

    def register(
        self,
        tag: typing.Hashable,
        batch_fn: BatchFunction,
        *,
        loader_class: type[KeyLoader] = KeyLoader,
        **options: typing.Any,  # noqa: ANN401
    ) -> LoaderDefinition:
        return self.register_factory(tag, lambda _scope: batch_fn, loader_class=loader_class, **options)

    def batch_function(
        self,
        tag: typing.Hashable,
        *,
        loader_class: type[KeyLoader] = KeyLoader,
        **options: typing.Any,  # noqa: ANN401
    ) -> typing.Callable[[BatchFunction], BatchFunction]:
        """Decorator version of `register`."""

        def decorator(batch_fn: BatchFunction) -> BatchFunction:
            self.register(tag, batch_fn, loader_class=loader_class, **options)
            return batch_fn

        return decorator


class ScopeRegistry:
    """
    Loaders of one top-level execution (one GraphQL operation), keyed by tag.

    Resolving the same tag always yields the same loader (and hence the same cache) within a scope.
    A new scope is created for every execution and dropped afterwards, so nothing is cached across requests.
    """

    def __init__(self, catalog: LoaderCatalog | None = None, *, context: typing.Any = None) -> None:  # noqa: ANN401
        self.catalog = catalog if catalog is not None else LoaderCatalog()
        self.context = context
        self._loaders: dict[typing.Hashable, KeyLoader] = {}
        self._dispatchers: dict[type[BaseDispatcher], BaseDispatcher] = {}
        self._lock = threading.RLock()
        self._closed: bool = False

    def __enter__(self) -> typing.Self:
        return self

    def __exit__(self, *args, **kwargs) -> None:
        self.close()

    def __contains__(self, tag: typing.Hashable) -> bool:
        return tag in self._loaders

    def __len__(self) -> int:
        return len(self._loaders)

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def loaders(self) -> dict[typing.Hashable, KeyLoader]:
        return dict(self._loaders)

    def get(self, tag: typing.Hashable) -> KeyLoader | None:
        return self._loaders.get(tag)

    def get_or_create(
        self,
        tag: typing.Hashable,
        batch_fn_factory: BatchFunctionFactory | None = None,
        *,
        loader_class: MaybeUnset[type[KeyLoader]] = UNSET,
        **options: typing.Any,  # noqa: ANN401
    ) -> KeyLoader:
        """
        Return the loader of `tag`, creating it on first use.
        Without `batch_fn_factory`, the loader is built from the catalog definition of the tag.
        """
        if self._closed:
            raise exceptions.ScopeClosedError(f"Cannot get the `{tag}` loader, the scope is already closed.")
        with self._lock:
            if tag in self._loaders:
                return self._loaders[tag]
            if batch_fn_factory is None:
                definition = self.catalog.get(tag)
            else:
                definition = LoaderDefinition(
                    tag=tag,
                    batch_fn_factory=batch_fn_factory,
                    loader_class=KeyLoader if loader_class is UNSET else loader_class,
                    options=options,
                )
            loader = definition.build(self, self._get_dispatcher(definition.loader_class))
            self._loaders[tag] = loader
        logger.debug("Created `%s` loader %r.", tag, loader)
        return loader

    def dispatch_pending(self) -> int:
        """
        End of the tick for synchronous loaders: flush them until no key is pending.
        Asyncio loaders dispatch on their own. Returns the number of flushes.
        """
        flushes = 0
        while True:
            sync_dispatchers = [d for d in self._dispatchers.values() if isinstance(d, Dispatcher)]
            round_flushes = sum(dispatcher.drain() for dispatcher in sync_dispatchers)
            if round_flushes == 0:
                return flushes
            flushes += round_flushes

    def close(self) -> None:
        """Reject whatever is still pending and refuse further use."""
        if self._closed:
            return
        self._closed = True
        for loader in self._loaders.values():
            loader.close(exceptions.BatchCancelledError("The scope was closed before the batch was dispatched."))
        for dispatcher in self._dispatchers.values():
            dispatcher.close()
        logger.debug("Closed scope with %d loaders.", len(self._loaders))

    def _get_dispatcher(self, loader_class: type[KeyLoader]) -> BaseDispatcher:
        dispatcher_class = loader_class.dispatcher_class
        if dispatcher_class not in self._dispatchers:
            self._dispatchers[dispatcher_class] = dispatcher_class()
        return self._dispatchers[dispatcher_class]


@contextlib.contextmanager
def batch_scope(catalog: LoaderCatalog | None = None, *, context: typing.Any = None) -> typing.Iterator[ScopeRegistry]:  # noqa: ANN401
    """Open a scope and make it the current one until the block exits."""
    scope = ScopeRegistry(catalog, context=context)
    token = scope_context_var.set(scope)
    try:
        yield scope
    finally:
        scope.close()
        scope_context_var.reset(token)


def current_scope() -> ScopeRegistry:
    try:
        return scope_context_var.get()
    except LookupError as e:
        raise exceptions.ScopeNotActiveError(
            "No batch scope is active. Add `BatchLoaderScopeExtension` to the schema or use `batch_scope()`.",
        ) from e
