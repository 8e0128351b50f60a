from ._app_settings import StrawberryBatchLoaderSettings

from ._base.batch_logger import BatchLogger
from ._base.extensions import BatchLoaderScopeExtension
from ._base.execution import BatchLoaderExecutionContext
from ._base.exceptions import (
    BatchLoaderError,
    MisalignedBatchResultError,
    ScopeClosedError,
    BatchCancelledError,
    ScopeNotActiveError,
    LoaderNotRegisteredError,
    LoaderAlreadyRegisteredError,
    DeferredValueStateError,
    ModelFieldDoesNotExistError,
)

from ._dataloaders.core import (
    DeferredValue,
    KeyRegistry,
    PendingRequest,
    ResultCache,
    Dispatcher,
    KeyLoader,
    BatchFunction,
    LoaderCatalog,
    LoaderDefinition,
    ScopeRegistry,
    batch_scope,
    current_scope,
)
from ._dataloaders.pk_dataloader import PKKeyLoader
from ._dataloaders.fk_dataloader import FKKeyLoader
from ._dataloaders.django import model_batch_function, reverse_fk_batch_function
from ._dataloaders.field import loader_field, loader_resolver
from .asyncio._dataloaders.core import AsyncDeferredValue, AsyncDispatcher, AsyncKeyLoader
from .asyncio._dataloaders.pk_dataloader import AsyncPKKeyLoader
from .asyncio._dataloaders.fk_dataloader import AsyncFKKeyLoader
from .asyncio._dataloaders.field import async_loader_field, async_loader_resolver
