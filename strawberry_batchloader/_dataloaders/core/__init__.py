from .deferred import DeferredValue
from .registry import KeyRegistry, PendingRequest
from .cache import ResultCache
from .dispatcher import BaseDispatcher, Dispatcher
from .loader import BatchFunction, KeyLoader
from .scope import LoaderCatalog, LoaderDefinition, ScopeRegistry, batch_scope, current_scope
