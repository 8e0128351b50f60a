__all__ = [
    "BatchLoaderExecutionContext",
]

import typing

import graphql
import graphql_sync_dataloaders

from strawberry_batchloader._dataloaders.core.scope import scope_context_var


class BatchLoaderExecutionContext(graphql_sync_dataloaders.DeferredExecutionContext):
    """
    Execution context for synchronous schemas whose resolvers return values of `KeyLoader`s.

    The fields are executed as by `DeferredExecutionContext`. Once the synchronous pass is over,
    the pending keys of the current batch scope are dispatched, which settles the deferred fields,
    which may request further keys (nested fields), and so on until nothing is pending.
    """

    def execute_operation(self, *args, **kwargs) -> typing.Any:  # noqa: ANN401
        result = graphql.ExecutionContext.execute_operation(self, *args, **kwargs)
        scope = scope_context_var.get(None)
        if scope is not None:
            scope.dispatch_pending()
        if isinstance(result, graphql_sync_dataloaders.SyncFuture):
            if not result.done():
                raise RuntimeError("GraphQL deferred execution failed to complete.")
            return result.result()
        return result
