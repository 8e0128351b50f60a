import dataclasses
import typing


class BatchLoaderError(Exception):
    pass


@dataclasses.dataclass
class MisalignedBatchResultError(BatchLoaderError):
    tag: typing.Hashable
    expected: int
    received: int | None

    def __str__(self) -> str:
        if self.received is None:
            return f"Batch function of `{self.tag}` loader did not return a sequence of results."
        return (
            f"Batch function of `{self.tag}` loader returned {self.received} results "
            f"for {self.expected} keys. Results must be aligned with the keys."
        )


class ScopeClosedError(BatchLoaderError):
    pass


class BatchCancelledError(BatchLoaderError):
    pass


class ScopeNotActiveError(BatchLoaderError, LookupError):
    pass


@dataclasses.dataclass
class LoaderNotRegisteredError(BatchLoaderError, KeyError):
    tag: typing.Hashable

    def __str__(self) -> str:
        return f"No loader registered for `{self.tag}` and no batch function factory given."


@dataclasses.dataclass
class LoaderAlreadyRegisteredError(BatchLoaderError):
    tag: typing.Hashable

    def __str__(self) -> str:
        return f"Loader `{self.tag}` is already registered."


class DeferredValueStateError(BatchLoaderError):
    pass


@dataclasses.dataclass
class ModelFieldDoesNotExistError(BatchLoaderError):
    root_model: type
    full_field_path: str
    model: type
    field: str

    def __str__(self) -> str:
        msg = f"The `{self.full_field_path}` of `{self.root_model.__name__}` does not exist."
        if self.model != self.root_model:
            msg += f"\n\nProblem at: `{self.field}` field of `{self.model.__name__}`."
        return msg
