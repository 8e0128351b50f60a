__all__ = [
    "StrawberryBatchLoaderSettings",
    "app_settings",
]

import typing

import pydantic
from django.conf import settings as django_settings

SETTINGS_NAME: str = "STRAWBERRY_BATCHLOADER"

_MAX_BATCH_SIZE_ADAPTER = pydantic.TypeAdapter(pydantic.PositiveInt | None)
_BOOL_ADAPTER = pydantic.TypeAdapter(pydantic.StrictBool)


class LoadersSettings(typing.TypedDict):
    """Settings of the key loaders."""

    # The maximum number of keys passed to a single batch function call. `None` means unbounded.
    MAX_BATCH_SIZE: typing.NotRequired[int | None]
    # Run plain (non-async) batch functions of async loaders in a worker thread.
    OFFLOAD_SYNC_BATCH_FUNCTIONS: typing.NotRequired[bool]
    THREAD_SENSITIVE: typing.NotRequired[bool]


class StrawberryBatchLoaderSettings(typing.TypedDict):
    """Settings of the Strawberry batchloader app."""

    LOADERS: typing.NotRequired[LoadersSettings]


def _global_settings() -> StrawberryBatchLoaderSettings:
    # the engine is usable without Django, defaults apply then
    if not django_settings.configured:
        return {}
    return getattr(django_settings, SETTINGS_NAME, {})


class AppLoadersSettings:
    @property
    def MAX_BATCH_SIZE(self) -> int | None:  # noqa: N802
        return _MAX_BATCH_SIZE_ADAPTER.validate_python(self._settings.get("MAX_BATCH_SIZE"))

    @property
    def OFFLOAD_SYNC_BATCH_FUNCTIONS(self) -> bool:  # noqa: N802
        return _BOOL_ADAPTER.validate_python(self._settings.get("OFFLOAD_SYNC_BATCH_FUNCTIONS", True))

    @property
    def THREAD_SENSITIVE(self) -> bool:  # noqa: N802
        return _BOOL_ADAPTER.validate_python(self._settings.get("THREAD_SENSITIVE", True))

    @property
    def _settings(self) -> LoadersSettings:
        return _global_settings().get("LOADERS", {})


class AppSettings:
    @property
    def _settings(self) -> StrawberryBatchLoaderSettings:
        return _global_settings()

    @property
    def LOADERS(self) -> AppLoadersSettings:  # noqa: N802
        return AppLoadersSettings()


app_settings = AppSettings()
