import pydantic
import pytest

from strawberry_batchloader._app_settings import app_settings


def test_defaults(settings) -> None:
    del settings.STRAWBERRY_BATCHLOADER
    assert app_settings.LOADERS.MAX_BATCH_SIZE is None
    assert app_settings.LOADERS.OFFLOAD_SYNC_BATCH_FUNCTIONS is True
    assert app_settings.LOADERS.THREAD_SENSITIVE is True


def test_override(settings) -> None:
    settings.STRAWBERRY_BATCHLOADER = {
        "LOADERS": {
            "MAX_BATCH_SIZE": 50,
            "OFFLOAD_SYNC_BATCH_FUNCTIONS": False,
            "THREAD_SENSITIVE": False,
        },
    }
    assert app_settings.LOADERS.MAX_BATCH_SIZE == 50
    assert app_settings.LOADERS.OFFLOAD_SYNC_BATCH_FUNCTIONS is False
    assert app_settings.LOADERS.THREAD_SENSITIVE is False


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("MAX_BATCH_SIZE", 0),
        ("MAX_BATCH_SIZE", -1),
        ("OFFLOAD_SYNC_BATCH_FUNCTIONS", "yes"),
    ],
)
def test_invalid_value_raises(settings, name: str, value: object) -> None:
    settings.STRAWBERRY_BATCHLOADER = {"LOADERS": {name: value}}
    with pytest.raises(pydantic.ValidationError):
        getattr(app_settings.LOADERS, name)
