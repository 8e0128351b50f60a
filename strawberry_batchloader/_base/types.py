import typing


class _UNSET:
    """Marks an option that was not passed at all, as opposed to an explicit `None`."""

    __instance: typing.Self | None = None

    def __new__(cls: type[typing.Self]) -> typing.Self:
        if cls.__instance is None:
            cls.__instance = super().__new__(cls)
        return cls.__instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET = _UNSET()

type MaybeUnset[T] = T | _UNSET
