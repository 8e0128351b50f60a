__all__ = [
    "model_batch_function",
    "reverse_fk_batch_function",
]

import typing
from collections import defaultdict

import django.db.models

from strawberry_batchloader._base.utils import check_django_field_exists


def model_batch_function[M: django.db.models.Model](
    model: type[M],
    field: str = "pk",
) -> typing.Callable[[list[typing.Hashable]], list[M]]:
    """
    Batch function fetching `model` instances whose `field` is one of the keys, in no particular order.
    Meant for `PKKeyLoader`, which aligns the instances with the keys.
    """
    if field != "pk":
        check_django_field_exists(model, field)

    def load_fn(keys: list[typing.Hashable]) -> list[M]:
        return list(model.objects.filter(**{f"{field}__in": keys}).order_by())

    load_fn.__name__ = f"{model.__name__.lower()}_by_{field}"
    return load_fn


def reverse_fk_batch_function[M: django.db.models.Model](
    model: type[M],
    fk_field: str,
) -> typing.Callable[[list[typing.Hashable]], dict[typing.Hashable, list[M]]]:
    """
    Batch function fetching `model` instances pointing to the keys via the `fk_field` foreign key,
    grouped by the key. Meant for `FKKeyLoader`.
    """
    check_django_field_exists(model, fk_field)
    attname: str = model._meta.get_field(fk_field).attname  # noqa: SLF001

    def load_fn(keys: list[typing.Hashable]) -> dict[typing.Hashable, list[M]]:
        qs = model.objects.filter(**{f"{attname}__in": keys}).order_by("pk")
        ret: dict[typing.Hashable, list[M]] = defaultdict(list)
        for instance in qs:
            ret[getattr(instance, attname)].append(instance)
        return dict(ret)

    load_fn.__name__ = f"{model.__name__.lower()}_by_{attname}"
    return load_fn
