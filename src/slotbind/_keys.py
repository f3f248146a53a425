from __future__ import annotations

from typing import Annotated, Any, Generic, TypeVar, get_args, get_origin


T = TypeVar("T")

# Upper bound on the number of Ref levels a caller may ask for.
MAX_INDIRECTION = 50


class Ref(Generic[T]):
    """A mutable cell holding one value.

    Asking for ``Ref[Foo]`` instead of ``Foo`` hands out the canonical cell a
    context stores for ``Foo``; assigning to ``.value`` is then visible to every
    later resolution of ``Foo``.
    """

    __slots__ = ("value",)

    def __init__(self, value: T) -> None:
        self.value = value

    def __repr__(self) -> str:
        return f"Ref({self.value!r})"


def normalize_key(annotation: Any) -> tuple[Any, int]:
    """Strip every ``Ref[...]`` level from an annotation.

    Returns the base type and the number of levels removed.
    """
    depth = 0
    while True:
        origin = get_origin(annotation)
        if origin is Annotated:
            annotation = get_args(annotation)[0]
        elif origin is Ref:
            annotation = get_args(annotation)[0]
            depth += 1
        elif annotation is Ref:
            return Any, depth + 1
        else:
            return annotation, depth


def normalize_value(value: object) -> Ref[Any]:
    while isinstance(value, Ref):
        value = value.value
    return Ref(value)


def denormalize_value(cell: Ref[Any], depth: int) -> object:
    # Imported here to avoid a cycle with _errors, which renders keys.
    from ._errors import DenormalizationError

    if depth == 0:
        return cell.value
    if depth > MAX_INDIRECTION:
        raise DenormalizationError(type(cell.value), depth)

    out: object = cell
    for _ in range(depth - 1):
        out = Ref(out)
    return out


def type_name(tp: Any) -> str:
    key, depth = normalize_key(tp)
    if key is Any:
        name = "Any"
    elif isinstance(key, type):
        name = key.__name__
    else:
        name = repr(key)
    for _ in range(depth):
        name = f"Ref[{name}]"
    return name
