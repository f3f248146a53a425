from __future__ import annotations

from typing import Any

from ._keys import type_name


class InjectionError(RuntimeError):
    """Base class for every failure raised or returned by a context."""


class FunctionNotProvidedError(InjectionError, TypeError):
    def __init__(self, obj: object) -> None:
        super().__init__("inject/try_inject require a callable to be provided")
        self.obj = obj


class TypeNotRegisteredError(InjectionError, LookupError):
    """The requested type is not registered in the context or any ancestor.

    ``position`` is the 1-indexed parameter of the injected callable that asked
    for the type, and ``name`` that parameter's name. Both are filled in by the
    invocation that requested the type.
    """

    def __init__(self, tp: Any, position: int | None = None, name: str | None = None) -> None:
        super().__init__(tp)
        self.type = tp
        self.position = position
        self.name = name

    def __str__(self) -> str:
        arg = f"argument {self.position}" if self.position is not None else "argument"
        if self.name:
            arg = f"{arg} ('{self.name}')"
        return f"Injection of {arg} failed since the type '{type_name(self.type)}' has not been registered"


class CircularInjectError(InjectionError):
    """Lazy initialization of a type depends on itself.

    ``chain`` lists the types in the order their initialization started,
    ending with the type seen twice.
    """

    def __init__(self, chain: tuple[Any, ...]) -> None:
        super().__init__(chain)
        self.chain = chain

    def __str__(self) -> str:
        return "Injection cycle: " + " -> ".join(type_name(tp) for tp in self.chain)


class PanicInFunctionError(InjectionError):
    def __init__(self, cause: BaseException) -> None:
        super().__init__(cause)
        self.cause = cause

    def __str__(self) -> str:
        return f"Injected function raised {type(self.cause).__name__}: {self.cause}"


class DenormalizationError(InjectionError):
    def __init__(self, tp: Any, depth: int) -> None:
        super().__init__(tp, depth)
        self.type = tp
        self.depth = depth

    def __str__(self) -> str:
        return f"failed to denormalize value of type '{type_name(self.type)}' to {self.depth} levels of Ref"


class RegistrationError(InjectionError, ValueError):
    pass


class TypeMismatchError(InjectionError, TypeError):
    """A value registered or produced for a class key is not an instance of it."""
