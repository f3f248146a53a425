"""Type-indexed value registry with injection by parameter annotation.

This package is an alternative to global variables: register values, classes
or factory functions on a `Context`, then ask for them by declaring a function
whose parameters are annotated with the types you want. Factories (and
``on_injection`` hooks) run lazily, at most once, with their own parameters
injected. During tests a child context can override anything with mocks.

Exports:
- `Context`: the registry; `child()` creates a context that falls back to it.
- `Ref`: ask for ``Ref[Foo]`` instead of ``Foo`` to get the mutable cell holding it.
- `inject`/`try_inject`/`register`/...: the same operations on a process-wide
  default context.
- The `InjectionError` hierarchy returned by ``try_inject`` and raised by ``inject``.
"""

from ._context import HOOK_NAME, Context
from ._errors import (
    CircularInjectError,
    DenormalizationError,
    FunctionNotProvidedError,
    InjectionError,
    PanicInFunctionError,
    RegistrationError,
    TypeMismatchError,
    TypeNotRegisteredError,
)
from ._globals import (
    child,
    default_context,
    inject,
    register,
    register_factory,
    register_instance,
    reset_default_context,
    resolve,
    try_inject,
)
from ._keys import MAX_INDIRECTION, Ref


__all__ = [
    "HOOK_NAME",
    "MAX_INDIRECTION",
    "CircularInjectError",
    "Context",
    "DenormalizationError",
    "FunctionNotProvidedError",
    "InjectionError",
    "PanicInFunctionError",
    "Ref",
    "RegistrationError",
    "TypeMismatchError",
    "TypeNotRegisteredError",
    "child",
    "default_context",
    "inject",
    "register",
    "register_factory",
    "register_instance",
    "reset_default_context",
    "resolve",
    "try_inject",
]
