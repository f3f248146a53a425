from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any, TypeVar

from ._context import Context


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Callable

    from ._errors import InjectionError

    T = TypeVar("T")

_default: Context | None = None
_default_lock = threading.Lock()


def default_context() -> Context:
    """Return the process-wide context, creating it on first use."""
    global _default  # noqa: PLW0603
    ctx = _default
    if ctx is not None:
        return ctx

    with _default_lock:
        if _default is None:
            logger.debug("Creating default context")
            _default = Context()
        return _default


def reset_default_context() -> None:
    """Drop the process-wide context; the next call creates a fresh one."""
    global _default  # noqa: PLW0603
    with _default_lock:
        _default = None


def child() -> Context:
    """Create a child of the default context.

    The child can use anything registered on the default context, but not the
    other way around.
    """
    return default_context().child()


def register(*items: object) -> None:
    default_context().register(*items)


def register_factory(factory: Callable[..., object], *, provides: Any = None) -> None:
    default_context().register_factory(factory, provides=provides)


def register_instance(key: Any, value: object) -> None:
    default_context().register_instance(key, value)


def inject(fn: Callable[..., T]) -> T:
    return default_context().inject(fn)


def try_inject(fn: Callable[..., object]) -> InjectionError | None:
    return default_context().try_inject(fn)


def resolve(tp: Any) -> Any:
    return default_context().resolve(tp)
