from __future__ import annotations

import inspect
import logging
import typing
from typing import TYPE_CHECKING, Any, Protocol, TypeVar, cast, get_type_hints, overload

from ._errors import (
    FunctionNotProvidedError,
    InjectionError,
    PanicInFunctionError,
    RegistrationError,
    TypeMismatchError,
    TypeNotRegisteredError,
)
from ._keys import Ref, denormalize_value, normalize_key, normalize_value, type_name
from ._store import Entry, EntryStore


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Callable

    T = TypeVar("T")

    Chain = tuple[Any, ...]

# Method looked up on a registered value (or a factory's result) and run once,
# with injected arguments, the first time its type is asked for.
HOOK_NAME = "on_injection"


class Context:
    """Type-indexed registry of values.

    - register values, classes and factories against their types
    - inject registered values into any callable by its parameter annotations
    - lazy, at-most-once initialization of factories and ``on_injection`` hooks
    - child contexts that fall back to their parent.
    """

    def __init__(self, *, _parent: Context | None = None) -> None:
        self._parent = _parent
        self._store = EntryStore()
        self._invoker = Invoker(self)
        # Producers and injected callables may ask for the context itself.
        self._store.put(Context, Entry(Context, self))

    @property
    def parent(self) -> Context | None:
        return self._parent

    def child(self) -> Context:
        """Create a context that can use everything registered here.

        Registrations made on the child are not visible to this context.
        """
        return Context(_parent=self)

    def register(self, *items: object) -> None:
        """Register values, classes or factory functions.

        Example:
          ctx.register(Config(debug=True), Database)
          ctx.register(make_cache)  # keyed on make_cache's return annotation

        A class or function is run lazily, the first time its type is asked for,
        with its own parameters injected. Registering a type again replaces the
        previous registration.
        """
        for item in items:
            if isinstance(item, Ref):
                value = normalize_value(item).value
                self.register_instance(type(value), value)
            elif inspect.isclass(item):
                self.register_factory(item, provides=item)
            elif inspect.isroutine(item):
                self.register_factory(item)
            else:
                self.register_instance(type(item), item)

    def register_factory(self, factory: Callable[..., object], *, provides: Any = None) -> None:
        """Register a factory for ``provides`` (default: its return annotation)."""
        if not callable(factory):
            msg = f"Factory {factory!r} is not callable"
            raise RegistrationError(msg)

        if provides is None:
            provides = _return_annotation(factory)

        key, _ = normalize_key(provides)

        def producer(chain: Chain) -> object:
            value = normalize_value(self._invoker.call(factory, chain)).value
            _validate_instance(key, value)
            return self._run_hook(key, value, chain)

        self._store.put(key, Entry(key, producer=producer))
        logger.debug("Registered factory %r for %s", factory, type_name(key))

    def register_instance(self, key: Any, value: object) -> None:
        """Register a value under an explicit type key.

        Use this for interfaces and base classes, or to register a callable as
        a plain value.
        """
        key, _ = normalize_key(key)
        value = normalize_value(value).value
        _validate_instance(key, value)

        if _find_hook(value) is not None:
            entry = Entry(key, value, producer=lambda chain: self._run_hook(key, value, chain))
        else:
            entry = Entry(key, value)

        self._store.put(key, entry)
        logger.debug("Registered instance of %s", type_name(key))

    def inject(self, fn: Callable[..., T]) -> T:
        """Call ``fn`` with its parameters injected and return its result.

        Raises the InjectionError describing what went wrong; ``fn`` is not
        called when one of its parameters cannot be resolved.
        """
        return self._invoker.call(fn, ())

    def try_inject(self, fn: Callable[..., object]) -> InjectionError | None:
        """Like `inject`, but return the error instead of raising it."""
        try:
            self._invoker.call(fn, ())
        except InjectionError as e:
            return e
        return None

    @overload
    def resolve(self, tp: type[T]) -> T: ...

    @overload
    def resolve(self, tp: Any) -> Any: ...

    def resolve(self, tp: Any) -> Any:
        """Resolve a single type, e.g. ``ctx.resolve(Ref[Config])``."""
        return self._resolve((), tp)

    def _resolve(self, chain: Chain, tp: Any) -> object:
        key, depth = normalize_key(tp)

        ctx = self
        entry = ctx._store.get(key)
        while entry is None:
            if ctx._parent is None:
                raise TypeNotRegisteredError(key)
            ctx = ctx._parent
            entry = ctx._store.get(key)

        cell = entry.realize(chain)
        return denormalize_value(cell, depth)

    def _run_hook(self, key: Any, value: object, chain: Chain) -> object:
        hook = _find_hook(value)
        if hook is None:
            return value

        replaced = self._invoker.call(hook, chain)
        if replaced is None:
            return value
        _validate_instance(key, replaced)
        return replaced


class Invoker:
    """Calls a function with every parameter resolved from a context."""

    def __init__(self, context: Context) -> None:
        self._context = context

    def call(self, fn: Callable[..., T], chain: Chain) -> T:
        if not callable(fn):
            raise FunctionNotProvidedError(fn)

        sig = _signature(fn)

        hints = _get_type_hints(fn)
        args: list[Any] = []
        kwargs: dict[str, Any] = {}

        for position, (name, p) in enumerate(sig.parameters.items(), start=1):
            if p.kind in (p.VAR_POSITIONAL, p.VAR_KEYWORD):
                continue

            value = self._resolve_param(chain, position, name, p, hints)
            if p.kind is p.POSITIONAL_ONLY:
                args.append(value)
            else:
                kwargs[name] = value

        try:
            return fn(*args, **kwargs)
        except Exception as e:  # noqa: BLE001
            raise PanicInFunctionError(e) from e

    def _resolve_param(
        self,
        chain: Chain,
        position: int,
        name: str,
        p: inspect.Parameter,
        hints: dict[str, Any],
    ) -> object:
        """Resolving param.

        Resolution precedence:
        1. type-based registration (here or in a parent context)
        2. default
        3. error.
        Unannotated parameters ask for ``Any``.
        """
        ann = hints.get(name, p.annotation)
        if ann is inspect.Parameter.empty:
            ann = Any

        try:
            return self._context._resolve(chain, ann)  # noqa: SLF001
        except TypeNotRegisteredError as e:
            # Already annotated: a type missing further down a factory chain.
            if e.position is not None:
                raise
            if p.default is not inspect.Parameter.empty:
                return p.default
            e.position = position
            e.name = name
            raise


def _find_hook(value: object) -> Callable[..., object] | None:
    # Class-level lookup: mocks answer any instance attribute.
    if inspect.isclass(value) or not callable(getattr(type(value), HOOK_NAME, None)):
        return None
    return getattr(value, HOOK_NAME)


def _signature(fn: Callable[..., object]) -> inspect.Signature:
    # Builtins without introspectable signatures take no injected parameters.
    try:
        return inspect.signature(fn)
    except ValueError:
        return inspect.Signature()


def _get_type_hints(fn: Callable[..., object]) -> dict[str, Any]:
    if inspect.isclass(fn):
        target: Any = inspect.getattr_static(fn, "__init__")
    elif inspect.isroutine(fn):
        target = fn
    else:
        target = getattr(type(fn), "__call__", fn)

    try:
        hints = get_type_hints(target, include_extras=True)
    except TypeError:
        hints = {}
    except NameError as exc:
        logger.warning("'%s' name error retrieving %r type hints, using raw annotations", exc.name, fn)
        hints = {}

    return hints


def _return_annotation(factory: Callable[..., object]) -> Any:
    if inspect.isclass(factory):
        return factory

    ret = _get_type_hints(factory).get("return", inspect.Signature.empty)
    if ret is inspect.Signature.empty or ret is None or ret is type(None):
        msg = (
            f"A registered function must declare the type it returns, "
            f"but {getattr(factory, '__qualname__', factory)!r} has no return annotation. "
            f"Pass provides=... to register_factory instead."
        )
        raise RegistrationError(msg)

    return ret


def _validate_instance(key: Any, value: object) -> None:
    """Check that ``value`` may be handed out for ``key`` when key is a class.

    - For normal classes/ABCs: require isinstance(value, key).
    - For runtime-checkable Protocols: isinstance as well.
    - For other Protocols: structural conformance of type(value).
    """
    if key is Any or not inspect.isclass(key):
        return

    if not _is_protocol(key):
        if not isinstance(value, key):
            msg = f"Value of type {type(value).__name__} is not an instance of {key.__name__}"
            raise TypeMismatchError(msg)
        return

    if _is_runtime_checkable_protocol(key):
        if not isinstance(value, key):
            msg = f"Value of type {type(value).__name__} does not implement runtime protocol {key.__name__}"
            raise TypeMismatchError(msg)
        return

    _validate_protocol_structural_conformance(key, type(value))


def _is_runtime_checkable_protocol(tp: type) -> bool:
    return bool(getattr(tp, "_is_runtime_protocol", False))


def _validate_protocol_structural_conformance(proto_cls: type, impl: type) -> None:
    """Best-effort structural conformance: members present and callable where the protocol has methods."""
    if proto_cls in getattr(impl, "__mro__", ()):
        return

    try:
        proto_hints = get_type_hints(proto_cls)
    except (NameError, TypeError):
        proto_hints = {}

    missing = [name for name in proto_hints if not name.startswith("_") and not hasattr(impl, name)]
    not_callable: list[str] = []

    for name, proto_attr in proto_cls.__dict__.items():
        if name.startswith("_") or not inspect.isfunction(proto_attr):
            continue
        if not hasattr(impl, name):
            missing.append(name)
        elif not callable(getattr(impl, name)):
            not_callable.append(name)

    if missing or not_callable:
        msgs = []
        if missing:
            msgs.append(f"missing members: {', '.join(missing)}")
        if not_callable:
            msgs.append(f"not callable: {', '.join(not_callable)}")
        msg = (
            f"{impl.__name__} does not structurally conform to protocol "
            f"{proto_cls.__name__}: {'; '.join(msgs)}"
        )
        raise TypeMismatchError(msg)


if hasattr(typing, "is_protocol"):
    # https://docs.python.org/3/library/typing.html#typing.is_protocol
    def _is_protocol(tp: type) -> bool:
        return inspect.isclass(tp) and typing.is_protocol(tp)

else:

    def _is_protocol(tp: type) -> bool:
        """Detect whether 'tp' is a typing.Protocol subclass (safe)."""
        return (
            inspect.isclass(tp)
            and issubclass(tp, cast("type", Protocol))
            and bool(getattr(tp, "_is_protocol", False))
        )
