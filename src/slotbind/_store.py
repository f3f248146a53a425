from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any, cast

from ._errors import CircularInjectError
from ._keys import Ref, normalize_value, type_name


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Callable

    Chain = tuple[Any, ...]
    Producer = Callable[[Chain], object]


# Thread ident -> entry that thread is blocked on. Only touched when an
# entry's lock is already held by someone else.
_waiting: dict[int, Entry] = {}
_waiting_lock = threading.Lock()


class Entry:
    """One registry slot.

    Holds a canonical cell and, until it is realized, the producer that fills it.
    ``realize`` runs the producer at most once; concurrent callers block until
    the first one finishes. A producer that raised is not run again: its error
    is raised to every caller until the type is registered anew.
    """

    def __init__(self, key: Any, value: object = None, producer: Producer | None = None) -> None:
        self.key = key
        self.cell: Ref[Any] = normalize_value(value)
        self._producer = producer
        self._realized = producer is None
        self._lock = threading.Lock()
        self._owner: int | None = None
        self._error: Exception | None = None

    @property
    def realized(self) -> bool:
        return self._realized

    @property
    def error(self) -> Exception | None:
        return self._error

    def realize(self, chain: Chain) -> Ref[Any]:
        if self._realized:
            return self.cell
        if self._error is not None:
            raise self._error

        if self.key in chain:
            raise CircularInjectError((*chain, self.key))

        self._acquire(chain)
        try:
            if self._realized:
                return self.cell
            if self._error is not None:
                raise self._error

            self._owner = threading.get_ident()
            producer = cast("Producer", self._producer)
            self._producer = None
            logger.debug("Initializing %s", type_name(self.key))
            try:
                value = producer((*chain, self.key))
            except Exception as e:
                logger.debug("Initializing %s failed: %r", type_name(self.key), e)
                self._error = e
                raise
            self.cell = normalize_value(value)
            self._realized = True
        finally:
            self._owner = None
            self._lock.release()

        return self.cell

    def _acquire(self, chain: Chain) -> None:
        if self._lock.acquire(blocking=False):
            return

        me = threading.get_ident()
        with _waiting_lock:
            path = _wait_path(self, me)
            if path is None:
                _waiting[me] = self
        if path is not None:
            raise CircularInjectError((*chain, *path))

        try:
            self._lock.acquire()
        finally:
            with _waiting_lock:
                del _waiting[me]


def _wait_path(entry: Entry, me: int) -> tuple[Any, ...] | None:
    """Follow owner -> waited-on entry links starting at ``entry``.

    Returns the keys along the way if they lead back to thread ``me``, which
    would then wait on itself.
    """
    path = []
    seen: set[int] = set()
    current: Entry | None = entry
    while current is not None:
        path.append(current.key)
        owner = current._owner  # noqa: SLF001
        if owner is None or owner in seen:
            return None
        if owner == me:
            return tuple(path)
        seen.add(owner)
        current = _waiting.get(owner)
    return None


class EntryStore:
    """Type key -> Entry mapping.

    Writes are serialized; reads never block. Nothing here locks while an
    entry initializes.
    """

    def __init__(self) -> None:
        self._entries: dict[Any, Entry] = {}
        self._write_lock = threading.Lock()

    def put(self, key: Any, entry: Entry) -> None:
        with self._write_lock:
            self._entries[key] = entry

    def get(self, key: Any) -> Entry | None:
        return self._entries.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
