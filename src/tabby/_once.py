"""Execute-once gate with broadcast of the result.

``Once`` runs an initializer exactly once, no matter how many threads ask
for the value at the same time.  Callers that arrive while the
initializer is running block until it finishes, then all of them observe
the same value, or the same exception.

Failure is sticky: once the initializer raises, the gate stays failed
and every later ``get()`` re-raises the cached exception without calling
the initializer again.  A site whose renderer failed to initialize is
discarded and reloaded, never retried in place.

Thread Safety:
    State transitions are guarded by a ``threading.Condition``.  The
    initializer itself runs outside the lock so that it may take time
    (or call back into unrelated code) without blocking readers of other
    gates.

"""

import threading
from collections.abc import Callable
from enum import Enum
from types import TracebackType


class OnceState(Enum):
    """Lifecycle of a ``Once`` gate."""

    UNINITIALIZED = "uninitialized"
    IN_PROGRESS = "in_progress"
    DONE = "done"


class Once[T]:
    """Lazily computed value, initialized at most once.

    Args:
        init: Zero-argument callable producing the value.

    """

    __slots__ = ("_cond", "_error", "_init", "_state", "_tb", "_value")

    def __init__(self, init: Callable[[], T]) -> None:
        self._init = init
        self._cond = threading.Condition()
        self._state = OnceState.UNINITIALIZED
        self._value: T | None = None
        self._error: BaseException | None = None
        self._tb: TracebackType | None = None

    @property
    def state(self) -> OnceState:
        """Current gate state."""
        with self._cond:
            return self._state

    @property
    def ready(self) -> bool:
        """True when the initializer completed successfully."""
        with self._cond:
            return self._state is OnceState.DONE and self._error is None

    def peek(self) -> T | None:
        """Return the value if initialized successfully, else ``None``.

        Never triggers initialization and never blocks on it.
        """
        with self._cond:
            if self._state is OnceState.DONE and self._error is None:
                return self._value
            return None

    def get(self) -> T:
        """Return the value, running the initializer on first call.

        Raises:
            Exception: Whatever the initializer raised, on this call and on
                every later call.

        """
        with self._cond:
            while self._state is OnceState.IN_PROGRESS:
                self._cond.wait()
            if self._state is OnceState.DONE:
                return self._result()
            self._state = OnceState.IN_PROGRESS

        value: T | None = None
        error: BaseException | None = None
        try:
            value = self._init()
        except BaseException as exc:
            error = exc

        with self._cond:
            self._value = value
            self._error = error
            self._tb = error.__traceback__ if error is not None else None
            self._state = OnceState.DONE
            self._cond.notify_all()
            return self._result()

    def _result(self) -> T:
        if self._error is not None:
            # Restart from the initializer's traceback on every re-raise
            raise self._error.with_traceback(self._tb)
        return self._value  # type: ignore[return-value]
