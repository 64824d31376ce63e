"""Tests for tabby._once — execute-once gate."""

import threading

import pytest

from tabby._once import Once, OnceState


class TestOnce:
    def test_initial_state(self) -> None:
        gate = Once(lambda: 1)
        assert gate.state is OnceState.UNINITIALIZED
        assert gate.peek() is None
        assert not gate.ready

    def test_get_runs_once(self) -> None:
        calls: list[int] = []

        def init() -> str:
            calls.append(1)
            return "value"

        gate = Once(init)
        assert gate.get() == "value"
        assert gate.get() == "value"
        assert calls == [1]
        assert gate.state is OnceState.DONE
        assert gate.ready
        assert gate.peek() == "value"

    def test_peek_does_not_initialize(self) -> None:
        gate = Once(lambda: pytest.fail("initializer ran"))
        assert gate.peek() is None
        assert gate.state is OnceState.UNINITIALIZED

    def test_failure_is_sticky(self) -> None:
        calls: list[int] = []

        def init() -> int:
            calls.append(1)
            raise ValueError("broken")

        gate = Once(init)
        with pytest.raises(ValueError, match="broken"):
            gate.get()
        with pytest.raises(ValueError, match="broken"):
            gate.get()
        assert calls == [1]
        assert gate.state is OnceState.DONE
        assert not gate.ready
        assert gate.peek() is None

    def test_reraise_does_not_grow_traceback(self) -> None:
        def init() -> int:
            raise ValueError("broken")

        def depth(exc: BaseException) -> int:
            n, tb = 0, exc.__traceback__
            while tb is not None:
                n, tb = n + 1, tb.tb_next
            return n

        gate = Once(init)
        depths = []
        for _ in range(3):
            with pytest.raises(ValueError) as exc_info:
                gate.get()
            depths.append(depth(exc_info.value))
        assert depths[0] == depths[1] == depths[2]

    def test_concurrent_callers_share_one_run(self) -> None:
        started = threading.Event()
        release = threading.Event()
        calls: list[int] = []

        def init() -> object:
            calls.append(1)
            started.set()
            release.wait(5)
            return object()

        gate = Once(init)
        results: list[object] = []
        lock = threading.Lock()

        def worker() -> None:
            value = gate.get()
            with lock:
                results.append(value)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        assert started.wait(5)
        assert gate.state is OnceState.IN_PROGRESS
        release.set()
        for t in threads:
            t.join(5)

        assert calls == [1]
        assert len(results) == 8
        assert all(r is results[0] for r in results)

    def test_concurrent_callers_share_failure(self) -> None:
        barrier = threading.Barrier(4)

        def init() -> int:
            raise KeyError("nope")

        gate = Once(init)
        errors: list[BaseException] = []
        lock = threading.Lock()

        def worker() -> None:
            barrier.wait(5)
            try:
                gate.get()
            except KeyError as exc:
                with lock:
                    errors.append(exc)

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(5)

        assert len(errors) == 4
        assert all(e is errors[0] for e in errors)
