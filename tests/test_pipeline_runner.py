from __future__ import annotations

import asyncio
from types import SimpleNamespace
from typing import Any

import pytest

from triton_cli.errors import (
    ErrorKind,
    PipelineCancelledError,
    PipelineContractError,
    TaskTimeoutError,
    TritonError,
)
from triton_cli.pipeline import Failure, Success, callback_task, run, run_pipeline


def _recording(log: list[str], name: str):
    async def task(ctx: Any) -> None:
        log.append(name)

    task.__name__ = name
    return task


def _failing(log: list[str], name: str, message: str):
    async def task(ctx: Any) -> None:
        log.append(name)
        raise TritonError(message)

    task.__name__ = name
    return task


def test_all_tasks_succeed_in_order() -> None:
    log: list[str] = []
    tasks = [_recording(log, "a"), _recording(log, "b"), _recording(log, "c")]

    outcome = asyncio.run(run_pipeline(SimpleNamespace(), tasks))

    assert isinstance(outcome, Success)
    assert log == ["a", "b", "c"]


def test_first_failure_stops_the_run() -> None:
    log: list[str] = []
    tasks = [_recording(log, "a"), _failing(log, "b", "X"), _recording(log, "c")]

    outcome = asyncio.run(run_pipeline(SimpleNamespace(), tasks))

    assert isinstance(outcome, Failure)
    assert str(outcome.error) == "X"
    assert outcome.task == "b"
    assert log == ["a", "b"]


def test_empty_pipeline_succeeds_immediately() -> None:
    calls: list[Any] = []
    run(SimpleNamespace(), [], calls.append)
    assert len(calls) == 1
    assert isinstance(calls[0], Success)


@pytest.mark.parametrize("fail_at", [None, 0, 2, 4])
def test_on_done_fires_exactly_once(fail_at: Any) -> None:
    log: list[str] = []
    tasks = [
        _failing(log, f"t{i}", f"boom {i}") if i == fail_at else _recording(log, f"t{i}")
        for i in range(5)
    ]
    calls: list[Any] = []

    run(SimpleNamespace(), tasks, calls.append)

    assert len(calls) == 1
    if fail_at is None:
        assert isinstance(calls[0], Success)
        assert len(log) == 5
    else:
        assert isinstance(calls[0], Failure)
        assert str(calls[0].error) == f"boom {fail_at}"
        assert log == [f"t{i}" for i in range(fail_at + 1)]


def test_async_tasks_never_overlap() -> None:
    markers: list[str] = []

    def sleeper(i: int, delay: float):
        async def task(ctx: Any) -> None:
            markers.append(f"start{i}")
            await asyncio.sleep(delay)
            markers.append(f"end{i}")

        return task

    # Later tasks sleep less; any overlap would reorder the markers.
    tasks = [sleeper(i, 0.03 - i * 0.01) for i in range(3)]
    outcome = asyncio.run(run_pipeline(SimpleNamespace(), tasks))

    assert isinstance(outcome, Success)
    assert markers == ["start0", "end0", "start1", "end1", "start2", "end2"]


def test_context_fields_are_visible_to_later_tasks() -> None:
    ctx = SimpleNamespace()
    seen: list[Any] = []

    async def fetch(c: Any) -> None:
        c.resource = {"id": "abc"}

    async def act(c: Any) -> None:
        seen.append(c.resource)
        c.result_path = "/stor/abc"

    async def render(c: Any) -> None:
        seen.append((c.resource, c.result_path))

    outcome = asyncio.run(run_pipeline(ctx, [fetch, act, render]))

    assert isinstance(outcome, Success)
    assert seen == [{"id": "abc"}, ({"id": "abc"}, "/stor/abc")]
    assert ctx.result_path == "/stor/abc"


def test_failure_kind_for_foreign_exceptions_is_internal() -> None:
    async def broken(ctx: Any) -> None:
        raise ValueError("nope")

    outcome = asyncio.run(run_pipeline(SimpleNamespace(), [broken]))
    assert isinstance(outcome, Failure)
    assert outcome.kind == ErrorKind.INTERNAL
    assert outcome.task == "broken"


def test_callback_task_proceed_and_error() -> None:
    log: list[str] = []

    def step_ok(ctx: Any, proceed) -> None:
        log.append("ok")
        asyncio.get_running_loop().call_soon(proceed)

    def step_err(ctx: Any, proceed) -> None:
        log.append("err")
        proceed(TritonError("X"))

    def step_never(ctx: Any, proceed) -> None:
        log.append("never")
        proceed()

    tasks = [callback_task(step_ok), callback_task(step_err), callback_task(step_never)]
    outcome = asyncio.run(run_pipeline(SimpleNamespace(), tasks))

    assert isinstance(outcome, Failure)
    assert outcome.task == "step_err"
    assert str(outcome.error) == "X"
    assert log == ["ok", "err"]


def test_callback_task_wraps_non_exception_errors() -> None:
    def step(ctx: Any, proceed) -> None:
        proceed("X")

    outcome = asyncio.run(run_pipeline(SimpleNamespace(), [callback_task(step)]))
    assert isinstance(outcome, Failure)
    assert isinstance(outcome.error, TritonError)
    assert str(outcome.error) == "X"


def test_callback_task_rejects_second_proceed() -> None:
    rejected: list[Exception] = []

    def step(ctx: Any, proceed) -> None:
        proceed()
        try:
            proceed()
        except PipelineContractError as e:
            rejected.append(e)

    outcome = asyncio.run(run_pipeline(SimpleNamespace(), [callback_task(step)]))

    assert isinstance(outcome, Success)
    assert len(rejected) == 1
    assert "more than once" in str(rejected[0])


def test_timeout_fails_a_task_that_never_proceeds() -> None:
    log: list[str] = []

    def stuck(ctx: Any, proceed) -> None:
        log.append("stuck")

    tasks = [callback_task(stuck), _recording(log, "after")]
    outcome = asyncio.run(run_pipeline(SimpleNamespace(), tasks, timeout=0.05))

    assert isinstance(outcome, Failure)
    assert isinstance(outcome.error, TaskTimeoutError)
    assert outcome.kind == ErrorKind.PIPELINE
    assert log == ["stuck"]


def test_cancel_event_stops_before_next_task() -> None:
    log: list[str] = []

    async def main() -> Any:
        cancel = asyncio.Event()

        async def first(ctx: Any) -> None:
            log.append("first")
            cancel.set()

        return await run_pipeline(SimpleNamespace(), [first, _recording(log, "second")], cancel=cancel)

    outcome = asyncio.run(main())

    assert isinstance(outcome, Failure)
    assert isinstance(outcome.error, PipelineCancelledError)
    assert outcome.task == "second"
    assert log == ["first"]


def test_task_order_is_fixed_at_construction() -> None:
    log: list[str] = []
    tasks = [_recording(log, "a")]

    async def main() -> Any:
        # Mutating the caller's list once the run has started must not add steps.
        async def grow(ctx: Any) -> None:
            tasks.append(_recording(log, "late"))

        tasks.insert(0, grow)
        return await run_pipeline(SimpleNamespace(), tasks)

    outcome = asyncio.run(main())
    assert isinstance(outcome, Success)
    assert log == ["a"]


def test_run_forwards_cancel() -> None:
    log: list[str] = []
    cancel = asyncio.Event()
    cancel.set()
    calls: list[Any] = []

    run(SimpleNamespace(), [_recording(log, "a")], calls.append, cancel=cancel)

    assert len(calls) == 1
    assert isinstance(calls[0].error, PipelineCancelledError)
    assert log == []


def test_callback_task_keeps_first_error() -> None:
    def step(ctx: Any, proceed) -> None:
        proceed(TritonError("first"))
        proceed()

    outcome = asyncio.run(run_pipeline(SimpleNamespace(), [callback_task(step)]))

    assert isinstance(outcome, Failure)
    assert str(outcome.error) == "first"
    assert outcome.task == "step"


def test_late_proceed_after_timeout_is_dropped() -> None:
    held: list[Any] = []

    def slow(ctx: Any, proceed) -> None:
        held.append(proceed)

    async def main() -> Any:
        outcome = await run_pipeline(SimpleNamespace(), [callback_task(slow)], timeout=0.05)
        # The step finally signals once the runner has moved on.
        held[0]()
        return outcome

    outcome = asyncio.run(main())

    assert isinstance(outcome, Failure)
    assert isinstance(outcome.error, TaskTimeoutError)
    with pytest.raises(PipelineContractError):
        held[0]()
