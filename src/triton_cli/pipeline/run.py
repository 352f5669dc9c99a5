from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterable, Optional, TypeVar, Union

from loguru import logger

from ..errors import (
    ErrorKind,
    PipelineCancelledError,
    PipelineContractError,
    TaskTimeoutError,
    TritonError,
    classify,
)

C = TypeVar("C")

Task = Callable[[C], Awaitable[None]]
Proceed = Callable[..., None]


@dataclass(frozen=True)
class Success:
    """Every task in the pipeline completed."""

    ok = True


@dataclass(frozen=True)
class Failure:
    """The pipeline stopped at the first task that raised.

    `task` is the name of the failing task, or None when the run failed
    before any task started (e.g. argument validation).
    """

    error: BaseException
    task: Optional[str] = None

    ok = False

    @property
    def kind(self) -> ErrorKind:
        return classify(self.error)


Outcome = Union[Success, Failure]


def task_name(task: Callable[..., Any]) -> str:
    return getattr(task, "__name__", None) or repr(task)


def callback_task(fn: Callable[[C, Proceed], None]) -> Task:
    """Adapt a `fn(ctx, proceed)` step into an awaitable task.

    `proceed()` completes the task, `proceed(err)` fails it. Only the first
    signal counts: calling `proceed` again raises PipelineContractError at
    the call site and leaves the task's result alone. A signal that arrives
    after the runner gave up on the task (timeout) is dropped. A step that
    never calls `proceed` never completes.
    """

    name = task_name(fn)

    async def task(ctx: C) -> None:
        done: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        signalled = False

        def proceed(err: Any = None) -> None:
            nonlocal signalled
            if signalled:
                raise PipelineContractError(f"task {name!r} signalled completion more than once")
            signalled = True
            if done.cancelled():
                logger.debug("pipeline: {} signalled after it was abandoned", name)
                return
            if err is None:
                done.set_result(None)
            elif isinstance(err, BaseException):
                done.set_exception(err)
            else:
                done.set_exception(TritonError(str(err)))

        try:
            fn(ctx, proceed)
        except PipelineContractError:
            if not signalled:
                raise
            # The first signal already decided the outcome.
            logger.warning("pipeline: {} signalled completion more than once", name)
        await done

    task.__name__ = name
    task.__qualname__ = name
    return task


async def _run_one(task: Task, ctx: C, timeout: Optional[float]) -> None:
    if timeout is None:
        await task(ctx)
        return
    try:
        await asyncio.wait_for(task(ctx), timeout)
    except asyncio.TimeoutError as e:
        raise TaskTimeoutError(f"task {task_name(task)!r} did not complete within {timeout}s") from e


async def run_pipeline(
    ctx: C,
    tasks: Iterable[Task],
    *,
    timeout: Optional[float] = None,
    cancel: Optional[asyncio.Event] = None,
) -> Outcome:
    """Run `tasks` one at a time against the shared `ctx`.

    Task i+1 starts only after task i has returned. The first task to
    raise ends the run; its exception is returned as a Failure and no later
    task is started. An empty task list succeeds immediately.

    `timeout` bounds each task individually (seconds). `cancel` is checked
    before every task; once set, the run fails with PipelineCancelledError.
    """

    steps = tuple(tasks)
    for task in steps:
        name = task_name(task)
        if cancel is not None and cancel.is_set():
            logger.debug("pipeline: cancelled before {}", name)
            return Failure(PipelineCancelledError(f"pipeline cancelled before task {name!r}"), task=name)

        logger.trace("pipeline: start {}", name)
        try:
            await _run_one(task, ctx, timeout)
        except Exception as e:
            logger.debug("pipeline: {} failed: {}: {}", name, type(e).__name__, e)
            return Failure(e, task=name)
        logger.trace("pipeline: done {}", name)

    return Success()


def run(
    ctx: C,
    tasks: Iterable[Task],
    on_done: Callable[[Outcome], None],
    *,
    timeout: Optional[float] = None,
    cancel: Optional[asyncio.Event] = None,
) -> None:
    """Callback form of run_pipeline: `on_done(outcome)` is called exactly once."""

    outcome = asyncio.run(run_pipeline(ctx, tasks, timeout=timeout, cancel=cancel))
    on_done(outcome)
