"""Sequential task pipeline.

A pipeline is an ordered list of async tasks sharing one mutable context.
Tasks run strictly one after another; the first one to raise ends the run.
Every CLI subcommand composes its setup, remote-call and output steps this
way so that it has exactly one place to turn a result into an exit status.
"""

from .context import ExportContext
from .run import Failure, Outcome, Success, Task, callback_task, run, run_pipeline

__all__ = [
    "ExportContext",
    "Failure",
    "Outcome",
    "Success",
    "Task",
    "callback_task",
    "run",
    "run_pipeline",
]
