from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """
    Classification used by the CLI to decide how a failure is reported.

    - USAGE: malformed invocation, detected before any task runs
    - SETUP: profile/session could not be established
    - RESOLUTION: an image reference matched nothing, or too much
    - REMOTE_ACTION: the cloud rejected the requested action
    - PIPELINE: the task runner itself gave up (timeout, cancel, contract)
    - INTERNAL: anything else (a bug)
    """
    USAGE = "usage"
    SETUP = "setup"
    RESOLUTION = "resolution"
    REMOTE_ACTION = "remote_action"
    PIPELINE = "pipeline"
    INTERNAL = "internal"


class TritonError(Exception):
    kind: ErrorKind = ErrorKind.INTERNAL


class UsageError(TritonError):
    kind = ErrorKind.USAGE


class SetupError(TritonError):
    kind = ErrorKind.SETUP


class ResolutionError(TritonError):
    kind = ErrorKind.RESOLUTION

    def __init__(self, message: str, reference: str) -> None:
        super().__init__(message)
        self.reference = reference


class ResourceNotFoundError(ResolutionError):
    pass


class AmbiguousReferenceError(ResolutionError):
    pass


class CloudApiError(TritonError):
    """Raised by the HTTP client for non-2xx responses and transport failures."""

    kind = ErrorKind.REMOTE_ACTION

    def __init__(self, message: str, status: Optional[int] = None, code: Optional[str] = None) -> None:
        super().__init__(message)
        self.status = status
        self.code = code


class RemoteActionError(TritonError):
    """A collaborator failure annotated with what we were trying to do."""

    kind = ErrorKind.REMOTE_ACTION

    def __init__(self, cause: BaseException, annotation: str) -> None:
        super().__init__(f"{annotation}: {cause}")
        self.cause = cause
        self.annotation = annotation


class PipelineError(TritonError):
    kind = ErrorKind.PIPELINE


class PipelineContractError(PipelineError):
    """A task broke the completion contract (e.g. signalled twice)."""


class TaskTimeoutError(PipelineError):
    pass


class PipelineCancelledError(PipelineError):
    pass


def classify(exc: BaseException) -> ErrorKind:
    if isinstance(exc, TritonError):
        return exc.kind
    return ErrorKind.INTERNAL


def exit_code_for(kind: ErrorKind) -> int:
    if kind == ErrorKind.USAGE:
        return 2
    return 1
