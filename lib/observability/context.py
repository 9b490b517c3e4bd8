"""
Run id for log correlation.

Each CLI invocation evaluates one document. The run id set here is picked
up by both formatters, so every line logged while that document is being
evaluated can be grouped together, even when several evaluations share a
log stream.
"""

import contextvars
import uuid
from typing import Optional

_run_id_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "kpi_run_id", default=None
)


def get_run_id() -> Optional[str]:
    """Run id of the evaluation in progress, or None outside a run."""
    return _run_id_var.get()


def set_run_id(run_id: str) -> contextvars.Token:
    return _run_id_var.set(run_id)


def generate_run_id() -> str:
    """Short random id, e.g. "run-3f9c0a7d12be4e55"."""
    return f"run-{uuid.uuid4().hex[:16]}"


class RunContext:
    """
    Scope one evaluation run.

    cli.main wraps each command in a RunContext. On exit the previous run id
    is restored, so a nested run (an embedding application evaluating
    several documents) does not leak its id to the caller.

        with RunContext() as run:
            evaluate_document(doc)   # log lines carry run.run_id
    """

    def __init__(self, run_id: Optional[str] = None):
        self.run_id = run_id or generate_run_id()
        self._token: Optional[contextvars.Token] = None

    def __enter__(self) -> "RunContext":
        self._token = set_run_id(self.run_id)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._token is not None:
            _run_id_var.reset(self._token)
            self._token = None
