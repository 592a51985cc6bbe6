"""Run-scoped logging context.

The runner sets the active run and node ids here; every log record emitted
while they are set gets stamped by ``RunContextFilter``.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

_run_id: ContextVar[str | None] = ContextVar("workflow_run_id", default=None)
_node_id: ContextVar[str | None] = ContextVar("workflow_node_id", default=None)


def current_run_id() -> str | None:
    return _run_id.get()


def current_node_id() -> str | None:
    return _node_id.get()


@contextmanager
def run_context(run_id: str | None = None, node_id: str | None = None) -> Iterator[None]:
    """Bind run and/or node ids for the duration of the block.

    Args:
        run_id: Run id to bind, or None to keep the current one
        node_id: Node id to bind, or None to keep the current one
    """
    run_token = _run_id.set(run_id) if run_id is not None else None
    node_token = _node_id.set(node_id) if node_id is not None else None
    try:
        yield
    finally:
        if node_token is not None:
            _node_id.reset(node_token)
        if run_token is not None:
            _run_id.reset(run_token)
