"""Logging filters for run context."""

import logging

from .context import current_node_id, current_run_id


class RunContextFilter(logging.Filter):
    """Logging filter that adds the active run and node ids to log records."""

    def __init__(self, prefix_messages: bool = True):
        """Initialize filter.

        Args:
            prefix_messages: Whether to also prefix the message text with the ids
        """
        super().__init__()
        self.prefix_messages = prefix_messages

    def filter(self, record: logging.LogRecord) -> bool:
        """Add run context to log record.

        Args:
            record: Log record to filter

        Returns:
            True to allow the record to be logged
        """
        run_id = current_run_id()
        node_id = current_node_id()
        if run_id is None:
            return True

        record.run_id = run_id
        if node_id is not None:
            record.node_id = node_id

        if self.prefix_messages and not hasattr(record, "run_context_added"):
            label = f"[run:{run_id}]" + (f" [node:{node_id}]" if node_id else "")
            record.msg = f"{label} {record.msg}"
            record.run_context_added = True

        return True
