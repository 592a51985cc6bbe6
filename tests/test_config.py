"""Tests for settings, logging context, events and retry policies."""

import json
import logging

import pytest

from agentarea_workflows.config import (
    LLMSettings,
    ResourceSettings,
    RunnerSettings,
    ToolLoopSettings,
    get_settings,
)
from agentarea_workflows.exceptions import BackendCommunicationError
from agentarea_workflows.execution import EventManager, EventTypes, RetryPolicy, call_with_retry
from agentarea_workflows.logging import (
    RunContextFilter,
    RunContextFormatter,
    current_node_id,
    current_run_id,
    run_context,
)


class TestSettings:
    """Environment-driven configuration."""

    def test_defaults(self):
        """Defaults match the documented bounds."""
        assert RunnerSettings().MAX_STEPS == 50
        loop = ToolLoopSettings()
        assert loop.MAX_TURNS == 25
        assert loop.BACKEND_RETRY_ATTEMPTS == 3
        assert ResourceSettings().MAX_WAIT_SECONDS > 0
        assert LLMSettings().DEFAULT_MODEL == "gpt-4o-mini"

    def test_env_prefixes(self, monkeypatch):
        """Each settings group reads its own prefix."""
        monkeypatch.setenv("WORKFLOW__MAX_STEPS", "9")
        monkeypatch.setenv("TOOL_LOOP__BACKEND_TIMEOUT_SECONDS", "2.5")
        monkeypatch.setenv("LLM__DEFAULT_MODEL", "ollama_chat/qwen2.5")

        settings = get_settings()
        assert settings.runner.MAX_STEPS == 9
        assert settings.tool_loop.BACKEND_TIMEOUT_SECONDS == 2.5
        assert settings.llm.DEFAULT_MODEL == "ollama_chat/qwen2.5"

    def test_get_settings_cached(self):
        """Settings are read once per process."""
        assert get_settings() is get_settings()


class TestRunContextLogging:
    """Run and node ids on log records."""

    def _record(self, message="hello") -> logging.LogRecord:
        return logging.LogRecord(
            "agentarea_workflows.test", logging.INFO, __file__, 1, message, (), None
        )

    def test_context_binding(self):
        """Ids are bound for the block and restored afterwards."""
        assert current_run_id() is None
        with run_context(run_id="run-1"):
            with run_context(node_id="review"):
                assert (current_run_id(), current_node_id()) == ("run-1", "review")
            assert current_node_id() is None
        assert current_run_id() is None

    def test_filter_prefixes_message(self):
        """Records emitted inside a run carry its ids."""
        record = self._record()
        with run_context(run_id="run-1", node_id="review"):
            assert RunContextFilter().filter(record)

        assert record.run_id == "run-1"
        assert record.node_id == "review"
        assert record.getMessage() == "[run:run-1] [node:review] hello"

    def test_filter_outside_run(self):
        """Records outside a run pass unchanged."""
        record = self._record()
        assert RunContextFilter().filter(record)
        assert not hasattr(record, "run_id")
        assert record.getMessage() == "hello"

    def test_structured_formatter(self):
        """The JSON formatter includes the run context fields."""
        record = self._record()
        with run_context(run_id="run-1"):
            RunContextFilter(prefix_messages=False).filter(record)

        entry = json.loads(RunContextFormatter().format(record))
        assert entry["message"] == "hello"
        assert entry["run_id"] == "run-1"
        assert entry["level"] == "INFO"


class TestEventManager:
    """Run audit trail."""

    def test_events_are_stamped(self):
        """Events carry ids, timestamps and the run context."""
        events = EventManager("run-1", "approval")
        event = events.add_event(EventTypes.NODE_STARTED, {"node_id": "review"})

        assert event["event_type"] == "NodeStarted"
        assert event["data"] == {"run_id": "run-1", "workflow": "approval", "node_id": "review"}
        assert events.get_events() == [event]
        assert events.events_of_type(EventTypes.NODE_COMPLETED) == []

    def test_failing_listener_does_not_break_the_run(self):
        """Listener errors are logged and ignored."""
        received = []

        def broken(event):
            raise RuntimeError("listener bug")

        events = EventManager("run-1", "approval")
        events.subscribe(broken)
        events.subscribe(received.append)
        events.add_event(EventTypes.WORKFLOW_STARTED, {})

        assert len(received) == 1

    def test_latest_events(self):
        """Only the requested number of recent events is returned."""
        events = EventManager("run-1", "approval")
        for i in range(5):
            events.add_event(EventTypes.EDGE_TAKEN, {"i": i})
        assert [e["data"]["i"] for e in events.get_latest_events(2)] == [3, 4]


@pytest.mark.asyncio
class TestRetry:
    """Bounded exponential backoff."""

    async def test_delays(self):
        """Delays grow by the coefficient and are capped."""
        policy = RetryPolicy(initial_interval=1.0, backoff_coefficient=2.0, maximum_interval=3.0)
        assert [policy.delay_for(n) for n in (1, 2, 3)] == [1.0, 2.0, 3.0]

    async def test_invalid_policy(self):
        """At least one attempt is required."""
        with pytest.raises(ValueError):
            RetryPolicy(maximum_attempts=0)

    async def test_retries_until_success(self):
        """Retryable failures are retried and reported."""
        outcomes = [BackendCommunicationError("flaky"), "ok"]
        retried = []

        async def operation():
            outcome = outcomes.pop(0)
            if isinstance(outcome, Exception):
                raise outcome
            return outcome

        result = await call_with_retry(
            operation,
            RetryPolicy(initial_interval=0.0),
            on_retry=lambda attempt, error: retried.append(attempt),
        )
        assert result == "ok"
        assert retried == [1]

    async def test_non_retryable_fails_fast(self):
        """Errors not flagged retryable propagate on the first attempt."""
        calls = []

        async def operation():
            calls.append(1)
            raise ValueError("permanent")

        with pytest.raises(ValueError):
            await call_with_retry(operation, RetryPolicy(initial_interval=0.0))
        assert len(calls) == 1

    async def test_attempts_recorded(self):
        """The final error records how many attempts were made."""

        async def operation():
            raise BackendCommunicationError("down")

        with pytest.raises(BackendCommunicationError) as exc_info:
            await call_with_retry(operation, RetryPolicy(initial_interval=0.0, maximum_attempts=2))
        assert exc_info.value.attempts == 2
