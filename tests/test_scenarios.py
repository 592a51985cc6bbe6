"""End-to-end scenarios over scripted backends."""

import pytest

from agentarea_workflows.domain.enums import RunStatus
from agentarea_workflows.exceptions import BackendCommunicationError
from agentarea_workflows.execution.constants import EventTypes
from agentarea_workflows.runner import WorkflowRunner
from agentarea_workflows.testing import ScriptedBackend, text_response, tool_call_response

pytestmark = [pytest.mark.asyncio, pytest.mark.integration]

APPROVAL = {
    "name": "hiring-approval",
    "entry": "screen",
    "nodes": [
        {
            "id": "screen",
            "kind": "agent",
            "agent": {"instructions": "Screen the role description. Answer approved or not."},
        },
        {"id": "gate", "kind": "condition"},
        {"id": "interview", "kind": "agent", "agent": {"instructions": "Plan the interview."}},
        {"id": "reject", "kind": "terminal", "output": "Rejected: {{ screen.output }}"},
        {"id": "done", "kind": "terminal"},
    ],
    "edges": [
        {"from": "screen", "to": "gate"},
        {"from": "gate", "to": "reject", "when": "screen.output contains 'not approved'"},
        {"from": "gate", "to": "interview", "when": "screen.output contains 'approved'"},
        {"from": "gate", "to": "reject"},
        {"from": "interview", "to": "done"},
    ],
}


@pytest.fixture
def make_runner(make_loop):
    """Runner wired to a scripted backend with fast retries."""

    def _make_runner(backend, registry, binder=None):
        return WorkflowRunner(
            backend, registry, binder, loop=make_loop(backend, registry, binder)
        )

    return _make_runner


class TestApprovalGate:
    """A screening agent gates access to a second agent."""

    async def test_approved_reaches_second_agent(self, make_runner, registry):
        """An approving screen routes to the interview agent."""
        backend = ScriptedBackend(
            {
                "screen": [text_response("Solid fundamentals: approved")],
                "interview": [text_response("Three technical rounds")],
            }
        )
        result = await make_runner(backend, registry).start(APPROVAL, "junior developer")

        assert result.status == RunStatus.COMPLETED
        assert result.trail == ["screen", "gate", "interview", "done"]
        assert result.final_output == "Three technical rounds"
        assert len(backend.calls_for("interview")) == 1

    async def test_rejected_never_invokes_second_agent(self, make_runner, registry):
        """A rejecting screen terminates without calling the interview agent."""
        backend = ScriptedBackend(
            {
                "screen": [text_response("Missing experience: not approved")],
                "interview": [text_response("should not happen")],
            }
        )
        result = await make_runner(backend, registry).start(APPROVAL, "junior developer")

        assert result.status == RunStatus.COMPLETED
        assert result.terminal_node == "reject"
        assert result.final_output == "Rejected: Missing experience: not approved"
        assert backend.calls_for("interview") == []
        assert "interview" not in result.variables


class TestGroundedFileSearch:
    """File search answers cite only indexed documents."""

    async def test_single_document_grounding(self, make_runner, search_registry, binder, provider):
        """Every citation refers to the one document in the source."""
        workflow = {
            "name": "policy-question",
            "entry": "research",
            "nodes": [
                {
                    "id": "research",
                    "kind": "agent",
                    "agent": {"instructions": "Answer from policy.", "tools": ["policy_search"]},
                },
                {"id": "end", "kind": "terminal"},
            ],
            "edges": [{"from": "research", "to": "end"}],
        }
        backend = ScriptedBackend(
            [
                tool_call_response("policy_search", {"query": "hotel per night"}, call_id="c1"),
                text_response("Hotels are covered up to 150 EUR per night."),
            ]
        )

        result = await make_runner(backend, search_registry, binder).start(
            workflow, "How much can I spend on hotels?"
        )

        assert result.succeeded
        indexed = provider.get_vector_store(binder.get("policies").id).document_ids
        assert indexed == ["policies#0"]
        assert result.variables["research"]["citations"] == ["policies#0"]

        tool_message = backend.calls[1][1][-1]
        content = tool_message.tool_results[0].content
        assert content.startswith("[policies#0] ")
        assert "150 EUR per night" in content
        completed = EventTypes.TOOL_CALL_COMPLETED
        tool_events = [e for e in result.events if e["event_type"] == completed]
        assert set(tool_events[0]["data"]["citations"]) <= set(indexed)


class TestTransientBackendFailures:
    """Retries absorb transient backend failures."""

    async def test_two_failures_then_success(self, make_runner, registry):
        """The run completes with the third response only."""
        workflow = {
            "name": "summary",
            "entry": "summarize",
            "nodes": [
                {"id": "summarize", "kind": "agent", "agent": {"instructions": "Summarize."}},
                {"id": "end", "kind": "terminal"},
            ],
            "edges": [{"from": "summarize", "to": "end"}],
        }
        backend = ScriptedBackend(
            [
                BackendCommunicationError("connection reset", retryable=True),
                BackendCommunicationError("503 from provider", retryable=True),
                text_response("A concise summary."),
            ]
        )

        result = await make_runner(backend, registry).start(workflow, "long text")

        assert result.status == RunStatus.COMPLETED
        assert result.error is None
        assert result.final_output == "A concise summary."
        assert result.variables["summarize"]["turns"] == 1
        assert len(backend.calls) == 3
        failed = [e for e in result.events if e["event_type"] == EventTypes.LLM_CALL_FAILED]
        assert [e["data"]["attempt"] for e in failed] == [1, 2]
