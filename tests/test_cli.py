"""Tests for the command line interface."""

import json
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from agentarea_workflows.cli import cli
from agentarea_workflows.testing import ScriptedBackend, text_response

APPROVAL_WORKFLOW = Path(__file__).parent.parent / "examples_workflows" / "approval_workflow.yaml"

SIMPLE_WORKFLOW = """
name: greeter
entry: greet
nodes:
  - id: greet
    kind: agent
    agent:
      instructions: Greet the user.
  - id: end
    kind: terminal
    output: "Greeting: {{ greet.output }}"
edges:
  - from: greet
    to: end
"""


@pytest.fixture(autouse=True)
def no_logging_setup():
    """Keep the CLI from reconfiguring logging for the rest of the session."""
    with patch("agentarea_workflows.cli.setup_logging") as mock_setup:
        yield mock_setup


@pytest.fixture
def workflow_file(tmp_path):
    """A single-agent workflow on disk."""
    path = tmp_path / "greeter.yaml"
    path.write_text(SIMPLE_WORKFLOW)
    return path


@pytest.fixture
def policies_dir(tmp_path):
    """Directory of policy documents for the file search tool."""
    directory = tmp_path / "policies"
    directory.mkdir()
    (directory / "travel.md").write_text("Hotel stays are reimbursed up to 150 EUR per night.")
    return directory


class TestValidateCommand:
    """``validate`` reports problems without running anything."""

    def test_valid_example(self, policies_dir, no_logging_setup):
        """The shipped approval workflow validates once its tools are registered."""
        result = CliRunner().invoke(
            cli,
            [
                "--log-level",
                "ERROR",
                "validate",
                str(APPROVAL_WORKFLOW),
                "--knowledge",
                f"policy_search={policies_dir}",
            ],
        )

        assert result.exit_code == 0, result.output
        assert "Workflow 'document-approval' is valid" in result.output
        no_logging_setup.assert_called_once_with(level="ERROR", enable_structured_logging=False)

    def test_missing_tool(self):
        """Without the knowledge tool the example is invalid."""
        result = CliRunner().invoke(cli, ["validate", str(APPROVAL_WORKFLOW)])

        assert result.exit_code == 1
        assert "unknown tool 'policy_search'" in result.output

    def test_bad_knowledge_option(self, workflow_file):
        """``--knowledge`` must be ID=DIR."""
        result = CliRunner().invoke(cli, ["validate", str(workflow_file), "--knowledge", "oops"])

        assert result.exit_code == 2
        assert "expected ID=DIR" in result.output


class TestRunCommand:
    """``run`` executes a workflow against the configured backend."""

    def test_run_prints_final_output(self, workflow_file):
        """The final output of a successful run is printed."""
        backend = ScriptedBackend([text_response("Hello there!")])
        with patch("agentarea_workflows.cli.LiteLLMBackend", return_value=backend):
            result = CliRunner().invoke(cli, ["run", str(workflow_file), "--input", "Hi"])

        assert result.exit_code == 0, result.output
        assert "greeter finished at 'end' in 1 steps" in result.output
        assert "Greeting: Hello there!" in result.output
        assert backend.calls_for("greet")[0][-1].text == "Hi"

    def test_run_json(self, workflow_file):
        """``--json`` prints the full result."""
        backend = ScriptedBackend([text_response("Hello there!")])
        with patch("agentarea_workflows.cli.LiteLLMBackend", return_value=backend):
            result = CliRunner().invoke(cli, ["run", str(workflow_file), "--json"])

        payload = json.loads(result.output)
        assert payload["status"] == "completed"
        assert payload["trail"] == ["greet", "end"]

    def test_failed_run_exits_non_zero(self, workflow_file):
        """Failures print the error and the trail."""
        backend = ScriptedBackend([])
        with patch("agentarea_workflows.cli.LiteLLMBackend", return_value=backend):
            result = CliRunner().invoke(cli, ["run", str(workflow_file)])

        assert result.exit_code == 1
        assert "greeter failed" in result.output
        assert "Trail: greet" in result.output
