"""Command line interface for validating and running workflow descriptions."""

import asyncio
import sys
from pathlib import Path

import click

from .backends import LiteLLMBackend
from .config import get_settings
from .exceptions import WorkflowDefinitionError
from .graph import load_workflow
from .logging import setup_logging
from .resources import (
    Document,
    InMemoryResourceProvider,
    LiteLLMEmbeddingService,
    ResourceBinder,
)
from .runner import WorkflowRunner
from .tools import (
    CodeInterpreterConfig,
    CodeInterpreterTool,
    FileSearchConfig,
    FileSearchTool,
    ToolRegistry,
)


def build_registry(
    knowledge: tuple[str, ...],
) -> tuple[ToolRegistry, InMemoryResourceProvider]:
    """Registry with the code interpreter plus one file search tool per ``ID=DIR``."""
    settings = get_settings()
    registry = ToolRegistry(tool_timeout_seconds=settings.tool_loop.TOOL_TIMEOUT_SECONDS)
    registry.register_tool(
        "code_interpreter",
        CodeInterpreterTool(),
        CodeInterpreterConfig(),
        description="Run a Python snippet and return its output",
    )

    provider = InMemoryResourceProvider(LiteLLMEmbeddingService(settings.llm))
    search = FileSearchTool(provider)
    for item in knowledge:
        tool_id, sep, directory = item.partition("=")
        if not sep or not tool_id or not directory:
            raise click.BadParameter(f"expected ID=DIR, got '{item}'", param_hint="--knowledge")
        root = Path(directory)
        if not root.is_dir():
            raise click.BadParameter(f"'{directory}' is not a directory", param_hint="--knowledge")
        documents = [
            Document(id=path.name, text=path.read_text(encoding="utf-8", errors="replace"))
            for path in sorted(root.rglob("*"))
            if path.is_file()
        ]
        provider.add_source(directory, documents)
        registry.register_tool(
            tool_id,
            search,
            FileSearchConfig(source_ref=directory),
            description=f"Search the documents in {root.name}",
        )
    return registry, provider


@click.group()
@click.option("--log-level", default=None, help="Logging level (defaults to LOG_LEVEL)")
def cli(log_level: str | None):
    """AgentArea Workflows CLI - validate and run declarative agent workflows."""
    app = get_settings().app
    setup_logging(
        level=log_level or app.LOG_LEVEL,
        enable_structured_logging=app.STRUCTURED_LOGGING,
    )


@cli.command()
@click.argument("workflow_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--knowledge", multiple=True, help="Register a file search tool as ID=DIR")
def validate(workflow_file: Path, knowledge: tuple[str, ...]):
    """Validate a workflow description without running it."""
    click.echo(f"🔍 Validating {workflow_file}...")
    registry, _ = build_registry(knowledge)
    try:
        graph = load_workflow(workflow_file, registry=registry)
    except WorkflowDefinitionError as e:
        click.echo(f"❌ {workflow_file} is invalid:")
        for problem in e.errors:
            click.echo(f"   - {problem}")
        sys.exit(1)

    click.echo(f"✅ Workflow '{graph.name}' is valid")
    click.echo(f"   Entry: {graph.entry}")
    click.echo(f"   Nodes: {len(graph.nodes)}, Edges: {len(graph.edges)}")


@cli.command()
@click.argument("workflow_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--input", "input_text", default="", help="Initial input of the run")
@click.option("--knowledge", multiple=True, help="Register a file search tool as ID=DIR")
@click.option("--max-steps", type=int, default=None, help="Override WORKFLOW__MAX_STEPS")
@click.option("--json", "as_json", is_flag=True, help="Print the full result as JSON")
def run(
    workflow_file: Path,
    input_text: str,
    knowledge: tuple[str, ...],
    max_steps: int | None,
    as_json: bool,
):
    """Run a workflow against the configured LLM backend."""
    settings = get_settings()
    registry, provider = build_registry(knowledge)
    runner = WorkflowRunner(
        LiteLLMBackend(settings.llm),
        registry,
        ResourceBinder(provider, settings.resources),
        settings,
        max_steps=max_steps,
    )

    try:
        result = asyncio.run(runner.start(workflow_file, input_text))
    except WorkflowDefinitionError as e:
        click.echo(f"❌ {e}")
        sys.exit(1)

    if as_json:
        click.echo(result.model_dump_json(indent=2))
    elif result.succeeded:
        click.echo(
            f"✅ {result.workflow} finished at '{result.terminal_node}' "
            f"in {result.steps} steps"
        )
        click.echo(result.final_output or "")
    else:
        error = result.error
        click.echo(f"❌ {result.workflow} {result.status.value}: {error.message if error else ''}")
        click.echo(f"   Trail: {' -> '.join(result.trail)}")

    if not result.succeeded:
        sys.exit(1)


if __name__ == "__main__":
    cli()
