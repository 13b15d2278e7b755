"""Command-line interface for the task orchestrator."""

import asyncio
import json
from pathlib import Path
from typing import Annotated

import typer

from .config.factory import create_completion_service, create_orchestrator
from .config.loader import load_config
from .llm.protocols import CompletionServiceError

app = typer.Typer(
    name="taskpilot",
    help="Multi-agent task orchestrator: plans, delegates and answers queries.",
    add_completion=False,
)


@app.command()
def run(
    query: Annotated[str, typer.Argument(help="Natural-language query to answer")],
    profile: Annotated[
        str,
        typer.Option("--profile", "-p", help="Configuration profile (default: TASKPILOT_PROFILE or dev)"),
    ] = None,
    config_path: Annotated[
        Path,
        typer.Option("--config", "-c", help="Path to a profiles YAML file"),
    ] = None,
    output_format: Annotated[
        str,
        typer.Option("--format", "-f", help="Output format: text or json"),
    ] = "text",
):
    """
    Answer a query with the planner and its sub-agents.

    Examples:

        # Answer with the default profile
        taskpilot run "What is the status of asset 42?"

        # Use the OpenAI profile and print JSON
        taskpilot run "Summarize the open incidents" -p openai --format json
    """
    if output_format not in ("text", "json"):
        typer.echo("Error: Output format must be one of: text, json", err=True)
        raise typer.Exit(1)

    try:
        config = load_config(profile=profile, config_path=config_path)
    except KeyError as e:
        typer.echo(f"Error: {e.args[0]}", err=True)
        raise typer.Exit(1)

    try:
        answer = asyncio.run(_run_async(config, query))
    except (ValueError, CompletionServiceError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    if output_format == "json":
        typer.echo(json.dumps({"query": query, "answer": answer}, indent=2))
    else:
        typer.echo(answer)


async def _run_async(config, query: str) -> str:
    """Async implementation of run."""
    completion = create_completion_service(config.completion)

    async with completion:
        orchestrator = await create_orchestrator(config, completion=completion)
        return await orchestrator.run(query)


@app.command()
def agents(
    profile: Annotated[
        str,
        typer.Option("--profile", "-p", help="Configuration profile (default: TASKPILOT_PROFILE or dev)"),
    ] = None,
    config_path: Annotated[
        Path,
        typer.Option("--config", "-c", help="Path to a profiles YAML file"),
    ] = None,
):
    """List the sub-agents configured in a profile."""
    try:
        config = load_config(profile=profile, config_path=config_path)
    except KeyError as e:
        typer.echo(f"Error: {e.args[0]}", err=True)
        raise typer.Exit(1)

    if not config.agents:
        typer.echo("No agents configured.")
        return

    typer.echo("Configured agents:\n")
    for agent in config.agents:
        typer.echo(f"  {agent.name}")
        if agent.description:
            typer.echo(f"    {agent.description}")
        backends = ", ".join(agent.tool_backends) or "(none)"
        typer.echo(f"    Tool backends: {backends}")
        typer.echo()


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
