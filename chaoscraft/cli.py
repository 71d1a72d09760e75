"""ChaosCraft CLI - Command Line Interface."""

import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from chaoscraft import __version__
from chaoscraft.brain.models import ChaosTemplate, ChaosTest, TestStatus
from chaoscraft.brain.orchestrator import Orchestrator
from chaoscraft.brain.planner import ResponseRecipePlanner
from chaoscraft.brain.templates import TemplateCatalog
from chaoscraft.console.views import render_tests_table
from chaoscraft.litterbox.reporter import Reporter, explain as explain_template, mock_config
from chaoscraft.utils.config import CONFIG_TEMPLATE, DEFAULT_CONFIG_PATH, Config, setup_logging

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="chaoscraft",
    help="ChaosCraft - inject faults into a local mock API and see what breaks",
    add_completion=False,
)

console = Console()

def _load_config(config: str, verbose: bool = False) -> Config:
    """Load configuration, falling back to defaults when the file is absent."""
    cfg = Config(config)
    try:
        cfg.load()
    except FileNotFoundError:
        logger.debug("No config file at %s, using defaults", config)
    except ValueError as e:
        console.print(f"[bold red]❌ Invalid configuration:[/bold red] {e}")
        raise typer.Exit(code=1) from e

    level = "DEBUG" if verbose else cfg.logging.get("level", "WARNING")
    setup_logging(level, cfg.logging.get("log_file", ""))
    return cfg


def _resolve_template(name: str) -> ChaosTemplate:
    catalog = TemplateCatalog()
    try:
        return catalog.get(name)
    except KeyError as e:
        console.print(f"[bold red]❌ {e.args[0]}[/bold red]")
        raise typer.Exit(code=1) from e


def build_orchestrator(
    cfg: Config,
    per_request_random: bool = False,
    output_path: Optional[str] = None,
) -> Orchestrator:
    """Wire an orchestrator from configuration; CLI flags win over the file."""
    planner = ResponseRecipePlanner(per_request_random=per_request_random or cfg.per_request_random)
    reporter = Reporter(output_path=output_path or cfg.reporting["output_path"])
    return Orchestrator(planner=planner, reporter=reporter, endpoints=cfg.endpoints)


@app.command()
def version():
    """Show version information."""
    console.print(f"[bold magenta]ChaosCraft[/bold magenta] v{__version__}")


@app.command()
def init(
    path: str = typer.Option(DEFAULT_CONFIG_PATH, "--path", help="Where to write the config file"),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing file"),
):
    """Initialize a new chaoscraft.yaml configuration file."""
    target = Path(path)
    if target.exists() and not force:
        console.print(f"[yellow]⚠️  {target} already exists. Use --force to overwrite.[/yellow]")
        raise typer.Exit(code=1)

    target.write_text(CONFIG_TEMPLATE, encoding="utf-8")
    console.print(f"[green]✓[/green] Created {target}")


@app.command()
def templates():
    """List the built-in chaos templates."""
    table = Table(title="Chaos Templates")
    table.add_column("#", justify="right", style="cyan")
    table.add_column("Name", style="bold")
    table.add_column("Status", justify="right")
    table.add_column("Delay", justify="right")
    table.add_column("Description")

    for i, template in enumerate(TemplateCatalog().templates, start=1):
        table.add_row(
            str(i),
            template.name,
            str(template.status_code),
            f"{template.delay_ms}ms",
            template.description,
        )
    console.print(table)


@app.command()
def endpoints(
    config: str = typer.Option(DEFAULT_CONFIG_PATH, "--config", "-c", help="Path to configuration file"),
):
    """List the endpoints available for chaos tests."""
    cfg = _load_config(config)
    for endpoint in cfg.endpoints:
        console.print(f"  • {endpoint}")


@app.command()
def explain(
    template: str = typer.Option(..., "--template", "-t", help="Template name, e.g. 'Server Error'"),
    endpoint: str = typer.Option(..., "--endpoint", "-e", help="Endpoint path, e.g. /login"),
):
    """Explain what a template will do to an endpoint."""
    chosen = _resolve_template(template)
    console.print(Markdown(explain_template(chosen, endpoint)))


@app.command("config")
def export_config(
    template: str = typer.Option(..., "--template", "-t", help="Template name"),
    endpoint: str = typer.Option(..., "--endpoint", "-e", help="Endpoint path"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Write the JSON to this file"),
):
    """Export a WireMock-compatible mapping for a template."""
    chosen = _resolve_template(template)
    document = mock_config(endpoint, chosen)

    if output:
        Path(output).write_text(document, encoding="utf-8")
        console.print(f"[green]✓[/green] Wrote mapping to {output}")
    else:
        console.print(Syntax(document, "json", theme="monokai", word_wrap=True))


async def _run_once(orchestrator: Orchestrator, endpoint: str, template: ChaosTemplate, hold: float) -> Optional[ChaosTest]:
    async with orchestrator:
        test_id = await orchestrator.run_test(endpoint, template)
        test = orchestrator.get_test(test_id)
        if hold > 0 and test is not None and test.status is TestStatus.COMPLETED:
            console.print(
                f"[cyan]Mock server stays up for {hold:g}s at "
                f"{orchestrator.controller.url_for(endpoint)}[/cyan]"
            )
            await asyncio.sleep(hold)
    return orchestrator.get_test(test_id)


@app.command()
def run(
    endpoint: str = typer.Option(..., "--endpoint", "-e", help="Endpoint path to break, e.g. /login"),
    template: str = typer.Option(..., "--template", "-t", help="Template name, e.g. 'Server Error'"),
    config: str = typer.Option(DEFAULT_CONFIG_PATH, "--config", "-c", help="Path to configuration file"),
    output: Optional[str] = typer.Option(
        None, "--output", "-o", help="Directory to save the Markdown report"
    ),
    per_request_random: bool = typer.Option(
        False,
        "--per-request-random",
        help="Let 'Random Responses' pick a new outcome on every request",
    ),
    hold: float = typer.Option(
        0.0, "--hold", min=0.0, help="Keep the mock server running for N seconds after the test"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Run a chaos test against the local mock server."""
    cfg = _load_config(config, verbose=verbose)
    chosen = _resolve_template(template)

    orchestrator = build_orchestrator(cfg, per_request_random=per_request_random, output_path=output)
    orchestrator.registry.log_added.subscribe(
        lambda line: console.print(line, style="dim", markup=False, highlight=False)
    )

    console.print(Panel(f"{chosen.name} on {endpoint}", title="🧪 ChaosCraft", border_style="magenta"))
    test = asyncio.run(_run_once(orchestrator, endpoint, chosen, hold))
    if test is None:
        console.print("[bold red]❌ Test record disappeared from the registry[/bold red]")
        raise typer.Exit(code=1)

    console.print(render_tests_table([test]))

    if output:
        report_path = orchestrator.reporter.write(test)
        console.print(f"[green]✓[/green] Report saved to {report_path}")

    if test.status is TestStatus.FAILED:
        raise typer.Exit(code=1)


@app.command()
def interactive(
    config: str = typer.Option(DEFAULT_CONFIG_PATH, "--config", "-c", help="Path to configuration file"),
):
    """Start interactive mode."""
    from chaoscraft.console.repl import ChaosREPL

    cfg = _load_config(config)
    repl = ChaosREPL(console, build_orchestrator(cfg))
    asyncio.run(repl.start())


if __name__ == "__main__":
    app()
