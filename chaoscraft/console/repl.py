import asyncio
import json
import logging
import shlex
from pathlib import Path
from typing import List, Optional

import httpx
from rich.console import Console
from rich.markdown import Markdown
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Prompt
from rich.syntax import Syntax
from rich.table import Table

from chaoscraft.brain.models import ChaosTemplate
from chaoscraft.brain.orchestrator import Orchestrator
from chaoscraft.console.views import render_tests_table, status_markup

logger = logging.getLogger(__name__)

# Long enough to sit out the "Slow Response" delay
SEND_TIMEOUT_SECONDS = 30.0


class ChaosREPL:
    """Interactive console for ChaosCraft.

    The orchestrator stays alive for the whole session, so the mock server
    keeps serving between commands and simulated activity shows up while
    ``watch`` is on.
    """

    def __init__(self, console: Console, orchestrator: Orchestrator):
        self.console = console
        self.orchestrator = orchestrator
        self.watching = True
        orchestrator.registry.log_added.subscribe(self._on_log)

    def _on_log(self, line: str) -> None:
        if self.watching:
            self.console.print(line, style="dim", markup=False, highlight=False)

    async def start(self):
        """Start the interactive loop."""
        self.console.print(Panel("🧪 [bold magenta]ChaosCraft Interactive Mode[/bold magenta]\nType 'help' for commands.", border_style="magenta"))

        loop = asyncio.get_running_loop()
        async with self.orchestrator:
            while True:
                try:
                    # Prompt in a worker thread so the simulator keeps ticking
                    command_str = await loop.run_in_executor(
                        None, Prompt.ask, "[bold cyan]chaoscraft[/bold cyan] > "
                    )

                    if not command_str.strip():
                        continue

                    if not await self.handle_command(command_str):
                        break

                except EOFError:
                    break
                except KeyboardInterrupt:
                    self.console.print("\n[yellow]Type 'exit' to quit.[/yellow]")
                except Exception as e:
                    logger.debug("Command failed", exc_info=True)
                    self.console.print(f"[bold red]Error:[/bold red] {e}")

    async def handle_command(self, command_str: str) -> bool:
        """Parse and execute a command. Returns False when the session should end."""
        try:
            parts = shlex.split(command_str)
        except ValueError as e:
            self.console.print(f"[red]Parse error:[/red] {e} (check for unmatched quotes)")
            return True
        cmd = parts[0].lower()
        args = parts[1:]

        if cmd in ("exit", "quit"):
            self.console.print("Bye! 👋")
            return False

        elif cmd == "help":
            self.show_help()

        elif cmd == "templates":
            self.show_templates()

        elif cmd == "endpoints":
            for i, endpoint in enumerate(self.orchestrator.endpoints, start=1):
                self.console.print(f"  {i}. {endpoint}")

        elif cmd == "run":
            if len(args) != 2:
                self.console.print("[red]Usage: run <template> <endpoint>[/red]")
            else:
                await self.run_test(args[0], args[1])

        elif cmd == "tests":
            self.show_tests()

        elif cmd == "explain":
            if len(args) != 2:
                self.console.print("[red]Usage: explain <template> <endpoint>[/red]")
            else:
                template = self.resolve_template(args[0])
                if template:
                    self.console.print(Markdown(self.orchestrator.explain(template, args[1])))

        elif cmd == "report":
            if not args:
                self.console.print("[red]Usage: report <test-id> \\[output-dir][/red]")
            else:
                self.show_report(args[0], args[1] if len(args) > 1 else None)

        elif cmd == "config":
            if len(args) != 2:
                self.console.print("[red]Usage: config <template> <endpoint>[/red]")
            else:
                template = self.resolve_template(args[0])
                if template:
                    document = self.orchestrator.mock_config(args[1], template)
                    self.console.print(Syntax(document, "json", theme="monokai", word_wrap=True))

        elif cmd == "send":
            await self.send_request(args)

        elif cmd == "watch":
            self.watching = not args or args[0].lower() != "off"
            self.console.print(f"[green]Log stream {'on' if self.watching else 'off'}.[/green]")

        else:
            self.console.print(f"[red]Unknown command:[/red] {cmd}")

        return True

    def show_help(self):
        """Display help menu."""
        table = Table(title="Available Commands")
        table.add_column("Command", style="cyan")
        table.add_column("Description", style="white")

        table.add_row("templates", "List chaos templates")
        table.add_row("endpoints", "List endpoints")
        table.add_row("run <template> <endpoint>", "Run a chaos test (template by name or number)")
        table.add_row("tests", "Show all tests in this session")
        table.add_row("explain <template> <endpoint>", "Explain what a template does")
        table.add_row(escape("report <test-id> [dir]"), "Show a Markdown report, or save it to dir")
        table.add_row("config <template> <endpoint>", "Show the WireMock mapping for a template")
        table.add_row(escape("send [method] <endpoint>"), "Send a request to the running mock server")
        table.add_row("watch on|off", "Toggle the live log stream")
        table.add_row("help", "Show this help message")
        table.add_row("exit", "Exit the interactive mode")

        self.console.print(table)

    def show_templates(self):
        table = Table(title="Chaos Templates")
        table.add_column("#", justify="right", style="cyan")
        table.add_column("Name", style="bold")
        table.add_column("Description")
        for i, template in enumerate(self.orchestrator.templates, start=1):
            table.add_row(str(i), template.name, template.description)
        self.console.print(table)

    def resolve_template(self, ref: str) -> Optional[ChaosTemplate]:
        """Find a template by 1-based number or case-insensitive name."""
        templates = self.orchestrator.templates
        if ref.isdigit():
            index = int(ref) - 1
            if 0 <= index < len(templates):
                return templates[index]
        else:
            for template in templates:
                if template.name.lower() == ref.lower():
                    return template
        self.console.print(f"[red]Unknown template:[/red] {ref}")
        return None

    async def run_test(self, template_ref: str, endpoint: str):
        template = self.resolve_template(template_ref)
        if template is None:
            return
        test_id = await self.orchestrator.run_test(endpoint, template)
        test = self.orchestrator.get_test(test_id)
        self.console.print(f"{test.name}: {status_markup(test.status)}  [dim]id {test_id}[/dim]")

    def show_tests(self):
        tests = self.orchestrator.list_tests()
        if not tests:
            self.console.print("[dim]No tests yet.[/dim]")
            return
        self.console.print(render_tests_table(tests))

    def _find_test_id(self, prefix: str) -> Optional[str]:
        matches: List[str] = [t.id for t in self.orchestrator.list_tests() if t.id.startswith(prefix)]
        if len(matches) == 1:
            return matches[0]
        if not matches:
            self.console.print(f"[red]No test matches id {prefix}[/red]")
        else:
            self.console.print(f"[red]Id prefix {prefix} is ambiguous[/red]")
        return None

    def show_report(self, id_prefix: str, output_dir: Optional[str]):
        test_id = self._find_test_id(id_prefix)
        if test_id is None:
            return
        if output_dir:
            test = self.orchestrator.get_test(test_id)
            self.orchestrator.reporter.output_path = Path(output_dir)
            path = self.orchestrator.reporter.write(test)
            self.console.print(f"[green]✓[/green] Report saved to {path}")
        else:
            self.console.print(Markdown(self.orchestrator.markdown_report(test_id)))

    async def send_request(self, args: List[str]):
        """Hit the live mock server and show what came back."""
        if not args:
            self.console.print("[red]Usage: send \\[method] <endpoint>[/red]")
            return
        method, path = ("GET", args[0]) if len(args) == 1 else (args[0].upper(), args[1])

        if not self.orchestrator.controller.is_running:
            self.console.print("[red]The mock server is not running. Use 'run' first.[/red]")
            return

        url = self.orchestrator.controller.url_for(path)
        self.console.print(f"[dim]Sending {method} {url}...[/dim]")
        async with httpx.AsyncClient(timeout=SEND_TIMEOUT_SECONDS) as client:
            try:
                response = await client.request(method, url)
            except httpx.HTTPError as e:
                self.console.print(f"[bold red]Request failed:[/bold red] {e}")
                return

        elapsed_ms = response.elapsed.total_seconds() * 1000
        style = "green" if 200 <= response.status_code < 300 else "red"
        self.console.print(f"\n[bold {style}]Status: {response.status_code}[/bold {style}]  [dim]Time: {elapsed_ms:.2f}ms[/dim]")

        body = response.text
        if body:
            try:
                parsed = json.loads(body)
                self.console.print(Syntax(json.dumps(parsed, indent=2), "json", theme="monokai", word_wrap=True))
            except json.JSONDecodeError:
                self.console.print(body, markup=False)
        else:
            self.console.print("[dim](Empty response)[/dim]")
        self.console.print()
