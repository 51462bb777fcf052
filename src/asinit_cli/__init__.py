#!/usr/bin/env python3
# /// script
# requires-python = ">=3.11"
# dependencies = [
#     "typer",
#     "rich",
#     "readchar",
# ]
# ///
"""
asinit - Sets up a new AssemblyScript project or updates an existing one

Usage:
    asinit <project-dir>
    asinit <project-dir> --yes

Or install globally:
    uv tool install asinit-cli
    asinit .
"""

import re
import sys
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.live import Live
from rich.align import Align
from rich.table import Table
from rich.text import Text
from rich.tree import Tree
from typer.core import TyperCommand

# For cross-platform keyboard input
import readchar

from . import templates
from .ensure import Outcome
from .orchestrator import ArtifactResult, run
from .plan import ArtifactSpec, plan

# Answers accepted from non-interactive stdin; an empty line means yes
PROCEED_PATTERN = re.compile(r"^y?$", re.IGNORECASE)

EXIT_DECLINED = 1
EXIT_FAILED = 2

# ASCII Art Banner
BANNER = """
 █████╗ ███████╗██╗███╗   ██╗██╗████████╗
██╔══██╗██╔════╝██║████╗  ██║██║╚══██╔══╝
███████║███████╗██║██╔██╗ ██║██║   ██║
██╔══██║╚════██║██║██║╚██╗██║██║   ██║
██║  ██║███████║██║██║ ╚████║██║   ██║
╚═╝  ╚═╝╚══════╝╚═╝╚═╝  ╚═══╝╚═╝   ╚═╝
"""

TAGLINE = "Sets up a new AssemblyScript project or updates an existing one"


class StepTracker:
    """Track and render one step per artifact as a tree.
    Supports live auto-refresh via an attached refresh callback.
    """
    def __init__(self, title: str):
        self.title = title
        self.steps = []  # list of dicts: {key, label, status, detail}
        self._refresh_cb = None  # callable to trigger UI refresh

    def attach_refresh(self, cb):
        self._refresh_cb = cb

    def add(self, key: str, label: str):
        if key not in [s["key"] for s in self.steps]:
            self.steps.append({"key": key, "label": label, "status": "pending", "detail": ""})
            self._maybe_refresh()

    def start(self, key: str, detail: str = ""):
        self._update(key, status="running", detail=detail)

    def finish(self, key: str, outcome: Outcome, detail: str = ""):
        self._update(key, status=outcome.value, detail=detail)

    def error(self, key: str, detail: str = ""):
        self._update(key, status="error", detail=detail)

    def skip(self, key: str, detail: str = ""):
        self._update(key, status="skipped", detail=detail)

    def _update(self, key: str, status: str, detail: str):
        for s in self.steps:
            if s["key"] == key:
                s["status"] = status
                if detail:
                    s["detail"] = detail
                self._maybe_refresh()
                return
        # If not present, add it
        self.steps.append({"key": key, "label": key, "status": status, "detail": detail})
        self._maybe_refresh()

    def _maybe_refresh(self):
        if self._refresh_cb:
            self._refresh_cb()

    def render(self):
        tree = Tree(f"[cyan]{self.title}[/cyan]", guide_style="grey50")
        for step in self.steps:
            label = step["label"]
            detail_text = step["detail"].strip() if step["detail"] else ""

            status = step["status"]
            if status == "created":
                symbol = "[green]●[/green]"
            elif status == "updated":
                symbol = "[green]◉[/green]"
            elif status == "unchanged":
                symbol = "[yellow]●[/yellow]"
            elif status == "pending":
                symbol = "[green dim]○[/green dim]"
            elif status == "running":
                symbol = "[cyan]○[/cyan]"
            elif status == "error":
                symbol = "[red]●[/red]"
            elif status == "skipped":
                symbol = "[red]○[/red]"
            else:
                symbol = " "

            if status == "pending":
                line = f"{symbol} [bright_black]{label}[/bright_black]"
            else:
                # Label white, status and detail light gray
                suffix = f"{status}: {detail_text}" if detail_text else status
                line = f"{symbol} [white]{label}[/white] [bright_black]({suffix})[/bright_black]"

            tree.add(line)
        return tree


def get_key():
    """Get a single keypress in a cross-platform way using readchar."""
    key = readchar.readkey()

    # Enter/Return
    if key in (readchar.key.ENTER, readchar.key.CR, readchar.key.LF):
        return 'enter'

    # Escape
    if key == readchar.key.ESC:
        return 'escape'

    # Ctrl+C
    if key == readchar.key.CTRL_C:
        raise KeyboardInterrupt

    return key


def confirm_proceed(yes: bool = False) -> bool:
    """Ask whether to proceed; the default answer is yes."""
    if yes:
        return True
    console.print("[bold white]Do you want to proceed?[/bold white] [Y/n] ", end="")
    if sys.stdin.isatty():
        try:
            key = get_key()
        except KeyboardInterrupt:
            console.print()
            return False
        console.print(key if len(key) == 1 else "")
        return key == 'enter' or key.lower() == 'y'
    answer = sys.stdin.readline()
    console.print()
    if not answer:
        return False
    return PROCEED_PATTERN.match(answer.strip()) is not None


console = Console()


class BannerCommand(TyperCommand):
    """Custom command that shows banner before help."""

    def format_help(self, ctx, formatter):
        # Show banner before help
        show_banner()
        super().format_help(ctx, formatter)


app = typer.Typer(
    name="asinit",
    help="Sets up a new AssemblyScript project or updates an existing one",
    add_completion=False,
)


def show_banner():
    """Display the ASCII art banner."""
    # Create gradient effect with different colors
    banner_lines = BANNER.strip().split('\n')
    colors = ["bright_blue", "blue", "cyan", "bright_cyan", "white", "bright_white"]

    styled_banner = Text()
    for i, line in enumerate(banner_lines):
        color = colors[i % len(colors)]
        styled_banner.append(line + "\n", style=color)

    console.print(Align.center(styled_banner))
    console.print(Align.center(Text(TAGLINE, style="italic bright_yellow")))
    console.print()


def show_usage():
    usage_lines = [
        "[bold]Usage:[/bold] asinit [cyan]<project-dir>[/cyan] [dim][--yes][/dim]",
        "",
        "Sets up a new AssemblyScript project or updates an existing one.",
        "For example, to create a new project in the current directory:",
        "",
        "  [cyan]asinit .[/cyan]",
    ]
    console.print(Panel("\n".join(usage_lines), border_style="cyan", padding=(1, 2)))
    console.print(Align.center("[dim]Run 'asinit --help' for all options[/dim]"))
    console.print()


def render_plan_panel(project_path: Path, specs: list[ArtifactSpec]) -> Panel:
    table = Table.grid(padding=(0, 2))
    table.add_column(justify="left", style="cyan", no_wrap=True)
    table.add_column(justify="left", style="white")
    for spec in specs[1:]:
        table.add_row(spec.relative_to(project_path), spec.description)

    body = Table.grid()
    body.add_row("This command will make sure that the following files exist in the project directory:")
    body.add_row("")
    body.add_row(table)
    body.add_row("")
    body.add_row("Existing files are updated to match the settings of this compiler instance.")
    return Panel(body, title="Project Files", border_style="yellow", padding=(1, 2))


def render_error_panel(project_path: Path, failures: list[ArtifactResult]) -> Panel:
    table = Table.grid(padding=(0, 2))
    table.add_column(justify="left", style="cyan", no_wrap=True)
    table.add_column(justify="left", style="red", no_wrap=True)
    table.add_column(justify="left", style="white")
    for result in failures:
        table.add_row(result.spec.relative_to(project_path), result.error.kind, result.error.reason)
    return Panel(table, title="[red]Errors[/red]", border_style="red", padding=(1, 2))


def render_next_steps() -> Panel:
    steps_lines = [
        "1. To edit the entry file, open [cyan]assembly/index.ts[/cyan] in your editor of choice.",
        "   Create as many additional files as necessary and use them as imports.",
        "2. To build the entry file to WebAssembly when you are ready, run:",
        "   [white]npm run asbuild[/white]",
        "",
        "Running the command above creates the following binaries incl. their respective",
        "text format representations and source maps:",
    ]
    for name, description in templates.BUILD_OUTPUTS.items():
        steps_lines.append("")
        for suffix in (".wasm", ".wasm.map", ".wat"):
            steps_lines.append(f"   [cyan]./build/{name}{suffix}[/cyan]")
        steps_lines.append(f"   ^ {description}")
    return Panel("\n".join(steps_lines), title="Next Steps", border_style="cyan", padding=(1, 2))


@app.command(cls=BannerCommand)
def init(
    project_dir: str = typer.Argument(None, help="Directory of the project to set up (created if missing)"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Answer all questions with their default option for non-interactive usage"),
    compiler_dir: Optional[Path] = typer.Option(None, "--compiler-dir", help="AssemblyScript installation whose std/assembly.json the tsconfig should extend (defaults to the bundled copy)"),
    debug: bool = typer.Option(False, "--debug", help="Show verbose diagnostic output for failures"),
):
    """
    Set up a new AssemblyScript project or update an existing one.

    This command will make sure that the project directory contains:
    1. assembly/ with a tsconfig.json and an example entry file
    2. build/ with a .gitignore excluding compiled binaries
    3. package.json with the asbuild commands
    4. index.js loading the compiled WebAssembly module

    Existing files are never overwritten; only the settings owned by this
    tool are merged into existing configuration files.

    Examples:
        asinit .
        asinit my-project
        asinit my-project --yes
        asinit my-project --compiler-dir node_modules/assemblyscript
    """
    # Show banner first
    show_banner()

    if not project_dir:
        show_usage()
        raise typer.Exit(0)

    project_path = Path(project_dir).resolve()
    if compiler_dir is not None:
        compiler_dir = compiler_dir.resolve()
    specs = plan(project_path, compiler_dir)

    version = templates.compiler_version(compiler_dir)
    setup_lines = [
        "[cyan]AssemblyScript Project Setup[/cyan]",
        "",
        f"{'Project':<15} [green]{project_path.name}[/green]",
        f"{'Target Path':<15} [dim]{project_path}[/dim]",
        f"{'Compiler':<15} [dim]{compiler_dir or templates.BUNDLED_COMPILER_DIR}[/dim]",
        f"{'Version':<15} [yellow]{version or 'bundled'}[/yellow]",
    ]
    console.print(Panel("\n".join(setup_lines), border_style="cyan", padding=(1, 2)))
    console.print(render_plan_panel(project_path, specs))

    proceed = confirm_proceed(yes)
    if not proceed:
        console.print("[yellow]Aborted.[/yellow] No files were changed.")
        raise typer.Exit(EXIT_DECLINED)

    tracker = StepTracker("Initialize AssemblyScript Project")
    for spec in specs:
        tracker.add(spec.key, spec.relative_to(project_path))

    def on_result(result: ArtifactResult):
        if result.ok:
            tracker.finish(result.spec.key, result.outcome)
        elif result.error.kind == "DependencyUnavailable":
            tracker.skip(result.spec.key, result.error.kind)
        else:
            tracker.error(result.spec.key, result.error.kind)

    # Use transient so live tree is replaced by the final static render (avoids duplicate output)
    with Live(tracker.render(), console=console, refresh_per_second=8, transient=True) as live:
        tracker.attach_refresh(lambda: live.update(tracker.render()))
        try:
            results = run(
                project_path,
                proceed,
                compiler_dir=compiler_dir,
                on_start=lambda spec: tracker.start(spec.key),
                on_result=on_result,
            )
        except Exception as e:
            console.print(Panel(f"Initialization failed: {escape(str(e))}", title="Failure", border_style="red"))
            if debug:
                _env_pairs = [
                    ("Python", sys.version.split()[0]),
                    ("Platform", sys.platform),
                    ("CWD", str(Path.cwd())),
                    ("Target", str(project_path)),
                ]
                _label_width = max(len(k) for k, _ in _env_pairs)
                env_lines = [f"{k.ljust(_label_width)} → [bright_black]{v}[/bright_black]" for k, v in _env_pairs]
                console.print(Panel("\n".join(env_lines), title="Debug Environment", border_style="magenta"))
            raise typer.Exit(1)

    # Final static tree (ensures finished state visible after Live context ends)
    console.print(tracker.render())

    failures = [r for r in results if not r.ok]
    if failures:
        console.print()
        console.print(render_error_panel(project_path, failures))
        if debug:
            detail_lines = [f"{result.spec.path} → [bright_black]{escape(repr(result.error))}[/bright_black]" for result in failures]
            console.print(Panel("\n".join(detail_lines), title="Debug Details", border_style="magenta"))
        raise typer.Exit(EXIT_FAILED)

    console.print("\n[bold green]Done![/bold green]")
    console.print()
    console.print(render_next_steps())
    console.print("\n[bold]Have a nice day![/bold]")


def main():
    app()


if __name__ == "__main__":
    main()
