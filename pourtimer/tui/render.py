"""Rich renderables for the builder and timer screens."""

from __future__ import annotations

from rich.console import Group
from rich.panel import Panel
from rich.progress_bar import ProgressBar
from rich.table import Table
from rich.text import Text

from pourtimer.engine.timer import Phase, TimerView
from pourtimer.models.schedule import Schedule

URGENT_SECONDS = 5

KEY_HELP = "[space] start/pause  [s] skip prep  [r] reset  [m] mute  [+/-] volume  [q] back"


def format_mmss(seconds: int) -> str:
    seconds = max(0, int(seconds))
    return f"{seconds // 60}:{seconds % 60:02d}"


def format_ml(value: float) -> str:
    return f"{value:g}ml"


def render_schedule(schedule: Schedule) -> Group:
    """Step table plus the dose/target summary the builder screen shows."""
    agg = schedule.aggregates()
    summary = Table.grid(padding=(0, 2))
    summary.add_row(
        f"Coffee: [bold]{schedule.coffee_grams:g}g[/bold]",
        f"Ratio: [bold]1:{schedule.ratio:g}[/bold]",
        f"Target: [bold]{agg.target_water}ml[/bold]",
        f"Scheduled: [bold]{format_ml(agg.total_water_scheduled)}[/bold]",
        f"Total time: [bold]{format_mmss(agg.total_time_scheduled)}[/bold]",
    )
    bar = ProgressBar(total=1.0, completed=schedule.water_progress(), width=40)

    table = Table(title="Pour schedule", expand=False)
    table.add_column("#", justify="right")
    table.add_column("Kind")
    table.add_column("Name", style="bold")
    table.add_column("Water", justify="right")
    table.add_column("Pour to", justify="right", style="cyan")
    table.add_column("Time", justify="right")
    table.add_column("Notes", style="dim")
    for i, step in enumerate(schedule.steps):
        table.add_row(
            str(i + 1),
            step.kind.value,
            step.name,
            format_ml(step.water),
            format_ml(schedule.cumulative_water_through(i)),
            f"{step.time}s",
            step.description or "",
        )
    if not schedule.steps:
        table.add_row("", "", "[dim]no steps yet[/dim]", "", "", "", "")
    return Group(summary, bar, table)


def _volume_label(view: TimerView) -> str:
    if view.volume <= 0:
        return "[red]muted[/red]"
    return f"vol {int(round(view.volume * 100))}%"


def render_timer(view: TimerView, show_keys: bool = True) -> Panel:
    lines = []
    if view.is_finished:
        lines.append(Text("Brew complete", style="bold green", justify="center"))
        lines.append(Text("Enjoy your coffee.", style="dim", justify="center"))
        lines.append(Text(f"Total poured: {format_ml(view.total_water)}", justify="center"))
    elif view.in_preparation:
        lines.append(Text("Get ready", style="bold", justify="center"))
        lines.append(Text(f"{view.countdown_seconds}s", style="bold yellow", justify="center"))
        if view.active_step is not None:
            lines.append(Text(f"First: {view.active_step.name} to {format_ml(view.target_pour)}", justify="center"))
    else:
        step = view.active_step
        lines.append(Text(f"Step {view.active_index + 1} / {view.step_count}", style="dim", justify="center"))
        if step is not None:
            lines.append(Text(step.name, style="bold", justify="center"))
            if step.description:
                lines.append(Text(step.description, style="italic", justify="center"))
        urgent = 0 < view.remaining_seconds <= URGENT_SECONDS
        lines.append(Text("Next step in", style="dim", justify="center"))
        lines.append(Text(f"{view.remaining_seconds}s", style="bold red" if urgent else "bold", justify="center"))
        lines.append(Text(f"Pour to {format_ml(view.target_pour)}", style="bold cyan", justify="center"))
        if step is not None:
            lines.append(Text(f"(this step: {format_ml(step.water)})", style="dim", justify="center"))
    lines.append(ProgressBar(total=1.0, completed=view.progress))
    status = f"{view.phase.value}  |  total {format_mmss(view.elapsed_seconds)}  |  {_volume_label(view)}"
    lines.append(Text.from_markup(status, justify="center"))
    if show_keys:
        lines.append(Text(KEY_HELP, style="dim", justify="center"))
    border = {
        Phase.RUNNING: "green",
        Phase.PREPARING: "yellow",
        Phase.PAUSED: "blue",
        Phase.FINISHED: "green",
    }.get(view.phase, "white")
    return Panel(Group(*lines), title="Pour-over timer", border_style=border)
