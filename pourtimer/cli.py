"""Typer CLI for pourtimer (show, brew, build)."""

from __future__ import annotations

from typing import List, Optional

import typer
from rich.console import Console

from dotenv import load_dotenv
# load .env immediately so subsequent imports (which read settings at import time)
# pick up values from the .env file
load_dotenv()

# Configure top-level logging early so other modules pick it up.
import logging
from pourtimer.settings import settings

log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
handlers = [logging.StreamHandler()]
if settings.LOG_FILE:
    handlers.append(logging.FileHandler(settings.LOG_FILE))
logging.basicConfig(
    level=log_level,
    format="%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
    handlers=handlers,
)

# Quiet noisy third-party loggers while keeping our app logs
logging.getLogger("pygame").setLevel(logging.WARNING)

from rich.table import Table

from pourtimer.audio.emitter import build_emitter
from pourtimer.engine.simulate import simulate
from pourtimer.models.schedule import Schedule
from pourtimer.models.step import Step, StepKind
from pourtimer.settings import validate_settings
from pourtimer.tui import timer_view
from pourtimer.tui.builder import Builder
from pourtimer.tui.render import format_mmss, render_schedule

logger = logging.getLogger(__name__)

app = typer.Typer(help="Pour-over recipe builder and brew timer.")
console = Console()


def parse_step_option(raw: str, first: bool = False) -> Step:
    """Parse 'name:water:time[:description]'.

    The first step of a recipe named like a bloom is tagged as one.
    """
    parts = raw.split(":", 3)
    if len(parts) < 3:
        raise ValueError(f"step {raw!r} must look like name:water:time[:description]")
    name, water, time_s = parts[0].strip(), parts[1], parts[2]
    description = parts[3].strip() if len(parts) == 4 else ""
    kind = StepKind.BLOOM if first and name.lower().startswith("bloom") else StepKind.POUR
    return Step(kind=kind, name=name, water=water, time=time_s, description=description)


def build_schedule(grams: Optional[float], ratio: Optional[float], steps: Optional[List[str]]) -> Schedule:
    schedule = Schedule()
    if steps:
        parsed = [parse_step_option(raw, first=(i == 0)) for i, raw in enumerate(steps)]
        schedule = Schedule(steps=parsed)
    if grams is not None:
        schedule.set_coffee_grams(grams)
    if ratio is not None:
        schedule.set_ratio(ratio)
    return schedule


GramsOption = typer.Option(None, "--grams", "-g", help="Coffee dose in grams.")
RatioOption = typer.Option(None, "--ratio", "-r", help="Water ratio, 1:RATIO.")
StepOption = typer.Option(None, "--step", "-s", help="Step as name:water:time[:description]; repeatable.")


@app.command()
def show(
    grams: Optional[float] = GramsOption,
    ratio: Optional[float] = RatioOption,
    step: Optional[List[str]] = StepOption,
):
    """Print a pour schedule with its totals."""
    try:
        schedule = build_schedule(grams, ratio, step)
        console.print(render_schedule(schedule))
    except Exception as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)


@app.command()
def brew(
    grams: Optional[float] = GramsOption,
    ratio: Optional[float] = RatioOption,
    step: Optional[List[str]] = StepOption,
    volume: Optional[float] = typer.Option(None, "--volume", min=0.0, max=1.0, help="Cue volume 0..1."),
    mute: bool = typer.Option(False, "--mute", help="Run without sound."),
    skip_prep: bool = typer.Option(False, "--skip-prep", help="Skip the preparation countdown."),
):
    """Run the brew timer straight away."""
    try:
        validate_settings()
        schedule = build_schedule(grams, ratio, step)
        emitter = build_emitter(settings)
        engine = timer_view.build_engine(schedule, emitter, settings, volume=0.0 if mute else volume)
        try:
            timer_view.run_timer(engine, console, emitter=emitter, autostart=True, skip_prep=skip_prep)
        finally:
            emitter.close()
        console.print("Brew session ended.")
    except Exception as e:
        logger.debug("brew failed", exc_info=True)
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)


@app.command()
def build(
    grams: Optional[float] = GramsOption,
    ratio: Optional[float] = RatioOption,
    step: Optional[List[str]] = StepOption,
):
    """Edit a recipe interactively and time it."""
    try:
        validate_settings()
        schedule = build_schedule(grams, ratio, step)
        emitter = build_emitter(settings)
        try:
            Builder(schedule, console, emitter, settings).run()
        finally:
            emitter.close()
    except Exception as e:
        logger.debug("build failed", exc_info=True)
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)


@app.command()
def timeline(
    grams: Optional[float] = GramsOption,
    ratio: Optional[float] = RatioOption,
    step: Optional[List[str]] = StepOption,
    prep: Optional[int] = typer.Option(None, "--prep", min=0, help="Preparation seconds (default from settings)."),
):
    """List every cue a brew would sound, without waiting or playing audio."""
    try:
        schedule = build_schedule(grams, ratio, step)
        prep_seconds = int(settings.PREP_SECONDS) if prep is None else prep
        events = simulate(schedule.snapshot(), prep_seconds=prep_seconds,
                          cue_window=int(settings.CUE_WINDOW_SECONDS))
        table = Table(title="Cue timeline")
        table.add_column("Tick", justify="right")
        table.add_column("Phase")
        table.add_column("Countdown", justify="right")
        table.add_column("Brew time", justify="right")
        table.add_column("Step", justify="right")
        table.add_column("Cue", style="bold")
        steps = schedule.steps
        for ev in events:
            label = steps[ev.active_index].name if ev.active_index < len(steps) else "done"
            table.add_row(str(ev.tick), ev.phase.value, str(ev.countdown_seconds),
                          format_mmss(ev.elapsed_seconds), label, ev.cue.value)
        console.print(table)
    except Exception as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)


def main():
    app()


if __name__ == "__main__":
    main()
