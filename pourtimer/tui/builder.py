"""Interactive recipe builder.

The builder owns the Schedule. Entering the timer hands a snapshot to a brand
new engine; edits are impossible until the timer screen is left again.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional

from pydantic import ValidationError
from rich.console import Console
from rich.prompt import Prompt

from pourtimer.engine.cues import ToneEmitter
from pourtimer.models.schedule import Schedule
from pourtimer.models.step import Step, StepKind
from pourtimer.settings import Settings
from pourtimer.tui import timer_view
from pourtimer.tui.render import render_schedule

logger = logging.getLogger(__name__)

HELP = """Commands:
  add             add a pour step
  edit N          edit step N
  rm N            remove step N
  grams G         set the coffee dose in grams
  ratio R         set the water ratio (1:R)
  reset           restore the default recipe
  show            print the schedule
  timer           start the brew timer
  quit            leave"""


def _fmt(value: Any) -> str:
    if isinstance(value, float):
        return f"{value:g}"
    if isinstance(value, StepKind):
        return value.value
    return str(value)


class Builder:
    def __init__(
        self,
        schedule: Schedule,
        console: Console,
        emitter: ToneEmitter,
        settings: Settings,
        ask: Callable[..., str] = Prompt.ask,
        timer_runner: Callable[..., None] = timer_view.run_timer,
    ):
        self.schedule = schedule
        self.console = console
        self.emitter = emitter
        self.settings = settings
        self.ask = ask
        self.timer_runner = timer_runner
        self.volume: Optional[float] = None

    def run(self) -> None:
        self.console.print(render_schedule(self.schedule))
        self.console.print(HELP, style="dim")
        while True:
            line = self.ask("[bold]pourtimer[/bold]", default="show")
            if not self.handle(line):
                break

    def handle(self, line: str) -> bool:
        """Run one command line; returns False on quit."""
        parts = (line or "").strip().split()
        if not parts:
            return True
        cmd, args = parts[0].lower(), parts[1:]
        try:
            if cmd in ("quit", "q", "exit"):
                return False
            if cmd == "help":
                self.console.print(HELP)
            elif cmd == "show":
                self.console.print(render_schedule(self.schedule))
            elif cmd == "add":
                self._add()
            elif cmd == "edit":
                self._edit(self._step_id(args))
            elif cmd in ("rm", "remove", "del"):
                step_id = self._step_id(args)
                self.schedule.remove_step(step_id)
                self.console.print(render_schedule(self.schedule))
            elif cmd == "grams":
                self.schedule.set_coffee_grams(self._number(args))
                self.console.print(render_schedule(self.schedule))
            elif cmd == "ratio":
                self.schedule.set_ratio(self._number(args))
                self.console.print(render_schedule(self.schedule))
            elif cmd == "reset":
                self.schedule.reset_to_default()
                self.console.print(render_schedule(self.schedule))
            elif cmd == "timer":
                self._timer()
            else:
                self.console.print(f"[red]Unknown command:[/red] {cmd} (try 'help')")
        except ValidationError as e:
            problems = "; ".join(f"{'.'.join(map(str, err['loc']))}: {err['msg']}" for err in e.errors())
            self.console.print(f"[red]Invalid step:[/red] {problems}")
        except ValueError as e:
            self.console.print(f"[red]Error:[/red] {e}")
        return True

    def _number(self, args) -> float:
        if not args:
            raise ValueError("a number is required")
        try:
            return float(args[0])
        except ValueError:
            raise ValueError(f"not a number: {args[0]!r}")

    def _step_id(self, args) -> str:
        if not args or not args[0].isdigit():
            raise ValueError("give the step number shown in the table")
        index = int(args[0]) - 1
        steps = self.schedule.steps
        if not 0 <= index < len(steps):
            raise ValueError(f"there is no step {args[0]}")
        return steps[index].id

    def _ask_fields(self, current: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "kind": self.ask("Kind", choices=[k.value for k in StepKind], default=_fmt(current["kind"])),
            "name": self.ask("Name", default=_fmt(current["name"])),
            "water": self.ask("Water (ml)", default=_fmt(current["water"])),
            "time": self.ask("Time (s)", default=_fmt(current["time"])),
            "description": self.ask("Notes", default=current.get("description") or ""),
        }

    def _add(self) -> None:
        fields = self._ask_fields(self.schedule.new_step_draft())
        step = self.schedule.add_step(Step.model_validate(fields))
        logger.info("Added step %s", step.name)
        self.console.print(render_schedule(self.schedule))

    def _edit(self, step_id: str) -> None:
        current = self.schedule.get_step(step_id)
        if current is None:
            return
        fields = self._ask_fields(current.model_dump())
        self.schedule.update_step(step_id, fields)
        self.console.print(render_schedule(self.schedule))

    def _timer(self) -> None:
        engine = timer_view.build_engine(self.schedule, self.emitter, self.settings, volume=self.volume)
        try:
            self.timer_runner(engine, self.console, emitter=self.emitter)
        finally:
            # carry the volume/mute choice into the next session
            self.volume = engine.volume
        self.console.print(render_schedule(self.schedule))
