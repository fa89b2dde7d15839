"""Console output with Rich.

The ConsoleManager renders stage banners, the final summary and errors:
- Rich-rendered color output when writing to a terminal
- JSON lines on stderr for machine-readable logs (CI/CD)
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from ..analysis.fields import FIELDS_BY_KEY

STATUS_COLORS = {
    "starting": "blue",
    "complete": "green",
    "error": "red",
    "warning": "yellow",
}


def _format_value(value: Any) -> str:
    if isinstance(value, list):
        lines: List[str] = []
        for item in value:
            if isinstance(item, dict):
                item = " - ".join(str(v) for v in item.values())
            lines.append(f"• {item}")
        return "\n".join(lines)
    if isinstance(value, dict):
        return "\n".join(f"{k}: {v}" for k, v in value.items())
    return str(value)


class ConsoleManager:
    """Manages console output with Rich integration."""

    def __init__(self, verbose: bool = False, json_output: bool = False):
        self.verbose = verbose
        self.json_output = json_output
        self.console: Optional[Console] = None if json_output else Console(stderr=True)

    def setup_logging(self, logger: logging.Logger, level: int = logging.INFO) -> None:
        """Attach a Rich (or plain JSON-mode) handler and set the logger level.

        ``verbose`` forces DEBUG, otherwise ``level`` is used. Calling it twice
        does not add a second handler.
        """

        def _has_handler_of_type(h_type) -> bool:
            return any(isinstance(h, h_type) for h in logger.handlers)

        if self.json_output:
            if not _has_handler_of_type(logging.StreamHandler):
                handler = logging.StreamHandler(sys.stderr)
                handler.setFormatter(logging.Formatter("%(message)s"))
                logger.addHandler(handler)
        elif not _has_handler_of_type(RichHandler):
            logger.addHandler(
                RichHandler(
                    console=self.console,
                    show_time=True,
                    show_path=self.verbose,
                    rich_tracebacks=True,
                )
            )
        logger.setLevel(logging.DEBUG if self.verbose else level)

    def print_stage(self, stage: str, status: str = "starting") -> None:
        """Print stage information with the appropriate renderer."""
        if self.json_output:
            self._emit_json({"stage": stage[:200], "status": status[:200]})
        elif self.console:
            color = STATUS_COLORS.get(status, "white")
            self.console.print(Panel(f"[bold]{stage}[/bold] {status}", style=color, padding=(0, 1)))

    def print_summary(self, result: Dict[str, Any]) -> None:
        """Print the report produced by ``PipelineResult.to_dict()``."""
        if self.json_output:
            print(json.dumps(result, ensure_ascii=False))
            return
        if not self.console:
            return

        summary = result.get("summary", {})
        table = Table(title=summary.get("title", ""), show_lines=True)
        table.add_column("Field", style="cyan", no_wrap=True)
        table.add_column("Value")
        for key, value in summary.items():
            if key in ("title", "tokens"):
                continue
            label = FIELDS_BY_KEY[key].label if key in FIELDS_BY_KEY else key
            table.add_row(label, _format_value(value))
        self.console.print(table)

        costs = result.get("costs", {})
        tokens = summary.get("tokens", {})
        cost_table = Table(title="Usage")
        cost_table.add_column("Item", style="cyan")
        cost_table.add_column("Value", style="green")
        if result.get("duration") is not None:
            cost_table.add_row("Audio duration", f"{result['duration']:.1f}s")
        cost_table.add_row("Tokens", str(tokens.get("total", 0)))
        cost_table.add_row("Transcription cost", f"${costs.get('transcript', 0):.4f}")
        cost_table.add_row("Summary cost", f"${costs.get('summary', 0):.4f}")
        cost_table.add_row("Total cost", f"${costs.get('total', 0):.4f}")
        self.console.print(cost_table)

        if self.verbose:
            timing = Table(title="Processing Summary")
            timing.add_column("Stage", style="cyan")
            timing.add_column("Duration", style="green")
            for stage, seconds in result.get("stage_durations", {}).items():
                timing.add_row(stage, f"{seconds:.1f}s")
            self.console.print(timing)

    def print_error(self, message: str, hint: Optional[str] = None) -> None:
        """Print an error and its remediation hint."""
        if self.json_output:
            payload: Dict[str, Any] = {"type": "error", "message": message}
            if hint:
                payload["hint"] = hint
            self._emit_json(payload)
        elif self.console:
            body = f"[red]{message}[/red]"
            if hint:
                body += f"\n\n[yellow]{hint}[/yellow]"
            self.console.print(Panel(body, title="Error", style="red"))
        else:
            print(f"ERROR: {message}", file=sys.stderr)

    def _emit_json(self, payload: Dict[str, Any]) -> None:
        print(
            json.dumps({"timestamp": datetime.now().isoformat(), **payload}),
            file=sys.stderr,
        )
