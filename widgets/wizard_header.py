from __future__ import annotations
import pyfiglet
from rich.text import Text
from textual.widgets import Static
from flow.controller import WizardController

_ASCII = pyfiglet.figlet_format("lakeFS Quickstart", font="small")


def render_progress(controller: WizardController) -> str:
    """One-line step tracker, e.g. '✓ Create Repository   ▶ Import Data (optional)   ○ ...'."""
    parts = []
    for step in controller.steps:
        if step.index == controller.current_index:
            parts.append(f"[bold]▶ {step.display_label}[/bold]")
        elif controller.is_complete(step.index):
            parts.append(f"[green]✓ {step.display_label}[/green]")
        else:
            parts.append(f"[dim]○ {step.display_label}[/dim]")
    return "   ".join(parts)


class WizardHeader(Static):
    """ASCII-art banner plus the step progress line, shown on every step."""

    DEFAULT_CSS = """
    WizardHeader {
        color: #22c55e;
        width: 100%;
        padding: 0 2;
    }
    """

    def __init__(self, controller: WizardController) -> None:
        self._controller = controller
        super().__init__(self._build())

    def _build(self) -> Text:
        # figlet output may contain '\' so it must not go through markup
        text = Text(_ASCII.rstrip("\n") + "\n", style="bold")
        text.append_text(Text.from_markup(render_progress(self._controller)))
        return text

    def refresh_progress(self) -> None:
        self.update(self._build())
