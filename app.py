# app.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence, Tuple
from textual.app import App
from flow.controller import ControllerEvent, WizardController
from flow.steps import StepDefinition, build_steps
from screens.base import StepScreen
from state import QuickstartConfig, QuickstartResult
from logger import log


@dataclass
class StepServices:
    """Collaborators handed to every step through its StepContext."""
    client: Any
    config: QuickstartConfig


def quickstart_steps() -> Tuple[StepDefinition, ...]:
    from screens.s01_create_repo import CreateRepositoryScreen
    from screens.s02_import_data import ImportDataScreen
    from screens.s03_spark_config import SparkConfigScreen
    return build_steps([
        ("Create Repository", False, CreateRepositoryScreen),
        ("Import Data", True, ImportDataScreen),
        ("Spark Configurations", False, SparkConfigScreen),
    ])


class QuickstartWizard(App[Optional[QuickstartResult]]):
    """lakeFS Spark quickstart: create a repository, import data, configure Spark."""

    CSS = """
    Screen {
        background: $surface;
    }
    .title {
        text-style: bold;
        color: $accent;
        margin-bottom: 1;
    }
    #content {
        margin: 1 2;
    }
    #nav_buttons {
        dock: bottom;
        height: 3;
        align: center middle;
        margin: 1 2;
    }
    #form_buttons, #flavour_buttons {
        height: 3;
        margin-top: 1;
    }
    #repo_form, #import_form {
        height: auto;
    }
    Button {
        margin: 0 1;
    }
    #err_msg {
        margin-top: 1;
        color: $error;
    }
    #status_msg {
        margin-bottom: 1;
    }
    Input {
        margin-bottom: 1;
    }
    """

    def __init__(
        self,
        config: QuickstartConfig,
        client: Any,
        steps: Optional[Sequence[StepDefinition]] = None,
    ) -> None:
        super().__init__()
        self.config = config
        self.services = StepServices(client=client, config=config)
        self.controller = WizardController(
            steps or quickstart_steps(),
            on_done=self._on_done,
            on_cancel=self._on_cancel,
            config=config.to_wizard_config(),
        )
        self.controller.subscribe(self._on_controller_event)
        self.result: Optional[QuickstartResult] = None
        log.info("QuickstartWizard started against %s", config.endpoint)

    def build_step_screen(self) -> StepScreen:
        step = self.controller.current_step
        ctx = self.controller.context_for(step.index, services=self.services)
        return step.content(ctx, self.controller)

    async def on_mount(self) -> None:
        await self.push_screen(self.build_step_screen())

    def _on_controller_event(self, event: ControllerEvent, controller: WizardController) -> None:
        if event is ControllerEvent.STEP_CHANGED:
            self.switch_screen(self.build_step_screen())
        elif event is ControllerEvent.STEP_COMPLETED:
            if isinstance(self.screen, StepScreen):
                self.screen.refresh_nav()

    def _on_done(self, final_state: Mapping[str, Any]) -> None:
        self.result = QuickstartResult.from_state(final_state)
        log.info("Quickstart complete for repository %s", self.result.repo_id)
        self.exit(self.result)

    def _on_cancel(self) -> None:
        log.info("Quickstart cancelled")
        self.exit(None)
