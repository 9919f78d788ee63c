# screens/base.py
from __future__ import annotations
from textual.app import ComposeResult
from textual.screen import Screen
from textual.widgets import Footer, Button, Static
from textual.containers import Horizontal, VerticalScroll
from flow.controller import WizardController
from flow.steps import StepContext
from widgets.wizard_header import WizardHeader
from logger import log


class StepScreen(Screen):
    """
    Shell shared by every quickstart step: header with progress, the step's
    own widgets, and Back / Cancel / Next-or-Skip buttons wired to the
    controller. Subclasses fill in `compose_step`, `on_step_mount` and
    `handle_button`.
    """

    BINDINGS = [("escape", "cancel_wizard", "Cancel")]

    def __init__(self, ctx: StepContext, controller: WizardController) -> None:
        super().__init__()
        self.ctx = ctx
        self.controller = controller

    @property
    def step(self):
        return self.ctx.step

    def compose(self) -> ComposeResult:
        step = self.step
        yield WizardHeader(self.controller)
        with VerticalScroll(id="content"):
            yield Static(
                f"Step {step.index + 1} of {self.controller.step_count}: "
                f"{step.display_label}",
                classes="title",
            )
            yield from self.compose_step()
            yield Static("", id="err_msg")
        with Horizontal(id="nav_buttons"):
            yield Button("← Back", id="btn_back", variant="default")
            yield Button("✗ Cancel", id="btn_cancel", variant="error")
            yield Button("Next →", id="btn_next", variant="primary")
        yield Footer()

    def compose_step(self) -> ComposeResult:
        return iter(())

    async def on_mount(self) -> None:
        self.refresh_nav()
        await self.on_step_mount()

    async def on_step_mount(self) -> None:
        pass

    def refresh_nav(self) -> None:
        if not self.is_mounted:
            return
        ctl = self.controller
        back = self.query_one("#btn_back", Button)
        back.display = ctl.config.show_back
        back.disabled = not ctl.can_go_back

        nxt = self.query_one("#btn_next", Button)
        if self.step.index == ctl.step_count - 1:
            nxt.label = "✓ Finish"
        elif self.step.optional and not ctl.is_complete(self.step.index):
            nxt.label = "Skip →"
        else:
            nxt.label = "Next →"
        nxt.disabled = not ctl.can_advance
        self.query_one(WizardHeader).refresh_progress()

    def show_error(self, message: str) -> None:
        self.query_one("#err_msg", Static).update(f"[red]{message}[/red]" if message else "")

    def action_cancel_wizard(self) -> None:
        log.info("Step %d: user cancelled the wizard", self.step.index)
        self.ctx.cancel()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        button_id = event.button.id
        if button_id == "btn_next":
            if not self.controller.advance():
                self.show_error("Complete this step before continuing.")
        elif button_id == "btn_back":
            self.controller.go_back()
        elif button_id == "btn_cancel":
            self.action_cancel_wizard()
        else:
            self.handle_button(button_id)

    def handle_button(self, button_id: str) -> None:
        pass
