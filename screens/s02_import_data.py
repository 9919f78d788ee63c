# screens/s02_import_data.py
from __future__ import annotations
import asyncio
from typing import Any, Dict, Optional
from textual.app import ComposeResult
from textual.widgets import Button, Static, Input, Label
from textual.containers import Vertical, Horizontal
from flow.action import StepActionRunner, StepActionState
from flow.controller import WizardController
from flow.steps import StepContext
from screens.base import StepScreen
from services.lakefs import LakeFSError
from validators import validate_import_source
from logger import log


class ImportDataScreen(StepScreen):
    """Step 2 (optional): Import existing objects into the new repository."""

    def __init__(self, ctx: StepContext, controller: WizardController) -> None:
        super().__init__(ctx, controller)
        self.client = ctx.services.client
        self.runner = StepActionRunner(
            self._import, on_complete=ctx.complete, name="import-data"
        )
        self.runner.subscribe(self._on_action_state)
        self._task: Optional[asyncio.Task] = None

    def compose_step(self) -> ComposeResult:
        state = self.ctx.snapshot()
        yield Static(
            "Import objects from your object store into branch "
            f"[bold]{state.get('branch', '?')}[/bold] of "
            f"[bold]{state.get('repoId', '?')}[/bold].\n"
            "Objects are not copied, only their metadata. "
            "Click [bold]Skip[/bold] to continue without importing.",
            id="status_msg",
        )
        with Vertical(id="import_form"):
            yield Label("Source URI:")
            yield Input(placeholder="e.g. s3://my-bucket/collections/", id="inp_source")
            yield Label("Destination prefix (optional):")
            yield Input(placeholder="e.g. collections/", id="inp_destination")
            yield Label("Commit message:")
            yield Input(value="Imported data", id="inp_message")
            with Horizontal(id="form_buttons"):
                yield Button("Import", id="btn_import", variant="success")

    async def on_step_mount(self) -> None:
        if self.controller.is_complete(self.step.index):
            self.query_one("#import_form").display = False
            src = self.ctx.snapshot().get("importSource", "")
            self.query_one("#status_msg", Static).update(
                f"[green]Data already imported from {src}.[/green]"
            )

    def handle_button(self, button_id: str) -> None:
        if button_id == "btn_import":
            self.submit()

    def submit(self) -> None:
        source = self.query_one("#inp_source", Input).value.strip()
        ok, msg = validate_import_source(source)
        if not ok:
            self.show_error(msg)
            return
        payload = {
            "source": source,
            "destination": self.query_one("#inp_destination", Input).value.strip(),
            "message": self.query_one("#inp_message", Input).value.strip() or "Imported data",
        }
        self._task = asyncio.create_task(self.runner.invoke(payload))

    async def _import(self, payload: Dict[str, str]) -> Dict[str, Any]:
        state = self.ctx.snapshot()
        repo_id, branch = state.get("repoId"), state.get("branch")
        if not repo_id or not branch:
            raise LakeFSError("No repository to import into. Create one first.")
        log.info("Step 2: importing %s into %s/%s", payload["source"], repo_id, branch)
        status = await self.client.import_data(
            repo=repo_id,
            branch=branch,
            source=payload["source"],
            destination=payload["destination"],
            message=payload["message"],
        )
        commit = status.get("commit") or {}
        return {
            "importSource": payload["source"],
            "importCommitId": commit.get("id"),
            "importedObjects": status.get("ingested_objects", 0),
        }

    def _on_action_state(self, state: StepActionState) -> None:
        if not self.is_mounted:
            return
        form = self.query_one("#import_form")
        status = self.query_one("#status_msg", Static)
        if state is StepActionState.IN_PROGRESS:
            self.show_error("")
            form.disabled = True
            status.update("[cyan]Importing data… this may take a while.[/cyan]")
        elif state is StepActionState.COMPLETED:
            form.display = False
            status.update(
                f"[green]Imported {self.runner.result['importedObjects']} objects "
                f"from {self.runner.result['importSource']}.[/green]"
            )
        elif state is StepActionState.FAILED:
            form.disabled = False
            status.update("Import failed. Fix the source and retry, or skip this step.")
            self.show_error(self.runner.failure_reason)
