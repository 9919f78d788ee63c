# screens/s01_create_repo.py
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
from validators import (
    validate_repo_name, validate_storage_namespace, validate_branch_name,
    default_namespace,
)
from logger import log


class CreateRepositoryScreen(StepScreen):
    """Step 1: Create the repository the rest of the quickstart works on."""

    def __init__(self, ctx: StepContext, controller: WizardController) -> None:
        super().__init__(ctx, controller)
        self.client = ctx.services.client
        self.runner = StepActionRunner(
            self._create_repo, on_complete=ctx.complete, name="create-repository"
        )
        self.runner.subscribe(self._on_action_state)
        self._namespace_prefix = ""
        self._namespace_edited = False
        self._task: Optional[asyncio.Task] = None

    def compose_step(self) -> ComposeResult:
        yield Static("Loading storage configuration…", id="status_msg")
        with Vertical(id="repo_form"):
            yield Label("Repository ID:")
            yield Input(placeholder="e.g. my-repo", id="inp_repo_name")
            yield Label("Storage Namespace:")
            yield Input(placeholder="e.g. s3://my-bucket/my-repo", id="inp_namespace")
            yield Label("Default Branch:")
            yield Input(value="main", id="inp_branch")
            with Horizontal(id="form_buttons"):
                yield Button("Create Repository", id="btn_create", variant="success")

    async def on_step_mount(self) -> None:
        if self.controller.is_complete(self.step.index):
            repo_id = self.ctx.snapshot().get("repoId", "")
            self._status(f"[green]Repository [bold]{repo_id}[/bold] already created.[/green]")
            self.query_one("#repo_form").display = False
            return
        await self._load_storage_config()

    async def _load_storage_config(self) -> None:
        try:
            cfg = await self.client.get_storage_config()
        except LakeFSError as e:
            log.warning("Step 1: storage config unavailable: %s", e)
            self._status("")
            self.show_error(f"Could not load storage configuration: {e}")
            return
        example = cfg.get("blockstore_namespace_example")
        if example:
            self.query_one("#inp_namespace", Input).placeholder = f"e.g. {example}"
        self._namespace_prefix = cfg.get("default_namespace_prefix") or ""
        log.info("Step 1: blockstore type %s", cfg.get("blockstore_type", "unknown"))
        self._status(f"Blockstore: [bold]{cfg.get('blockstore_type', 'unknown')}[/bold]")

    def _status(self, text: str) -> None:
        self.query_one("#status_msg", Static).update(text)

    def on_input_changed(self, event: Input.Changed) -> None:
        if event.input.id == "inp_namespace" and event.input.has_focus:
            self._namespace_edited = True
        elif event.input.id == "inp_repo_name" and not self._namespace_edited:
            if self._namespace_prefix:
                self.query_one("#inp_namespace", Input).value = default_namespace(
                    self._namespace_prefix, event.value.strip()
                )

    def handle_button(self, button_id: str) -> None:
        if button_id == "btn_create":
            self.submit()

    def submit(self) -> None:
        repo = {
            "name": self.query_one("#inp_repo_name", Input).value.strip(),
            "storage_namespace": self.query_one("#inp_namespace", Input).value.strip(),
            "default_branch": self.query_one("#inp_branch", Input).value.strip(),
        }
        for ok, msg in (
            validate_repo_name(repo["name"]),
            validate_storage_namespace(repo["storage_namespace"]),
            validate_branch_name(repo["default_branch"]),
        ):
            if not ok:
                self.show_error(msg)
                return
        self._task = asyncio.create_task(self.runner.invoke(repo))

    async def _create_repo(self, repo: Dict[str, Any]) -> Dict[str, str]:
        await self.client.create_repository(
            name=repo["name"],
            storage_namespace=repo["storage_namespace"],
            default_branch=repo["default_branch"],
            sample_data=False,
        )
        return {
            "branch": repo["default_branch"],
            "namespace": repo["storage_namespace"],
            "repoId": repo["name"],
        }

    def _on_action_state(self, state: StepActionState) -> None:
        if not self.is_mounted:
            return
        form = self.query_one("#repo_form")
        if state is StepActionState.IN_PROGRESS:
            self.show_error("")
            form.disabled = True
            self._status("[cyan]Creating repository…[/cyan]")
        elif state is StepActionState.COMPLETED:
            form.display = False
            self._status(
                f"[green]Repository [bold]{self.runner.result['repoId']}[/bold] "
                "created successfully.[/green]"
            )
        elif state is StepActionState.FAILED:
            form.disabled = False
            self._status("Fix the details below and try again.")
            self.show_error(f"Failed to create repository: {self.runner.failure_reason}")
