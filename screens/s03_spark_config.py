# screens/s03_spark_config.py
from __future__ import annotations
from textual.app import ComposeResult
from textual.widgets import Button, Static
from textual.containers import Horizontal
from flow.controller import WizardController
from flow.steps import StepContext
from screens.base import StepScreen
from services.spark import S3A, LAKEFS_FS, build_spark_conf, format_spark_conf
from logger import log


class SparkConfigScreen(StepScreen):
    """Step 3: Show the Spark configuration for the repository and confirm it."""

    def __init__(self, ctx: StepContext, controller: WizardController) -> None:
        super().__init__(ctx, controller)
        self.config = ctx.services.config
        self.flavour = S3A

    def compose_step(self) -> ComposeResult:
        yield Static(
            "Pick how Spark should reach lakeFS, then add these properties to "
            "your spark-submit command or spark-defaults.conf."
        )
        with Horizontal(id="flavour_buttons"):
            yield Button("S3 Gateway (s3a://)", id="btn_flavour_s3a", variant="primary")
            yield Button("lakeFS FileSystem (lakefs://)", id="btn_flavour_lakefs")
        yield Static("", id="spark_conf")
        yield Static("", id="status_msg")
        with Horizontal(id="form_buttons"):
            yield Button("Use this configuration", id="btn_use_conf", variant="success")

    async def on_step_mount(self) -> None:
        self._render_conf()
        if self.controller.is_complete(self.step.index):
            self.query_one("#status_msg", Static).update(
                "[green]Spark configuration saved.[/green]"
            )

    def current_conf(self) -> dict:
        return build_spark_conf(
            self.config.endpoint,
            self.config.access_key_id,
            self.config.secret_access_key,
            flavour=self.flavour,
            storage_access_key_id=self.config.storage_access_key_id,
            storage_secret_access_key=self.config.storage_secret_access_key,
        )

    def _render_conf(self) -> None:
        repo_id = self.ctx.snapshot().get("repoId", "<repo>")
        branch = self.ctx.snapshot().get("branch", "main")
        scheme = "s3a" if self.flavour == S3A else "lakefs"
        self.query_one("#spark_conf", Static).update(
            f"{format_spark_conf(self.current_conf())}\n\n"
            f"Read data with: [bold]spark.read.parquet(\"{scheme}://{repo_id}/{branch}/...\")[/bold]"
        )
        self.query_one("#btn_flavour_s3a", Button).variant = (
            "primary" if self.flavour == S3A else "default"
        )
        self.query_one("#btn_flavour_lakefs", Button).variant = (
            "primary" if self.flavour == LAKEFS_FS else "default"
        )

    def handle_button(self, button_id: str) -> None:
        if button_id == "btn_flavour_s3a":
            self.flavour = S3A
            self._render_conf()
        elif button_id == "btn_flavour_lakefs":
            self.flavour = LAKEFS_FS
            self._render_conf()
        elif button_id == "btn_use_conf":
            conf = self.current_conf()
            log.info("Step 3: Spark configuration (%s) accepted", self.flavour)
            # a second confirmation within this visit is ignored by the context
            self.ctx.complete({"sparkConf": conf, "sparkFlavour": self.flavour})
            self.query_one("#status_msg", Static).update(
                "[green]Spark configuration saved. Click Finish to complete the quickstart.[/green]"
            )
