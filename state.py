# state.py
from __future__ import annotations
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional
from flow.controller import WizardConfig
from logger import DEFAULT_LOG_FILE

DEFAULT_ENDPOINT = "http://localhost:8000"
_TRUTHY = {"1", "true", "yes", "on"}


@dataclass
class QuickstartConfig:
    endpoint: str = DEFAULT_ENDPOINT
    access_key_id: str = ""
    secret_access_key: str = ""
    show_back: bool = False
    request_timeout: float = 10.0
    # Object store credentials for the lakeFS Hadoop FileSystem
    storage_access_key_id: str = ""
    storage_secret_access_key: str = ""
    log_file: str = DEFAULT_LOG_FILE

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "QuickstartConfig":
        env = os.environ if env is None else env
        return cls(
            endpoint=env.get("LAKEFS_ENDPOINT", DEFAULT_ENDPOINT).rstrip("/"),
            access_key_id=env.get("LAKEFS_ACCESS_KEY_ID", ""),
            secret_access_key=env.get("LAKEFS_SECRET_ACCESS_KEY", ""),
            show_back=env.get("QUICKSTART_SHOW_BACK", "").strip().lower() in _TRUTHY,
            request_timeout=float(env.get("LAKEFS_TIMEOUT", "10")),
            storage_access_key_id=env.get("AWS_ACCESS_KEY_ID", ""),
            storage_secret_access_key=env.get("AWS_SECRET_ACCESS_KEY", ""),
            log_file=env.get("QUICKSTART_LOG_FILE", DEFAULT_LOG_FILE),
        )

    @property
    def has_credentials(self) -> bool:
        return bool(self.access_key_id and self.secret_access_key)

    def to_wizard_config(self) -> WizardConfig:
        return WizardConfig(show_back=self.show_back)


@dataclass
class QuickstartResult:
    """Typed view of the state accumulated by the quickstart steps."""
    repo_id: str = ""
    branch: str = ""
    namespace: str = ""
    # Import step (optional)
    import_source: Optional[str] = None   # None = skipped
    import_commit_id: Optional[str] = None
    imported_objects: int = 0
    spark_conf: Dict[str, str] = field(default_factory=dict)
    spark_flavour: str = ""

    @classmethod
    def from_state(cls, state: Mapping[str, Any]) -> "QuickstartResult":
        return cls(
            repo_id=state.get("repoId", ""),
            branch=state.get("branch", ""),
            namespace=state.get("namespace", ""),
            import_source=state.get("importSource"),
            import_commit_id=state.get("importCommitId"),
            imported_objects=int(state.get("importedObjects", 0) or 0),
            spark_conf=dict(state.get("sparkConf", {})),
            spark_flavour=state.get("sparkFlavour", ""),
        )

    def objects_url(self, endpoint: str) -> str:
        return f"{endpoint.rstrip('/')}/repositories/{self.repo_id}/objects"
