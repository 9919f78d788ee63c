# services/lakefs.py
"""Minimal async lakeFS API client used by the quickstart steps."""
from __future__ import annotations
import asyncio
import time
from typing import Any, Dict, Optional
import aiohttp
from logger import log

API_PREFIX = "/api/v1"
IMPORT_POLL_INTERVAL = 1.0
IMPORT_TIMEOUT = 600.0


class LakeFSError(Exception):
    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status
        self.message = message

    def __str__(self) -> str:
        if self.status:
            return f"{self.message} (HTTP {self.status})"
        return self.message


class LakeFSClient:
    def __init__(
        self,
        endpoint: str,
        access_key_id: str,
        secret_access_key: str,
        timeout: float = 10.0,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self.endpoint = endpoint.rstrip("/")
        self.timeout = timeout
        self._auth = aiohttp.BasicAuth(access_key_id, secret_access_key)
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "LakeFSClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession(
                auth=self._auth,
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            )
        return self._session

    async def close(self) -> None:
        if self._session is not None and self._owns_session:
            await self._session.close()
        self._session = None

    async def _request(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        url = f"{self.endpoint}{API_PREFIX}{path}"
        session = self._get_session()
        try:
            async with session.request(method, url, **kwargs) as response:
                if response.status >= 400:
                    raise LakeFSError(await self._error_message(response), response.status)
                if response.status == 204:
                    return {}
                return await response.json()
        except asyncio.TimeoutError:
            log.warning("lakeFS %s %s timed out", method, path)
            raise LakeFSError(f"Request to {url} timed out") from None
        except aiohttp.ClientError as e:
            log.warning("lakeFS %s %s failed: %s", method, path, e)
            raise LakeFSError(f"Cannot reach lakeFS at {self.endpoint}: {e}") from e

    @staticmethod
    async def _error_message(response) -> str:
        try:
            body = await response.json()
            if isinstance(body, dict) and body.get("message"):
                return str(body["message"])
        except (aiohttp.ContentTypeError, ValueError):
            pass
        text = await response.text()
        return text.strip() or f"lakeFS returned HTTP {response.status}"

    # -- Endpoints ---------------------------------------------------------

    async def get_storage_config(self) -> Dict[str, Any]:
        return await self._request("GET", "/config/storage")

    async def create_repository(
        self,
        name: str,
        storage_namespace: str,
        default_branch: str = "main",
        sample_data: bool = False,
    ) -> Dict[str, Any]:
        body = {
            "name": name,
            "storage_namespace": storage_namespace,
            "default_branch": default_branch,
            "sample_data": sample_data,
        }
        repo = await self._request("POST", "/repositories", json=body)
        log.info("Created repository %s at %s", name, storage_namespace)
        return repo

    async def start_import(
        self,
        repo: str,
        branch: str,
        source: str,
        destination: str = "",
        message: str = "Import data",
    ) -> str:
        body = {
            "paths": [{"path": source, "destination": destination, "type": "common_prefix"}],
            "commit": {"message": message},
        }
        resp = await self._request(
            "POST", f"/repositories/{repo}/branches/{branch}/import", json=body
        )
        log.info("Started import %s from %s into %s/%s", resp.get("id"), source, repo, branch)
        return resp["id"]

    async def import_status(self, repo: str, branch: str, import_id: str) -> Dict[str, Any]:
        return await self._request(
            "GET", f"/repositories/{repo}/branches/{branch}/import",
            params={"id": import_id},
        )

    async def import_data(
        self,
        repo: str,
        branch: str,
        source: str,
        destination: str = "",
        message: str = "Import data",
        poll_interval: float = IMPORT_POLL_INTERVAL,
        timeout: float = IMPORT_TIMEOUT,
    ) -> Dict[str, Any]:
        """Start an import and poll until lakeFS reports it completed."""
        import_id = await self.start_import(repo, branch, source, destination, message)
        deadline = time.monotonic() + timeout
        while True:
            status = await self.import_status(repo, branch, import_id)
            if status.get("error"):
                err = status["error"]
                msg = err.get("message") if isinstance(err, dict) else str(err)
                raise LakeFSError(f"Import failed: {msg}")
            if status.get("completed"):
                log.info("Import %s completed (%s objects)",
                         import_id, status.get("ingested_objects", 0))
                return status
            if time.monotonic() >= deadline:
                raise LakeFSError(f"Import {import_id} did not finish within {int(timeout)}s")
            await asyncio.sleep(poll_interval)
