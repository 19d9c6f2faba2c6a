"""Async client for the Argo CD REST API.

Thin wrapper over ``httpx.AsyncClient``: every method maps to one
``/api/v1`` endpoint and returns the decoded JSON body. Requests are
rate limited client side (10 requests/second, bursts of 20).
"""

from __future__ import annotations

import ssl
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

import httpx

from .log import get_logger
from .rate_limiter import RateLimitConfig, RateLimiter

logger = get_logger("client")

DEFAULT_TIMEOUT = 60.0


class ArgoCDError(Exception):
    """An Argo CD API call failed."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    @classmethod
    def from_response(cls, response: httpx.Response) -> ArgoCDError:
        """Build an error from a non-2xx response, preferring the server's message."""
        message = ""
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            message = body.get("message") or body.get("error") or ""
        if not message:
            message = response.text.strip() or response.reason_phrase
        return cls(
            f"{response.request.method} {response.request.url.path} failed "
            f"({response.status_code}): {message}",
            status_code=response.status_code,
        )


class AuthenticationError(ArgoCDError):
    """Session creation failed or no credentials are configured."""


def build_base_url(server: str, plaintext: bool = False, root_path: str = "") -> str:
    """Base URL of the REST API for ``server`` (``host[:port]`` or a full URL)."""
    if "://" in server:
        base = server.rstrip("/")
    else:
        scheme = "http" if plaintext else "https"
        base = f"{scheme}://{server.rstrip('/')}"
    root = root_path.strip("/")
    if root:
        base = f"{base}/{root}"
    return f"{base}/api/v1"


def tls_verify(insecure: bool = False, cert_file: str = "") -> bool | ssl.SSLContext:
    """``verify`` argument for httpx from the TLS settings."""
    if insecure:
        return False
    if cert_file:
        return ssl.create_default_context(cafile=cert_file)
    return True


def infer_resource_version(group: str) -> str:
    """API version used for resource requests.

    Core and the common built-in groups are all served at ``v1``, and so are
    most CRDs, so ``v1`` is used throughout.
    """
    return "v1"


@dataclass
class ResourceRef:
    """Coordinates of one resource managed by an application."""

    app: str
    kind: str
    resource_name: str
    group: str = ""
    namespace: str = ""
    version: str = ""

    def __post_init__(self) -> None:
        if not self.version:
            self.version = infer_resource_version(self.group)

    def params(self) -> dict[str, str]:
        return {
            "namespace": self.namespace,
            "resourceName": self.resource_name,
            "version": self.version,
            "group": self.group,
            "kind": self.kind,
        }


def _segment(value: str) -> str:
    return quote(value, safe="")


class ArgoCDClient:
    """Argo CD API client.

    Example:
        async with ArgoCDClient("argocd.example.com", token) as client:
            apps = await client.list_applications(project="default")
    """

    def __init__(
        self,
        server: str,
        token: str = "",
        *,
        insecure: bool = False,
        plaintext: bool = False,
        cert_file: str = "",
        grpc_web_root_path: str = "",
        timeout: float = DEFAULT_TIMEOUT,
        rate_limit_config: RateLimitConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.server = server
        self.base_url = build_base_url(server, plaintext, grpc_web_root_path)
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=timeout,
            verify=tls_verify(insecure, cert_file),
            transport=transport,
        )
        self.rate_limiter = RateLimiter(rate_limit_config)

    async def __aenter__(self) -> ArgoCDClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        await self.rate_limiter.acquire()

        if params:
            params = {
                key: (str(value).lower() if isinstance(value, bool) else value)
                for key, value in params.items()
                if value is not None
            }

        logger.debug("client.request", method=method, path=path)
        try:
            response = await self._http.request(method, path, params=params, json=json)
        except httpx.HTTPError as e:
            raise ArgoCDError(f"{method} {path} failed: {e}") from e

        if response.is_error:
            raise ArgoCDError.from_response(response)
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise ArgoCDError(f"{method} {path} returned invalid JSON: {e}") from e

    # ------------------------------------------------------------------
    # Session / account
    # ------------------------------------------------------------------

    async def create_session(self, username: str, password: str) -> str:
        data = await self._request(
            "POST", "/session", json={"username": username, "password": password}
        )
        return (data or {}).get("token", "")

    async def get_account(self, name: str) -> Any:
        return await self._request("GET", f"/account/{_segment(name)}")

    # ------------------------------------------------------------------
    # Applications
    # ------------------------------------------------------------------

    async def list_applications(
        self, name: str | None = None, project: str | None = None
    ) -> Any:
        return await self._request(
            "GET",
            "/applications",
            params={"name": name or None, "projects": project or None},
        )

    async def get_application(self, name: str) -> Any:
        return await self._request("GET", f"/applications/{_segment(name)}")

    async def create_application(self, app: dict[str, Any]) -> Any:
        return await self._request("POST", "/applications", json=app)

    async def update_application(self, app: dict[str, Any]) -> Any:
        name = app.get("metadata", {}).get("name", "")
        return await self._request("PUT", f"/applications/{_segment(name)}", json=app)

    async def delete_application(self, name: str, cascade: bool = True) -> Any:
        return await self._request(
            "DELETE", f"/applications/{_segment(name)}", params={"cascade": cascade}
        )

    async def sync_application(
        self, name: str, revision: str = "", prune: bool = False
    ) -> Any:
        body: dict[str, Any] = {"name": name, "prune": prune}
        if revision:
            body["revision"] = revision
        return await self._request(
            "POST", f"/applications/{_segment(name)}/sync", json=body
        )

    async def rollback_application(self, name: str, history_id: int = 0) -> Any:
        return await self._request(
            "POST",
            f"/applications/{_segment(name)}/rollback",
            json={"name": name, "id": history_id},
        )

    async def get_application_manifests(self, name: str, revision: str = "") -> list[str]:
        data = await self._request(
            "GET",
            f"/applications/{_segment(name)}/manifests",
            params={"revision": revision or None},
        )
        return list((data or {}).get("manifests") or [])

    async def get_application_events(self, name: str) -> Any:
        return await self._request("GET", f"/applications/{_segment(name)}/events")

    async def get_managed_resources(self, name: str) -> list[dict[str, Any]]:
        data = await self._request(
            "GET", f"/applications/{_segment(name)}/managed-resources"
        )
        return list((data or {}).get("items") or [])

    # ------------------------------------------------------------------
    # Application resources
    # ------------------------------------------------------------------

    async def list_resource_actions(self, ref: ResourceRef) -> list[dict[str, Any]]:
        data = await self._request(
            "GET",
            f"/applications/{_segment(ref.app)}/resource/actions",
            params=ref.params(),
        )
        return list((data or {}).get("actions") or [])

    async def run_resource_action(self, ref: ResourceRef, action: str) -> Any:
        return await self._request(
            "POST",
            f"/applications/{_segment(ref.app)}/resource/actions",
            params=ref.params(),
            json=action,
        )

    async def get_application_resource(self, ref: ResourceRef) -> Any:
        return await self._request(
            "GET",
            f"/applications/{_segment(ref.app)}/resource",
            params=ref.params(),
        )

    async def patch_application_resource(
        self, ref: ResourceRef, patch: str, patch_type: str = "merge"
    ) -> Any:
        return await self._request(
            "POST",
            f"/applications/{_segment(ref.app)}/resource",
            params={**ref.params(), "patchType": patch_type},
            json=patch,
        )

    async def delete_application_resource(
        self, ref: ResourceRef, force: bool = False, orphan: bool = False
    ) -> Any:
        return await self._request(
            "DELETE",
            f"/applications/{_segment(ref.app)}/resource",
            params={**ref.params(), "force": force, "orphan": orphan},
        )

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    async def list_projects(self, name: str | None = None) -> Any:
        return await self._request("GET", "/projects", params={"name": name or None})

    async def get_project(self, name: str) -> Any:
        return await self._request("GET", f"/projects/{_segment(name)}")

    async def create_project(self, project: dict[str, Any], upsert: bool = False) -> Any:
        return await self._request(
            "POST", "/projects", json={"project": project, "upsert": upsert}
        )

    async def update_project(self, project: dict[str, Any]) -> Any:
        name = project.get("metadata", {}).get("name", "")
        return await self._request(
            "PUT", f"/projects/{_segment(name)}", json={"project": project}
        )

    async def delete_project(self, name: str) -> Any:
        return await self._request("DELETE", f"/projects/{_segment(name)}")

    async def get_project_events(self, name: str) -> Any:
        return await self._request("GET", f"/projects/{_segment(name)}/events")

    # ------------------------------------------------------------------
    # Repositories
    # ------------------------------------------------------------------

    async def list_repositories(self, repo_url: str | None = None) -> Any:
        return await self._request(
            "GET", "/repositories", params={"repo": repo_url or None}
        )

    async def get_repository(self, repo_url: str) -> Any:
        return await self._request("GET", f"/repositories/{_segment(repo_url)}")

    async def create_repository(self, repo: dict[str, Any], upsert: bool = False) -> Any:
        return await self._request(
            "POST", "/repositories", params={"upsert": upsert}, json=repo
        )

    async def update_repository(self, repo: dict[str, Any]) -> Any:
        return await self._request(
            "PUT", f"/repositories/{_segment(repo.get('repo', ''))}", json=repo
        )

    async def delete_repository(self, repo_url: str) -> Any:
        return await self._request("DELETE", f"/repositories/{_segment(repo_url)}")

    async def validate_repository_access(self, repo_url: str) -> Any:
        return await self._request(
            "POST", f"/repositories/{_segment(repo_url)}/validate"
        )

    # ------------------------------------------------------------------
    # Clusters
    # ------------------------------------------------------------------

    async def list_clusters(self, server: str | None = None) -> Any:
        return await self._request("GET", "/clusters", params={"server": server or None})

    async def get_cluster(self, server: str) -> Any:
        return await self._request("GET", f"/clusters/{_segment(server)}")

    async def create_cluster(self, cluster: dict[str, Any], upsert: bool = False) -> Any:
        return await self._request(
            "POST", "/clusters", params={"upsert": upsert}, json=cluster
        )

    async def update_cluster(
        self, cluster: dict[str, Any], updated_fields: list[str] | None = None
    ) -> Any:
        return await self._request(
            "PUT",
            f"/clusters/{_segment(cluster.get('server', ''))}",
            params={"updatedFields": updated_fields or None},
            json=cluster,
        )

    async def delete_cluster(self, server: str) -> Any:
        return await self._request("DELETE", f"/clusters/{_segment(server)}")
