"""Tool dispatch: argument handling, safe mode, API calls and result shaping.

``ToolManager`` is the single entry point used by the MCP server and the
``call`` CLI command. Handlers never raise for API failures; every error
becomes a ``CallToolResult`` with ``isError`` set.
"""

from __future__ import annotations

import asyncio
import copy
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

from mcp.types import CallToolResult, Tool

from ..client import ArgoCDClient, ArgoCDError, ResourceRef
from ..log import get_logger
from ..shaping import (
    DEFAULT_LIMITS,
    Limits,
    MalformedEventsError,
    ParseError,
    ResponseBounder,
    diff_documents,
    effective_limit,
    format_diff,
    json_to_yaml,
    normalize,
    parse,
    strip_field,
    strip_managed_fields,
    truncate_string,
)
from ..shaping.documents import MANAGED_FIELDS
from . import formatters
from .arguments import arg_bool, arg_dict, arg_int, arg_list, arg_str, arg_str_list
from .definitions import TOOLS, WRITE_TOOLS
from .results import error_result, result, result_list

logger = get_logger("tools")

DEFAULT_TIMEOUT = 60.0
DEFAULT_DESTINATION = "https://kubernetes.default.svc"
APPLICATION_NAMESPACE = "argocd"

Handler = Callable[[dict[str, Any]], Awaitable[CallToolResult]]


@dataclass
class ToolStats:
    """Statistics about tool calls served by one manager."""

    total_calls: int = 0
    successful_calls: int = 0
    failed_calls: int = 0
    rejected_calls: int = 0
    timed_out_calls: int = 0
    calls_by_tool: dict[str, int] = field(default_factory=dict)
    total_duration_ms: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_calls": self.total_calls,
            "successful_calls": self.successful_calls,
            "failed_calls": self.failed_calls,
            "rejected_calls": self.rejected_calls,
            "timed_out_calls": self.timed_out_calls,
            "calls_by_tool": self.calls_by_tool,
            "avg_duration_ms": (
                self.total_duration_ms / self.total_calls
                if self.total_calls > 0 else 0
            ),
        }


def safe_mode_message(operation: str) -> str:
    return (
        f"Operation '{operation}' is not allowed in safe mode. "
        "Safe mode restricts write operations for security."
    )


def _items(data: Any) -> list[Any]:
    if isinstance(data, dict):
        return list(data.get("items") or [])
    return []


def _resource_ref(arguments: dict[str, Any]) -> ResourceRef:
    return ResourceRef(
        app=arg_str(arguments, "name"),
        group=arg_str(arguments, "group"),
        kind=arg_str(arguments, "kind"),
        namespace=arg_str(arguments, "namespace"),
        resource_name=arg_str(arguments, "resource_name"),
    )


def _decode_manifest(response: Any) -> Any:
    """Resource manifest as a tree without managedFields, or the raw text."""
    manifest = response.get("manifest", "") if isinstance(response, dict) else ""
    if not manifest:
        return response
    try:
        return strip_field(parse(manifest), MANAGED_FIELDS)
    except ParseError:
        return manifest


class ToolManager:
    """Serves the Argo CD tools against one API client.

    Example:
        manager = ToolManager(client, safe_mode=True)
        result = await manager.call_tool("list_applications", {"limit": 5})
    """

    def __init__(
        self,
        client: ArgoCDClient,
        limits: Limits = DEFAULT_LIMITS,
        safe_mode: bool = False,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.client = client
        self.limits = limits
        self.bounder = ResponseBounder(limits)
        self.safe_mode = safe_mode
        self.timeout = timeout
        self.stats = ToolStats()
        self._handlers: dict[str, Handler] = {
            tool.name: getattr(self, f"_handle_{tool.name}") for tool in TOOLS
        }

    def list_tools(self) -> list[Tool]:
        return list(TOOLS)

    async def call_tool(self, name: str, arguments: Any) -> CallToolResult:
        """Run one tool call.

        Args:
            name: Tool name.
            arguments: Tool arguments; ``None`` is treated as no arguments.

        Returns:
            The tool result. Failures are reported with ``isError`` set.
        """
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, dict):
            return self._reject(name, "Invalid arguments format")

        handler = self._handlers.get(name)
        if handler is None:
            return self._reject(name, f"Unknown tool: {name}")

        if self.safe_mode and name in WRITE_TOOLS:
            return self._reject(name, safe_mode_message(name))

        self.stats.total_calls += 1
        self.stats.calls_by_tool[name] = self.stats.calls_by_tool.get(name, 0) + 1
        start = time.monotonic()
        try:
            outcome = await asyncio.wait_for(handler(arguments), timeout=self.timeout)
        except asyncio.TimeoutError:
            self.stats.timed_out_calls += 1
            outcome = error_result(
                f"Operation '{name}' timed out after {self.timeout:g} seconds"
            )
        except ArgoCDError as e:
            outcome = error_result(e.message)
        except Exception as e:
            logger.exception("tool.failed", tool=name)
            outcome = error_result(f"Operation '{name}' failed: {e}")

        duration_ms = (time.monotonic() - start) * 1000
        self.stats.total_duration_ms += duration_ms
        if outcome.isError:
            self.stats.failed_calls += 1
            logger.warning(
                "tool.error",
                tool=name,
                error=outcome.content[0].text if outcome.content else "",
                duration_ms=round(duration_ms, 1),
            )
        else:
            self.stats.successful_calls += 1
            logger.info("tool.call", tool=name, duration_ms=round(duration_ms, 1))
        return outcome

    def _reject(self, name: str, message: str) -> CallToolResult:
        self.stats.rejected_calls += 1
        logger.warning("tool.rejected", tool=name, reason=message)
        return error_result(message)

    def _result(self, data: Any, truncated: bool = False) -> CallToolResult:
        return result(data, self.bounder, truncated=truncated)

    def _list(self, items: list[Any], limit: int) -> CallToolResult:
        return result_list(items, bounder=self.bounder, limit=limit)

    def _events(self, raw: Any, arguments: dict[str, Any]) -> CallToolResult:
        try:
            events = normalize(raw)
        except MalformedEventsError as e:
            return error_result(f"Failed to parse events: {e}")
        limit = effective_limit(arg_int(arguments, "limit"), self.limits.max_events)
        return self._list([event.to_dict() for event in events], limit)

    # ------------------------------------------------------------------
    # Applications
    # ------------------------------------------------------------------

    async def _handle_list_applications(self, arguments: dict[str, Any]) -> CallToolResult:
        data = await self.client.list_applications(
            name=arg_str(arguments, "name"), project=arg_str(arguments, "project")
        )
        limit = effective_limit(arg_int(arguments, "limit"), self.limits.max_items)
        return self._list([formatters.application_summary(app) for app in _items(data)], limit)

    async def _handle_get_application(self, arguments: dict[str, Any]) -> CallToolResult:
        app = await self.client.get_application(arg_str(arguments, "name"))
        return self._result(formatters.application_detail(app))

    async def _handle_create_application(self, arguments: dict[str, Any]) -> CallToolResult:
        app = {
            "metadata": {
                "name": arg_str(arguments, "name"),
                "namespace": APPLICATION_NAMESPACE,
            },
            "spec": {
                "project": arg_str(arguments, "project"),
                "source": {
                    "repoURL": arg_str(arguments, "repo_url"),
                    "path": arg_str(arguments, "path"),
                    "targetRevision": arg_str(arguments, "target_revision", "HEAD"),
                },
                "destination": {
                    "server": arg_str(arguments, "dest_server") or DEFAULT_DESTINATION,
                    "namespace": arg_str(arguments, "dest_namespace"),
                },
            },
        }
        created = await self.client.create_application(app)
        return self._result(formatters.application_detail(created))

    async def _handle_update_application(self, arguments: dict[str, Any]) -> CallToolResult:
        existing = await self.client.get_application(arg_str(arguments, "name"))
        app = copy.deepcopy(existing or {})
        spec = app.setdefault("spec", {})

        project = arg_str(arguments, "project")
        if project:
            spec["project"] = project

        source = spec.get("source")
        if isinstance(source, dict):
            for arg_name, field_name in (
                ("repo_url", "repoURL"),
                ("path", "path"),
                ("target_revision", "targetRevision"),
            ):
                value = arg_str(arguments, arg_name)
                if value:
                    source[field_name] = value

        updated = await self.client.update_application(app)
        return self._result(formatters.application_detail(updated))

    async def _handle_delete_application(self, arguments: dict[str, Any]) -> CallToolResult:
        name = arg_str(arguments, "name")
        await self.client.delete_application(name, cascade=arg_bool(arguments, "cascade", True))
        return self._result({
            "message": f"Application {name} deleted successfully",
            "success": True,
        })

    async def _handle_sync_application(self, arguments: dict[str, Any]) -> CallToolResult:
        name = arg_str(arguments, "name")
        prune = arg_bool(arguments, "prune")
        if self.safe_mode and prune:
            return error_result("sync_application with prune=true is not allowed in safe mode")

        app = await self.client.sync_application(
            name, revision=arg_str(arguments, "revision"), prune=prune
        )
        return self._result({
            "message": f"Application {name} sync initiated",
            **formatters.sync_status(app),
        })

    async def _handle_rollback_application(self, arguments: dict[str, Any]) -> CallToolResult:
        name = arg_str(arguments, "name")
        revision = arguments.get("revision")
        if isinstance(revision, int) and not isinstance(revision, bool):
            history_id = revision
        elif isinstance(revision, str) and revision.strip().isdigit():
            history_id = int(revision.strip())
        else:
            return error_result(
                f"revision must be a numeric history ID, got {revision!r}"
            )

        app = await self.client.rollback_application(name, history_id)
        return self._result({
            "message": f"Application {name} rolled back",
            **formatters.sync_status(app),
        })

    async def _handle_get_application_manifests(self, arguments: dict[str, Any]) -> CallToolResult:
        manifests = await self.client.get_application_manifests(
            arg_str(arguments, "name"), revision=arg_str(arguments, "revision")
        )
        total = len(manifests)
        shown = manifests[: self.limits.max_manifests]
        rendered = [json_to_yaml(m) for m in shown]
        cut = [truncate_string(text, self.limits.max_chars) for text in rendered]
        return self._result({
            "manifests": cut,
            "count": len(shown),
            "total": total,
            "limited": total > len(shown),
        }, truncated=cut != rendered)

    async def _handle_get_application_diff(self, arguments: dict[str, Any]) -> CallToolResult:
        name = arg_str(arguments, "name")
        limit = effective_limit(arg_int(arguments, "limit"), self.limits.max_diff_resources)
        half = self.limits.max_chars // 2

        resources = await self.client.get_managed_resources(name)

        truncated = False
        out_of_sync: list[dict[str, Any]] = []
        synced: list[dict[str, Any]] = []
        for resource in resources:
            info: dict[str, Any] = {
                "group": resource.get("group", ""),
                "kind": resource.get("kind", ""),
                "namespace": resource.get("namespace", ""),
                "name": resource.get("name", ""),
            }
            if resource.get("modified") or resource.get("diff"):
                if len(out_of_sync) >= limit:
                    continue
                target_json = resource.get("targetState") or ""
                live_json = (
                    resource.get("normalizedLiveState") or resource.get("liveState") or ""
                )
                entries = diff_documents(target_json, live_json)
                target = strip_managed_fields(target_json)
                live = strip_managed_fields(live_json)
                target_cut = truncate_string(target, half)
                live_cut = truncate_string(live, half)
                truncated = truncated or target_cut != target or live_cut != live
                info.update({
                    "status": "OutOfSync",
                    "target": target_cut,
                    "live": live_cut,
                    "changes": [entry.to_dict() for entry in entries],
                    "diff": format_diff(entries),
                    "resource_version": resource.get("resourceVersion", ""),
                })
                out_of_sync.append(info)
            elif len(synced) < limit:
                info["status"] = "Synced"
                synced.append(info)

        return self._result({
            "application": name,
            "out_of_sync": out_of_sync,
            "synced": synced,
            "total": len(resources),
            "out_of_sync_count": len(out_of_sync),
            "limited": len(resources) > len(out_of_sync) + len(synced),
        }, truncated=truncated)

    async def _handle_get_application_events(self, arguments: dict[str, Any]) -> CallToolResult:
        raw = await self.client.get_application_events(arg_str(arguments, "name"))
        return self._events(raw, arguments)

    # ------------------------------------------------------------------
    # Application resources
    # ------------------------------------------------------------------

    async def _handle_list_resource_actions(self, arguments: dict[str, Any]) -> CallToolResult:
        actions = await self.client.list_resource_actions(_resource_ref(arguments))
        return self._result({
            "actions": [
                {"name": action.get("name", ""), "disabled": bool(action.get("disabled"))}
                for action in actions
                if isinstance(action, dict)
            ],
            "total": len(actions),
        })

    async def _handle_run_resource_action(self, arguments: dict[str, Any]) -> CallToolResult:
        ref = _resource_ref(arguments)
        action = arg_str(arguments, "action")
        await self.client.run_resource_action(ref, action)
        return self._result({
            "message": (
                f"Action '{action}' executed on "
                f"{ref.kind}/{ref.namespace}/{ref.resource_name}"
            ),
            "success": True,
        })

    async def _handle_get_application_resource(self, arguments: dict[str, Any]) -> CallToolResult:
        response = await self.client.get_application_resource(_resource_ref(arguments))
        return self._result({"resource": _decode_manifest(response), "success": True})

    async def _handle_patch_application_resource(self, arguments: dict[str, Any]) -> CallToolResult:
        ref = _resource_ref(arguments)
        response = await self.client.patch_application_resource(
            ref,
            patch=arg_str(arguments, "patch"),
            patch_type=arg_str(arguments, "patch_type", "merge"),
        )
        return self._result({
            "resource": _decode_manifest(response),
            "message": f"Resource {ref.kind}/{ref.resource_name} patched successfully",
            "success": True,
        })

    async def _handle_delete_application_resource(self, arguments: dict[str, Any]) -> CallToolResult:
        ref = _resource_ref(arguments)
        await self.client.delete_application_resource(
            ref,
            force=arg_bool(arguments, "force"),
            orphan=arg_bool(arguments, "orphan"),
        )
        return self._result({
            "message": f"Resource {ref.kind}/{ref.resource_name} deleted successfully",
            "success": True,
        })

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    async def _handle_list_projects(self, arguments: dict[str, Any]) -> CallToolResult:
        data = await self.client.list_projects(name=arg_str(arguments, "name"))
        limit = effective_limit(arg_int(arguments, "limit"), self.limits.max_items)
        return self._list([formatters.project_summary(p) for p in _items(data)], limit)

    async def _handle_get_project(self, arguments: dict[str, Any]) -> CallToolResult:
        project = await self.client.get_project(arg_str(arguments, "name"))
        return self._result(formatters.project_detail(project))

    async def _handle_create_project(self, arguments: dict[str, Any]) -> CallToolResult:
        name = arg_str(arguments, "name")
        spec: dict[str, Any] = {"description": arg_str(arguments, "description")}
        source_repos = arg_str_list(arguments, "source_repos")
        if source_repos:
            spec["sourceRepos"] = source_repos
        destinations = [
            {"server": arg_str(d, "server"), "namespace": arg_str(d, "namespace")}
            for d in arg_list(arguments, "destinations")
            if isinstance(d, dict)
        ]
        if destinations:
            spec["destinations"] = destinations

        created = await self.client.create_project({"metadata": {"name": name}, "spec": spec})
        return self._result({
            **formatters.project_summary(created),
            "message": f"Project {name} created successfully",
        })

    async def _handle_update_project(self, arguments: dict[str, Any]) -> CallToolResult:
        name = arg_str(arguments, "name")
        existing = await self.client.get_project(name)
        project = copy.deepcopy(existing or {})
        spec = project.setdefault("spec", {})

        description = arg_str(arguments, "description")
        if description:
            spec["description"] = description
        source_repos = arg_str_list(arguments, "source_repos")
        if source_repos:
            spec["sourceRepos"] = source_repos

        updated = await self.client.update_project(project)
        return self._result({
            **formatters.project_summary(updated),
            "message": f"Project {name} updated successfully",
        })

    async def _handle_delete_project(self, arguments: dict[str, Any]) -> CallToolResult:
        name = arg_str(arguments, "name")
        await self.client.delete_project(name)
        return self._result({
            "message": f"Project {name} deleted successfully",
            "success": True,
        })

    async def _handle_get_project_events(self, arguments: dict[str, Any]) -> CallToolResult:
        raw = await self.client.get_project_events(arg_str(arguments, "name"))
        return self._events(raw, arguments)

    # ------------------------------------------------------------------
    # Repositories
    # ------------------------------------------------------------------

    async def _handle_list_repositories(self, arguments: dict[str, Any]) -> CallToolResult:
        data = await self.client.list_repositories(repo_url=arg_str(arguments, "repo_url"))
        limit = effective_limit(arg_int(arguments, "limit"), self.limits.max_items)
        return self._list([formatters.repository_summary(r) for r in _items(data)], limit)

    async def _handle_get_repository(self, arguments: dict[str, Any]) -> CallToolResult:
        repo = await self.client.get_repository(arg_str(arguments, "repo_url"))
        return self._result(formatters.repository_detail(repo))

    async def _handle_create_repository(self, arguments: dict[str, Any]) -> CallToolResult:
        repo_url = arg_str(arguments, "repo_url")
        if not repo_url:
            return error_result("repo_url is required")

        repo = {
            "repo": repo_url,
            "type": arg_str(arguments, "type", "git"),
            "name": arg_str(arguments, "name"),
            "username": arg_str(arguments, "username"),
            "password": arg_str(arguments, "password"),
            "sshPrivateKey": arg_str(arguments, "ssh_private_key"),
            "insecure": arg_bool(arguments, "insecure"),
        }
        created = await self.client.create_repository(repo)
        return self._result({
            **formatters.repository_detail(created),
            "message": f"Repository {repo_url} created successfully",
            "success": True,
        })

    async def _handle_update_repository(self, arguments: dict[str, Any]) -> CallToolResult:
        repo_url = arg_str(arguments, "repo_url")
        if not repo_url:
            return error_result("repo_url is required")

        try:
            existing = await self.client.get_repository(repo_url)
        except ArgoCDError as e:
            return error_result(f"failed to get existing repository: {e.message}")

        repo = copy.deepcopy(existing or {})
        for arg_name, field_name in (
            ("name", "name"),
            ("username", "username"),
            ("password", "password"),
            ("ssh_private_key", "sshPrivateKey"),
        ):
            value = arg_str(arguments, arg_name)
            if value:
                repo[field_name] = value

        updated = await self.client.update_repository(repo)
        return self._result({
            **formatters.repository_detail(updated),
            "message": f"Repository {repo_url} updated successfully",
            "success": True,
        })

    async def _handle_delete_repository(self, arguments: dict[str, Any]) -> CallToolResult:
        repo_url = arg_str(arguments, "repo_url")
        await self.client.delete_repository(repo_url)
        return self._result({
            "message": f"Repository {repo_url} deleted successfully",
            "success": True,
        })

    async def _handle_validate_repository(self, arguments: dict[str, Any]) -> CallToolResult:
        repo_url = arg_str(arguments, "repo_url")
        try:
            await self.client.validate_repository_access(repo_url)
        except ArgoCDError as e:
            return self._result({
                "repo": repo_url,
                "valid": False,
                "message": e.message,
                "success": False,
            })
        return self._result({
            "repo": repo_url,
            "valid": True,
            "message": "Repository access is valid",
            "success": True,
        })

    # ------------------------------------------------------------------
    # Clusters
    # ------------------------------------------------------------------

    async def _handle_list_clusters(self, arguments: dict[str, Any]) -> CallToolResult:
        data = await self.client.list_clusters(server=arg_str(arguments, "server"))
        limit = effective_limit(arg_int(arguments, "limit"), self.limits.max_items)
        return self._list([formatters.cluster_summary(c) for c in _items(data)], limit)

    async def _handle_get_cluster(self, arguments: dict[str, Any]) -> CallToolResult:
        cluster = await self.client.get_cluster(arg_str(arguments, "server"))
        return self._result(formatters.cluster_detail(cluster))

    async def _handle_create_cluster(self, arguments: dict[str, Any]) -> CallToolResult:
        server = arg_str(arguments, "server")
        if not server:
            return error_result("server is required")

        cluster = {
            "server": server,
            "name": arg_str(arguments, "name"),
            "config": formatters.build_cluster_config(arg_dict(arguments, "config")),
        }
        created = await self.client.create_cluster(cluster)
        return self._result({
            **formatters.cluster_detail(created),
            "message": f"Cluster {server} created successfully",
            "success": True,
        })

    async def _handle_update_cluster(self, arguments: dict[str, Any]) -> CallToolResult:
        server = arg_str(arguments, "server")
        if not server:
            return error_result("server is required")

        try:
            existing = await self.client.get_cluster(server)
        except ArgoCDError as e:
            return error_result(f"failed to get existing cluster: {e.message}")

        cluster = copy.deepcopy(existing or {})
        name = arg_str(arguments, "name")
        if name:
            cluster["name"] = name
        config = arg_dict(arguments, "config")
        if config:
            cluster["config"] = formatters.build_cluster_config(config)

        updated = await self.client.update_cluster(cluster, updated_fields=["config", "name"])
        return self._result({
            **formatters.cluster_detail(updated),
            "message": f"Cluster {server} updated successfully",
            "success": True,
        })

    async def _handle_delete_cluster(self, arguments: dict[str, Any]) -> CallToolResult:
        server = arg_str(arguments, "server")
        await self.client.delete_cluster(server)
        return self._result({
            "message": f"Cluster {server} deleted successfully",
            "success": True,
        })
