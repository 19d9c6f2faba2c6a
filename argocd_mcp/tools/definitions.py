"""MCP tool declarations for the Argo CD API."""

from __future__ import annotations

from typing import Any

from mcp.types import Tool


def _string(description: str) -> dict[str, Any]:
    return {"type": "string", "description": description}


def _boolean(description: str) -> dict[str, Any]:
    return {"type": "boolean", "description": description}


def _integer(description: str) -> dict[str, Any]:
    return {"type": "integer", "description": description}


def _schema(properties: dict[str, Any], required: list[str] | None = None) -> dict[str, Any]:
    schema: dict[str, Any] = {"type": "object", "properties": properties}
    if required:
        schema["required"] = required
    return schema


APP_NAME = {"name": _string("Application name (required)")}
PROJECT_NAME = {"name": _string("Project name (required)")}
REPO_URL = {"repo_url": _string("Repository URL (required)")}
CLUSTER_SERVER = {"server": _string("Cluster server URL (required)")}


def _resource_properties(resource_name_required: bool = True) -> dict[str, Any]:
    suffix = " (required)" if resource_name_required else ""
    return {
        **APP_NAME,
        "group": _string("Resource group (e.g., apps, core)"),
        "kind": _string("Resource kind (e.g., Deployment, Pod)"),
        "namespace": _string("Resource namespace"),
        "resource_name": _string(f"Resource name{suffix}"),
    }


def _cluster_config_schema(with_tls: bool) -> dict[str, Any]:
    properties: dict[str, Any] = {
        "username": {"type": "string"},
        "password": {"type": "string"},
        "bearerToken": {"type": "string"},
    }
    if with_tls:
        properties["tlsClientConfig"] = {
            "type": "object",
            "properties": {
                "insecure": {"type": "boolean"},
                "caData": {"type": "string"},
                "certData": {"type": "string"},
                "keyData": {"type": "string"},
            },
        }
    return {
        "type": "object",
        "description": "Cluster configuration",
        "properties": properties,
    }


TOOLS: list[Tool] = [
    # Applications
    Tool(
        name="list_applications",
        description="List all applications with optional filtering by name or project",
        inputSchema=_schema({
            "name": _string("Filter applications by name (partial match)"),
            "project": _string("Filter applications by project name"),
            "limit": _integer("Maximum number of applications to return (default: 50)"),
        }),
    ),
    Tool(
        name="get_application",
        description="Get detailed information about a specific application",
        inputSchema=_schema(APP_NAME, ["name"]),
    ),
    Tool(
        name="create_application",
        description="Create a new ArgoCD application",
        inputSchema=_schema({
            **APP_NAME,
            "project": _string("Project name (required)"),
            "repo_url": _string("Git repository URL (required)"),
            "path": _string("Path to Kubernetes manifests in the repository (required)"),
            "target_revision": _string(
                "Target revision (branch, tag, or commit) to sync to (default: HEAD)"
            ),
            "dest_server": _string(
                "Destination cluster URL (default: https://kubernetes.default.svc)"
            ),
            "dest_namespace": _string("Destination namespace"),
        }, ["name", "project", "repo_url", "path"]),
    ),
    Tool(
        name="update_application",
        description="Update an existing application",
        inputSchema=_schema({
            **APP_NAME,
            "project": _string("Project name (optional)"),
            "repo_url": _string("Git repository URL (optional)"),
            "path": _string("Path to Kubernetes manifests (optional)"),
            "target_revision": _string("Target revision (optional)"),
        }, ["name"]),
    ),
    Tool(
        name="delete_application",
        description="Delete an application",
        inputSchema=_schema({
            **APP_NAME,
            "cascade": _boolean("Cascade delete resources (default: true)"),
        }, ["name"]),
    ),
    Tool(
        name="sync_application",
        description="Trigger a manual sync for an application",
        inputSchema=_schema({
            **APP_NAME,
            "revision": _string("Specific revision to sync to (optional)"),
            "prune": _boolean("Prune resources during sync (default: false)"),
        }, ["name"]),
    ),
    Tool(
        name="rollback_application",
        description="Rollback an application to a previous revision",
        inputSchema=_schema({
            **APP_NAME,
            "revision": _string("History ID of the deployment to roll back to (required)"),
        }, ["name", "revision"]),
    ),
    Tool(
        name="get_application_manifests",
        description="Get the manifests for an application",
        inputSchema=_schema({
            **APP_NAME,
            "revision": _string("Specific revision to get manifests for (optional)"),
        }, ["name"]),
    ),
    Tool(
        name="get_application_diff",
        description="Get the diff between live and desired state for an application",
        inputSchema=_schema({
            **APP_NAME,
            "limit": _integer("Maximum number of resources to show diff for (default: 20)"),
        }, ["name"]),
    ),
    Tool(
        name="get_application_events",
        description="Get events for an application",
        inputSchema=_schema({
            **APP_NAME,
            "limit": _integer("Maximum number of events to return (default: 20)"),
        }, ["name"]),
    ),
    # Application resources
    Tool(
        name="list_resource_actions",
        description="List available actions for a resource in an application",
        inputSchema=_schema(_resource_properties(), ["name", "kind", "resource_name"]),
    ),
    Tool(
        name="run_resource_action",
        description="Run an action on a resource in an application",
        inputSchema=_schema({
            **_resource_properties(resource_name_required=False),
            "action": _string("Action to run (e.g., restart)"),
        }, ["name", "group", "kind", "resource_name", "action"]),
    ),
    Tool(
        name="get_application_resource",
        description="Get details of a specific resource in an application",
        inputSchema=_schema(_resource_properties(), ["name", "kind", "resource_name"]),
    ),
    Tool(
        name="patch_application_resource",
        description="Patch a resource in an application using JSON patch",
        inputSchema=_schema({
            **_resource_properties(),
            "patch": _string("JSON patch to apply (required)"),
            "patch_type": _string("Patch type: merge, json, or strategic (default: merge)"),
        }, ["name", "kind", "resource_name", "patch"]),
    ),
    Tool(
        name="delete_application_resource",
        description="Delete a resource from an application",
        inputSchema=_schema({
            **_resource_properties(),
            "force": _boolean("Force deletion (default: false)"),
            "orphan": _boolean("Orphan the resource (default: false)"),
        }, ["name", "kind", "resource_name"]),
    ),
    # Projects
    Tool(
        name="list_projects",
        description="List all ArgoCD projects",
        inputSchema=_schema({
            "name": _string("Filter projects by name (partial match)"),
            "limit": _integer("Maximum number of projects to return (default: 50)"),
        }),
    ),
    Tool(
        name="get_project",
        description="Get detailed information about a specific project",
        inputSchema=_schema(PROJECT_NAME, ["name"]),
    ),
    Tool(
        name="create_project",
        description="Create a new ArgoCD project",
        inputSchema=_schema({
            **PROJECT_NAME,
            "description": _string("Project description"),
            "source_repos": {
                "type": "array",
                "description": "Allowed source repositories",
                "items": {"type": "string"},
            },
            "destinations": {
                "type": "array",
                "description": "Allowed destinations",
                "items": {
                    "type": "object",
                    "properties": {
                        "server": {"type": "string"},
                        "namespace": {"type": "string"},
                    },
                },
            },
        }, ["name"]),
    ),
    Tool(
        name="update_project",
        description="Update an existing project",
        inputSchema=_schema({
            **PROJECT_NAME,
            "description": _string("Project description"),
            "source_repos": {
                "type": "array",
                "description": "Allowed source repositories",
                "items": {"type": "string"},
            },
        }, ["name"]),
    ),
    Tool(
        name="delete_project",
        description="Delete a project",
        inputSchema=_schema(PROJECT_NAME, ["name"]),
    ),
    Tool(
        name="get_project_events",
        description="Get events for a project",
        inputSchema=_schema({
            **PROJECT_NAME,
            "limit": _integer("Maximum number of events to return (default: 20)"),
        }, ["name"]),
    ),
    # Repositories
    Tool(
        name="list_repositories",
        description="List all configured repositories",
        inputSchema=_schema({
            "repo_url": _string("Filter by repository URL (partial match)"),
            "limit": _integer("Maximum number of repositories to return (default: 50)"),
        }),
    ),
    Tool(
        name="get_repository",
        description="Get details of a specific repository",
        inputSchema=_schema(REPO_URL, ["repo_url"]),
    ),
    Tool(
        name="create_repository",
        description="Create a new repository connection",
        inputSchema=_schema({
            **REPO_URL,
            "type": _string("Repository type (git or helm)"),
            "name": _string("Repository name"),
            "username": _string("Username for authentication"),
            "password": _string("Password or token for authentication"),
            "ssh_private_key": _string("SSH private key for SSH authentication"),
            "insecure": _boolean("Skip server verification (default: false)"),
        }, ["repo_url"]),
    ),
    Tool(
        name="update_repository",
        description="Update an existing repository",
        inputSchema=_schema({
            **REPO_URL,
            "name": _string("Repository name"),
            "username": _string("Username for authentication"),
            "password": _string("Password or token for authentication"),
            "ssh_private_key": _string("SSH private key for SSH authentication"),
        }, ["repo_url"]),
    ),
    Tool(
        name="delete_repository",
        description="Delete a repository",
        inputSchema=_schema(REPO_URL, ["repo_url"]),
    ),
    Tool(
        name="validate_repository",
        description="Validate repository access",
        inputSchema=_schema(REPO_URL, ["repo_url"]),
    ),
    # Clusters
    Tool(
        name="list_clusters",
        description="List all configured clusters",
        inputSchema=_schema({
            "server": _string("Filter by cluster server URL (partial match)"),
            "limit": _integer("Maximum number of clusters to return (default: 50)"),
        }),
    ),
    Tool(
        name="get_cluster",
        description="Get details of a specific cluster",
        inputSchema=_schema(CLUSTER_SERVER, ["server"]),
    ),
    Tool(
        name="create_cluster",
        description="Create a new cluster connection",
        inputSchema=_schema({
            **CLUSTER_SERVER,
            "name": _string("Cluster name"),
            "config": _cluster_config_schema(with_tls=True),
        }, ["server"]),
    ),
    Tool(
        name="update_cluster",
        description="Update an existing cluster",
        inputSchema=_schema({
            **CLUSTER_SERVER,
            "name": _string("Cluster name"),
            "config": _cluster_config_schema(with_tls=False),
        }, ["server"]),
    ),
    Tool(
        name="delete_cluster",
        description="Delete a cluster",
        inputSchema=_schema(CLUSTER_SERVER, ["server"]),
    ),
]

TOOLS_BY_NAME: dict[str, Tool] = {tool.name: tool for tool in TOOLS}

# Tools rejected outright in safe mode. sync_application is allowed, but
# not with prune=true.
WRITE_TOOLS: frozenset[str] = frozenset({
    "create_application",
    "update_application",
    "delete_application",
    "rollback_application",
    "run_resource_action",
    "patch_application_resource",
    "delete_application_resource",
    "create_project",
    "update_project",
    "delete_project",
    "create_repository",
    "update_repository",
    "delete_repository",
    "create_cluster",
    "update_cluster",
    "delete_cluster",
})
