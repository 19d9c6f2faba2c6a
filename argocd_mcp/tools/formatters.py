"""Reduce Argo CD API objects to the fields tools report."""

from __future__ import annotations

from typing import Any

FAILED_PHASES = ("Failed", "Error")


def _get(obj: Any, *path: str, default: Any = "") -> Any:
    """Walk nested mappings, returning ``default`` at the first gap."""
    for key in path:
        if not isinstance(obj, dict):
            return default
        obj = obj.get(key)
        if obj is None:
            return default
    return obj


def _out_of_sync_count(app: dict[str, Any]) -> int:
    resources = _get(app, "status", "resources", default=[])
    return sum(1 for r in resources if isinstance(r, dict) and r.get("status") == "OutOfSync")


def has_issues(app: dict[str, Any]) -> bool:
    """True when an application needs attention.

    That is any out-of-sync resource, health other than Healthy, or a last
    operation that failed or errored.
    """
    return (
        _out_of_sync_count(app) > 0
        or _get(app, "status", "health", "status") != "Healthy"
        or _get(app, "status", "operationState", "phase") in FAILED_PHASES
    )


def application_summary(app: dict[str, Any]) -> dict[str, Any]:
    return {
        "name": _get(app, "metadata", "name"),
        "project": _get(app, "spec", "project"),
        "server": _get(app, "spec", "destination", "server"),
        "namespace": _get(app, "spec", "destination", "namespace"),
        "status": _get(app, "status", "sync", "status"),
        "health": _get(app, "status", "health", "status"),
        "out_of_sync_count": _out_of_sync_count(app),
        "has_issues": has_issues(app),
    }


def application_detail(app: dict[str, Any]) -> dict[str, Any]:
    conditions = [
        {"type": c.get("type", ""), "message": c.get("message", "")}
        for c in _get(app, "status", "conditions", default=[])
        if isinstance(c, dict)
    ]
    return {
        "name": _get(app, "metadata", "name"),
        "project": _get(app, "spec", "project"),
        "repo_url": _get(app, "spec", "source", "repoURL"),
        "path": _get(app, "spec", "source", "path"),
        "target_revision": _get(app, "spec", "source", "targetRevision"),
        "server": _get(app, "spec", "destination", "server"),
        "namespace": _get(app, "spec", "destination", "namespace"),
        "status": _get(app, "status", "sync", "status"),
        "health": _get(app, "status", "health", "status"),
        "health_message": _get(app, "status", "health", "message"),
        "revision": _get(app, "status", "sync", "revision"),
        "out_of_sync_count": _out_of_sync_count(app),
        "has_issues": has_issues(app),
        "operation_phase": _get(app, "status", "operationState", "phase"),
        "operation_message": _get(app, "status", "operationState", "message"),
        "conditions": conditions,
    }


def sync_status(app: Any) -> dict[str, Any]:
    """Sync and health state after a sync or rollback."""
    return {
        "status": _get(app, "status", "sync", "status"),
        "health": _get(app, "status", "health", "status"),
        "revision": _get(app, "status", "sync", "revision"),
    }


def project_summary(project: dict[str, Any]) -> dict[str, Any]:
    return {
        "name": _get(project, "metadata", "name"),
        "description": _get(project, "spec", "description"),
    }


def project_detail(project: dict[str, Any]) -> dict[str, Any]:
    return {
        **project_summary(project),
        "source_repos": _get(project, "spec", "sourceRepos", default=[]),
        "destinations": _get(project, "spec", "destinations", default=[]),
    }


def repository_summary(repo: dict[str, Any]) -> dict[str, Any]:
    return {
        "repo": _get(repo, "repo"),
        "type": _get(repo, "type"),
        "name": _get(repo, "name"),
    }


def repository_detail(repo: dict[str, Any]) -> dict[str, Any]:
    return {
        **repository_summary(repo),
        "connection_state": _get(repo, "connectionState", default={}),
    }


def cluster_summary(cluster: dict[str, Any]) -> dict[str, Any]:
    return {
        "server": _get(cluster, "server"),
        "name": _get(cluster, "name"),
    }


def cluster_detail(cluster: dict[str, Any]) -> dict[str, Any]:
    return {
        **cluster_summary(cluster),
        "config": _get(cluster, "config", default={}),
        "connection_state": _get(cluster, "connectionState", default={}),
    }


def build_cluster_config(config: Any) -> dict[str, Any]:
    """Map a tool's ``config`` argument onto an Argo CD ``ClusterConfig``.

    Unknown keys and values of the wrong type are ignored.
    """
    if not isinstance(config, dict):
        return {}

    result: dict[str, Any] = {}
    for key in ("username", "password", "bearerToken"):
        if isinstance(config.get(key), str):
            result[key] = config[key]

    tls = config.get("tlsClientConfig")
    if isinstance(tls, dict):
        tls_config: dict[str, Any] = {}
        if isinstance(tls.get("insecure"), bool):
            tls_config["insecure"] = tls["insecure"]
        for key in ("caData", "certData", "keyData"):
            if isinstance(tls.get(key), str):
                tls_config[key] = tls[key]
        result["tlsClientConfig"] = tls_config
    return result
