"""Tests for Argo CD object summaries."""

import pytest

from argocd_mcp.tools import formatters


@pytest.fixture
def healthy_app():
    return {
        "metadata": {"name": "guestbook"},
        "spec": {
            "project": "default",
            "source": {
                "repoURL": "https://github.com/argoproj/argocd-example-apps",
                "path": "guestbook",
                "targetRevision": "HEAD",
            },
            "destination": {"server": "https://kubernetes.default.svc", "namespace": "guestbook"},
        },
        "status": {
            "sync": {"status": "Synced", "revision": "abc123"},
            "health": {"status": "Healthy"},
            "resources": [{"kind": "Service", "status": "Synced"}],
        },
    }


class TestHasIssues:
    """Tests for has_issues()."""

    def test_healthy(self, healthy_app):
        assert formatters.has_issues(healthy_app) is False

    def test_out_of_sync_resource(self, healthy_app):
        healthy_app["status"]["resources"].append({"kind": "Deployment", "status": "OutOfSync"})
        assert formatters.has_issues(healthy_app) is True

    def test_degraded(self, healthy_app):
        healthy_app["status"]["health"]["status"] = "Degraded"
        assert formatters.has_issues(healthy_app) is True

    def test_failed_operation(self, healthy_app):
        healthy_app["status"]["operationState"] = {"phase": "Failed"}
        assert formatters.has_issues(healthy_app) is True

    def test_missing_status(self):
        assert formatters.has_issues({}) is True


class TestApplicationSummaries:
    """Tests for application summaries."""

    def test_summary(self, healthy_app):
        assert formatters.application_summary(healthy_app) == {
            "name": "guestbook",
            "project": "default",
            "server": "https://kubernetes.default.svc",
            "namespace": "guestbook",
            "status": "Synced",
            "health": "Healthy",
            "out_of_sync_count": 0,
            "has_issues": False,
        }

    def test_detail(self, healthy_app):
        healthy_app["status"]["conditions"] = [{"type": "SyncError", "message": "boom", "extra": 1}]
        detail = formatters.application_detail(healthy_app)
        assert detail["repo_url"] == "https://github.com/argoproj/argocd-example-apps"
        assert detail["target_revision"] == "HEAD"
        assert detail["revision"] == "abc123"
        assert detail["conditions"] == [{"type": "SyncError", "message": "boom"}]
        assert detail["operation_phase"] == ""

    def test_sparse_application(self):
        summary = formatters.application_summary({"metadata": {"name": "x"}})
        assert summary["name"] == "x"
        assert summary["status"] == ""
        assert summary["out_of_sync_count"] == 0

    def test_sync_status(self, healthy_app):
        assert formatters.sync_status(healthy_app) == {
            "status": "Synced",
            "health": "Healthy",
            "revision": "abc123",
        }

    def test_sync_status_of_nothing(self):
        assert formatters.sync_status(None) == {"status": "", "health": "", "revision": ""}


class TestOtherSummaries:
    """Tests for project, repository and cluster summaries."""

    def test_project_detail(self):
        project = {
            "metadata": {"name": "team-a"},
            "spec": {
                "description": "Team A",
                "sourceRepos": ["*"],
                "destinations": [{"server": "*", "namespace": "team-a"}],
            },
        }
        assert formatters.project_detail(project) == {
            "name": "team-a",
            "description": "Team A",
            "source_repos": ["*"],
            "destinations": [{"server": "*", "namespace": "team-a"}],
        }

    def test_repository_detail(self):
        repo = {
            "repo": "https://github.com/org/repo",
            "type": "git",
            "connectionState": {"status": "Successful"},
        }
        detail = formatters.repository_detail(repo)
        assert detail["repo"] == "https://github.com/org/repo"
        assert detail["name"] == ""
        assert detail["connection_state"] == {"status": "Successful"}

    def test_cluster_summary(self):
        cluster = {"server": "https://10.0.0.1", "name": "prod", "config": {"bearerToken": "x"}}
        assert formatters.cluster_summary(cluster) == {"server": "https://10.0.0.1", "name": "prod"}


class TestBuildClusterConfig:
    """Tests for build_cluster_config()."""

    def test_full_config(self):
        config = {
            "username": "admin",
            "bearerToken": "tok",
            "tlsClientConfig": {"insecure": True, "caData": "Y2E=", "unknown": 1},
            "extra": "ignored",
        }
        assert formatters.build_cluster_config(config) == {
            "username": "admin",
            "bearerToken": "tok",
            "tlsClientConfig": {"insecure": True, "caData": "Y2E="},
        }

    def test_wrong_types_ignored(self):
        assert formatters.build_cluster_config({"username": 1, "tlsClientConfig": "x"}) == {}

    def test_not_a_mapping(self):
        assert formatters.build_cluster_config("x") == {}
