"""MCP server for Argo CD.

Exposes the Argo CD API (applications, resources, projects, repositories,
clusters) as MCP tools. Every response is shaped for a language model:

- **Diffs**: desired vs live manifests compared structurally, field by field
- **Events**: both event payload shapes reduced to type/reason/message/timestamp
- **Bounds**: list lengths, string sizes and line counts capped, with
  ``total``/``limited``/``truncated`` flags so partial results are visible

Usage:
    from argocd_mcp import ArgoCDClient, ToolManager

    async with ArgoCDClient("argocd.example.com", token) as client:
        manager = ToolManager(client, safe_mode=True)
        result = await manager.call_tool("get_application_diff", {"name": "guestbook"})
"""

__version__ = "0.1.0"

from .client import ArgoCDClient, ArgoCDError, AuthenticationError, ResourceRef
from .config import Config, ConfigError, load_config
from .shaping import Limits, ResponseBounder
from .tools import ToolManager

__all__ = [
    "__version__",
    "ArgoCDClient",
    "ArgoCDError",
    "AuthenticationError",
    "ResourceRef",
    "Config",
    "ConfigError",
    "load_config",
    "Limits",
    "ResponseBounder",
    "ToolManager",
]
