"""Argo CD tools exposed over MCP."""

from .arguments import arg_bool, arg_dict, arg_int, arg_list, arg_str, arg_str_list
from .definitions import TOOLS, TOOLS_BY_NAME, WRITE_TOOLS
from .manager import ToolManager, ToolStats, safe_mode_message
from .results import error_result, result, result_list, text_result

__all__ = [
    "TOOLS",
    "TOOLS_BY_NAME",
    "WRITE_TOOLS",
    "ToolManager",
    "ToolStats",
    "safe_mode_message",
    "arg_str",
    "arg_bool",
    "arg_int",
    "arg_dict",
    "arg_list",
    "arg_str_list",
    "result",
    "result_list",
    "error_result",
    "text_result",
]
