"""Tool implementations behind the MCP server.

Each module holds one tool as plain, blocking functions over a
``GradleService``. ``mcp.server`` owns the protocol machinery and calls
these from a worker thread.
"""

from gradle_mcp.mcp.tools.execute_task import execute_task
from gradle_mcp.mcp.tools.project_info import get_project_info, resolve_categories
from gradle_mcp.mcp.tools.run_tests import effective_log_limit, filter_arguments, run_tests

__all__ = [
    "effective_log_limit",
    "execute_task",
    "filter_arguments",
    "get_project_info",
    "resolve_categories",
    "run_tests",
]
