"""
gradle-mcp: Gradle project, task and test operations over the Model Context Protocol.

Runs Gradle builds on behalf of MCP clients and turns the build's test
events into a deterministic, filtered result tree.
"""

__version__ = "0.1.0"
