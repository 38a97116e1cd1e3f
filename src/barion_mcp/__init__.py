"""
Barion MCP - Barion payment and wallet operations as Model Context Protocol tools.
"""

__version__ = "0.1.0"
