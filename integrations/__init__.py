"""
External service integrations.
"""

from integrations.claude_client import ClaudeClient, get_claude_client

__all__ = [
    "ClaudeClient",
    "get_claude_client",
]
