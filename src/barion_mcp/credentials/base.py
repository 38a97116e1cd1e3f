"""
Base credential specification shared by all Barion credential modules.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class CredentialSpec:
    """Describes one credential: where it comes from and which tools need it."""

    env_var: str
    description: str = ""
    help_url: str = ""
    required: bool = True
    cli_flag: str | None = None
    tools: list[str] = field(default_factory=list)
