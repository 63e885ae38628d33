"""
Error taxonomy for xmlui-mcp.

Provisioning errors are raised while fetching/installing the corpus snapshot
and are fatal at startup. Tool failures are raised by handlers and turned
into textual error results by the dispatcher.
"""
from __future__ import annotations

from typing import Optional

# Leading character of every user-visible failure message.
FAILURE_SIGIL = "❌"


# ------------------------------------------------------------------------------
# Provisioning
# ------------------------------------------------------------------------------

class ProvisioningError(RuntimeError):
    """The corpus snapshot could not be fetched, extracted or installed."""


class FetchFailed(ProvisioningError):
    pass


class ExtractFailed(ProvisioningError):
    pass


class IllegalPath(ProvisioningError):
    """An archive entry would land outside the extraction directory."""

    def __init__(self, member: str):
        self.member = member
        super().__init__(f"Illegal path in archive: {member}")


class InstallFailed(ProvisioningError):
    pass


# ------------------------------------------------------------------------------
# Tool failures
# ------------------------------------------------------------------------------

class ToolFailure(Exception):
    """A domain error raised by a tool handler."""

    prefix: str = "Error"

    def __init__(self, message: str, fragment: Optional[str] = None):
        self.message = message
        self.fragment = fragment
        super().__init__(message)

    def __str__(self) -> str:
        text = f"{self.prefix}: {self.message}"
        if self.fragment:
            text += f" ({self.fragment})"
        return text


class ValidationFailure(ToolFailure):
    prefix = "Invalid argument"


class NotFound(ToolFailure):
    prefix = "Not found"


class PathViolation(ToolFailure):
    prefix = "Path not allowed"
