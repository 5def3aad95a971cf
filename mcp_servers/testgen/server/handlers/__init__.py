"""
Tool handlers organized by domain.

All handlers follow the signature: (driver, arguments) -> ToolResult
"""

from .browser import BROWSER_HANDLERS
from .codegen import CODEGEN_HANDLERS
from .interaction import INTERACTION_HANDLERS

# Aggregate all handlers
ALL_HANDLERS: dict[str, object] = {
    **BROWSER_HANDLERS,
    **INTERACTION_HANDLERS,
    **CODEGEN_HANDLERS,
}

__all__ = [
    "ALL_HANDLERS",
    "BROWSER_HANDLERS",
    "CODEGEN_HANDLERS",
    "INTERACTION_HANDLERS",
]
