"""Automation engine adapters for debugport.

The engine performs UI actions and captures; the control plane forwards
requests to it through the ``AutomationEngine`` interface.

Public API:
    AutomationEngine -- Abstract base class
    HttpAutomationEngine -- HTTP backend for an engine process
"""

from debugport.engine.base import AutomationEngine, EngineError

__all__ = ["AutomationEngine", "EngineError", "HttpAutomationEngine"]


def __getattr__(name: str) -> type:
    """Lazy import for concrete implementations that require external deps."""
    if name == "HttpAutomationEngine":
        from debugport.engine.http_backend import HttpAutomationEngine
        return HttpAutomationEngine
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
