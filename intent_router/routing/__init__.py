"""Intent routing."""

from .router import IntentRouter, RouterDiagnostics, RoutingDecision

__all__ = ["IntentRouter", "RouterDiagnostics", "RoutingDecision"]
