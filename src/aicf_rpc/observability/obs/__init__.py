"""Span/event/metric helpers bound to the active request trace."""

from .api import event, failure, get_sink, mark_error, metric, operation, set_sink, span

__all__ = ["span", "operation", "event", "metric", "mark_error", "failure", "set_sink", "get_sink"]
