"""Context management for structured logging and tracing.

This module provides context variables for propagating the current
operation (which check is running, for which host or VM pattern) into
every log record emitted while it runs.
"""

import contextvars
from contextlib import contextmanager
from typing import Optional, Any, Dict
from opentelemetry import trace

# Context variables for operation tracking
action_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "action", default=None
)
cluster_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "cluster", default=None
)
host_id_var: contextvars.ContextVar[Optional[int]] = contextvars.ContextVar(
    "host_id", default=None
)
vm_pattern_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "vm_pattern", default=None
)

_VARS: Dict[str, contextvars.ContextVar] = {
    "action": action_var,
    "cluster": cluster_var,
    "host_id": host_id_var,
    "vm_pattern": vm_pattern_var,
}


def set_context(
    action: Optional[str] = None,
    cluster: Optional[str] = None,
    host_id: Optional[int] = None,
    vm_pattern: Optional[str] = None,
) -> None:
    """Set context variables.

    Args:
        action: Operation being performed (e.g., 'placement.check')
        cluster: Cluster name the inventory was narrowed to
        host_id: Host identifier
        vm_pattern: VM name pattern under evaluation
    """
    if action is not None:
        action_var.set(action)
    if cluster is not None:
        cluster_var.set(cluster)
    if host_id is not None:
        host_id_var.set(host_id)
    if vm_pattern is not None:
        vm_pattern_var.set(vm_pattern)


def get_context() -> Dict[str, Any]:
    """Get all current context values as a dictionary.

    Returns:
        Dictionary with all non-None context values
    """
    context = {}
    for key, var in _VARS.items():
        value = var.get()
        if value is not None:
            context[key] = value
    return context


def clear_context() -> None:
    """Clear all context variables."""
    for var in _VARS.values():
        var.set(None)


@contextmanager
def operation_context(
    action: str,
    cluster: Optional[str] = None,
    host_id: Optional[int] = None,
    vm_pattern: Optional[str] = None,
):
    """Context manager for setting operation context with automatic cleanup.

    This also sets the action as a span attribute if there's an active span.

    Args:
        action: Operation being performed (e.g., 'placement.check')
        cluster: Optional cluster name
        host_id: Optional host ID
        vm_pattern: Optional VM name pattern

    Example:
        with operation_context("placement.check", vm_pattern="^us.+db$"):
            logger.info("Checking placement")
    """
    old_context = get_context()

    try:
        set_context(
            action=action,
            cluster=cluster,
            host_id=host_id,
            vm_pattern=vm_pattern,
        )

        span = trace.get_current_span()
        if span.is_recording():
            span.set_attribute("action", action)
            if cluster:
                span.set_attribute("cluster.name", cluster)
            if host_id is not None:
                span.set_attribute("host.id", host_id)
            if vm_pattern:
                span.set_attribute("vm.pattern", vm_pattern)

        yield

    finally:
        # Restore old context
        clear_context()
        for key, value in old_context.items():
            _VARS[key].set(value)


def get_trace_context() -> Dict[str, str]:
    """Get current OpenTelemetry trace context.

    Returns:
        Dictionary with trace_id and span_id (if available)
    """
    context = {}

    span = trace.get_current_span()
    if span.is_recording():
        span_context = span.get_span_context()
        if span_context.is_valid:
            context["trace_id"] = format(span_context.trace_id, "032x")
            context["span_id"] = format(span_context.span_id, "016x")

    return context
