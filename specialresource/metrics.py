"""Operator gauges rendered in the Prometheus text exposition format."""

from __future__ import annotations

import math
import threading

SPECIAL_RESOURCES_CREATED = "sro_managed_resources_total"
COMPLETED_STATES = "sro_states_completed_info"

_CREATED_HELP = "Number of specialresources created"
_COMPLETED_HELP = (
    "For a given specialresource and state, 1 if the state is completed, 0 if it is not."
)


def _format_value(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    if value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    return repr(value)


def _escape_label(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")


def _escape_help(value: str) -> str:
    return value.replace("\\", "\\\\").replace("\n", "\\n")


class MetricsRegistry:
    """Holds the managed-resources gauge and the completed-states gauge vector."""

    def __init__(self):
        self._lock = threading.Lock()
        self._created = 0.0
        self._completed: dict[tuple[str, str], float] = {}

    def set_completed_state(self, special_resource, state, value):
        """Set the completed flag of a state of a special resource."""
        with self._lock:
            self._completed[(special_resource, state)] = float(value)

    def delete_complete_states(self, special_resource, state):
        """Drop the series of a state; tell whether it existed."""
        with self._lock:
            return self._completed.pop((special_resource, state), None) is not None

    def set_special_resources_created(self, value):
        """Set the number of managed special resources."""
        with self._lock:
            self._created = float(value)

    def completed_state(self, special_resource, state):
        """Return the value of a state's series; KeyError if it is not set."""
        with self._lock:
            return self._completed[(special_resource, state)]

    @property
    def special_resources_created(self):
        """The number of managed special resources."""
        with self._lock:
            return self._created

    def render(self):
        """Return all metrics in the Prometheus text format."""
        with self._lock:
            created = self._created
            completed = sorted(self._completed.items())
        lines = [
            f"# HELP {SPECIAL_RESOURCES_CREATED} {_escape_help(_CREATED_HELP)}",
            f"# TYPE {SPECIAL_RESOURCES_CREATED} gauge",
            f"{SPECIAL_RESOURCES_CREATED} {_format_value(created)}",
        ]
        if completed:
            lines.append(f"# HELP {COMPLETED_STATES} {_escape_help(_COMPLETED_HELP)}")
            lines.append(f"# TYPE {COMPLETED_STATES} gauge")
            for (sr, state), value in completed:
                lines.append(
                    f'{COMPLETED_STATES}{{specialresource="{_escape_label(sr)}",'
                    f'state="{_escape_label(state)}"}} {_format_value(value)}'
                )
        return "\n".join(lines) + "\n"


registry = MetricsRegistry()


def set_completed_state(special_resource, state, value):
    """Set a completed state in the default registry."""
    registry.set_completed_state(special_resource, state, value)


def delete_complete_states(special_resource, state):
    """Delete a completed state from the default registry."""
    return registry.delete_complete_states(special_resource, state)


def set_special_resources_created(value):
    """Set the managed resources count in the default registry."""
    registry.set_special_resources_created(value)