"""Extension layer: service-surface hooks via pluggy.

Discovery: entry_points (pip-installed) in the ``wavetimer.plugins`` group.
INVARIANT: Plugin failures are warnings, never errors.
"""

from wavetimer.plugins.manager import PluginManager

__all__ = ["PluginManager"]
