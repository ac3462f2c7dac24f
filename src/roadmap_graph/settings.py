# roadmap_graph/settings.py

import logging
import os
from dataclasses import dataclass, fields, replace

logger = logging.getLogger(__name__)

# -----------------------------------------------------------
# Visual constants shared by the engine and the figure builder
# -----------------------------------------------------------
STATUS_COLOURS = {
    "Proposed": "#94A3B8",
    "Planned": "#60A5FA",
    "InProgress": "#3B82F6",
    "Complete": "#22C55E",
    "Cancelled": "#EF4444",
}

SYSTEM_COLOUR = "#6366F1"
DEFAULT_COLOUR = "#94A3B8"
CRITICAL_COLOUR = "#EF4444"
SATISFIED_COLOUR = "#22C55E"
SELECTED_COLOUR = "#1D4ED8"

INITIATIVE_ICONS = {
    "New": "✨",
    "Upgrade": "⬆️",
    "Migration": "➡️",
    "Decommission": "🗑️",
    "Replacement": "🔄",
}
DEFAULT_INITIATIVE_ICON = "📋"
SYSTEM_ICON = "💻"

# -----------------------------------------------------------
# Edge inference window (days between end of one item and start of the next)
# -----------------------------------------------------------
MIN_GAP_DAYS = -30.0
MAX_GAP_DAYS = 90.0

# End dates are inclusive: an item ending on the 31st occupies the 31st, so a
# successor starting on the 1st follows with a zero-day gap.
INCLUSIVE_END_DATES = True

DEFAULT_CANVAS = (800.0, 600.0)

ENV_PREFIX = "ROADMAP_GRAPH_"


@dataclass(frozen=True)
class LayoutSettings:
    """
    Every tunable number used by the three layout strategies.

    The defaults mirror the planner canvas: 25px nodes, 120px links,
    a -400 charge and a dagre-style 60/100 spacing for ranked layouts.
    """

    node_radius: float = 25.0

    # force-directed
    link_distance: float = 120.0
    charge_strength: float = -400.0
    collision_padding: float = 20.0
    center_strength: float = 1.0
    initial_jitter: float = 50.0
    alpha_min: float = 0.001
    alpha_decay: float = 1.0 - 0.001 ** (1.0 / 300.0)
    velocity_decay: float = 0.4
    energy_threshold: float = 0.01
    max_ticks: int = 300

    # hierarchical
    node_width: float = 60.0
    node_height: float = 60.0
    node_sep: float = 60.0
    rank_sep: float = 100.0

    # circular
    circle_ratio: float = 0.35

    @property
    def collision_radius(self) -> float:
        return self.node_radius + self.collision_padding

    @classmethod
    def from_env(cls, environ=None) -> "LayoutSettings":
        """
        Build settings from ROADMAP_GRAPH_<FIELD> variables, e.g.
        ROADMAP_GRAPH_LINK_DISTANCE=150. Unparseable values keep the default.
        """
        environ = os.environ if environ is None else environ
        base = cls()
        overrides = {}

        for f in fields(cls):
            raw = environ.get(ENV_PREFIX + f.name.upper())
            if raw is None or str(raw).strip() == "":
                continue
            default = getattr(base, f.name)
            try:
                overrides[f.name] = type(default)(str(raw).strip())
            except ValueError:
                logger.warning("Ignoring %s%s=%r: not a %s",
                               ENV_PREFIX, f.name.upper(), raw, type(default).__name__)

        return replace(base, **overrides) if overrides else base


DEFAULT_SETTINGS = LayoutSettings()
