"""Geometry constants shared across the layout engine.

Every size is expressed in canvas units; the base unit is the line height.
"""

# ---------------------------------------------------------------------------
# Text and labels
# ---------------------------------------------------------------------------
LINEHEIGHT: float = 10.0
"""Base line height; connector diameter and the unit of most spacings."""

LABEL_MARGIN_H: float = 5.0
"""Horizontal label margin used when sizing collapsed blocks."""

DEFAULT_FONT_SIZE: float = 10.0
"""Default canvas font size in pixels."""

DEFAULT_FONT: str = f"{DEFAULT_FONT_SIZE:g}px sans-serif"
"""Font the measurement context starts out with."""

LOOP_STATEMENT_FONT: str = f"{DEFAULT_FONT_SIZE * 1.5:g}px sans-serif"
"""Font for loop condition / init / update statements."""

EMPTY_NESTED_SDFG_LABEL: str = "No SDFG loaded"
"""Placeholder text for nested-program nodes without a loaded program."""

# ---------------------------------------------------------------------------
# Node and block sizing
# ---------------------------------------------------------------------------
NESTED_SDFG_INSET: float = LINEHEIGHT
"""Inset on every side between a nested-program node and its content."""

BLOCK_MARGIN: float = 3 * LINEHEIGHT
"""Margin on every side between an expanded block and its content."""

COLLAPSED_BLOCK_HEIGHT: float = LINEHEIGHT
"""Height of every collapsed block, independent of its contents."""

LOOP_CONDITION_SPACING: float = 3 * LINEHEIGHT
"""Row reserved for a (non-inverted) loop's condition."""

LOOP_INIT_SPACING: float = 3 * LINEHEIGHT
"""Row reserved for a loop's init statement."""

LOOP_UPDATE_SPACING: float = 3 * LINEHEIGHT
"""Row reserved for a loop's update statement."""

CONDITION_SPACING: float = 4 * LINEHEIGHT
"""Header row reserved above the branches of a conditional block."""

# ---------------------------------------------------------------------------
# Hierarchical layout
# ---------------------------------------------------------------------------
RANKSEP: float = 50.0
"""Vertical gap between ranks."""

NODESEP: float = 50.0
"""Horizontal gap between nodes on the same rank."""

EDGESEP: float = 10.0
"""Horizontal gap next to edge bend points on the same rank."""

LARGE_STATE_THRESHOLD: int = 1000
"""States with at least this many nodes use the longest-path ranker."""

SUMMARIZE_THRESHOLD: int = 10
"""Connector count above which a node's edges are summarized."""

BACKEDGE_SPACING: float = 20.0
"""Horizontal distance between back-edge lanes in the vertical layout."""

MAX_CROSSING_PASSES: int = 24
"""Upper bound on barycenter sweeps during crossing minimization."""

# ---------------------------------------------------------------------------
# Edges
# ---------------------------------------------------------------------------
MIN_EDGE_EXTENT: float = 5.0
"""Edge bounding-box sides at or below this are widened."""

THIN_EDGE_EXTENT: float = 10.0
"""Width a thin edge bounding box is widened to."""

# ---------------------------------------------------------------------------
# Connectors
# ---------------------------------------------------------------------------
CONNECTOR_SIZE: float = LINEHEIGHT
"""Connectors are squares of this side length."""

CONNECTOR_SPACING: float = LINEHEIGHT
"""Gap between neighbouring connectors in a row."""
