"""Layout engine entry points.

A pass builds a fresh registry and only swaps it into the engine once the
whole program has been laid out; a pass that raises leaves the previous
registry in place.
"""

from __future__ import annotations

import logging

from sdfg_layout.config import LayoutConfig
from sdfg_layout.errors import MissingMeasurementContextError
from sdfg_layout.ir.graph import SDFG
from sdfg_layout.layout.block import layout_control_flow_region
from sdfg_layout.layout.measure import TextMeasurer
from sdfg_layout.layout.types import LayoutContext, LayoutGraph, LayoutRegistry

logger = logging.getLogger(__name__)


def layout_sdfg(
    sdfg: SDFG,
    measurer: TextMeasurer | None,
    config: LayoutConfig | None = None,
    registry: LayoutRegistry | None = None,
) -> LayoutGraph:
    """Lay out a whole program; fills ``registry`` only if the pass succeeds."""
    if measurer is None:
        raise MissingMeasurementContextError("layout requires a text-measurement context")
    ctx = LayoutContext(measurer=measurer, config=config or LayoutConfig())
    font = measurer.font

    graph = layout_control_flow_region(sdfg, ctx)

    if measurer.font != font:
        logger.warning("Measurement font changed during layout (%s -> %s), restoring", font, measurer.font)
        measurer.font = font
    if registry is not None:
        registry.replace(ctx.registry)
    logger.debug(
        "Laid out program %r: %d regions, %.0fx%.0f", sdfg.label, len(ctx.registry), graph.width, graph.height
    )
    return graph


class LayoutEngine:
    """Holds the measurement context, the settings and the registry of the last pass."""

    def __init__(self, measurer: TextMeasurer | None, config: LayoutConfig | None = None) -> None:
        self.measurer = measurer
        self.config = config or LayoutConfig()
        self.registry = LayoutRegistry()

    def relayout(self, sdfg: SDFG) -> LayoutGraph:
        """Recompute every position from scratch; the registry is replaced, never merged."""
        return layout_sdfg(sdfg, self.measurer, self.config, self.registry)
