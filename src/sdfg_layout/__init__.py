"""sdfg-layout: hierarchical layout for stateful dataflow multigraphs."""

from typing import Any

from sdfg_layout.config import LayoutConfig
from sdfg_layout.errors import (
    GraphFormatError,
    IrreducibleControlFlowError,
    LayoutError,
    MissingMeasurementContextError,
    StateMachineLayoutError,
)
from sdfg_layout.ir import load_sdfg
from sdfg_layout.layout import (
    LayoutEngine,
    MonospaceMeasurer,
    PillowMeasurer,
    TextMeasurer,
    collect_geometry,
    layout_sdfg,
    project_geometry,
)


def layout_record(
    record: dict[str, Any],
    measurer: TextMeasurer | None = None,
    config: LayoutConfig | None = None,
) -> dict[str, Any]:
    """Lay out an SDFG record in place and return it.

    Args:
        record: Parsed SDFG JSON object; geometry is written under each
            element's ``attributes.layout``.
        measurer: Text-measurement context; a Pillow-backed one is created if omitted.
        config: Layout settings; defaults apply if omitted.

    Returns:
        The same ``record``, annotated.

    Raises:
        GraphFormatError: If the record is not a usable SDFG.
    """
    sdfg = load_sdfg(record)
    graph = layout_sdfg(sdfg, measurer if measurer is not None else PillowMeasurer(), config)
    project_geometry(sdfg, collect_geometry(graph))
    return record


__all__ = [
    "GraphFormatError",
    "IrreducibleControlFlowError",
    "LayoutConfig",
    "LayoutEngine",
    "LayoutError",
    "MissingMeasurementContextError",
    "MonospaceMeasurer",
    "PillowMeasurer",
    "StateMachineLayoutError",
    "layout_record",
    "layout_sdfg",
    "load_sdfg",
]
