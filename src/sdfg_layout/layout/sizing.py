"""Node and block sizing.

Per-kind behaviour lives in one table (``KIND_TRAITS``) instead of being
scattered over type checks: the drawn shape, whether the kind opens or
closes a scope, whether it embeds a program, and whether it disappears when
access nodes are omitted. Unknown kinds get generic rectangle traits.
"""

from __future__ import annotations

from dataclasses import dataclass

from sdfg_layout.constants import (
    BLOCK_MARGIN,
    COLLAPSED_BLOCK_HEIGHT,
    CONNECTOR_SIZE,
    CONNECTOR_SPACING,
    LABEL_MARGIN_H,
    LINEHEIGHT,
    LOOP_CONDITION_SPACING,
    LOOP_INIT_SPACING,
    LOOP_STATEMENT_FONT,
    LOOP_UPDATE_SPACING,
)
from sdfg_layout.ir.graph import Block, ConditionalBlock, LoopRegion
from sdfg_layout.layout.measure import TextMeasurer, font_override
from sdfg_layout.types import ElementType, NodeShape


@dataclass(frozen=True)
class KindTraits:
    shape: NodeShape = NodeShape.Rectangle
    scope_entry: bool = False
    scope_exit: bool = False
    nested_program: bool = False
    omittable: bool = False

    @property
    def scope(self) -> bool:
        return self.scope_entry or self.scope_exit


_ENTRY = KindTraits(shape=NodeShape.Trapezoid, scope_entry=True)
_EXIT = KindTraits(shape=NodeShape.Trapezoid, scope_exit=True)
_NESTED = KindTraits(nested_program=True)
_GENERIC = KindTraits()

KIND_TRAITS: dict[ElementType, KindTraits] = {
    ElementType.AccessNode: KindTraits(shape=NodeShape.Ellipse, omittable=True),
    ElementType.Tasklet: KindTraits(shape=NodeShape.Octagon),
    ElementType.LibraryNode: KindTraits(shape=NodeShape.FoldedRectangle),
    ElementType.Reduce: KindTraits(shape=NodeShape.Triangle),
    ElementType.NestedSDFG: _NESTED,
    ElementType.ExternalNestedSDFG: _NESTED,
    ElementType.MapEntry: _ENTRY,
    ElementType.MapExit: _EXIT,
    ElementType.ConsumeEntry: _ENTRY,
    ElementType.ConsumeExit: _EXIT,
    ElementType.PipelineEntry: _ENTRY,
    ElementType.PipelineExit: _EXIT,
}


def traits_for(kind: ElementType) -> KindTraits:
    return KIND_TRAITS.get(kind, _GENERIC)


@dataclass
class Size:
    width: float
    height: float


def connector_row_width(count: int) -> float:
    """Horizontal extent of a row of ``count`` connectors."""
    if count <= 0:
        return 0.0
    return (CONNECTOR_SIZE + CONNECTOR_SPACING) * count - CONNECTOR_SPACING


# ─── Dataflow nodes ──────────────────────────────────────────────────────────


def _ellipse(width: float, height: float) -> tuple[float, float]:
    height -= 4 * LINEHEIGHT
    return width + height, height


def _trapezoid(width: float, height: float) -> tuple[float, float]:
    return width + 2 * height, height / 1.75


def _octagon(width: float, height: float) -> tuple[float, float]:
    return width + 2 * (height / 3.0), height / 1.75


def _triangle(width: float, height: float) -> tuple[float, float]:
    width *= 2
    return width, width / 3.0


_SHAPE_ADJUSTMENTS = {
    NodeShape.Ellipse: _ellipse,
    NodeShape.Trapezoid: _trapezoid,
    NodeShape.Octagon: _octagon,
    NodeShape.FoldedRectangle: _octagon,
    NodeShape.Triangle: _triangle,
}


def node_size(kind: ElementType, label: str, n_in: int, n_out: int, measurer: TextMeasurer) -> Size:
    """Size of a dataflow node: wide enough for its label and both connector rows."""
    width = max(measurer.measure_text(label), connector_row_width(n_in), connector_row_width(n_out))
    height = 6 * LINEHEIGHT
    adjust = _SHAPE_ADJUSTMENTS.get(traits_for(kind).shape)
    if adjust is not None:
        width, height = adjust(width, height)
    return Size(width, height)


# ─── Control-flow blocks ─────────────────────────────────────────────────────


def loop_header_height(block: LoopRegion) -> float:
    """Rows above a loop's body: the condition (unless inverted) and the init statement."""
    height = 0.0 if block.inverted else LOOP_CONDITION_SPACING
    if block.init_statement:
        height += LOOP_INIT_SPACING
    return height


def loop_extra_height(block: LoopRegion) -> float:
    height = loop_header_height(block)
    if block.update_statement:
        height += LOOP_UPDATE_SPACING
    return height


def condition_text(condition: str | None) -> str:
    return "else" if condition is None else f"if {condition}"


def collapsed_block_size(block: Block, measurer: TextMeasurer) -> Size:
    """Collapsed blocks are one line tall and as wide as their widest header text."""
    width = measurer.measure_text(block.label)
    if isinstance(block, LoopRegion):
        with font_override(measurer, LOOP_STATEMENT_FONT):
            statements = [
                measurer.measure_text((block.loop_condition or "") + "while"),
                measurer.measure_text((block.init_statement or "") + "init"),
                measurer.measure_text((block.update_statement or "") + "update"),
            ]
        width = max(width, *statements)
    elif isinstance(block, ConditionalBlock):
        for condition, _region in block.branches:
            width = max(width, measurer.measure_text(condition_text(condition)))
    width += 3 * LABEL_MARGIN_H
    return Size(width + 2 * BLOCK_MARGIN, COLLAPSED_BLOCK_HEIGHT)
