"""Tests for layout/sizing.py — dataflow node shapes and collapsed block sizes.

Widths are measured with MonospaceMeasurer: 6 units per character at the
default 10px font, 9 units at the 15px loop-statement font.
"""

from __future__ import annotations

import pytest

from sdfg_layout.constants import COLLAPSED_BLOCK_HEIGHT
from sdfg_layout.ir.graph import ConditionalBlock, ControlFlowRegion, LoopRegion, State
from sdfg_layout.layout.measure import MonospaceMeasurer
from sdfg_layout.layout.sizing import (
    collapsed_block_size,
    condition_text,
    connector_row_width,
    loop_extra_height,
    loop_header_height,
    node_size,
    traits_for,
)
from sdfg_layout.types import ElementType, NodeShape


@pytest.fixture
def measurer() -> MonospaceMeasurer:
    return MonospaceMeasurer()


def make_loop(**kwargs) -> LoopRegion:
    defaults = dict(label="for", loop_condition="i < N", init_statement="i = 0", update_statement="i = i + 1")
    defaults.update(kwargs)
    return LoopRegion(**defaults)


# ─── Kind traits ─────────────────────────────────────────────────────────────


class TestKindTraits:
    def test_shapes(self):
        assert traits_for(ElementType.AccessNode).shape is NodeShape.Ellipse
        assert traits_for(ElementType.Tasklet).shape is NodeShape.Octagon
        assert traits_for(ElementType.LibraryNode).shape is NodeShape.FoldedRectangle
        assert traits_for(ElementType.Reduce).shape is NodeShape.Triangle
        assert traits_for(ElementType.MapEntry).shape is NodeShape.Trapezoid
        assert traits_for(ElementType.NestedSDFG).shape is NodeShape.Rectangle

    def test_scope_flags(self):
        assert traits_for(ElementType.ConsumeEntry).scope_entry
        assert traits_for(ElementType.PipelineExit).scope_exit
        assert traits_for(ElementType.MapExit).scope
        assert not traits_for(ElementType.Tasklet).scope

    def test_only_access_nodes_are_omittable(self):
        omittable = [kind for kind in ElementType if traits_for(kind).omittable]
        assert omittable == [ElementType.AccessNode]

    def test_unknown_kind_is_generic_rectangle(self):
        traits = traits_for(ElementType.Unknown)
        assert traits.shape is NodeShape.Rectangle
        assert not traits.scope and not traits.nested_program and not traits.omittable


# ─── Dataflow nodes ──────────────────────────────────────────────────────────


class TestNodeSize:
    def test_connector_row_width(self):
        assert connector_row_width(0) == 0.0
        assert connector_row_width(1) == 10.0
        assert connector_row_width(3) == 50.0

    def test_access_node(self, measurer):
        """Ellipse: height shrinks by 40 and the width grows by the new height."""
        size = node_size(ElementType.AccessNode, "A", 0, 0, measurer)
        assert size.width == pytest.approx(26.0)
        assert size.height == pytest.approx(20.0)

    def test_tasklet_width_from_connectors(self, measurer):
        """Two input connectors are wider than a three-letter label."""
        size = node_size(ElementType.Tasklet, "mul", 2, 1, measurer)
        assert size.width == pytest.approx(70.0)
        assert size.height == pytest.approx(60.0 / 1.75)

    def test_map_entry(self, measurer):
        size = node_size(ElementType.MapEntry, "m[i=0:N]", 1, 1, measurer)
        assert size.width == pytest.approx(48.0 + 120.0)
        assert size.height == pytest.approx(60.0 / 1.75)

    def test_reduce_triangle(self, measurer):
        size = node_size(ElementType.Reduce, "sum", 0, 0, measurer)
        assert size.width == pytest.approx(36.0)
        assert size.height == pytest.approx(12.0)

    def test_unknown_kind_keeps_base_size(self, measurer):
        size = node_size(ElementType.Unknown, "thing", 0, 0, measurer)
        assert size.width == pytest.approx(30.0)
        assert size.height == pytest.approx(60.0)

    def test_label_width_wins_over_connectors(self, measurer):
        narrow = node_size(ElementType.LibraryNode, "x", 1, 1, measurer)
        wide = node_size(ElementType.LibraryNode, "matrix_multiply", 1, 1, measurer)
        assert wide.width > narrow.width
        assert wide.height == narrow.height


# ─── Control-flow blocks ─────────────────────────────────────────────────────


class TestLoopHeights:
    def test_header_rows(self):
        assert loop_header_height(make_loop()) == 60.0
        assert loop_header_height(make_loop(inverted=True)) == 30.0
        assert loop_header_height(make_loop(init_statement=None)) == 30.0

    def test_extra_height_adds_update_row(self):
        assert loop_extra_height(make_loop()) == 90.0
        assert loop_extra_height(make_loop(update_statement=None, init_statement=None, inverted=True)) == 0.0


class TestCollapsedBlockSize:
    def test_condition_text(self):
        assert condition_text(None) == "else"
        assert condition_text("x > 0") == "if x > 0"

    def test_collapsed_state(self, measurer):
        size = collapsed_block_size(State(label="init"), measurer)
        assert size.width == pytest.approx(24.0 + 15.0 + 60.0)
        assert size.height == COLLAPSED_BLOCK_HEIGHT

    def test_collapsed_loop_uses_statement_font(self, measurer):
        """The widest statement is measured at 15px: 'i = i + 1update' is 135 wide."""
        size = collapsed_block_size(make_loop(), measurer)
        assert size.width == pytest.approx(210.0)
        assert size.height == COLLAPSED_BLOCK_HEIGHT

    def test_collapsed_loop_restores_font(self, measurer):
        collapsed_block_size(make_loop(), measurer)
        assert measurer.font == "10px sans-serif"

    def test_collapsed_conditional(self, measurer):
        block = ConditionalBlock(
            label="cond",
            branches=[("x > 0", ControlFlowRegion(cfg_list_id=1)), (None, ControlFlowRegion(cfg_list_id=2))],
        )
        size = collapsed_block_size(block, measurer)
        assert size.width == pytest.approx(123.0)
        assert size.height == COLLAPSED_BLOCK_HEIGHT

    def test_height_independent_of_contents(self, measurer):
        empty = ControlFlowRegion(label="r")
        full = ControlFlowRegion(label="r", nodes=[State(id=i) for i in range(5)])
        assert collapsed_block_size(empty, measurer) == collapsed_block_size(full, measurer)
