"""Exceptions raised by the layout engine."""

from __future__ import annotations


class LayoutError(Exception):
    """Base class for every error raised by sdfg-layout."""


class MissingMeasurementContextError(LayoutError):
    """A layout pass was started without a text-measurement context."""


class StateMachineLayoutError(LayoutError):
    """The vertical state-machine layouter cannot handle this graph."""


class IrreducibleControlFlowError(StateMachineLayoutError):
    """A back edge targets a block that does not dominate its source."""


class GraphFormatError(LayoutError, ValueError):
    """An input record is structurally unusable."""
