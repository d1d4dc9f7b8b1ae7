"""Centralized configuration for sdfg-layout."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, fields
from typing import Any

from sdfg_layout.constants import LARGE_STATE_THRESHOLD, NODESEP, RANKSEP, SUMMARIZE_THRESHOLD

# Viewer setting names and the config fields they map to.
_SETTING_ALIASES: dict[str, str] = {
    "useVerticalStateMachineLayout": "vertical_state_machine",
    "summarizeLargeNumbersOfEdges": "summarize_edges",
    "ranksep": "ranksep",
    "nodesep": "nodesep",
}


@dataclass
class LayoutConfig:
    """Configuration for one layout pass."""

    omit_access_nodes: bool = False
    vertical_state_machine: bool = True
    ranksep: float = RANKSEP
    nodesep: float = NODESEP
    large_state_threshold: int = LARGE_STATE_THRESHOLD
    summarize_edges: bool = True
    summarize_threshold: int = SUMMARIZE_THRESHOLD

    @classmethod
    def from_mapping(cls, settings: Mapping[str, Any]) -> LayoutConfig:
        """Build a config from field names or viewer setting names.

        ``showAccessNodes`` is the inverse of ``omit_access_nodes``. Unknown
        keys are ignored.
        """
        known = {f.name for f in fields(cls)}
        values: dict[str, Any] = {}
        for key, value in settings.items():
            if key == "showAccessNodes":
                values["omit_access_nodes"] = not value
            elif key in _SETTING_ALIASES:
                values[_SETTING_ALIASES[key]] = value
            elif key in known:
                values[key] = value
        return cls(**values)
