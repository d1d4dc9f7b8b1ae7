"""Build the graph model from the viewer's JSON record format.

Element kinds are resolved once here from the record's ``type`` string;
unrecognised node types become ``ElementType.Unknown`` and are laid out as
generic rectangles. Control-flow regions that carry no ``cfg_list_id`` get
one allocated after the largest identifier present in the record, in
depth-first order, so reloading the same record yields the same ids.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import Any

from sdfg_layout.errors import GraphFormatError
from sdfg_layout.ir.graph import (
    SDFG,
    Block,
    ConditionalBlock,
    ControlFlowRegion,
    DataflowEdge,
    DataflowNode,
    InterstateEdge,
    LoopRegion,
    State,
)
from sdfg_layout.types import ElementType

logger = logging.getLogger(__name__)

Record = dict[str, Any]

_REGION_TYPES = {"SDFG", "ControlFlowRegion", "LoopRegion"}


def load_sdfg(record: Record) -> SDFG:
    """Convert a top-level program record into an ``SDFG``."""
    if not isinstance(record, dict):
        raise GraphFormatError(f"expected a program record, got {type(record).__name__}")
    if not isinstance(record.get("nodes"), list):
        raise GraphFormatError("program record has no 'nodes' list")
    allocator = _CfgIdAllocator(max(_explicit_cfg_ids(record), default=-1) + 1)
    sdfg = _load_region(record, allocator, default_id=0, default_type="SDFG")
    if not isinstance(sdfg, SDFG):
        raise GraphFormatError(f"top-level record has type {record.get('type')!r}, expected 'SDFG'")
    return sdfg


# ─── Identifier allocation ────────────────────────────────────────────────────


class _CfgIdAllocator:
    def __init__(self, first_free: int) -> None:
        self._next = first_free

    def take(self, record: Record) -> int:
        cfg_id = record.get("cfg_list_id")
        if isinstance(cfg_id, int):
            return cfg_id
        cfg_id = self._next
        self._next += 1
        return cfg_id


def _explicit_cfg_ids(record: Record) -> Iterator[int]:
    if not isinstance(record, dict):
        return
    cfg_id = record.get("cfg_list_id")
    if isinstance(cfg_id, int):
        yield cfg_id
    for child in record.get("nodes", ()):
        yield from _explicit_cfg_ids(child)
        attrs = (child.get("attributes") or {}) if isinstance(child, dict) else {}
        nested = attrs.get("sdfg")
        if isinstance(nested, dict):
            yield from _explicit_cfg_ids(nested)
    for branch in record.get("branches", ()):
        if isinstance(branch, (list, tuple)) and len(branch) == 2:
            yield from _explicit_cfg_ids(branch[1])


# ─── Attribute helpers ────────────────────────────────────────────────────────


def _attributes(record: Record) -> dict[str, Any]:
    if not isinstance(record, dict):
        raise GraphFormatError(f"element record must be an object, got {type(record).__name__}")
    return record.get("attributes") or {}


def _code(value: Any) -> str | None:
    """Code blocks are either plain strings or ``{"string_data": ...}``."""
    if value is None:
        return None
    if isinstance(value, dict):
        data = value.get("string_data")
        return None if data is None else str(data)
    return str(value)


def _connector_names(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, dict):
        return [str(name) for name in value]
    if isinstance(value, (list, tuple)):
        return [str(name) for name in value]
    raise GraphFormatError(f"unsupported connector collection: {value!r}")


def _int(value: Any, what: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise GraphFormatError(f"{what} must be an integer, got {value!r}") from exc


def _optional_int(value: Any, what: str) -> int | None:
    if value is None or value == "":
        return None
    return _int(value, what)


def _label(record: Record, attrs: dict[str, Any]) -> str:
    label = record.get("label", attrs.get("label", ""))
    return "" if label is None else str(label)


# ─── Control flow ─────────────────────────────────────────────────────────────


def _load_region(
    record: Record, allocator: _CfgIdAllocator, default_id: int, default_type: str = "ControlFlowRegion"
) -> ControlFlowRegion:
    if not isinstance(record, dict):
        raise GraphFormatError(f"region record must be an object, got {type(record).__name__}")
    attrs = _attributes(record)
    type_name = record.get("type", default_type)
    common: dict[str, Any] = dict(
        id=_int(record.get("id", default_id), "block id"),
        label=_label(record, attrs),
        is_collapsed=bool(attrs.get("is_collapsed", record.get("collapsed", False))),
        cfg_list_id=allocator.take(record),
        start_block=_optional_int(record.get("start_block"), "start_block"),
        source=record,
    )
    if type_name == "SDFG":
        region: ControlFlowRegion = SDFG(**common)
        if not region.label:
            region.label = str(attrs.get("name", ""))
    elif type_name == "LoopRegion":
        region = LoopRegion(
            **common,
            loop_condition=_code(attrs.get("loop_condition")),
            init_statement=_code(attrs.get("init_statement")),
            update_statement=_code(attrs.get("update_statement")),
            inverted=bool(attrs.get("inverted", False)),
        )
    else:
        region = ControlFlowRegion(**common)

    for index, child in enumerate(record.get("nodes", ())):
        region.nodes.append(_load_block(child, allocator, index))
    for edge in record.get("edges", ()):
        region.edges.append(_load_interstate_edge(edge))
    return region


def _load_block(record: Record, allocator: _CfgIdAllocator, index: int) -> Block:
    if not isinstance(record, dict):
        raise GraphFormatError(f"block record must be an object, got {type(record).__name__}")
    type_name = record.get("type", "SDFGState")
    if type_name in _REGION_TYPES:
        return _load_region(record, allocator, index)
    if type_name == "ConditionalBlock":
        return _load_conditional(record, allocator, index)
    if type_name != "SDFGState":
        logger.debug("Treating block of type %r as a state", type_name)
    return _load_state(record, allocator, index)


def _load_conditional(record: Record, allocator: _CfgIdAllocator, index: int) -> ConditionalBlock:
    attrs = _attributes(record)
    block = ConditionalBlock(
        id=_int(record.get("id", index), "block id"),
        label=_label(record, attrs),
        is_collapsed=bool(attrs.get("is_collapsed", False)),
        source=record,
    )
    for branch_index, branch in enumerate(record.get("branches", ())):
        if not isinstance(branch, (list, tuple)) or len(branch) != 2:
            raise GraphFormatError(f"conditional branch must be a [condition, region] pair: {branch!r}")
        condition, region_record = branch
        region = _load_region(region_record, allocator, branch_index)
        block.branches.append((_code(condition), region))
    return block


def _load_interstate_edge(record: Record) -> InterstateEdge:
    data = _attributes(record).get("data") or {}
    label = data.get("label", "") if isinstance(data, dict) else ""
    return InterstateEdge(
        src=_int(record.get("src"), "edge source"),
        dst=_int(record.get("dst"), "edge destination"),
        label="" if label is None else str(label),
        source=record,
    )


# ─── Dataflow ─────────────────────────────────────────────────────────────────


def _load_state(record: Record, allocator: _CfgIdAllocator, index: int) -> State:
    attrs = _attributes(record)
    state = State(
        id=_int(record.get("id", index), "block id"),
        label=_label(record, attrs),
        is_collapsed=bool(attrs.get("is_collapsed", False)),
        source=record,
    )
    for node_index, node in enumerate(record.get("nodes", ())):
        state.nodes.append(_load_dataflow_node(node, allocator, node_index))
    for edge in record.get("edges", ()):
        state.edges.append(_load_dataflow_edge(edge))
    for key, children in (record.get("scope_dict") or {}).items():
        state.scope_dict[_int(key, "scope key")] = [_int(child, "scope child") for child in children or ()]
    return state


def _load_dataflow_node(record: Record, allocator: _CfgIdAllocator, index: int) -> DataflowNode:
    if not isinstance(record, dict):
        raise GraphFormatError(f"node record must be an object, got {type(record).__name__}")
    attrs = _attributes(record)
    type_name = str(record.get("type", ""))
    kind = ElementType.from_name(type_name)
    if kind is ElementType.Unknown:
        logger.debug("Unknown node type %r, laying it out as a generic node", type_name)

    node = DataflowNode(
        id=_int(record.get("id", index), "node id"),
        kind=kind,
        label=_label(record, attrs),
        in_connectors=_connector_names(attrs.get("in_connectors")),
        out_connectors=_connector_names(attrs.get("out_connectors")),
        scope_entry=_optional_int(record.get("scope_entry"), "scope_entry"),
        is_collapsed=bool(attrs.get("is_collapsed", False)),
        source=record,
    )
    nested = attrs.get("sdfg")
    if kind in (ElementType.NestedSDFG, ElementType.ExternalNestedSDFG) and isinstance(nested, dict):
        # A shell stands in for a program that has not been loaded yet.
        if nested.get("type") != "SDFGShell":
            node.sdfg = _load_region(nested, allocator, 0, default_type="SDFG")  # type: ignore[assignment]
    return node


def _load_dataflow_edge(record: Record) -> DataflowEdge:
    data = _attributes(record).get("data") or {}
    memlet = (data.get("attributes") or {}) if isinstance(data, dict) else {}
    return DataflowEdge(
        src=_int(record.get("src"), "edge source"),
        dst=_int(record.get("dst"), "edge destination"),
        src_connector=record.get("src_connector") or None,
        dst_connector=record.get("dst_connector") or None,
        shortcut=bool(memlet.get("shortcut", False)),
        source=record,
    )
