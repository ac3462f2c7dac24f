# roadmap_graph/engine/builder.py

import logging
import math
from typing import List, Tuple

import numpy as np
import pandas as pd

from roadmap_graph.engine.model import (
    FINISH_TO_START,
    GraphEdge,
    GraphNode,
    GraphSnapshot,
    NodeFilter,
    NodeKind,
)
from roadmap_graph.settings import INCLUSIVE_END_DATES, MAX_GAP_DAYS, MIN_GAP_DAYS

logger = logging.getLogger(__name__)

WORK_ITEM_COLUMNS = ["id", "name", "status", "type", "effort", "start_date", "end_date"]
SYSTEM_COLUMNS = ["id", "name"]

# host field name -> canonical column
WORK_ITEM_ALIASES = {
    "ID": "id",
    "Id": "id",
    "TaskID": "id",
    "Name": "name",
    "Status": "status",
    "Type": "type",
    "initiativeType": "type",
    "initiative_type": "type",
    "Effort": "effort",
    "effortEstimate": "effort",
    "effort_estimate": "effort",
    "startDate": "start_date",
    "Start": "start_date",
    "start": "start_date",
    "endDate": "end_date",
    "Finish": "end_date",
    "end": "end_date",
}

SYSTEM_ALIASES = {
    "ID": "id",
    "Id": "id",
    "Name": "name",
}


# ---------------------------------------------------------
# FIELD CLEANUP & PREPARATION
# ---------------------------------------------------------

def to_frame(records) -> pd.DataFrame:
    if records is None:
        return pd.DataFrame()
    if isinstance(records, pd.DataFrame):
        return records.copy()
    return pd.DataFrame(list(records))


def canonical_columns(df: pd.DataFrame, aliases) -> pd.DataFrame:
    """Rename host field names to canonical ones; the first of any repeated column wins."""
    df.columns = [str(c).strip() for c in df.columns]
    df = df.rename(columns={k: v for k, v in aliases.items() if v not in df.columns})
    dup = df.columns.duplicated(keep="first")
    if dup.any():
        logger.warning("Ignoring repeated column(s): %s", sorted(set(df.columns[dup])))
        df = df.loc[:, ~dup]
    return df


def _clean_ids(df: pd.DataFrame, label: str) -> pd.DataFrame:
    """Drop blank ids and keep the first row of each duplicated id."""
    ids = df["id"].astype("string").str.strip()
    blank = ids.isna() | (ids == "")
    if blank.any():
        logger.warning("Dropping %d %s row(s) with a blank id", int(blank.sum()), label)

    df = df.loc[~blank].copy()
    df["id"] = ids[~blank].astype(str)

    dups = df["id"].duplicated(keep="first")
    if dups.any():
        logger.warning(
            "Dropping duplicate %s id(s): %s", label, sorted(set(df.loc[dups, "id"]))
        )
        df = df.loc[~dups]

    return df.reset_index(drop=True)


def process_work_items(records) -> pd.DataFrame:
    """
    Clean and normalize the scenario's work items.

    Accepts a DataFrame or a list of dict records using either the
    canonical names or the host application's field names.

    Guarantees:
      - columns id, name, status, type, effort, start_date, end_date exist
      - id is a unique, non-blank string
      - effort is numeric and non-negative (NaN otherwise)
      - start_date / end_date are tz-aware timestamps (or NaT)
    """
    df = to_frame(records)
    df = canonical_columns(df, WORK_ITEM_ALIASES)

    for col in WORK_ITEM_COLUMNS:
        if col not in df.columns:
            df[col] = np.nan

    df = df[WORK_ITEM_COLUMNS]
    if df.empty:
        return _empty_work_items()

    df = _clean_ids(df, "work item")

    df["name"] = df["name"].where(df["name"].notna(), df["id"]).astype(str)
    for col in ["status", "type"]:
        df[col] = df[col].where(df[col].notna(), None)

    # ---- Effort ----
    effort = pd.to_numeric(df["effort"], errors="coerce")
    df["effort"] = effort.where(effort >= 0)

    # ---- Dates ----
    for col in ["start_date", "end_date"]:
        df[col] = parse_dates(df[col])

    return df


def parse_dates(series: pd.Series) -> pd.Series:
    # element-wise so one odd format does not blank out the whole column
    parsed = series.map(lambda v: pd.to_datetime(v, errors="coerce", utc=True))
    return pd.to_datetime(parsed, utc=True)


def process_systems(records) -> pd.DataFrame:
    """Normalize supporting-entity records to columns id, name."""
    df = to_frame(records)
    df = canonical_columns(df, SYSTEM_ALIASES)

    for col in SYSTEM_COLUMNS:
        if col not in df.columns:
            df[col] = np.nan

    df = df[SYSTEM_COLUMNS]
    if df.empty:
        return pd.DataFrame({"id": pd.Series(dtype=str), "name": pd.Series(dtype=str)})

    df = _clean_ids(df, "system")
    df["name"] = df["name"].where(df["name"].notna(), df["id"]).astype(str)
    return df


def _empty_work_items() -> pd.DataFrame:
    return pd.DataFrame({
        "id": pd.Series(dtype=str),
        "name": pd.Series(dtype=str),
        "status": pd.Series(dtype=object),
        "type": pd.Series(dtype=object),
        "effort": pd.Series(dtype=float),
        "start_date": pd.Series(dtype="datetime64[ns, UTC]"),
        "end_date": pd.Series(dtype="datetime64[ns, UTC]"),
    })


# ---------------------------------------------------------
# EDGE INFERENCE
# ---------------------------------------------------------

def days_between(earlier: pd.Timestamp, later: pd.Timestamp) -> float:
    """Signed, fractional number of days from `earlier` to `later`."""
    return (later - earlier) / pd.Timedelta(days=1)


def gap_days(end: pd.Timestamp, next_start: pd.Timestamp,
             inclusive_end: bool = INCLUSIVE_END_DATES) -> float:
    """Free days between one item's end and the next item's start."""
    gap = days_between(end, next_start)
    return gap - 1.0 if inclusive_end else gap


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def infer_edges(work_items: pd.DataFrame,
                min_gap: float = MIN_GAP_DAYS,
                max_gap: float = MAX_GAP_DAYS) -> List[GraphEdge]:
    """
    Infer finish-to-start edges between consecutive dated work items.

    Items with both a start and an end date are sorted by start (stable,
    ties keep input order). Each adjacent pair (current, next) whose gap,
    the free days between current.end and next.start, lies in
    [min_gap, max_gap] becomes an edge current -> next. Negative gaps
    (overlaps) are kept but marked unsatisfied.
    """
    if work_items is None or work_items.empty:
        return []

    dated = work_items[work_items["start_date"].notna() & work_items["end_date"].notna()]
    dated = dated.sort_values("start_date", kind="stable")

    edges = []
    rows = list(dated[["id", "start_date", "end_date"]].itertuples(index=False))

    for current, nxt in zip(rows, rows[1:]):
        gap = gap_days(current.end_date, nxt.start_date)
        if min_gap <= gap <= max_gap:
            edges.append(GraphEdge(
                id=f"{current.id}-{nxt.id}",
                source_id=current.id,
                target_id=nxt.id,
                relation_type=FINISH_TO_START,
                satisfied=bool(gap >= 0),
                lag_days=round_half_up(gap),
            ))

    return edges


# ---------------------------------------------------------
# GRAPH CONSTRUCTION
# ---------------------------------------------------------

def _optional(value):
    if value is None:
        return None
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        pass
    return value


def build_nodes(work_items: pd.DataFrame, systems: pd.DataFrame,
                node_filter: NodeFilter) -> List[GraphNode]:
    nodes = []

    if node_filter.includes(NodeKind.INITIATIVE):
        for row in work_items.itertuples(index=False):
            effort = _optional(row.effort)
            nodes.append(GraphNode(
                id=row.id,
                name=row.name,
                kind=NodeKind.INITIATIVE,
                status=_optional(row.status),
                initiative_type=_optional(row.type),
                effort=None if effort is None else float(effort),
            ))

    if node_filter.includes(NodeKind.SYSTEM):
        seen = {n.id for n in nodes}
        for row in systems.itertuples(index=False):
            if row.id in seen:
                logger.warning("System id %r collides with a work item id; skipped", row.id)
                continue
            seen.add(row.id)
            nodes.append(GraphNode(id=row.id, name=row.name, kind=NodeKind.SYSTEM))

    return nodes


def build_snapshot(work_items=None, systems=None,
                   node_filter=NodeFilter.INITIATIVES) -> GraphSnapshot:
    """
    Build an immutable graph snapshot from work items and systems.

    node_filter:
      initiatives → work items only
      systems     → supporting entities only
      both        → both kinds

    Never raises on data: empty input gives an empty snapshot and edges
    whose endpoints were filtered out are omitted.
    """
    return assemble_snapshot(process_work_items(work_items), process_systems(systems), node_filter)


def assemble_snapshot(items: pd.DataFrame, ents: pd.DataFrame, node_filter) -> GraphSnapshot:
    """Snapshot from frames already passed through process_work_items / process_systems."""
    node_filter = NodeFilter(node_filter)

    nodes = build_nodes(items, ents, node_filter)
    # inferred edges only ever join work items
    initiatives = [n for n in nodes if n.kind is NodeKind.INITIATIVE]
    edges = resolve_edges(initiatives, infer_edges(items))

    logger.debug("Built snapshot: %d nodes, %d edges (filter=%s)",
                 len(nodes), len(edges), node_filter.value)
    return GraphSnapshot(nodes=tuple(nodes), edges=tuple(edges))


def resolve_edges(nodes, edges) -> List[GraphEdge]:
    """Keep only edges whose two endpoints are present in `nodes`."""
    ids = {n.id for n in nodes}
    kept = [e for e in edges if e.source_id in ids and e.target_id in ids]
    dropped = len(edges) - len(kept)
    if dropped:
        logger.debug("Omitted %d edge(s) with an endpoint outside the node set", dropped)
    return kept


def build_graph(work_items=None, systems=None,
                node_filter=NodeFilter.INITIATIVES) -> Tuple[List[GraphNode], List[GraphEdge]]:
    """Convenience form returning (nodes, edges) lists."""
    snap = build_snapshot(work_items, systems, node_filter)
    return list(snap.nodes), list(snap.edges)
