import pandas as pd

from roadmap_graph.engine.builder import (
    WORK_ITEM_ALIASES,
    canonical_columns,
    parse_dates,
    to_frame,
    gap_days,
)
from roadmap_graph.settings import MAX_GAP_DAYS, MIN_GAP_DAYS

ISSUE_COLUMNS = ["ItemID", "Name", "Severity", "IssueType", "Description", "SuggestedFix"]


# ------------------------------------------------------------------
# 🧱 Helper: make a consistent issue dictionary
# ------------------------------------------------------------------
def make_issue(item_id, name, severity, issue_type, description, suggestion):
    return {
        "ItemID": item_id,
        "Name": name,
        "Severity": severity,
        "IssueType": issue_type,
        "Description": description,
        "SuggestedFix": suggestion,
    }


def _blank(value) -> bool:
    if value is None:
        return True
    try:
        if pd.isna(value):
            return True
    except (TypeError, ValueError):
        return False
    return str(value).strip() == ""


# ------------------------------------------------------------------
# 🧠 MAIN VALIDATION ENGINE
# ------------------------------------------------------------------
def validate_work_items(records) -> pd.DataFrame:
    """
    Data-quality report for work items. Nothing here blocks the graph:
    the builder degrades gracefully, this only explains what it will do.

    Severities:
      error   → the row is dropped from the graph
      warning → the row is kept but will not take part in edge inference
      info    → worth knowing, no effect on the graph
    """
    issues = []

    df = to_frame(records)
    df = canonical_columns(df, WORK_ITEM_ALIASES)

    if df.empty:
        return pd.DataFrame(issues, columns=ISSUE_COLUMNS)

    if "id" not in df.columns:
        issues.append(make_issue(
            None, None, "error", "MissingColumns",
            "Work items have no id column; every row will be dropped.",
            "Add an 'id' column (or 'TaskID') with a unique value per item."
        ))
        return pd.DataFrame(issues, columns=ISSUE_COLUMNS)

    for col in ["name", "effort", "start_date", "end_date"]:
        if col not in df.columns:
            df[col] = None

    # ------------------------------------------------------------------
    # 1. Identity
    # ------------------------------------------------------------------
    blank_ids = df["id"].map(_blank)
    for _, row in df[blank_ids].iterrows():
        issues.append(make_issue(
            None, row["name"], "error", "BlankID",
            "Work item has no id.",
            "Give every work item a unique id."
        ))

    ids = df.loc[~blank_ids, "id"].astype(str).str.strip()
    dups = sorted(set(ids[ids.duplicated(keep="first")]))
    for dup in dups:
        issues.append(make_issue(
            dup, "", "error", "DuplicateID",
            f"Id {dup!r} appears more than once; only the first row is used.",
            "Renumber the duplicated work items."
        ))

    # ------------------------------------------------------------------
    # 2. Dates
    # ------------------------------------------------------------------
    start = parse_dates(df["start_date"])
    end = parse_dates(df["end_date"])

    for col, parsed in [("start_date", start), ("end_date", end)]:
        bad = parsed.isna() & ~df[col].map(_blank)
        for idx in df.index[bad.to_numpy()]:
            issues.append(make_issue(
                df.at[idx, "id"], df.at[idx, "name"], "warning", "InvalidDate",
                f"{col} value {df.at[idx, col]!r} could not be parsed.",
                "Use ISO dates such as 2024-01-31."
            ))

    missing = (start.isna() | end.isna()) & ~blank_ids
    for idx in df.index[missing.to_numpy()]:
        issues.append(make_issue(
            df.at[idx, "id"], df.at[idx, "name"], "warning", "MissingDates",
            "Item lacks a start or end date and will appear without dependencies.",
            "Set both dates to place the item in the dependency chain."
        ))

    reversed_dates = start.notna() & end.notna() & (end < start)
    for idx in df.index[reversed_dates.to_numpy()]:
        issues.append(make_issue(
            df.at[idx, "id"], df.at[idx, "name"], "warning", "InvalidDateOrder",
            "End date is before start date.",
            "Fix the start/end ordering."
        ))

    # ------------------------------------------------------------------
    # 3. Effort
    # ------------------------------------------------------------------
    effort = pd.to_numeric(df["effort"], errors="coerce")
    for idx in df.index[(effort < 0).to_numpy()]:
        issues.append(make_issue(
            df.at[idx, "id"], df.at[idx, "name"], "warning", "NegativeEffort",
            f"Effort is negative ({effort[idx]}); it will be ignored.",
            "Effort must be zero or positive."
        ))

    # ------------------------------------------------------------------
    # 4. Sequencing gaps the edge inference will not bridge
    # ------------------------------------------------------------------
    dated = pd.DataFrame({"id": df["id"], "name": df["name"], "start": start, "end": end})
    dated = dated[dated["start"].notna() & dated["end"].notna() & ~blank_ids]
    dated = dated.sort_values("start", kind="stable")
    rows = list(dated.itertuples(index=False))

    for current, nxt in zip(rows, rows[1:]):
        gap = gap_days(current.end, nxt.start)
        if gap < MIN_GAP_DAYS or gap > MAX_GAP_DAYS:
            issues.append(make_issue(
                nxt.id, nxt.name, "info", "GapOutsideWindow",
                f"{gap:.0f} days after {current.id!r} ends; no dependency inferred.",
                f"Gaps between {MIN_GAP_DAYS:.0f} and {MAX_GAP_DAYS:.0f} days are linked."
            ))

    return pd.DataFrame(issues, columns=ISSUE_COLUMNS)
