# roadmap_graph/render/figure.py

import pandas as pd
import plotly.graph_objects as go

from roadmap_graph.engine.layout import node_radius
from roadmap_graph.engine.model import NodeKind
from roadmap_graph.settings import (
    CRITICAL_COLOUR,
    DEFAULT_COLOUR,
    DEFAULT_INITIATIVE_ICON,
    DEFAULT_SETTINGS,
    INITIATIVE_ICONS,
    SATISFIED_COLOUR,
    SELECTED_COLOUR,
    STATUS_COLOURS,
    SYSTEM_COLOUR,
    SYSTEM_ICON,
)


def truncate(text, max_length: int = 15) -> str:
    text = str(text)
    if len(text) <= max_length:
        return text
    return text[: max_length - 1] + "…"


def node_colour(node) -> str:
    if node.kind is NodeKind.SYSTEM:
        return SYSTEM_COLOUR
    return STATUS_COLOURS.get(node.status or "Proposed", DEFAULT_COLOUR)


def node_icon(node) -> str:
    if node.kind is NodeKind.SYSTEM:
        return SYSTEM_ICON
    return INITIATIVE_ICONS.get(node.initiative_type, DEFAULT_INITIATIVE_ICON)


def _edge_trace(edges, colour, width, name):
    xs, ys = [], []
    for re_ in edges:
        xs += [re_.source.x, re_.target.x, None]
        ys += [re_.source.y, re_.target.y, None]
    return go.Scatter(
        x=xs, y=ys,
        mode="lines",
        line=dict(color=colour, width=width),
        opacity=0.6,
        hoverinfo="skip",
        name=name,
    )


def build_graph_figure(model, settings=DEFAULT_SETTINGS) -> go.Figure:
    """
    Plotly figure for a RenderModel.

    Edges: red and thick on the critical path, otherwise green when
    satisfied and red when the successor starts before its predecessor ends.
    """
    fig = go.Figure()

    critical = [e for e in model.edges if e.critical]
    satisfied = [e for e in model.edges if not e.critical and e.edge.satisfied]
    violated = [e for e in model.edges if not e.critical and not e.edge.satisfied]

    for group, colour, width, name in [
        (satisfied, SATISFIED_COLOUR, 2, "Satisfied"),
        (violated, CRITICAL_COLOUR, 2, "Overlapping"),
        (critical, CRITICAL_COLOUR, 3, "Critical path"),
    ]:
        if group:
            fig.add_trace(_edge_trace(group, colour, width, name))

    if model.nodes:
        outline_colour, outline_width = [], []
        for n in model.nodes:
            if n.id == model.selected_id:
                outline_colour.append(SELECTED_COLOUR)
                outline_width.append(3)
            elif n.id in model.critical_path:
                outline_colour.append(CRITICAL_COLOUR)
                outline_width.append(2)
            else:
                outline_colour.append("#FFFFFF")
                outline_width.append(2)

        hover = []
        for n in model.nodes:
            parts = [f"<b>{n.name}</b>", n.kind.value]
            if n.status:
                parts.append(f"status: {n.status}")
            if n.effort:
                parts.append(f"effort: {n.effort:g} FTE")
            if n.id in model.critical_path:
                parts.append("on critical path")
            hover.append("<br>".join(parts))

        fig.add_trace(go.Scatter(
            x=[n.position.x for n in model.nodes],
            y=[n.position.y for n in model.nodes],
            mode="markers+text",
            marker=dict(
                size=[2 * node_radius(n, settings) for n in model.nodes],
                color=[node_colour(n) for n in model.nodes],
                line=dict(color=outline_colour, width=outline_width),
            ),
            text=[f"{node_icon(n)} {truncate(n.name)}" for n in model.nodes],
            textposition="bottom center",
            customdata=[n.id for n in model.nodes],
            hovertext=hover,
            hoverinfo="text",
            name="Nodes",
        ))

    fig.update_layout(
        showlegend=False,
        margin=dict(l=10, r=10, t=10, b=10),
        plot_bgcolor="rgba(0,0,0,0)",
        paper_bgcolor="rgba(0,0,0,0)",
        width=int(model.width),
        height=int(model.height),
        xaxis=dict(visible=False, range=[0, model.width]),
        # screen coordinates grow downwards
        yaxis=dict(visible=False, range=[model.height, 0], scaleanchor="x"),
    )
    return fig


def node_table(model) -> pd.DataFrame:
    """Tabular view of the nodes (name, kind, status, critical, selected)."""
    return pd.DataFrame(
        [
            {
                "Name": n.name,
                "Type": n.kind.value,
                "Status": n.status or "-",
                "Critical": "Yes" if n.id in model.critical_path else "No",
                "Selected": n.id == model.selected_id,
                "id": n.id,
            }
            for n in model.nodes
        ],
        columns=["Name", "Type", "Status", "Critical", "Selected", "id"],
    )
