import os
import sys

# -------------------------------------------------------------------
# Path bootstrap: same pattern as the Menu page
# -------------------------------------------------------------------
APP_ROOT = os.path.dirname(os.path.abspath(__file__))
PROJECT_ROOT = os.path.abspath(os.path.join(APP_ROOT, "../.."))

if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

import streamlit as st

from roadmap_graph.engine.model import LayoutStrategy, NodeFilter
from roadmap_graph.engine.selection import BACKGROUND_CLICK, NODE_CLICK
from roadmap_graph.engine.view import GraphView
from roadmap_graph.render.figure import build_graph_figure, node_table
from roadmap_graph.settings import LayoutSettings

# -------------------------------------------------------------------
# Page config
# -------------------------------------------------------------------
st.set_page_config(page_title="Dependency Graph", layout="wide")

st.title("🕸️ Dependency Graph")

df_items = st.session_state.get("work_items_df", None)
df_systems = st.session_state.get("systems_df", None)

if df_items is None:
    st.warning("No roadmap loaded. Upload one on the Home/Menu page first.")
    st.stop()

# -------------------------------------------------------------------
# Toolbar
# -------------------------------------------------------------------
st.sidebar.header("Graph")

layout_labels = {
    "Force": LayoutStrategy.FORCE,
    "Hierarchical": LayoutStrategy.HIERARCHICAL,
    "Circular": LayoutStrategy.CIRCULAR,
}
filter_labels = {
    "Initiatives only": NodeFilter.INITIATIVES,
    "Systems only": NodeFilter.SYSTEMS,
    "Both": NodeFilter.BOTH,
}

layout_choice = st.sidebar.radio("Layout", list(layout_labels), index=0)
filter_choice = st.sidebar.selectbox("Show", list(filter_labels), index=0)
highlight = st.sidebar.checkbox("Highlight critical path", value=False)
width = st.sidebar.slider("Canvas width", 400, 1600, 900, step=50)
height = st.sidebar.slider("Canvas height", 300, 1200, 600, step=50)

# -------------------------------------------------------------------
# One view per session
# -------------------------------------------------------------------
if "graph_view" not in st.session_state:
    st.session_state["graph_view"] = GraphView(settings=LayoutSettings.from_env())

view: GraphView = st.session_state["graph_view"]

view.set_data(df_items, df_systems, filter_labels[filter_choice])
view.set_layout(layout_labels[layout_choice])
view.resize(width, height)
view.set_highlight_critical_path(highlight)

if view.snapshot.is_empty:
    st.info("No dependencies. Add initiatives to see the dependency graph.")
    st.stop()

# -------------------------------------------------------------------
# Selection and pinning
# -------------------------------------------------------------------
node_names = {n.id: n.name for n in view.snapshot.nodes}
ids = list(node_names)

sel_col, pin_col = st.columns(2)

with sel_col:
    current = view.selection.selected_id
    picked = st.selectbox(
        "Node",
        ids,
        index=ids.index(current) if current in ids else 0,
        format_func=lambda i: node_names[i],
    )
    b1, b2 = st.columns(2)
    if b1.button("Select / deselect"):
        view.handle_event(NODE_CLICK, node_id=picked)
    if b2.button("Clear selection"):
        view.handle_event(BACKGROUND_CLICK)

with pin_col:
    if view.strategy is LayoutStrategy.FORCE:
        px_col, py_col = st.columns(2)
        pin_x = px_col.number_input("Pin x", value=float(width) / 2)
        pin_y = py_col.number_input("Pin y", value=float(height) / 2)
        p1, p2 = st.columns(2)
        if p1.button("Pin node here"):
            view.drag(picked, pin_x, pin_y)
        if p2.button("Release pin"):
            view.release(picked)
    else:
        st.caption("Pinning is available in the force layout.")

# -------------------------------------------------------------------
# Advance the simulation, then draw
# -------------------------------------------------------------------
if view.strategy is LayoutStrategy.FORCE:
    with st.spinner("Settling force layout..."):
        for _ in range(view.settings.max_ticks):
            if not view.tick():
                break

model = view.render()

st.caption(model.description)

c1, c2, c3 = st.columns(3)
c1.metric("Nodes", len(model.nodes))
c2.metric("Connections", len(model.edges))
c3.metric("Critical path length", len(model.critical_path))

st.plotly_chart(build_graph_figure(model, view.settings), use_container_width=False)

with st.expander("Show node list"):
    st.dataframe(node_table(model).drop(columns=["id"]), use_container_width=True)
