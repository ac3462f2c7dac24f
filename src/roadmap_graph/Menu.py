import logging
import os, sys

# Absolute path to this file
THIS_FILE = os.path.abspath(__file__)

# Go up to the src folder:
#   Menu.py → roadmap_graph/ → src/
PROJECT_SRC = os.path.abspath(os.path.join(THIS_FILE, "../../"))

# Ensure src folder is on PYTHONPATH
if PROJECT_SRC not in sys.path:
    sys.path.insert(0, PROJECT_SRC)

import streamlit as st
import pandas as pd

from roadmap_graph.data.sample_data import sample_systems, sample_work_items
from roadmap_graph.engine.builder import build_graph, process_systems, process_work_items
from roadmap_graph.engine.critical_path import compute_critical_path
from roadmap_graph.validation.work_item_validator import validate_work_items

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

st.set_page_config(page_title="Roadmap Dependency Graph", layout="wide")

st.title("🗺️ Roadmap Dependency Graph")

st.markdown("""
Load your initiatives (and optionally the systems they touch) once — the graph page uses them automatically.
""")

# Initialize session storage
for key in ["work_items_df", "systems_df", "work_items_name"]:
    if key not in st.session_state:
        st.session_state[key] = None

col1, col2 = st.columns(2)

with col1:
    uploaded_items = st.file_uploader("Upload Initiatives CSV", type=["csv"])
with col2:
    uploaded_systems = st.file_uploader("Upload Systems CSV (optional)", type=["csv"])

if st.button("Load sample roadmap"):
    st.session_state["work_items_df"] = sample_work_items()
    st.session_state["systems_df"] = sample_systems()
    st.session_state["work_items_name"] = "sample roadmap"
    st.rerun()

if uploaded_items:
    try:
        df_raw = pd.read_csv(uploaded_items)
        st.session_state["work_items_df"] = df_raw
        st.session_state["work_items_name"] = uploaded_items.name
    except Exception as e:
        st.error(f"Error loading initiatives: {e}")

if uploaded_systems:
    try:
        st.session_state["systems_df"] = pd.read_csv(uploaded_systems)
    except Exception as e:
        st.error(f"Error loading systems: {e}")

df_items = st.session_state["work_items_df"]

if df_items is None:
    st.info("Upload a CSV with columns id, name, status, type, effort, start_date, end_date — or load the sample.")
    st.stop()

st.success(f"✅ Active roadmap: **{st.session_state['work_items_name']}**")

clean = process_work_items(df_items)
systems = process_systems(st.session_state["systems_df"])

c1, c2, c3, c4 = st.columns(4)
c1.metric("Initiatives", len(clean))
c2.metric("Dated initiatives", int((clean["start_date"].notna() & clean["end_date"].notna()).sum()))
c3.metric("Systems", len(systems))

nodes, edges = build_graph(clean)
c4.metric("Critical path length", len(compute_critical_path(nodes, edges)))

# -----------------------------------------------------------
# Data quality (never blocks the graph)
# -----------------------------------------------------------
issues = validate_work_items(df_items)

st.subheader("🔍 Data Quality")
if issues.empty:
    st.success("No data issues found.")
else:
    errors = issues[issues["Severity"] == "error"]
    if not errors.empty:
        st.error("These rows are left out of the graph.")
    st.dataframe(issues, use_container_width=True)
