# app.py
import streamlit as st
import pandas as pd
import plotly.graph_objects as go

from datetime import datetime

from pqmonitor.config import MONTH_NAMES, SARFI_HISTORY_YEARS
from pqmonitor.db import query_events, query_substations
from pqmonitor.filters import filter_events, mother_event_counts
from pqmonitor.sarfi import aggregate_sarfi70, month_detail, monthly_sarfi70
from pqmonitor.stats import dashboard_stats, events_frame, format_sarfi


# ----------------------------
# THEME
# ----------------------------
def apply_theme():
    st.markdown(
        """
        <style>
        :root{
          --panel:#ffffff;
          --border:#e2e8f0;
          --muted:#475569;
        }
        [data-testid="stMetric"]{
          background: var(--panel) !important;
          border: 1px solid var(--border) !important;
          border-radius: 16px !important;
          padding: 18px 18px !important;
          box-shadow: 0 8px 20px rgba(148,163,184,.25);
        }
        [data-testid="stMetricLabel"]{ color: var(--muted) !important; }
        [data-testid="stMetricValue"]{
          font-size: 2rem !important;
          font-weight: 700 !important;
        }
        </style>
        """,
        unsafe_allow_html=True,
    )


# ----------------------------
# SARFI-70 chart: one line per year, months on x
# ----------------------------
YEAR_COLORS = ["#94a3b8", "#60a5fa", "#2563eb", "#1e3a8a"]

def sarfi70_chart(monthly: pd.DataFrame):
    fig = go.Figure()
    years = sorted(monthly["year"].unique())
    for i, year in enumerate(years):
        sub = monthly[monthly["year"] == year]
        fig.add_trace(
            go.Scatter(
                x=[MONTH_NAMES[m - 1] for m in sub["month"]],
                y=sub["sarfi70_score"],
                mode="lines+markers",
                name=str(year),
                line=dict(color=YEAR_COLORS[i % len(YEAR_COLORS)], width=3 if year == years[-1] else 2),
                customdata=sub["event_count"],
                hovertemplate="%{x} " + str(year) + "<br>SARFI-70: %{y:.4f}<br>Events: %{customdata}<extra></extra>",
            )
        )

    fig.update_layout(
        height=340,
        margin=dict(l=0, r=0, t=10, b=0),
        xaxis=dict(categoryorder="array", categoryarray=MONTH_NAMES, title=""),
        yaxis=dict(title="SARFI-70", tickformat=".4f", rangemode="tozero"),
        legend=dict(orientation="h", yanchor="bottom", y=1.02, xanchor="right", x=1),
    )
    st.plotly_chart(fig, use_container_width=True)


def download_csv(df: pd.DataFrame, label: str, file_name: str):
    st.download_button(label, data=df.to_csv(index=False).encode("utf-8"), file_name=file_name, mime="text/csv")


# ----------------------------
# App
# ----------------------------
st.set_page_config(page_title="PQ Monitor", layout="wide")
apply_theme()

st.title("Power Quality Dashboard")

now = datetime.now()
# normalized once per render; every panel below reuses it
events = events_frame(query_events())
substations = query_substations()

if events.empty:
    st.warning("No PQ events in the store yet. Run `python -m pqmonitor.ingest --events events.csv`.")
    st.stop()

with st.sidebar:
    st.header("Event List")
    event_type = st.selectbox("Event type", ["all"] + sorted(events["event_type"].dropna().unique().tolist()), index=0)
    only_mother = st.checkbox("Only mother events", value=False)
    hide_false = st.checkbox("Hide false events", value=True)

    st.divider()
    st.header("SARFI-70 Aggregation")
    year_options = list(range(now.year, now.year - SARFI_HISTORY_YEARS, -1))
    agg_year = st.selectbox("Year", year_options, index=0)

# ----------------------------
# Stat cards
# ----------------------------
stats = dashboard_stats(events, substations, now=now)

c1, c2, c3 = st.columns(3)
with c1:
    st.metric("Total Events (24h)", stats["recent_24h"])
with c2:
    st.metric("PQ Events This Month", stats["month_events"])
with c3:
    st.metric("SARFI-70 This Month", stats["sarfi70_month"])

st.divider()

# ----------------------------
# SARFI-70 KPI monitoring
# ----------------------------
st.subheader("SARFI-70 KPI Monitoring")
st.caption(f"{SARFI_HISTORY_YEARS}-year comparison of SARFI-70 scores by month")

monthly = monthly_sarfi70(events, now=now)
sarfi70_chart(monthly)

labels = monthly["label"].tolist()[::-1]
picked = st.selectbox("Month detail", labels, index=0)
sel = monthly[monthly["label"] == picked].iloc[0]

detail = month_detail(events, substations, int(sel["year"]), int(sel["month"]))
st.write(
    f"**{picked}** | Events: **{len(detail)}** | SARFI-70: **{format_sarfi(float(sel['sarfi70_score']))}**"
)
if detail.empty:
    st.caption("No SARFI-70 events in this month.")
else:
    shown = detail.copy()
    shown["sarfi70"] = shown["sarfi70"].map(format_sarfi)
    st.dataframe(shown, use_container_width=True, hide_index=True)
    download_csv(detail, "Download month CSV", f"SARFI70_Report_{int(sel['year'])}_{int(sel['month']):02d}.csv")

st.divider()

# ----------------------------
# Aggregation by OC / location
# ----------------------------
st.subheader(f"SARFI-70 by Month ({agg_year})")
tab_oc, tab_loc = st.tabs(["By OC", "By Location"])
for tab, key in ((tab_oc, "oc"), (tab_loc, "location")):
    with tab:
        agg = aggregate_sarfi70(events, int(agg_year), by=key)
        if agg.empty:
            st.caption("No SARFI-70 events for this year.")
        else:
            st.dataframe(agg.set_index("key").round(4), use_container_width=True)
            download_csv(agg, "Download CSV", f"SARFI70_{key}_{agg_year}.csv")

st.divider()

# ----------------------------
# Event list
# ----------------------------
st.subheader("Events")
counts = mother_event_counts(events)
st.caption(
    f"Mother events: {counts['total']} total | {counts['visible']} visible | "
    f"{counts['hidden_false']} hidden as false events"
)

listed = filter_events(events, only_mother=only_mother, hide_false=hide_false, event_type=event_type)
table_df = listed[
    ["ts", "event_type", "is_mother_event", "false_event", "sarfi_70", "magnitude", "duration", "oc", "location", "voltage_level", "id"]
].rename(columns={"ts": "timestamp"})
st.dataframe(table_df.head(500), use_container_width=True, hide_index=True)
download_csv(table_df, "Download events CSV", "pq_events.csv")
