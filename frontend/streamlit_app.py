import os
import uuid

import pandas as pd
import plotly.express as px
import requests
import streamlit as st

API_URL = os.getenv("CHAINLENS_API", "http://127.0.0.1:8080")

st.set_page_config(page_title="Chainlens", layout="wide")
st.markdown(
    """
    <style>
      .small-muted { color: #6b7280; font-size: 12px; }
      .pill { display:inline-block; padding:4px 8px; border:1px solid #e5e7eb; border-radius:999px; font-size:12px; color:#374151; background:#fff; }
    </style>
    """,
    unsafe_allow_html=True,
)

st.title("Chainlens")
st.caption("Ask about wallets in plain English. Get answers and charts.")

if "session_id" not in st.session_state:
    st.session_state.session_id = str(uuid.uuid4())
if "history" not in st.session_state:
    st.session_state.history = []

# ---------------- Sidebar ----------------
with st.sidebar:
    st.header("Diagnostics")
    st.markdown(f"<span class='pill'>API: {API_URL}</span>", unsafe_allow_html=True)
    if st.button("Check /health"):
        try:
            r = requests.get(f"{API_URL}/health", timeout=5)
            st.json(r.json())
        except Exception as e:
            st.error(f"Health check failed: {e}")
    if st.button("Clear conversation"):
        st.session_state.history = []


def call_api(message: str, session_id: str) -> dict:
    resp = requests.post(
        f"{API_URL}/api/chat",
        headers={"Content-Type": "application/json"},
        json={"message": message, "sessionId": session_id},
        timeout=60,
    )
    ct = resp.headers.get("content-type", "")
    if "application/json" not in ct:
        raise RuntimeError(f"Non-JSON response ({resp.status_code}): {resp.text[:300]}")
    data = resp.json()
    if resp.status_code >= 400:
        raise RuntimeError(data.get("error", {}).get("message") or data)
    return data["data"]


def render_chart(chart: dict):
    if not chart:
        return
    if chart.get("placeholder"):
        st.info(chart.get("title") or "No data available.")
        return
    series = chart["series"][0]
    kind = chart.get("kind")
    df = pd.DataFrame({"label": chart["labels"], "value": series["values"]})
    if kind == "pie":
        fig = px.pie(df, names="label", values="value")
    elif kind == "bar":
        fig = px.bar(df, x="label", y="value")
    elif kind == "scatter":
        df["x"] = series.get("x") or list(range(len(df)))
        fig = px.scatter(df, x="x", y="value", hover_name="label")
    elif kind == "area":
        fig = px.area(df, x="label", y="value")
    else:
        fig = px.line(df, x="label", y="value", markers=True)
    fig.update_layout(
        title=chart.get("title"),
        height=420,
        margin=dict(l=20, r=20, t=40, b=10),
        xaxis_title=None, yaxis_title=series.get("name") or "value",
    )
    st.plotly_chart(fig, use_container_width=True)


for turn in st.session_state.history:
    with st.chat_message(turn["role"]):
        st.markdown(turn["text"])
        render_chart(turn.get("chart"))

prompt = st.chat_input("e.g. Plot a pie chart of tokens held by 0x742d…")
if prompt:
    st.session_state.history.append({"role": "user", "text": prompt})
    with st.chat_message("user"):
        st.markdown(prompt)
    with st.chat_message("assistant"):
        with st.spinner("Thinking…"):
            try:
                data = call_api(prompt, st.session_state.session_id)
            except Exception as e:
                st.error(str(e))
                st.stop()
        st.markdown(data["message"])
        render_chart(data.get("chartData"))
        st.markdown(f"<span class='small-muted'>intent: {data['intent']}</span>", unsafe_allow_html=True)
    st.session_state.history.append(
        {"role": "assistant", "text": data["message"], "chart": data.get("chartData")}
    )
