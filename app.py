# app.py

'''
AgentX Yield Assistant Streamlit Frontend

This module implements the chat page that hosts the rule-based yield assistant.

Features:
1. Chat UI with role-based message rendering for user and assistant.
2. One DialogueEngine per browser session, kept in Streamlit session state.
3. Allocation tables and charts rendered under portfolio recommendations.
4. Suggested prompts and a reset control in the sidebar.
5. A short display-only typing delay while the reply is prepared.
'''

import random
import time
from typing import Dict

import plotly.io as pio
import streamlit as st  # type: ignore

from yield_agent import DialogueEngine, ResponsePayload, Speaker, configure_logging, load_settings

SUGGESTED_PROMPTS = [
    "I have a low risk tolerance",
    "I want to invest 50 EGLD",
    "I'm investing for the long term",
    "Tell me about Hatom",
    "Can you suggest a balanced portfolio for long-term growth?",
]

settings = load_settings()
configure_logging(settings.log_level)


def render_assistant_payload(payload: ResponsePayload) -> None:
    """Render a reply together with any allocation extras."""

    if payload.message:
        st.markdown(payload.message)

    for table in payload.tables:
        st.markdown(f"\n **{table.title}**")
        st.dataframe(table.dataframe, width='stretch', hide_index=True)

    for chart in payload.charts:
        try:
            fig = pio.from_json(chart.figure_json)
        except ValueError as exc:
            st.caption(f"[chart rendering failed: {exc}]")
            continue
        st.plotly_chart(fig, width='stretch')


def submit(prompt: str) -> None:
    engine: DialogueEngine = st.session_state.engine
    low, high = settings.typing_delay
    with st.spinner("AgentX is typing..."):
        time.sleep(random.uniform(low, high))
        payload = engine.respond(prompt)
    # Extras are keyed by the agent turn's index in the history.
    st.session_state.payloads[len(engine.get_history()) - 1] = payload


# --- Streamlit Chat UI ---
st.set_page_config(page_title="AgentX Yield Assistant", layout="wide")
st.title("AgentX Yield Assistant")

# --- Session State Initialization ---
if "engine" not in st.session_state:
    st.session_state.engine = DialogueEngine.from_settings(settings)
if "payloads" not in st.session_state:
    st.session_state.payloads = {}

# --- Sidebar Controls ---
st.sidebar.markdown("### Controls")
if st.sidebar.button("🗑️ Clear Chat"):
    st.session_state.engine.reset()
    st.session_state.payloads = {}
    st.rerun()

st.sidebar.markdown("### Try asking")
queued = None
for idx, suggestion in enumerate(SUGGESTED_PROMPTS):
    if st.sidebar.button(suggestion, key=f"suggestion-{idx}"):
        queued = suggestion

with st.sidebar.expander("What I know about you"):
    st.json(st.session_state.engine.context)


def display_chat() -> None:
    payloads: Dict[int, ResponsePayload] = st.session_state.payloads
    for idx, turn in enumerate(st.session_state.engine.get_history()):
        role = "user" if turn.speaker is Speaker.USER else "assistant"
        with st.chat_message(role):
            payload = payloads.get(idx)
            if payload is not None:
                render_assistant_payload(payload)
            else:
                st.markdown(turn.text)


prompt = st.chat_input("Ask about yields, risk, protocols or your portfolio...")
if queued and not prompt:
    prompt = queued
if prompt and prompt.strip():
    submit(prompt.strip())

display_chat()
