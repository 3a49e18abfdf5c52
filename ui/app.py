# ABOUTME: Streamlit UI: Research tab (report, sources, diagram, narration), Planner, Habits and Image Studio.
# ABOUTME: API URL configurable via API_URL env; 429 responses show a distinct quota message.

import base64
import os

import requests
import streamlit as st

try:
    from dotenv import load_dotenv

    load_dotenv()
except ImportError:
    pass

from core.config import DEFAULT_LANGUAGE, LANGUAGES

API_URL = os.environ.get("API_URL", "http://localhost:8000")
REPORT_TIMEOUT_S = 180
SECTIONS = {
    "Climate": "🌏 Climate Change",
    "Water": "🌊 Water",
    "Air": "🪁 Air",
    "Noise": "📢 Noise & Global Change",
}
QUOTA_HINT = (
    "The API quota is exhausted. Wait a minute and try again, or switch to a paid API key."
)
UNRESPONSIVE_HINT = "The AI service is unresponsive. Please try again."


def _safe_json(response: requests.Response):
    """Parse response body as JSON; return dict or empty dict on failure."""
    try:
        return response.json()
    except Exception:
        return {}


def _error_message(response: requests.Response) -> str:
    """Quota exhaustion gets its own hint; everything else is a generic retry prompt."""
    if response.status_code == 429:
        return QUOTA_HINT
    body = _safe_json(response)
    if response.status_code == 400:
        return body.get("message", "Invalid input.")
    return body.get("message", UNRESPONSIVE_HINT)


def _sources_markdown(sources: list[dict]) -> str:
    """Numbered markdown links for grounding sources."""
    linked = [s for s in sources if s.get("uri")]
    return "\n".join(
        f"{i}. [{s.get('title') or s['uri']}]({s['uri']})"
        for i, s in enumerate(linked, start=1)
    )


def _data_uri_bytes(url: str) -> bytes | None:
    """Decode a base64 data URI; None for empty or non-data URLs."""
    if not url or not url.startswith("data:") or ";base64," not in url:
        return None
    return base64.b64decode(url.split(";base64,", 1)[1])


def _post(path: str, payload: dict, timeout: int = 60) -> requests.Response | None:
    try:
        return requests.post(f"{API_URL}{path}", json=payload, timeout=timeout)
    except requests.RequestException as e:
        st.error(f"Could not reach the API: {e}")
        return None


def _render_list(title: str, items: list[str]) -> None:
    if items:
        st.subheader(title)
        for item in items:
            st.markdown(f"- {item}")


def _render_report(report: dict) -> None:
    with st.container(border=True):
        st.header(report["topic"])
        st.caption(f"{report['category']} · {report['section']}")
        st.info(report["summary"])
        st.subheader("Introduction")
        st.write(report["introduction"])
        st.subheader("Technical explanation")
        st.write(report["explanation"])
        st.subheader("Background")
        st.write(report["background"])
        _render_list("Causes", report["causes"])
        _render_list("Impacts", report["impacts"])
        _render_list("Solutions", report["solutions"])
        _render_list("Global examples", report["examples"])
        _render_list("Prevention tips", report["preventionTips"])
        st.subheader("Conclusion")
        st.write(report["conclusion"])
        if report.get("sources"):
            st.subheader("Sources")
            st.markdown(_sources_markdown(report["sources"]))

    col_img, col_audio = st.columns(2)
    with col_img:
        if st.button("Generate diagram", key="diagram_btn"):
            with st.spinner("Drawing diagram..."):
                r = _post(
                    "/images/illustration",
                    {"prompt": report["visualPrompt"]},
                    timeout=REPORT_TIMEOUT_S,
                )
            if r is not None:
                if r.status_code == 200:
                    image = _data_uri_bytes(_safe_json(r).get("url", ""))
                    if image:
                        st.session_state["report_diagram"] = image
                    else:
                        st.warning("No diagram was returned for this report.")
                else:
                    st.error(_error_message(r))
        if st.session_state.get("report_diagram"):
            st.image(st.session_state["report_diagram"], caption="Illustrative diagram")
    with col_audio:
        if st.button("Narrate summary", key="narrate_btn"):
            with st.spinner("Synthesizing speech..."):
                r = _post("/speech", {"text": report["summary"]})
            if r is not None:
                if r.status_code == 200:
                    st.session_state["report_audio"] = r.content
                else:
                    st.error(_error_message(r))
        if st.session_state.get("report_audio"):
            st.audio(st.session_state["report_audio"], format="audio/wav")


def _research_tab(language: str) -> None:
    section = st.radio(
        "Section",
        options=list(SECTIONS),
        format_func=lambda s: SECTIONS[s],
        horizontal=True,
    )
    prompt = st.text_area(
        "Describe an environmental problem",
        placeholder="e.g. ocean acidification along coral reefs",
        height=100,
    )
    if st.button("Research", key="research_btn"):
        if not (prompt and prompt.strip()):
            st.error("Please describe an environmental problem.")
        else:
            with st.spinner("Researching with live search data..."):
                r = _post(
                    "/research",
                    {"prompt": prompt.strip(), "section": section, "language": language},
                    timeout=REPORT_TIMEOUT_S,
                )
            if r is not None:
                if r.status_code == 200:
                    data = _safe_json(r)
                    if not data or "topic" not in data:
                        st.error("Invalid response from server. Please try again.")
                        return
                    st.session_state["report"] = data
                    for key in ("report_diagram", "report_audio"):
                        st.session_state.pop(key, None)
                else:
                    st.error(_error_message(r))
                    return
    if "report" in st.session_state:
        _render_report(st.session_state["report"])


def _planner_tab(language: str) -> None:
    goal = st.text_input(
        "Your sustainability goal", placeholder="e.g. Reduce my household plastic waste"
    )
    if st.button("Create 7-day plan", key="plan_btn"):
        if not (goal and goal.strip()):
            st.error("Please enter a goal.")
            return
        with st.spinner("Planning your week..."):
            r = _post("/plan", {"goal": goal.strip(), "language": language})
        if r is None:
            return
        if r.status_code != 200:
            st.error(_error_message(r))
            return
        st.session_state["plan"] = _safe_json(r)
    plan = st.session_state.get("plan")
    if plan:
        st.subheader(plan.get("title", "Your plan"))
        for day in plan.get("days", []):
            with st.container(border=True):
                st.markdown(f"**Day {day['day']}:** {day['task']}")
                st.caption(day["impact"])


def _habits_tab() -> None:
    try:
        r = requests.get(f"{API_URL}/habits", timeout=10)
    except requests.RequestException as e:
        st.error(f"Could not load habits. Error: {e}")
        return
    if r.status_code != 200:
        st.error(_safe_json(r).get("message", "Could not load habits."))
        return
    for habit in _safe_json(r).get("habits", []):
        col_name, col_streak = st.columns([3, 1])
        with col_name:
            checked = st.checkbox(
                habit["name"], value=habit["completed"], key=f"habit_{habit['id']}"
            )
        with col_streak:
            st.caption(f"🔥 {habit['streak']} day streak")
        if checked != habit["completed"]:
            _post(f"/habits/{habit['id']}/toggle", {}, timeout=10)
            st.rerun()
    with st.form("new_habit_form", clear_on_submit=True):
        name = st.text_input("New habit")
        if st.form_submit_button("Add habit"):
            if not (name and name.strip()):
                st.error("Habit name cannot be empty.")
            else:
                r = _post("/habits", {"name": name.strip()}, timeout=10)
                if r is not None and r.status_code == 201:
                    st.rerun()
                elif r is not None:
                    st.error(_safe_json(r).get("message", "Could not save habit."))


def _image_tab() -> None:
    prompt = st.text_area("Image prompt", height=80)
    size = st.selectbox("Size", options=["1K", "2K", "4K"])
    if st.button("Generate image", key="image_btn"):
        if not (prompt and prompt.strip()):
            st.error("Please enter an image prompt.")
            return
        with st.spinner("Generating image..."):
            r = _post(
                "/images", {"prompt": prompt.strip(), "size": size}, timeout=REPORT_TIMEOUT_S
            )
        if r is None:
            return
        if r.status_code != 200:
            st.error(_error_message(r))
            return
        image = _data_uri_bytes(_safe_json(r).get("url", ""))
        if image:
            st.image(image, caption=f"{prompt.strip()} ({size})")
        else:
            st.warning("The model did not return an image. Try rephrasing the prompt.")


def main():
    st.title("Eco Research Assistant")
    st.write("Describe an environmental problem and get a sourced, structured research report.")

    names = {name: native for name, native in LANGUAGES.values()}
    language = st.sidebar.selectbox(
        "Language",
        options=list(names),
        index=list(names).index(DEFAULT_LANGUAGE),
        format_func=lambda n: names[n],
    )

    tab_research, tab_planner, tab_habits, tab_image = st.tabs(
        ["Research", "Planner", "Habits", "Image Studio"]
    )
    with tab_research:
        _research_tab(language)
    with tab_planner:
        _planner_tab(language)
    with tab_habits:
        _habits_tab()
    with tab_image:
        _image_tab()


if __name__ == "__main__":
    main()
