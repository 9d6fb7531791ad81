"""
Progress table component: per-contributor recording progress.
"""

import streamlit as st


def render_progress_table(progress: list[dict]) -> None:
    """Render one row per contributor with a "Go record" shortcut.

    Args:
        progress: Items from ``GET /api/v1/progress``.
    """
    if not progress:
        st.info("No contributors yet.")
        return

    header = st.columns([3, 1, 1, 3, 2])
    for col, title in zip(header, ["Contributor", "Recorded", "Total", "Progress", ""], strict=True):
        col.markdown(f"**{title}**")

    for item in progress:
        name_col, rec_col, total_col, bar_col, action_col = st.columns([3, 1, 1, 3, 2])
        name_col.write(f'{item["display_name"]} ({item["contributor"]})')
        rec_col.write(item["recorded_count"])
        total_col.write(item["total_sentences"])
        bar_col.progress(
            min(item["percent"] / 100, 1.0),
            text=f'{item["percent"]:.1f}%',
        )
        if action_col.button("Go record", key=f'go_record_{item["contributor"]}'):
            st.session_state.go_record_owner = item["contributor"]
            st.switch_page("pages/01_record.py")
