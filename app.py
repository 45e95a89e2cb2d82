# =============================================================================
# app.py - NextUP browse shell
# Thin Streamlit front end over nextup_core: listings, bookmarks, notifications
# =============================================================================
from __future__ import annotations
import streamlit as st

from nextup_core.config import get_settings
from nextup_core.data.models import ITEM_TYPE_BY_TABLE, Bookmark, card_metadata
from nextup_core.errors import ErrorContext, handle_error, DataUnavailable, NextUpError
from nextup_core.logging import setup_logging
from nextup_core.state.view_state import get_session_services, get_view_state

CATEGORIES = {
    "Projects": "projects",
    "Gigs": "gigs",
    "Hackathons": "hackathons",
    "Scholarships": "scholarships",
}

if "_logging_ready" not in st.session_state:
    setup_logging()
    st.session_state["_logging_ready"] = True

st.set_page_config(page_title="NextUP", page_icon="🚀", layout="wide")

services = get_session_services()
auth, dal, center = services.auth, services.dal, services.notifications

# ============================================================================
# DEMO BANNER (once per session)
# ============================================================================
if not get_settings().is_configured and not st.session_state.get("_demo_banner_shown"):
    st.info("Demo mode: showing sample data. Configure Supabase credentials for live listings.")
    st.session_state["_demo_banner_shown"] = True

# ============================================================================
# SIDEBAR: ACCOUNT + NOTIFICATIONS
# ============================================================================
with st.sidebar:
    st.header("Account")
    if auth.current_user is None:
        with st.form("sign_in"):
            email = st.text_input("Email")
            password = st.text_input("Password", type="password")
            if st.form_submit_button("Sign in"):
                with ErrorContext("Signing in", transient=True) as attempt:
                    auth.sign_in_with_email(email, password)
                if not attempt.failed:
                    st.rerun()
    else:
        st.caption(f"Signed in as {auth.current_user.email or auth.current_user.id}")
        if not auth.profile_complete:
            st.warning("Add your LinkedIn and GitHub links to finish your profile.")
        if st.button("Sign out"):
            with ErrorContext("Signing out", transient=True):
                auth.sign_out()
            st.rerun()

        center.drain_events()
        st.subheader(f"🔔 Notifications ({center.unread_count})")
        if center.last_error is not None:
            st.caption("Notifications are unavailable right now.")
            if st.button("Retry", key="notif_retry"):
                center.refresh()
                st.rerun()
        if center.unread_count and st.button("Mark all as read"):
            with ErrorContext("Marking notifications read", transient=True,
                              show_success=True, success_message="All caught up"):
                center.mark_all_as_read()
            st.rerun()
        for note in center.notifications:
            marker = "" if note.get("is_read") else "🟢 "
            st.markdown(f"{marker}**{note.get('title', '')}**  \n{note.get('message', '')}")
            if not note.get("is_read") and st.button("Mark read", key=f"read_{note['id']}"):
                with ErrorContext("Marking notification read", transient=True):
                    center.mark_as_read(note["id"])
                st.rerun()

# ============================================================================
# DISCOVER
# ============================================================================
st.title("🚀 NextUP")
browse_tab, saved_tab = st.tabs(["Discover", "Bookmarks"])

with browse_tab:
    view = get_view_state("discover_view", default_category="projects")
    label = st.radio("Category", list(CATEGORIES), horizontal=True,
                     index=list(CATEGORIES.values()).index(view.category))
    view.select_category(CATEGORIES[label])
    view.set_search(st.text_input("Search titles", value=view.search_text))

    token = view.begin_request()
    try:
        view.accept(token, dal.list(view.category, view.to_query()))
    except DataUnavailable as e:
        handle_error(e, user_message=f"Could not load {label.lower()}")
        if st.button("Retry"):
            st.rerun()

    if view.result is not None:
        st.caption(f"{view.result.total} results")
        if st.toggle("Table view"):
            st.dataframe(view.result.to_frame(), use_container_width=True)
        item_type = ITEM_TYPE_BY_TABLE[view.category]
        for record in view.result.typed():
            meta = card_metadata(record)
            with st.container(border=True):
                st.markdown(f"### {record.title}")
                st.caption(" · ".join(x for x in (meta["subtitle"], meta["extra"], meta["date"] or "") if x))
                st.write(record.description)
                if meta["tags"]:
                    st.caption(" ".join(f"`{tag}`" for tag in meta["tags"]))
                saved = dal.is_bookmarked(item_type, record.id, auth.user_id)
                if st.button("★ Saved" if saved else "☆ Save", key=f"bm_{record.id}"):
                    try:
                        dal.toggle_bookmark(item_type, record.id, auth.user_id)
                        st.rerun()
                    except NextUpError as e:
                        handle_error(e, transient=True)

        prev_col, page_col, next_col = st.columns([1, 2, 1])
        if prev_col.button("← Previous", disabled=view.page <= 1):
            view.page -= 1
            st.rerun()
        page_col.caption(f"Page {view.page} of {view.page_count}")
        if next_col.button("Next →", disabled=view.page >= view.page_count):
            view.page += 1
            st.rerun()

with saved_tab:
    if auth.current_user is None:
        st.info("🔒 Sign in to see your bookmarks.")
    else:
        try:
            bookmarks = [Bookmark.from_row(row) for row in dal.get_user_bookmarks(auth.user_id)]
        except NextUpError as e:
            handle_error(e)
            bookmarks = []
        if not bookmarks:
            st.caption("Nothing saved yet.")
        for bookmark in bookmarks:
            title = bookmark.item.title if bookmark.item else "(removed listing)"
            st.markdown(f"- **{title}** · {bookmark.item_type.value}")
