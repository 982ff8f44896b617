"""
Streamlit Frontend for the Task & Budget Tracker

DESIGN PRINCIPLES:
1. Everything shown comes from the synced state; nothing is edited locally
2. Writes go through the session and show up on the next snapshot
3. Clear error messages when a capability (voice, audio, storage) is missing

Streamlit reruns this script on every interaction, but the session and its
realtime listeners must outlive reruns. They live on one event loop running
in a background thread, shared through `st.cache_resource`.
"""

import asyncio
import threading
from decimal import Decimal

import streamlit as st

from src.config import get_settings, validate_all_settings
from src.models import (
    PRESENTATION_THEMES,
    AppMode,
    SettingsUpdate,
    Theme,
    TransactionType,
)
from src.orchestrator import AppSession, create_app_components
from src.views.markup import failure_line, task_row_html, transaction_row_html


# Page configuration
st.set_page_config(
    page_title="Task & Budget Tracker",
    page_icon="✅",
    layout="wide",
    initial_sidebar_state="expanded",
)


class SessionRunner:
    """Owns the event loop thread the AppSession lives on."""

    def __init__(self):
        self.loop = asyncio.new_event_loop()
        self._thread = threading.Thread(
            target=self.loop.run_forever,
            name="tracker-loop",
            daemon=True,
        )
        self._thread.start()
        self.alarm_armed = False
        self.session: AppSession = create_app_components()
        self.run(self.session.start())

    def run(self, coro, timeout=None):
        """Run a coroutine on the session loop and wait for its result."""
        return asyncio.run_coroutine_threadsafe(coro, self.loop).result(timeout)

    def call(self, fn, *args):
        """Run a plain callable on the session loop."""
        async def invoke():
            return fn(*args)
        return self.run(invoke())


@st.cache_resource
def get_runner() -> SessionRunner:
    """Get or create the shared session runner (cached)."""
    return SessionRunner()


def apply_theme(theme: Theme):
    colours = PRESENTATION_THEMES[theme]
    st.markdown(f"""
    <style>
        .stApp {{
            background-color: {colours.background};
            color: {colours.text};
        }}
        .tracker-item {{
            padding: 10px 14px;
            background-color: {colours.item_background};
            border: 1px solid {colours.border};
            border-radius: 8px;
            margin: 4px 0;
        }}
        .tracker-sub {{
            color: {colours.sub_text};
        }}
        .tracker-done {{
            text-decoration: line-through;
            color: {colours.sub_text};
        }}
        .stButton>button {{
            width: 100%;
        }}
    </style>
    """, unsafe_allow_html=True)


def main():
    """Main application entry point."""
    runner = get_runner()
    session = runner.session
    identity = session.identity

    if not identity.can_access_data:
        render_sign_in_failure(runner)
        return

    settings = session.settings.settings
    apply_theme(settings.theme)

    # Sidebar navigation
    st.sidebar.title(f"{settings.display_name}'s Tracker")
    if session.offline:
        st.sidebar.warning("Offline mode: data is kept in memory only.")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["📋 Tracker", "📊 Report", "⏰ Alarm", "⚙️ Settings"],
        index=0,
    )

    if page == "📋 Tracker":
        if settings.app_mode == AppMode.TASKS:
            render_tasks_page(runner)
        else:
            render_budget_page(runner)
    elif page == "📊 Report":
        render_report_page(runner)
    elif page == "⏰ Alarm":
        render_alarm_page(runner)
    elif page == "⚙️ Settings":
        render_settings_page(runner)


def render_sign_in_failure(runner: SessionRunner):
    identity = runner.session.identity
    st.title("Task & Budget Tracker")
    if identity.failed:
        st.error(f"Sign-in failed: {identity.error_message}")
        if st.button("🔁 Try again"):
            runner.run(runner.session.retry_sign_in())
            st.rerun()
    else:
        st.info("Signing in...")


def render_tasks_page(runner: SessionRunner):
    """Render the task tracker."""
    session = runner.session
    st.title("📋 Tasks")

    with st.form("add_task", clear_on_submit=True):
        col1, col2 = st.columns([5, 1])
        with col1:
            text = st.text_input("New task", placeholder="New task...", label_visibility="collapsed")
        with col2:
            submitted = st.form_submit_button("Add", type="primary")
    if submitted:
        if not runner.run(session.gateway.add_task(text)):
            rejection = session.gateway.last_rejection
            st.error(rejection.first_message if rejection else "Could not add the task.")

    voice = session.voice
    if voice.supported:
        if st.button("🎤 Add by voice"):
            with st.spinner("Listening..."):
                runner.run(voice.start_listening())
            if voice.error_message:
                st.error(voice.error_message)
            elif voice.last_transcript:
                st.success(f"Added: {voice.last_transcript}")
    else:
        st.caption(voice.error_message)

    render_task_list(runner)


@st.fragment(run_every="2s")
def render_task_list(runner: SessionRunner):
    session = runner.session
    channel = session.tasks
    if channel.stale:
        st.warning("Live updates stopped; showing the last known tasks.")
    if not channel.loaded and not channel.stale:
        st.info("Loading tasks...")
        return
    if not channel.items:
        st.markdown(
            '<p class="tracker-sub">Add a new task or view your progress in the report.</p>',
            unsafe_allow_html=True,
        )
        return

    for task in channel.items:
        col1, col2, col3 = st.columns([1, 8, 1])
        with col1:
            if st.button("✅" if task.completed else "⬜", key=f"toggle-{task.id}"):
                runner.run(session.gateway.toggle_task(task.id))
        with col2:
            st.markdown(task_row_html(task), unsafe_allow_html=True)
        with col3:
            if st.button("🗑️", key=f"delete-{task.id}"):
                runner.run(session.gateway.delete_task(task.id))


def render_budget_page(runner: SessionRunner):
    """Render the budget tracker."""
    session = runner.session
    st.title("💰 Budget")

    with st.form("add_transaction", clear_on_submit=False):
        col1, col2 = st.columns(2)
        with col1:
            description = st.text_input("Description *")
            vendor = st.text_input("Vendor / source", help="Leave empty for Uncategorized")
        with col2:
            amount = st.number_input("Amount *", min_value=0.0, step=0.01, format="%.2f")
            transaction_type = st.radio(
                "Type",
                options=list(TransactionType),
                format_func=lambda t: t.value.title(),
                horizontal=True,
                index=1,
            )
        submitted = st.form_submit_button("Add Transaction", type="primary")
    if submitted:
        accepted = runner.run(session.gateway.add_transaction(
            description,
            Decimal(str(amount)),
            vendor,
            transaction_type,
        ))
        if not accepted:
            rejection = session.gateway.last_rejection
            st.error(rejection.first_message if rejection else "Could not save the transaction.")

    render_ledger(runner)


@st.fragment(run_every="2s")
def render_ledger(runner: SessionRunner):
    session = runner.session
    budget = session.views.report.budget

    col1, col2, col3 = st.columns(3)
    col1.metric("Total Income", f"${budget.total_income:,.2f}")
    col2.metric("Total Expenses", f"${budget.total_expenses:,.2f}")
    col3.metric("Balance", f"${budget.balance:,.2f}")

    channel = session.transactions
    if channel.stale:
        st.warning("Live updates stopped; showing the last known transactions.")
    if not channel.items:
        st.info("No transactions yet.")
        return

    st.markdown("---")
    for transaction in channel.items:
        st.markdown(transaction_row_html(transaction), unsafe_allow_html=True)


@st.fragment(run_every="2s")
def render_report_page(runner: SessionRunner):
    """Render the activity report."""
    report = runner.session.views.report
    st.title("📊 Activity Report")

    st.markdown("### Profile")
    st.markdown(f"**Name:** {report.display_name}")
    st.markdown(f"**Reminder Email:** {report.email_label}")

    st.markdown("### Task Summary")
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Total Tasks", report.tasks.total)
    col2.metric("Completed", report.tasks.completed)
    col3.metric("Pending", report.tasks.pending)
    col4.metric("Completion Rate", f"{report.tasks.completion_rate}%")

    st.markdown("### Budget Summary")
    col1, col2, col3 = st.columns(3)
    col1.metric("Total Income", f"${report.budget.total_income:,.2f}")
    col2.metric("Total Expenses", f"${report.budget.total_expenses:,.2f}")
    col3.metric("Net Balance", f"${report.budget.balance:,.2f}")

    st.markdown("### Spending by Vendor")
    if not report.spending_by_vendor:
        st.info("No expenses recorded yet.")
    for group in report.spending_by_vendor:
        st.markdown(f"**{group.vendor}** ${group.amount:,.2f}")
        st.progress(min(float(group.percentage) / 100, 1.0))


def render_alarm_page(runner: SessionRunner):
    """Render ringtone preview and alarm controls."""
    alarm = runner.session.alarm
    st.title("⏰ Alarm")

    names = alarm.pattern_names
    default = get_settings().audio.default_ringtone
    ringtone = st.selectbox(
        "Ringtone",
        options=names,
        index=names.index(default) if default in names else 0,
    )
    repeat = st.checkbox("Repeat until stopped")

    col1, col2 = st.columns(2)
    with col1:
        if st.button("▶️ Play", type="primary"):
            runner.alarm_armed = repeat
            started = runner.run(alarm.play(
                ringtone,
                repeat_while=(lambda: runner.alarm_armed) if repeat else None,
            ))
            if not started:
                st.warning("Nothing to play, or no audio output is available.")
    with col2:
        if st.button("⏹️ Stop"):
            runner.alarm_armed = False
            runner.call(alarm.stop)

    if alarm.is_playing:
        st.caption(f"Playing: {alarm.current_pattern}")


def render_settings_page(runner: SessionRunner):
    """Render profile, mode and theme settings."""
    session = runner.session
    settings = session.settings.settings
    st.title("⚙️ Settings")

    st.markdown("### App Mode")
    col1, col2 = st.columns(2)
    with col1:
        if st.button("Task Tracker", type="primary" if settings.app_mode == AppMode.TASKS else "secondary"):
            runner.run(session.settings.save(SettingsUpdate(app_mode=AppMode.TASKS)))
            st.rerun()
    with col2:
        if st.button("Budget Tracker", type="primary" if settings.app_mode == AppMode.BUDGET else "secondary"):
            runner.run(session.settings.save(SettingsUpdate(app_mode=AppMode.BUDGET)))
            st.rerun()

    st.markdown("### Theme")
    col1, col2 = st.columns(2)
    with col1:
        if st.button("☀️ Light", type="primary" if settings.theme == Theme.LIGHT else "secondary"):
            runner.run(session.settings.save(SettingsUpdate(theme=Theme.LIGHT)))
            st.rerun()
    with col2:
        if st.button("🌙 Dark", type="primary" if settings.theme == Theme.DARK else "secondary"):
            runner.run(session.settings.save(SettingsUpdate(theme=Theme.DARK)))
            st.rerun()

    st.markdown("### Profile")
    with st.form("profile"):
        display_name = st.text_input("Display name", value=settings.display_name)
        email = st.text_input("Reminder email", value=settings.email)
        if st.form_submit_button("Save Profile", type="primary"):
            saved = runner.run(session.settings.save(
                SettingsUpdate(display_name=display_name, email=email)
            ))
            if saved:
                st.success("Profile saved.")
            else:
                st.warning("Saved locally, but the change could not be synced.")

    st.markdown("---")
    st.markdown("### Connection Status")
    status = validate_all_settings()
    for name in ("firebase", "voice", "audio", "app"):
        if status.get(name, False):
            st.success(f"✅ {name.title()} settings loaded")
        else:
            st.error(f"❌ {name.title()} - {status.get(f'{name}_error', 'Not configured')}")

    with st.expander("Recent problems"):
        failures = session.audit.failures(limit=20)
        if not failures:
            st.markdown("None.")
        for event in failures:
            st.markdown(failure_line(event))


if __name__ == "__main__":
    main()
