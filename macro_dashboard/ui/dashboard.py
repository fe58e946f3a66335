"""Streamlit dashboard for macro indicators and the prediction journal.

Tabs:
- Overview: indicator cards, upcoming releases and recent release results
- Rates / Inflation / Risk / Recession: thematic composite charts
- Journal: predictions before a release (memo) and their review afterwards
- Chat: questions about the current data answered by Gemini
"""

import logging
from datetime import date, datetime, timezone

import httpx
import streamlit as st

from macro_dashboard.ai import (
    AiServiceError,
    GeminiClient,
    generate_ai_feedback,
    generate_chat_reply,
    get_or_generate_opinions,
)
from macro_dashboard.config import INDICATOR_CONFIGS, INDICATOR_KEYS, Settings
from macro_dashboard.data import (
    DataCache,
    FredFetcher,
    JournalStore,
    JournalStoreError,
    ReleaseEvent,
    ReleaseScheduleProvider,
)
from macro_dashboard.indicators import (
    DateRange,
    OpinionFreshness,
    build_chat_context,
    compare_snapshots,
    compute_release_results,
    create_data_snapshot,
    format_value,
    get_change,
    get_latest_value,
)
from macro_dashboard.models import (
    CombinedData,
    DataSnapshot,
    JournalEntry,
    PredictionCategory,
    PredictionResult,
    prediction_for_stance,
)
from macro_dashboard.models.journal import PREDICTION_CHOICES
from macro_dashboard.ui.charts import (
    build_indicator_figure,
    build_inflation_figure,
    build_rates_figure,
    build_recession_figure,
    build_risk_figure,
)


logger = logging.getLogger(__name__)

CHART_CONFIG = {"displayModeBar": False}


def load_data(settings: Settings) -> tuple[CombinedData, dict[str, list[str]]]:
    """Refresh from FRED when the cache is stale, then read everything from the cache."""
    try:
        with FredFetcher(settings) as fetcher:
            fetcher.refresh_if_stale()
    except ValueError as e:
        st.warning(f"{e} Showing cached data only.")
    except httpx.HTTPError as e:
        logger.error(f"Refresh failed: {e}")
        st.warning("Could not refresh data from FRED. Showing cached data.")

    cache = DataCache(settings.db_path)
    return cache.get_combined_data(INDICATOR_KEYS), cache.get_release_dates()


def get_ai_client(settings: Settings) -> GeminiClient | None:
    if not settings.has_gemini():
        return None
    return GeminiClient(settings)


# =============================================================================
# OVERVIEW
# =============================================================================

def render_indicator_cards(data: CombinedData, date_range: DateRange) -> None:
    """Latest value, last change and a small chart per indicator."""
    columns = st.columns(3)

    for i, config in enumerate(INDICATOR_CONFIGS):
        series = data.series(config.key)
        latest = get_latest_value(series)

        with columns[i % 3]:
            if latest is None:
                st.metric(config.name, "N/A")
                st.caption(config.description)
                continue

            change = get_change(series)
            delta = None
            if change is not None:
                delta = f"{change.value:+.2f}"
                if change.percent is not None:
                    delta += f" ({change.percent:+.2f}%)"

            st.metric(
                config.name,
                format_value(latest.value, config.unit, config.key),
                delta=delta,
                help=f"{config.description} as of {latest.date}",
            )
            st.plotly_chart(
                build_indicator_figure(series, config, date_range, height=160),
                use_container_width=True,
                config=CHART_CONFIG,
            )


def render_upcoming_releases(provider: ReleaseScheduleProvider, today: date) -> None:
    st.subheader("Upcoming Releases")
    upcoming = provider.upcoming_releases(today)
    if not upcoming:
        st.info("No release calendar cached. Run: macro-fetch --release-dates")
        return

    st.dataframe(
        [
            {
                "Indicator": release.name,
                "Release": release.release_name,
                "Date": release.next_release_date,
                "In days": (date.fromisoformat(release.next_release_date) - today).days,
            }
            for release in upcoming
        ],
        hide_index=True,
        use_container_width=True,
    )


def render_release_results(
    data: CombinedData, release_dates: dict[str, list[str]], today: date
) -> None:
    st.subheader("Recent Release Results")
    results = compute_release_results(data, release_dates, today)
    if not results:
        st.info("No releases since the start of last month.")
        return

    rows = []
    for result in results:
        percent = f"{result.change_percent:+.2f}%" if result.change_percent is not None else "N/A"
        rows.append({
            "Indicator": result.name,
            "Released": result.release_date,
            "Previous": format_value(result.previous_value, result.unit, result.key),
            "Current": format_value(result.current_value, result.unit, result.key),
            "Change": f"{result.change:+.2f} ({percent})",
        })
    st.dataframe(rows, hide_index=True, use_container_width=True)


def render_overview_tab(
    data: CombinedData,
    release_dates: dict[str, list[str]],
    provider: ReleaseScheduleProvider,
    date_range: DateRange,
    today: date,
) -> None:
    render_indicator_cards(data, date_range)
    st.divider()
    col_upcoming, col_results = st.columns(2)
    with col_upcoming:
        render_upcoming_releases(provider, today)
    with col_results:
        render_release_results(data, release_dates, today)


# =============================================================================
# JOURNAL
# =============================================================================

def _opinions_key(event_id: str) -> str:
    return f"opinions-{event_id}"


def render_opinions(
    client: GeminiClient | None,
    event: ReleaseEvent,
    category: PredictionCategory,
    snapshot: DataSnapshot,
    existing: JournalEntry | None,
) -> None:
    """Show bullish/neutral/bearish takes, regenerated only when the data moved."""
    if client is None:
        st.caption("Set GEMINI_API_KEY to get AI opinions.")
        return

    key = _opinions_key(event.event_id)
    cached = st.session_state.get(key)
    if cached is None and existing is not None:
        cached = existing.ai_opinions

    label = "Refresh AI opinions" if cached is not None else "Generate AI opinions"
    if not st.button(label, key=f"generate-{key}"):
        if cached is None:
            return
        opinions = cached
    else:
        try:
            with st.spinner("Generating AI opinions..."):
                opinions, freshness = get_or_generate_opinions(
                    client, event.event_type, category, snapshot, cached
                )
        except AiServiceError as e:
            st.error(f"AI opinions unavailable: {e}")
            return
        if freshness is OpinionFreshness.FRESH:
            st.caption("Data unchanged since the last opinions; reusing them.")
        st.session_state[key] = opinions

    for column, opinion in zip(st.columns(3), opinions.all()):
        with column:
            st.markdown(f"**{opinion.stance.value.title()}: {opinion.title}**")
            st.write(opinion.summary)
            with st.expander("Reasoning"):
                st.write(opinion.reasoning)
                for indicator in opinion.key_indicators:
                    st.caption(indicator)


def render_memo_form(
    store: JournalStore,
    client: GeminiClient | None,
    event: ReleaseEvent,
    snapshot: DataSnapshot,
) -> None:
    """Record or revise the prediction for an upcoming event."""
    existing = store.get_by_event_id(event.event_id)

    categories = list(PredictionCategory)
    category = st.radio(
        "Category",
        categories,
        index=categories.index(existing.category) if existing else 0,
        format_func=lambda c: "Rate decision" if c is PredictionCategory.RATE else "S&P 500",
        horizontal=True,
        key=f"category-{event.event_id}",
    )

    render_opinions(client, event, category, snapshot, existing)

    opinions = st.session_state.get(_opinions_key(event.event_id))
    if opinions is None and existing is not None:
        opinions = existing.ai_opinions

    used_opinion = None
    choices = PREDICTION_CHOICES[category]
    default = choices.index(existing.prediction) if existing and existing.prediction in choices else 1
    if opinions is not None:
        labels = {"": "None"} | {o.id: f"{o.stance.value}: {o.title}" for o in opinions.all()}
        used_opinion = st.selectbox(
            "Based on AI opinion",
            list(labels),
            format_func=labels.get,
            key=f"used-{event.event_id}",
        ) or None
        chosen = opinions.find(used_opinion) if used_opinion else None
        if chosen is not None:
            default = choices.index(prediction_for_stance(category, chosen.stance))

    prediction = st.radio(
        "Prediction", choices, index=default, horizontal=True, key=f"prediction-{event.event_id}"
    )
    memo = st.text_area(
        "Memo", value=existing.memo if existing else "", key=f"memo-{event.event_id}"
    )

    if st.button("Save prediction", key=f"save-{event.event_id}"):
        entry = JournalEntry(
            event_id=event.event_id,
            event_type=event.event_type,
            event_date=event.event_date,
            event_title=event.event_title,
            snapshot=snapshot,
            category=category,
            prediction=prediction,
            memo=memo,
            ai_opinions=opinions,
            ai_opinions_generated_at=opinions.generated_at if opinions else None,
            used_ai_opinion=used_opinion,
        )
        saved = store.save_for_event(entry)
        st.success(f"Saved prediction for {saved.event_title}")


def render_review(
    store: JournalStore,
    client: GeminiClient | None,
    entry: JournalEntry,
    snapshot: DataSnapshot,
) -> None:
    """Compare an entry's snapshot with today's data and record the outcome."""
    st.markdown(f"Predicted **{entry.prediction}** on {entry.created_at[:10]}")
    if entry.memo:
        st.caption(entry.memo)

    st.dataframe(
        [
            {
                "Indicator": row.label,
                "At prediction": round(row.before, 2),
                "Now": round(row.after, 2),
                "Change": f"{row.change:+.2f} ({row.change_percent:+.2f}%)",
            }
            for row in compare_snapshots(entry.snapshot, snapshot)
        ],
        hide_index=True,
        use_container_width=True,
    )

    if entry.result is not None:
        verdict = "Correct" if entry.result.is_correct else "Incorrect"
        st.markdown(f"Actual: **{entry.result.actual}** ({verdict})")
        if entry.result.ai_feedback:
            with st.expander("AI feedback"):
                st.write(entry.result.ai_feedback)
        return

    actual = st.radio(
        "Actual result", PREDICTION_CHOICES[entry.category], horizontal=True, key=f"actual-{entry.id}"
    )
    if not st.button("Record result", key=f"record-{entry.id}"):
        return

    feedback = None
    feedback_at = None
    if client is not None:
        try:
            with st.spinner("Generating feedback..."):
                feedback = generate_ai_feedback(client, entry, actual, snapshot)
            feedback_at = datetime.now(timezone.utc).isoformat()
        except AiServiceError as e:
            st.warning(f"Result saved without AI feedback: {e}")

    store.record_result(
        entry.id,
        PredictionResult(
            actual=actual,
            snapshot_after=snapshot,
            is_correct=actual == entry.prediction,
            ai_feedback=feedback,
            feedback_generated_at=feedback_at,
        ),
    )
    st.rerun()


def render_journal_tab(
    store: JournalStore,
    client: GeminiClient | None,
    provider: ReleaseScheduleProvider,
    snapshot: DataSnapshot,
    today: date,
) -> None:
    try:
        entries = store.list_entries()
    except JournalStoreError as e:
        st.error(str(e))
        return

    st.subheader("Upcoming Events")
    events = provider.upcoming_events(today)
    if not events:
        st.info("No upcoming FOMC, CPI or payroll releases in the calendar.")
    for event in events:
        with st.container(border=True):
            st.markdown(f"**{event.event_title}** ({event.event_date})")
            render_memo_form(store, client, event, snapshot)

    st.subheader("Review")
    past = [e for e in entries if e.event_date < today.isoformat()]
    if not past:
        st.info("No past predictions to review yet.")
    for entry in sorted(past, key=lambda e: e.event_date, reverse=True):
        with st.container(border=True):
            st.markdown(f"**{entry.event_title}** ({entry.event_date})")
            render_review(store, client, entry, snapshot)


# =============================================================================
# CHAT
# =============================================================================

def render_chat_tab(client: GeminiClient | None, data: CombinedData) -> None:
    if client is None:
        st.info("Set GEMINI_API_KEY to chat about the data.")
        return

    messages = st.session_state.setdefault("chat_messages", [])
    for message in messages:
        with st.chat_message(message["role"]):
            st.markdown(message["content"])

    question = st.chat_input("Ask about the current macro picture")
    if not question:
        return

    messages.append({"role": "user", "content": question})
    with st.chat_message("user"):
        st.markdown(question)

    with st.chat_message("assistant"):
        try:
            with st.spinner("Thinking..."):
                reply = generate_chat_reply(client, messages, build_chat_context(data))
        except AiServiceError as e:
            messages.pop()
            st.error(str(e))
            return
        st.markdown(reply)
    messages.append({"role": "assistant", "content": reply})


def main() -> None:
    """Main dashboard entry point."""
    st.set_page_config(page_title="Macro Dashboard", layout="wide")
    st.title("Macro Dashboard")

    settings = Settings()
    today = date.today()

    col_range, col_status = st.columns([1, 4])
    with col_range:
        date_range = st.selectbox(
            "Date range",
            list(DateRange),
            index=list(DateRange).index(DateRange.ONE_YEAR),
            format_func=lambda r: r.value,
            label_visibility="collapsed",
        )

    with st.spinner("Loading..."):
        data, release_dates = load_data(settings)

    with col_status:
        st.caption(f"Data: FRED | Last updated: {data.last_updated or 'never'}")

    if not any(data.indicators.values()):
        st.error("No data available. Set FRED_API_KEY and run: macro-fetch")
        return

    provider = ReleaseScheduleProvider(release_dates)
    snapshot = create_data_snapshot(data)
    store = JournalStore(settings.journal_path)
    client = get_ai_client(settings)

    tabs = st.tabs(["Overview", "Rates", "Inflation", "Risk", "Recession", "Journal", "Chat"])

    with tabs[0]:
        render_overview_tab(data, release_dates, provider, date_range, today)

    for tab, build in zip(
        tabs[1:5],
        (build_rates_figure, build_inflation_figure, build_risk_figure, build_recession_figure),
    ):
        with tab:
            st.plotly_chart(build(data, date_range), use_container_width=True, config=CHART_CONFIG)

    with tabs[5]:
        render_journal_tab(store, client, provider, snapshot, today)

    with tabs[6]:
        render_chat_tab(client, data)


if __name__ == "__main__":
    main()
