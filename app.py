"""
app.py — Event Return Explorer
------------------------------
Run with:
    cd /path/to/your/project
    shiny run --reload app.py

What this app does (high level):
1) Loads the preprocessed event-study JSON once (outputs/event_study_data.json,
   or whatever EVENT_DATA_PATH points to).
2) Lets you pick an event from a dropdown; "All events" currently shows the
   first event in the file.
3) Draws cumulative returns (%) by rank group around the event date: one
   smoothed line per group, hoverable points, a dashed "Event Start" line
   at day 0, and a legend. You can also download the plotted points as CSV.

If the data file is missing or broken the chart area shows an error message
instead; rerun the preprocessing step and restart the app.
"""

import logging
import re

from shiny import App, ui, render, reactive
from shinywidgets import output_widget, render_widget

from errors import DatasetLoadError
from event_chart import draw_chart, legend_ui, plan_chart, summarize
from event_data import dataset_frame, load_dataset, selector_options
from event_state import Loading, Ready, load_failed, load_succeeded, selection_changed
from settings import ALL_EVENTS, ALL_EVENTS_LABEL, DATA_PATH, FIG_HEIGHT, configure_logging

configure_logging()
logger = logging.getLogger(__name__)

# ╔══════════════════════════════════════════════════════════════════════════╗
# ║  Load dataset (once, shared read-only by every session)                  ║
# ╚══════════════════════════════════════════════════════════════════════════╝
try:
    INITIAL_STATE = load_succeeded(Loading(), load_dataset(DATA_PATH))
except DatasetLoadError:
    logger.exception("Could not load event data from %s", DATA_PATH)
    INITIAL_STATE = load_failed(Loading())


def _event_choices(state) -> dict:
    """Static 'All events' entry followed by one option per event."""
    if not isinstance(state, Ready):
        return {}
    return {ALL_EVENTS: ALL_EVENTS_LABEL, **selector_options(state.dataset)}


# ╔══════════════════════════════════════════════════════════════════════════╗
# ║  UI Layout                                                               ║
# ╚══════════════════════════════════════════════════════════════════════════╝
head_links = ui.head_content(
    ui.tags.style("""
      .legend { display:flex; flex-wrap:wrap; gap:.5rem 1.25rem; margin-top:.5rem; }
      .legend-item { display:flex; align-items:center; gap:.4rem; }
      .legend-color { width:18px; height:12px; border-radius:2px; }
      .legend-label { font-size:.9rem; }
      .load-error { color:red; }
    """),
)

if isinstance(INITIAL_STATE, Ready):
    chart_area = ui.div(
        output_widget("chart", height=f"{FIG_HEIGHT}px"),
        ui.output_ui("legend"),
    )
else:
    chart_area = ui.p(INITIAL_STATE.message, class_="load-error")

app_ui = ui.page_fluid(
    head_links,
    ui.h2("Event Return Explorer", class_="fw-bold"),
    ui.p("Cumulative returns by rank group around corporate events."),
    ui.layout_sidebar(
        ui.sidebar(
            ui.input_select(
                "event", "Event", _event_choices(INITIAL_STATE),
                selected=ALL_EVENTS if isinstance(INITIAL_STATE, Ready) else None,
            ),
            ui.download_button("dl", "Download points (CSV)"),
            ui.hr(),
            ui.help_text("Hover a point for its day offset and cumulative return."),
            ui.hr(),
            ui.help_text("Educational use only — not financial advice."),
        ),
        ui.div(
            ui.output_text("summary"),
            chart_area,
        ),
    ),
)


# ╔══════════════════════════════════════════════════════════════════════════╗
# ║  Server logic                                                            ║
# ╚══════════════════════════════════════════════════════════════════════════╝
def server(input, output, session):
    state = reactive.value(INITIAL_STATE)

    @reactive.effect
    @reactive.event(input.event)
    def _on_select():
        if isinstance(state.get(), Ready):
            state.set(selection_changed(state.get(), input.event()))

    @reactive.calc
    def plan():
        st = state.get()
        if not isinstance(st, Ready):
            return None
        return plan_chart(st.dataset, st.selected)

    @render.text
    def summary():
        p = plan()
        if p is None:
            return f"Source: {DATA_PATH.name}"
        return f"{summarize(p)} • Source: {DATA_PATH.name}"

    @render_widget
    def chart():
        p = plan()
        if p is None:
            return None
        return draw_chart(p)

    @render.ui
    def legend():
        p = plan()
        if p is None:
            return None
        return legend_ui(p)

    def _dl_name() -> str:
        st = state.get()
        sel = st.selected if isinstance(st, Ready) else "none"
        return f"event_{re.sub(r'[^A-Za-z0-9._-]', '', sel) or 'points'}.csv"

    @render.download(filename=_dl_name)
    def dl():
        """Download the plotted (series, day, cumulative_return) rows as CSV."""
        p = plan()
        if p is None or p.is_empty:
            # Returning an empty payload avoids a broken download
            yield b""
            return
        yield dataset_frame(p.event).to_csv(index=False).encode()


app = App(app_ui, server)
