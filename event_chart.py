"""
event_chart.py — chart planning & drawing
-----------------------------------------
Two layers:

1) plan_chart(dataset, selected) is pure: it resolves the event, builds the
   scales (nice bounds, symmetric y around zero), smooths each series and
   assigns colors. The result is a ChartPlan, i.e. plain render instructions.
2) draw_chart(plan) / legend_ui(plan) apply a plan to a Plotly figure and to
   the legend container. Every call is a full redraw.
"""

from __future__ import annotations

import html
import logging
import math
from dataclasses import dataclass
from typing import Optional

import numpy as np
import plotly.graph_objects as go
from shiny import ui

from event_data import Dataset, Event, dataset_frame
from settings import (
    ALL_EVENTS,
    EVENT_LINE_LABEL,
    FIG_HEIGHT,
    FIG_WIDTH,
    FLAT_Y_HALF_SPAN,
    LINE_OPACITY,
    MARGIN,
    MARKER_OPACITY,
    MARKER_RADIUS,
    NO_DATA_TEXT,
    PALETTE,
    PLOT_HEIGHT,
    PLOT_WIDTH,
    RANK_ORDER,
    TICK_COUNT,
    UNKNOWN_COLOR,
    X_AXIS_TITLE,
    Y_AXIS_TITLE,
    Y_PADDING,
)

logger = logging.getLogger(__name__)

# Points sampled per segment of the smoothed line
CURVE_SAMPLES = 12

_E10, _E5, _E2 = math.sqrt(50), math.sqrt(10), math.sqrt(2)


# ╔══════════════════════════════════════════════════════════════════════════╗
# ║  Scales                                                                  ║
# ╚══════════════════════════════════════════════════════════════════════════╝
def _tick_range(lo: float, hi: float, count: int):
    """(i1, i2, inc) so ticks are i*inc (inc > 0) or i/-inc (inc < 0)."""
    step = (hi - lo) / max(0, count)
    power = math.floor(math.log10(step))
    error = step / 10 ** power
    factor = 10 if error >= _E10 else 5 if error >= _E5 else 2 if error >= _E2 else 1
    if power < 0:
        inc = 10 ** -power / factor
        i1, i2 = round(lo * inc), round(hi * inc)
        if i1 / inc < lo:
            i1 += 1
        if i2 / inc > hi:
            i2 -= 1
        inc = -inc
    else:
        inc = 10 ** power * factor
        i1, i2 = round(lo / inc), round(hi / inc)
        if i1 * inc < lo:
            i1 += 1
        if i2 * inc > hi:
            i2 -= 1
    return i1, i2, inc


def tick_increment(lo: float, hi: float, count: int = TICK_COUNT) -> float:
    if hi <= lo:
        return 0.0
    return _tick_range(lo, hi, count)[2]


def ticks(lo: float, hi: float, count: int = TICK_COUNT) -> tuple[float, ...]:
    """Round tick values inside [lo, hi]."""
    if hi < lo:
        lo, hi = hi, lo
    if hi == lo:
        return (lo,)
    i1, i2, inc = _tick_range(lo, hi, count)
    if inc > 0:
        return tuple(float(i * inc) for i in range(i1, i2 + 1))
    return tuple(float(i / -inc) for i in range(i1, i2 + 1))


def nice(lo: float, hi: float, count: int = TICK_COUNT) -> tuple[float, float]:
    """
    Extend [lo, hi] outwards to round tick values.
    Re-runs until the tick step stops changing (at most 10 passes).
    """
    start, stop = (lo, hi) if lo <= hi else (hi, lo)
    prestep = None
    for _ in range(10):
        step = tick_increment(start, stop, count)
        if step == prestep:
            return start, stop
        if step > 0:
            start = math.floor(start / step) * step
            stop = math.ceil(stop / step) * step
        elif step < 0:
            start = math.ceil(start * step) / step
            stop = math.floor(stop * step) / step
        else:
            break
        prestep = step
    return start, stop


@dataclass(frozen=True)
class LinearScale:
    """Maps a data domain linearly onto a pixel range."""
    domain: tuple[float, float]
    pixels: tuple[float, float]

    def __call__(self, value: float) -> float:
        d0, d1 = self.domain
        r0, r1 = self.pixels
        if d1 == d0:
            return (r0 + r1) / 2
        return r0 + (value - d0) / (d1 - d0) * (r1 - r0)

    def ticks(self, count: int = TICK_COUNT) -> tuple[float, ...]:
        return ticks(*self.domain, count)


def x_scale_for(days) -> LinearScale:
    lo, hi = float(min(days)), float(max(days))
    if lo == hi:
        lo, hi = lo - 1, hi + 1
    return LinearScale(domain=nice(lo, hi), pixels=(0.0, float(PLOT_WIDTH)))


def y_scale_for(returns) -> LinearScale:
    """Symmetric around zero: [-(1+pad)·max|r|, +(1+pad)·max|r|], then niced."""
    max_abs = float(np.max(np.abs(np.asarray(returns, dtype=float))))
    domain_max = max_abs * (1 + Y_PADDING) if max_abs > 0 else FLAT_Y_HALF_SPAN
    return LinearScale(domain=nice(-domain_max, domain_max), pixels=(float(PLOT_HEIGHT), 0.0))


# ── Colors ──────────────────────────────────────────────────────────────────
def rank_color(label: str) -> str:
    """Color by position in the canonical rank order."""
    try:
        return PALETTE[RANK_ORDER.index(label)]
    except ValueError:
        logger.warning("Unknown rank group %r; drawing it in gray", label)
        return UNKNOWN_COLOR


# ── Monotone smoothing ──────────────────────────────────────────────────────
def _interior_tangents(h: np.ndarray, s: np.ndarray) -> np.ndarray:
    # Steffen: zero at local extrema, otherwise capped so the curve cannot overshoot
    h0, h1, s0, s1 = h[:-1], h[1:], s[:-1], s[1:]
    hsum = h0 + h1
    p = np.divide(s0 * h1 + s1 * h0, hsum, out=np.zeros_like(hsum), where=hsum != 0)
    sign0 = np.where(s0 < 0, -1.0, 1.0)
    sign1 = np.where(s1 < 0, -1.0, 1.0)
    return (sign0 + sign1) * np.minimum(np.minimum(np.abs(s0), np.abs(s1)), 0.5 * np.abs(p))


def monotone_curve(xs, ys, samples: int = CURVE_SAMPLES) -> tuple[np.ndarray, np.ndarray]:
    """
    Smooth a polyline with monotone cubic interpolation in x.
    Each segment stays between its two endpoints' y values; the original
    points are part of the output. Segments with equal x stay straight.
    """
    x = np.asarray(xs, dtype=float)
    y = np.asarray(ys, dtype=float)
    if len(x) < 3:
        return x, y

    h = np.diff(x)
    s = np.divide(np.diff(y), h, out=np.zeros_like(h), where=h != 0)
    t = np.empty(len(x))
    t[1:-1] = _interior_tangents(h, s)
    t[0] = (3 * s[0] - t[1]) / 2 if h[0] else t[1]
    t[-1] = (3 * s[-1] - t[-2]) / 2 if h[-1] else t[-2]

    u = np.linspace(0.0, 1.0, samples + 1)[1:]
    h00 = 2 * u**3 - 3 * u**2 + 1
    h10 = u**3 - 2 * u**2 + u
    h01 = -2 * u**3 + 3 * u**2
    h11 = u**3 - u**2

    out_x, out_y = [x[:1]], [y[:1]]
    for i in range(len(h)):
        if h[i] == 0:
            out_x.append(x[i + 1:i + 2])
            out_y.append(y[i + 1:i + 2])
            continue
        out_x.append(x[i] + u * h[i])
        out_y.append(h00 * y[i] + h10 * h[i] * t[i] + h01 * y[i + 1] + h11 * h[i] * t[i + 1])
    return np.concatenate(out_x), np.concatenate(out_y)


# ╔══════════════════════════════════════════════════════════════════════════╗
# ║  Render instructions                                                     ║
# ╚══════════════════════════════════════════════════════════════════════════╝
@dataclass(frozen=True)
class LinePlan:
    label: str
    color: str
    points: tuple[tuple[int, float], ...]
    curve_x: tuple[float, ...]
    curve_y: tuple[float, ...]


@dataclass(frozen=True)
class LegendRow:
    label: str
    color: str


@dataclass(frozen=True)
class ChartPlan:
    title: Optional[str] = None
    x_scale: Optional[LinearScale] = None
    y_scale: Optional[LinearScale] = None
    x_ticks: tuple[float, ...] = ()
    y_ticks: tuple[float, ...] = ()
    lines: tuple[LinePlan, ...] = ()
    legend: tuple[LegendRow, ...] = ()
    placeholder: Optional[str] = None
    event: Optional[Event] = None

    @property
    def is_empty(self) -> bool:
        return self.placeholder is not None


def resolve_event(ds: Dataset, selected: str) -> Event | None:
    """
    'all' falls back to the first event; events are not aggregated.
    Anything else must match an event id.
    """
    if selected == ALL_EVENTS:
        return ds.events[0] if ds.events else None
    return ds.find(selected)


def plan_chart(ds: Dataset, selected: str) -> ChartPlan:
    """Pure: (dataset, selected event id) → ChartPlan."""
    event = resolve_event(ds, selected)
    if event is None or not event.series:
        logger.debug("No event resolved for %r", selected)
        return ChartPlan(placeholder=NO_DATA_TEXT)

    df = dataset_frame(event)
    if df.empty:
        logger.debug("Event %r has no data points", event.id)
        return ChartPlan(placeholder=NO_DATA_TEXT, event=event)

    xs = x_scale_for(df["day"])
    ys = y_scale_for(df["cumulative_return"])

    lines = []
    for s in event.series:
        color = rank_color(s.name)
        cx, cy = monotone_curve([p[0] for p in s.points], [p[1] for p in s.points])
        lines.append(LinePlan(
            label=s.name,
            color=color,
            points=s.points,
            curve_x=tuple(float(v) for v in cx),
            curve_y=tuple(float(v) for v in cy),
        ))

    logger.debug(
        "Planned %r: x=%s y=%s, %d lines", event.id, xs.domain, ys.domain, len(lines)
    )
    return ChartPlan(
        title=event.name,
        x_scale=xs,
        y_scale=ys,
        # day offsets are whole trading days
        x_ticks=tuple(t for t in xs.ticks() if float(t).is_integer()),
        y_ticks=ys.ticks(),
        lines=tuple(lines),
        legend=tuple(LegendRow(label=ln.label, color=ln.color) for ln in lines),
        event=event,
    )


# ╔══════════════════════════════════════════════════════════════════════════╗
# ║  Drawing                                                                 ║
# ╚══════════════════════════════════════════════════════════════════════════╝
def _fmt_tick(v: float) -> str:
    return f"{v:g}"


def _base_figure() -> go.Figure:
    fig = go.Figure()
    fig.update_layout(
        template="plotly_white",
        width=FIG_WIDTH,
        height=FIG_HEIGHT,
        autosize=False,
        margin=dict(MARGIN, pad=0),
        showlegend=False,
        hovermode="closest",
        hoverlabel=dict(bgcolor="white", font_size=12, align="left"),
        dragmode=False,
    )
    return fig


def draw_chart(plan: ChartPlan) -> go.Figure:
    """Apply a ChartPlan to a fresh Plotly figure."""
    fig = _base_figure()

    if plan.is_empty:
        fig.add_annotation(
            text=plan.placeholder,
            x=0.5, y=0.5, xref="paper", yref="paper",
            showarrow=False, font=dict(size=14)
        )
        fig.update_xaxes(visible=False)
        fig.update_yaxes(visible=False)
        return fig

    # Smoothed line first, markers on top; only markers carry the tooltip
    for ln in plan.lines:
        fig.add_trace(go.Scatter(
            x=ln.curve_x, y=ln.curve_y, mode="lines", name=html.escape(ln.label),
            line=dict(color=ln.color, width=2),
            opacity=LINE_OPACITY, hoverinfo="skip",
        ))
        fig.add_trace(go.Scatter(
            x=[p[0] for p in ln.points], y=[p[1] for p in ln.points],
            mode="markers", name=html.escape(ln.label),
            marker=dict(color=ln.color, size=MARKER_RADIUS * 2),
            opacity=MARKER_OPACITY,
            hovertemplate=(
                "<b>%{fullData.name}</b><br>"
                "Days from event: %{x}<br>"
                "Cumulative return: %{y:.2f}%<extra></extra>"
            ),
        ))

    # Event-day vertical line at 0
    fig.add_vline(x=0, line_dash="dash", line_color="black", opacity=0.6)
    fig.add_annotation(
        text=f"<b>{EVENT_LINE_LABEL}</b>",
        x=0, y=1, xref="x", yref="paper",
        yanchor="bottom", showarrow=False, yshift=4,
    )

    fig.update_xaxes(
        range=list(plan.x_scale.domain),
        tickvals=list(plan.x_ticks),
        ticktext=[str(int(v)) for v in plan.x_ticks],
        showgrid=True, zeroline=False,
        showline=True, linecolor="black", ticks="outside",
        title_text=X_AXIS_TITLE,
        fixedrange=True,
    )
    fig.update_yaxes(
        range=list(plan.y_scale.domain),
        tickvals=list(plan.y_ticks),
        ticktext=[f"{_fmt_tick(v)}%" for v in plan.y_ticks],
        showgrid=True, zeroline=False,
        showline=True, linecolor="black", ticks="outside",
        title_text=Y_AXIS_TITLE,
        fixedrange=True,
    )
    fig.update_layout(
        title=dict(
            text=f"<b>{html.escape(plan.title)}</b>",
            x=0.5, xanchor="center",
            yref="paper", y=1, yanchor="bottom",
            pad=dict(b=22), font=dict(size=18),
        ),
    )
    return fig


def legend_ui(plan: ChartPlan):
    """One row per series: color swatch + rank-group label."""
    return ui.div(
        *[
            ui.div(
                ui.div(class_="legend-color", style=f"background-color: {row.color};"),
                ui.div(row.label, class_="legend-label"),
                class_="legend-item",
            )
            for row in plan.legend
        ],
        class_="legend",
    )


def summarize(plan: ChartPlan) -> str:
    """Human-friendly summary of the current chart"""
    if plan.is_empty:
        return plan.placeholder
    df = dataset_frame(plan.event)
    return (
        f"{plan.title} | Series: {len(plan.lines)} • "
        f"Points: {len(df):,} • "
        f"Days: {int(df['day'].min())} to {int(df['day'].max())}"
    )
