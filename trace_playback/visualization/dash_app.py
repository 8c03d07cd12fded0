"""Interactive Dash player for recorded traces.

Run with:
    python -m trace_playback.visualization.dash_app

Opens at http://127.0.0.1:8050 (``PORT`` overrides the port).

The page holds one :class:`PlaybackController` driven by a
:class:`ManualScheduler`; a ``dcc.Interval`` ticks every ``TICK_MS`` while
playing and advances the scheduler's clock by the same amount, so the
controller alone decides when the cursor moves.
"""

from __future__ import annotations

import logging
from typing import Any

import plotly.graph_objects as go

import dash
from dash import dcc, html, ctx, dash_table, Input, Output, State, no_update

from trace_playback.builders.registry import RUNNERS, validate
from trace_playback.core.settings import Settings, configure_logging
from trace_playback.core.step import Step, trace_to_frame
from trace_playback.playback.controller import PlaybackController, Speed
from trace_playback.playback.scheduler import ManualScheduler

logger = logging.getLogger(__name__)

TICK_MS = 100

_LAYOUT_DEFAULTS = dict(
    template="plotly_dark",
    paper_bgcolor="#0a0a0f",
    plot_bgcolor="#0a0a0f",
    font=dict(family="Inter, -apple-system, sans-serif", color="#e8eaed"),
    margin=dict(l=20, r=20, t=50, b=20),
    height=520,
    uirevision="stable",
)

_MODES = {
    "fibonacci": ["full", "condensed", "computation-only"],
    "n-queens": ["full", "sampling", "fast-solve"],
}

_settings = Settings.from_env()
_scheduler = ManualScheduler()
_controller = PlaybackController(_scheduler, speed=_settings.default_speed)


# ═══════════════════════════════════════════════════════════════════════
#  Figures
# ═══════════════════════════════════════════════════════════════════════

def _board_figure(step: Step) -> go.Figure:
    board = step.payload["board"]
    n = len(board)
    squares = [[(r + c) % 2 for c in range(n)] for r in range(n)]
    fig = go.Figure(go.Heatmap(
        z=squares, colorscale=[[0, "#1f2937"], [1, "#374151"]],
        showscale=False, hoverinfo="skip",
    ))
    if "row" in step.payload and "col" in step.payload:
        fig.add_shape(
            type="rect",
            x0=step.payload["col"] - 0.5, x1=step.payload["col"] + 0.5,
            y0=step.payload["row"] - 0.5, y1=step.payload["row"] + 0.5,
            line=dict(color="#fbbf24", width=3),
        )
    queens = [(r, c) for r, c in enumerate(board) if c >= 0]
    fig.add_trace(go.Scatter(
        x=[c for _, c in queens], y=[r for r, _ in queens],
        mode="text", text=["♛"] * len(queens),
        textfont=dict(size=max(12, 320 // max(n, 1)), color="#c4b5fd"),
        hoverinfo="skip",
    ))
    fig.update_yaxes(autorange="reversed", scaleanchor="x", showgrid=False)
    fig.update_xaxes(showgrid=False)
    return fig


def _table_figure(step: Step) -> go.Figure:
    payload = step.payload
    if "table" in payload:
        cells, offset = payload["table"], payload.get("table_offset", 0)
    else:
        cells, offset = payload["values"], max(0, payload.get("i", 1) - 1)
    xs = [str(offset + x) for x in range(len(cells))]
    highlight = payload.get("i")
    z = [[1 if offset + x == highlight else 0 for x in range(len(cells))]]
    fig = go.Figure(go.Heatmap(
        z=z, x=xs, text=[[c if len(c) <= 12 else c[:5] + "…" + c[-5:] for c in cells]],
        texttemplate="%{text}", colorscale=[[0, "#1e3a8a"], [1, "#059669"]],
        showscale=False, zmin=0, zmax=1,
    ))
    fig.update_yaxes(visible=False)
    fig.update_layout(height=220)
    return fig


def _step_figure(step: Step | None) -> go.Figure:
    if step is None:
        fig = go.Figure()
    elif "board" in step.payload:
        fig = _board_figure(step)
    elif "table" in step.payload or "values" in step.payload:
        fig = _table_figure(step)
    else:
        fig = go.Figure()
        fig.add_annotation(text=step.description, showarrow=False, font=dict(size=16))
        fig.update_xaxes(visible=False)
        fig.update_yaxes(visible=False)
    height = fig.layout.height or _LAYOUT_DEFAULTS["height"]
    fig.update_layout(**{**_LAYOUT_DEFAULTS, "height": height})
    if step is not None:
        fig.update_layout(title=step.kind)
    return fig


def _status_text() -> str:
    total = len(_controller.trace)
    if not total:
        return "No trace loaded"
    return (f"Step {_controller.cursor + 1} of {total} "
            f"({_controller.progress():.0%}) · {_controller.state.value}")


# ═══════════════════════════════════════════════════════════════════════
#  Dash app
# ═══════════════════════════════════════════════════════════════════════

app = dash.Dash(__name__, title="Trace Playback", suppress_callback_exceptions=True)

app.layout = html.Div([
    # ── Sidebar ──────────────────────────────────────────────────────
    html.Div([
        html.H2("Trace Playback"),
        html.Label("Algorithm"),
        dcc.Dropdown(id="algorithm", options=[{"label": k, "value": k} for k in RUNNERS],
                     value="fibonacci", clearable=False),
        html.Label("N"),
        dcc.Input(id="input-n", type="number", value=20, min=0, step=1),
        html.Label("Mode"),
        dcc.Dropdown(id="input-mode", placeholder="derived from N"),

        html.Div(id="fib-params", children=[
            html.Label("Strategy"),
            dcc.RadioItems(id="input-strategy",
                           options=["tabulated", "iterative", "fast-doubling"],
                           value="tabulated", inline=True),
            html.Label("Detail level"),
            dcc.Slider(id="input-detail", min=0, max=100, step=1, value=50,
                       marks={0: "0", 50: "50", 100: "100"}),
        ]),
        html.Div(id="queens-params", children=[
            html.Label("Max solutions"),
            dcc.Input(id="input-max-solutions", type="number", value=1, min=1, max=100, step=1),
            dcc.RadioItems(id="input-bitmask",
                           options=[{"label": " auto", "value": "auto"},
                                    {"label": " bitmask", "value": "on"},
                                    {"label": " traditional", "value": "off"}],
                           value="auto", inline=True),
        ]),

        html.Button("Generate", id="btn-generate", className="primary", n_clicks=0),
        html.Div(id="input-error", style={"color": "#f87171", "marginTop": "8px"}),

        html.Label("Speed"),
        dcc.RadioItems(id="speed", options=[s.value for s in Speed],
                       value=_settings.default_speed, inline=True),
    ], className="sidebar"),

    # ── Main area ────────────────────────────────────────────────────
    html.Div([
        html.Div([
            html.Button("◀", id="btn-back", n_clicks=0),
            html.Button("Play", id="btn-play", className="primary", n_clicks=0),
            html.Button("Pause", id="btn-pause", n_clicks=0),
            html.Button("▶", id="btn-forward", n_clicks=0),
            html.Button("Reset", id="btn-reset", className="danger", n_clicks=0),
        ], className="control-bar"),
        html.Div(id="status", children="No trace loaded", className="round-badge"),
        html.P(id="step-description"),
        dcc.Graph(id="step-graph", config={"displayModeBar": False}),
        dash_table.DataTable(
            id="trace-table",
            columns=[{"name": c, "id": c} for c in ("index", "kind", "sourceLineRef", "description")],
            data=[],
            page_size=15,
            style_table={"overflowX": "auto"},
            style_cell={"textAlign": "left", "padding": "4px 8px", "fontSize": "0.85em",
                        "maxWidth": "480px", "overflow": "hidden", "textOverflow": "ellipsis"},
        ),
        dcc.Interval(id="tick", interval=TICK_MS, disabled=True),
        dcc.Store(id="trace-version", data=0),
    ], className="main-area"),
])


# ═══════════════════════════════════════════════════════════════════════
#  Callbacks
# ═══════════════════════════════════════════════════════════════════════

@app.callback(
    Output("input-mode", "options"),
    Output("input-mode", "value"),
    Output("fib-params", "style"),
    Output("queens-params", "style"),
    Input("algorithm", "value"),
)
def algorithm_changed(name):
    hide = {"display": "none"}
    return (
        _MODES[name], None,
        {} if name == "fibonacci" else hide,
        {} if name == "n-queens" else hide,
    )


def _whole(value: Any) -> Any:
    # dcc.Input may hand back 20.0 for 20
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _params(name, n, mode, strategy, detail, max_solutions, bitmask) -> dict[str, Any]:
    n, detail, max_solutions = _whole(n), _whole(detail), _whole(max_solutions)
    if name == "fibonacci":
        return {"n": n, "mode": mode, "strategy": strategy, "detail_level": detail}
    use_bitmask = {"on": True, "off": False}.get(bitmask)
    return {"n": n, "mode": mode, "max_solutions": max_solutions, "use_bitmask": use_bitmask}


@app.callback(
    Output("trace-table", "data"),
    Output("input-error", "children"),
    Output("trace-version", "data"),
    Input("btn-generate", "n_clicks"),
    State("algorithm", "value"),
    State("input-n", "value"),
    State("input-mode", "value"),
    State("input-strategy", "value"),
    State("input-detail", "value"),
    State("input-max-solutions", "value"),
    State("input-bitmask", "value"),
    State("trace-version", "data"),
    prevent_initial_call=True,
)
def generate(n_clicks, name, n, mode, strategy, detail, max_solutions, bitmask, version):
    params = _params(name, n, mode, strategy, detail, max_solutions, bitmask)
    result = validate(name, params)
    if not result.valid:
        return no_update, result.error, no_update
    runner = RUNNERS[name]
    trace = runner.generate_trace(runner.make_input(params))
    _controller.load(trace)
    logger.info("generated %s trace with %d steps", name, len(trace))
    return trace_to_frame(trace).to_dict("records"), "", (version or 0) + 1


@app.callback(
    Output("step-graph", "figure"),
    Output("step-description", "children"),
    Output("status", "children"),
    Output("tick", "disabled"),
    Input("btn-back", "n_clicks"),
    Input("btn-play", "n_clicks"),
    Input("btn-pause", "n_clicks"),
    Input("btn-forward", "n_clicks"),
    Input("btn-reset", "n_clicks"),
    Input("tick", "n_intervals"),
    Input("speed", "value"),
    Input("trace-version", "data"),
)
def playback_update(back, play, pause, forward, reset, ticks, speed, version):
    triggered = ctx.triggered_id
    if triggered == "btn-back":
        _controller.step(-1)
    elif triggered == "btn-forward":
        _controller.step(1)
    elif triggered == "btn-play":
        _controller.play()
    elif triggered == "btn-pause":
        _controller.pause()
    elif triggered == "btn-reset":
        _controller.reset()
    elif triggered == "tick":
        _scheduler.advance(TICK_MS)
    elif triggered == "speed" and speed:
        _controller.set_speed(speed)

    step = _controller.current_step()
    return (
        _step_figure(step),
        step.description if step is not None else "",
        _status_text(),
        not _controller.is_playing(),
    )


# ═══════════════════════════════════════════════════════════════════════
#  Entry point
# ═══════════════════════════════════════════════════════════════════════

if __name__ == "__main__":
    configure_logging(_settings.log_level)
    app.run(host="0.0.0.0", debug=False, port=_settings.port)
