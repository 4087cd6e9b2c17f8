import dash_bootstrap_components as dbc
from dash import dcc, html
import plotly.graph_objects as go
import pandas as pd
from typing import List, Sequence

from deepexo_dashboard.utils.constants import PARAMETER_DETAILS
from deepexo_dashboard.utils.schema import ParameterDetail, PredictionCase
from deepexo_dashboard.utils.statistics import DEFAULT_BINS, build_histogram, compute_stats, summarize_case

# Dashboard palette
PRIMARY_COLOR    = "#8ADFFF"
BACKGROUND_COLOR = "#050915"
TEXT_COLOR       = "#ECF5FF"
GRID_COLOR       = "rgba(255,255,255,0.06)"
FILL_COLOR       = "rgba(138, 223, 255, 0.18)"


def _hex_to_rgba(color: str, alpha: float) -> str:
    value = color.lstrip("#")
    if len(value) != 6:
        return FILL_COLOR
    r, g, b = (int(value[i:i + 2], 16) for i in (0, 2, 4))
    return f"rgba({r}, {g}, {b}, {alpha})"


def density_figure(detail: ParameterDetail, samples: Sequence[float], bins: int = DEFAULT_BINS) -> go.Figure:
    """Filled line over the histogram bin centers of one parameter."""
    histogram = build_histogram(samples, bins)
    color = detail.color or PRIMARY_COLOR

    fig = go.Figure()
    if histogram.counts:
        fig.add_trace(go.Scatter(
            x=histogram.labels,
            y=histogram.counts,
            mode="lines",
            name=f"{detail.id} density",
            line=dict(color=color, width=2, shape="spline", smoothing=0.35),
            fill="tozeroy",
            fillcolor=_hex_to_rgba(color, 0.18),
        ))
    fig.update_layout(
        template="plotly_dark",
        plot_bgcolor=BACKGROUND_COLOR,
        paper_bgcolor=BACKGROUND_COLOR,
        font_color=TEXT_COLOR,
        showlegend=False,
        hovermode="x unified",
        margin=dict(l=20, r=20, t=10, b=20),
        height=240,
    )
    fig.update_xaxes(gridcolor=GRID_COLOR, tickangle=0, nticks=6)
    fig.update_yaxes(gridcolor=GRID_COLOR, rangemode="tozero")
    return fig


def parameter_card(detail: ParameterDetail, samples: Sequence[float], bins: int = DEFAULT_BINS) -> dbc.Card:
    """
    Card for one parameter of the selected case:
      - mean in large type, with the unit
      - mean ± std and min / max caption
      - density chart
    """
    stats = compute_stats(samples)
    if stats is None:
        body = [
            html.H6(detail.label, className="text-muted"),
            html.P("No samples returned by API.", className="text-muted small"),
        ]
    else:
        body = [
            html.H6(detail.label, className="text-muted"),
            html.H3([
                f"{stats.mean:.3f}",
                html.Span(f" {detail.unit}", className="small") if detail.unit else None,
            ], style={"color": detail.color or PRIMARY_COLOR}),
            html.Small(
                f"μ ± σ: {stats.mean:.3f} ± {stats.std:.3f} | min/max: {stats.min:.3f} / {stats.max:.3f}",
                className="text-muted",
            ),
            dcc.Graph(figure=density_figure(detail, samples, bins), config={"displayModeBar": False}),
        ]
    return dbc.Card(dbc.CardBody(body), className="h-100")


def parameter_grid(
    case: PredictionCase,
    parameters: Sequence[ParameterDetail] = PARAMETER_DETAILS,
    bins: int = DEFAULT_BINS,
) -> dbc.Row:
    return dbc.Row(
        [
            dbc.Col(parameter_card(detail, case.parameters.get(detail.id, []), bins), xs=12, sm=6, lg=3, className="mb-3")
            for detail in parameters
        ],
        className="gx-2",
    )


def case_tabs(cases: List[PredictionCase]) -> List[dbc.Tab]:
    """Tabs for the case selector; the selector is hidden for single-case responses."""
    return [
        dbc.Tab(label=f"{case.id} ({index + 1})", tab_id=case_tab_id(index))
        for index, case in enumerate(cases)
    ]


def case_tab_id(index: int) -> str:
    return f"case-{index}"


def summary_table(
    case: PredictionCase,
    parameters: Sequence[ParameterDetail] = PARAMETER_DETAILS,
) -> dbc.Table:
    df = summarize_case(case, parameters)
    display = df.drop(columns=["parameter", "unit"]).rename(columns={"label": "Parameter"})
    numeric = display.columns.drop(["Parameter", "count"])
    display[numeric] = display[numeric].map(lambda v: "--" if pd.isna(v) else f"{v:.3f}")
    return dbc.Table.from_dataframe(display, striped=True, bordered=False, hover=True, size="sm", color="dark")
