import base64
import datetime as dt
import json
import time
import traceback

import dash_bootstrap_components as dbc
from dash import Dash, Input, Output, State, ctx, dcc, html, no_update
from dotenv import load_dotenv
import requests

import deepexo_dashboard.components.charts as charts
import deepexo_dashboard.utils.distributions as dist
from deepexo_dashboard.core.config import get_settings
from deepexo_dashboard.utils.api_client import JSON_ENDPOINTS, APIClient, extract_error_message
from deepexo_dashboard.utils.constants import (
    DEFAULT_GAUSSIAN_PAYLOAD,
    PARAMETER_DETAILS,
    PARAMETER_KEYS,
    format_output_display,
)
from deepexo_dashboard.utils.schema import PredictionCase

# ---------------------------------------------------
# Load environment variables, then settings and API client
# ---------------------------------------------------
load_dotenv()
settings = get_settings()
client = APIClient(base_url=settings.request_base_url, timeout=settings.REQUEST_TIMEOUT)
print(f"[INFO] Requests go to {settings.request_base_url} (display: {settings.display_base_url})")


# ---------------------------------------------------
# Helpers used by the callbacks
# ---------------------------------------------------
def parse_payload(text):
    """JSON text from the payload editor -> dict. Raises ValueError with a readable message."""
    if not text or not text.strip():
        raise ValueError("Payload is empty")
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON payload: {e.msg} (line {e.lineno}, column {e.colno})") from e
    if not isinstance(payload, dict):
        raise ValueError("Payload must be a JSON object")
    return payload


def decode_upload(contents):
    """dcc.Upload gives 'data:<mime>;base64,<data>'."""
    if not contents or "," not in contents:
        raise ValueError("No file selected")
    _, encoded = contents.split(",", 1)
    return base64.b64decode(encoded)


def build_result(raw, now=None):
    """Store payload for one finished request: raw body, normalized cases and a timestamp."""
    cases = dist.normalize_prediction_cases(raw, PARAMETER_DETAILS)
    return {
        "raw": raw,
        "cases": [case.model_dump() for case in cases],
        "updated": (now or dt.datetime.now()).isoformat(timespec="seconds"),
    }


def load_cases(data):
    if not data:
        return []
    return [PredictionCase.model_validate(item) for item in data.get("cases", [])]


def active_case_index(active_tab, n_cases):
    if not active_tab or not n_cases:
        return 0
    try:
        index = int(str(active_tab).rsplit("-", 1)[-1])
    except ValueError:
        return 0
    return index if 0 <= index < n_cases else 0


def render_case_panel(data, active_tab):
    """Parameter grid and summary table for the selected case, or an empty-state message."""
    cases = load_cases(data)
    if not cases:
        return (
            html.P(
                "No runs yet. Submit a payload to generate the eight interior parameter posteriors.",
                className="text-muted text-center py-5",
            ),
            None,
        )
    case = cases[active_case_index(active_tab, len(cases))]
    return (
        charts.parameter_grid(case, PARAMETER_DETAILS, settings.HISTOGRAM_BINS),
        charts.summary_table(case, PARAMETER_DETAILS),
    )


def run_request(send):
    """
    Call `send()` and turn the outcome into (store data, alert).
    Request failures become an error alert instead of an exception.
    """
    start = time.perf_counter()
    try:
        raw = send()
    except requests.HTTPError as http_err:
        resp = http_err.response
        status = resp.status_code if resp is not None else "?"
        print(f"[ERROR /predict] HTTP {status} – {resp.text if resp is not None else ''}")
        return None, dbc.Alert(extract_error_message(http_err), color="danger", dismissable=True)
    except (requests.RequestException, ValueError) as e:
        print(f"[ERROR /predict] Request failed: {e}")
        return None, dbc.Alert(extract_error_message(e), color="danger", dismissable=True)

    data = build_result(raw)
    duration = time.perf_counter() - start
    print(f"[DEBUG /predict] {len(data['cases'])} cases in {duration:.1f}s")
    if data["cases"]:
        alert = dbc.Alert(f"Inference complete · {duration:.1f}s", color="success", dismissable=True, duration=3500)
    else:
        alert = dbc.Alert("Inference complete but API returned no samples", color="warning", dismissable=True)
    return data, alert


# ---------------------------------------------------
# Dash application
# ---------------------------------------------------
app = Dash(__name__, external_stylesheets=[dbc.themes.DARKLY])
app.title = f"{settings.PROJECT_NAME} dashboard"

header = html.Div(
    [
        html.H2("DeepEXO-cVAE: Noise-Aware Inference of Exoplanet Interiors"),
        html.P(
            "Real-time probabilistic inference of rocky exoplanet interiors with a noise-aware conditional VAE.",
            className="text-muted",
        ),
        html.P(
            "Mass/radius fields use Earth units (training window 0.1–10 M⊕) while Fe/Mg and Si/Mg are bulk "
            "molar ratios. In Gaussian mode pass relative standard deviations within [0, 1].",
            className="text-muted small",
        ),
        html.P(
            "Outputs: " + ", ".join(format_output_display(key) for key in PARAMETER_KEYS),
            className="text-muted small",
        ),
        html.Div(id="last-run", className="text-muted small"),
    ],
    className="mb-4",
)

direct_input_tab = dbc.Tab(
    label="Direct Input",
    tab_id="form-json",
    children=html.Div(
        [
            html.P(
                "Send scalar, batched or Gaussian JSON payloads to the prediction endpoints.",
                className="text-muted small mt-3",
            ),
            dcc.Dropdown(
                id="endpoint",
                options=[{"label": name, "value": name} for name in JSON_ENDPOINTS],
                value="prediction_with_gaussian",
                clearable=False,
                className="mb-2 text-dark",
            ),
            dcc.Textarea(
                id="payload-text",
                value=json.dumps(DEFAULT_GAUSSIAN_PAYLOAD, indent=2),
                style={"width": "100%", "height": "260px", "fontFamily": "monospace"},
            ),
            dbc.Button("Send to API", id="submit-json", color="primary", className="mt-2"),
        ]
    ),
)

file_upload_tab = dbc.Tab(
    label="File Upload",
    tab_id="form-file",
    children=html.Div(
        [
            html.P(
                "Upload numpy/csv/xlsx/parquet files with columns ordered as Mass, Radius, Fe/Mg, Si/Mg.",
                className="text-muted small mt-3",
            ),
            dcc.Upload(
                id="upload-file",
                children=html.Div(["Drag and drop or ", html.A("select data file")]),
                style={
                    "borderWidth": "1px", "borderStyle": "dashed", "borderRadius": "6px",
                    "textAlign": "center", "padding": "20px",
                },
            ),
            html.Div(id="upload-filename", className="small text-muted mt-1"),
            dbc.Input(
                id="file-times", type="number", min=1, max=500,
                value=settings.DEFAULT_SAMPLE_TIMES, placeholder="Times (optional)", className="mt-2",
            ),
            dbc.Button("Send file payload", id="submit-file", color="primary", className="mt-2"),
        ]
    ),
)

app.layout = dbc.Container(
    fluid=True,
    className="py-4",
    children=[
        dcc.Store(id="result-store"),
        header,
        dbc.Card(
            dbc.CardBody([
                dbc.Tabs([direct_input_tab, file_upload_tab], id="form-tabs", active_tab="form-json"),
                html.Div(id="request-alert", className="mt-3"),
            ]),
            className="mb-4",
        ),
        dbc.Card(
            dbc.CardBody([
                html.H4("Posterior distributions"),
                html.P(
                    "Each panel shows the posterior of one interior parameter inferred by the cVAE model.",
                    className="text-muted small",
                ),
                dcc.Loading(
                    children=[
                        dbc.Tabs(id="case-tabs", children=[], style={"display": "none"}),
                        html.Div(id="parameter-grid"),
                        html.Div(id="summary-table", className="mt-3"),
                    ]
                ),
            ]),
            className="mb-4",
        ),
        html.Details(
            [
                html.Summary("Raw API Output"),
                html.Pre(
                    id="raw-output",
                    style={"maxHeight": "320px", "overflow": "auto", "fontSize": "13px"},
                ),
            ],
            id="raw-output-panel",
            style={"display": "none"},
        ),
        html.P(
            f"{settings.PROJECT_NAME} v{settings.VERSION} · API: {settings.display_base_url}",
            className="text-muted small text-center mt-4",
        ),
    ],
)


# ---------------------------------------------------
# CALLBACKS
# ---------------------------------------------------
@app.callback(
    Output("upload-filename", "children"),
    Input("upload-file", "filename"),
)
def show_filename(filename):
    return filename or ""


@app.callback(
    Output("result-store", "data"),
    Output("request-alert", "children"),
    Input("submit-json", "n_clicks"),
    Input("submit-file", "n_clicks"),
    State("endpoint", "value"),
    State("payload-text", "value"),
    State("upload-file", "contents"),
    State("upload-file", "filename"),
    State("file-times", "value"),
    prevent_initial_call=True,
)
def submit_request(_json_clicks, _file_clicks, endpoint, payload_text, contents, filename, times):
    if ctx.triggered_id == "submit-file":
        try:
            content = decode_upload(contents)
        except ValueError as e:
            return no_update, dbc.Alert(str(e), color="warning", dismissable=True)
        return run_request(lambda: client.post_file(filename or "payload.csv", content, times))

    try:
        payload = parse_payload(payload_text)
    except ValueError as e:
        return no_update, dbc.Alert(str(e), color="danger", dismissable=True)

    print(f"[INFO] Sending payload to {endpoint}")
    return run_request(lambda: client.post_json(endpoint, payload))


@app.callback(
    Output("case-tabs", "children"),
    Output("case-tabs", "active_tab"),
    Output("case-tabs", "style"),
    Output("raw-output", "children"),
    Output("raw-output-panel", "style"),
    Output("last-run", "children"),
    Input("result-store", "data"),
)
def update_results(data):
    cases = load_cases(data)
    tabs_style = {} if len(cases) > 1 else {"display": "none"}
    if not data:
        return [], None, tabs_style, "", {"display": "none"}, ""

    last_run = f"Last run · {data.get('updated', '')} — API endpoint: {settings.display_base_url}"
    return (
        charts.case_tabs(cases),
        charts.case_tab_id(0) if cases else None,
        tabs_style,
        json.dumps(data.get("raw"), indent=2),
        {},
        last_run,
    )


@app.callback(
    Output("parameter-grid", "children"),
    Output("summary-table", "children"),
    Input("case-tabs", "active_tab"),
    Input("result-store", "data"),
)
def update_case_panel(active_tab, data):
    try:
        return render_case_panel(data, active_tab)
    except Exception as e:
        print(f"[ERROR update_case_panel] {e}")
        print(traceback.format_exc())
        return dbc.Alert("Unable to render the selected case", color="danger"), None


def main():
    app.run(host=settings.DASH_HOST, port=settings.DASH_PORT, debug=settings.DASH_DEBUG)


if __name__ == "__main__":
    main()
