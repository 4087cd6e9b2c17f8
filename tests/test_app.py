import base64
import datetime as dt

import dash_bootstrap_components as dbc
import pytest
import requests
from dash import html

import deepexo_dashboard.app as dashboard
import deepexo_dashboard.components.charts as charts
from deepexo_dashboard.utils.constants import PARAMETER_DETAILS, get_parameter_detail
from deepexo_dashboard.utils.schema import PredictionCase

RAW = {
    "status": "ok",
    "result": {
        "Prediction_distribution": {
            "planet_0": {"WRF": [0.1, 0.2, 0.3], "CMF": [0.30, 0.32], "index": [0, 1, 2]},
            "planet_1": {"WRF": [0.5], "K2": [0.9, 1.1]},
        }
    },
}


def test_parse_payload():
    assert dashboard.parse_payload('{"Mass": [1.0], "Times": 20}') == {"Mass": [1.0], "Times": 20}
    with pytest.raises(ValueError, match="Invalid JSON"):
        dashboard.parse_payload("{Mass: 1}")
    with pytest.raises(ValueError, match="JSON object"):
        dashboard.parse_payload("[1, 2]")
    with pytest.raises(ValueError, match="empty"):
        dashboard.parse_payload("   ")


def test_decode_upload():
    encoded = base64.b64encode(b"1,1,0.9,0.8").decode()
    assert dashboard.decode_upload(f"data:text/csv;base64,{encoded}") == b"1,1,0.9,0.8"
    with pytest.raises(ValueError):
        dashboard.decode_upload(None)


def test_build_result_round_trips_cases():
    data = dashboard.build_result(RAW, now=dt.datetime(2025, 1, 2, 3, 4, 5))
    assert data["raw"] is RAW
    assert data["updated"] == "2025-01-02T03:04:05"

    cases = dashboard.load_cases(data)
    assert [case.id for case in cases] == ["Case A", "Case B"]
    assert cases[0].parameters == {"WRF": [0.1, 0.2, 0.3], "CMF": [0.30, 0.32]}
    assert cases[1].parameters == {"WRF": [0.5], "K2": [0.9, 1.1]}


def test_load_cases_without_data():
    assert dashboard.load_cases(None) == []
    assert dashboard.load_cases({}) == []


@pytest.mark.parametrize("active_tab, n_cases, expected", [
    (None, 3, 0),
    ("case-2", 3, 2),
    ("case-7", 3, 0),
    ("case-x", 3, 0),
    ("case-1", 0, 0),
])
def test_active_case_index(active_tab, n_cases, expected):
    assert dashboard.active_case_index(active_tab, n_cases) == expected


def test_render_case_panel_empty_state():
    grid, table = dashboard.render_case_panel(None, None)
    assert isinstance(grid, html.P)
    assert "No runs yet" in grid.children
    assert table is None


def test_render_case_panel_selected_case():
    data = dashboard.build_result(RAW)
    grid, table = dashboard.render_case_panel(data, "case-1")
    assert isinstance(grid, dbc.Row)
    assert len(grid.children) == len(PARAMETER_DETAILS)
    assert isinstance(table, dbc.Table)


def test_run_request_success():
    data, alert = dashboard.run_request(lambda: RAW)
    assert len(data["cases"]) == 2
    assert alert.color == "success"


def test_run_request_without_samples_warns():
    data, alert = dashboard.run_request(lambda: {"message": "nothing here"})
    assert data["cases"] == []
    assert alert.color == "warning"


def test_run_request_http_error():
    response = requests.Response()
    response.status_code = 503
    response.reason = "Service Unavailable"
    response._content = b"down"

    def send():
        raise requests.HTTPError("503 Server Error", response=response)

    data, alert = dashboard.run_request(send)
    assert data is None
    assert alert.color == "danger"
    assert alert.children == "Service Unavailable"


def test_run_request_connection_error():
    def send():
        raise requests.ConnectionError("connection refused")

    data, alert = dashboard.run_request(send)
    assert data is None
    assert alert.children == "connection refused"


def test_density_figure():
    detail = get_parameter_detail("CMF")
    fig = charts.density_figure(detail, [0.1, 0.2, 0.2, 0.4], bins=10)
    assert len(fig.data) == 1
    assert sum(fig.data[0].y) == 4
    assert len(fig.data[0].x) == 10
    assert fig.data[0].line.color == detail.color

    assert len(charts.density_figure(detail, []).data) == 0


def test_parameter_card_without_samples():
    card = charts.parameter_card(get_parameter_detail("K2"), [])
    body = card.children
    assert body.children[1].children == "No samples returned by API."


def test_parameter_card_caption():
    card = charts.parameter_card(get_parameter_detail("WRF"), [1.0, 2.0, 3.0])
    caption = card.children.children[2].children
    assert caption == "μ ± σ: 2.000 ± 1.000 | min/max: 1.000 / 3.000"


def test_case_tabs():
    cases = [PredictionCase(id="Case A", parameters={}), PredictionCase(id="Case B", parameters={})]
    tabs = charts.case_tabs(cases)
    assert [tab.label for tab in tabs] == ["Case A (1)", "Case B (2)"]
    assert [tab.tab_id for tab in tabs] == ["case-0", "case-1"]
