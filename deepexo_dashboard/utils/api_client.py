import requests

from deepexo_dashboard.utils.constants import ENDPOINTS

JSON_ENDPOINTS = ("single_prediction", "multi_prediction", "prediction_with_gaussian")


class APIClient:
    def __init__(self, base_url="http://127.0.0.1:8000/api", timeout=20.0):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _url(self, endpoint: str) -> str:
        if endpoint not in ENDPOINTS:
            raise ValueError(f"Unknown endpoint '{endpoint}'. Expected one of: {', '.join(ENDPOINTS)}")
        return f"{self.base_url}/{endpoint}"

    def post_json(self, endpoint: str, payload: dict):
        """POST a JSON payload to one of the prediction endpoints and return the decoded body."""
        if endpoint not in JSON_ENDPOINTS:
            raise ValueError(f"Endpoint '{endpoint}' does not accept JSON payloads")
        url = self._url(endpoint)
        print(f"[DEBUG api_client] POST {url}")
        response = requests.post(url, json=payload, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    def post_file(self, filename: str, content: bytes, times=None):
        """Upload a data file (csv/npy/xlsx/parquet) to file_prediction."""
        url = self._url("file_prediction")
        data = {}
        if times is not None:
            data["Times"] = str(int(times))
        print(f"[DEBUG api_client] POST {url} (file={filename}, {len(content)} bytes)")
        response = requests.post(
            url,
            files={"file": (filename, content)},
            data=data,
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response.json()


def extract_error_message(error: Exception) -> str:
    """
    Human readable message for a failed request: the API's "detail" field when
    it sent one, then the HTTP reason, then the exception text.
    """
    if isinstance(error, requests.RequestException):
        response = error.response
        if response is not None:
            try:
                body = response.json()
            except ValueError:
                body = None
            if isinstance(body, dict) and body.get("detail"):
                detail = body["detail"]
                return detail if isinstance(detail, str) else str(detail)
            if response.reason:
                return response.reason
        return str(error) or "Unexpected API error"
    return str(error) or "Unknown error"
