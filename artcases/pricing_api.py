from __future__ import annotations

import math
from typing import Any, Dict, Optional

import requests

from .exceptions import ServiceError


class PricingAPI:
    """Client for the Montuga inventory pricing service.

    Values come back in USD. The service counts every request against a
    per-minute budget, so callers are expected to pace calls themselves.
    """

    BASE = "https://montuga.com/api/IPricing/inventory"

    def __init__(
        self,
        key: str,
        app_id: int = 730,
        timeout: float = 25,
        cases_path: str = "cases-value",
        session: Optional[requests.Session] = None,
    ) -> None:
        self.key = key
        self.app_id = app_id
        self.timeout = timeout
        self.cases_path = cases_path
        self.session = session or requests.Session()

    def _get(self, steamid: str, what: str) -> Dict[str, Any]:
        url = f"{self.BASE}/{steamid}/{self.app_id}/{what}"
        headers = {"api-key": self.key, "Accept": "application/json"}
        try:
            r = self.session.get(url, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            raise ServiceError(f"Pricing request failed: {e}", transient=True) from e

        if not r.ok:
            raise ServiceError(_error_message(r), status_code=r.status_code)
        try:
            data = r.json()
        except ValueError as e:
            raise ServiceError(
                f"Status {r.status_code}. Pricing service returned a non-JSON body.",
                status_code=r.status_code,
            ) from e
        if not isinstance(data, dict):
            raise ServiceError("Pricing service returned an unexpected payload.")
        return data

    def total_value(self, steamid: str) -> float:
        return _value(self._get(steamid, "total-value"))

    def cases_value(self, steamid: str) -> float:
        return _value(self._get(steamid, self.cases_path))


def _value(data: Dict[str, Any]) -> float:
    raw = data.get("total_value") or 0.0
    try:
        value = float(raw)
    except (TypeError, ValueError) as e:
        raise ServiceError(f"Malformed total_value in pricing payload: {raw!r}") from e
    if not math.isfinite(value):
        raise ServiceError(f"Non-finite total_value in pricing payload: {raw!r}")
    return value


def _error_message(r: requests.Response) -> str:
    try:
        body = r.json()
    except ValueError:
        snippet = (r.text or "")[:80]
        return f"Status {r.status_code}. Pricing service returned HTML (not JSON): {snippet}..."
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return f"Status {r.status_code}. Pricing service error (JSON)."
