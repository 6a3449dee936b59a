from __future__ import annotations

from typing import Any, Dict

import requests

IP_API_URL = "http://ip-api.com/json/"


def get_ip_data(timeout_s: float = 10.0) -> Dict[str, Any]:
    """Look up the server's public IP and location.

    Raises requests.RequestException on transport failure and ValueError when
    the lookup service reports a failure.
    """
    resp = requests.get(IP_API_URL, timeout=timeout_s)
    resp.raise_for_status()
    data = resp.json()
    if not isinstance(data, dict):
        raise ValueError("unexpected ip lookup response")
    if data.get("status") == "fail":
        raise ValueError(str(data.get("message") or "ip lookup failed"))
    return {
        "query": str(data.get("query") or ""),
        "country": str(data.get("country") or ""),
        "region_name": str(data.get("regionName") or ""),
        "city": str(data.get("city") or ""),
        "isp": str(data.get("isp") or ""),
    }
