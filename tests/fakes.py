"""Network stand-ins shared by the test modules."""

from __future__ import annotations

from typing import Dict, List, Optional


class FakeResponse:
    def __init__(self, status_code: int = 200, text: str = "") -> None:
        self.status_code = status_code
        self.content = text.encode("utf-8")


class FakeSession:
    """Stands in for ``requests.Session``; routes export URLs by their gid."""

    def __init__(self, by_gid: Optional[Dict[str, FakeResponse]] = None, error: Optional[Exception] = None) -> None:
        self.by_gid = by_gid or {}
        self.error = error
        self.calls: List[dict] = []

    def get(self, url, timeout=None, headers=None):
        self.calls.append({"url": url, "timeout": timeout, "headers": headers})
        if self.error is not None:
            raise self.error
        gid = url.rsplit("gid=", 1)[-1]
        return self.by_gid.get(gid, FakeResponse(404))
