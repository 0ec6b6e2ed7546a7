"""Response Sinks — ResponseSink implementations backed by Starlette responses.

Invariants:
    - A sink produces exactly one response; a second send raises ResponseAlreadySentError
    - Bodies pass through jsonable_encoder (dates, UUIDs, pydantic models)
    - Headers set by steps before the send are carried onto the response
"""

from collections.abc import Mapping
from typing import Any

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, Response

from routemap.core.errors import ResponseAlreadySentError


class JSONResponseSink:
    """Builds the Starlette response the route handler returns."""

    def __init__(self, headers: Mapping[str, str] | None = None):
        self.headers: dict[str, str] = dict(headers or {})
        self.response: Response | None = None

    def _claim(self) -> None:
        if self.response is not None:
            raise ResponseAlreadySentError("Response already sent for this request")

    def send_status(self, status: int) -> Response:
        self._claim()
        self.response = Response(status_code=status, headers=self.headers)
        return self.response

    def send_json(self, status: int, body: Any) -> JSONResponse:
        self._claim()
        self.response = JSONResponse(
            status_code=status, content=jsonable_encoder(body), headers=self.headers,
        )
        return self.response
