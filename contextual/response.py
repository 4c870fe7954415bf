"""Response side-channel shared by stages and terminal handlers.

Stages and handlers never return responses. They write a status code,
headers and body bytes into a ResponseWriter, and the adapter turns the
writer into a Starlette response once the pipeline has finished.

Usage:
    async def hello(ctx, w, r):
        w.headers["content-type"] = "text/plain"
        w.write("hello")

    # A stage that rejects the request
    async def require_token(ctx, w, r):
        if "authorization" not in r.headers:
            w.write_header(401)
            w.write("missing token")
            return ctx.cancel("unauthorized")
        return ctx
"""

import logging
from typing import Dict, Optional, Union

from starlette.responses import Response

logger = logging.getLogger(__name__)

DEFAULT_STATUS = 200


class ResponseWriter:
    """Buffered response under construction for one request."""

    def __init__(self):
        self.headers: Dict[str, str] = {}
        self._status_code: Optional[int] = None
        self._chunks: list[bytes] = []

    @property
    def status_code(self) -> int:
        """Status written so far, 200 if nothing set one."""
        return self._status_code if self._status_code is not None else DEFAULT_STATUS

    @property
    def written(self) -> bool:
        """True once a status or any body bytes were written."""
        return self._status_code is not None

    @property
    def body(self) -> bytes:
        return b"".join(self._chunks)

    def write_header(self, status_code: int) -> None:
        """
        Set the response status.

        Only the first call has an effect, whether it came from here or
        from an implicit 200 on the first write().
        """
        if self._status_code is not None:
            logger.warning(
                f"Superfluous write_header({status_code}), "
                f"status already {self._status_code}"
            )
            return
        self._status_code = status_code

    def write(self, data: Union[str, bytes]) -> int:
        """Append body bytes; returns the number of bytes written."""
        if self._status_code is None:
            self._status_code = DEFAULT_STATUS
        if isinstance(data, str):
            data = data.encode("utf-8")
        self._chunks.append(data)
        return len(data)

    def to_response(self) -> Response:
        return Response(
            content=self.body,
            status_code=self.status_code,
            headers=self.headers,
        )

    def __repr__(self) -> str:
        return f"ResponseWriter(status={self.status_code}, bytes={len(self.body)})"
