"""
In-memory request/response contexts.

Used directly by framework adapters that buffer the response, and in tests.
"""
import logging
from typing import Dict, List, Optional, Union

from .parser import get_header_value
from .types import RequestContext, ResponseContext

logger = logging.getLogger(__name__)


class MappingRequestContext(RequestContext):
    """Request context backed by a plain header mapping."""

    def __init__(self, headers: Optional[Dict[str, str]] = None) -> None:
        self._headers: Dict[str, str] = dict(headers or {})

    def get_header(self, name: str) -> Optional[str]:
        return get_header_value(self._headers, name)


class BufferedResponseContext(ResponseContext):
    """
    Response context that collects status, headers and body in memory.

    After finalize() every mutation is ignored.
    """

    def __init__(self, status_code: int = 200) -> None:
        self._status_code = status_code
        self._headers: Dict[str, str] = {}
        self._chunks: List[bytes] = []
        self._finalized = False

    @property
    def status_code(self) -> int:
        return self._status_code

    @property
    def headers(self) -> Dict[str, str]:
        return dict(self._headers)

    @property
    def body(self) -> bytes:
        return b"".join(self._chunks)

    @property
    def finalized(self) -> bool:
        return self._finalized

    def get_header(self, name: str) -> Optional[str]:
        return get_header_value(self._headers, name)

    def set_header(self, name: str, value: str) -> None:
        if self._finalized:
            logger.debug(f"BufferedResponseContext.set_header: ignoring {name} after finalize")
            return
        for existing in list(self._headers):
            if existing.lower() == name.lower():
                del self._headers[existing]
        self._headers[name] = value

    def set_status(self, status_code: int) -> None:
        if self._finalized:
            logger.debug("BufferedResponseContext.set_status: ignoring status after finalize")
            return
        self._status_code = status_code

    def write_body(self, chunk: Union[bytes, str]) -> None:
        if self._finalized:
            logger.debug("BufferedResponseContext.write_body: ignoring write after finalize")
            return
        if isinstance(chunk, str):
            chunk = chunk.encode("utf-8")
        self._chunks.append(chunk)

    def finalize(
        self,
        status_code: Optional[int] = None,
        body: Optional[Union[bytes, str]] = None,
    ) -> bool:
        if self._finalized:
            return False
        if status_code is not None:
            self._status_code = status_code
        if body is not None:
            self.write_body(body)
        self._finalized = True
        return True
