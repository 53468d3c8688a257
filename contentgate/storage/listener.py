"""Server-sent change stream from the repository's listen endpoint."""

import json
import logging
from typing import Any, Iterable, Iterator, Optional

import httpx

from contentgate.exceptions import RepositoryError

logger = logging.getLogger(__name__)


def parse_events(lines: Iterable[str]) -> Iterator[dict[str, Any]]:
    """
    Parse server-sent event lines into event dictionaries.

    Each yielded event has a ``type`` key (the SSE event name, ``message``
    when none was sent) merged with its decoded JSON data.
    """
    event_type = "message"
    data_lines: list[str] = []
    for line in lines:
        if not line:
            if data_lines:
                yield _build_event(event_type, data_lines)
            event_type = "message"
            data_lines = []
            continue
        if line.startswith(":"):
            continue
        name, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]
        if name == "event":
            event_type = value
        elif name == "data":
            data_lines.append(value)
    if data_lines:
        yield _build_event(event_type, data_lines)


def _build_event(event_type: str, data_lines: list[str]) -> dict[str, Any]:
    raw = "\n".join(data_lines)
    try:
        payload = json.loads(raw)
    except ValueError:
        payload = raw
    if not isinstance(payload, dict):
        payload = {"data": payload}
    return {"type": event_type, **payload}


class ChangeStream:
    """Iterable stream of change events that can be closed from another thread."""

    def __init__(self, http: httpx.Client, path: str, params: dict[str, Any]):
        self._http = http
        self._path = path
        self._params = params
        self._response: Optional[httpx.Response] = None
        self.closed = False

    def __iter__(self) -> Iterator[dict[str, Any]]:
        try:
            with self._http.stream(
                "GET",
                self._path,
                params=self._params,
                headers={"Accept": "text/event-stream"},
                timeout=httpx.Timeout(10.0, read=None),
            ) as response:
                self._response = response
                if response.is_error:
                    raise RepositoryError(
                        f"Listen request failed: {response.status_code} {response.reason_phrase}",
                        status_code=response.status_code,
                    )
                for event in parse_events(response.iter_lines()):
                    if self.closed:
                        break
                    yield event
        except httpx.HTTPError as e:
            if self.closed:
                return
            raise RepositoryError(f"Change stream failed: {e}", original_error=e) from e

    def close(self) -> None:
        self.closed = True
        if self._response is not None:
            self._response.close()
