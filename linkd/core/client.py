"""LinkdClient — profile search against the Linkd network API (async).

Two transports for the same query:
- search()        one GET /api/search, reshaped into a SearchResult
- search_stream() one WebSocket channel, `result` messages accumulated until
                  `complete`, `error`, or the deadline

Failure mapping for request/response calls:
- 401/403          → logged as linkd.auth_failed, empty result (AUTH_FAILED), never retried
- connect/5xx/time → retried with exponential backoff, then empty result (TRANSPORT_FAILED)
- other 4xx        → empty result (HTTP_ERROR)
- bad payload      → ProtocolFailure raised

Each call opens its own httpx client / WebSocket. No state is shared between calls.
"""
import asyncio
import json
import time
from typing import Any, Optional
from urllib.parse import quote

import httpx
import structlog
import websockets
from pydantic import ValidationError
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from linkd.core.errors import (
    AuthenticationFailure,
    HTTPStatusFailure,
    LinkdError,
    ProtocolFailure,
    StreamError,
    TransportFailure,
)
from linkd.core.models import (
    IntroductionRequest,
    ProfileRecord,
    SearchOutcome,
    SearchQuery,
    SearchResult,
)

STREAM_PATH = "/api/search/ws"


def stream_url(base_url: str) -> str:
    """Derive the WebSocket endpoint from the HTTP base URL."""
    base = base_url.rstrip("/")
    if base.startswith("https://"):
        base = "wss://" + base[len("https://"):]
    elif base.startswith("http://"):
        base = "ws://" + base[len("http://"):]
    return f"{base}{STREAM_PATH}"


class _StreamAccumulator:
    """Per-call state for one streamed search."""

    def __init__(self) -> None:
        self.profiles: list[ProfileRecord] = []
        self.total = 0


class LinkdClient:
    """Linkd profile search client.

    Usage::

        client = LinkdClient()
        result = await client.search(SearchQuery(query="UCLA alumni at Google"))
        for profile in result.profiles:
            print(profile.name, profile.affiliation)

        # Streamed variant — resolves on `complete`, raises StreamError on `error`,
        # returns partial results (outcome=TIMED_OUT) after the deadline
        result = await client.search_stream(SearchQuery(query="...", max_results=5))

    `log` is any structlog-style logger; pass one in to observe emitted events.
    `transport` and `connect` replace the HTTP transport and WebSocket
    connector (used by tests).
    """

    def __init__(
        self,
        api_key: str | None = None,
        settings=None,
        log=None,
        transport: httpx.AsyncBaseTransport | None = None,
        connect=None,
    ):
        if settings is None:
            from config.settings import get_settings
            settings = get_settings()
        self.settings = settings
        self.api_key = api_key if api_key is not None else settings.linkd_api_key
        self.base_url = settings.linkd_base_url.rstrip("/")
        self.timeout = settings.linkd_timeout_sec
        self.log = log or structlog.get_logger()
        self._transport = transport
        self._connect = connect or websockets.connect

        if not self.api_key:
            self.log.warning("linkd.missing_api_key", detail="API calls will likely fail")

    # ------------------------------------------------------------------
    # HTTP plumbing
    # ------------------------------------------------------------------

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    async def _request(
        self,
        method: str,
        path: str,
        operation: str,
        *,
        params: Any = None,
        json_body: dict | None = None,
    ) -> dict[str, Any]:
        """Issue one call, retrying on TransportFailure only."""
        retrying = AsyncRetrying(
            stop=stop_after_attempt(max(1, self.settings.linkd_retry_attempts)),
            wait=wait_exponential(
                multiplier=self.settings.linkd_retry_backoff_min,
                min=self.settings.linkd_retry_backoff_min,
                max=self.settings.linkd_retry_backoff_max,
            ),
            retry=retry_if_exception_type(TransportFailure),
            before_sleep=lambda state: self.log.warning(
                "linkd.retry",
                operation=operation,
                attempt=state.attempt_number,
                error=str(state.outcome.exception()),
            ),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                data = await self._send(method, path, operation, params=params, json_body=json_body)
        return data

    async def _send(
        self,
        method: str,
        path: str,
        operation: str,
        *,
        params: Any = None,
        json_body: dict | None = None,
    ) -> dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.request(
                    method, url, params=params, json=json_body, headers=self._headers()
                )
        except httpx.TimeoutException as exc:
            raise TransportFailure(f"timed out after {self.timeout}s") from exc
        except httpx.DecodingError as exc:
            raise ProtocolFailure(f"{operation}: response body could not be decoded: {exc}") from exc
        except httpx.RequestError as exc:
            raise TransportFailure(str(exc) or exc.__class__.__name__) from exc

        if resp.status_code in (401, 403):
            raise AuthenticationFailure(_error_message(resp), status=resp.status_code)
        if resp.status_code >= 500:
            raise TransportFailure(_error_message(resp), status=resp.status_code)
        if resp.status_code >= 400:
            raise HTTPStatusFailure(_error_message(resp), status=resp.status_code)

        try:
            data = resp.json()
        except ValueError as exc:
            raise ProtocolFailure(f"{operation}: response body is not JSON") from exc
        if not isinstance(data, dict):
            raise ProtocolFailure(
                f"{operation}: expected a JSON object, got {type(data).__name__}"
            )
        return data

    def _handle_api_error(self, operation: str, exc: Exception) -> None:
        """Log an API error. Auth failures get their own event."""
        if isinstance(exc, LinkdError):
            self.log.error(
                "linkd.api_error",
                operation=operation,
                error=str(exc),
                status=getattr(exc, "status", None) or "unknown",
            )
            if isinstance(exc, AuthenticationFailure):
                self.log.error(
                    "linkd.auth_failed",
                    operation=operation,
                    status=exc.status,
                    detail="Linkd API authentication failed. Check your API key.",
                )
        else:
            self.log.error("linkd.unexpected_error", operation=operation, error=str(exc))

    # ------------------------------------------------------------------
    # Search (request/response)
    # ------------------------------------------------------------------

    async def search(self, query: SearchQuery) -> SearchResult:
        """Search profiles with one GET /api/search.

        Never raises for auth, transport or HTTP errors; check `result.outcome`.
        Raises ProtocolFailure when the payload cannot be parsed.
        """
        self.log.info("linkd.search", query=query.query, limit=query.max_results)
        result = await self._fetch_result(
            "search", "/api/search", query.to_params(), "results", query.max_results
        )
        self.log.info(
            "linkd.search_complete",
            found=len(result.profiles),
            total=result.total_count,
            outcome=result.outcome.value,
        )
        return result

    async def find_profile_matches(self, profile_id: str, query: SearchQuery) -> SearchResult:
        """Profiles sharing attributes with `profile_id`, same failure mapping as search()."""
        self.log.info("linkd.profile_matches", profile_id=profile_id, query=query.query)
        result = await self._fetch_result(
            "find_profile_matches",
            f"/api/profiles/matches/{quote(profile_id, safe='')}",
            query.to_params(),
            "matches",
            query.max_results,
        )
        self.log.info(
            "linkd.profile_matches_complete",
            profile_id=profile_id,
            found=len(result.profiles),
            outcome=result.outcome.value,
        )
        return result

    async def _fetch_result(
        self,
        operation: str,
        path: str,
        params: Any,
        key: str,
        max_results: int,
    ) -> SearchResult:
        try:
            data = await self._request("GET", path, operation, params=params)
        except AuthenticationFailure as exc:
            self._handle_api_error(operation, exc)
            return SearchResult.empty(SearchOutcome.AUTH_FAILED)
        except TransportFailure as exc:
            self._handle_api_error(operation, exc)
            return SearchResult.empty(SearchOutcome.TRANSPORT_FAILED)
        except HTTPStatusFailure as exc:
            self._handle_api_error(operation, exc)
            return SearchResult.empty(SearchOutcome.HTTP_ERROR)
        except ProtocolFailure as exc:
            self._handle_api_error(operation, exc)
            raise

        try:
            return _to_result(data, key, max_results)
        except ProtocolFailure as exc:
            self._handle_api_error(operation, exc)
            raise

    # ------------------------------------------------------------------
    # Search (streamed)
    # ------------------------------------------------------------------

    async def search_stream(self, query: SearchQuery) -> SearchResult:
        """Search over the WebSocket endpoint.

        Resolves on `complete`, raises StreamError on `error`, and after
        `timeout` seconds from channel open returns whatever arrived so far
        with outcome TIMED_OUT. Raises TransportFailure if the channel cannot
        be opened or drops before a terminal message. The channel is closed
        exactly once on every path.
        """
        url = stream_url(self.base_url)
        self.log.info("linkd.stream_search", query=query.query, url=url)

        try:
            channel = await self._connect(url, open_timeout=self.timeout)
        except (OSError, asyncio.TimeoutError, websockets.exceptions.WebSocketException) as exc:
            self.log.error("linkd.stream_connect_failed", url=url, error=str(exc))
            raise TransportFailure(f"could not open channel to {url}: {exc}") from exc

        self.log.info("linkd.stream_open", url=url)
        started = time.monotonic()
        acc = _StreamAccumulator()
        outcome = SearchOutcome.OK
        try:
            outbound = json.dumps({
                "type": "query",
                "data": query.to_stream_payload(),
                "apiKey": self.api_key,
            })
            await asyncio.wait_for(self._exchange(channel, outbound, acc), timeout=self.timeout)
        except asyncio.TimeoutError:
            outcome = SearchOutcome.TIMED_OUT
            acc.total = len(acc.profiles)
            self.log.error(
                "linkd.stream_timeout",
                timeout_sec=self.timeout,
                received=len(acc.profiles),
            )
        except websockets.exceptions.ConnectionClosed as exc:
            self.log.error("linkd.stream_dropped", error=str(exc), received=len(acc.profiles))
            raise TransportFailure(f"channel closed: {exc}") from exc
        finally:
            await channel.close()
            self.log.info("linkd.stream_closed", url=url)

        elapsed = round(time.monotonic() - started, 3)
        result = SearchResult(
            profiles=acc.profiles[: query.max_results],
            total_count=acc.total,
            query_execution_time=elapsed,
            outcome=outcome,
        )
        self.log.info(
            "linkd.stream_complete",
            found=len(result.profiles),
            total=result.total_count,
            elapsed_sec=elapsed,
            outcome=outcome.value,
        )
        return result

    async def _exchange(self, channel, outbound: str, acc: _StreamAccumulator) -> None:
        """Send the query, then read messages until `complete` (returns) or `error` (raises)."""
        await channel.send(outbound)
        async for raw in channel:
            message = self._decode(raw)
            if message is None:
                continue

            kind = message.get("type")
            data = message.get("data") or {}
            if not isinstance(data, dict):
                self.log.warning("linkd.stream_bad_message", type=kind, error="data is not an object")
                continue
            self.log.debug("linkd.stream_message", type=kind)

            if kind == "result":
                self._accumulate(acc, data)
            elif kind == "complete":
                total = data.get("total_count")
                if isinstance(total, int) and not isinstance(total, bool) and total > 0:
                    acc.total = total
                return
            elif kind == "error":
                text = data.get("message")
                message_text = text if isinstance(text, str) else "streamed search failed"
                self.log.error("linkd.stream_error", error=message_text)
                raise StreamError(message_text)
            else:
                self.log.warning("linkd.stream_unknown_message", type=kind)

        self.log.error("linkd.stream_dropped", error="closed by server", received=len(acc.profiles))
        raise TransportFailure("channel closed before the search completed")

    def _decode(self, raw: Any) -> Optional[dict[str, Any]]:
        try:
            message = json.loads(raw)
        except (TypeError, ValueError) as exc:
            self.log.warning("linkd.stream_bad_message", error=str(exc))
            return None
        if not isinstance(message, dict):
            self.log.warning("linkd.stream_bad_message", error="message is not an object")
            return None
        return message

    def _accumulate(self, acc: _StreamAccumulator, data: dict[str, Any]) -> None:
        results = data.get("results") or []
        if not isinstance(results, list):
            self.log.warning("linkd.stream_bad_message", type="result", error="results is not a list")
            return
        try:
            batch = [ProfileRecord.model_validate(item) for item in results]
        except ValidationError as exc:
            self.log.warning("linkd.stream_bad_message", type="result", error=str(exc))
            return
        acc.profiles.extend(batch)
        total = data.get("total_count")
        if isinstance(total, int) and not isinstance(total, bool) and total > 0:
            acc.total = total
        else:
            acc.total = len(acc.profiles)

    # ------------------------------------------------------------------
    # Profiles, connections, introductions
    # ------------------------------------------------------------------

    async def get_profile(self, profile_id: str) -> ProfileRecord | None:
        """Fetch one profile by id. None when missing or on any failure."""
        self.log.info("linkd.get_profile", profile_id=profile_id)
        try:
            data = await self._request(
                "GET", f"/api/profile/{quote(profile_id, safe='')}", "get_profile"
            )
        except LinkdError as exc:
            self._handle_api_error("get_profile", exc)
            return None

        raw = data.get("profile")
        if not raw:
            self.log.info("linkd.profile_not_found", profile_id=profile_id)
            return None
        try:
            profile = ProfileRecord.model_validate(raw)
        except ValidationError as exc:
            self._handle_api_error("get_profile", ProtocolFailure(str(exc)))
            return None
        self.log.info("linkd.get_profile_complete", profile_id=profile_id)
        return profile

    async def find_mutual_connections(self, profile_id1: str, profile_id2: str) -> list[str]:
        """Names of mutual connections between two profiles. [] on any failure."""
        self.log.info("linkd.mutual_connections", profile1=profile_id1, profile2=profile_id2)
        try:
            data = await self._request(
                "GET",
                "/api/connections/mutual",
                "find_mutual_connections",
                params={"profile1": profile_id1, "profile2": profile_id2},
            )
        except LinkdError as exc:
            self._handle_api_error("find_mutual_connections", exc)
            return []

        connections = data.get("connections") or []
        if not isinstance(connections, list):
            self._handle_api_error(
                "find_mutual_connections", ProtocolFailure("connections is not a list")
            )
            return []
        names = [str(c) for c in connections if c is not None]
        self.log.info("linkd.mutual_connections_complete", count=len(names))
        return names

    async def request_introduction(self, request: IntroductionRequest) -> bool:
        """Ask the service to broker an introduction. False on any failure."""
        self.log.info("linkd.request_introduction", from_id=request.from_id, to_id=request.to_id)
        try:
            data = await self._request(
                "POST",
                "/api/introductions/request",
                "request_introduction",
                json_body=request.to_payload(),
            )
        except LinkdError as exc:
            self._handle_api_error("request_introduction", exc)
            return False

        success = data.get("success") is True
        self.log.info("linkd.request_introduction_complete", success=success)
        return success


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _error_message(resp: httpx.Response) -> str:
    """Best human-readable message from an error response."""
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        for key in ("message", "error", "detail"):
            if body.get(key):
                return str(body[key])
    return f"HTTP {resp.status_code} {resp.reason_phrase}".strip()


def _to_result(data: dict[str, Any], key: str, max_results: int) -> SearchResult:
    """Reshape a search payload. Falls back to computed defaults for missing fields."""
    raw = data.get(key)
    if raw is None:
        raw = []
    if not isinstance(raw, list):
        raise ProtocolFailure(f"'{key}' is not a list")
    try:
        profiles = [ProfileRecord.model_validate(item) for item in raw]
        return SearchResult(
            profiles=profiles[:max_results],
            total_count=data.get("total_count") or len(raw),
            query_execution_time=data.get("execution_time") or 0.0,
        )
    except ValidationError as exc:
        raise ProtocolFailure(f"malformed '{key}' payload: {exc}") from exc
