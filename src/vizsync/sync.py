"""Sync controller: the single writer of dashboard state.

State machine::

    warming_up -> idle <-> fetching (-> retrying -> fetching)* -> succeeded -> idle
                                                               -> failed    -> idle

Fetches are triggered by the initial start, by selection changes
(debounced through one explicit timer handle), by the optional polling
task, or by a manual refresh. Every request gets a ticket with a
monotonically increasing sequence number; a completion only touches state
when its ticket is still the latest one issued. Older requests keep running
in their worker thread but their results are dropped.

A failed refresh never clears data: records and filter options from the
last success stay in place and only ``error`` changes.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine, Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from vizsync.client import ApiClient
from vizsync.config import AppConfig
from vizsync.errors import ClientError, TransientError, VizSyncError
from vizsync.filters import build_selection, empty_filter_options, update_selection
from vizsync.push import PushSource, parse_push_message, websocket_messages
from vizsync.query_encoder import encode_query
from vizsync.record_types import DataResponse, FilterOptions

logger = logging.getLogger(__name__)


class SyncPhase(str, Enum):
    """Lifecycle phase of the controller. Exactly one is active."""

    WARMING_UP = "warming_up"
    IDLE = "idle"
    FETCHING = "fetching"
    RETRYING = "retrying"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class SyncState:
    """Immutable snapshot published to subscribers after every change."""

    records: tuple[dict[str, Any], ...] = ()
    filter_options: FilterOptions = field(default_factory=empty_filter_options)
    selection: Mapping[str, Any] = field(default_factory=dict)
    phase: SyncPhase = SyncPhase.IDLE
    error: str | None = None
    warning: str | None = None
    backend_status: str | None = None
    last_synced_at: datetime | None = None
    sequence: int = 0


@dataclass(frozen=True)
class RequestTicket:
    """One issued fetch. Only the ticket with the latest sequence may apply."""

    sequence: int
    selection: Mapping[str, Any]
    query: str
    reason: str


Subscriber = Callable[[SyncState], None]


def _log_task_failure(task: asyncio.Task[Any]) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("Fetch task failed", exc_info=exc)


class SyncController:
    """Owns SyncState and orchestrates warm-up, fetches and background refresh."""

    def __init__(
        self,
        config: AppConfig,
        client: ApiClient | None = None,
        push_source: PushSource | None = None,
    ) -> None:
        self.config = config
        self.client = client or ApiClient(config.api)
        self._push_source = push_source or websocket_messages
        self._state = SyncState()
        self._subscribers: list[Subscriber] = []
        self._sequence = 0
        self._inflight: dict[int, RequestTicket] = {}
        self._debounce_handle: asyncio.TimerHandle | None = None
        self._tasks: set[asyncio.Task[Any]] = set()
        self._background: asyncio.Task[None] | None = None

    async def __aenter__(self) -> SyncController:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # ── State ────────────────────────────────────────────────────────────

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def latest_sequence(self) -> int:
        return self._sequence

    @property
    def pending_requests(self) -> list[RequestTicket]:
        """Tickets whose fetch has not completed yet, oldest first."""
        return [self._inflight[k] for k in sorted(self._inflight)]

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a callback for every published state; returns an unsubscriber."""
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return _unsubscribe

    def _publish(self, **changes: Any) -> SyncState:
        self._state = replace(self._state, **changes)
        for callback in list(self._subscribers):
            try:
                callback(self._state)
            except Exception:
                logger.exception("Sync subscriber raised; continuing")
        return self._state

    # ── Warm-up ──────────────────────────────────────────────────────────

    async def warm_up(self) -> bool:
        """Probe the liveness endpoint until it answers or attempts run out.

        Each attempt uses the short warm-up timeout; the delay between
        attempts grows linearly. Running out of attempts is not fatal: the
        controller publishes a ``warning`` and moves on to idle; the next
        successful fetch clears it.

        Returns:
            True if the backend answered a probe.
        """
        attempts = self.config.warmup.attempts
        if attempts <= 0:
            self._publish(phase=SyncPhase.IDLE)
            return False

        self._publish(phase=SyncPhase.WARMING_UP)
        for attempt in range(1, attempts + 1):
            try:
                status = await asyncio.to_thread(self.client.probe)
            except VizSyncError as exc:
                logger.info("Warm-up probe %d/%d failed: %s", attempt, attempts, exc)
                if attempt < attempts:
                    await asyncio.sleep(self.config.warmup.delay_seconds * attempt)
                continue

            logger.info("Backend is up (status=%s) after %d probe(s)", status, attempt)
            self._publish(phase=SyncPhase.IDLE, backend_status=status, warning=None)
            return True

        warning = f"Backend did not answer {attempts} warm-up probe(s)"
        logger.warning("%s; fetching anyway", warning)
        self._publish(phase=SyncPhase.IDLE, backend_status="unreachable", warning=warning)
        return False

    # ── Triggers ─────────────────────────────────────────────────────────

    async def start(
        self,
        selection: Mapping[str, Any] | None = None,
        warm_up: bool = True,
        background: bool = True,
    ) -> SyncState:
        """Initial mount: warm up, fetch once, then start background refresh.

        Args:
            selection: Initial filter selection (default: no constraints).
            warm_up: Probe the backend before the first fetch.
            background: Start the configured polling or push task.
        """
        if selection:
            self._publish(selection=build_selection(selection))
        if warm_up:
            await self.warm_up()
        await self._run(self._issue("initial"))
        if background:
            self._start_background()
        return self._state

    async def refresh(self, reason: str = "manual") -> SyncState:
        """Fetch immediately with the current selection (manual retry)."""
        await self._run(self._issue(reason))
        return self._state

    def set_selection(self, selection: Mapping[str, Any] | None) -> SyncState:
        """Replace the whole selection and schedule a debounced fetch.

        Raises:
            UnknownFacetError: If the selection names an unknown facet.
        """
        self._publish(selection=build_selection(selection))
        self._schedule_fetch()
        return self._state

    def update_facet(self, facet: str, value: Any) -> SyncState:
        """Change one facet (empty value clears it) and schedule a debounced fetch."""
        self._publish(selection=update_selection(self._state.selection, facet, value))
        self._schedule_fetch()
        return self._state

    async def insert(self, records: list[dict[str, Any]]) -> str:
        """Post records to the service, then refetch the current selection.

        Raises:
            ClientError, TransientError: If the insert itself fails.
        """
        try:
            message = await asyncio.to_thread(self.client.insert, list(records))
        except VizSyncError as exc:
            logger.warning("Insert of %d records failed: %s", len(records), exc)
            self._publish(error=str(exc))
            raise
        logger.info("Inserted %d records: %s", len(records), message)
        await self.refresh("insert")
        return message

    def _schedule_fetch(self) -> None:
        loop = asyncio.get_running_loop()
        if self._debounce_handle is not None:
            self._debounce_handle.cancel()
        self._debounce_handle = loop.call_later(
            self.config.sync.debounce_seconds, self._fire_debounced
        )

    def _fire_debounced(self) -> None:
        self._debounce_handle = None
        self._spawn(self._run(self._issue("selection")))

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task[Any]:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        task.add_done_callback(_log_task_failure)
        return task

    # ── Fetching ─────────────────────────────────────────────────────────

    def _issue(self, reason: str) -> RequestTicket:
        self._sequence += 1
        selection = self._state.selection
        ticket = RequestTicket(
            sequence=self._sequence,
            selection=selection,
            query=encode_query(selection),
            reason=reason,
        )
        self._inflight[ticket.sequence] = ticket
        logger.debug("Issued fetch #%d (%s): %s", ticket.sequence, reason, ticket.query or "<all>")
        return ticket

    def _is_latest(self, ticket: RequestTicket) -> bool:
        return ticket.sequence == self._sequence

    async def _run(self, ticket: RequestTicket) -> None:
        self._publish(phase=SyncPhase.FETCHING)
        try:
            payload = await self._fetch_with_retry(ticket)
        except VizSyncError as exc:
            if not self._is_latest(ticket):
                logger.debug("Discarding failure of superseded fetch #%d", ticket.sequence)
                return
            logger.warning("Fetch #%d failed: %s", ticket.sequence, exc)
            self._publish(phase=SyncPhase.FAILED, error=str(exc))
            self._publish(phase=SyncPhase.IDLE)
            return
        finally:
            self._inflight.pop(ticket.sequence, None)

        if not self._is_latest(ticket):
            logger.debug("Discarding stale response of fetch #%d", ticket.sequence)
            return
        self._apply(payload, sequence=ticket.sequence)

    async def _fetch_with_retry(self, ticket: RequestTicket) -> DataResponse:
        retry = self.config.retry
        attempt = 1
        while True:
            try:
                return await asyncio.to_thread(self.client.fetch_data, ticket.query)
            except ClientError:
                raise
            except TransientError as exc:
                if attempt >= retry.max_attempts or not self._is_latest(ticket):
                    raise
                delay = retry.backoff_seconds * retry.backoff_factor ** (attempt - 1)
                logger.info(
                    "Fetch #%d attempt %d/%d failed (%s); retrying in %.2fs",
                    ticket.sequence, attempt, retry.max_attempts, exc, delay,
                )
                self._publish(phase=SyncPhase.RETRYING, error=str(exc))
                await asyncio.sleep(delay)
                if not self._is_latest(ticket):
                    raise
                self._publish(phase=SyncPhase.FETCHING)
                attempt += 1

    def _apply(self, payload: DataResponse, sequence: int | None = None) -> None:
        """Atomically replace records and filter options."""
        changes: dict[str, Any] = {
            "records": tuple(payload["data"]),
            "filter_options": payload["filters"],
            "error": None,
            "warning": None,
            "last_synced_at": datetime.now(timezone.utc),
        }
        if sequence is not None:
            changes["sequence"] = sequence

        if sequence is None and self._sequence in self._inflight:
            # Push arrived while the latest pull is still running; leave its phase alone.
            self._publish(**changes)
        else:
            self._publish(phase=SyncPhase.SUCCEEDED, **changes)
            self._publish(phase=SyncPhase.IDLE)
        logger.info(
            "Applied %d records (%s)",
            len(payload["data"]),
            f"fetch #{sequence}" if sequence is not None else "push",
        )

    # ── Background refresh ───────────────────────────────────────────────

    def _start_background(self) -> None:
        if self._background is not None:
            return
        mode = self.config.sync.refresh_mode
        if mode == "poll":
            self._background = asyncio.get_running_loop().create_task(self._poll_loop())
        elif mode == "push":
            self._background = asyncio.get_running_loop().create_task(self._push_loop())
        logger.debug("Background refresh mode: %s", mode)

    async def _poll_loop(self) -> None:
        interval = self.config.sync.poll_interval
        while True:
            await asyncio.sleep(interval)
            try:
                await self.refresh("poll")
            except Exception:
                logger.exception("Poll refresh failed; polling continues")

    async def _push_loop(self) -> None:
        url = self.config.sync.push_url or ""
        delay = self.config.sync.push_reconnect_seconds
        while True:
            try:
                async for message in self._push_source(url):
                    self.receive_push(message)
                logger.info("Push channel closed; reconnecting in %.1fs", delay)
            except TransientError as exc:
                logger.warning("Push channel error: %s; reconnecting in %.1fs", exc, delay)
            await asyncio.sleep(delay)

    def receive_push(self, message: str | bytes) -> None:
        """Apply one push frame exactly like a fetch success."""
        try:
            payload = parse_push_message(message)
        except ClientError as exc:
            logger.warning("Ignoring malformed push message: %s", exc)
            self._publish(error=str(exc))
            return
        self._apply(payload)

    # ── Shutdown ─────────────────────────────────────────────────────────

    async def drain(self) -> None:
        """Wait until no debounced trigger is pending and all fetches finished."""
        loop = asyncio.get_running_loop()
        while True:
            if self._debounce_handle is not None:
                await asyncio.sleep(max(0.0, self._debounce_handle.when() - loop.time()))
            elif self._tasks:
                await asyncio.gather(*list(self._tasks), return_exceptions=True)
            else:
                return

    async def close(self) -> None:
        """Cancel timers and background work, then close the HTTP session."""
        if self._debounce_handle is not None:
            self._debounce_handle.cancel()
            self._debounce_handle = None

        pending: list[asyncio.Task[Any]] = list(self._tasks)
        if self._background is not None:
            pending.append(self._background)
            self._background = None
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        self.client.close()
