"""Job change watcher on top of Nomad's event stream.

Subscribes to every Job and Deployment topic across all namespaces and
turns each relevant event into the name of the job that needs another
look.  Heartbeats and unrelated event types are dropped; an event whose
payload cannot be decoded is skipped without ending the subscription.

Delivery order within one subscription matches stream order.  The
subscription ends only when the caller sets the ``stop`` event.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any

from nomadops.errors import ClusterQueryError, EventDecodeError, SubscriptionError
from nomadops.models.events import ClusterEvent, EventBatch, EventTopic, EventType
from nomadops.nomad.client import EventStream, NomadClient, RequestOptions
from nomadops.observability.logging import get_logger

_log = get_logger("collector.job_watcher")

JobChangeCallback = Callable[[str], Awaitable[None] | None]

_TOPICS: dict[str, list[str]] = {
    EventTopic.JOB: ["*"],
    EventTopic.DEPLOYMENT: ["*"],
}

_INITIAL_BACKOFF = 1.0


def job_name_from_event(raw: dict[str, Any]) -> str | None:
    """Return the job affected by *raw*, or None for an ignored event type.

    Raises:
        EventDecodeError: a relevant event carries an unusable payload.
    """
    try:
        event = ClusterEvent.from_api(raw)
    except (TypeError, ValueError) as exc:
        raise EventDecodeError(f"malformed event: {exc}") from exc

    if event.type in (EventType.JOB_REGISTERED, EventType.JOB_DEREGISTERED):
        job = event.payload.get("Job")
        if not isinstance(job, dict) or not job.get("ID"):
            raise EventDecodeError(f"{event.type} event without a job payload")
        return str(job["ID"])

    if event.type == EventType.DEPLOYMENT_STATUS_UPDATE:
        deployment = event.payload.get("Deployment")
        if not isinstance(deployment, dict) or not deployment.get("JobID"):
            raise EventDecodeError(f"{event.type} event without a deployment payload")
        return str(deployment["JobID"])

    return None


def job_names_from_batch(batch: EventBatch) -> list[str]:
    """Extract affected job names from *batch* in stream order."""
    if batch.is_heartbeat:
        return []
    names: list[str] = []
    for raw in batch.events:
        _log.debug("event_received", type=raw.get("Type"), index=raw.get("Index"))
        try:
            name = job_name_from_event(raw)
        except EventDecodeError as exc:
            _log.debug("event_skipped", error=str(exc))
            continue
        if name:
            names.append(name)
    return names


class JobChangeWatcher:
    """Feeds job names from the event stream to a callback.

    Args:
        client:                Nomad client used to list jobs and open the stream.
        reconnect_max_backoff: Ceiling, in seconds, for the delay between
                               attempts to re-open a stream that dropped.
    """

    def __init__(self, client: NomadClient, reconnect_max_backoff: float = 30.0) -> None:
        self._client = client
        self._max_backoff = reconnect_max_backoff
        self._last_index = 0
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    @property
    def last_index(self) -> int:
        return self._last_index

    async def _start_index(self) -> int:
        # A cheap listing tells us where the stream currently is; without it
        # we start from the beginning of the event buffer.
        try:
            _, index = await self._client.list_jobs(RequestOptions(namespace="*"))
        except ClusterQueryError as exc:
            _log.debug("start_index_unavailable", error=str(exc))
            return 0
        return index

    async def subscribe(self, callback: JobChangeCallback, stop: asyncio.Event) -> asyncio.Task[None]:
        """Open the stream and start delivering job names to *callback*.

        Returns the background task running the subscription.

        Raises:
            SubscriptionError: the initial stream could not be established.
        """
        index = await self._start_index()
        stream = await self._client.open_event_stream(_TOPICS, index=index, namespace="*")
        self._last_index = index
        self._running = True
        _log.info("job_change_subscription_started", index=index)
        return asyncio.create_task(self._run(stream, callback, stop), name="job-change-watcher")

    async def changes(self, stop: asyncio.Event, maxsize: int = 256) -> AsyncIterator[str]:
        """Iterate affected job names until *stop* is set.

        Names are buffered in a bounded queue; a slow consumer pauses the
        stream instead of growing memory.
        """
        queue: asyncio.Queue[str] = asyncio.Queue(maxsize=maxsize)
        task = await self.subscribe(queue.put, stop)
        stopper = asyncio.create_task(stop.wait())
        try:
            while not stop.is_set():
                getter = asyncio.create_task(queue.get())
                await asyncio.wait({getter, stopper}, return_when=asyncio.FIRST_COMPLETED)
                if not getter.done():
                    getter.cancel()
                    await asyncio.gather(getter, return_exceptions=True)
                    break
                yield getter.result()
        finally:
            stopper.cancel()
            await asyncio.gather(stopper, return_exceptions=True)
            if not task.done():
                task.cancel()
                await asyncio.gather(task, return_exceptions=True)

    async def _run(self, stream: EventStream, callback: JobChangeCallback, stop: asyncio.Event) -> None:
        current: EventStream | None = stream
        try:
            while current is not None:
                await self._consume_until_stopped(current, callback, stop)
                self._last_index = max(self._last_index, current.last_index)
                await current.aclose()
                current = None
                if stop.is_set():
                    break
                current = await self._reopen(stop)
        finally:
            if current is not None:
                await current.aclose()
            self._running = False
            _log.info("job_change_subscription_stopped", index=self._last_index)

    async def _consume_until_stopped(
        self,
        stream: EventStream,
        callback: JobChangeCallback,
        stop: asyncio.Event,
    ) -> None:
        pump = asyncio.create_task(self._pump(stream, callback, stop))
        stopper = asyncio.create_task(stop.wait())
        try:
            await asyncio.wait({pump, stopper}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (pump, stopper):
                task.cancel()
            await asyncio.gather(pump, stopper, return_exceptions=True)

        if not pump.cancelled() and pump.exception() is not None:
            _log.warning("event_stream_interrupted", error=str(pump.exception()), index=stream.last_index)
        elif not stop.is_set():
            _log.warning("event_stream_closed", index=stream.last_index)

    async def _pump(self, stream: EventStream, callback: JobChangeCallback, stop: asyncio.Event) -> None:
        async for batch in stream:
            if stop.is_set():
                return
            for name in job_names_from_batch(batch):
                if stop.is_set():
                    return
                await self._deliver(callback, name)
            self._last_index = max(self._last_index, stream.last_index)

    async def _deliver(self, callback: JobChangeCallback, job_name: str) -> None:
        try:
            result = callback(job_name)
            if inspect.isawaitable(result):
                await result
        except Exception as exc:
            _log.error("job_change_callback_failed", job_name=job_name, error=str(exc))

    async def _reopen(self, stop: asyncio.Event) -> EventStream | None:
        """Re-open the stream from the last delivered index, backing off between attempts."""
        delay = _INITIAL_BACKOFF
        while not stop.is_set():
            try:
                await asyncio.wait_for(stop.wait(), timeout=delay)
                return None
            except TimeoutError:
                pass
            try:
                stream = await self._client.open_event_stream(_TOPICS, index=self._last_index, namespace="*")
            except SubscriptionError as exc:
                _log.warning("event_stream_reopen_failed", error=str(exc), retry_in=min(delay * 2, self._max_backoff))
                delay = min(delay * 2, self._max_backoff)
                continue
            _log.info("event_stream_reopened", index=self._last_index)
            return stream
        return None
