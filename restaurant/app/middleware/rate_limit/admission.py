"""Admission control for write endpoints.

The AdmissionController is built once per application and owns the rate
limit store. HTTP handlers call ``admit`` before doing any work and
``release`` after a successful operation on endpoints whose policy does not
count successful requests.
"""

import asyncio
import time
from typing import Callable, Iterable, Optional, Tuple

from restaurant.app.core.logging import get_log_context, get_logger
from restaurant.app.middleware.rate_limit.client import RequestMeta, identify
from restaurant.app.middleware.rate_limit.models import (
    AdmissionResult,
    Allowed,
    ClientKey,
    RateLimitPolicy,
    RateLimitStats,
    RateLimitStatus,
    Rejected,
    ReleaseToken,
    ms_to_iso,
)
from restaurant.app.middleware.rate_limit.policies import DDOS_ENDPOINT, PolicyTable
from restaurant.app.middleware.rate_limit.store import InMemoryStore, RateLimitStore, create_store
from restaurant.app.middleware.rate_limit.window import WindowCounter

logger = get_logger(__name__)

DEFAULT_CLEANUP_INTERVAL = 5 * 60.0


def now_ms() -> int:
    return int(time.time() * 1000)


class AdmissionController:
    """Sliding-window admission control keyed by endpoint and client.

    Usage:
        controller = AdmissionController()
        await controller.start()

        result = await controller.admit("reservations", RequestMeta(source_ip="1.2.3.4"))
        if not result.allowed:
            ...  # respond 429 with result.to_response()
        ...
        await controller.release(result.release_token)

        await controller.shutdown()
    """

    def __init__(
        self,
        store: Optional[RateLimitStore] = None,
        policies: Optional[PolicyTable] = None,
        clock: Callable[[], int] = now_ms,
        whitelist: Iterable[str] = (),
        fail_closed: bool = False,
        cleanup_interval: float = DEFAULT_CLEANUP_INTERVAL,
        enabled: bool = True,
    ):
        """Initialize the controller.

        Args:
            store: Timestamp store (in-memory when omitted)
            policies: Endpoint policy table (defaults when omitted)
            clock: Returns the current time in epoch milliseconds
            whitelist: Client identifiers that bypass rate limiting
            fail_closed: Reject instead of admit when the store fails
            cleanup_interval: Seconds between background sweeps
            enabled: When False every request is admitted without being counted
        """
        self.store = store if store is not None else InMemoryStore()
        self.policies = policies if policies is not None else PolicyTable()
        self.counter = WindowCounter(self.store)
        self._clock = clock
        self._whitelist = frozenset(whitelist)
        self._fail_closed = fail_closed
        self._cleanup_interval = cleanup_interval
        self.enabled = enabled
        self._task: Optional[asyncio.Task] = None
        self._stop_event: Optional[asyncio.Event] = None

    @classmethod
    def from_settings(cls, settings) -> "AdmissionController":
        """Build a controller from application settings."""
        return cls(
            store=create_store(settings.redis_enabled, settings.redis_url, settings.redis_key_prefix),
            policies=PolicyTable.from_overrides(settings.rate_limit_overrides),
            whitelist=settings.rate_limit_whitelist,
            fail_closed=settings.rate_limit_fail_closed,
            cleanup_interval=float(settings.rate_limit_cleanup_interval_seconds),
            enabled=settings.rate_limit_enabled,
        )

    @staticmethod
    def client_key(endpoint: str, meta: RequestMeta, user_id: Optional[str] = None) -> Tuple[str, str]:
        """Return ``(identifier, store key)`` for a request."""
        identifier = identify(meta, user_id=user_id)
        return identifier, str(ClientKey(endpoint, identifier))

    async def admit(
        self,
        endpoint: str,
        meta: RequestMeta,
        user_id: Optional[str] = None,
    ) -> AdmissionResult:
        """Decide whether a request to endpoint may proceed.

        Args:
            endpoint: Logical endpoint name; unknown names use the general policy
            meta: Address sources of the request
            user_id: Authenticated user, rate limited as ``user:<id>``

        Returns:
            Allowed (with a release token) or Rejected
        """
        policy = self.policies.resolve(endpoint)
        identifier, key = self.client_key(endpoint, meta, user_id)
        return await self._evaluate(endpoint, identifier, key, policy)

    async def ddos_check(self, meta: RequestMeta) -> AdmissionResult:
        """Apply the always-on per-client flood guard."""
        policy = self.policies.ddos
        identifier, key = self.client_key(DDOS_ENDPOINT, meta)
        result = await self._evaluate(DDOS_ENDPOINT, identifier, key, policy)
        if isinstance(result, Allowed):
            result.release_token = None
        return result

    async def ddos_guard(self, meta: RequestMeta) -> bool:
        """True when the flood guard lets the request through."""
        return (await self.ddos_check(meta)).allowed

    async def _evaluate(
        self,
        endpoint: str,
        identifier: str,
        key: str,
        policy: RateLimitPolicy,
    ) -> AdmissionResult:
        now = self._clock()

        if not self.enabled or identifier in self._whitelist:
            return Allowed(
                limit=policy.max_requests,
                remaining=policy.max_requests,
                reset_time=now + policy.window_ms,
                window_ms=policy.window_ms,
            )

        try:
            decision = await self.counter.hit(key, policy, now)
        except Exception as e:
            # The limiter must never take the site down with it.
            logger.error(
                f"Rate limit store failure for {key}: {e}",
                exc_info=True,
                extra=get_log_context(client_id=identifier, endpoint=endpoint),
            )
            return self._on_store_failure(policy, now)

        if not decision.allowed:
            rejection = Rejected.from_decision(decision, policy, now)
            logger.warning(
                f"Rate limit exceeded for {identifier} on {endpoint}",
                extra=get_log_context(
                    client_id=identifier,
                    endpoint=endpoint,
                    request_count=decision.current_requests,
                    max_requests=policy.max_requests,
                    window_ms=policy.window_ms,
                    retry_after=rejection.retry_after_seconds,
                ),
            )
            return rejection

        return Allowed(
            limit=decision.limit,
            remaining=decision.remaining,
            reset_time=decision.reset_time,
            window_ms=policy.window_ms,
            release_token=ReleaseToken(
                key=key,
                timestamp=now,
                skip_successful_requests=policy.skip_successful_requests,
            ),
        )

    def _on_store_failure(self, policy: RateLimitPolicy, now: int) -> AdmissionResult:
        """Apply the configured fail-open / fail-closed policy."""
        if self._fail_closed:
            logger.warning("Rate limiting fail-closed triggered. Request denied.")
            return Rejected(
                message=policy.message,
                retry_after_seconds=max(1, policy.window_ms // 1000),
                limit=policy.max_requests,
                reset_time=now + policy.window_ms,
                window_ms=policy.window_ms,
            )

        logger.warning("Rate limiting fail-open triggered. Request allowed without rate limit check.")
        return Allowed(
            limit=policy.max_requests,
            remaining=policy.max_requests,
            reset_time=now + policy.window_ms,
            window_ms=policy.window_ms,
            fail_open=True,
        )

    async def release(self, token: Optional[ReleaseToken]) -> bool:
        """Give back the slot of a request that succeeded.

        Only applies when the policy skips successful requests. Removes the
        exact timestamp recorded at admission, not simply the latest one.

        Returns:
            True if a timestamp was removed
        """
        if token is None or not token.skip_successful_requests:
            return False
        try:
            return await self.counter.release(token.key, token.timestamp)
        except Exception as e:
            logger.error(f"Error removing successful rate limit entry for {token.key}: {e}")
            return False

    async def status(
        self,
        endpoint: str,
        meta: Optional[RequestMeta] = None,
        identifier: Optional[str] = None,
    ) -> RateLimitStatus:
        """Report a client's standing against an endpoint without recording a hit."""
        policy = self.policies.resolve(endpoint)
        if identifier is None:
            identifier = identify(meta or RequestMeta())
        key = str(ClientKey(endpoint, identifier))
        decision = await self.counter.check(key, policy, self._clock())
        return RateLimitStatus(
            endpoint=endpoint,
            client_id=identifier,
            allowed=decision.allowed,
            remaining=decision.remaining,
            reset_time=ms_to_iso(decision.reset_time),
            window_ms=policy.window_ms,
            max_requests=policy.max_requests,
            current_requests=decision.current_requests,
        )

    async def reset(self, identifier: str, endpoint: str) -> None:
        """Clear the record of one client on one endpoint."""
        await self.store.delete(str(ClientKey(endpoint, identifier)))
        logger.info(f"Rate limit reset for {identifier} on {endpoint}")

    async def stats(self) -> RateLimitStats:
        """Aggregate counts over the whole store."""
        snapshot = await self.store.items()
        stats = RateLimitStats(store_size=len(snapshot))
        clients: set[str] = set()
        endpoint_clients: dict[str, set[str]] = {}

        for raw_key, timestamps in snapshot.items():
            key = ClientKey.parse(raw_key)
            clients.add(key.identifier)
            endpoint_clients.setdefault(key.endpoint, set()).add(key.identifier)
            entry = stats.endpoint_stats.setdefault(key.endpoint, {"total_requests": 0})
            entry["total_requests"] += len(timestamps)
            stats.total_requests += len(timestamps)

        for endpoint, ids in endpoint_clients.items():
            stats.endpoint_stats[endpoint]["unique_clients"] = len(ids)
        stats.total_clients = len(clients)
        return stats

    async def cleanup(self) -> int:
        """Sweep expired timestamps and delete empty keys.

        Returns:
            Number of keys deleted
        """
        removed = await self.counter.sweep(self.policies.window_for, self._clock())
        logger.info(f"Cleaned up {removed} expired rate limit entries")
        return removed

    async def start(self) -> None:
        """Start the background sweep task on the running event loop."""
        if self._task is not None and not self._task.done():
            logger.debug("Rate limit cleanup already running")
            return

        # Created per start so it belongs to the running loop.
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._run_cleanup(self._stop_event))
        logger.info(f"Rate limit cleanup started (interval: {self._cleanup_interval}s)")

    async def stop(self) -> None:
        """Stop the background sweep task.

        A task that already ended with an error is logged, not re-raised, so
        shutdown always completes.
        """
        task, self._task = self._task, None
        if task is None:
            return

        if self._stop_event is not None:
            self._stop_event.set()
        try:
            await asyncio.wait_for(task, timeout=5.0)
        except asyncio.TimeoutError:
            logger.warning("Rate limit cleanup did not stop gracefully, cancelling")
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        except asyncio.CancelledError:
            if not task.cancelled():
                raise
        except Exception as e:
            logger.error(f"Rate limit cleanup task failed: {e}")
        finally:
            self._stop_event = None
            logger.info("Rate limit cleanup stopped")

    @property
    def running(self) -> bool:
        return self._task is not None

    async def shutdown(self) -> None:
        """Stop the sweep and drop all counters."""
        await self.stop()
        try:
            await self.store.clear()
            await self.store.close()
        except Exception as e:
            logger.error(f"Error closing rate limit store: {e}")
        logger.info("Rate limiting system shut down")

    async def _run_cleanup(self, stop_event: asyncio.Event) -> None:
        while not stop_event.is_set():
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=self._cleanup_interval)
            except asyncio.TimeoutError:
                pass
            else:
                break

            try:
                await self.cleanup()
            except Exception as e:
                logger.error(f"Error during rate limit cleanup: {e}")
