"""Create-and-poll materialization of external resources."""

import asyncio
import logging
from datetime import UTC, datetime

from ..config import ResourceSettings
from ..domain.enums import ResourceKind, ResourceState
from ..domain.interfaces import ResourceProvider
from ..domain.models import ResourceHandle
from ..exceptions import ResourceCreationError, ResourceTimeout, WorkflowEngineError
from ..execution.retry import RetryPolicy, call_with_retry, is_retryable

logger = logging.getLogger(__name__)


class ResourceBinder:
    """Resolves source references into ready resource handles.

    Creation is submitted to the provider, then its status is polled at
    ``poll_interval_seconds`` until it is ready or ``max_wait_seconds``
    elapse. A binder is idempotent: once a source reference is ready, every
    later ``materialize`` call returns the same handle, and concurrent calls
    for the same reference share a single creation.

    Connection errors from the provider are transient: creation is retried
    with ``create_retry_policy`` and failed status checks back off and poll
    again until the deadline. Any other provider error surfaces as a
    ResourceCreationError and leaves the cached handle failed.
    """

    def __init__(
        self,
        provider: ResourceProvider,
        settings: ResourceSettings | None = None,
        *,
        poll_interval_seconds: float | None = None,
        max_wait_seconds: float | None = None,
        create_retry_policy: RetryPolicy | None = None,
    ):
        settings = settings or ResourceSettings()
        self.provider = provider
        self.poll_interval_seconds = (
            poll_interval_seconds
            if poll_interval_seconds is not None
            else settings.POLL_INTERVAL_SECONDS
        )
        self.max_wait_seconds = (
            max_wait_seconds if max_wait_seconds is not None else settings.MAX_WAIT_SECONDS
        )
        self.create_retry_policy = create_retry_policy or RetryPolicy(
            initial_interval=settings.CREATE_RETRY_INITIAL_INTERVAL_SECONDS,
            maximum_attempts=settings.CREATE_RETRY_ATTEMPTS,
        )
        self._handles: dict[str, ResourceHandle] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    @property
    def handles(self) -> dict[str, ResourceHandle]:
        """Last known handle per source reference."""
        return dict(self._handles)

    def get(self, source_ref: str) -> ResourceHandle | None:
        return self._handles.get(source_ref)

    async def materialize(
        self, source_ref: str, kind: ResourceKind = ResourceKind.VECTOR_STORE
    ) -> ResourceHandle:
        """Return a ready handle for ``source_ref``, creating it if needed.

        Raises:
            ResourceCreationError: If the provider rejects creation or reports failure
            ResourceTimeout: If the resource is not ready within ``max_wait_seconds``
        """
        cached = self._handles.get(source_ref)
        if cached is not None and cached.is_ready:
            return cached

        lock = self._locks.setdefault(source_ref, asyncio.Lock())
        async with lock:
            cached = self._handles.get(source_ref)
            if cached is not None and cached.is_ready:
                return cached

            resource_id = await call_with_retry(
                lambda: self._create(source_ref),
                self.create_retry_policy,
                description=f"Creating resource for {source_ref}",
            )
            handle = ResourceHandle(id=resource_id, source_ref=source_ref, kind=kind)
            self._handles[source_ref] = handle
            logger.info(f"Submitted resource {resource_id} for {source_ref}, waiting for readiness")

            handle = await self._wait_until_ready(handle)
            self._handles[source_ref] = handle
            return handle

    async def _create(self, source_ref: str) -> str:
        try:
            return await self.provider.create(source_ref)
        except WorkflowEngineError:
            raise
        except Exception as e:
            raise ResourceCreationError(
                source_ref, f"{type(e).__name__}: {e}", retryable=_is_transient(e)
            ) from e

    async def _wait_until_ready(self, handle: ResourceHandle) -> ResourceHandle:
        loop = asyncio.get_running_loop()
        started = loop.time()
        deadline = started + self.max_wait_seconds
        failed_polls = 0

        while True:
            try:
                state = await self.provider.status(handle.id)
            except Exception as e:
                if not _is_transient(e):
                    self._mark_failed(handle, f"status check failed: {e}")
                    if isinstance(e, WorkflowEngineError):
                        raise
                    raise ResourceCreationError(
                        handle.source_ref, f"status check failed ({type(e).__name__}): {e}"
                    ) from e
                failed_polls += 1
                delay = max(
                    self.poll_interval_seconds, self.create_retry_policy.delay_for(failed_polls)
                )
                logger.warning(
                    f"Status check for {handle.id} failed ({failed_polls} in a row), "
                    f"retrying in {delay:.2f}s: {e}"
                )
            else:
                failed_polls = 0
                delay = self.poll_interval_seconds

                if state == ResourceState.READY:
                    logger.info(f"Resource {handle.id} for {handle.source_ref} is ready")
                    return handle.model_copy(
                        update={"state": ResourceState.READY, "ready_at": datetime.now(UTC)}
                    )

                if state == ResourceState.FAILED:
                    reason = "provider reported failure"
                    self._mark_failed(handle, reason)
                    raise ResourceCreationError(handle.source_ref, reason)

            remaining = deadline - loop.time()
            if remaining <= 0:
                self._mark_failed(handle, "timed out")
                raise ResourceTimeout(handle.source_ref, loop.time() - started)

            await asyncio.sleep(min(delay, remaining))

    def _mark_failed(self, handle: ResourceHandle, reason: str) -> None:
        self._handles[handle.source_ref] = handle.model_copy(
            update={"state": ResourceState.FAILED, "error": reason}
        )


def _is_transient(error: BaseException) -> bool:
    """Connection-level failures and errors flagged ``retryable`` are worth retrying."""
    return is_retryable(error) or isinstance(error, OSError)
