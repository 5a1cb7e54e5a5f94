"""Outcome classification and the two gateway retry policies."""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, ClassVar, TypeVar

import httpx

from cidgraph.core.documents import DocumentSpec, validate_document
from cidgraph.core.exceptions import (
    ResolutionCancelledError,
    ResolutionError,
    ResolutionUnavailableError,
    SchemaValidationError,
    TransientNetworkError,
)
from cidgraph.core.models import GatewayEndpoint
from cidgraph.core.types import FailureCause, RetryClass
from cidgraph.gateway.client import FetchOutcome, GatewayClient

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT")
SleepFunc = Callable[[float], Awaitable[None]]

INDEFINITE_STATUSES = frozenset({429, 502, 504})


def classify_outcome(outcome: FetchOutcome) -> RetryClass:
    """Map one fetch outcome to the retry class that governs it."""
    if outcome.ok:
        return RetryClass.SUCCESS
    if outcome.error is not None:
        # timeouts, DNS, refused/reset connections, unreadable bodies
        return RetryClass.RETRY_INDEFINITELY
    status = outcome.status_code or 0
    if status in INDEFINITE_STATUSES:
        return RetryClass.RETRY_INDEFINITELY
    if status >= 500:
        return RetryClass.RETRY_LIMITED
    return RetryClass.FATAL


def diagnose_failure(error: BaseException | None) -> FailureCause | None:
    """Best-effort label for a transport error, for logs."""
    if error is None:
        return None
    if isinstance(error, httpx.ConnectTimeout):
        return FailureCause.CONNECTION_TIMEOUT
    if isinstance(error, httpx.TimeoutException):
        return FailureCause.TIMEOUT

    message = str(error).lower()
    if cause := error.__cause__ or error.__context__:
        message = f"{message} {cause}".lower()

    if any(s in message for s in ("enotfound", "name or service not known", "nodename nor servname", "name resolution")):
        return FailureCause.DNS_RESOLUTION_FAILED
    if "econnrefused" in message or "connection refused" in message:
        return FailureCause.CONNECTION_REFUSED
    if "etimedout" in message:
        return FailureCause.CONNECTION_TIMEOUT
    if "econnreset" in message or "connection reset" in message:
        return FailureCause.CONNECTION_RESET
    if "timeout" in message or "timed out" in message:
        return FailureCause.TIMEOUT
    if "abort" in message:
        return FailureCause.REQUEST_ABORTED
    return FailureCause.UNKNOWN_NETWORK_ERROR


@dataclass(frozen=True)
class Attempt:
    """One fetch plus its classification and, on success, the validated record."""

    outcome: FetchOutcome
    retry_class: RetryClass
    record: Any = None
    rejection: str | None = None

    @property
    def accepted(self) -> bool:
        return self.record is not None

    def log_fields(self, number: int) -> dict[str, Any]:
        fields: dict[str, Any] = {
            "cid": self.outcome.cid,
            "endpoint": self.outcome.endpoint.base_url,
            "attempt": number,
            "classification": self.retry_class.value,
        }
        if self.outcome.status_code is not None:
            fields["status"] = self.outcome.status_code
            fields["status_text"] = self.outcome.reason
        if self.outcome.error is not None:
            fields["error"] = str(self.outcome.error)
            fields["error_name"] = type(self.outcome.error).__name__
            fields["cause"] = diagnose_failure(self.outcome.error)
        if self.rejection is not None:
            fields["rejection"] = self.rejection
        return fields

    def as_error(self) -> ResolutionError:
        """Exception describing why this attempt did not produce a record."""
        if self.rejection is not None:
            return SchemaValidationError(self.rejection, self.outcome.cid)
        detail = str(self.outcome.error) if self.outcome.error else self.outcome.reason
        return TransientNetworkError(
            f"Gateway fetch failed: {detail}",
            cid=self.outcome.cid,
            endpoint=self.outcome.endpoint.base_url,
            status_code=self.outcome.status_code,
        )


class RetryPolicy(ABC):
    """
    Drives repeated fetches of one document over the ordered gateway list.

    A fetch only counts as successful once the document spec accepts the
    payload; a malformed payload is a failed attempt, never a crash.
    """

    NAME: ClassVar[str]

    def __init__(self, client: GatewayClient, *, sleep: SleepFunc = asyncio.sleep) -> None:
        self._client = client
        self._sleep = sleep

    @property
    def endpoints(self) -> tuple[GatewayEndpoint, ...]:
        return self._client.endpoints

    async def attempt(self, cid: str, endpoint: GatewayEndpoint, spec: DocumentSpec[Any]) -> Attempt:
        """Fetch once from one gateway and validate the payload."""
        outcome = await self._client.fetch(cid, endpoint)
        retry_class = classify_outcome(outcome)
        if retry_class != RetryClass.SUCCESS:
            return Attempt(outcome=outcome, retry_class=retry_class)

        validation = validate_document(spec, outcome.data)
        if not validation.ok:
            return Attempt(outcome=outcome, retry_class=retry_class, rejection=validation.reason)
        return Attempt(outcome=outcome, retry_class=retry_class, record=validation.record)

    @staticmethod
    def _check_stop(cid: str, spec: DocumentSpec[Any], stop: asyncio.Event | None) -> None:
        if stop is not None and stop.is_set():
            raise ResolutionCancelledError(f"Stopped fetching {spec.label}", cid)

    @abstractmethod
    async def run(
        self,
        cid: str,
        spec: DocumentSpec[RecordT],
        *,
        stop: asyncio.Event | None = None,
    ) -> RecordT:
        """Fetch and validate ``cid`` according to this policy."""
        ...


class InfiniteRetryPolicy(RetryPolicy):
    """
    Cycles through every gateway until a valid document arrives.

    Gateways are tried back to back; after each full pass the policy sleeps
    ``cycle_delay`` seconds and starts over. There is no attempt ceiling. The
    optional ``stop`` event is checked before every pass; once set the policy
    raises ResolutionCancelledError.

    ``max_validation_failures`` bounds only the retries caused by malformed
    payloads. It defaults to None, which keeps retrying them forever.
    """

    NAME: ClassVar[str] = "infinite"

    def __init__(
        self,
        client: GatewayClient,
        *,
        cycle_delay: float = 1.5,
        max_validation_failures: int | None = None,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        super().__init__(client, sleep=sleep)
        self.cycle_delay = cycle_delay
        self.max_validation_failures = max_validation_failures

    async def run(
        self,
        cid: str,
        spec: DocumentSpec[RecordT],
        *,
        stop: asyncio.Event | None = None,
    ) -> RecordT:
        total_attempts = 0
        validation_failures = 0

        while True:
            self._check_stop(cid, spec, stop)

            for endpoint in self.endpoints:
                total_attempts += 1
                attempt = await self.attempt(cid, endpoint, spec)

                if attempt.accepted:
                    if total_attempts > 1:
                        logger.info(
                            f"{spec.label} fetch succeeded after {total_attempts} attempts",
                            extra={"cid": cid, "endpoint": endpoint.base_url, "total_attempts": total_attempts},
                        )
                    return attempt.record

                if attempt.rejection is not None:
                    validation_failures += 1
                    logger.warning(f"{spec.label} validation failed", extra=attempt.log_fields(total_attempts))
                    if (
                        self.max_validation_failures is not None
                        and validation_failures >= self.max_validation_failures
                    ):
                        raise SchemaValidationError(
                            f"{spec.label} stayed malformed after {validation_failures} payloads",
                            cid,
                            {"rejection": attempt.rejection},
                        )
                elif attempt.retry_class == RetryClass.RETRY_INDEFINITELY:
                    logger.warning(
                        f"{spec.label} fetch failed with retriable error, will retry indefinitely",
                        extra=attempt.log_fields(total_attempts),
                    )
                else:
                    logger.warning(
                        f"{spec.label} fetch failed with non-retriable error",
                        extra=attempt.log_fields(total_attempts),
                    )

            logger.info(
                f"Completed full gateway cycle ({total_attempts} attempts), waiting before retry",
                extra={"cid": cid, "kind": spec.kind.value, "total_attempts": total_attempts},
            )
            await self._sleep(self.cycle_delay)


class LimitedRetryPolicy(RetryPolicy):
    """
    Tries each gateway up to ``max_attempts`` times with exponential backoff.

    Every failed attempt is followed by a ``base_delay * 2**n`` second pause
    (1, 2, 4 with the defaults). A FATAL status (4xx) abandons the current
    gateway at once. When every gateway is exhausted the policy raises
    ResolutionUnavailableError.
    """

    NAME: ClassVar[str] = "limited"

    def __init__(
        self,
        client: GatewayClient,
        *,
        max_attempts: int = 3,
        base_delay: float = 1.0,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        super().__init__(client, sleep=sleep)
        self.max_attempts = max_attempts
        self.base_delay = base_delay

    def backoff(self, attempt: int) -> float:
        """Delay after the zero-based ``attempt`` on one gateway."""
        return self.base_delay * 2**attempt

    async def run(
        self,
        cid: str,
        spec: DocumentSpec[RecordT],
        *,
        stop: asyncio.Event | None = None,
    ) -> RecordT:
        total_attempts = 0
        last: Attempt | None = None

        for endpoint in self.endpoints:
            for attempt_no in range(self.max_attempts):
                self._check_stop(cid, spec, stop)
                total_attempts += 1
                last = await self.attempt(cid, endpoint, spec)

                if last.accepted:
                    if attempt_no > 0:
                        logger.info(
                            f"{spec.label} fetch succeeded on attempt {attempt_no + 1}",
                            extra={"cid": cid, "endpoint": endpoint.base_url},
                        )
                    return last.record

                fields = last.log_fields(attempt_no + 1)
                fields["max_attempts"] = self.max_attempts
                if last.rejection is not None:
                    logger.warning(f"{spec.label} validation failed", extra=fields)
                else:
                    logger.warning(f"{spec.label} fetch failed", extra=fields)

                if last.retry_class == RetryClass.FATAL:
                    break
                await self._sleep(self.backoff(attempt_no))

        logger.error(
            f"Unable to fetch {spec.label} from all gateways",
            extra={"cid": cid, "total_attempts": total_attempts},
        )
        error = ResolutionUnavailableError(
            f"Failed to fetch {spec.label} for CID: {cid}",
            cid=cid,
            attempts=total_attempts,
        )
        if last is not None:
            raise error from last.as_error()
        raise error
