"""Background request dispatch returning futures to the scheduling thread.

Requests run on a small worker pool; their results are only ever consumed by
the scheduler thread, which polls ``PendingRequest.done()`` on each tick.
"""

import logging
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from datetime import date
from enum import StrEnum

import httpx

from weathercore.ingest.met_client import MetClient, MetClientError
from weathercore.models.context import QueryContext

logger = logging.getLogger(__name__)


class RequestCategory(StrEnum):
    ASTRO = "astro"
    FORECAST = "forecast"


class FailureKind(StrEnum):
    TRANSPORT = "transport"
    HTTP_STATUS = "http_status"
    TIMEOUT = "timeout"


@dataclass(frozen=True)
class FetchResult:
    body: bytes | None = None
    failure: FailureKind | None = None
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.failure is None and self.body is not None


@dataclass(frozen=True)
class PendingRequest:
    category: RequestCategory
    context: QueryContext
    future: Future

    def done(self) -> bool:
        return self.future.done()

    def result(self) -> FetchResult:
        return self.future.result()


def run_request(call: Callable[[], bytes]) -> FetchResult:
    """Execute a blocking client call and fold any error into a FetchResult."""
    try:
        return FetchResult(body=call())
    except httpx.TimeoutException as e:
        return FetchResult(failure=FailureKind.TIMEOUT, detail=str(e))
    except MetClientError as e:
        kind = FailureKind.HTTP_STATUS if e.status_code else FailureKind.TRANSPORT
        return FetchResult(failure=kind, detail=str(e))
    except Exception as e:
        logger.exception("Unexpected error during request")
        return FetchResult(failure=FailureKind.TRANSPORT, detail=str(e))


class RequestDispatcher:
    def __init__(self, client: MetClient, max_workers: int = 2):
        self.client = client
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="weathercore-http"
        )

    def submit_forecast(self, ctx: QueryContext) -> PendingRequest:
        future = self._executor.submit(
            run_request, lambda: self.client.fetch_forecast(ctx)
        )
        return PendingRequest(RequestCategory.FORECAST, ctx, future)

    def submit_astro(self, ctx: QueryContext, day: date) -> PendingRequest:
        future = self._executor.submit(
            run_request, lambda: self.client.fetch_astro(ctx, day)
        )
        return PendingRequest(RequestCategory.ASTRO, ctx, future)

    def shutdown(self, wait: bool = False) -> None:
        self._executor.shutdown(wait=wait, cancel_futures=True)
