"""Feed acquisition through an ordered sequence of request disguises."""

from __future__ import annotations

import logging
from typing import Callable, List, Optional, Sequence, Tuple

from . import config_constants, downloader, strategies
from .config import Config
from .exceptions import FeedFetchError
from .models import FeedRequest, FetchOutcome, FetchResult, StrategyAttempt

logger = logging.getLogger(__name__)

PLACEHOLDER_FEED_XML = config_constants.PLACEHOLDER_FEED_XML

RequestFn = Callable[[StrategyAttempt], FetchOutcome]


def _describe(outcome: FetchOutcome) -> str:
    if outcome.transport_failed:
        return f"failed ({outcome.error or outcome.reason})"
    return str(outcome.status_code)


class FetchOrchestrator:
    """Fetch feed text, escalating through request disguises until one works.

    Strategies run strictly one after another. Each is tried only when its
    trigger accepts the outcome of the last direct attempt, so a request makes
    at most one attempt per strategy and stops escalating as soon as a
    direct attempt succeeds.

    The orchestrator holds no mutable state; one instance may serve
    concurrent requests.

    Example:
        >>> orchestrator = FetchOrchestrator(Config())
        >>> result = orchestrator.fetch(FeedRequest("https://example.com/feed.xml"))
        >>> result.degraded
        False
    """

    def __init__(
        self,
        cfg: Optional[Config] = None,
        *,
        request_fn: Optional[RequestFn] = None,
        strategy_list: Optional[Sequence[strategies.Strategy]] = None,
    ) -> None:
        self.cfg = cfg or Config()
        self._request = request_fn or downloader.perform_request
        self._strategies = tuple(strategy_list or strategies.DEFAULT_STRATEGIES)

    @property
    def strategy_ids(self) -> Tuple[str, ...]:
        return tuple(strategy.strategy_id for strategy in self._strategies)

    def _run(self, attempt: StrategyAttempt, request: FeedRequest) -> FetchOutcome:
        outcome = self._request(attempt)
        logger.info("Strategy %s for %s: %s", attempt.strategy_id, request.url, _describe(outcome))
        return outcome

    def _relay_accepts(self, outcome: FetchOutcome) -> bool:
        body = outcome.body or ""
        return outcome.ok and len(body) > self.cfg.relay_min_body_length

    def fetch(self, request: FeedRequest) -> FetchResult:
        """Fetch a feed, degrading persistent 204 responses to a placeholder feed.

        Args:
            request: Feed URL and optional Referer hint

        Returns:
            FetchResult with the text to parse and every attempt made

        Raises:
            FeedFetchError: If the last direct attempt ended in a non-success
                status other than 204, or failed at the transport level, and the
                relay did not produce acceptable content.
        """
        logger.debug("Fetching feed %s (referer=%s)", request.url, request.referer)
        attempts: List[FetchOutcome] = []
        last: Optional[FetchOutcome] = None

        for strategy in self._strategies:
            if not strategy.applies(last, request, self.cfg):
                continue
            outcome = self._run(strategy.build(request, self.cfg), request)
            attempts.append(outcome)

            if strategy.is_relay:
                if self._relay_accepts(outcome):
                    logger.info(
                        "Relay accepted for %s (%d characters)",
                        request.url,
                        len(outcome.body or ""),
                    )
                    return FetchResult(
                        text=outcome.body or "", outcome=outcome, attempts=tuple(attempts)
                    )
                logger.info("Relay rejected for %s: %s", request.url, _describe(outcome))
                continue
            last = outcome

        if last is None:
            raise FeedFetchError(None, "no fetch strategy applied", url=request.url)

        logger.info("Final result for %s: %s", request.url, _describe(last))
        if last.status_code == strategies.STATUS_NO_CONTENT:
            logger.warning("Persistent 204 for %s; returning empty placeholder feed", request.url)
            return FetchResult(
                text=PLACEHOLDER_FEED_XML, outcome=last, attempts=tuple(attempts), degraded=True
            )
        if last.ok:
            logger.debug("Fetched %s (%d characters)", request.url, len(last.body or ""))
            return FetchResult(text=last.body or "", outcome=last, attempts=tuple(attempts))
        if last.transport_failed:
            raise FeedFetchError(None, last.error or last.reason, url=request.url)
        raise FeedFetchError(last.status_code, last.reason, url=request.url)

    def fetch_direct(self, url: str) -> str:
        """Single attempt with the browser disguise and no fallbacks.

        Raises:
            FeedFetchError: On any non-success status or transport failure
        """
        attempt = StrategyAttempt(
            strategy_id="direct",
            url=url,
            headers=strategies.browser_headers(self.cfg, None),
            referer=None,
            timeout_seconds=self.cfg.timeout,
        )
        outcome = self._run(attempt, FeedRequest(url=url))
        if outcome.transport_failed:
            raise FeedFetchError(None, outcome.error or outcome.reason, url=url)
        if not (outcome.status_code is not None and 200 <= outcome.status_code < 300):
            raise FeedFetchError(outcome.status_code, outcome.reason, url=url)
        return outcome.body or ""
