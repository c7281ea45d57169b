"""Ordered request disguises tried by the fetch orchestrator.

Each strategy pairs a trigger predicate with a builder. The trigger sees the
outcome of the most recent direct attempt; when it is false the strategy is
skipped. Cheaper and more trustworthy disguises come first, the public relay
comes last.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple
from urllib.parse import quote, urlparse

from . import config_constants
from .config import Config
from .models import FeedRequest, FetchOutcome, StrategyAttempt

STATUS_NO_CONTENT = 204
STATUS_FORBIDDEN = 403
DISQUALIFYING_STATUSES = frozenset({STATUS_NO_CONTENT, STATUS_FORBIDDEN})

PRIMARY = "primary"
ALTERNATE_REFERER = "alternate-referer"
NO_REFERER = "no-referer"
INSECURE_REFERER = "insecure-referer"
MOBILE_CLIENT = "mobile-client"
RELAY = "relay"

# Characters encodeURIComponent leaves alone
_URI_COMPONENT_SAFE = "-_.!~*'()"

Trigger = Callable[[Optional[FetchOutcome], FeedRequest, Config], bool]
Builder = Callable[[FeedRequest, Config], StrategyAttempt]


@dataclass(frozen=True)
class Strategy:
    """A request disguise and the condition under which it is tried.

    Attributes:
        strategy_id: Stable identifier used in logs and FetchOutcome.
        trigger: Predicate over (last direct outcome, request, config); the
            outcome is None only for the first strategy.
        build: Builds the attempt to send.
        is_relay: Relay outcomes are validated separately and never replace
            the last direct outcome.
    """

    strategy_id: str
    trigger: Trigger
    build: Builder
    is_relay: bool = False

    def applies(self, last: Optional[FetchOutcome], request: FeedRequest, cfg: Config) -> bool:
        return self.trigger(last, request, cfg)


def browser_headers(cfg: Config, referer: Optional[str]) -> Dict[str, str]:
    headers = {
        "User-Agent": cfg.user_agent,
        "Accept": config_constants.DEFAULT_ACCEPT,
        "Accept-Language": config_constants.DEFAULT_ACCEPT_LANGUAGE,
        "Cache-Control": "no-cache",
        "Pragma": "no-cache",
    }
    if referer:
        headers["Referer"] = referer
    return headers


def mobile_headers(cfg: Config, referer: Optional[str]) -> Dict[str, str]:
    headers = {
        "User-Agent": cfg.mobile_user_agent,
        "Accept": config_constants.MOBILE_ACCEPT,
    }
    if referer:
        headers["Referer"] = referer
    return headers


def is_blocking_host(url: str, cfg: Config) -> bool:
    """Return True when the URL's host is, or is a subdomain of, a blocking host."""
    host = (urlparse(url).hostname or "").lower()
    if not host:
        return False
    return any(host == blocked or host.endswith("." + blocked) for blocked in cfg.blocking_hosts)


def is_plain_http(url: str) -> bool:
    return urlparse(url).scheme.lower() == "http"


def relay_url(url: str, cfg: Config) -> str:
    return cfg.relay_url_template.replace("{url}", quote(url, safe=_URI_COMPONENT_SAFE))


def _status_is(last: Optional[FetchOutcome], *statuses: int) -> bool:
    return last is not None and last.status_code in statuses


def _direct_attempt(
    strategy_id: str, request: FeedRequest, cfg: Config, referer: Optional[str]
) -> StrategyAttempt:
    return StrategyAttempt(
        strategy_id=strategy_id,
        url=request.url,
        headers=browser_headers(cfg, referer),
        referer=referer or None,
        timeout_seconds=cfg.timeout,
    )


def _build_primary(request: FeedRequest, cfg: Config) -> StrategyAttempt:
    return _direct_attempt(PRIMARY, request, cfg, request.referer or cfg.default_referer)


def _build_alternate_referer(request: FeedRequest, cfg: Config) -> StrategyAttempt:
    return _direct_attempt(ALTERNATE_REFERER, request, cfg, cfg.alternate_referer)


def _build_no_referer(request: FeedRequest, cfg: Config) -> StrategyAttempt:
    return _direct_attempt(NO_REFERER, request, cfg, None)


def _build_insecure_referer(request: FeedRequest, cfg: Config) -> StrategyAttempt:
    return _direct_attempt(INSECURE_REFERER, request, cfg, cfg.insecure_referer)


def _build_mobile_client(request: FeedRequest, cfg: Config) -> StrategyAttempt:
    # Only a caller-supplied referer is kept; the default one is not sent
    return StrategyAttempt(
        strategy_id=MOBILE_CLIENT,
        url=request.url,
        headers=mobile_headers(cfg, request.referer),
        referer=request.referer or None,
        timeout_seconds=cfg.timeout,
    )


def _build_relay(request: FeedRequest, cfg: Config) -> StrategyAttempt:
    return StrategyAttempt(
        strategy_id=RELAY,
        url=relay_url(request.url, cfg),
        headers={},
        referer=None,
        timeout_seconds=cfg.timeout,
    )


def _blocked_by_provider(last: Optional[FetchOutcome], request: FeedRequest, cfg: Config) -> bool:
    return _status_is(last, STATUS_NO_CONTENT) and is_blocking_host(request.url, cfg)


def _relay_trigger(last: Optional[FetchOutcome], request: FeedRequest, cfg: Config) -> bool:
    if last is None:
        return False
    return last.transport_failed or last.status_code in DISQUALIFYING_STATUSES


DEFAULT_STRATEGIES: Tuple[Strategy, ...] = (
    Strategy(PRIMARY, lambda last, request, cfg: last is None, _build_primary),
    Strategy(ALTERNATE_REFERER, _blocked_by_provider, _build_alternate_referer),
    Strategy(NO_REFERER, _blocked_by_provider, _build_no_referer),
    Strategy(
        INSECURE_REFERER,
        lambda last, request, cfg: _status_is(last, STATUS_NO_CONTENT)
        and is_plain_http(request.url),
        _build_insecure_referer,
    ),
    Strategy(
        MOBILE_CLIENT,
        lambda last, request, cfg: _status_is(last, STATUS_NO_CONTENT),
        _build_mobile_client,
    ),
    Strategy(RELAY, _relay_trigger, _build_relay, is_relay=True),
)
