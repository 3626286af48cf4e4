"""Checker service - performs a single bounded HTTP or TCP check.

Every outcome, including malformed targets, timeouts and transport errors,
is returned as a CheckResult. Nothing raises out of execute().
"""
import asyncio
import logging
import re
import time
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Dict, List, Mapping, Optional, Tuple

import httpx

from ..schemas.monitor import MonitorConfig, ValidationRules

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "PulseWatch/1.0 (Mozilla/5.0 compatible)"


class CheckStatus(str, Enum):
    UP = "UP"
    DEGRADED = "DEGRADED"
    DOWN = "DOWN"


class CheckKind(str, Enum):
    HTTP = "http"
    TCP = "tcp"


@dataclass(frozen=True)
class CheckResult:
    """Result of a monitoring check."""
    status: CheckStatus
    latency: int  # ms, measured from the start of the check
    message: str


def _elapsed_ms(start: float) -> int:
    return max(0, int((time.perf_counter() - start) * 1000))


def _error_message(error: BaseException, fallback: str) -> str:
    return str(error) or fallback


def classify_latency(latency: int, config: MonitorConfig) -> Optional[CheckResult]:
    """Timeout and latency classification shared by both check kinds.

    Returns None when the elapsed time is within the timeout budget and the
    expected latency, i.e. the check is UP as far as timing goes.
    """
    if latency > config.timeout:
        return CheckResult(CheckStatus.DOWN, latency, "Timeout")
    if latency > config.expected_latency:
        return CheckResult(CheckStatus.DEGRADED, latency, "High latency")
    return None


# ── Validation rules ─────────────────────────────────────────────────────────


@dataclass
class ResponseView:
    """What the rules get to see of an HTTP response."""
    status_code: int
    headers: Mapping[str, str]
    text: Optional[str] = None  # filled in before the first rule that needs it


@dataclass(frozen=True)
class ValidationRule:
    """A predicate over the response and the message reported when it fails."""
    check: Callable[[ResponseView], bool]
    describe: Callable[[ResponseView], str]
    needs_body: bool = False


def build_rules(validation: ValidationRules) -> List[ValidationRule]:
    """Rules in evaluation order: status, body, then headers as configured."""
    accepted = validation.accepted_statuses
    expected = ",".join(str(code) for code in accepted)
    rules = [
        ValidationRule(
            check=lambda r: r.status_code in accepted,
            describe=lambda r: f"Status {r.status_code} (expected {expected})",
        ),
    ]

    if validation.body_match:
        body_pattern = re.compile(validation.body_match)
        rules.append(ValidationRule(
            check=lambda r: body_pattern.search(r.text or "") is not None,
            describe=lambda r: "Body match failed",
            needs_body=True,
        ))

    for name, pattern in (validation.headers_match or {}).items():
        rules.append(_header_rule(name, re.compile(pattern)))

    return rules


def _header_rule(name: str, pattern: "re.Pattern[str]") -> ValidationRule:
    def check(response: ResponseView) -> bool:
        value = response.headers.get(name)
        return bool(value) and pattern.search(value) is not None

    return ValidationRule(check=check, describe=lambda r: f"Header {name} mismatch")


# ── Executor ─────────────────────────────────────────────────────────────────


class CheckExecutor:
    """Runs exactly one check for a monitor and classifies the outcome."""

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        # A custom transport is only injected by tests
        self._transport = transport
        self._checks: Dict[CheckKind, Callable[[MonitorConfig], Awaitable[CheckResult]]] = {
            CheckKind.HTTP: self._check_http,
            CheckKind.TCP: self._check_tcp,
        }

    async def execute(self, config: MonitorConfig) -> CheckResult:
        """Perform a check based on the monitor's check kind."""
        try:
            kind = CheckKind(config.type)
        except ValueError:
            return CheckResult(CheckStatus.DOWN, 0, "Unknown monitor type")

        check = self._checks[kind]
        start = time.perf_counter()
        try:
            return await check(config)
        except Exception as e:
            # Checks resolve their own failures; this only guards the contract.
            logger.exception(f"Unexpected error checking monitor {config.id}")
            return CheckResult(CheckStatus.DOWN, _elapsed_ms(start), _error_message(e, "Check failed"))

    def _client(self, timeout_s: float) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=timeout_s,
            follow_redirects=True,
            transport=self._transport,
        )

    async def _check_http(self, config: MonitorConfig) -> CheckResult:
        """Perform an HTTP check.

        Checks in order, stopping at the first failure:
        1. Timeout - down if the response arrived after the budget
        2. Status code membership - down if not accepted
        3. Body pattern (if configured) - down if not found
        4. Header patterns (if configured) - down on the first mismatch
        5. Latency - degraded if above expected latency
        """
        # httpx.Headers merges names case-insensitively, so caller headers win
        headers = httpx.Headers({"User-Agent": DEFAULT_USER_AGENT})
        headers.update(config.headers)
        timeout_s = config.timeout / 1000

        start = time.perf_counter()
        try:
            return await asyncio.wait_for(
                self._request(config, headers, timeout_s, start),
                timeout=timeout_s,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException):
            logger.warning(f"Monitor {config.id} timed out after {_elapsed_ms(start)}ms")
            return CheckResult(CheckStatus.DOWN, _elapsed_ms(start), "Timeout")
        except (httpx.HTTPError, httpx.InvalidURL, OSError) as e:
            return CheckResult(CheckStatus.DOWN, _elapsed_ms(start), _error_message(e, "Fetch failed"))

    async def _request(
        self,
        config: MonitorConfig,
        headers: httpx.Headers,
        timeout_s: float,
        start: float,
    ) -> CheckResult:
        logger.debug(f"Fetching {config.url} with method {config.method}")
        async with self._client(timeout_s) as client:
            async with client.stream(
                config.method,
                config.url,
                headers=headers,
                content=config.body,
            ) as response:
                latency = _elapsed_ms(start)

                if latency > config.timeout:
                    logger.warning(f"Monitor {config.id} timed out after {latency}ms")
                    return CheckResult(CheckStatus.DOWN, latency, "Timeout")

                view = ResponseView(status_code=response.status_code, headers=response.headers)
                for rule in build_rules(config.validation):
                    if rule.needs_body and view.text is None:
                        await response.aread()
                        view.text = response.text
                    if not rule.check(view):
                        message = rule.describe(view)
                        logger.debug(f"Monitor {config.id}: {message}")
                        return CheckResult(CheckStatus.DOWN, latency, message)

                return classify_latency(latency, config) or CheckResult(CheckStatus.UP, latency, "OK")

    async def _check_tcp(self, config: MonitorConfig) -> CheckResult:
        """Perform a raw TCP connect check."""
        target = parse_host_port(config.url)
        if target is None:
            return CheckResult(CheckStatus.DOWN, 0, "Invalid host:port")
        host, port = target

        start = time.perf_counter()
        writer = None
        try:
            _reader, writer = await asyncio.wait_for(
                asyncio.open_connection(host, port),
                timeout=config.timeout / 1000,
            )
            latency = _elapsed_ms(start)
            return classify_latency(latency, config) or CheckResult(CheckStatus.UP, latency, "OK")
        except asyncio.TimeoutError:
            return CheckResult(CheckStatus.DOWN, _elapsed_ms(start), "Timeout")
        except OSError as e:
            return CheckResult(CheckStatus.DOWN, _elapsed_ms(start), _error_message(e, "Connection failed"))
        finally:
            if writer is not None:
                writer.close()
                try:
                    await writer.wait_closed()
                except OSError:
                    # Peer already dropped the connection
                    pass


def parse_host_port(target: str) -> Optional[Tuple[str, int]]:
    """Split "host:port"; None when the host is empty or the port is invalid."""
    host, sep, port_str = target.rpartition(":")
    if not sep or not host or not (port_str.isascii() and port_str.isdigit()):
        return None
    port = int(port_str)
    if not 0 < port < 65536:
        return None
    return host, port
