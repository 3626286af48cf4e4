"""Monitor configuration schemas."""
import re
from pathlib import Path
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, field_validator

DEFAULT_ACCEPTED_STATUS = [200]


def _check_pattern(pattern: str) -> None:
    try:
        re.compile(pattern)
    except re.error as e:
        raise ValueError(f"Invalid pattern {pattern!r}: {e}") from e


class ValidationRules(BaseModel):
    """Checks applied to an HTTP response, evaluated in a fixed order."""
    status: Optional[Union[int, List[int]]] = None  # accepted code(s), default 200
    body_match: Optional[str] = None  # regex searched in the response body
    headers_match: Optional[Dict[str, str]] = None  # header name -> regex

    class Config:
        frozen = True

    @field_validator("body_match")
    @classmethod
    def _compile_body_pattern(cls, value: Optional[str]) -> Optional[str]:
        if value is not None:
            _check_pattern(value)
        return value

    @field_validator("headers_match")
    @classmethod
    def _compile_header_patterns(cls, value: Optional[Dict[str, str]]) -> Optional[Dict[str, str]]:
        for pattern in (value or {}).values():
            _check_pattern(pattern)
        return value

    @property
    def accepted_statuses(self) -> List[int]:
        if self.status is None:
            return list(DEFAULT_ACCEPTED_STATUS)
        if isinstance(self.status, int):
            return [self.status]
        return list(self.status)


class MonitorConfig(BaseModel):
    """A monitored endpoint - HTTP request or raw TCP connect."""
    id: str = Field(..., min_length=1)
    name: Optional[str] = None
    type: str = "http"  # http, tcp
    url: str = Field(..., min_length=1)  # URL for http, host:port for tcp
    method: str = "GET"
    headers: Dict[str, str] = Field(default_factory=dict)
    body: Optional[str] = None
    timeout: int = Field(default=10000, ge=1)  # ms
    expected_latency: int = Field(default=2000, ge=0)  # ms
    validation: ValidationRules = Field(default_factory=ValidationRules)
    interval: int = Field(default=60, ge=1)  # seconds between scheduled checks
    enabled: bool = True

    class Config:
        frozen = True


_monitor_list = TypeAdapter(List[MonitorConfig])


def load_monitors(path: Union[str, Path]) -> List[MonitorConfig]:
    """Load monitor configurations from a JSON file holding a list of monitors.

    Raises pydantic.ValidationError for malformed entries, including
    validation patterns that are not valid regular expressions.
    """
    monitors = _monitor_list.validate_json(Path(path).read_bytes())
    seen = set()
    for monitor in monitors:
        if monitor.id in seen:
            raise ValueError(f"Duplicate monitor id: {monitor.id}")
        seen.add(monitor.id)
    return monitors
