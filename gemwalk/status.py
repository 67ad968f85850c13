"""
Gemini status codes.

A status is just its two-digit code plus the class derived from the leading
digit. Known codes get a name; any other in-range code is still valid and
classified the same way (34 is a REDIRECT even though nobody named it).
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class StatusClass(Enum):
    INPUT = 1
    SUCCESS = 2
    REDIRECT = 3
    TEMPORARY_FAILURE = 4
    PERMANENT_FAILURE = 5
    CLIENT_CERT_REQUIRED = 6


STATUS_NAMES = {
    10: "INPUT",
    11: "SENSITIVE_INPUT",
    20: "SUCCESS",
    30: "REDIRECT_TEMPORARY",
    31: "REDIRECT_PERMANENT",
    40: "TEMPORARY_FAILURE",
    41: "SERVER_UNAVAILABLE",
    42: "CGI_ERROR",
    43: "PROXY_ERROR",
    44: "SLOW_DOWN",
    50: "PERMANENT_FAILURE",
    51: "NOT_FOUND",
    52: "GONE",
    53: "PROXY_REQUEST_REFUSED",
    59: "BAD_REQUEST",
    60: "CLIENT_CERTIFICATE_REQUIRED",
    61: "CERTIFICATE_NOT_AUTHORISED",
    62: "CERTIFICATE_NOT_VALID",
}

MIN_STATUS = 10
MAX_STATUS = 69


@dataclass(frozen=True)
class Status:
    """
    Immutable status code.
    Invariant: 10 <= code <= 69; construction outside that range raises ValueError.
    """
    code: int

    def __post_init__(self):
        if isinstance(self.code, bool) or not isinstance(self.code, int):
            raise ValueError(f"status code must be an int, got {self.code!r}")
        if not MIN_STATUS <= self.code <= MAX_STATUS:
            raise ValueError(f"status code {self.code} outside {MIN_STATUS}-{MAX_STATUS}")

    @property
    def status_class(self) -> StatusClass:
        return StatusClass(self.code // 10)

    @property
    def name(self) -> Optional[str]:
        return STATUS_NAMES.get(self.code)

    @property
    def is_input(self) -> bool:
        return self.status_class is StatusClass.INPUT

    @property
    def is_sensitive_input(self) -> bool:
        return self.code == 11

    @property
    def is_success(self) -> bool:
        return self.status_class is StatusClass.SUCCESS

    @property
    def is_redirect(self) -> bool:
        return self.status_class is StatusClass.REDIRECT

    @property
    def is_temporary_failure(self) -> bool:
        return self.status_class is StatusClass.TEMPORARY_FAILURE

    @property
    def is_permanent_failure(self) -> bool:
        return self.status_class is StatusClass.PERMANENT_FAILURE

    @property
    def is_client_cert_required(self) -> bool:
        return self.status_class is StatusClass.CLIENT_CERT_REQUIRED

    def __int__(self):
        return self.code

    def __str__(self):
        return f"{self.code} {self.name}" if self.name else str(self.code)
