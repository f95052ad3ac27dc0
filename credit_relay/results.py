from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union


class ErrorKind(str, Enum):
    VALIDATION = "validation_error"
    AUTHENTICATION = "authentication_error"
    UPSTREAM_TRANSPORT = "upstream_transport_error"
    UPSTREAM_REJECTED = "upstream_rejection_error"
    INTERNAL = "internal_error"


STATUS_FOR_KIND = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.AUTHENTICATION: 403,
}


@dataclass(frozen=True)
class Success:
    body: Any


@dataclass(frozen=True)
class Failure:
    kind: ErrorKind
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def status_code(self) -> int:
        # every upstream or internal problem surfaces as 500
        return STATUS_FOR_KIND.get(self.kind, 500)


Result = Union[Success, Failure]
