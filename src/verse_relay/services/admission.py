"""Rate-limited admission of chat references into the broadcast pipeline."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Union

from ..references import canonicalize, clamp_range, detect, extract, normalize_spacing

logger = logging.getLogger(__name__)

GLOBAL_MIN_INTERVAL_SECONDS = 12.0
USER_COOLDOWN_SECONDS = 75.0
MAX_RANGE_SPAN = 5


class Rejection(str, Enum):
    """Why a candidate was dropped. Never reported back to the chat."""

    NOT_A_REFERENCE = "not_a_reference"
    GLOBAL_THROTTLE = "global_throttle"
    USER_COOLDOWN = "user_cooldown"


@dataclass(frozen=True)
class AdmittedReference:
    reference: str
    source_user: str


@dataclass
class AdmissionState:
    """Process-wide throttle timestamps, in the same clock as `admit(now=...)`."""

    last_global_admission: float | None = None
    last_admission_by_user: dict[str, float] = field(default_factory=dict)


AdmissionResult = Union[AdmittedReference, Rejection]


class AdmissionController:
    """Decides whether a chat message may become a read request.

    Both throttles are checked before either timestamp is written, so a
    rejection never leaves partially-committed state behind.
    """

    def __init__(
        self,
        state: AdmissionState | None = None,
        *,
        global_min_interval: float = GLOBAL_MIN_INTERVAL_SECONDS,
        user_cooldown: float = USER_COOLDOWN_SECONDS,
        max_range_span: int = MAX_RANGE_SPAN,
    ) -> None:
        self.state = state or AdmissionState()
        self.global_min_interval = global_min_interval
        self.user_cooldown = user_cooldown
        self.max_range_span = max_range_span

    def admit(self, source_user: str, candidate_text: str, now: float) -> AdmissionResult:
        if not detect(candidate_text):
            return Rejection.NOT_A_REFERENCE

        last_global = self.state.last_global_admission
        if last_global is not None and now - last_global < self.global_min_interval:
            logger.debug("Global throttle dropped %r from %s", candidate_text, source_user)
            return Rejection.GLOBAL_THROTTLE

        last_user = self.state.last_admission_by_user.get(source_user)
        if last_user is not None and now - last_user < self.user_cooldown:
            logger.debug("User cooldown dropped %r from %s", candidate_text, source_user)
            return Rejection.USER_COOLDOWN

        self.state.last_admission_by_user[source_user] = now
        self.state.last_global_admission = now

        spaced = normalize_spacing(candidate_text)
        reference = canonicalize(extract(spaced) or spaced)
        reference = clamp_range(reference, self.max_range_span)
        return AdmittedReference(reference=reference, source_user=source_user)


__all__ = [
    "AdmissionController",
    "AdmissionResult",
    "AdmissionState",
    "AdmittedReference",
    "Rejection",
]
