"""Typed stage payloads and the trace recorder enforcing the fanout state machine.

Each stage of a run has exactly one payload type. ``StageRecorder`` persists
payloads as ``FanoutLog`` rows and refuses any transition the machine does not
allow, so a trace read back in creation order is always a valid prefix of::

    RECEIVED -> VALIDATED -> ERROR
    RECEIVED -> VALIDATED -> RECIPIENT_RESOLVED -> NOTIFICATION_CREATED* -> COMPLETED
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, ClassVar, Union

from fanout_debugger.models import FanoutLog, FanoutStage
from fanout_debugger.repositories.fanout_repo import FanoutRepository

ALLOWED_TRANSITIONS: dict[FanoutStage | None, frozenset[FanoutStage]] = {
    None: frozenset({FanoutStage.RECEIVED}),
    FanoutStage.RECEIVED: frozenset({FanoutStage.VALIDATED}),
    FanoutStage.VALIDATED: frozenset({FanoutStage.ERROR, FanoutStage.RECIPIENT_RESOLVED}),
    FanoutStage.RECIPIENT_RESOLVED: frozenset(
        {FanoutStage.NOTIFICATION_CREATED, FanoutStage.COMPLETED}
    ),
    FanoutStage.NOTIFICATION_CREATED: frozenset(
        {FanoutStage.NOTIFICATION_CREATED, FanoutStage.COMPLETED}
    ),
    FanoutStage.COMPLETED: frozenset(),
    FanoutStage.ERROR: frozenset(),
}

TERMINAL_STAGES = frozenset({FanoutStage.COMPLETED, FanoutStage.ERROR})


class InvalidStageTransitionError(RuntimeError):
    """Raised when a run tries to record a stage out of order."""

    def __init__(self, current: FanoutStage | None, attempted: FanoutStage) -> None:
        current_name = current.value if current is not None else "START"
        super().__init__(f"Illegal fanout stage transition: {current_name} -> {attempted.value}")
        self.current = current
        self.attempted = attempted


@dataclass(frozen=True)
class Received:
    stage: ClassVar[FanoutStage] = FanoutStage.RECEIVED

    actor_id: str
    type: str
    target_id: str
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Validated:
    stage: ClassVar[FanoutStage] = FanoutStage.VALIDATED

    is_valid: bool
    errors: list[str]


@dataclass(frozen=True)
class Failed:
    stage: ClassVar[FanoutStage] = FanoutStage.ERROR

    message: str
    errors: list[str]


@dataclass(frozen=True)
class RecipientResolved:
    stage: ClassVar[FanoutStage] = FanoutStage.RECIPIENT_RESOLVED

    recipient_count: int
    recipient_ids: list[str]
    recipient_usernames: list[str]
    rule: str


@dataclass(frozen=True)
class NotificationCreated:
    stage: ClassVar[FanoutStage] = FanoutStage.NOTIFICATION_CREATED

    notification_id: str
    user_id: str
    username: str
    message: str


@dataclass(frozen=True)
class Completed:
    stage: ClassVar[FanoutStage] = FanoutStage.COMPLETED

    total_notifications: int
    duration_ms: int


StagePayload = Union[Received, Validated, Failed, RecipientResolved, NotificationCreated, Completed]


class StageRecorder:
    """Appends stage payloads for one event run, in order, through the repository."""

    def __init__(self, repo: FanoutRepository, event_id: str, *, is_replay: bool = False) -> None:
        self.repo = repo
        self.event_id = event_id
        self.is_replay = is_replay
        self.current: FanoutStage | None = None
        self.logs: list[FanoutLog] = []

    @property
    def finished(self) -> bool:
        """True once a terminal stage has been recorded."""
        return self.current in TERMINAL_STAGES

    def record(self, payload: StagePayload) -> FanoutLog:
        """Persist ``payload`` as the next trace entry and return the stored row."""
        stage = payload.stage
        if stage not in ALLOWED_TRANSITIONS[self.current]:
            raise InvalidStageTransitionError(self.current, stage)

        data = asdict(payload)
        if self.is_replay:
            data["is_replay"] = True

        log = self.repo.create_fanout_log(self.event_id, stage, data)
        self.current = stage
        self.logs.append(log)
        return log
