"""Records and errors shared by the Slack → Azure DevOps bridge."""

from dataclasses import dataclass


# === ERRORS ===
class BridgeError(Exception):
    """Base class for everything the bridge raises on purpose."""


class ConfigError(BridgeError):
    """Missing or invalid settings at startup."""


class SlackLookupError(BridgeError, LookupError):
    """A Slack message or user lookup failed."""


class FormattingError(BridgeError):
    """Malformed Slack markup (only raised in strict mode)."""


class TrackerError(BridgeError):
    """Azure DevOps answered with a non-success status, or could not be reached."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class StateConflict(BridgeError):
    """record_ticket was called on a thread that cannot take a ticket id."""


# === RECORDS ===
@dataclass
class ThreadRecord:
    claimed: bool = False
    ticket_id: int | None = None


@dataclass(frozen=True)
class ReactionEvent:
    """One reaction_added notification, normalized."""

    channel: str
    item_ts: str
    reaction: str
    user: str
    thread_ts: str | None = None


@dataclass(frozen=True)
class Message:
    ts: str
    user: str
    text: str
    thread_ts: str | None = None


@dataclass(frozen=True)
class UserProfile:
    user_id: str
    display_name: str = ""
    real_name: str = ""

    @property
    def name(self) -> str:
        """Name used for @mentions: display name first."""
        return self.display_name or self.real_name

    @property
    def full_name(self) -> str:
        """Name used for titles and assignment: real name first."""
        return self.real_name or self.display_name


@dataclass(frozen=True)
class Iteration:
    path: str
    time_frame: str


@dataclass(frozen=True)
class TicketDraft:
    title: str
    description_html: str
    area_path: str
    assignee: str
    parent_url: str
    iteration_path: str | None = None


# Transition outcomes
DONE = "done"
SKIPPED = "skipped"
FAILED = "failed"


@dataclass(frozen=True)
class TransitionResult:
    """What happened to one reaction; logged by whoever ran the workflow."""

    kind: str
    outcome: str
    thread_ts: str | None = None
    ticket_id: int | None = None
    reason: str = ""
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.outcome != FAILED
