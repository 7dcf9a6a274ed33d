"""
Reaction workflow: turns Slack reactions into Azure DevOps work item changes.

Three independent transitions, each triggered by its own reactions on the
root message of a thread:

- create (👀 eyes): claim the thread, create a work item, remember its id
- acknowledge (🔑 key): tell the author the team is on it
- close (✅ / 🏁): mark the thread's work item Completed

Every transition returns a TransitionResult. Errors never escape
handle_reaction; the user just gets no reply.
"""

import traceback
from dataclasses import dataclass, replace
from enum import Enum

import formatting
from logs import log
from models import (
    DONE,
    FAILED,
    SKIPPED,
    ReactionEvent,
    TicketDraft,
    TransitionResult,
)

CREATE = "create"
ACKNOWLEDGE = "acknowledge"
CLOSE = "close"


class ClaimPolicy(Enum):
    """What happens to a thread's claim when creating its work item fails."""

    KEEP_ON_FAILURE = "keep"  # later reactions on the thread are ignored
    RELEASE_ON_FAILURE = "release"  # a later reaction may try again


@dataclass(frozen=True)
class WorkflowConfig:
    area_path: str
    parent_work_item_id: int
    workspace_url: str
    channel_id: str
    create_reactions: frozenset = frozenset({"eyes"})
    acknowledge_reactions: frozenset = frozenset({"key"})
    close_reactions: frozenset = frozenset({"white_check_mark", "checkered_flag"})
    title_prefix: str = "Azure Support Request from"
    team_name: str = "CloudOps"
    claim_policy: ClaimPolicy = ClaimPolicy.KEEP_ON_FAILURE


class ReactionWorkflow:
    def __init__(self, chat, tracker, store, config: WorkflowConfig):
        self.chat = chat
        self.tracker = tracker
        self.store = store
        self.config = config

    def classify(self, reaction: str) -> str | None:
        if reaction in self.config.create_reactions:
            return CREATE
        if reaction in self.config.acknowledge_reactions:
            return ACKNOWLEDGE
        if reaction in self.config.close_reactions:
            return CLOSE
        return None

    # === ENTRY POINT ===
    def handle_reaction(self, event: ReactionEvent) -> TransitionResult:
        """Run the transition for ``event``. Never raises."""
        kind = self.classify(event.reaction)
        if kind is None:
            return TransitionResult(kind="none", outcome=SKIPPED, reason=f"reaction {event.reaction} not handled")

        log("WORKFLOW", "Received", kind=kind, reaction=event.reaction, channel=event.channel, ts=event.item_ts)

        try:
            message = self.chat.get_message(event.channel, event.item_ts)
            if message is None:
                return TransitionResult(kind=kind, outcome=SKIPPED, reason="reaction on a thread reply")

            event = replace(event, thread_ts=message.thread_ts or event.item_ts)
            if event.item_ts != event.thread_ts:
                log("WORKFLOW", "Not a thread root, ignoring", ts=event.item_ts, thread=event.thread_ts)
                return TransitionResult(
                    kind=kind, outcome=SKIPPED, thread_ts=event.thread_ts, reason="reaction on a thread reply"
                )

            if kind == CREATE:
                return self.create_ticket(event, message)
            if kind == ACKNOWLEDGE:
                return self.acknowledge(event, message)
            return self.close_ticket(event)

        except Exception as e:
            log("ERROR", f"{kind} failed: {e}", thread=event.thread_ts or event.item_ts)
            traceback.print_exc()
            return TransitionResult(kind=kind, outcome=FAILED, thread_ts=event.thread_ts, reason=str(e), error=e)

    # === TRANSITIONS ===
    def create_ticket(self, event: ReactionEvent, message) -> TransitionResult:
        thread_ts = event.thread_ts
        if not self.store.try_claim(thread_ts):
            log("WORKFLOW", "Thread already claimed", thread=thread_ts)
            return TransitionResult(
                kind=CREATE,
                outcome=SKIPPED,
                thread_ts=thread_ts,
                ticket_id=self.store.lookup_ticket(thread_ts),
                reason="thread already claimed",
            )

        try:
            draft = self.build_draft(event, message)
            ticket_id = self.tracker.create_ticket(draft)
        except Exception:
            if self.config.claim_policy is ClaimPolicy.RELEASE_ON_FAILURE:
                self.store.release_claim(thread_ts)
                log("WORKFLOW", "Released claim after failure", thread=thread_ts)
            raise

        self.store.record_ticket(thread_ts, ticket_id)

        url = self.tracker.work_item_url(ticket_id)
        self.chat.post_reply(
            event.channel,
            thread_ts,
            f"Work item created for this concern: <{url}|{ticket_id}>",
        )
        log("WORKFLOW", "Work item created", id=ticket_id, thread=thread_ts)
        return TransitionResult(kind=CREATE, outcome=DONE, thread_ts=thread_ts, ticket_id=ticket_id)

    def build_draft(self, event: ReactionEvent, message) -> TicketDraft:
        author = self.chat.get_user_profile(message.user)
        reactor = self.chat.get_user_profile(event.user)

        html = formatting.convert(message.text, lambda user_id: self.chat.get_user_profile(user_id).name)
        link = formatting.conversation_url(self.config.workspace_url, self.config.channel_id, event.thread_ts)
        iteration = self.tracker.fetch_current_iteration()

        return TicketDraft(
            title=f"{self.config.title_prefix} {author.full_name}",
            description_html=formatting.to_description(html, link),
            area_path=self.config.area_path,
            assignee=reactor.full_name,
            parent_url=self.tracker.work_item_api_url(self.config.parent_work_item_id),
            iteration_path=iteration.path if iteration else None,
        )

    def acknowledge(self, event: ReactionEvent, message) -> TransitionResult:
        author = self.chat.get_user_profile(message.user)
        self.chat.post_reply(
            event.channel,
            event.thread_ts,
            f"Hey <@{message.user}>, {self.config.team_name} team will address your concern asap.",
        )
        log("WORKFLOW", f"Replied to user {author.name}.", thread=event.thread_ts)
        return TransitionResult(kind=ACKNOWLEDGE, outcome=DONE, thread_ts=event.thread_ts)

    def close_ticket(self, event: ReactionEvent) -> TransitionResult:
        thread_ts = event.thread_ts
        log("WORKFLOW", f"{event.reaction} reaction added to thread ID: {thread_ts}")

        ticket_id = self.store.lookup_ticket(thread_ts)
        if ticket_id is None:
            log("WORKFLOW", f"No work item found for thread ID: {thread_ts}")
            return TransitionResult(kind=CLOSE, outcome=SKIPPED, thread_ts=thread_ts, reason="no work item found")

        self.tracker.close_ticket(ticket_id)
        self.chat.post_reply(event.channel, thread_ts, "Ticket has been closed!")
        log("WORKFLOW", "Work item marked as Completed", id=ticket_id)
        return TransitionResult(kind=CLOSE, outcome=DONE, thread_ts=thread_ts, ticket_id=ticket_id)
