"""Shared fakes for the workflow tests."""

import pytest

from models import Iteration, Message, SlackLookupError, TrackerError, UserProfile
from thread_state import ThreadStateStore
from workflow import ReactionWorkflow, WorkflowConfig

ROOT_TS = "1700000000.000100"
REPLY_TS = "1700000050.000200"
CHANNEL = "C0SUPPORT"

USERS = {
    "UAUTHOR": UserProfile("UAUTHOR", display_name="ann", real_name="Ann Author"),
    "UREACTOR": UserProfile("UREACTOR", display_name="bob", real_name="Bob Reactor"),
    "U123ABC": UserProfile("U123ABC", display_name="", real_name="Jane Doe"),
}


class FakeChat:
    """In-memory stand-in for SlackGateway."""

    def __init__(self, messages=None, users=None):
        self.messages = dict(messages or {})
        self.users = dict(USERS if users is None else users)
        self.replies = []
        self.lookups = []

    def get_message(self, channel, ts):
        return self.messages.get(ts)

    def get_user_profile(self, user_id):
        self.lookups.append(user_id)
        if user_id not in self.users:
            raise SlackLookupError(f"Unknown user {user_id}")
        return self.users[user_id]

    def post_reply(self, channel, thread_ts, text):
        self.replies.append((channel, thread_ts, text))


class FakeTracker:
    """In-memory stand-in for AzureDevOpsClient."""

    def __init__(self, iteration=Iteration("Cloud\\Sprint 42", "current"), fail_create=0):
        self.iteration = iteration
        self.fail_create = fail_create
        self.created = []
        self.closed = []
        self.next_id = 1001

    def work_item_url(self, ticket_id):
        return f"https://dev.azure.com/org/proj/_workitems/edit/{ticket_id}"

    def work_item_api_url(self, ticket_id):
        return f"https://dev.azure.com/org/_apis/wit/workItems/{ticket_id}"

    def fetch_current_iteration(self):
        return self.iteration

    def create_ticket(self, draft):
        if self.fail_create:
            self.fail_create -= 1
            raise TrackerError("Azure DevOps API error: 500 - boom", status_code=500)
        self.created.append(draft)
        ticket_id = self.next_id
        self.next_id += 1
        return ticket_id

    def close_ticket(self, ticket_id):
        self.closed.append(ticket_id)


@pytest.fixture
def root_message():
    return Message(ts=ROOT_TS, user="UAUTHOR", text="VM <@U123ABC> is down, see <https://x.com|here>")


@pytest.fixture
def chat(root_message):
    reply = Message(ts=REPLY_TS, user="UREACTOR", text="looking", thread_ts=ROOT_TS)
    return FakeChat(messages={ROOT_TS: root_message, REPLY_TS: reply})


@pytest.fixture
def tracker():
    return FakeTracker()


@pytest.fixture
def store():
    return ThreadStateStore()


@pytest.fixture
def config():
    return WorkflowConfig(
        area_path="Cloud\\Support",
        parent_work_item_id=777,
        workspace_url="https://acme.slack.com/archives",
        channel_id=CHANNEL,
    )


@pytest.fixture
def workflow(chat, tracker, store, config):
    return ReactionWorkflow(chat=chat, tracker=tracker, store=store, config=config)
