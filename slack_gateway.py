"""Slack side of the bridge: message/user lookups and thread replies."""

from slack_sdk import WebClient
from slack_sdk.errors import SlackApiError

from logs import log
from models import Message, SlackLookupError, UserProfile


class SlackGateway:
    def __init__(self, client: WebClient):
        self.client = client

    def get_message(self, channel: str, ts: str) -> Message | None:
        """The channel-level message at ``ts``.

        Thread replies are not part of channel history, so they come back
        as None.
        """
        try:
            result = self.client.conversations_history(
                channel=channel,
                latest=ts,
                inclusive=True,
                limit=1,
            )
        except SlackApiError as e:
            raise SlackLookupError(f"Could not read message {channel}/{ts}: {e.response['error']}") from e

        messages = result.get("messages", [])
        if not messages or messages[0].get("ts") != ts:
            log("SLACK", "Message not in channel history", channel=channel, ts=ts)
            return None

        msg = messages[0]
        return Message(
            ts=msg["ts"],
            user=msg.get("user", ""),
            text=msg.get("text", ""),
            thread_ts=msg.get("thread_ts"),
        )

    def get_user_profile(self, user_id: str) -> UserProfile:
        try:
            result = self.client.users_info(user=user_id)
        except SlackApiError as e:
            raise SlackLookupError(f"Could not look up user {user_id}: {e.response['error']}") from e

        user = result.get("user")
        if not user:
            raise SlackLookupError(f"Unknown user {user_id}")

        profile = user.get("profile", {})
        return UserProfile(
            user_id=user_id,
            display_name=profile.get("display_name", ""),
            real_name=profile.get("real_name") or user.get("real_name", ""),
        )

    def post_reply(self, channel: str, thread_ts: str, text: str):
        self.client.chat_postMessage(channel=channel, thread_ts=thread_ts, text=text)
