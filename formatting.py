"""
Slack mrkdwn → Azure DevOps HTML.

One left-to-right scan over the message. Each token is replaced as it is
found, so a mention can never eat part of a link and vice versa:

    <@U123>           → @Display Name      (looked up through Slack)
    <https://x|label> → <a href="https://x">label</a>
    <#C123|general>   → #general
    <!here>           → @here
    `code`            → unchanged
    ```block```       → ```\\nblock\\n```

Slack already escapes &, < and > in message text, so plain text is copied
through as is.
"""

import re
from typing import Callable

from logs import log
from models import FormattingError, SlackLookupError

TOKEN_RE = re.compile(
    r"```(?P<block>[^`]+)```"
    r"|`(?P<code>[^`\n]+)`"
    r"|<(?P<angle>[^<>]*)>"
)
USER_ID_RE = re.compile(r"[UW][A-Z0-9]+")


def convert(text: str, lookup: Callable[[str], str], strict: bool = False) -> str:
    """Convert Slack markup in ``text``.

    ``lookup`` maps a user id to the name shown after the @. Lookup failures
    propagate. Malformed tokens are kept as they are, unless ``strict``.
    """
    names: dict[str, str] = {}
    out = []
    pos = 0

    for match in TOKEN_RE.finditer(text):
        out.append(_plain(text[pos:match.start()], strict))
        pos = match.end()

        if match.group("block") is not None:
            out.append("```\n" + match.group("block").strip("\n") + "\n```")
        elif match.group("code") is not None:
            out.append(match.group(0))
        else:
            out.append(_angle(match.group("angle"), lookup, names, strict))

    out.append(_plain(text[pos:], strict))
    return "".join(out)


def _plain(segment: str, strict: bool) -> str:
    if "<" in segment:
        _malformed(segment, strict)
    return segment


def _malformed(token: str, strict: bool):
    if strict:
        raise FormattingError(f"Malformed Slack markup: {token[:80]!r}")
    log("FORMAT", "Keeping malformed markup as-is", token=repr(token[:80]))


def _angle(body: str, lookup, names: dict, strict: bool) -> str:
    target, _, label = body.partition("|")

    if target.startswith("@"):
        user_id = target[1:]
        if not USER_ID_RE.fullmatch(user_id):
            _malformed(f"<{body}>", strict)
            return f"<{body}>"
        if user_id not in names:
            name = lookup(user_id)
            if not name:
                raise SlackLookupError(f"No display or real name for user {user_id}")
            names[user_id] = name
        return f"@{names[user_id]}"

    if target.startswith("#"):
        return f"#{label or target[1:]}"

    if target.startswith("!"):
        # <!here>, <!channel>, <!subteam^S123|@team>, <!date^...|fallback>
        return label or f"@{target[1:]}"

    if not target:
        _malformed(f"<{body}>", strict)
        return f"<{body}>"

    return f'<a href="{target}">{label or target}</a>'


def to_description(html: str, link: str) -> str:
    """Work item description: converted text plus a link back to Slack."""
    body = html.replace("\n", "<br>")
    return f'{body}<br><br>Slack Conversation: <a href="{link}">{link}</a><br>'


def conversation_url(workspace_url: str, channel_id: str, thread_ts: str) -> str:
    """Slack archive link for a thread (``p`` + ts without the dot)."""
    return f"{workspace_url.rstrip('/')}/{channel_id}/p{thread_ts.replace('.', '')}"
