"""
Slack → Azure DevOps Bot
React on a support request and the bot drives the matching work item:

- 👀 eyes: create a work item, assigned to whoever reacted
- 🔑 key: acknowledge the request in the thread
- ✅ / 🏁: close the thread's work item

Thread → work item mapping is kept in memory for the life of the process.
"""

import threading

from slack_bolt import App
from slack_bolt.adapter.socket_mode import SocketModeHandler

from azure_devops import AzureDevOpsClient
from logs import log, set_log_file
from models import ReactionEvent, TransitionResult
from settings import Settings
from slack_gateway import SlackGateway
from thread_state import ThreadStateStore
from workflow import ClaimPolicy, ReactionWorkflow, WorkflowConfig


def build_workflow(settings: Settings, client) -> ReactionWorkflow:
    """Wire the workflow to Slack (``client``) and Azure DevOps."""
    tracker = AzureDevOpsClient(
        organization=settings.ado_organization,
        project=settings.project_name,
        token=settings.personal_access_token,
        work_item_type=settings.work_item_type,
    )
    config = WorkflowConfig(
        area_path=settings.area_path,
        parent_work_item_id=settings.parent_work_item_id,
        workspace_url=settings.slack_workspace_url,
        channel_id=settings.channel_id,
        title_prefix=settings.ticket_title_prefix,
        team_name=settings.support_team_name,
        claim_policy=(
            ClaimPolicy.RELEASE_ON_FAILURE if settings.release_claim_on_failure else ClaimPolicy.KEEP_ON_FAILURE
        ),
    )
    return ReactionWorkflow(
        chat=SlackGateway(client),
        tracker=tracker,
        store=ThreadStateStore(strict=settings.strict_state),
        config=config,
    )


def reaction_event_from_payload(event: dict) -> ReactionEvent | None:
    """Normalize a reaction_added payload. Reactions on files etc. give None."""
    item = event.get("item", {})
    if item.get("type", "message") != "message":
        return None
    return ReactionEvent(
        channel=item["channel"],
        item_ts=item["ts"],
        reaction=event["reaction"],
        user=event["user"],
    )


# === BACKGROUND WORKER ===
def reaction_worker(workflow: ReactionWorkflow, event: ReactionEvent) -> TransitionResult:
    result = workflow.handle_reaction(event)
    log(
        "WORKER",
        "Done" if result.ok else "Failed",
        kind=result.kind,
        outcome=result.outcome,
        thread=result.thread_ts,
        id=result.ticket_id,
        reason=result.reason or None,
    )
    return result


def dispatch(workflow: ReactionWorkflow, event: ReactionEvent) -> threading.Thread:
    """Handle ``event`` on its own daemon thread."""
    thread = threading.Thread(
        target=reaction_worker,
        args=(workflow, event),
        daemon=True,
    )
    thread.start()
    return thread


# === APP ===
def create_app(settings: Settings) -> App:
    app = App(
        token=settings.slack_bot_token,
        signing_secret=settings.slack_signing_secret or None,
    )
    workflow = build_workflow(settings, app.client)

    @app.event("reaction_added")
    def handle_reaction(event):
        """Handle reaction trigger."""
        reaction = reaction_event_from_payload(event)
        if reaction is None or workflow.classify(reaction.reaction) is None:
            return

        log("REACTION", "Received", reaction=reaction.reaction, user=reaction.user)
        dispatch(workflow, reaction)

    return app


# === STARTUP ===
def main():
    settings = Settings.from_env()
    set_log_file(settings.log_file or None)

    log("STARTUP", "Bot starting")
    log("STARTUP", f"Organization: {settings.ado_organization}, Project: {settings.project_name}")
    log("STARTUP", f"Area: {settings.area_path}, Parent: {settings.parent_work_item_id}")

    app = create_app(settings)

    if settings.socket_mode:
        log("STARTUP", "Socket Mode")
        SocketModeHandler(app, settings.slack_app_token).start()
    else:
        log("STARTUP", f"Server is running on http://localhost:{settings.port}")
        app.start(port=settings.port)


if __name__ == "__main__":
    main()
