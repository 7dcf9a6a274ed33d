"""Environment-driven configuration (.env is loaded first)."""

import os
from collections.abc import Mapping
from dataclasses import dataclass

from dotenv import load_dotenv

from models import ConfigError

REQUIRED = (
    "SLACK_BOT_TOKEN",
    "ADO_ORGANIZATION",
    "PROJECT_NAME",
    "PERSONAL_ACCESS_TOKEN",
    "AREA_PATH",
    "WORK_ITEM_ID",
    "SLACK_WORKSPACE_URL",
    "CHANNEL_ID",
)

TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    slack_bot_token: str
    ado_organization: str
    project_name: str
    personal_access_token: str
    area_path: str
    parent_work_item_id: int
    slack_workspace_url: str
    channel_id: str
    slack_signing_secret: str = ""
    slack_app_token: str = ""
    port: int = 3000
    work_item_type: str = "User Story"
    support_team_name: str = "CloudOps"
    ticket_title_prefix: str = "Azure Support Request from"
    release_claim_on_failure: bool = False
    strict_state: bool = False
    log_file: str = ""

    @property
    def socket_mode(self) -> bool:
        return bool(self.slack_app_token)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, dotenv: bool = True) -> "Settings":
        """Build settings from ``environ`` (os.environ by default).

        Every missing required variable is reported in a single ConfigError.
        """
        if dotenv:
            load_dotenv()
        env = os.environ if environ is None else environ

        missing = [name for name in REQUIRED if not env.get(name, "").strip()]
        # the HTTP listener verifies every request against the signing secret
        if not env.get("SLACK_APP_TOKEN", "").strip() and not env.get("SLACK_SIGNING_SECRET", "").strip():
            missing.append("SLACK_SIGNING_SECRET")
        if missing:
            raise ConfigError(f"Missing required environment variables: {', '.join(missing)}")

        try:
            parent_id = int(env["WORK_ITEM_ID"])
            port = int(env.get("PORT", "3000"))
        except ValueError as e:
            raise ConfigError(f"WORK_ITEM_ID and PORT must be integers: {e}") from e

        return cls(
            slack_bot_token=env["SLACK_BOT_TOKEN"],
            ado_organization=env["ADO_ORGANIZATION"],
            project_name=env["PROJECT_NAME"],
            personal_access_token=env["PERSONAL_ACCESS_TOKEN"],
            area_path=env["AREA_PATH"],
            parent_work_item_id=parent_id,
            slack_workspace_url=env["SLACK_WORKSPACE_URL"].rstrip("/"),
            channel_id=env["CHANNEL_ID"],
            slack_signing_secret=env.get("SLACK_SIGNING_SECRET", ""),
            slack_app_token=env.get("SLACK_APP_TOKEN", ""),
            port=port,
            work_item_type=env.get("ADO_WORK_ITEM_TYPE", "User Story"),
            support_team_name=env.get("SUPPORT_TEAM_NAME", "CloudOps"),
            ticket_title_prefix=env.get("TICKET_TITLE_PREFIX", "Azure Support Request from"),
            release_claim_on_failure=env.get("RELEASE_CLAIM_ON_FAILURE", "").lower() in TRUTHY,
            strict_state=env.get("STRICT_STATE", "").lower() in TRUTHY,
            log_file=env.get("LOG_FILE", ""),
        )
