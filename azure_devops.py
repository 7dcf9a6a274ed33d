"""Azure DevOps work item client (REST over requests, PAT basic auth)."""

import requests
from requests.auth import HTTPBasicAuth

from logs import log
from models import Iteration, TicketDraft, TrackerError

API_VERSION = "6.1"
CLOSED_STATE = "Completed"
PARENT_LINK = "System.LinkTypes.Hierarchy-Reverse"
PATCH_HEADERS = {"Content-Type": "application/json-patch+json"}


class AzureDevOpsClient:
    """Talks to one organization/project.

    The personal access token goes in as the basic-auth password with an
    empty username and is never refreshed.
    """

    def __init__(
        self,
        organization: str,
        project: str,
        token: str,
        session: requests.Session | None = None,
        base_url: str = "https://dev.azure.com",
        work_item_type: str = "User Story",
        timeout: int = 30,
    ):
        self.organization = organization
        self.project = project
        self.base_url = base_url.rstrip("/")
        self.work_item_type = work_item_type
        self.timeout = timeout
        self.auth = HTTPBasicAuth("", token)
        self.session = session or requests.Session()

    # === URLS ===
    @property
    def project_url(self) -> str:
        return f"{self.base_url}/{self.organization}/{self.project}"

    def work_item_url(self, ticket_id: int) -> str:
        """Browser link to a work item."""
        return f"{self.project_url}/_workitems/edit/{ticket_id}"

    def work_item_api_url(self, ticket_id: int) -> str:
        """REST link to a work item, as used in relations."""
        return f"{self.base_url}/{self.organization}/_apis/wit/workItems/{ticket_id}"

    # === REQUESTS ===
    def _request(self, method: str, url: str, **kwargs) -> dict:
        params = {"api-version": API_VERSION, **kwargs.pop("params", {})}
        try:
            response = self.session.request(
                method,
                url,
                params=params,
                auth=self.auth,
                timeout=self.timeout,
                **kwargs,
            )
        except requests.RequestException as e:
            log("ADO", f"Request failed: {e}", method=method, url=url)
            raise TrackerError(f"Azure DevOps request failed: {e}") from e

        if not 200 <= response.status_code < 300:
            log("ADO", f"Error: {response.status_code} - {response.text[:500]}")
            raise TrackerError(
                f"Azure DevOps API error: {response.status_code} - {response.text[:200]}",
                status_code=response.status_code,
            )
        # 203 is the sign-in page served for a rejected PAT
        if response.status_code == 203:
            log("ADO", "Sign-in page returned, check PERSONAL_ACCESS_TOKEN", url=url)
            raise TrackerError("Azure DevOps rejected the access token (203)", status_code=203)

        try:
            return response.json()
        except ValueError as e:
            log("ADO", f"Non-JSON response: {response.text[:200]}", status=response.status_code)
            raise TrackerError(
                f"Azure DevOps returned a non-JSON body ({response.status_code})",
                status_code=response.status_code,
            ) from e

    # === OPERATIONS ===
    def create_ticket(self, draft: TicketDraft) -> int:
        """Create a work item from ``draft``; returns its id."""
        ops = [
            {"op": "add", "path": "/fields/System.Title", "value": draft.title},
            {"op": "add", "path": "/fields/System.Description", "value": draft.description_html},
            {"op": "add", "path": "/fields/System.AreaPath", "value": draft.area_path},
            {"op": "add", "path": "/fields/System.AssignedTo", "value": draft.assignee},
            {"op": "add", "path": "/relations/-", "value": {"rel": PARENT_LINK, "url": draft.parent_url}},
        ]
        if draft.iteration_path:
            ops.append({"op": "add", "path": "/fields/System.IterationPath", "value": draft.iteration_path})

        log("ADO", "Creating work item", type=self.work_item_type, assignee=draft.assignee)

        data = self._request(
            "PATCH",
            f"{self.project_url}/_apis/wit/workitems/${self.work_item_type}",
            json=ops,
            headers=PATCH_HEADERS,
        )
        ticket_id = int(data["id"])
        log("ADO", "Created work item", id=ticket_id)
        return ticket_id

    def update_ticket(self, ticket_id: int, fields: dict) -> dict:
        """Set ``fields`` (reference name → value) on a work item."""
        ops = [{"op": "add", "path": f"/fields/{name}", "value": value} for name, value in fields.items()]
        return self._request(
            "PATCH",
            f"{self.project_url}/_apis/wit/workitems/{ticket_id}",
            json=ops,
            headers=PATCH_HEADERS,
        )

    def close_ticket(self, ticket_id: int):
        log("ADO", f'Updating work item to state "{CLOSED_STATE}"', id=ticket_id)
        self.update_ticket(ticket_id, {"System.State": CLOSED_STATE})
        log("ADO", f'Work item updated to state "{CLOSED_STATE}"', id=ticket_id)

    def fetch_current_iteration(self) -> Iteration | None:
        """The iteration flagged current, or None when there is none."""
        data = self._request("GET", f"{self.project_url}/_apis/work/teamsettings/iterations")

        for item in data.get("value", []):
            time_frame = (item.get("attributes") or {}).get("timeFrame")
            if time_frame == "current":
                return Iteration(path=item["path"], time_frame=time_frame)

        log("ADO", "No current iteration configured", project=self.project)
        return None
