"""GitLab REST API integration service"""
from typing import Any, Dict, Iterator, List, Optional, TYPE_CHECKING, Union
from urllib.parse import quote

import requests

from gitlab_branch_keeper.constants import API_PREFIX
from gitlab_branch_keeper.exceptions import TransportError
from gitlab_branch_keeper.logging_config import get_logger
from gitlab_branch_keeper.models.project import Project

if TYPE_CHECKING:
    from gitlab_branch_keeper.config import Config

logger = get_logger(__name__)


def encode_path_segment(value: Union[str, int]) -> str:
    """Percent-encode a value for use as a single URL path segment.

    Slashes and commas in branch names must be escaped, and the result must
    not be passed through another quoting step.
    """
    return quote(str(value), safe="")


class GitLabService:
    """Thin, stateless wrapper around the GitLab branch and merge-request endpoints."""

    def __init__(self, config: Union["Config", dict], session: Optional[requests.Session] = None):
        """Initialize the service.

        Args:
            config: Configuration dict or Config object
            session: Optional pre-built session (tests inject a fake one)
        """
        self.config = config
        self.base_url = (config.get("gitlab_url") or "").rstrip("/")
        self.api_url = f"{self.base_url}{API_PREFIX}"
        self.page_size = config.get("page_size", 100)
        self.timeout = config.get("timeout", 30.0)
        self.debug_mode = config.get("debug", False)

        self.session = session if session is not None else requests.Session()
        token = config.get("api_token")
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"
        self.session.headers.setdefault("Accept", "application/json")
        self.session.verify = config.get("verify_ssl", True)

    def _project_url(self, project_id: Union[str, int]) -> str:
        return f"{self.api_url}/projects/{encode_path_segment(project_id)}"

    def _request(
        self,
        method: str,
        url: str,
        operation: str,
        params: Optional[Dict[str, Any]] = None,
    ) -> requests.Response:
        """Perform one HTTP call and turn any failure into TransportError."""
        logger.debug(f"[GitLab] {method} {url} params={params}")
        try:
            response = self.session.request(method, url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise TransportError(operation, message=str(e)) from e

        if not response.ok:
            raise TransportError(operation, status=response.status_code, body=response.text)
        return response

    def _json(self, response: requests.Response, operation: str) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise TransportError(
                operation, status=response.status_code, message=f"Invalid JSON: {e}"
            ) from e

    def _iter_pages(
        self, url: str, operation: str, params: Optional[Dict[str, Any]] = None
    ) -> Iterator[List[Dict[str, Any]]]:
        """Yield result pages until an empty or short page is returned."""
        page = 1
        while True:
            query = dict(params or {})
            query.update({"per_page": self.page_size, "page": page})
            response = self._request("GET", url, operation, params=query)
            items = self._json(response, operation)
            if not isinstance(items, list):
                raise TransportError(
                    operation, status=response.status_code, message="Expected a JSON array"
                )
            if not items:
                return
            yield items
            if len(items) < self.page_size:
                return
            page += 1

    def test_connection(self) -> Dict[str, Any]:
        """Validate the URL and token by fetching the current user."""
        logger.info(f"[GitLab] Testing connection to {self.base_url}")
        response = self._request("GET", f"{self.api_url}/user", "test_connection")
        return self._json(response, "test_connection")

    def list_projects(self) -> List[Project]:
        """List every project the token is a member of."""
        projects = []
        for page in self._iter_pages(
            f"{self.api_url}/projects", "list_projects", params={"membership": "true"}
        ):
            projects.extend(Project.from_api(entry) for entry in page)
        logger.debug(f"[GitLab] Fetched {len(projects)} projects")
        return projects

    def list_branches(self, project_id: Union[str, int]) -> List[Dict[str, Any]]:
        """Fetch all raw branch entries of a project, across all pages."""
        url = f"{self._project_url(project_id)}/repository/branches"
        branches: List[Dict[str, Any]] = []
        for page in self._iter_pages(url, "list_branches"):
            branches.extend(page)
        logger.debug(f"[GitLab] Fetched {len(branches)} branches for project {project_id}")
        return branches

    def get_branch(self, project_id: Union[str, int], branch_name: str) -> Dict[str, Any]:
        """Fetch the current state of a single branch."""
        url = f"{self._project_url(project_id)}/repository/branches/{encode_path_segment(branch_name)}"
        response = self._request("GET", url, "get_branch")
        return self._json(response, "get_branch")

    def is_merged_into(
        self, project_id: Union[str, int], branch_name: str, target_branch: str
    ) -> bool:
        """Check for a merged merge request from branch_name into target_branch."""
        if branch_name == target_branch:
            return False

        url = f"{self._project_url(project_id)}/merge_requests"
        params = {
            "state": "merged",
            "source_branch": branch_name,
            "target_branch": target_branch,
        }
        for page in self._iter_pages(url, "is_merged_into", params=params):
            if page:
                if self.debug_mode:
                    logger.debug(f"[GitLab] {branch_name} has merged MR !{page[0].get('iid')}")
                return True
        return False

    def create_branch_ref(
        self, project_id: Union[str, int], new_name: str, from_sha: str
    ) -> Dict[str, Any]:
        """Create a branch pointing at an exact commit SHA."""
        url = f"{self._project_url(project_id)}/repository/branches"
        logger.info(f"[GitLab] Creating branch {new_name} at {from_sha[:8]} in project {project_id}")
        response = self._request(
            "POST", url, "create_branch", params={"branch": new_name, "ref": from_sha}
        )
        return self._json(response, "create_branch")

    def delete_branch_ref(self, project_id: Union[str, int], branch_name: str) -> None:
        """Delete a branch by name."""
        url = f"{self._project_url(project_id)}/repository/branches/{encode_path_segment(branch_name)}"
        logger.info(f"[GitLab] Deleting branch {branch_name} from project {project_id}")
        self._request("DELETE", url, "delete_branch")

    def close(self) -> None:
        """Close the HTTP session to clean up resources."""
        try:
            self.session.close()
            logger.debug("[GitLab] Closed API session")
        except Exception as e:
            logger.debug(f"[GitLab] Error closing API session: {e}")
