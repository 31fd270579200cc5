"""GitHub REST API adapter."""

import logging
from typing import Any, Callable, Dict, List, TypeVar

import requests

from gitpm.adapters.base import SourceHostAdapter
from gitpm.errors import HostApiError
from gitpm.models import HostPullRequest, HostRepo
from gitpm.utils import parse_iso, parse_iso_optional

LOG = logging.getLogger("gitpm.adapters.github")

T = TypeVar("T")


def _repo_from_api(data: Dict[str, Any]) -> HostRepo:
    owner = data.get("owner") or {}
    return HostRepo(
        id=data["id"],
        name=data.get("name") or "",
        full_name=data.get("full_name") or "",
        owner=owner.get("login", ""),
        private=bool(data.get("private")),
        html_url=data.get("html_url") or "",
        description=data.get("description"),
        default_branch=data.get("default_branch") or "main",
        created_at=parse_iso_optional(data.get("created_at")),
        updated_at=parse_iso_optional(data.get("updated_at")),
        pushed_at=parse_iso_optional(data.get("pushed_at")),
        stargazers_count=data.get("stargazers_count") or 0,
        forks_count=data.get("forks_count") or 0,
    )


def _pr_from_api(data: Dict[str, Any]) -> HostPullRequest:
    head = data.get("head") or {}
    base = data.get("base") or {}
    user = data.get("user") or {}
    return HostPullRequest(
        id=data["id"],
        number=data["number"],
        title=data.get("title") or "",
        body=data.get("body") or "",
        state=data.get("state", "open"),
        html_url=data.get("html_url") or "",
        created_at=parse_iso(data["created_at"]),
        closed_at=parse_iso_optional(data.get("closed_at")),
        merged_at=parse_iso_optional(data.get("merged_at")),
        author=user.get("login"),
        head_branch=head.get("ref", ""),
        base_branch=base.get("ref", ""),
    )


def _mapped(mapper: Callable[[Dict[str, Any]], T], data: Any) -> T:
    """Apply a payload mapper; malformed payloads become HostApiError."""
    try:
        return mapper(data)
    except (KeyError, TypeError, AttributeError, ValueError) as e:
        # pydantic and ISO parsing errors are ValueErrors
        raise HostApiError(f"Unexpected API payload: {e!r}") from e


class GitHubAdapter(SourceHostAdapter):
    """GitHub API implementation."""

    def __init__(
        self,
        token: str,
        api_url: str = "https://api.github.com",
        per_page: int = 100,
        max_pages: int = 10,
        timeout: int = 30,
    ) -> None:
        self._api_url = api_url.rstrip("/")
        self._per_page = per_page
        self._max_pages = max_pages
        self._timeout = timeout
        self._session = requests.Session()
        self._session.headers["Authorization"] = f"token {token}"
        self._session.headers["Accept"] = "application/vnd.github.v3+json"

    def _request(
        self,
        method: str,
        path: str,
        params: Dict[str, Any] | None = None,
        json: Dict[str, Any] | None = None,
    ) -> Any:
        """Send one request and return the decoded JSON body."""
        url = f"{self._api_url}{path}" if path.startswith("/") else f"{self._api_url}/{path}"
        try:
            resp = self._session.request(method, url, params=params, json=json, timeout=self._timeout)
        except requests.RequestException as e:
            raise HostApiError(f"{method} {path}: {e}") from e
        if resp.status_code >= 400:
            msg = resp.text or resp.reason or str(resp.status_code)
            try:
                payload = resp.json()
            except ValueError:
                payload = None
            if isinstance(payload, dict):
                msg = payload.get("message", msg)
            raise HostApiError(msg, status_code=resp.status_code)
        try:
            return resp.json()
        except ValueError as e:
            raise HostApiError(f"{method} {path}: response is not JSON: {e}") from e

    def _paginate(self, path: str, params: Dict[str, Any] | None = None) -> List[Dict[str, Any]]:
        """Follow ?page= until a short page or max_pages."""
        items: List[Dict[str, Any]] = []
        for page in range(1, self._max_pages + 1):
            query = {**(params or {}), "per_page": self._per_page, "page": page}
            data = self._request("GET", path, params=query) or []
            if not isinstance(data, list):
                raise HostApiError(f"GET {path}: expected a list, got {type(data).__name__}")
            items.extend(data)
            if len(data) < self._per_page:
                break
        else:
            LOG.warning("Stopped paginating %s after %s pages", path, self._max_pages)
        return items

    def list_repos(self) -> List[HostRepo]:
        data = self._paginate("/user/repos", params={"type": "owner"})
        return [_mapped(_repo_from_api, d) for d in data]

    def list_branches(self, owner: str, repo: str) -> List[str]:
        data = self._paginate(f"/repos/{owner}/{repo}/branches")
        return [_mapped(lambda d: d["name"], d) for d in data]

    def create_pull_request(
        self,
        owner: str,
        repo: str,
        head: str,
        base: str,
        title: str,
        body: str,
    ) -> HostPullRequest:
        data = self._request(
            "POST",
            f"/repos/{owner}/{repo}/pulls",
            json={"title": title, "body": body, "head": head, "base": base},
        )
        pr = _mapped(_pr_from_api, data)
        LOG.info("Created PR #%s in %s/%s (%s -> %s)", pr.number, owner, repo, head, base)
        return pr

    def list_pull_requests(self, owner: str, repo: str, state: str = "all") -> List[HostPullRequest]:
        data = self._paginate(
            f"/repos/{owner}/{repo}/pulls",
            params={"state": state, "sort": "updated", "direction": "desc"},
        )
        return [_mapped(_pr_from_api, d) for d in data]

    def find_open_pull_request(self, owner: str, repo: str, head: str, base: str) -> HostPullRequest | None:
        # GitHub filters head as "owner:branch"
        data = self._request(
            "GET",
            f"/repos/{owner}/{repo}/pulls",
            params={"state": "open", "head": f"{owner}:{head}", "base": base},
        )
        if not data:
            return None
        return _mapped(_pr_from_api, data[0] if isinstance(data, list) else data)

    def update_pull_request(
        self,
        owner: str,
        repo: str,
        number: int,
        title: str,
        body: str,
    ) -> HostPullRequest:
        data = self._request(
            "PATCH",
            f"/repos/{owner}/{repo}/pulls/{number}",
            json={"title": title, "body": body},
        )
        return _mapped(_pr_from_api, data)
