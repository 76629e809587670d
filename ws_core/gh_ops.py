"""Pluggable remote repository listing.

workspacer needs exactly one thing from GitHub: the names of the repos
owned by a user or organisation, so they can be offered for cloning.

The api backend talks to the GraphQL endpoint directly; the cli backend
shells out to ``gh``.  New backends can be added by subclassing
RemoteRepoProvider.
"""

import json
import os
import shutil
import subprocess
import urllib.error
import urllib.request
from abc import ABC, abstractmethod

from ws_core.config import WorkspaceConfig
from ws_core.paths import configure_logger, log_shell_command

_log = configure_logger("ws.gh_ops")

GRAPHQL_URL = "https://api.github.com/graphql"
PAGE_SIZE = 100
CLI_LIMIT = 1000
TOKEN_ENV = "GITHUB_AUTH"

_REPOS_QUERY = """
query($login: String!, $cursor: String) {
  %s(login: $login) {
    repositories(first: %d, after: $cursor) {
      nodes { name }
      pageInfo { hasNextPage endCursor }
    }
  }
}
"""


class RemoteListError(Exception):
    """Raised when the remote repo list cannot be fetched."""


def _repo_names(items, source: str) -> list[str]:
    """Repo names from a list of ``{"name": ...}`` objects, owner prefix dropped."""
    if not isinstance(items, list):
        raise RemoteListError(f"unexpected {source} output: expected a list of repos")
    names = []
    for item in items:
        name = item.get("name") if isinstance(item, dict) else None
        if not isinstance(name, str) or not name:
            raise RemoteListError(f"unexpected {source} output: repo entry without a name")
        # gh may return "owner/repo"; keep the repo part only
        names.append(name.split("/")[-1])
    return names


class RemoteRepoProvider(ABC):
    @abstractmethod
    def list_repo_names(self, login: str, is_org: bool) -> list[str]:
        """Return repo names (without owner) for *login*."""
        ...


class APIProvider(RemoteRepoProvider):
    """GitHub GraphQL API, authenticated with $GITHUB_AUTH.

    Without a token there is nothing to list and the result is empty.
    """

    def __init__(self, token: str | None = None, timeout: float = 30.0):
        self.token = token if token is not None else os.environ.get(TOKEN_ENV, "")
        self.timeout = timeout

    def _query(self, login: str, is_org: bool, cursor: str | None) -> dict:
        owner = "organization" if is_org else "user"
        body = json.dumps({
            "query": _REPOS_QUERY % (owner, PAGE_SIZE),
            "variables": {"login": login, "cursor": cursor},
        }).encode()
        req = urllib.request.Request(
            GRAPHQL_URL,
            data=body,
            headers={
                "Authorization": f"bearer {self.token}",
                "Content-Type": "application/json",
            },
            method="POST",
        )
        log_shell_command(f"POST {GRAPHQL_URL} {owner}={login}", prefix="github")
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                payload = json.loads(resp.read().decode())
        except urllib.error.HTTPError as e:
            raise RemoteListError(f"GitHub GraphQL {owner} query failed: HTTP {e.code}") from e
        except (urllib.error.URLError, OSError, TimeoutError) as e:
            raise RemoteListError(f"GitHub GraphQL {owner} query failed: {e}") from e
        except ValueError as e:
            raise RemoteListError(f"GitHub GraphQL {owner} query returned invalid JSON: {e}") from e

        if not isinstance(payload, dict):
            raise RemoteListError(f"GitHub GraphQL {owner} query returned an unexpected payload")
        errors = payload.get("errors")
        if errors:
            if not isinstance(errors, list):
                errors = [errors]
            messages = "; ".join(
                str(err.get("message", "?")) if isinstance(err, dict) else str(err)
                for err in errors
            )
            raise RemoteListError(f"GitHub GraphQL {owner} query failed: {messages}")
        data = payload.get("data")
        node = data.get(owner) if isinstance(data, dict) else None
        if not node:
            raise RemoteListError(f"GitHub {owner} '{login}' not found")
        repos = node.get("repositories") if isinstance(node, dict) else None
        if not isinstance(repos, dict):
            raise RemoteListError(f"GitHub GraphQL {owner} response has no repositories")
        return repos

    def list_repo_names(self, login, is_org):
        if not self.token:
            _log.info("%s not set, skipping remote repo listing", TOKEN_ENV)
            return []
        names: list[str] = []
        cursor = None
        while True:
            repos = self._query(login, is_org, cursor)
            names.extend(_repo_names(repos.get("nodes") or [], "GitHub GraphQL"))
            page = repos.get("pageInfo")
            if not isinstance(page, dict) or not page.get("hasNextPage"):
                break
            cursor = page.get("endCursor")
        return names


class CLIProvider(RemoteRepoProvider):
    """GitHub CLI (``gh repo list``)."""

    def list_repo_names(self, login, is_org):
        if not shutil.which("gh"):
            raise RemoteListError("gh CLI not found in PATH")
        cmd = ["gh", "repo", "list", login, "--json", "name", "--limit", str(CLI_LIMIT)]
        log_shell_command(cmd, prefix="gh")
        try:
            result = subprocess.run(cmd, capture_output=True, text=True)
        except OSError as e:
            raise RemoteListError(f"running gh failed: {e}") from e
        if result.returncode != 0:
            log_shell_command(cmd, prefix="gh", returncode=result.returncode)
            raise RemoteListError(
                f"gh repo list failed (rc={result.returncode}): {result.stderr.strip()}"
            )
        try:
            repos = json.loads(result.stdout or "[]")
        except ValueError as e:
            raise RemoteListError(f"failed to parse gh output: {e}") from e
        return _repo_names(repos, "gh repo list")


_PROVIDERS = {
    "api": APIProvider,
    "cli": CLIProvider,
}


def get_provider(ws: WorkspaceConfig) -> RemoteRepoProvider:
    """Get the provider for the workspace's github_backend (default api)."""
    cls = _PROVIDERS.get(ws.github_backend, APIProvider)
    return cls()
