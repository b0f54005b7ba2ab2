import base64
import logging
import os
from urllib.parse import quote

import httpx

from noticeboard.errors import RemoteFileNotFound, TransportError, VersionConflict

from .base import BaseStore

logger = logging.getLogger(__name__)


class GitHubStore(BaseStore):
    """
    A store backed by a GitHub repository branch, via the REST contents API.

    Every write is a commit on the branch. The version of a file is the blob
    sha the API reports; GitHub itself refuses a write whose sha doesn't match
    the file's current one, which is what gives us compare-and-swap.
    """

    type_aliases = ["github"]

    api_version = "2022-11-28"

    def __init__(
        self,
        owner: str,
        repo: str,
        name: str = "github",
        branch: str = "main",
        token: str | None = None,
        token_env: str = "GITHUB_TOKEN",
        api_url: str = "https://api.github.com",
        raw_url: str = "https://raw.githubusercontent.com",
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ):
        super().__init__(name=name)
        self.owner = owner
        self.repo = repo
        self.branch = branch
        self.raw_url = raw_url.rstrip("/")
        if token is None:
            token = os.environ.get(token_env)
        if not token:
            logger.warning(
                f"No token for {owner}/{repo} (set {token_env}); writes will fail"
            )
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": self.api_version,
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self.client = httpx.Client(
            base_url=api_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    def __str__(self):
        return f"GitHub ({self.owner}/{self.repo}@{self.branch})"

    def _contents_url(self, path: str) -> str:
        return f"/repos/{self.owner}/{self.repo}/contents/{quote(path.lstrip('/'))}"

    def _error_message(self, response: httpx.Response) -> str:
        try:
            return response.json().get("message", response.text)
        except ValueError:
            return response.text

    def remote_read(self, path: str) -> tuple[bytes, str]:
        try:
            response = self.client.get(
                self._contents_url(path), params={"ref": self.branch}
            )
        except httpx.HTTPError as e:
            raise TransportError(f"Failed to read {path}: {e}") from e
        if response.status_code == 404:
            raise RemoteFileNotFound(f"File not found: {path}")
        if response.is_error:
            raise TransportError(
                f"Failed to read {path}: {response.status_code} "
                f"{self._error_message(response)}"
            )
        data = response.json()
        if not isinstance(data, dict) or data.get("type", "file") != "file":
            raise TransportError(f"{path} is not a file")
        if data.get("encoding") == "base64":
            # The API wraps base64 at 60 columns; b64decode skips the newlines
            content = base64.b64decode(data["content"])
        else:
            # Files over 1MB come back without inline content
            content = self._download(path, data["download_url"])
        return content, data["sha"]

    def _download(self, path: str, url: str) -> bytes:
        try:
            response = self.client.get(url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise TransportError(f"Failed to download {path}: {e}") from e
        return response.content

    def remote_write(
        self,
        path: str,
        content: bytes,
        over_version: str | None,
        message: str,
    ) -> str:
        body = {
            "message": message,
            "content": base64.b64encode(content).decode("ascii"),
            "branch": self.branch,
        }
        if over_version is not None:
            body["sha"] = over_version
        try:
            response = self.client.put(self._contents_url(path), json=body)
        except httpx.HTTPError as e:
            raise TransportError(f"Failed to write {path}: {e}") from e
        if response.status_code == 409:
            raise VersionConflict(
                f"Requested {over_version} for {path}, but it has changed: "
                f"{self._error_message(response)}"
            )
        if response.status_code == 422:
            # Missing or malformed sha comes back as a validation failure
            error = self._error_message(response)
            if "sha" in error:
                raise VersionConflict(f"Requested {over_version} for {path}: {error}")
            raise TransportError(f"Failed to write {path}: 422 {error}")
        if response.is_error:
            raise TransportError(
                f"Failed to write {path}: {response.status_code} "
                f"{self._error_message(response)}"
            )
        return response.json()["content"]["sha"]

    def public_url(self, path: str) -> str | None:
        return f"{self.raw_url}/{self.owner}/{self.repo}/{self.branch}/{path.lstrip('/')}"

    def close(self):
        self.client.close()
