"""
GitHub Contents API Client

Reads and conditionally writes a single repository file through
``/repos/{owner}/{repo}/contents/{path}``. The file's blob ``sha`` is the
concurrency token: a write carrying a stale sha is rejected by GitHub and
surfaces here as ``ConflictError``.
"""

import base64
import binascii
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

from .data_models import Tree
from bookmark_organizer.utils.api_key_validator import GitHubTokenValidator
from bookmark_organizer.utils.error_handler import (
    AuthError,
    ConflictError,
    NotAuthenticatedError,
    RemoteError,
    RemoteNotFoundError,
    ValidationError,
)


@dataclass
class RemoteFile:
    """Decoded contents of the remote file and its concurrency token."""

    text: str
    sha: str
    path: str
    size: int = 0


@dataclass
class CommitResult:
    """
    Outcome of a successful conditional write.

    Attributes:
        message: Commit message used
        content_sha: New concurrency token of the file
        commit_sha: Sha of the created commit
        commit_url: Web URL of the commit, when reported
        tree: The tree that was written
    """

    message: str
    content_sha: str
    commit_sha: Optional[str] = None
    commit_url: Optional[str] = None
    tree: Tree = field(default_factory=list)


class GitHubContentsClient:
    """
    Client for one file of one repository.

    The client is usable directly or as a context manager; the underlying
    ``httpx.Client`` is created on first use and released by ``close()``.

    Example:
        >>> with GitHubContentsClient("octocat", "links", "src/data/links.json") as client:
        ...     remote = client.get_file(token)
        ...     client.put_file(token, remote.text, remote.sha, "Touch links")
    """

    DEFAULT_HEADERS = {
        "Accept": "application/vnd.github+json",
        "X-GitHub-Api-Version": "2022-11-28",
        "User-Agent": "BookmarkOrganizer/1.0",
    }

    # Statuses GitHub uses when the supplied sha no longer matches the file
    CONFLICT_STATUSES = {409, 422}

    def __init__(
        self,
        owner: str,
        repo: str,
        file_path: str,
        api_base: str = "https://api.github.com",
        branch: Optional[str] = None,
        timeout: float = 30.0,
        max_retries: int = 2,
        retry_delay: float = 0.5,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Initialize the client.

        Args:
            owner: Repository owner
            repo: Repository name
            file_path: Path of the file inside the repository
            api_base: GitHub REST API base URL
            branch: Branch to read and write (default branch if None)
            timeout: Per-request timeout in seconds
            max_retries: Retries for reads on connection errors and timeouts
            retry_delay: Base delay between read retries in seconds
            transport: Optional httpx transport (tests mount a fake server)
        """
        self.owner = owner
        self.repo = repo
        self.file_path = file_path.strip("/")
        self.api_base = api_base.rstrip("/")
        self.branch = branch
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._transport = transport
        self._client: Optional[httpx.Client] = None
        self.logger = logging.getLogger(__name__)

    @property
    def contents_url(self) -> str:
        path = quote(self.file_path, safe="/")
        return (
            f"{self.api_base}/repos/{quote(self.owner, safe='')}/"
            f"{quote(self.repo, safe='')}/contents/{path}"
        )

    def __enter__(self) -> "GitHubContentsClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def _http(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(
                timeout=httpx.Timeout(self.timeout),
                headers=self.DEFAULT_HEADERS,
                transport=self._transport,
                follow_redirects=True,
            )
        return self._client

    def close(self) -> None:
        """Release HTTP resources."""
        if self._client is not None:
            self._client.close()
            self._client = None

    def _auth_headers(self, token: Optional[str]) -> Dict[str, str]:
        if not token:
            raise NotAuthenticatedError(
                "GitHub token not found. Please authenticate first."
            )
        return {"Authorization": f"Bearer {token}"}

    def _raise_for_status(
        self, response: httpx.Response, token: str, writing: bool
    ) -> None:
        """Map an unsuccessful response to the error taxonomy."""
        status = response.status_code
        if 200 <= status < 300:
            return

        detail = self._error_detail(response)
        detail = GitHubTokenValidator.mask_in_error_message(detail, [token])

        if status == 401:
            raise AuthError(
                "Invalid GitHub token. Please check your authentication.",
                status_code=status,
            )
        if status == 404:
            raise RemoteNotFoundError(
                f"Repository or file not found: {self.owner}/{self.repo}/"
                f"{self.file_path}",
                status_code=status,
            )
        if writing and status in self.CONFLICT_STATUSES:
            raise ConflictError(
                f"Remote file changed since it was fetched: {detail}",
                status_code=status,
            )
        if status == 403 and response.headers.get("x-ratelimit-remaining") == "0":
            raise RemoteError("GitHub API rate limit exceeded", status_code=status)

        raise RemoteError(f"GitHub API error: {detail}", status_code=status)

    @staticmethod
    def _error_detail(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text[:200] or response.reason_phrase
        if isinstance(body, dict) and body.get("message"):
            return str(body["message"])
        return response.reason_phrase

    def get_file(self, token: Optional[str]) -> RemoteFile:
        """
        Fetch and decode the file together with its current sha.

        Reads are retried on connection errors and timeouts.

        Raises:
            NotAuthenticatedError: If no token is given
            AuthError: On HTTP 401
            RemoteNotFoundError: On HTTP 404
            RemoteError: On any other failure
            ValidationError: If the file is not UTF-8 text
        """
        headers = self._auth_headers(token)
        params = {"ref": self.branch} if self.branch else None
        last_error: Optional[Exception] = None

        for attempt in range(self.max_retries + 1):
            try:
                response = self._http().get(
                    self.contents_url, headers=headers, params=params
                )
            except (httpx.ConnectError, httpx.TimeoutException) as e:
                last_error = e
                self.logger.warning(
                    f"GET {self.file_path} failed "
                    f"(attempt {attempt + 1}/{self.max_retries + 1}): "
                    f"{type(e).__name__}"
                )
                if attempt < self.max_retries:
                    time.sleep(self.retry_delay * (attempt + 1))
                continue
            except httpx.HTTPError as e:
                raise RemoteError("GitHub request failed", original_error=e) from e

            self._raise_for_status(response, token, writing=False)
            return self._decode_file(self._json_body(response))

        raise RemoteError(
            f"Failed to reach GitHub after {self.max_retries + 1} attempts",
            original_error=last_error,
        )

    @staticmethod
    def _json_body(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            content_type = response.headers.get("content-type", "no content type")
            raise RemoteError(
                f"GitHub returned a non-JSON response ({content_type})",
                status_code=response.status_code,
                original_error=e,
            ) from e

    def _decode_file(self, payload: Any) -> RemoteFile:
        if not isinstance(payload, dict) or payload.get("type", "file") != "file":
            raise RemoteError(f"{self.file_path} is not a file in {self.repo}")

        if payload.get("encoding") != "base64":
            # The contents API omits content for files above 1 MB
            raise RemoteError(
                f"{self.file_path} content not returned "
                f"(encoding: {payload.get('encoding')!r})"
            )

        try:
            raw = base64.b64decode(payload.get("content") or "")
            text = raw.decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as e:
            raise ValidationError(
                "Remote file is unreadable", [f"{self.file_path}: {e}"]
            ) from e

        sha = payload.get("sha")
        if not isinstance(sha, str) or not sha:
            raise RemoteError(f"Unexpected GitHub response: no sha for {self.file_path}")

        return RemoteFile(
            text=text,
            sha=sha,
            path=payload.get("path", self.file_path),
            size=payload.get("size", len(raw)),
        )

    def put_file(
        self, token: Optional[str], text: str, sha: str, message: str
    ) -> CommitResult:
        """
        Replace the file if it still has ``sha``.

        Writes are never retried: a stale sha raises ``ConflictError`` and a
        transport failure raises ``RemoteError``, leaving the re-fetch to the
        caller.

        Raises:
            NotAuthenticatedError: If no token is given
            AuthError: On HTTP 401
            RemoteNotFoundError: On HTTP 404
            ConflictError: On HTTP 409/422 (sha mismatch)
            RemoteError: On any other failure
        """
        headers = self._auth_headers(token)
        body: Dict[str, Any] = {
            "message": message,
            "content": base64.b64encode(text.encode("utf-8")).decode("ascii"),
            "sha": sha,
        }
        if self.branch:
            body["branch"] = self.branch

        try:
            response = self._http().put(self.contents_url, headers=headers, json=body)
        except httpx.TimeoutException as e:
            raise RemoteError(
                "Commit timed out; fetch again to see whether it was applied",
                original_error=e,
            ) from e
        except httpx.HTTPError as e:
            raise RemoteError("GitHub request failed", original_error=e) from e

        self._raise_for_status(response, token, writing=True)

        # The write has already been accepted at this point
        try:
            payload = self._json_body(response)
        except RemoteError as e:
            raise RemoteError(
                "Commit response unreadable; fetch again to see whether it was applied",
                status_code=e.status_code,
                original_error=e.original_error,
            ) from e
        if not isinstance(payload, dict):
            payload = {}
        commit = payload.get("commit")
        content = payload.get("content")
        if not isinstance(commit, dict):
            commit = {}
        if not isinstance(content, dict):
            content = {}
        result = CommitResult(
            message=message,
            content_sha=content.get("sha") or "",
            commit_sha=commit.get("sha"),
            commit_url=commit.get("html_url"),
        )
        self.logger.info(
            f"Committed {self.file_path} ({result.commit_sha or 'unknown commit'})"
        )
        return result

    def __repr__(self) -> str:
        return (
            f"GitHubContentsClient({self.owner}/{self.repo}:{self.file_path}, "
            f"branch={self.branch}, timeout={self.timeout})"
        )
