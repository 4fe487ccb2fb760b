"""
Async GitHub REST client.

Covers the calls the validation pipeline and reporter need: pull request
metadata and files, file contents at a ref, comments and labels.
"""

import base64
import os
from collections.abc import Mapping
from typing import Any

from suffixbot.exceptions import ConfigurationError, NotFoundError
from suffixbot.logging import get_logger
from suffixbot.transport import AsyncHTTPTransport, RetryConfig
from suffixbot.types.pulls import FileChange

logger = get_logger("github")


class AsyncGitHubClient:
    """
    Async client for the GitHub REST API, bound to one repository.

    Example:
        ```python
        import asyncio
        from suffixbot.clients import AsyncGitHubClient

        async def main():
            async with AsyncGitHubClient.from_env() as github:
                files = await github.get_pull_request_files(42)

        asyncio.run(main())
        ```
    """

    DEFAULT_BASE_URL = "https://api.github.com"
    DEFAULT_TIMEOUT = 30.0
    PER_PAGE = 100

    def __init__(
        self,
        token: str,
        repository: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        retry_config: RetryConfig | None = None,
        transport: AsyncHTTPTransport | None = None,
    ) -> None:
        """
        Initialize the GitHub client.

        Args:
            token: Personal access or installation token
            repository: "owner/name" of the repository
            base_url: REST API base URL
            timeout: Request timeout in seconds
            retry_config: Configuration for retry behavior (optional)
            transport: Pre-built transport (optional)
        """
        if "/" not in repository:
            raise ConfigurationError(f"Invalid repository '{repository}'. Expected 'owner/name'")

        self.repository = repository
        self.owner, self.repo = repository.split("/", 1)
        self._transport = transport or AsyncHTTPTransport(
            base_url=base_url,
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
            },
            timeout=timeout,
            retry_config=retry_config,
        )

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        retry_config: RetryConfig | None = None,
    ) -> "AsyncGitHubClient":
        """
        Create a client from environment variables.

        Environment variables:
            GITHUB_TOKEN or MY_GITHUB_TOKEN: API token (required)
            GITHUB_REPOSITORY: owner/name (required)
            GITHUB_API_URL: API base URL (optional)

        Raises:
            ConfigurationError: If required environment variables are missing
        """
        env = os.environ if environ is None else environ
        token = env.get("GITHUB_TOKEN") or env.get("MY_GITHUB_TOKEN")
        repository = env.get("GITHUB_REPOSITORY")

        if not token:
            raise ConfigurationError("GITHUB_TOKEN environment variable not set")
        if not repository:
            raise ConfigurationError("GITHUB_REPOSITORY environment variable not set")

        return cls(
            token=token,
            repository=repository,
            base_url=env.get("GITHUB_API_URL", cls.DEFAULT_BASE_URL),
            timeout=timeout,
            retry_config=retry_config,
        )

    @property
    def transport(self) -> AsyncHTTPTransport:
        return self._transport

    @property
    def _repo_path(self) -> str:
        return f"/repos/{self.owner}/{self.repo}"

    async def get_pull_request_files(self, number: int | str) -> list[FileChange]:
        """
        List every file changed by a pull request.

        Returns:
            FileChange items in the order GitHub reports them
        """
        files: list[FileChange] = []
        page = 1
        while True:
            batch = await self._transport.request(
                "GET",
                f"{self._repo_path}/pulls/{number}/files",
                params={"per_page": self.PER_PAGE, "page": page},
            )
            files.extend(FileChange.from_dict(item) for item in batch)
            if len(batch) < self.PER_PAGE:
                break
            page += 1

        logger.debug("PR #%s changes %d file(s)", number, len(files))
        return files

    async def get_file_content(self, path: str, ref: str) -> str | None:
        """
        Fetch a file's text at ``ref``.

        Returns:
            Decoded UTF-8 text, or None when the API returns no inline content
        """
        data = await self._transport.request(
            "GET", f"{self._repo_path}/contents/{path}", params={"ref": ref}
        )
        content = data.get("content") if isinstance(data, dict) else None
        if not content:
            return None
        return base64.b64decode(content).decode("utf-8")

    async def check_file_exists(self, path: str, ref: str) -> bool:
        """True when ``path`` exists at ``ref``; other API errors propagate."""
        try:
            await self._transport.request(
                "GET", f"{self._repo_path}/contents/{path}", params={"ref": ref}
            )
        except NotFoundError:
            return False
        return True

    async def create_comment(self, number: int | str, body: str) -> dict[str, Any]:
        return await self._transport.request(
            "POST", f"{self._repo_path}/issues/{number}/comments", body={"body": body}
        )

    async def set_labels(self, number: int | str, labels: list[str]) -> list[dict[str, Any]]:
        """Replace the pull request's labels."""
        return await self._transport.request(
            "PUT", f"{self._repo_path}/issues/{number}/labels", body={"labels": labels}
        )

    async def close(self) -> None:
        await self._transport.close()

    async def __aenter__(self) -> "AsyncGitHubClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()
