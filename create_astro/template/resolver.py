"""Template reference resolution.

Decides which tag, branch or commit of the template repository to download.
An explicit reference always wins; otherwise the latest published release is
queried from the GitHub API.  Version discovery is allowed to fail: the run
then continues with the configured fallback version and a warning.
"""

from __future__ import annotations

import httpx

from create_astro.config import TemplateSource
from create_astro.errors import ReferenceResolutionWarning
from create_astro.models import ResolvedReference
from create_astro.utils import print_failure, print_success, print_warning, spinner

USER_AGENT = "create-astro-app"


class ReferenceResolver:
    """Resolve the template reference used for a run.

    Args:
        source: Template repository coordinates.
        timeout: Per-request timeout in seconds.
        transport: Optional httpx transport, mainly for tests.
    """

    def __init__(
        self,
        source: TemplateSource,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.source = source
        self.timeout = timeout
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        """Return a fresh ``AsyncClient`` configured with our timeout."""
        return httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout, connect=min(self.timeout, 10.0)),
            headers={"Accept": "application/vnd.github+json", "User-Agent": USER_AGENT},
            follow_redirects=True,
            transport=self.transport,
        )

    async def latest_release(self) -> str:
        """Return the tag name of the latest published release.

        Raises:
            ReferenceResolutionWarning: If the API is unreachable, answers with
                a non-success status, or the payload has no tag.
        """
        url = self.source.latest_release_url
        try:
            async with self._client() as client:
                response = await client.get(url)
        except httpx.HTTPError as exc:
            raise ReferenceResolutionWarning(f"Failed to fetch latest release: {exc}") from exc

        if not response.is_success:
            raise ReferenceResolutionWarning(
                f"Failed to fetch latest release: HTTP {response.status_code} "
                f"{response.reason_phrase}"
            )
        try:
            data = response.json()
        except ValueError as exc:
            raise ReferenceResolutionWarning(f"Release metadata is not valid JSON: {exc}") from exc

        tag = data.get("tag_name") if isinstance(data, dict) else None
        if not isinstance(tag, str) or not tag.strip():
            raise ReferenceResolutionWarning("Release metadata has no tag_name")
        return tag.strip()

    async def resolve(self, explicit: str | None = None) -> ResolvedReference:
        """Return the reference to download.

        Never raises for discovery failures; those produce a fallback result
        carrying the warning text.
        """
        if explicit:
            return ResolvedReference(ref=explicit, source="explicit")

        with spinner("Fetching latest template version..."):
            try:
                tag = await self.latest_release()
            except ReferenceResolutionWarning as warning:
                fallback = self.source.fallback_ref
                print_failure(f"Failed to fetch latest version, using {fallback} as fallback")
                print_warning(str(warning))
                return ResolvedReference(ref=fallback, source="fallback", warning=str(warning))

        print_success(f"Latest template version: [green]{tag}[/green]")
        return ResolvedReference(ref=tag, source="latest-release")
