# src/logstream/stream/apps.py
"""Best-effort resolution of app names to source ids.

Users usually filter by app name, but the gateway scopes by source id
(the app guid). Resolution is best-effort: when the app listing fails,
every token passes through unchanged as an opaque source id.

The failure path is an explicit two-branch result (AppLookup) that the
caller consumes inline, rather than an exception swallowed deep inside a
call chain:

    lookup = lookup_apps(provider)
    if lookup.ok:
        source_ids = resolve_source_ids(tokens, lookup.apps)
    else:
        source_ids = list(tokens)
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

import httpx
import structlog

from logstream.contracts.errors import AppLookupError

logger = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class AppInfo:
    name: str
    guid: str


@runtime_checkable
class AppProvider(Protocol):
    """Capability to list the apps visible to the current user."""

    def get_apps(self) -> Sequence[AppInfo]:
        """Return every visible app.

        Raises:
            AppLookupError: If the apps cannot be listed
        """
        ...


@dataclass(frozen=True, slots=True)
class AppLookup:
    """Outcome of listing apps: either apps or an error, never both."""

    apps: tuple[AppInfo, ...] = ()
    error: AppLookupError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def lookup_apps(provider: AppProvider | None) -> AppLookup:
    """List apps through the provider without raising.

    A missing provider is a successful lookup with no apps.
    """
    if provider is None:
        return AppLookup()
    try:
        return AppLookup(apps=tuple(provider.get_apps()))
    except AppLookupError as e:
        return AppLookup(error=e)


def resolve_source_ids(tokens: Sequence[str], apps: Sequence[AppInfo]) -> list[str]:
    """Map app names to guids, passing everything else through verbatim.

    Args:
        tokens: Source filter tokens, app names or raw source ids
        apps: Apps from a successful lookup

    Returns:
        Source ids in token order
    """
    guids = {app.name: app.guid for app in apps}
    return [guids.get(token, token) for token in tokens]


class CloudControllerAppProvider:
    """Lists apps from a Cloud Controller v3 API.

    The injected client must already carry authentication (for example an
    Authorization header). Pagination is followed via pagination.next.href.

    Example:
        client = httpx.Client(headers={"Authorization": f"bearer {token}"})
        provider = CloudControllerAppProvider("https://api.example.com", client)
        apps = provider.get_apps()
    """

    _PAGE_SIZE = 5000
    # Guards against a server that keeps returning a next link
    _MAX_PAGES = 1000

    def __init__(self, api_url: str, client: httpx.Client) -> None:
        self._api_url = api_url.rstrip("/")
        self._client = client

    def get_apps(self) -> list[AppInfo]:
        apps: list[AppInfo] = []
        url: str | None = f"{self._api_url}/v3/apps"
        params: dict[str, int] | None = {"per_page": self._PAGE_SIZE}
        pages = 0

        while url is not None:
            pages += 1
            if pages > self._MAX_PAGES:
                raise AppLookupError(f"app listing exceeded {self._MAX_PAGES} pages")
            body = self._get_page(url, params)
            # next.href already carries the query string
            params = None

            resources = body.get("resources")
            if not isinstance(resources, list):
                raise AppLookupError("app listing response has no resources list")
            for resource in resources:
                if not isinstance(resource, dict):
                    raise AppLookupError("app listing resource is not an object")
                name, guid = resource.get("name"), resource.get("guid")
                if not isinstance(name, str) or not isinstance(guid, str):
                    raise AppLookupError("app listing resource lacks name or guid")
                apps.append(AppInfo(name=name, guid=guid))

            url = _next_href(body)

        logger.debug("Listed apps", count=len(apps), pages=pages)
        return apps

    def _get_page(self, url: str, params: dict[str, int] | None) -> dict[str, object]:
        try:
            response = self._client.get(url, params=params)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning("App lookup request failed", url=url, error=str(e))
            raise AppLookupError(f"failed to list apps: {e}") from e
        try:
            body = response.json()
        except ValueError as e:
            raise AppLookupError(f"app listing response is not JSON: {e}") from e
        if not isinstance(body, dict):
            raise AppLookupError("app listing response is not an object")
        return body


def _next_href(body: dict[str, object]) -> str | None:
    pagination = body.get("pagination")
    if not isinstance(pagination, dict):
        return None
    next_link = pagination.get("next")
    if not isinstance(next_link, dict):
        return None
    href = next_link.get("href")
    return href if isinstance(href, str) and href else None
