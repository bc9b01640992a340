"""Pivotal Tracker project provider over the v5 REST API.

Every operation returns a TrackerResult; upstream failures (HTTP errors,
transport errors, an unexpected ``kind`` in the response) are reported as
``ok=False`` instead of being raised.

Member lookups go through a cache-aside read keyed ``<project_id>/<user_id>``.
Entries are never invalidated on add/remove and live for member_cache_ttl.
"""

from __future__ import annotations

import json
import logging
from types import TracebackType
from typing import Any

import httpx

from pivotal_bridge.core.config import Settings, settings
from pivotal_bridge.integrations.projects.base import (
    MemberCacheError,
    MembershipRole,
    ProjectOptions,
    TrackerError,
    TrackerResult,
)
from pivotal_bridge.integrations.projects.cache import MemberCache, build_member_cache, member_key

logger = logging.getLogger(__name__)


def _error_message(response: httpx.Response) -> str:
    """Pull the human-readable reason out of a Tracker error body."""
    try:
        body = response.json()
    except ValueError:
        return f"HTTP {response.status_code}"
    if isinstance(body, dict):
        for field in ("general_problem", "error"):
            if body.get(field):
                return str(body[field])
    return f"HTTP {response.status_code}"


def _expect_kind(payload: Any, kind: str, message: str) -> dict[str, Any]:
    if not isinstance(payload, dict) or payload.get("kind") != kind or payload.get("id") is None:
        raise TrackerError(message)
    return payload


def _named_failure(error: TrackerError, message: str) -> str:
    """Prefix an upstream HTTP error with the operation's own message."""
    if error.status_code is None:
        return str(error)
    return f"{message.rstrip('.')}: {error}"


def _find_membership(memberships: Any, field: str, value: str | int) -> dict[str, Any] | None:
    """First membership whose person.<field> equals value (string compare)."""
    if not isinstance(memberships, list):
        raise TrackerError("Unexpected membership list payload from Pivotal Tracker.")
    for membership in memberships:
        person = membership.get("person") if isinstance(membership, dict) else None
        if not isinstance(person, dict):
            raise TrackerError("Unexpected membership entry from Pivotal Tracker.")
        if str(person.get(field)) == str(value):
            return membership
    return None


class ProjectClient:
    """Project-scoped Tracker operations.

    The auth token is read from ``config`` on every request, so rotating
    it on the settings object applies to the next call.
    """

    def __init__(self, config: Settings, http: httpx.AsyncClient, cache: MemberCache) -> None:
        self._config = config
        self._http = http
        self._cache = cache

    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "X-TrackerToken": self._config.pivotal_tracker_token,
        }

    async def _request(
        self,
        method: str,
        path: str,
        body: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Issue one API call and return the decoded JSON body."""
        try:
            response = await self._http.request(
                method,
                path,
                json=body,
                params=params,
                headers=self._headers(),
            )
        except httpx.HTTPError as e:
            raise TrackerError(f"{method} {path} failed: {e}") from e

        if response.status_code >= 400:
            raise TrackerError(_error_message(response), status_code=response.status_code)
        if response.status_code == 204 or not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise TrackerError(f"{method} {path} returned invalid JSON") from e

    def project_url(self, project_id: str | int) -> str:
        return f"{self._config.pivotal_tracker_web_url.rstrip('/')}/projects/{project_id}"

    async def create(self, name: str, configuration: ProjectOptions | None = None) -> TrackerResult:
        """Create a project, then invite configuration.user as owner if given.

        Tracker's default owner assignment is suppressed (no_owner) so the
        invited user gets an explicit role. A failed invitation is reported
        in ``invited_user`` only; the project stays created.
        """
        options = configuration or ProjectOptions()
        account_id = options.account_id
        if account_id is None:
            account_id = self._config.pivotal_tracker_account_id
        failed = f"Failed to create Pivotal Tracker project '{name}'."
        try:
            try:
                account = int(account_id)
            except (TypeError, ValueError) as e:
                raise TrackerError(f"Invalid Pivotal Tracker account id {account_id!r}.") from e

            body: dict[str, Any] = {
                "name": name,
                "account_id": account,
                "public": not options.private,
                "no_owner": True,
            }
            if options.description is not None:
                body["description"] = options.description

            payload = await self._request("POST", "/projects", body=body)
            project = _expect_kind(payload, "project", failed)
        except TrackerError as e:
            logger.warning("Project create failed (name=%s): %s", name, e)
            return TrackerResult.failure(_named_failure(e, failed))

        logger.info("Created Tracker project %s (name=%s)", project.get("id"), name)
        result = TrackerResult.success(project, url=self.project_url(project["id"]))
        if options.user is not None:
            result.invited_user = await self.add_user(options.user.email, project["id"], MembershipRole.OWNER)
        return result

    async def add_user(
        self,
        user_email: str,
        project_id: str | int,
        role: MembershipRole | str = MembershipRole.MEMBER,
    ) -> TrackerResult:
        """Add a membership by email with the given role."""
        failed = f"Failed to add user '{user_email}' to Pivotal Tracker project."
        try:
            payload = await self._request(
                "POST",
                f"/projects/{project_id}/memberships",
                body={"email": user_email, "role": str(role)},
            )
            membership = _expect_kind(payload, "project_membership", failed)
        except TrackerError as e:
            logger.warning("Add user failed (project=%s, email=%s): %s", project_id, user_email, e)
            return TrackerResult.failure(_named_failure(e, failed))
        logger.info("Added %s to project %s as %s", user_email, project_id, role)
        return TrackerResult.success(membership)

    async def remove_user(self, user_email: str, project_id: str | int) -> TrackerResult:
        """Delete the first membership whose person email matches."""
        try:
            memberships = await self._request("GET", f"/projects/{project_id}/memberships")
            membership = _find_membership(memberships, "email", user_email)
            if membership is None or membership.get("id") is None:
                raise TrackerError(f"Failed to remove user '{user_email}' from Pivotal Tracker project.")
            payload = await self._request("DELETE", f"/projects/{project_id}/memberships/{membership['id']}")
        except TrackerError as e:
            logger.warning("Remove user failed (project=%s, email=%s): %s", project_id, user_email, e)
            return TrackerResult.failure(str(e))
        logger.info("Removed %s from project %s", user_email, project_id)
        return TrackerResult.success(payload)

    async def fetch_stories(self, project_id: str | int, options: dict[str, Any] | None = None) -> TrackerResult:
        """List stories; options are passed through as query parameters."""
        try:
            stories = await self._request("GET", f"/projects/{project_id}/stories", params=options or None)
        except TrackerError as e:
            logger.warning("Fetch stories failed (project=%s): %s", project_id, e)
            return TrackerResult.failure(str(e))
        return TrackerResult.success(stories)

    async def get_labels(self, project_id: str | int) -> TrackerResult:
        try:
            labels = await self._request("GET", f"/projects/{project_id}/labels")
        except TrackerError as e:
            logger.warning("Get labels failed (project=%s): %s", project_id, e)
            return TrackerResult.failure(str(e))
        return TrackerResult.success(labels)

    async def get_member(self, user_id: str | int, project_id: str | int) -> TrackerResult:
        """Resolve a person's membership, served from cache when possible.

        ``data`` is None when the person is not a member. Not-found results
        are cached as well unless member_cache_not_found is off.
        """
        key = member_key(project_id, user_id)
        cached: str | None = None
        try:
            cached = await self._cache.get(key)
        except MemberCacheError as e:
            logger.warning("Member cache read failed, refetching: %s", e)
        if cached is not None:
            try:
                member = json.loads(cached)
            except ValueError:
                logger.warning("Discarding unreadable member cache entry: %s", key)
            else:
                logger.debug("Member cache hit: %s", key)
                return TrackerResult.success(member)

        logger.debug("Member cache miss: %s", key)
        try:
            memberships = await self._request("GET", f"/projects/{project_id}/memberships")
            member = _find_membership(memberships, "id", user_id)
        except TrackerError as e:
            logger.warning("Get member failed (project=%s, user=%s): %s", project_id, user_id, e)
            return TrackerResult.failure(str(e))

        if member is not None or self._config.member_cache_not_found:
            try:
                await self._cache.set(key, json.dumps(member), self._config.member_cache_ttl)
            except MemberCacheError as e:
                logger.warning("Member cache write failed: %s", e)
        return TrackerResult.success(member)


class PivotalTracker:
    """Pivotal Tracker integration entry point.

    Owns the HTTP client and member cache; operations live on ``project``.
    Use as an async context manager or call ``aclose()`` when done.
    """

    def __init__(
        self,
        config: Settings | None = None,
        cache: MemberCache | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config or settings
        self._cache = cache if cache is not None else build_member_cache(self._config)
        self._http = httpx.AsyncClient(
            base_url=self._config.pivotal_tracker_api_url,
            transport=transport or httpx.AsyncHTTPTransport(retries=self._config.pivotal_tracker_retries),
            timeout=self._config.pivotal_tracker_timeout,
        )
        self.project = ProjectClient(self._config, self._http, self._cache)

    async def aclose(self) -> None:
        await self._http.aclose()
        await self._cache.close()

    async def __aenter__(self) -> PivotalTracker:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()
