"""Pivotal Tracker project integration package."""

from pivotal_bridge.integrations.projects.base import (
    MemberCacheError,
    MembershipRole,
    ProjectOptions,
    TrackerError,
    TrackerResult,
    TrackerUser,
)
from pivotal_bridge.integrations.projects.cache import (
    InMemoryMemberCache,
    MemberCache,
    RedisMemberCache,
    build_member_cache,
)
from pivotal_bridge.integrations.projects.pivotal import PivotalTracker, ProjectClient

__all__ = [
    "MemberCacheError",
    "MembershipRole",
    "ProjectOptions",
    "TrackerError",
    "TrackerResult",
    "TrackerUser",
    "InMemoryMemberCache",
    "MemberCache",
    "RedisMemberCache",
    "build_member_cache",
    "PivotalTracker",
    "ProjectClient",
]
