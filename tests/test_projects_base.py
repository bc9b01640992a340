"""Tests for pivotal_bridge.integrations.projects.base."""

from __future__ import annotations

from pivotal_bridge.integrations.projects.base import (
    MembershipRole,
    ProjectOptions,
    TrackerError,
    TrackerResult,
    TrackerUser,
)


class TestMembershipRole:
    def test_all_roles(self) -> None:
        assert MembershipRole.OWNER.value == "owner"
        assert MembershipRole.MEMBER.value == "member"
        assert MembershipRole.VIEWER.value == "viewer"
        assert len(MembershipRole) == 3

    def test_str(self) -> None:
        assert str(MembershipRole.OWNER) == "owner"


class TestTrackerError:
    def test_status_code_optional(self) -> None:
        err = TrackerError("boom")
        assert str(err) == "boom"
        assert err.status_code is None

    def test_status_code(self) -> None:
        assert TrackerError("denied", status_code=403).status_code == 403


class TestProjectOptions:
    def test_defaults(self) -> None:
        opts = ProjectOptions()
        assert opts.account_id is None
        assert opts.description is None
        assert opts.private is False
        assert opts.user is None

    def test_user(self) -> None:
        opts = ProjectOptions(user=TrackerUser(email="a@b.com"))
        assert opts.user is not None
        assert opts.user.email == "a@b.com"
        assert opts.user.name is None


class TestTrackerResult:
    def test_failure_envelope(self) -> None:
        result = TrackerResult.failure("nope")
        assert not result.ok
        assert result.as_envelope() == {"ok": False, "error": "nope"}

    def test_dict_payload_merged(self) -> None:
        result = TrackerResult.success({"kind": "project_membership", "id": 7})
        assert result.as_envelope() == {"kind": "project_membership", "id": 7, "ok": True}

    def test_list_payload_under_data(self) -> None:
        result = TrackerResult.success([{"id": 1}])
        assert result.as_envelope() == {"ok": True, "data": [{"id": 1}]}

    def test_none_payload(self) -> None:
        assert TrackerResult.success(None).as_envelope() == {"ok": True}

    def test_payload_ok_field_overridden(self) -> None:
        result = TrackerResult.success({"ok": "upstream", "id": 1})
        assert result.as_envelope()["ok"] is True

    def test_nested_invited_user(self) -> None:
        result = TrackerResult.success({"id": 42}, url="https://www.pivotaltracker.com/projects/42")
        result.invited_user = TrackerResult.failure("Failed to add user 'a@b.com' to Pivotal Tracker project.")
        assert result.as_envelope() == {
            "id": 42,
            "ok": True,
            "url": "https://www.pivotaltracker.com/projects/42",
            "invited_user": {
                "ok": False,
                "error": "Failed to add user 'a@b.com' to Pivotal Tracker project.",
            },
        }
