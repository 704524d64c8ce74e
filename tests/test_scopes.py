"""Tests for the scope catalog."""

from pet_access.core.scopes import (
    DEFAULT_SCOPES,
    VALID_SCOPES,
    Scope,
    is_valid_scope,
    normalize_scopes,
)


class TestScopeCatalog:
    """Tests for VALID_SCOPES and DEFAULT_SCOPES."""

    def test_catalog_contents(self):
        assert VALID_SCOPES == {
            "pet:read",
            "pet:edit_profile",
            "events:read",
            "events:create",
            "events:void",
            "attachments:add",
        }

    def test_defaults_are_read_only(self):
        assert DEFAULT_SCOPES == {Scope.PET_READ, Scope.EVENTS_READ}

    def test_defaults_belong_to_catalog(self):
        assert all(is_valid_scope(scope) for scope in DEFAULT_SCOPES)

    def test_unknown_scope_is_invalid(self):
        assert not is_valid_scope("events:unknown")
        assert not is_valid_scope("")
        assert not is_valid_scope("PET:READ")


class TestNormalizeScopes:
    """Tests for normalize_scopes."""

    def test_none_and_empty(self):
        assert normalize_scopes(None) == []
        assert normalize_scopes([]) == []

    def test_trims_and_drops_blanks(self):
        assert normalize_scopes([" pet:read ", "", "   "]) == ["pet:read"]

    def test_dedupes_in_first_seen_order(self):
        assert normalize_scopes(["events:read", "pet:read", "events:read"]) == [
            "events:read",
            "pet:read",
        ]

    def test_accepts_enum_members(self):
        assert normalize_scopes([Scope.EVENTS_VOID, "events:void"]) == ["events:void"]

    def test_keeps_unknown_for_later_validation(self):
        assert normalize_scopes(["nope"]) == ["nope"]
