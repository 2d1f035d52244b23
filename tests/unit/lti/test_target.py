"""Tests for landing path resolution."""

from edusphere.lti.target import DEFAULT_PATH, resolve_target
from edusphere.lti.types import LaunchClaims

BASE_CLAIMS = {
    "sub": "user-1",
    "iss": "https://lms.example.edu",
    "aud": "edusphere-tool",
    "exp": 2_000_000_000,
    "iat": 1_900_000_000,
    "nonce": "n1",
    "version": "1.3.0",
    "message_type": "LtiResourceLinkRequest",
    "deployment_id": "deploy-1",
}


def _claims(**overrides: object) -> LaunchClaims:
    return LaunchClaims(**{**BASE_CLAIMS, **overrides})


class TestPrecedence:
    """The first matching rule decides the landing path."""

    def test_content_id_wins(self) -> None:
        claims = _claims(
            custom={"edusphere_content_id": "c9", "edusphere_course_id": "k3"},
            context={"id": "ctx"},
            resource_link={"id": "rl"},
        )
        assert resolve_target(claims) == "/learn/c9"

    def test_course_id_over_context(self) -> None:
        claims = _claims(custom={"edusphere_course_id": "k3"}, context={"id": "ctx"})
        assert resolve_target(claims) == "/courses/k3"

    def test_context_over_resource_link(self) -> None:
        claims = _claims(context={"id": "ctx"}, resource_link={"id": "rl"})
        assert resolve_target(claims) == "/courses/ctx"

    def test_resource_link_fallback(self) -> None:
        claims = _claims(resource_link={"id": "rl"})
        assert resolve_target(claims) == "/courses/rl"

    def test_empty_context_id_skipped(self) -> None:
        claims = _claims(context={"id": ""}, resource_link={"id": "rl"})
        assert resolve_target(claims) == "/courses/rl"

    def test_numeric_custom_id(self) -> None:
        claims = _claims(custom={"edusphere_content_id": 42})
        assert resolve_target(claims) == "/learn/42"

    def test_default(self) -> None:
        assert resolve_target(_claims()) == DEFAULT_PATH == "/dashboard"


class TestTargetLinkUri:
    """target_link_uri is only followed when it is a local path."""

    def test_local_path_used(self) -> None:
        claims = _claims(target_link_uri="/library/item-5")
        assert resolve_target(claims) == "/library/item-5"

    def test_absolute_url_ignored(self) -> None:
        claims = _claims(target_link_uri="https://evil.example.com/phish")
        assert resolve_target(claims) == "/dashboard"

    def test_protocol_relative_ignored(self) -> None:
        claims = _claims(target_link_uri="//evil.example.com/phish")
        assert resolve_target(claims) == "/dashboard"

    def test_backslash_ignored(self) -> None:
        claims = _claims(target_link_uri="/\\evil.example.com")
        assert resolve_target(claims) == "/dashboard"

    def test_ids_take_precedence(self) -> None:
        claims = _claims(target_link_uri="/library/x", resource_link={"id": "rl"})
        assert resolve_target(claims) == "/courses/rl"


class TestEscaping:
    """Identifiers cannot break out of their path segment."""

    def test_slashes_encoded(self) -> None:
        claims = _claims(context={"id": "../admin"})
        assert resolve_target(claims) == "/courses/..%2Fadmin"

    def test_host_injection_encoded(self) -> None:
        claims = _claims(custom={"edusphere_content_id": "//evil.com?x=1"})
        assert resolve_target(claims) == "/learn/%2F%2Fevil.com%3Fx%3D1"
