"""Maps verified launch claims to an in-app landing path."""

from urllib.parse import quote

from edusphere.lti.types import LaunchClaims

DEFAULT_PATH = "/dashboard"
CONTENT_ID_KEY = "edusphere_content_id"
COURSE_ID_KEY = "edusphere_course_id"


def _segment(value: object) -> str:
    return quote(str(value), safe="")


def _is_local_path(uri: str) -> bool:
    """Root-relative path only: no scheme, no //host, no backslash tricks."""
    return uri.startswith("/") and not uri.startswith("//") and "\\" not in uri


def resolve_target(claims: LaunchClaims) -> str:
    """Return the landing path; the first matching rule wins.

    Absolute target_link_uri values are never followed.
    """
    custom = claims.custom or {}
    if custom.get(CONTENT_ID_KEY):
        return f"/learn/{_segment(custom[CONTENT_ID_KEY])}"
    if custom.get(COURSE_ID_KEY):
        return f"/courses/{_segment(custom[COURSE_ID_KEY])}"
    if claims.context is not None and claims.context.id:
        return f"/courses/{_segment(claims.context.id)}"
    if claims.resource_link.id:
        return f"/courses/{_segment(claims.resource_link.id)}"
    if _is_local_path(claims.target_link_uri):
        return claims.target_link_uri
    return DEFAULT_PATH
