"""Error taxonomy for the LTI login and launch handshake."""

HTTP_BAD_REQUEST = 400
HTTP_UNAUTHORIZED = 401


class LtiError(Exception):
    """Base error rendered as an OAuth-style JSON error body.

    ``reason`` holds verifier internals for the logs. It never reaches the
    response body, which only carries ``error`` and ``message``.
    """

    status_code: int = HTTP_BAD_REQUEST
    error: str = "invalid_request"
    message: str = "Invalid LTI request"

    def __init__(self, reason: str | None = None) -> None:
        super().__init__(self.message)
        self.reason = reason or self.message


class UnknownIssuerError(LtiError):
    """The issuer is not a registered platform."""

    error = "unknown_issuer"
    message = "LTI platform is not registered"


class LaunchUnauthorizedError(LtiError):
    """Security failure during launch validation."""

    status_code = HTTP_UNAUTHORIZED
    error = "unauthorized"
    message = "LTI launch rejected"


class StateInvalidError(LaunchUnauthorizedError):
    error = "invalid_state"
    message = "LTI state is missing, expired, or already used"


class JwtInvalidError(LaunchUnauthorizedError):
    error = "invalid_token"
    message = "LTI id_token verification failed"


class NonceMismatchError(LaunchUnauthorizedError):
    error = "invalid_nonce"
    message = "LTI nonce does not match the login request"


class UnsupportedVersionError(LtiError):
    """Well-formed, authentic launch for an LTI version we do not speak."""

    error = "unsupported_version"
    message = "Unsupported LTI version"
