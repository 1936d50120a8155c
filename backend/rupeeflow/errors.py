"""Exception hierarchy shared by stores, services and routers."""


class RupeeFlowError(Exception):
    """Base class for application errors."""

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message or self.__class__.__doc__ or ""


class NotFoundError(RupeeFlowError):
    """Requested record does not exist."""


class ValidationError(RupeeFlowError):
    """Input failed validation."""


class PersistenceError(RupeeFlowError):
    """The database rejected a read or write."""


class AuthError(RupeeFlowError):
    """Authentication failed."""


class InvalidCredentialsError(AuthError):
    """Invalid email or password."""


class EmailNotVerifiedError(AuthError):
    """Please verify your email before signing in."""


class EmailAlreadyRegisteredError(AuthError):
    """Email already registered."""


class FederatedLoginError(AuthError):
    """Google sign-in failed."""


class InvalidTokenError(AuthError):
    """Invalid or expired token."""
