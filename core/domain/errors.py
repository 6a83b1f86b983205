"""
Error taxonomy for the acceptance criteria sync.

Malformed content in an existing spec file is deliberately absent here:
text that does not match an anchor pattern is left untouched, never rejected.
"""


class ScaffoldError(Exception):
    """Base class for all sync errors."""


class ConfigurationError(ScaffoldError):
    """Fatal configuration problem detected before any file is touched."""


class ProfileNotFoundError(ConfigurationError):
    """Raised when a scaffold profile name is not registered."""

    def __init__(self, profile_name: str, available=None):
        self.profile_name = profile_name
        self.available = sorted(available or [])
        message = f"Unknown scaffold profile: '{profile_name}'"
        if self.available:
            message += f". Available profiles: {', '.join(self.available)}"
        super().__init__(message)


class SourceUnavailableError(ScaffoldError):
    """Issue tracker could not be reached or returned an unusable response."""

    def __init__(self, step: str, url: str, message: str, status_code=None, body=None):
        self.step = step
        self.url = url
        self.status_code = status_code
        self.body = body
        super().__init__(f"{step} failed at {url}: {message}")


class SpecFileWriteError(ScaffoldError):
    """The target spec file could not be written."""

    def __init__(self, path: str, reason: str):
        self.path = path
        super().__init__(f"Could not write {path}: {reason}")
