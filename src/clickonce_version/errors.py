"""
Exceptions raised while updating the ClickOnce settings of a project file.

Everything derives from :py:class:`ClickOnceVersionError`, so the command line
can report any of them with a single except clause. A missing project file is
reported with the built-in :py:class:`FileNotFoundError` instead.

Structure::

    ClickOnceVersionError
    ├── NoClickOnceSettingsError
    ├── MalformedVersionError
    ├── RevisionError
    │   ├── MissingRevisionError
    │   └── InvalidRevisionFormatError
    ├── MissingParentElementError
    └── ConfigurationError
"""


class ClickOnceVersionError(Exception):
    """Base exception for all clickonce_version errors."""


class NoClickOnceSettingsError(ClickOnceVersionError):
    """Raised when a project file has no PropertyGroup with an ApplicationVersion."""

    def __init__(self, path=None):
        if path is not None:
            message = f"No ClickOnce settings (PropertyGroup with ApplicationVersion) found in '{path}'"
        else:
            message = "No ClickOnce settings (PropertyGroup with ApplicationVersion) found"
        super().__init__(message)
        self.path = path


class MalformedVersionError(ClickOnceVersionError):
    """Raised when Major.Minor.Build cannot be read from a version string."""

    def __init__(self, text):
        super().__init__(f"Cannot read Major.Minor.Build from version string {text!r}")
        self.text = text


class RevisionError(ClickOnceVersionError):
    """Raised when the stored ApplicationRevision is needed but unusable."""


class MissingRevisionError(RevisionError):
    def __init__(self):
        super().__init__("ApplicationRevision is required but the project file does not define it")


class InvalidRevisionFormatError(RevisionError):
    def __init__(self, text):
        super().__init__(f"ApplicationRevision must be an unsigned integer, got {text!r}")
        self.text = text


class MissingParentElementError(ClickOnceVersionError):
    """Raised when an element should be created under a parent that does not exist."""

    def __init__(self, name):
        super().__init__(f"Cannot create element '{name}': its parent element does not exist")
        self.name = name


class ConfigurationError(ClickOnceVersionError):
    """Raised for an unreadable or invalid configuration file or environment variable."""
