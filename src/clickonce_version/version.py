"""
Derivation of ClickOnce version numbers.

A ClickOnce project stores its version in two properties: ``ApplicationVersion``
(``Major.Minor.Build.*``, with a literal ``*`` in place of the revision) and
``ApplicationRevision`` (a plain integer). This module computes the next
``Major.Minor.Build.Revision`` from the stored values and any of

* an explicit version string (``Major.Minor.Build[.Revision]``),
* a build-system id, an ever-increasing counter (e.g. a CI run number) that is
  spread over Build and Revision so neither of them overflows,
* a request to increment the stored revision.

Nothing here touches the file system; see :py:mod:`clickonce_version.project_file`.
"""

import re
from typing import NamedTuple, Optional

from clickonce_version import module_logger
from clickonce_version.errors import (InvalidRevisionFormatError,
                                      MalformedVersionError,
                                      MissingRevisionError)

PART_LIMIT = 65536  # Build and Revision are unsigned 16-bit
WILDCARD = "*"

VERSION_PATTERN = re.compile(r"^\s*(\d+)\.(\d+)\.(\d+)(?:\.(\d+))?")
EXPLICIT_VERSION_PATTERN = re.compile(r"^\d+\.\d+\.\d+(\.\d+)?$")
REVISION_PATTERN = re.compile(r"^\s*(\d+)\s*$")

class ParsedVersion(NamedTuple):
    major : int
    minor : int
    build : int
    revision : Optional[int] = None

class ResolvedVersion(NamedTuple):
    major : int
    minor : int
    build : int
    revision : int

    @property
    def version(self) -> str:
        return f"{self.major}.{self.minor}.{self.build}.{self.revision}"

    @property
    def wildcard_version(self) -> str:
        """The value stored in ApplicationVersion."""
        return f"{self.major}.{self.minor}.{self.build}.{WILDCARD}"

    @property
    def revision_string(self) -> str:
        """The value stored in ApplicationRevision."""
        return str(self.revision)

    def __str__(self) -> str:
        return self.version

def parse_version(text : str) -> ParsedVersion:
    """Read Major.Minor.Build and, if present, a numeric Revision from ``text``.

    Anything after the third group that is not a numeric fourth group (such as
    the ``.*`` of a stored ApplicationVersion) is ignored and leaves the
    revision undetermined.

    Raises:
        MalformedVersionError: If ``text`` does not start with three dot separated integers.
    """
    if not isinstance(text, str):
        raise MalformedVersionError(text)
    match = VERSION_PATTERN.match(text)
    if match is None:
        raise MalformedVersionError(text)
    major, minor, build, revision = match.groups()
    return ParsedVersion(
        int(major),
        int(minor),
        int(build),
        None if revision is None else int(revision)
    )

def is_explicit_version(text : str) -> bool:
    return isinstance(text, str) and EXPLICIT_VERSION_PATTERN.match(text) is not None

def parse_revision(text : Optional[str]) -> int:
    if text is None or text.strip() == "":
        raise MissingRevisionError()
    match = REVISION_PATTERN.match(text)
    if match is None:
        raise InvalidRevisionFormatError(text)
    return int(match.group(1))

def split_build_id(build_id : int) -> tuple[int, int]:
    """Spread a build-system id over (Build, Revision)."""
    return divmod(build_id, PART_LIMIT)

def _wrap(value : int, name : str) -> int:
    if value >= PART_LIMIT:
        wrapped = value % PART_LIMIT
        module_logger.warning(
            f"{name} {value} exceeds the maximum of {PART_LIMIT - 1} and was wrapped to {wrapped}. "
            "Raise the Build number manually if versions must keep increasing."
        )
        return wrapped
    return value

def resolve_version(
        current_version : str,
        current_revision : Optional[str]=None,
        explicit_version : Optional[str]=None,
        build_id : Optional[int]=None,
        increment_revision : bool=False
    ) -> ResolvedVersion:
    """
    Compute the new version of one ClickOnce configuration block.

    Major and Minor always come from the baseline (``explicit_version`` if given,
    otherwise ``current_version``). Build and Revision are then determined in
    this order:

    1. A numeric fourth part of the baseline is used as the tentative revision.
    2. If ``build_id`` is given, Build = ``build_id // 65536`` and Revision =
       ``build_id % 65536``, replacing both values from the baseline.
    3. Otherwise, if ``increment_revision`` is set or no revision was found in
       the baseline, the stored ``current_revision`` is read (and incremented by
       one if requested).

    Build and Revision are finally reduced modulo 65536, with a warning if that
    changes them.

    Args:
        current_version: The stored ApplicationVersion, e.g. ``"1.2.0.*"``.
        current_revision: The stored ApplicationRevision, or None if the block has none.
        explicit_version: Optional version overriding the stored one.
        build_id: Optional non-negative build-system id. Takes precedence over ``increment_revision``.
        increment_revision: Increment the stored revision.

    Returns:
        The resolved version.

    Raises:
        MalformedVersionError: If the baseline has no Major.Minor.Build.
        MissingRevisionError: If the stored revision is needed but absent.
        InvalidRevisionFormatError: If the stored revision is needed but not an unsigned integer.
        ValueError: If ``build_id`` is negative.
    """
    baseline = explicit_version if explicit_version is not None else current_version
    parsed = parse_version(baseline)
    build = parsed.build
    revision = parsed.revision

    if build_id is not None:
        if isinstance(build_id, bool) or not isinstance(build_id, int):
            raise TypeError("Expected int, got {}".format(type(build_id)))
        if build_id < 0:
            raise ValueError(f"Build-system id must be non-negative, got {build_id}")
        if increment_revision:
            module_logger.debug("Both a build-system id and a revision increment were requested; using the build-system id.")
        build, revision = split_build_id(build_id)
        if explicit_version is not None and parsed.revision is not None:
            module_logger.debug(f"Build {parsed.build} and revision {parsed.revision} of {explicit_version!r} replaced by build-system id {build_id}.")
    elif increment_revision or revision is None:
        revision = parse_revision(current_revision)
        if increment_revision:
            revision = _wrap(revision + 1, "Revision")

    return ResolvedVersion(
        parsed.major,
        parsed.minor,
        _wrap(build, "Build"),
        _wrap(revision, "Revision")
    )
