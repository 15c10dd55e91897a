"""LCOV report munging.

Functions:
    read_report(path)            -> bytes
    munge(report, workspace)     -> bytes

``munge`` is a line-oriented text transform, not an LCOV parser.  Two record
classes are touched and everything else passes through byte for byte.
"""

import os
import re

from bazelcov.reports import ReportError

# --------------------------------------------------------------------------- #
# Record patterns
# --------------------------------------------------------------------------- #

#: coverage.py occasionally writes branch data for line 0, which genhtml rejects
_LINE_ZERO_BRANCH_RE = re.compile(rb"^BRDA:0,.*\n", re.MULTILINE)

#: Source-file records whose path is relative
_RELATIVE_SOURCE_RE = re.compile(rb"^SF:[^/\n].*$", re.MULTILINE)

_SOURCE_PREFIX = b"SF:"


class ReportReadError(ReportError):
    """Raised when the coverage data file can't be read."""


def read_report(path: str) -> bytes:
    try:
        with open(path, "rb") as f:
            return f.read()
    except OSError as exc:
        raise ReportReadError(f"can't read coverage report '{path}': {exc}") from exc


def _join(workspace: bytes, relative: bytes) -> bytes:
    """Join and lexically clean a path the way Go's ``filepath.Join`` does."""
    joined = os.path.join(workspace, relative) if workspace else relative
    return os.path.normpath(joined)


def munge(report: bytes, workspace: str) -> bytes:
    """Return *report* with line-0 branch records dropped and paths made absolute.

    Every ``BRDA:0,...`` line is removed together with its newline.  Every
    ``SF:<path>`` line with a relative path becomes ``SF:<workspace>/<path>``.

    Not idempotent for a relative *workspace*: a second pass prefixes the
    already-joined paths again.
    """
    report = _LINE_ZERO_BRANCH_RE.sub(b"", report)

    root = os.fsencode(workspace)

    def make_absolute(match: re.Match) -> bytes:
        relative = match.group(0)[len(_SOURCE_PREFIX):]
        return _SOURCE_PREFIX + _join(root, relative)

    return _RELATIVE_SOURCE_RE.sub(make_absolute, report)
