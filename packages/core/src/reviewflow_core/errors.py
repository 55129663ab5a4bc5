"""Exceptions raised by the review engine.

Backend failures are reported as reviewflow_vcs.base.RepoError; everything
the engine itself decides is fatal derives from ReviewError so the CLI can
turn either into one message.
"""

from __future__ import annotations


class ReviewError(Exception):
    """Base class for review orchestration failures."""


class ConfigError(ReviewError):
    """A required platform setting is missing or invalid."""


class RulesError(ReviewError):
    """The rule source could not be read or is not valid YAML."""


class NoCommitError(ReviewError):
    """The checkout has no commit yet; the message tells the user what to do."""


class ReviewServiceError(ReviewError):
    """The analysis service could not be reached or sent an unreadable stream."""


class ReviewStreamError(ReviewError):
    """The analysis service reported a fatal error mid-review."""
