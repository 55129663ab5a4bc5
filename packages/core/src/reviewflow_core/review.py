"""Core review orchestration."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from reviewflow_core.config import PlatformConfig
from reviewflow_core.confirm import Confirmer, confirm_issues
from reviewflow_core.lifecycle import prepare
from reviewflow_core.models import Issue
from reviewflow_core.report import FORMATS, make_report
from reviewflow_core.request import ReviewRequest, build_request
from reviewflow_core.rules import load_rules
from reviewflow_core.service import AnalysisService
from reviewflow_vcs.base import Repository

_logger = logging.getLogger(__name__)

NO_ISSUES_MESSAGE = "Done! No issues found."


@dataclass
class ReviewOptions:
    """User choices for one review run, as the CLI flags map onto."""

    interactive: bool = False
    output: str | None = None
    fmt: str = "json-pretty"
    rules_path: str | None = None


async def stream_review(
    service: AnalysisService,
    request: ReviewRequest,
    keep_all: bool = True,
    output: str | None = None,
    confirmer: Confirmer | None = None,
) -> list[Issue]:
    """Submit ``request`` once and confirm the issues it streams back."""
    streams = await service.request_review(request)
    try:
        return await confirm_issues(streams, keep_all=keep_all, output=output, confirmer=confirmer)
    finally:
        # Stop reading the response if the run ended before the service did.
        streams.cancel()


def run_review(
    platform: PlatformConfig,
    service: AnalysisService,
    options: ReviewOptions,
    repo: Repository | None = None,
    git_hosting=None,
    confirmer: Confirmer | None = None,
    logger: logging.Logger | None = None,
) -> str:
    """Run the full review pipeline and return the message to show the user.

    Steps run strictly in order and each is attempted exactly once:
    rules → repository lifecycle → request → streamed confirmation → report.
    """
    log = logger or _logger
    if options.fmt not in FORMATS:
        raise ValueError(f"Unknown format {options.fmt!r}. Choose one of: {', '.join(FORMATS)}.")

    rules = load_rules(options.rules_path)
    log.debug("Loaded %d characters of rules", len(rules))

    repo, snapshot = prepare(repo, git_hosting=git_hosting, review_remote=platform.review_remote())
    request = build_request(repo.vcs_type, snapshot, platform, rules)
    log.debug(
        "Submitting review of %s at %s (%d patch(es)) to %s",
        request.repo,
        request.sha,
        len(request.patches),
        request.host,
    )

    issues = asyncio.run(
        stream_review(
            service,
            request,
            keep_all=not options.interactive,
            output=options.output,
            confirmer=confirmer,
        )
    )
    log.debug("%d issue(s) confirmed", len(issues))

    if not issues:
        if options.output:
            # Replace the (empty) issue log with a well-formed empty report.
            make_report(issues, options.fmt, options.output)
        return NO_ISSUES_MESSAGE
    return make_report(issues, options.fmt, options.output)
