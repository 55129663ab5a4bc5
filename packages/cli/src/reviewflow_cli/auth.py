"""Platform token resolution and the git hosting client.

Resolution order (stops at first success):
  1. REVIEWFLOW_TOKEN environment variable (CI / explicit override)
  2. `gh auth token --hostname <git_remote_name>`, the platform git server
     speaks the GitHub API, so an existing gh login for that host is reused.
"""

from __future__ import annotations

import logging
import os
import subprocess

logger = logging.getLogger(__name__)


def resolve_token(hostname: str | None = None) -> str | None:
    """Return a platform token or None if no valid source is available.

    Never raises; callers decide whether a missing token is fatal.
    """
    token = os.environ.get("REVIEWFLOW_TOKEN")
    if token:
        return token

    cmd = ["gh", "auth", "token"]
    if hostname:
        cmd += ["--hostname", hostname]
    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=5,
        )
        if result.returncode == 0:
            gh_token = result.stdout.strip()
            if gh_token:
                logger.debug("Resolved platform token via gh CLI session.")
                return gh_token
    except (FileNotFoundError, subprocess.TimeoutExpired):
        # gh is not installed or timed out; fall through.
        logger.debug("gh CLI unavailable; no token from gh session.")

    return None


def build_hosting(config: dict):
    """PyGithub client for the platform git server, or None when not configured.

    Only the git backend needs it, to create the review mirror repository.
    """
    api_url = config.get("git_api_url")
    if not api_url:
        return None

    from github import Auth, Github

    token = config.get("token")
    return Github(base_url=api_url, auth=Auth.Token(token) if token else None)
