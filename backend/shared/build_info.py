"""Build metadata reported by /health and /status.

APP_VERSION and GIT_COMMIT come from the environment in deployed builds;
locally GIT_COMMIT falls back to asking git.
"""

import os
import subprocess


def _git_short_sha() -> str:
    try:
        return subprocess.check_output(
            ["git", "rev-parse", "--short", "HEAD"],  # noqa: S607
            text=True,
            stderr=subprocess.DEVNULL,
        ).strip()
    except (FileNotFoundError, subprocess.CalledProcessError):
        return "dev"


APP_VERSION: str = os.environ.get("APP_VERSION", "dev")
GIT_COMMIT: str = os.environ.get("GIT_COMMIT") or _git_short_sha()
