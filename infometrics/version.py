"""Central version metadata for infometrics.

Resolution order for get_version():
1. Env override INFOMETRICS_VERSION (e.g., injected by CI)
2. __version__ constant below

get_git_commit() prefers INFOMETRICS_GIT_COMMIT, then the checkout's
.git/HEAD, and returns "" when neither is available.
"""
from __future__ import annotations

import os

__version__ = "0.1.0"


def _read_git_head(repo_root: str) -> str | None:
    head_path = os.path.join(repo_root, '.git', 'HEAD')
    try:
        with open(head_path, encoding='utf-8') as f:
            ref = f.read().strip()
    except OSError:
        return None
    if ref.startswith('ref:'):
        ref_file = os.path.join(repo_root, '.git', ref.split(' ', 1)[1].strip())
        try:
            with open(ref_file, encoding='utf-8') as rf:
                return rf.read().strip()[:40] or None
        except OSError:
            return None
    # Detached HEAD contains commit directly
    return ref[:40] if len(ref) >= 7 else None


def get_version() -> str:
    return os.environ.get("INFOMETRICS_VERSION", __version__)


def get_git_commit(repo_root: str | None = None) -> str:
    env_commit = os.environ.get("INFOMETRICS_GIT_COMMIT")
    if env_commit:
        return env_commit[:40]
    return _read_git_head(repo_root or os.getcwd()) or ""


def full_version(repo_root: str | None = None) -> str:
    """Version with the git commit appended as build metadata (``1.2.3+abc123``)."""
    version = get_version()
    commit = get_git_commit(repo_root)
    return f"{version}+{commit}" if commit else version


__all__ = ["__version__", "get_version", "get_git_commit", "full_version"]
