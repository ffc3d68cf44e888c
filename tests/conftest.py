"""
Shared fixtures for monorepo-build tests.

Integration tests build small throwaway git repositories under tmp_path and
register them as remotes of an empty "monorepo" repository.
"""

import os
import shutil
import subprocess
from pathlib import Path

import pytest


requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git is not installed")


def git(cwd, *args):
    """Run git in cwd and return stripped stdout; fail the test on error."""
    result = subprocess.run(
        ["git"] + list(args),
        cwd=str(cwd),
        capture_output=True,
        text=True,
        encoding="utf-8",
        errors="surrogateescape",
    )
    assert result.returncode == 0, f"git {' '.join(args)} failed: {result.stderr}"
    return result.stdout.strip()


def init_repo(path):
    """Create an empty repository whose unborn branch is master."""
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    git(path, "init", "-q")
    git(path, "symbolic-ref", "HEAD", "refs/heads/master")
    return path


def commit_files(repo, files, message):
    """Write files (relative path -> content), commit them, return the commit id."""
    repo = Path(repo)
    for rel_path, content in files.items():
        target = repo / rel_path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content)
    git(repo, "add", "-A")
    git(repo, "commit", "-q", "-m", message)
    return git(repo, "rev-parse", "HEAD")


@pytest.fixture
def git_env(tmp_path, monkeypatch):
    """Isolate git from the user's configuration and fix the identity."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_AUTHOR_NAME", "Test Author")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "author@example.com")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "Test Committer")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "committer@example.com")
    monkeypatch.delenv("MONOREPO_BUILD_CONFIG", raising=False)
    for key in list(os.environ):
        if key.startswith("MONOREPO_BUILD_"):
            monkeypatch.delenv(key, raising=False)
    return home


@pytest.fixture
def source_repos(tmp_path, git_env):
    """
    Two independent source repositories.

    alpha: master (README.md, src/a.py), tags v1.0 (lightweight) and release
           (annotated)
    beta:  master (README.md, lib/b.py), feature, tag release (annotated)
    """
    alpha = init_repo(tmp_path / "src" / "alpha")
    commit_files(alpha, {"README.md": "alpha readme\n"}, "alpha: initial")
    commit_files(alpha, {"src/a.py": "print('a')\n"}, "alpha: add a.py")
    git(alpha, "tag", "v1.0")
    git(alpha, "tag", "-a", "release", "-m", "alpha release")

    beta = init_repo(tmp_path / "src" / "beta")
    commit_files(beta, {"README.md": "beta readme\n", "lib/b.py": "print('b')\n"}, "beta: initial")
    git(beta, "checkout", "-q", "-b", "feature")
    commit_files(beta, {"lib/feature.py": "print('f')\n"}, "beta: feature work")
    git(beta, "checkout", "-q", "master")
    git(beta, "tag", "-a", "release", "-m", "beta release")

    return {"alpha": alpha, "beta": beta}


@pytest.fixture
def monorepo(tmp_path, source_repos):
    """Empty repository with the source repositories registered as remotes."""
    mono = init_repo(tmp_path / "mono")
    for name, path in source_repos.items():
        git(mono, "remote", "add", name, str(path))
    return mono
