"""Release versions of a git repository and semantic-version bump checks."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Literal

import pygit2
import regex
import structlog

from .changes import APIChanges
from .errors import MissingHeadError, RepositoryOpenError, TagListError, TagResolutionError

logger = structlog.wrap_logger(logging.getLogger(__name__))

HEAD = "HEAD"

Bump = Literal["major", "minor", "patch"]

_SEMVER = regex.compile(
    r"""
    ^v?
    (?P<major>0|[1-9]\d*)
    (?:\.(?P<minor>0|[1-9]\d*))?
    (?:\.(?P<patch>0|[1-9]\d*))?
    (?:-(?P<pre>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?
    (?:\+(?P<build>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?
    $
    """,
    regex.VERBOSE,
)


@dataclass(frozen=True, slots=True)
class SemVer:
    major: int
    minor: int = 0
    patch: int = 0
    prerelease: tuple[str, ...] = ()
    build: str = ""

    @classmethod
    def parse(cls, text: str) -> "SemVer":
        match = _SEMVER.match(text.strip())
        if match is None:
            raise ValueError(f"not a semantic version: {text!r}")
        pre = match.group("pre")
        return cls(
            major=int(match.group("major")),
            minor=int(match.group("minor") or 0),
            patch=int(match.group("patch") or 0),
            prerelease=tuple(pre.split(".")) if pre else (),
            build=match.group("build") or "",
        )

    def sort_key(self) -> tuple:
        # A release sorts after all of its pre-releases.
        if not self.prerelease:
            pre_key: tuple = (1,)
        else:
            pre_key = (0, tuple(_identifier_key(part) for part in self.prerelease))
        return (self.major, self.minor, self.patch, pre_key)

    def __lt__(self, other: "SemVer") -> bool:
        return self.sort_key() < other.sort_key()

    def __le__(self, other: "SemVer") -> bool:
        return self.sort_key() <= other.sort_key()

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            text += "-" + ".".join(self.prerelease)
        if self.build:
            text += "+" + self.build
        return text


def _identifier_key(part: str) -> tuple[int, int, str]:
    if part.isdigit():
        return (0, int(part), "")
    return (1, 0, part)


def is_semver(text: str) -> bool:
    return _SEMVER.match(text.strip()) is not None


@dataclass(frozen=True, slots=True)
class Version:
    name: str
    commit: str


def sort_versions(versions: Iterable[Version], *, head: str = HEAD) -> list[Version]:
    """Order versions with the ``head`` pseudo-version first, then by ascending
    semantic version.

    Raises ``ValueError`` for any other name that is not a semantic version.
    """

    items = list(versions)
    heads = [version for version in items if version.name == head]
    tagged = [version for version in items if version.name != head]
    keyed = [(SemVer.parse(version.name).sort_key(), version) for version in tagged]
    return heads + [version for _, version in sorted(keyed, key=lambda item: item[0])]


def list_versions(repo_path: str | Path, *, head: str = HEAD) -> list[Version]:
    """List HEAD and every semantic-version tag of the repository at ``repo_path``.

    HEAD is reported under the name ``head``. Tags that do not point at a commit, and
    tags whose names are not semantic versions, are skipped.
    """

    try:
        repo = pygit2.Repository(str(repo_path))
    except (pygit2.GitError, KeyError) as exc:
        raise RepositoryOpenError(str(repo_path), exc) from exc

    if repo.head_is_unborn:
        raise MissingHeadError("no HEAD reference found in repository")
    try:
        head_commit = repo.head.peel(pygit2.Commit)
    except (pygit2.GitError, KeyError, ValueError) as exc:
        raise MissingHeadError("unable to get HEAD of repository", exc) from exc
    result = [Version(head, str(head_commit.id))]

    try:
        refnames = [name for name in repo.references if name.startswith("refs/tags/")]
    except pygit2.GitError as exc:
        raise TagListError("unable to list tags of repository", exc) from exc

    for refname in refnames:
        name = refname[len("refs/tags/") :]
        commit = _tag_commit(repo, refname)
        if commit is None:
            logger.debug("tag_skipped", tag=name, reason="not a commit")
            continue
        if not is_semver(name):
            logger.debug("tag_skipped", tag=name, reason="not a semantic version")
            continue
        result.append(Version(name, str(commit.id)))

    versions = sort_versions(result, head=head)
    logger.info("versions_listed", repo=str(repo_path), count=len(versions))
    return versions


def _tag_commit(repo: pygit2.Repository, refname: str) -> pygit2.Commit | None:
    try:
        target = repo.references[refname].resolve().target
        obj = repo.get(target)
        while isinstance(obj, pygit2.Tag):
            obj = repo.get(obj.target)
    except (pygit2.GitError, KeyError) as exc:
        raise TagResolutionError(f"unknown error getting commit of {refname}", exc) from exc
    if isinstance(obj, pygit2.Commit):
        return obj
    return None


def required_bump(changes: APIChanges) -> Bump:
    if changes.is_breaking():
        return "major"
    if changes.has_additions():
        return "minor"
    return "patch"


def check_bump(prev: str, new: str, changes: APIChanges) -> bool:
    """Report whether moving from ``prev`` to ``new`` covers ``changes``.

    Before 1.0.0 a minor bump is enough for breaking changes.
    """

    old_version = SemVer.parse(prev)
    new_version = SemVer.parse(new)
    if new_version <= old_version:
        return False
    needed = required_bump(changes)
    if needed == "major" and old_version.major == 0:
        needed = "minor"
    if needed == "major":
        return new_version.major > old_version.major
    if needed == "minor":
        return (new_version.major, new_version.minor) > (old_version.major, old_version.minor)
    return True
