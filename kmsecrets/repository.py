import enum
import logging
import os.path
import pathlib
import re
import typing

import attr

from .runner import Runner
from .utils import KMSecretsException

log = logging.getLogger(__name__)

GITIGNORE = '.gitignore'


class RemoteNotFound(KMSecretsException):
    pass


class OrganizationMismatch(KMSecretsException):
    pass


class FileAlreadyTracked(KMSecretsException):
    pass


class IgnoreDecision(enum.Enum):
    APPENDED = 'appended'
    ALREADY_TRACKED = 'already tracked'
    ALREADY_IGNORED = 'already ignored'


@attr.s(frozen=True)
class RemoteIdentity:
    organization: str = attr.ib()
    project: str = attr.ib()


def remote_pattern(host: str) -> re.Pattern:
    return re.compile(
        rf'(?:^|[@/\s]){re.escape(host)}[:/]'
        rf'(?P<organization>[\w.-]+)/(?P<project>[\w.-]+)\.git(?=\s|$)',
        re.IGNORECASE | re.MULTILINE)


def parse_remote(text: str, host: str) -> typing.Optional[RemoteIdentity]:
    """Find the first 'host:organization/project.git' remote in some text."""
    match = remote_pattern(host).search(text)
    if match is None:
        return None
    return RemoteIdentity(match.group('organization'), match.group('project'))


def remote_urls(root: pathlib.Path, runner: Runner) -> str:
    return runner.run((
        'git', '-C', str(root),
        'config', '--get-regexp', r'^remote\..*\.url$',
    )).stdout or ''


def repository_name(
        root: pathlib.Path,
        runner: Runner,
        organization: str,
        host: str) -> str:
    """
    Name a project after its remote repository.

    Raises RemoteNotFound when no remote on the host exists, and OrganizationMismatch
    when the remote belongs to a different organization.
    """
    identity = parse_remote(remote_urls(root, runner), host)

    if identity is None:
        raise RemoteNotFound(f"No {host} remote found for {root}")

    if identity.organization.lower() != organization.lower():
        raise OrganizationMismatch(
            f"Expected the {host} organization to be {organization}, "
            f"found {identity.organization}")

    return identity.project


def key_name(
        root: pathlib.Path,
        runner: Runner,
        organization: str,
        host: str) -> str:
    """Name the key after the remote repository, falling back to the project directory."""
    try:
        return repository_name(root, runner, organization, host)
    except KMSecretsException as error:
        log.debug(f"Using the directory name as the key name: {error.message}")
        return root.name


@attr.s(frozen=True)
class GitIgnore:
    """Keeps plaintext files out of git by listing them in the project's .gitignore."""

    root: pathlib.Path = attr.ib()
    runner: Runner = attr.ib()

    @property
    def path(self) -> pathlib.Path:
        return self.root / GITIGNORE

    def relative(self, path: pathlib.Path) -> str:
        """Name a file the way git does, rejecting files outside the project."""
        try:
            relative = pathlib.Path(os.path.abspath(path)).relative_to(os.path.abspath(self.root))
        except ValueError:
            raise KMSecretsException(f"{path} is outside the project {self.root}")
        return relative.as_posix()

    def is_tracked(self, relative: str) -> bool:
        result = self.runner.run((
            'git', '-C', str(self.root),
            'ls-files', '--error-unmatch', relative,
        ))
        return result.returncode == 0

    def is_ignored(self, relative: str) -> bool:
        result = self.runner.run((
            'git', '-C', str(self.root),
            'check-ignore', '-z', relative,
        ))
        return result.returncode == 0 and (result.stdout or '').rstrip('\0') == relative

    def append(self, line: str) -> None:
        try:
            with self.path.open('a+', encoding='utf-8') as f:
                f.seek(0)
                existing = f.read()
                if existing and not existing.endswith('\n'):
                    f.write('\n')
                f.write(f'{line}\n')
        except OSError as error:
            raise KMSecretsException(f"Could not update {self.path}: {error}")

    def add(self, path: pathlib.Path) -> IgnoreDecision:
        """
        Make sure git ignores a file.

        Raises FileAlreadyTracked if git already tracks the file, even when a rule
        also ignores it, and leaves .gitignore untouched.
        """
        relative = self.relative(path)

        if self.is_tracked(relative):
            log.debug(f"Not adding {relative} to {GITIGNORE} as git already tracks it")
            raise FileAlreadyTracked(f"{relative} is already tracked by git")

        if self.is_ignored(relative):
            log.debug(f"Not adding {relative} to {GITIGNORE} as git already ignores it")
            return IgnoreDecision.ALREADY_IGNORED

        log.debug(f"Adding {relative} to {self.path}")
        self.append(relative)
        return IgnoreDecision.APPENDED
