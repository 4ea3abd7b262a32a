"""
Each Runner executes an external command and returns a CompletedProcess.

Non-zero exit codes are returned, not raised, so callers can inspect stderr.
"""

import logging
import subprocess
import typing

import attr
import git

from .utils import KMSecretsException

log = logging.getLogger(__name__)

Command = typing.Sequence[str]


class Runner:
    def run(self, arguments: Command) -> subprocess.CompletedProcess:
        raise NotImplementedError

    @staticmethod
    def log_failure(result: subprocess.CompletedProcess) -> None:
        if result.returncode != 0:
            log.debug(f"Command failed ({result.returncode}): {' '.join(result.args)}")
            for line in (result.stderr or '').splitlines():
                log.debug(line)


@attr.s(frozen=True)
class ProcessRunner(Runner):
    """Run a command with no stdin, capturing its output as text."""

    def run(self, arguments: Command) -> subprocess.CompletedProcess:
        log.debug(f"Running {' '.join(arguments)}")
        try:
            result = subprocess.run(
                tuple(arguments),
                encoding='utf-8',
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                check=False)
        except OSError as error:
            raise KMSecretsException(f"Could not run {arguments[0]}: {error}")
        self.log_failure(result)
        return result


@attr.s(frozen=True)
class GitRunner(Runner):
    """Run a git command through GitPython."""

    def run(self, arguments: Command) -> subprocess.CompletedProcess:
        log.debug(f"Running {' '.join(arguments)}")
        try:
            status, stdout, stderr = git.Git().execute(
                list(arguments),
                with_extended_output=True,
                with_exceptions=False)
        except git.exc.GitCommandNotFound as error:
            raise KMSecretsException(f"Could not run git: {error}")
        result = subprocess.CompletedProcess(tuple(arguments), status, stdout, stderr)
        self.log_failure(result)
        return result


@attr.s(frozen=True)
class Runners:
    git: Runner = attr.ib(factory=GitRunner)
    process: Runner = attr.ib(factory=ProcessRunner)
