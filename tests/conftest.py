import pathlib
import subprocess
import typing

import attr
import click.testing
import git
import pytest

import kmsecrets.cli
from kmsecrets.runner import Runner, Runners

Response = typing.Tuple[int, str, str]

NOT_TRACKED: Response = (1, '', "error: pathspec did not match any file(s) known to git")
NOT_IGNORED: Response = (1, '', '')
NO_REMOTES: Response = (1, '', '')


@attr.s
class FakeRunner(Runner):
    """
    Records commands and replies with scripted responses.

    A response is chosen by the first registered token found in the command. The last
    response for a token is repeated once the others have been used.
    """

    responses: typing.Dict[str, typing.List[Response]] = attr.ib(factory=dict)
    calls: typing.List[typing.Tuple[str, ...]] = attr.ib(factory=list)

    def respond(self, token: str, *responses: Response) -> 'FakeRunner':
        self.responses[token] = list(responses)
        return self

    def run(self, arguments: typing.Sequence[str]) -> subprocess.CompletedProcess:
        arguments = tuple(arguments)
        self.calls.append(arguments)
        for token, responses in self.responses.items():
            if token in arguments:
                returncode, stdout, stderr = responses.pop(0) if len(responses) > 1 else responses[0]
                return subprocess.CompletedProcess(arguments, returncode, stdout, stderr)
        return subprocess.CompletedProcess(arguments, 0, '', '')

    def called(self, token: str) -> typing.List[typing.Tuple[str, ...]]:
        return [call for call in self.calls if token in call]


@pytest.fixture()
def git_runner() -> FakeRunner:
    return FakeRunner().respond(
        'ls-files', NOT_TRACKED).respond(
        'check-ignore', NOT_IGNORED).respond(
        'config', NO_REMOTES)


@pytest.fixture()
def gcloud() -> FakeRunner:
    return FakeRunner()


@pytest.fixture()
def project(tmp_path: pathlib.Path) -> pathlib.Path:
    root = tmp_path / 'example-project'
    git.Repo.init(root, mkdir=True)
    return root


@pytest.fixture()
def touch():
    def touch_func(root: pathlib.Path, *names: str) -> typing.List[pathlib.Path]:
        paths = []
        for name in names:
            path = root / name
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text("password: hunter2\n")
            paths.append(path)
        return paths

    return touch_func


@pytest.fixture()
def invoke(git_runner, gcloud):
    def invoke_func(arguments: typing.Sequence[str]) -> click.testing.Result:
        assert all(isinstance(arg, str) for arg in arguments)
        runner = click.testing.CliRunner()
        return runner.invoke(
            kmsecrets.cli.main,
            list(arguments),
            obj=Runners(git=git_runner, process=gcloud))

    return invoke_func
