import logging

import pytest

from kmsecrets.keeper import SecretKeeper
from kmsecrets.options import Options
from kmsecrets.repository import IgnoreDecision
from kmsecrets.runner import Runners
from kmsecrets.utils import KMSecretsException


@pytest.fixture()
def runners(git_runner, gcloud):
    return Runners(git=git_runner, process=gcloud)


def test_from_options(project, runners):
    sk = SecretKeeper.from_options(
        Options(root=project, keyring='ring', location='eu', dry_run=True, open_all=True),
        runners)

    assert sk.root == project
    assert sk.key == 'example-project'
    assert sk.open_all
    assert (sk.kms.keyring, sk.kms.location, sk.kms.dry_run) == ('ring', 'eu', True)
    assert sk.gitignore.root == project


def test_from_options_finds_root(project, runners, monkeypatch):
    (project / 'deep' / 'er').mkdir(parents=True)
    monkeypatch.chdir(project / 'deep' / 'er')

    assert SecretKeeper.from_options(Options(key='k'), runners).root == project.resolve()


def test_key_must_not_be_empty(project, runners):
    sk = SecretKeeper.from_options(Options(root=project, key='k'), runners)

    with pytest.raises(KMSecretsException, match="--key"):
        SecretKeeper(root=project, key='', kms=sk.kms, gitignore=sk.gitignore)


def test_seal_reports_tracked_files(project, runners, git_runner, touch):
    path, = touch(project, 'secret.yaml')
    git_runner.respond('ls-files', (0, 'secret.yaml', ''))
    sk = SecretKeeper.from_options(Options(root=project, key='k'), runners)

    assert sk.seal(path) is IgnoreDecision.ALREADY_TRACKED
    assert not (project / '.gitignore').exists()


def test_open_returns_plaintext_path(project, runners, gcloud):
    sk = SecretKeeper.from_options(Options(root=project, key='k'), runners)

    assert sk.open(project / 'secret.yaml.enc') == project / 'secret.yaml'
    assert gcloud.called('decrypt')


def test_relative_root_is_normalised(project, runners, monkeypatch):
    (project / 'sub').mkdir()
    monkeypatch.chdir(project / 'sub')

    sk = SecretKeeper.from_options(Options(root='..'), runners)

    assert sk.root == project.resolve()
    assert sk.key == 'example-project'


def test_tracked_files_are_logged_as_warnings(project, runners, git_runner, touch, caplog):
    path, = touch(project, 'secret.yaml')
    git_runner.respond('ls-files', (0, 'secret.yaml', ''))
    sk = SecretKeeper.from_options(Options(root=project, key='k'), runners)

    with caplog.at_level(logging.WARNING):
        sk.seal(path)

    assert "secret.yaml is already tracked by git" in caplog.text
