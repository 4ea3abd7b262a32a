import functools
import logging
import os.path
import pathlib
import typing

import click

from . import __doc__, __version__
from .keeper import SecretKeeper
from .options import HOST, KEYRING, LOCATION, OPEN, ORGANIZATION, SEAL, USAGE, Options
from .repository import IgnoreDecision
from .runner import Runners
from .utils import KMSecretsException

log = logging.getLogger(__name__)


@functools.lru_cache()
def rel(path: pathlib.Path) -> str:
    """
    Convert a path to a relative Path.

    Returns a string as these should only be used for presentation.
    """
    return os.path.relpath(path.as_posix(), pathlib.Path.cwd().as_posix())


class PathType(click.Path):
    def convert(self, value, param, ctx):
        return pathlib.Path(super().convert(value, param, ctx))


class Group(click.Group):
    def resolve_command(self, ctx, args):
        try:
            return super().resolve_command(ctx, args)
        except click.UsageError as error:
            raise KMSecretsException(f"{error.format_message()}\n{USAGE}")


files_argument = click.argument(
    'files',
    type=PathType(dir_okay=False),
    required=False,
    nargs=-1)

common_options = (
    click.option(
        '--dry-run', 'dry_run',
        default=False,
        is_flag=True,
        help="Skip calls to gcloud."),
    click.option(
        '-v', '--verbose', 'verbose',
        default=False,
        is_flag=True,
        help="Log debug info."),
    click.option(
        '--root', 'root',
        type=PathType(file_okay=False, dir_okay=True, exists=True),
        default=None,
        help="Project root folder. Defaults to the current git repository."),
    click.option(
        '--key', 'key',
        metavar='NAME',
        default=None,
        help="Key to use. Defaults to the GitHub repository or root folder name."),
    click.option(
        '--keyring', 'keyring',
        envvar='KMSECRETS_KEYRING',
        default=KEYRING,
        show_default=True,
        help="Cloud KMS key ring holding the project keys."),
    click.option(
        '--location', 'location',
        envvar='KMSECRETS_LOCATION',
        default=LOCATION,
        show_default=True,
        help="Cloud KMS location of the key ring."),
    click.option(
        '--organization', 'organization',
        envvar='KMSECRETS_ORGANIZATION',
        default=ORGANIZATION,
        show_default=True,
        help="GitHub organization expected to own the repository."),
    click.option(
        '--host', 'host',
        envvar='KMSECRETS_HOST',
        default=HOST,
        show_default=True,
        help="Host of the git remote used to name keys."),
)


def with_common_options(function):
    for option in reversed(common_options):
        function = option(function)
    return function


def summon(runners: Runners, options: Options, command: str) -> SecretKeeper:
    logging.basicConfig(level=(logging.DEBUG if options.verbose else logging.WARNING))
    log.debug(f"cmd: {command}")
    return SecretKeeper.from_options(options, runners)


@click.group(cls=Group, help=__doc__, invoke_without_command=True, no_args_is_help=False)
@click.pass_context
def main(ctx):
    ctx.ensure_object(Runners)
    if ctx.invoked_subcommand is None:
        raise KMSecretsException(f"Command not found\n{USAGE}")


@main.command()
def version():
    """Show the application version."""
    click.echo(f"kmsecrets {__version__}")


@main.command(name=SEAL)
@files_argument
@with_common_options
@click.pass_obj
def seal(runners: Runners, files: typing.Sequence[pathlib.Path], **kwargs):
    """
    Encrypt plaintext secrets and add them to .gitignore.

    If no paths are provided, seals every secret.yaml and secret.yml in the project.
    """
    options = Options(files=files, **kwargs)
    sk = summon(runners, options, SEAL)

    for path in options.files or sk.unencrypted():
        decision = sk.seal(path)
        if decision is IgnoreDecision.ALREADY_TRACKED:
            click.secho(
                f"Plaintext {rel(path)} is already tracked by git - "
                f"remove it with 'git rm --cached' and commit the change",
                fg='yellow',
                err=True)
        click.echo(f"Encrypted {rel(path)}")


@main.command(name=OPEN)
@files_argument
@with_common_options
@click.option(
    '--open-all', 'open_all',
    default=False,
    is_flag=True,
    help="Open all .enc files within the repository.")
@click.pass_obj
def open_(runners: Runners, files: typing.Sequence[pathlib.Path], **kwargs):
    """
    Decrypt sealed secrets next to themselves.

    If no paths are provided, opens every secret.yaml.enc and secret.yml.enc in the project.
    """
    options = Options(files=files, **kwargs)
    sk = summon(runners, options, OPEN)

    for path in options.files or sk.encrypted():
        sk.open(path)
        click.echo(f"Decrypted {rel(path)}")
