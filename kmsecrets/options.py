"""
Settings for a single invocation, read from the command line and the environment.

Does not detect defaults that need the filesystem or git; see the keeper for those.
"""

import os.path
import pathlib
import typing

import attr

SEAL = 'seal'
OPEN = 'open'

USAGE = (
    "Usage: kmsecrets <open|seal> [<file path>...] [--dry-run] [--verbose] "
    "[--root <project root>] [--key <encryption key name>] [--open-all]")

KEYRING = 'crisp-project-secrets'
LOCATION = 'global'
ORGANIZATION = 'crispso'
HOST = 'github.com'


def absolute_paths(paths: typing.Iterable[pathlib.Path]) -> typing.Tuple[pathlib.Path, ...]:
    return tuple(pathlib.Path(os.path.abspath(path)) for path in paths)


def optional_path(path: typing.Optional[pathlib.Path]) -> typing.Optional[pathlib.Path]:
    return pathlib.Path(os.path.abspath(path)) if path else None


@attr.s(frozen=True, kw_only=True)
class Options:
    dry_run: bool = attr.ib(default=False)
    verbose: bool = attr.ib(default=False)
    open_all: bool = attr.ib(default=False)
    root: typing.Optional[pathlib.Path] = attr.ib(default=None, converter=optional_path)
    key: typing.Optional[str] = attr.ib(default=None)
    files: typing.Tuple[pathlib.Path, ...] = attr.ib(default=(), converter=absolute_paths)
    keyring: str = attr.ib(default=KEYRING)
    location: str = attr.ib(default=LOCATION)
    organization: str = attr.ib(default=ORGANIZATION)
    host: str = attr.ib(default=HOST)
