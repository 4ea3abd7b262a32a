"""
Each Search selects secret files in a directory tree by their name.
"""

import enum
import logging
import os
import pathlib
import typing

log = logging.getLogger(__name__)

ENCRYPTED_SUFFIX = '.enc'

IGNORED_DIRECTORIES = frozenset({'.git', 'node_modules', 'mongo-data'})

Paths = typing.Tuple[pathlib.Path, ...]


class Category(enum.Enum):
    UNENCRYPTED = 'unencrypted'
    ENCRYPTED = 'encrypted'


class Search:
    category: Category
    suffixes: typing.Tuple[str, ...] = ()

    def matches(self, name: str) -> bool:
        return name.endswith(self.suffixes)

    def search(self, directory: pathlib.Path) -> Paths:
        """
        Walk a directory, skipping ignored directories, and return matching files.

        Errors reading a directory skip that directory and are logged as warnings;
        the files found elsewhere are still returned.
        """
        log.info(f"Searching for {self.category.value} files in {directory}")
        found: typing.List[pathlib.Path] = []

        def warn(error: OSError) -> None:
            log.warning(f"Could not search {error.filename}: {error.strerror}")

        for parent, directories, files in os.walk(directory, onerror=warn):
            directories[:] = sorted(d for d in directories if d not in IGNORED_DIRECTORIES)
            for name in sorted(files):
                if self.matches(name):
                    found.append(pathlib.Path(parent, name).absolute())

        log.info(f"Search found {len(found)} {self.category.value} files in {directory}")
        return tuple(found)


class UnencryptedSearch(Search):
    """Selects plaintext secrets: 'secret.yaml' and 'secret.yml'."""

    category = Category.UNENCRYPTED
    suffixes = ('secret.yaml', 'secret.yml')


class EncryptedSearch(Search):
    """Selects sealed secrets: 'secret.yaml.enc' and 'secret.yml.enc'."""

    category = Category.ENCRYPTED
    suffixes = tuple(s + ENCRYPTED_SUFFIX for s in UnencryptedSearch.suffixes)


class OpenAllSearch(Search):
    """Selects every '.enc' file."""

    category = Category.ENCRYPTED
    suffixes = (ENCRYPTED_SUFFIX,)


def searcher(category: Category, open_all: bool = False) -> Search:
    if category is Category.UNENCRYPTED:
        return UnencryptedSearch()
    return OpenAllSearch() if open_all else EncryptedSearch()
