import logging
import os.path
import pathlib
import typing

import attr

from .classifier import Category, Paths, searcher
from .kms import KMS
from .options import Options
from .repository import FileAlreadyTracked, GitIgnore, IgnoreDecision, key_name
from .runner import Runners
from .utils import KMSecretsException, find_project_root

log = logging.getLogger(__name__)


@attr.s(frozen=True, kw_only=True)
class SecretKeeper:
    root: pathlib.Path = attr.ib()
    key: str = attr.ib()
    kms: KMS = attr.ib()
    gitignore: GitIgnore = attr.ib()
    open_all: bool = attr.ib(default=False)

    @key.validator
    def _check_key(self, attribute, value):
        if not value:
            raise KMSecretsException(
                f"Could not name a key for {self.root}, provide one with --key")

    @classmethod
    def from_options(cls, options: Options, runners: typing.Optional[Runners] = None):
        runners = runners or Runners()
        root = options.root or find_project_root()
        key = options.key or key_name(
            root,
            runners.git,
            organization=options.organization,
            host=options.host)

        log.debug(f"dry run: {options.dry_run}")
        log.debug(f"key: {key}")
        log.debug(f"project root: {root}")

        return cls(
            root=root,
            key=key,
            kms=KMS(
                keyring=options.keyring,
                location=options.location,
                dry_run=options.dry_run,
                runner=runners.process),
            gitignore=GitIgnore(root, runners.git),
            open_all=options.open_all)

    def rel(self, path: pathlib.Path) -> str:
        return os.path.relpath(path.as_posix(), self.root.as_posix())

    def unencrypted(self) -> Paths:
        return searcher(Category.UNENCRYPTED).search(self.root)

    def encrypted(self) -> Paths:
        return searcher(Category.ENCRYPTED, open_all=self.open_all).search(self.root)

    def seal(self, path: pathlib.Path) -> IgnoreDecision:
        """Encrypt a plaintext file and make sure git ignores the plaintext."""
        log.info(f"Sealing {self.gitignore.relative(path)} with key {self.key}")
        self.kms.encrypt(self.key, path)

        try:
            return self.gitignore.add(path)
        except FileAlreadyTracked as error:
            log.warning(error.message)
            return IgnoreDecision.ALREADY_TRACKED

    def open(self, path: pathlib.Path) -> pathlib.Path:
        """Decrypt a sealed file next to itself."""
        log.info(f"Opening {self.rel(path)} with key {self.key}")
        return self.kms.decrypt(self.key, path)
