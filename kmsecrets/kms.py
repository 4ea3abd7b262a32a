import logging
import pathlib
import subprocess
import typing

import attr

from .classifier import ENCRYPTED_SUFFIX
from .options import KEYRING, LOCATION
from .runner import ProcessRunner, Runner
from .utils import KMSecretsException

log = logging.getLogger(__name__)

# gcloud reports a missing key (or key ring) with one of these in its stderr.
KEY_NOT_FOUND_MARKERS = ('NOT_FOUND: ',)

ROTATION_PERIOD = '100d'
NEXT_ROTATION_TIME = '+p100d'


class NotCiphertext(KMSecretsException):
    pass


class GcloudError(KMSecretsException):
    def __init__(self, message: str, stderr: str = '') -> None:
        super().__init__(f"{message}: {stderr.strip()}" if stderr.strip() else message)
        self.stderr = stderr


def is_key_not_found(stderr: str) -> bool:
    """Check if a failed gcloud command failed only because the key doesn't exist."""
    return any(marker in stderr for marker in KEY_NOT_FOUND_MARKERS)


def ciphertext_path(plaintext: pathlib.Path) -> pathlib.Path:
    return plaintext.with_name(plaintext.name + ENCRYPTED_SUFFIX)


def plaintext_path(ciphertext: pathlib.Path) -> pathlib.Path:
    if not ciphertext.name.endswith(ENCRYPTED_SUFFIX) or ciphertext.name == ENCRYPTED_SUFFIX:
        raise NotCiphertext(f"Not a {ENCRYPTED_SUFFIX} file: {ciphertext}")
    return ciphertext.with_name(ciphertext.name[:-len(ENCRYPTED_SUFFIX)])


@attr.s(frozen=True, kw_only=True)
class KMS:
    keyring: str = attr.ib(default=KEYRING)
    location: str = attr.ib(default=LOCATION)
    dry_run: bool = attr.ib(default=False)
    runner: Runner = attr.ib(factory=ProcessRunner)

    def command(self, arguments: typing.Sequence[str]) -> typing.Tuple[str, ...]:
        return (
            'gcloud', 'kms', *arguments,
            '--location', self.location,
            '--keyring', self.keyring,
        )

    def run(self, arguments: typing.Sequence[str]) -> subprocess.CompletedProcess:
        return self.runner.run(self.command(arguments))

    def create_key(self, key: str) -> None:
        log.info(f"Creating key for the project {key}")
        if self.dry_run:
            return

        result = self.run([
            'keys', 'create', key,
            '--purpose', 'encryption',
            '--rotation-period', ROTATION_PERIOD,
            '--next-rotation-time', NEXT_ROTATION_TIME,
        ])
        if result.returncode != 0:
            raise GcloudError(f"Could not create key {key}", result.stderr or '')

    def call(
            self,
            operation: str,
            key: str,
            plaintext: pathlib.Path,
            ciphertext: pathlib.Path) -> None:
        """
        Run an encrypt or decrypt operation.

        A missing key is created and the operation retried once.
        """
        if self.dry_run:
            log.debug(f"Skipping gcloud kms {operation} for {plaintext} (dry run)")
            return

        arguments = [
            operation,
            '--key', key,
            '--plaintext-file', str(plaintext),
            '--ciphertext-file', str(ciphertext),
        ]

        result = self.run(arguments)
        if result.returncode != 0 and is_key_not_found(result.stderr or ''):
            self.create_key(key)
            result = self.run(arguments)

        if result.returncode != 0:
            target = plaintext if operation == 'encrypt' else ciphertext
            raise GcloudError(f"Could not {operation} {target}", result.stderr or '')

    def encrypt(self, key: str, plaintext: pathlib.Path) -> pathlib.Path:
        ciphertext = ciphertext_path(plaintext)
        log.debug(f"Encrypting {plaintext} to {ciphertext}")
        self.call('encrypt', key, plaintext, ciphertext)
        return ciphertext

    def decrypt(self, key: str, ciphertext: pathlib.Path) -> pathlib.Path:
        plaintext = plaintext_path(ciphertext)
        log.debug(f"Decrypting {ciphertext} to {plaintext}")
        self.call('decrypt', key, plaintext, ciphertext)
        return plaintext
