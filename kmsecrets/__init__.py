"""
Kmsecrets encrypts secret files in a git repository with Google Cloud KMS.

Plaintext secrets are selected by name and sealed next to themselves with an '.enc' suffix.
The gcloud command is used to perform all encryption and decryption. Sealing a file also adds
it to the project's .gitignore so the plaintext is never committed.

The rules used to select files are:

\b
    * 'secret.yaml' and 'secret.yml' files are sealed to 'secret.yaml.enc' and 'secret.yml.enc'.
    * 'secret.yaml.enc' and 'secret.yml.enc' files are opened ('--open-all' opens any '.enc').
    * '.git', 'node_modules' and 'mongo-data' directories are never searched.

The key is named after the project's GitHub repository, or the project directory:

\b
    $ export KMSECRETS_ORGANIZATION="crispso"

Encrypt every plaintext secret in the current repository:

\b
    $ kmsecrets seal

Decrypt a single secret, previewing the gcloud calls first:

\b
    $ kmsecrets open --dry-run --verbose "config/secret.yaml.enc"
    $ kmsecrets open "config/secret.yaml.enc"
"""

__author__ = 'Crisp'
__version__ = '1.0.0'
