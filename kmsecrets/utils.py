import logging
import os.path
import pathlib
import typing

import click
import git

log = logging.getLogger(__name__)

GIT_DIRECTORY = '.git'

NOT_IN_PROJECT = (
    "Not in a project. Run the command inside a git repository "
    "or provide one with --root")


class KMSecretsException(click.ClickException):
    pass


class NotInProject(KMSecretsException):
    pass


def is_project_root(path: pathlib.Path) -> bool:
    """Check if a directory contains a git directory."""
    return (path / GIT_DIRECTORY).is_dir()


def find_git_directory(path: pathlib.Path) -> pathlib.Path:
    """Find the working tree of the git repository containing a path."""
    try:
        repo = git.Repo(path, search_parent_directories=True)
    except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError):
        raise NotInProject(NOT_IN_PROJECT)
    return pathlib.Path(repo.working_tree_dir or repo.git_dir)


def find_project_root(directory: typing.Optional[pathlib.Path] = None) -> pathlib.Path:
    """
    Find the nearest directory containing '.git', starting from (and including) a directory.

    Linked worktrees and submodules with a '.git' file are skipped. Each step moves
    strictly upwards, so the search ends at the filesystem root.
    """
    path = pathlib.Path(os.path.abspath(directory or pathlib.Path.cwd()))

    while True:
        root = find_git_directory(path)
        log.debug(f"Found git repository {root} from {path}")
        if is_project_root(root):
            return root
        if root != path and root not in path.parents:
            root = path
        if root.parent == root:
            raise NotInProject(NOT_IN_PROJECT)
        path = root.parent
