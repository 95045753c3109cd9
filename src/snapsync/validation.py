"""
Checks run before a backup touches anything.
"""
import os
import pathlib
import typing as t

from . import exceptions, logging, request

logger = logging.getLogger(__name__)


def is_privileged() -> bool:
    return os.geteuid() == 0


def validate_source(path: pathlib.Path) -> bool:
    """A source is a readable and searchable directory, or a readable file."""
    if path.is_dir():
        return os.access(path, os.R_OK | os.X_OK)
    return validate_file(path)


def validate_destination(path: pathlib.Path) -> bool:
    """A destination must be a directory we can read, write, and search."""
    return path.is_dir() and os.access(path, os.R_OK | os.W_OK | os.X_OK)


def validate_file(path: pathlib.Path) -> bool:
    return path.is_file() and os.access(path, os.R_OK)


def require_privilege() -> None:
    if not is_privileged():
        raise exceptions.PrivilegeError("A system backup must be run as root")


def check_destination(path: pathlib.Path) -> None:
    if not validate_destination(path):
        raise exceptions.InvalidPathError(
            f"Destination {str(path)!r} is not a writable directory")


def check_sources(paths: t.Iterable[pathlib.Path]) -> None:
    for path in paths:
        if not validate_source(path):
            raise exceptions.InvalidPathError(
                f"Source {str(path)!r} is not a readable directory or file")


def check_files(paths: t.Iterable[pathlib.Path]) -> None:
    for path in paths:
        if not validate_file(path):
            raise exceptions.InvalidFileError(f"{str(path)!r} is not a readable file")


def check_request(backup_request: request.BackupRequest) -> None:
    """
    Check a request can be carried out, raising an error if not.
    A system backup checks for root before anything else.
    System backup sources are found later by probing the mount table,
    and are checked separately with `check_sources`.
    """
    mode = backup_request.mode
    logger.log(logging.DEBUG, "Validating %s", backup_request)

    if mode is request.Mode.system:
        require_privilege()
        check_destination(t.cast(pathlib.Path, backup_request.destination))
        check_sources(backup_request.sources)

    elif mode is request.Mode.directory:
        check_sources(backup_request.sources)
        check_destination(t.cast(pathlib.Path, backup_request.destination))

    elif mode is request.Mode.file:
        check_files(backup_request.sources)

    else:
        raise exceptions.InvalidBackupModeError(f"Unknown backup mode {mode!r}")
