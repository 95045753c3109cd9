import datetime
import pathlib
import typing as t

from .. import excludes, exceptions, logging, registry, request, syncers, validation

logger = logging.getLogger(__name__)

#: Makes the suffix for a file backup, given the time of the backup
TSuffix = t.Callable[[datetime.datetime], str]

file_types = registry.Registry[TSuffix]()


@file_types.register('timestamp')
def _timestamp_suffix(timestamp: datetime.datetime) -> str:
    return timestamp.strftime('.%Y-%m-%dT%H:%M:%S')


@file_types.register('bak')
def _bak_suffix(timestamp: datetime.datetime) -> str:
    return '.bak'


def backup_path(
    path: pathlib.Path, *, file_type: str, timestamp: datetime.datetime,
) -> pathlib.Path:
    """Work out where the copy of `path` should go, alongside the original."""
    try:
        make_suffix = file_types[file_type]
    except KeyError:
        raise exceptions.InvalidFileTypeError(f"Unknown file type {file_type!r}")
    return path.with_name(path.name + make_suffix(timestamp))


def backup_files(
    backup_request: request.BackupRequest,
    *,
    syncer: syncers.Syncer,
    timestamp: datetime.datetime,
) -> t.List[pathlib.Path]:
    """
    Copy every requested file to a suffixed name next to the original.
    Returns the paths of the copies.
    """
    validation.check_request(backup_request)

    # Work out every name before copying anything,
    # so a bad file type fails without doing half the job
    plan = [
        (path, backup_path(path, file_type=backup_request.file_type, timestamp=timestamp))
        for path in backup_request.sources
    ]

    with excludes.exclusion_file([]) as exclude_from:
        for source, target in plan:
            logger.log(logging.MESSAGE, "Backing up %s to %s", source, target)
            syncer.sync(
                [source], target,
                mode=syncers.SyncMode.plain, exclude_from=exclude_from)

    return [target for _, target in plan]
