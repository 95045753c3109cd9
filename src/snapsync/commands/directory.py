import pathlib
import typing as t

from .. import excludes, logging, request, syncers, validation

logger = logging.getLogger(__name__)


def backup_directories(
    backup_request: request.BackupRequest,
    *,
    syncer: syncers.Syncer,
) -> None:
    """
    Copy the requested sources in to the destination directory.
    Nothing in the destination is ever deleted.
    """
    validation.check_request(backup_request)
    destination = t.cast(pathlib.Path, backup_request.destination)

    logger.log(logging.MESSAGE, "Starting %s", backup_request)
    exclusions = excludes.build_exclusions(backup_request.exclusions)
    with excludes.exclusion_file(exclusions) as exclude_from:
        syncer.sync(
            backup_request.sources, destination,
            mode=syncers.SyncMode.plain, exclude_from=exclude_from)
    logger.log(logging.MESSAGE, "Backup complete")
