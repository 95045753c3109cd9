import datetime
import pathlib
import typing as t

from .. import (
    config, constants, exceptions, excludes, finalize, logging, mounts, request,
    syncers, validation,
)

logger = logging.getLogger(__name__)


def _local_now() -> datetime.datetime:
    return datetime.datetime.now().astimezone()


def snapshot_name(timestamp: datetime.datetime) -> str:
    """Snapshots are made at most once a day, and are named after that day."""
    return timestamp.date().isoformat()


def log_name(timestamp: datetime.datetime) -> str:
    return timestamp.strftime(constants.LOG_FILE_FORMAT)


def incremental_ref(latest: pathlib.Path, snapshot: pathlib.Path) -> t.Optional[pathlib.Path]:
    """
    Find the previous snapshot that unchanged files can be hard linked from.
    There is none on the first run, if the `latest` link is dangling,
    or if `latest` already points at the snapshot being made.
    """
    if not latest.exists():
        return None
    if latest.resolve() == snapshot.resolve():
        return None
    # rsync resolves a relative --link-dest against the destination,
    # not the working directory
    return latest.absolute()


def backup_system(
    backup_request: request.BackupRequest,
    *,
    syncer: syncers.Syncer,
    config: config.Config,
    timestamp: datetime.datetime,
    clock: t.Callable[[], datetime.datetime] = _local_now,
) -> pathlib.Path:
    """
    Take a snapshot of every real filesystem on this machine.

    The snapshot is written to a directory named after the date of `timestamp`
    inside the destination. Unchanged files are hard linked against
    the previous snapshot. Once the copy succeeds the `latest` link
    is pointed at the new snapshot and the run log is tidied up.
    Returns the path of the new snapshot.
    """
    validation.check_request(backup_request)
    root = t.cast(pathlib.Path, backup_request.destination).absolute()

    if backup_request.sources:
        sources = list(backup_request.sources)
    else:
        sources = mounts.list_mount_points(config)
        validation.check_sources(sources)
    exclusions = excludes.build_exclusions(backup_request.exclusions)
    # Never copy the backups in to themselves
    exclusions.append(str(root.resolve()))

    snapshot = root / snapshot_name(timestamp)
    latest = root / constants.LATEST_POINTER_NAME
    logger.log(logging.MESSAGE, "Creating snapshot %s", snapshot)
    snapshot.mkdir(exist_ok=True)
    log_path = snapshot / log_name(timestamp)

    link_dest = incremental_ref(latest, snapshot)

    with excludes.exclusion_file(exclusions) as exclude_from, \
            log_path.open('ab') as log, logging.run_log(log):
        logger.log(logging.INFO, "Backing up %s", ", ".join(map(str, sources)))
        if link_dest is None:
            logger.log(logging.INFO, "No previous snapshot, making a full copy")
        else:
            logger.log(logging.INFO, "Hard linking unchanged files from %s", link_dest.resolve())

        start = clock()
        try:
            syncer.sync(
                sources, snapshot,
                mode=syncers.SyncMode.snapshot,
                exclude_from=exclude_from,
                incremental_ref=link_dest,
                log=log)
        except exceptions.SyncError:
            logger.log(
                logging.ERROR, "Snapshot %s is incomplete, %s was not updated",
                snapshot, latest)
            raise
        end = clock()
        finalize.write_results(log, start, end)

    finalize.clean_log(log_path)
    finalize.retarget_latest(root, snapshot)

    elapsed = int((end - start).total_seconds())
    logger.log(
        logging.MESSAGE, "Snapshot %s complete in %s",
        snapshot, finalize.format_duration(elapsed))
    logger.log(logging.MESSAGE, "Log written to %s", log_path)
    return snapshot
