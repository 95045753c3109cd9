"""
Steps run after a system snapshot has been synced successfully.
"""
import datetime
import os
import pathlib
import typing as t

from . import constants, exceptions, logging

logger = logging.getLogger(__name__)


def format_duration(seconds: int) -> str:
    """
    Format a number of seconds as hours, minutes, and seconds.
    Leading units that are zero are left out,
    so a short run reports only seconds.

    >>> format_duration(65)
    '1 minutes, 5 seconds'
    """
    hours, remainder = divmod(int(seconds), 3600)
    minutes, seconds = divmod(remainder, 60)
    if hours:
        return f"{hours} hours, {minutes} minutes, {seconds} seconds"
    if minutes:
        return f"{minutes} minutes, {seconds} seconds"
    return f"{seconds} seconds"


def format_results(start: datetime.datetime, end: datetime.datetime) -> str:
    elapsed = int((end - start).total_seconds())
    return "\n".join([
        "",
        "Backup Results",
        "==============",
        f"Start time: {start:%Y-%m-%d %H:%M:%S %Z}".rstrip(),
        f"End time: {end:%Y-%m-%d %H:%M:%S %Z}".rstrip(),
        f"Total duration: {format_duration(elapsed)}",
        "",
    ])


def write_results(log: t.BinaryIO, start: datetime.datetime, end: datetime.datetime) -> None:
    """Append the timing summary of a run to the log."""
    log.write(format_results(start, end).encode('utf-8'))
    log.flush()


def retarget_latest(root: pathlib.Path, snapshot: pathlib.Path) -> pathlib.Path:
    """
    Point the `latest` symlink in `root` at `snapshot`.

    A new link is made next to the old one and renamed over it,
    so there is always a `latest` link once the first backup has completed.
    The link target is relative so the backup drive can be mounted anywhere.
    """
    latest = root / constants.LATEST_POINTER_NAME
    staging = root / f'.{constants.LATEST_POINTER_NAME}.{os.getpid()}'
    target = os.path.relpath(snapshot, root)

    if staging.is_symlink():
        staging.unlink()
    staging.symlink_to(target, target_is_directory=True)
    try:
        os.replace(staging, latest)
    except OSError as exc:
        staging.unlink()
        raise exceptions.InvalidPathError(
            f"Could not point {str(latest)!r} at {str(snapshot)!r}: {exc.strerror}. "
            "It must be a symlink or not exist.")

    logger.log(logging.INFO, "Pointed %s at %s", latest, target)
    return latest


def clean_log(path: pathlib.Path) -> None:
    """
    Remove progress lines from a log.
    Progress updates are redrawn in place using carriage returns.
    Any line containing one is dropped, leaving the discrete entries in order.
    """
    with path.open('rb') as f:
        lines = f.read().split(b'\n')

    kept = [line for line in lines if b'\r' not in line]
    path.write_bytes(b'\n'.join(kept))
