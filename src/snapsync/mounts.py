"""
Find the mounted filesystems that make up the running system.
"""
import fnmatch
import pathlib
import subprocess
import typing as t

from . import config, exceptions, logging

logger = logging.getLogger(__name__)


def df_command(skip_types: t.Iterable[str]) -> t.List[str]:
    command = ['df', '--output=target']
    for fs_type in skip_types:
        command.append(f'--exclude-type={fs_type}')
    return command


def parse_mount_table(
    output: str, skip_segments: t.Iterable[str],
) -> t.List[pathlib.Path]:
    """
    Parse the output of `df --output=target`.
    The first line is a header and is discarded.
    Mount points with any path segment matching one of `skip_segments`
    are dropped, as these are usually removable drives or network shares.
    """
    skip_segments = list(skip_segments)
    mount_points = []
    for line in output.splitlines()[1:]:
        line = line.strip()
        if not line:
            continue
        path = pathlib.Path(line)
        if any(
            fnmatch.fnmatchcase(part, pattern)
            for part in path.parts[1:] for pattern in skip_segments
        ):
            logger.log(logging.INFO, "Skipping mount point %s", path)
            continue
        mount_points.append(path)
    return mount_points


def list_mount_points(config: config.Config) -> t.List[pathlib.Path]:
    """
    List the mount points of all real filesystems,
    ignoring in-memory, network, and removable filesystems.
    """
    command = df_command(config['mounts']['skip_types'])
    logger.log(logging.DEBUG, logging.command(command))
    try:
        result = subprocess.run(
            command, check=True, capture_output=True, text=True)
    except (OSError, subprocess.CalledProcessError) as exc:
        raise exceptions.MountTableError(f"Could not read the mount table: {exc}")

    mount_points = parse_mount_table(result.stdout, config['mounts']['skip_segments'])
    if not mount_points:
        raise exceptions.MountTableError("No filesystems found to back up")
    return mount_points
