"""
Back up directories, files, or the whole system using rsync.
"""
import argparse
import contextlib
import datetime
import pathlib
import signal
import sys
import types
import typing as t

import iso8601

from . import config, exceptions, logging, request, syncers
from .commands import directory, file, system

logger = logging.getLogger(__name__)


def main(argv: t.Optional[t.Sequence[str]] = None) -> None:
    with handle_errors():
        arguments = get_arguments(argv)
        config = get_config(arguments)

        if arguments.verbosity is not None:
            verbosity = logging.Verbosity(min(arguments.verbosity + 1, 3))
        else:
            verbosity = logging.Verbosity(config['snapsync']['verbosity'])
        config.set(logging.Verbosity, verbosity)

        logging.setup_logging(config)
        signal.signal(signal.SIGTERM, _terminate)
        arguments.func(config, arguments)


@contextlib.contextmanager
def handle_errors() -> t.Iterator[None]:
    try:
        yield
    except exceptions.CommandError as exc:
        logger.error(exc.message)
        sys.exit(exc.exit_code)
    except KeyboardInterrupt:
        sys.exit(130)


def _terminate(signum: int, frame: t.Optional[types.FrameType]) -> None:
    # Raising here unwinds the stack, so temporary files get cleaned up
    sys.exit(128 + signum)


# Command line argument handling

def _get_argparse_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        "snapsync",
        description=__doc__,
    )
    parser.add_argument(
        "-c", "--config", dest="config",
        help="The config file to use.",
        type=pathlib.Path, default=config.get_default_config_path(),
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument(
        "-v", "--verbose", dest="verbosity",
        help=(
            "Include more output when running. "
            "Use multiple times to make it even more verbose."
        ),
        action="count",
    )
    verbosity.add_argument(
        "-q", "--quiet", dest="verbosity",
        help="Turn off all output except errors",
        action="store_const", const=-1,
    )
    parser.set_defaults(verbosity=None)
    parser.set_defaults(func=cmd_default)

    subparsers = parser.add_subparsers(title="Commands")

    directory_parser = subparsers.add_parser(
        "directory",
        description=(
            "Copy one or more directories in to a destination directory. "
            "Nothing in the destination is deleted."
        ))
    directory_parser.add_argument(
        "paths", metavar="PATH",
        help="One or more source directories, followed by the destination directory.",
        type=pathlib.Path, nargs="+",
    )
    _add_exclude_arguments(directory_parser)
    directory_parser.set_defaults(func=cmd_directory)

    file_parser = subparsers.add_parser(
        "file",
        description="Make a copy of each file next to the original, with a suffix added.")
    file_parser.add_argument(
        "files", metavar="FILE",
        help="The files to back up.",
        type=pathlib.Path, nargs="+",
    )
    file_parser.add_argument(
        "--file-type", dest="file_type",
        help=(
            "How to name the copy. 'timestamp' adds the current date and time, "
            "'bak' adds '.bak'. Defaults to the config, or 'timestamp'."
        ),
        choices=file.file_types.names(), default=None,
    )
    file_parser.set_defaults(func=cmd_file)

    system_parser = subparsers.add_parser(
        "system",
        description=(
            "Snapshot every real filesystem in to a dated directory in DESTINATION, "
            "hard linking unchanged files against the previous snapshot. "
            "Must be run as root."
        ))
    system_parser.add_argument(
        "destination", metavar="DESTINATION",
        help="The directory to keep snapshots in.",
        type=pathlib.Path, nargs="?",
    )
    system_parser.add_argument(
        "-s", "--source", dest="sources", metavar="MOUNT_POINT",
        help=(
            "Back up this mount point instead of probing the mount table. "
            "Can be used multiple times."
        ),
        type=pathlib.Path, action="append", default=[],
    )
    system_parser.add_argument(
        "-t", "--timestamp", dest="timestamp",
        help=(
            "Timestamp used to name the snapshot directory and log. ISO8601 format. "
            "Defaults to the current local time."
        ),
        type=_parse_datetime, default=None,
    )
    _add_exclude_arguments(system_parser)
    system_parser.set_defaults(func=cmd_system)

    return parser


def _add_exclude_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-e", "--exclude", dest="exclude", metavar="PATTERN",
        help="Skip files matching this pattern. Can be used multiple times.",
        action="append", default=[],
    )
    parser.add_argument(
        "--exclude-from", dest="exclude_from", metavar="FILE",
        help="Read exclusion patterns from a file, one per line.",
        type=pathlib.Path, action="append", default=[],
    )


def _local_now() -> datetime.datetime:
    return datetime.datetime.now().astimezone()


def _parse_datetime(value: str) -> datetime.datetime:
    try:
        return iso8601.parse_date(value)
    except iso8601.ParseError as exc:
        raise argparse.ArgumentTypeError(str(exc))


def get_arguments(argv: t.Optional[t.Sequence[str]] = None) -> argparse.Namespace:
    parser = _get_argparse_parser()
    return parser.parse_args(argv)


# Commands to run

def cmd_default(config: config.Config, arguments: argparse.Namespace) -> None:
    raise exceptions.NoModeError(
        "No backup mode chosen. Use one of 'directory', 'file', or 'system'.")


def cmd_directory(config: config.Config, arguments: argparse.Namespace) -> None:
    *sources, destination = arguments.paths
    backup_request = request.BackupRequest(
        mode=request.Mode.directory,
        sources=sources,
        destination=destination if sources else None,
        exclusions=get_exclusions(config, arguments),
    )
    directory.backup_directories(backup_request, syncer=get_syncer(config))


def cmd_file(config: config.Config, arguments: argparse.Namespace) -> None:
    file_type = arguments.file_type or config['file']['file_type']
    backup_request = request.BackupRequest(
        mode=request.Mode.file,
        sources=arguments.files,
        file_type=file_type,
    )
    file.backup_files(backup_request, syncer=get_syncer(config), timestamp=_local_now())


def cmd_system(config: config.Config, arguments: argparse.Namespace) -> None:
    backup_request = request.BackupRequest(
        mode=request.Mode.system,
        sources=arguments.sources,
        destination=arguments.destination,
        exclusions=get_exclusions(config, arguments),
    )
    system.backup_system(
        backup_request,
        syncer=get_syncer(config),
        config=config,
        timestamp=arguments.timestamp or _local_now(),
    )


# Config helpers

def get_config(arguments: argparse.Namespace) -> config.Config:
    config_file = arguments.config
    if not config_file.exists():
        if config_file == config.get_default_config_path():
            return config.Config.defaults()
        raise exceptions.ConfigurationError(
            f"Config file `{config_file}' does not exist",
        )
    return config.Config.from_file(config_file)


def get_syncer(config: config.Config) -> syncers.Syncer:
    return t.cast(syncers.Syncer, config.get((syncers.Syncer, config['snapsync']['syncer'])))


def get_exclusions(config: config.Config, arguments: argparse.Namespace) -> t.List[str]:
    """
    Gather the user's exclusion patterns: those given on the command line,
    then those read from any --exclude-from files, then those in the config.
    """
    patterns = list(arguments.exclude)
    for path in arguments.exclude_from:
        patterns.extend(read_exclude_file(path))
    patterns.extend(config['backup']['exclude'])
    return patterns


def read_exclude_file(path: pathlib.Path) -> t.List[str]:
    """Read patterns from a file. Blank lines and '#' comments are skipped."""
    try:
        with open(path, 'r') as f:
            trimmed_lines = (line.strip() for line in f)
            return [line for line in trimmed_lines if line and not line.startswith('#')]
    except OSError as exc:
        raise exceptions.ConfigurationError(f"Could not read exclusions from {str(path)!r}: {exc}")
