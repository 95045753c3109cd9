import pathlib
import typing as t

import attr

from .. import config, constants, exceptions, logging
from . import _base

logger = logging.getLogger(__name__)


@attr.s(auto_attribs=True, kw_only=True)
class Rsync(_base.Syncer):
    name: str = 'rsync'
    command: str = 'rsync'
    extra_arguments: t.List[str] = attr.ib(factory=list)
    tolerate_partial_transfer: bool = False
    verbosity: logging.Verbosity = logging.Verbosity.minimal

    @classmethod
    def from_config(cls, name: str, config: config.Config) -> 'Rsync':
        options = config['rsync']
        try:
            verbosity = config.get(logging.Verbosity)
        except KeyError:
            verbosity = logging.Verbosity(config['snapsync']['verbosity'])
        return cls(
            name=name,
            command=options['command'],
            extra_arguments=list(options['extra_arguments']),
            tolerate_partial_transfer=bool(options['tolerate_partial_transfer']),
            verbosity=verbosity,
        )

    def arguments(
        self,
        sources: t.Sequence[pathlib.Path],
        destination: pathlib.Path,
        *,
        mode: _base.SyncMode,
        exclude_from: pathlib.Path,
        incremental_ref: t.Optional[pathlib.Path] = None,
    ) -> t.List[str]:
        """Build the rsync command line for a sync."""
        command = [self.command]

        command.append('--human-readable')
        if self.verbosity is logging.Verbosity.all:
            command.append('--verbose')
        elif self.verbosity is logging.Verbosity.silent:
            # rsync is silent by default
            pass
        else:
            command.append('--info=progress2,stats')

        # The following rsync options are intended to preserve
        # as much filesystem metadata as possible.
        # --archive keeps permissions, times and device files.
        # Nothing is ever deleted from the destination.
        command.append('--archive')
        command.append('--acls')
        command.append('--xattrs')
        command.append('--hard-links')
        command.append('--numeric-ids')

        if mode is _base.SyncMode.plain:
            pass
        elif mode is _base.SyncMode.snapshot:
            # Each source is a mount point. Keep its full path in the snapshot,
            # and do not wander in to the other mount points below it.
            command.append('--relative')
            command.append('--one-file-system')
            if incremental_ref is not None:
                command.append('--link-dest=%s' % incremental_ref)
        else:
            raise exceptions.InvalidBackupModeError(f"Unknown sync mode {mode!r}")

        command.append('--exclude-from=%s' % exclude_from)
        command.extend(self.extra_arguments)

        command.extend(str(source) for source in sources)
        if mode is _base.SyncMode.snapshot:
            command.append(_ensure_trailing_slash(str(destination)))
        else:
            command.append(str(destination))
        return command

    def sync(
        self,
        sources: t.Sequence[pathlib.Path],
        destination: pathlib.Path,
        *,
        mode: _base.SyncMode,
        exclude_from: pathlib.Path,
        incremental_ref: t.Optional[pathlib.Path] = None,
        log: t.Optional[t.BinaryIO] = None,
    ) -> None:
        command = self.arguments(
            sources, destination,
            mode=mode, exclude_from=exclude_from, incremental_ref=incremental_ref)

        logger.log(logging.INFO, "Running rsync")
        logger.log(logging.DEBUG, logging.command(command))

        sinks = [_base.terminal()]
        if log is not None:
            sinks.append(log)
        try:
            returncode = _base.tee(command, sinks)
        except OSError as exc:
            raise exceptions.SyncError(f"Could not run {self.command!r}: {exc}", returncode=127)

        if returncode == 0:
            logger.log(logging.INFO, "Finished sync")
            return

        # From `man rsync':
        #  - 23: Partial transfer due to error.
        #  - 24: Partial transfer due to vanished source files.
        # This can be expected on a running system
        # without proper filesystem snapshots.
        if self.tolerate_partial_transfer and returncode in constants.RSYNC_PARTIAL_TRANSFER_CODES:
            logger.log(
                logging.WARNING,
                "Ignoring `partial transfer' warnings (rsync exited with %i).",
                returncode,
            )
            return

        reason = constants.RSYNC_EXIT_REASONS.get(returncode, "unknown error")
        logger.log(logging.ERROR, "Backup failed! (rsync exited with %i: %s)", returncode, reason)
        raise exceptions.SyncError(
            f"rsync exited with status {returncode}: {reason}", returncode=returncode)


def _ensure_trailing_slash(path: str) -> str:
    """Ensure a path ends with a slash."""
    if not path.endswith('/'):
        return path + '/'
    return path
