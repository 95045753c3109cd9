import abc
import enum
import pathlib
import subprocess
import sys
import typing as t

from .. import config, exceptions, logging, registry

logger = logging.getLogger(__name__)


class SyncMode(enum.Enum):
    #: Copy sources in to the destination, deleting nothing
    plain = 'plain'
    #: As for plain, but hard link unchanged files against a previous snapshot
    snapshot = 'snapshot'


class Syncer(config.Configurable, abc.ABC):
    """
    Something that can copy files from one place to another.
    All the actual work of a backup is delegated to a Syncer.
    """
    name: str

    @classmethod
    def from_config_identifier(cls, identifier: str, config: config.Config) -> 'Syncer':
        try:
            syncer_type = syncer_types[identifier]
        except KeyError:
            raise exceptions.ConfigurationError(f"Unknown syncer '{identifier}'")
        return syncer_type.from_config(identifier, config)

    @classmethod
    @abc.abstractmethod
    def from_config(cls, name: str, config: config.Config) -> 'Syncer': ...

    @abc.abstractmethod
    def sync(
        self,
        sources: t.Sequence[pathlib.Path],
        destination: pathlib.Path,
        *,
        mode: SyncMode,
        exclude_from: pathlib.Path,
        incremental_ref: t.Optional[pathlib.Path] = None,
        log: t.Optional[t.BinaryIO] = None,
    ) -> None:
        """
        Copy `sources` to `destination`, skipping anything matching
        a pattern in the `exclude_from` file.

        In `SyncMode.snapshot` mode, unchanged files are hard linked
        from `incremental_ref` if it is given.
        All output is written to the terminal, and to `log` if given.
        Raises `SyncError` if the copy fails.
        """

    def __str__(self) -> str:
        return self.name


def tee(
    command: t.Sequence[str],
    sinks: t.Sequence[t.BinaryIO],
) -> int:
    """
    Run a command, copying everything it prints to every sink as it arrives.
    stderr is merged in to stdout so that errors land in the log too.
    Returns the exit status of the command.
    """
    with subprocess.Popen(command, stdout=subprocess.PIPE, stderr=subprocess.STDOUT) as process:
        stdout = t.cast(t.BinaryIO, process.stdout)
        # read1 returns whatever is available, so '\r' progress updates
        # are forwarded immediately instead of waiting for a newline
        for chunk in iter(lambda: stdout.read1(65536), b''):  # type: ignore
            for sink in sinks:
                sink.write(chunk)
                sink.flush()
    return process.returncode


def terminal() -> t.BinaryIO:
    return t.cast(t.BinaryIO, sys.stdout.buffer)


syncer_types = registry.Registry[t.Type[Syncer]]()
