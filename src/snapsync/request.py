import enum
import pathlib
import typing as t

import attr

from . import exceptions


class Mode(enum.Enum):
    directory = 'directory'
    file = 'file'
    system = 'system'


def _to_paths(values: t.Iterable[t.Union[str, pathlib.Path]]) -> t.Tuple[pathlib.Path, ...]:
    return tuple(pathlib.Path(value) for value in values)


def _to_optional_path(value: t.Union[str, pathlib.Path, None]) -> t.Optional[pathlib.Path]:
    return None if value is None else pathlib.Path(value)


@attr.s(auto_attribs=True, kw_only=True, frozen=True)
class BackupRequest:
    """
    Everything needed to run one backup, gathered from the command line
    and config. Built once and handed to the backup commands.
    """
    mode: Mode
    sources: t.Tuple[pathlib.Path, ...] = attr.ib(default=(), converter=_to_paths)
    destination: t.Optional[pathlib.Path] = attr.ib(default=None, converter=_to_optional_path)
    exclusions: t.Tuple[str, ...] = attr.ib(default=(), converter=tuple)
    file_type: str = 'timestamp'

    def __attrs_post_init__(self) -> None:
        if not isinstance(self.mode, Mode):
            raise exceptions.InvalidBackupModeError(f"Unknown backup mode {self.mode!r}")

        if self.mode in (Mode.directory, Mode.system) and self.destination is None:
            raise exceptions.MissingDestinationError(
                f"A destination is required for a {self.mode.value} backup")

        if self.mode in (Mode.directory, Mode.file) and not self.sources:
            raise exceptions.ConfigurationError(
                f"At least one source is required for a {self.mode.value} backup")

    def __str__(self) -> str:
        sources = ', '.join(repr(str(source)) for source in self.sources) or 'all filesystems'
        if self.destination is None:
            return f"{self.mode.value} backup of {sources}"
        return f"{self.mode.value} backup of {sources} to {str(self.destination)!r}"
