import dataclasses


@dataclasses.dataclass
class CommandError(Exception):
    message: str
    exit_code: int = 1


@dataclasses.dataclass
class ConfigurationError(CommandError):
    exit_code: int = 2


@dataclasses.dataclass
class NoModeError(ConfigurationError):
    exit_code: int = 3


@dataclasses.dataclass
class MissingDestinationError(ConfigurationError):
    exit_code: int = 4


@dataclasses.dataclass
class ValidationError(CommandError):
    exit_code: int = 5


@dataclasses.dataclass
class InvalidPathError(ValidationError):
    pass


@dataclasses.dataclass
class InvalidFileError(ValidationError):
    exit_code: int = 6


@dataclasses.dataclass
class InternalModeError(CommandError):
    exit_code: int = 7


@dataclasses.dataclass
class InvalidBackupModeError(InternalModeError):
    pass


@dataclasses.dataclass
class InvalidFileTypeError(InternalModeError):
    exit_code: int = 8


@dataclasses.dataclass
class PrivilegeError(CommandError):
    exit_code: int = 9


@dataclasses.dataclass
class MountTableError(CommandError):
    exit_code: int = 10


@dataclasses.dataclass
class SyncError(CommandError):
    exit_code: int = 11
    #: The exit status of the sync tool
    returncode: int = 1
