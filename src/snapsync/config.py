import abc
import collections
import datetime
import itertools
import pathlib
import typing as t

import toml
import xdg

from . import constants, exceptions


def get_default_config_path() -> pathlib.Path:
    return xdg.xdg_config_home() / 'snapsync' / 'config.toml'


class Configurable(abc.ABC):
    @classmethod
    @abc.abstractmethod
    def from_config_identifier(cls, identifier: str, config: 'Config') -> 'Configurable': ...


class Singleton:
    pass


TSingleton = t.TypeVar('TSingleton', bound=Singleton)
TConfigurable = t.TypeVar('TConfigurable', bound=Configurable)
TKey = t.Tuple[t.Type[Configurable], str]


class Config:
    """
    Configuration loaded from a TOML file, layered over the built in defaults.
    Lists are concatenated across layers, with the user's entries first.
    Tables are merged, and scalar values from the user's file win.
    """

    DEFAULTS = {
        'snapsync': {
            'verbosity': 1,
            'syncer': 'rsync',
        },
        'rsync': {
            'command': 'rsync',
            'extra_arguments': [],
            'tolerate_partial_transfer': False,
        },
        'mounts': {
            'skip_types': constants.SKIP_FILESYSTEM_TYPES,
            'skip_segments': constants.SKIP_MOUNT_SEGMENTS,
        },
        'backup': {
            'exclude': [],
        },
        'file': {
            'file_type': 'timestamp',
        },
    }

    _config: t.Mapping[str, t.Any]
    _configurable_cache: t.MutableMapping[t.Type[Configurable], t.MutableMapping[str, Configurable]]
    _singleton_cache: t.MutableMapping[t.Type[Singleton], Singleton]

    def __init__(self, *configs: t.Mapping[str, t.Any]):
        self._config = NestedChainMap(*configs)
        self._configurable_cache = collections.defaultdict(dict)
        self._singleton_cache = {}

    @classmethod
    def from_file(cls, file_path: pathlib.Path) -> "Config":
        try:
            return cls(toml.load(file_path), cls.DEFAULTS)
        except toml.TomlDecodeError as exc:
            raise exceptions.ConfigurationError(f"Could not parse {str(file_path)!r}: {exc}")

    @classmethod
    def defaults(cls) -> "Config":
        return cls(cls.DEFAULTS)

    def __getitem__(self, key: t.Any) -> t.Any:
        return self._config[key]

    @t.overload
    def get(self, item: TKey) -> Configurable: ...
    @t.overload
    def get(self, item: t.Type[TSingleton]) -> TSingleton: ...

    def get(
        self,
        item: t.Union[TKey, t.Type[TSingleton]],
    ) -> t.Union[Configurable, TSingleton]:
        if isinstance(item, tuple):
            cls, identifier = item
            cls_cache = self._configurable_cache[cls]
            try:
                return cls_cache[identifier]
            except KeyError:
                value = cls.from_config_identifier(identifier, self)
                self.set(item, value)
                return value

        if isinstance(item, type) and issubclass(item, Singleton):
            return t.cast(TSingleton, self._singleton_cache[item])

        raise NotImplementedError(f"Can't get config of {item!r}")

    @t.overload
    def set(self, item: TKey, value: Configurable) -> None: ...
    @t.overload
    def set(self, item: t.Type[TSingleton], value: TSingleton) -> None: ...

    def set(
        self,
        item: t.Union[TKey, t.Type[TSingleton]],
        value: t.Union[Configurable, TSingleton],
    ) -> None:
        if isinstance(item, tuple):
            cls, identifier = item
            self._configurable_cache[cls][identifier] = t.cast(Configurable, value)

        elif isinstance(item, type) and issubclass(item, Singleton):
            self._singleton_cache[item] = t.cast(TSingleton, value)

        return None


class NestedChainMap(collections.ChainMap):
    def __getitem__(self, key: t.Any) -> t.Union[str, int, datetime.datetime, t.Mapping, list]:
        items = (m[key] for m in self.maps if key in m)
        try:
            prototype = next(items)
        except StopIteration:
            raise KeyError(key)

        if isinstance(prototype, t.Mapping):
            _items = list(items)
            if len(_items) == 0:
                return prototype

            return NestedChainMap(prototype, *_items)

        if isinstance(prototype, (str, bytes)):
            return prototype

        if isinstance(prototype, t.Iterable):
            return list(itertools.chain(prototype, *items))

        return prototype  # type: ignore
