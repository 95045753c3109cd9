import pathlib
import shutil
import typing as t

import attr

from snapsync import config, exceptions, syncers


@attr.s(auto_attribs=True, kw_only=True, frozen=True)
class SyncCall:
    sources: t.List[pathlib.Path]
    destination: pathlib.Path
    mode: syncers.SyncMode
    exclude_from: pathlib.Path
    exclusions: t.List[str]
    incremental_ref: t.Optional[pathlib.Path]


@attr.s(auto_attribs=True, kw_only=True)
class FakeSyncer(syncers.Syncer):
    """
    Stands in for rsync. Copies plain files and directories with shutil,
    writes `files` in to snapshot destinations,
    and writes `output` to the log as if the sync tool printed it.
    """
    name: str = 'fake'
    output: bytes = b''
    returncode: int = 0
    files: t.Dict[str, bytes] = attr.ib(factory=dict)
    calls: t.List[SyncCall] = attr.ib(factory=list)

    @classmethod
    def from_config(cls, name: str, config: config.Config) -> 'FakeSyncer':
        return cls(name=name)

    def sync(
        self,
        sources: t.Sequence[pathlib.Path],
        destination: pathlib.Path,
        *,
        mode: syncers.SyncMode,
        exclude_from: pathlib.Path,
        incremental_ref: t.Optional[pathlib.Path] = None,
        log: t.Optional[t.BinaryIO] = None,
    ) -> None:
        self.calls.append(SyncCall(
            sources=list(sources), destination=destination, mode=mode,
            exclude_from=exclude_from,
            exclusions=exclude_from.read_text().splitlines(),
            incremental_ref=incremental_ref))

        if log is not None:
            log.write(self.output)

        if self.returncode != 0:
            raise exceptions.SyncError("fake sync failed", returncode=self.returncode)

        if mode is syncers.SyncMode.snapshot:
            for name, contents in self.files.items():
                (destination / name).write_bytes(contents)
            return

        for source in sources:
            if source.is_dir():
                shutil.copytree(source, destination / source.name, dirs_exist_ok=True)
            else:
                shutil.copy2(source, destination)
