from ._base import SyncMode, Syncer, syncer_types, tee
from ._rsync import Rsync

syncer_types['rsync'] = Rsync

__all__ = [
    'SyncMode', 'Syncer', 'syncer_types', 'tee',
    'Rsync',
]
