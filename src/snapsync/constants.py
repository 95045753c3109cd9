#: The name of the symlink pointing at the newest snapshot
LATEST_POINTER_NAME = 'latest'

#: Log file name for a system backup, formatted with the run start time
LOG_FILE_FORMAT = 'Backup_Summary_%H:%M:%S%Z.log'

#: Patterns always excluded from a backup, appended after user patterns
DEFAULT_EXCLUDES = [
    # Per-user caches
    '.cache/*',
    '.thumbnails/*',
    '.cache/thumbnails/*',
    '.local/share/Trash/*',
    # Browser storage caches
    '.mozilla/firefox/*/cache2/*',
    '.mozilla/firefox/*/storage/default/*/cache/*',
    '.config/google-chrome/*/Cache/*',
    '.config/chromium/*/Cache/*',
    '.config/*/GPUCache/*',
    # Swap
    '/swapfile',
    '/swap.img',
]

#: Filesystem types that are never a source for a system backup
SKIP_FILESYSTEM_TYPES = [
    'tmpfs', 'devtmpfs', 'squashfs', 'overlay',
    'nfs', 'nfs4', 'cifs', 'smbfs', 'fuse.sshfs',
]

#: Mount points with a path segment matching any of these are skipped.
#: These are where removable drives and network shares usually get mounted.
SKIP_MOUNT_SEGMENTS = ['media', 'mnt', 'Volumes']

#: rsync exit codes meaning a partial transfer
RSYNC_PARTIAL_TRANSFER_CODES = (23, 24)

#: What rsync's exit codes mean, from `man rsync'
RSYNC_EXIT_REASONS = {
    1: "syntax or usage error",
    2: "protocol incompatibility",
    3: "errors selecting input/output files, dirs",
    5: "error starting client-server protocol",
    10: "error in socket I/O",
    11: "error in file I/O",
    12: "error in rsync protocol data stream",
    20: "received SIGUSR1 or SIGINT",
    23: "partial transfer due to error",
    24: "partial transfer due to vanished source files",
    25: "the --max-delete limit stopped deletions",
    30: "timeout in data send/receive",
    127: "rsync could not be found",
}
