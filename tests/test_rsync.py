import io
import pathlib
import unittest
from unittest import mock

from snapsync import config, exceptions, logging, syncers

SOURCES = [pathlib.Path('/'), pathlib.Path('/home')]
DESTINATION = pathlib.Path('/backup/2026-10-19')
EXCLUDE_FROM = pathlib.Path('/tmp/snapsync-exclude.txt')


class RsyncArgumentsTests(unittest.TestCase):
    def setUp(self) -> None:
        self.rsync = syncers.Rsync()

    def test_plain_arguments(self) -> None:
        command = self.rsync.arguments(
            [pathlib.Path('/home/alice')], pathlib.Path('/backup'),
            mode=syncers.SyncMode.plain, exclude_from=EXCLUDE_FROM)

        self.assertEqual(command[0], 'rsync')
        for flag in ['--archive', '--acls', '--xattrs', '--hard-links']:
            self.assertIn(flag, command)
        self.assertIn('--exclude-from=/tmp/snapsync-exclude.txt', command)
        self.assertEqual(command[-2:], ['/home/alice', '/backup'])
        self.assertFalse(any(arg.startswith('--delete') for arg in command))
        self.assertFalse(any(arg.startswith('--link-dest') for arg in command))
        self.assertNotIn('--relative', command)

    def test_snapshot_arguments(self) -> None:
        command = self.rsync.arguments(
            SOURCES, DESTINATION,
            mode=syncers.SyncMode.snapshot, exclude_from=EXCLUDE_FROM,
            incremental_ref=pathlib.Path('/backup/latest'))

        self.assertIn('--relative', command)
        self.assertIn('--one-file-system', command)
        self.assertIn('--link-dest=/backup/latest', command)
        self.assertFalse(any(arg.startswith('--delete') for arg in command))
        self.assertEqual(command[-3:], ['/', '/home', '/backup/2026-10-19/'])

    def test_snapshot_without_previous(self) -> None:
        command = self.rsync.arguments(
            SOURCES, DESTINATION,
            mode=syncers.SyncMode.snapshot, exclude_from=EXCLUDE_FROM)
        self.assertFalse(any(arg.startswith('--link-dest') for arg in command))

    def test_unknown_mode(self) -> None:
        with self.assertRaises(exceptions.InvalidBackupModeError):
            self.rsync.arguments(
                SOURCES, DESTINATION,
                mode='mirror', exclude_from=EXCLUDE_FROM)  # type: ignore

    def test_verbosity(self) -> None:
        quiet = syncers.Rsync(verbosity=logging.Verbosity.silent).arguments(
            SOURCES, DESTINATION, mode=syncers.SyncMode.plain, exclude_from=EXCLUDE_FROM)
        loud = syncers.Rsync(verbosity=logging.Verbosity.all).arguments(
            SOURCES, DESTINATION, mode=syncers.SyncMode.plain, exclude_from=EXCLUDE_FROM)
        self.assertNotIn('--verbose', quiet)
        self.assertFalse(any(arg.startswith('--info') for arg in quiet))
        self.assertIn('--verbose', loud)
        self.assertIn('--info=progress2,stats', self.rsync.arguments(
            SOURCES, DESTINATION, mode=syncers.SyncMode.plain, exclude_from=EXCLUDE_FROM))

    def test_extra_arguments(self) -> None:
        rsync = syncers.Rsync(command='/usr/local/bin/rsync', extra_arguments=['--checksum'])
        command = rsync.arguments(
            SOURCES, DESTINATION, mode=syncers.SyncMode.plain, exclude_from=EXCLUDE_FROM)
        self.assertEqual(command[0], '/usr/local/bin/rsync')
        self.assertIn('--checksum', command)


class RsyncFromConfigTests(unittest.TestCase):
    def test_defaults(self) -> None:
        rsync = config.Config.defaults().get((syncers.Syncer, 'rsync'))
        self.assertIsInstance(rsync, syncers.Rsync)
        self.assertEqual(rsync.command, 'rsync')
        self.assertEqual(rsync.extra_arguments, [])
        self.assertFalse(rsync.tolerate_partial_transfer)

    def test_from_user_config(self) -> None:
        user_config = config.Config({
            'rsync': {
                'command': '/opt/rsync',
                'extra_arguments': ['--checksum'],
                'tolerate_partial_transfer': True,
            },
        }, config.Config.DEFAULTS)
        user_config.set(logging.Verbosity, logging.Verbosity.all)
        rsync = user_config.get((syncers.Syncer, 'rsync'))
        self.assertEqual(rsync.command, '/opt/rsync')
        self.assertEqual(rsync.extra_arguments, ['--checksum'])
        self.assertTrue(rsync.tolerate_partial_transfer)
        self.assertIs(rsync.verbosity, logging.Verbosity.all)

    def test_unknown_syncer(self) -> None:
        with self.assertRaises(exceptions.ConfigurationError):
            config.Config.defaults().get((syncers.Syncer, 'robocopy'))


class RsyncSyncTests(unittest.TestCase):
    def setUp(self) -> None:
        patcher = mock.patch('snapsync.syncers._base.terminal', return_value=io.BytesIO())
        patcher.start()
        self.addCleanup(patcher.stop)

    def _sync(self, rsync: syncers.Rsync, returncode: int) -> mock.Mock:
        with mock.patch('snapsync.syncers._base.tee', return_value=returncode) as tee:
            rsync.sync(
                SOURCES, DESTINATION,
                mode=syncers.SyncMode.snapshot, exclude_from=EXCLUDE_FROM,
                log=io.BytesIO())
        return tee

    def test_success(self) -> None:
        tee = self._sync(syncers.Rsync(), 0)
        command, sinks = tee.call_args[0]
        self.assertEqual(command[0], 'rsync')
        self.assertEqual(len(sinks), 2)

    def test_failure_raises(self) -> None:
        with self.assertRaises(exceptions.SyncError) as cm:
            self._sync(syncers.Rsync(), 12)
        self.assertEqual(cm.exception.returncode, 12)
        self.assertIn("error in rsync protocol data stream", cm.exception.message)

    def test_partial_transfer(self) -> None:
        with self.assertRaises(exceptions.SyncError) as cm:
            self._sync(syncers.Rsync(), 24)
        self.assertEqual(cm.exception.returncode, 24)

        self._sync(syncers.Rsync(tolerate_partial_transfer=True), 24)

    def test_missing_binary(self) -> None:
        rsync = syncers.Rsync(command='/nonexistent/rsync')
        with self.assertRaises(exceptions.SyncError) as cm:
            rsync.sync(
                SOURCES, DESTINATION,
                mode=syncers.SyncMode.plain, exclude_from=EXCLUDE_FROM)
        self.assertEqual(cm.exception.returncode, 127)


class TeeTests(unittest.TestCase):
    def test_output_goes_to_every_sink(self) -> None:
        terminal = io.BytesIO()
        log = io.BytesIO()
        returncode = syncers.tee(
            ['sh', '-c', r'printf "one\r two\nthree\n"; echo oops >&2; exit 3'],
            [terminal, log])

        self.assertEqual(returncode, 3)
        self.assertEqual(terminal.getvalue(), log.getvalue())
        self.assertEqual(log.getvalue(), b"one\r two\nthree\noops\n")
