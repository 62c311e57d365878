import os
import shutil
import tempfile
import unittest
from unittest import mock

from common import test_utils
from common.test_utils import FakeDrive
from drive_download import transfer
from drive_download.errors import (IncompleteDownloadError, LocalWriteError,
                                   RemoteFetchError)
from drive_download.task_list import Task, load_task_list


def _run(drive, tasks, list_file, **kwargs):
    kwargs.setdefault('retry_wait_secs', 0)
    for _ in transfer.execute_tasks(drive, tasks, list_file, **kwargs):
        pass


class TestTransfer(unittest.TestCase):

    def setUp(self):
        self.test_dir = tempfile.mkdtemp(prefix='test_transfer')
        self.dst = os.path.join(self.test_dir, 'dst')
        self.list_file = os.path.join(self.test_dir, 'list.json')

        self.drive = FakeDrive()
        self.contents = {}
        for i in range(1, 6):
            file_id = 'f{}'.format(i)
            self.contents[file_id] = os.urandom(100 + i)
            self.drive.add_file(file_id, file_id, self.contents[file_id])

    def tearDown(self):
        shutil.rmtree(self.test_dir, ignore_errors=True)

    def _make_tasks(self, count=5):
        return [Task('f{}'.format(i), os.path.join(self.dst, 'sub{}'.format(i % 2), 'f{}'.format(i)),
                     md5=self.drive.items['f{}'.format(i)]['md5'])
                for i in range(1, count + 1)]

    def assertDownloaded(self, task):
        with open(task.local_path, 'rb') as f:
            self.assertEqual(f.read(), self.contents[task.remote_id])

    def testDownloadAll(self):
        tasks = self._make_tasks()

        _run(self.drive, tasks, self.list_file)

        for task in tasks:
            self.assertTrue(task.done)
            self.assertDownloaded(task)

        self.assertEqual(load_task_list(self.list_file), tasks)

    def testSecondRunFetchesNothing(self):
        tasks = self._make_tasks()
        _run(self.drive, tasks, self.list_file)
        self.drive.fetch_calls = []

        _run(self.drive, tasks, self.list_file)
        self.assertEqual(self.drive.fetch_calls, [])

        # Even with the done flags cleared, matching local files aren't refetched
        fresh_tasks = self._make_tasks()
        _run(self.drive, fresh_tasks, self.list_file)
        self.assertEqual(self.drive.fetch_calls, [])
        self.assertTrue(all(t.done for t in fresh_tasks))

    def testResumeFromFirstIncomplete(self):
        tasks = self._make_tasks()
        tasks[0].done = True
        tasks[1].done = True

        _run(self.drive, tasks, self.list_file)

        self.assertEqual(self.drive.fetch_calls, ['f3', 'f4', 'f5'])
        self.assertTrue(all(t.done for t in tasks))

    def testChangedLocalFileIsRefetched(self):
        tasks = self._make_tasks(1)
        test_utils.make_random_file(tasks[0].local_path, 50)

        _run(self.drive, tasks, self.list_file)

        self.assertEqual(self.drive.fetch_calls, ['f1'])
        self.assertDownloaded(tasks[0])

    def testNoMd5AlwaysFetched(self):
        tasks = [Task('f1', os.path.join(self.dst, 'f1'))]
        test_utils.make_random_file(tasks[0].local_path, 10)

        _run(self.drive, tasks, self.list_file)

        self.assertEqual(self.drive.fetch_calls, ['f1'])
        self.assertTrue(tasks[0].done)
        self.assertDownloaded(tasks[0])

    def testRetryThenSucceed(self):
        tasks = self._make_tasks(1)
        self.drive.fetch_failures['f1'] = 4

        with mock.patch('drive_download.transfer.time.sleep') as sleep:
            _run(self.drive, tasks, self.list_file, retry_wait_secs=5)

        self.assertTrue(tasks[0].done)
        self.assertDownloaded(tasks[0])
        self.assertEqual(len(self.drive.fetch_calls), 5)
        self.assertEqual([c[0][0] for c in sleep.call_args_list], [5, 10, 15, 20])

    def testRetriesExhaustedAbortsRun(self):
        tasks = self._make_tasks()
        self.drive.fetch_failures['f2'] = 5

        with self.assertRaises(RemoteFetchError) as cm:
            _run(self.drive, tasks, self.list_file)

        self.assertEqual(cm.exception.remote_id, 'f2')
        self.assertEqual(cm.exception.local_path, tasks[1].local_path)
        self.assertEqual([t.done for t in tasks], [True, False, False, False, False])
        self.assertEqual(self.drive.fetch_calls, ['f1'] + ['f2'] * 5)

        # The list on disk has the progress so far
        self.assertEqual([t.done for t in load_task_list(self.list_file)],
                         [True, False, False, False, False])

        # And the next run carries on from f2
        self.drive.fetch_calls = []
        _run(self.drive, load_task_list(self.list_file), self.list_file)
        self.assertEqual(self.drive.fetch_calls, ['f2', 'f3', 'f4', 'f5'])

    def testChecksumMismatchIsRetried(self):
        tasks = self._make_tasks(1)
        tasks[0].md5 = 'not_the_real_md5'

        with self.assertRaises(RemoteFetchError):
            _run(self.drive, tasks, self.list_file, max_attempts=3)

        self.assertEqual(len(self.drive.fetch_calls), 3)
        self.assertFalse(tasks[0].done)

    def testLocalWriteError(self):
        # A file where a directory needs to be
        test_utils.make_random_file(os.path.join(self.dst, 'sub1'), 1)
        tasks = self._make_tasks(1)

        with self.assertRaises(LocalWriteError) as cm:
            _run(self.drive, tasks, self.list_file, max_attempts=2)

        self.assertEqual(cm.exception.remote_id, 'f1')
        self.assertFalse(tasks[0].done)

    def testSkipFailed(self):
        tasks = self._make_tasks()
        self.drive.fetch_failures['f2'] = 5

        with self.assertRaises(IncompleteDownloadError) as cm:
            _run(self.drive, tasks, self.list_file, skip_failed=True)

        self.assertEqual(cm.exception.failed_tasks, [tasks[1]])
        self.assertEqual([t.done for t in tasks], [True, False, True, True, True])
        self.assertEqual([t.done for t in load_task_list(self.list_file)],
                         [True, False, True, True, True])

    def testPeriodicCheckpoint(self):
        tasks = self._make_tasks()

        with mock.patch('drive_download.transfer.checkpoint_task_list') as checkpoint:
            _run(self.drive, tasks, self.list_file, checkpoint_every=2)

        # After tasks 2 and 4, then the final save
        self.assertEqual(checkpoint.call_count, 3)

    def testCheckpointOnEarlyStop(self):
        tasks = self._make_tasks()

        progress = transfer.execute_tasks(self.drive, tasks, self.list_file, retry_wait_secs=0)
        next(progress)
        next(progress)
        progress.close()

        self.assertEqual([t.done for t in load_task_list(self.list_file)],
                         [True, True, False, False, False])

    def testCheckpointFailureDoesNotAbort(self):
        tasks = self._make_tasks()
        os.makedirs(self.list_file)

        _run(self.drive, tasks, self.list_file, checkpoint_every=1)

        self.assertTrue(all(t.done for t in tasks))
