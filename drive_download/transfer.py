import logging
import os
import time

import requests

from common.hash_utils import file_fingerprint
from drive_download.errors import (IncompleteDownloadError, LocalWriteError,
                                   RemoteFetchError)
from drive_download.task_list import checkpoint_task_list


logger = logging.getLogger(__name__)

default_max_attempts = 5
default_retry_wait_secs = 5
default_checkpoint_every = 10

_fetch_errors = (requests.RequestException, OSError, ValueError)


def _save_content(cloud_drive, task):
    """
    Streams the remote file into task.local_path, replacing whatever is there.
    Raises RemoteFetchError or LocalWriteError.
    """
    try:
        chunks = iter(cloud_drive.fetch_content(task.remote_id))
    except _fetch_errors as err:
        raise RemoteFetchError(task.remote_id, task.local_path, err) from err

    try:
        try:
            parent_dir = os.path.dirname(task.local_path)
            if parent_dir != '':
                os.makedirs(parent_dir, exist_ok=True)
            f = open(task.local_path, 'wb')
        except OSError as err:
            raise LocalWriteError(task.remote_id, task.local_path, err) from err

        with f:
            while True:
                try:
                    chunk = next(chunks)
                except StopIteration:
                    break
                except _fetch_errors as err:
                    raise RemoteFetchError(task.remote_id, task.local_path, err) from err

                try:
                    f.write(chunk)
                except OSError as err:
                    raise LocalWriteError(task.remote_id, task.local_path, err) from err
    finally:
        # Releases the http connection if we stopped early
        if hasattr(chunks, 'close'):
            chunks.close()


def download_task(cloud_drive, task):
    """
    One download attempt. Does nothing if the local file already matches the
    expected md5. If the md5 is known the written file is checked against it.

    :return: True if data was fetched, False if the local file was already good.
    Raises RemoteFetchError or LocalWriteError.
    """
    local_md5 = file_fingerprint(task.local_path)
    if task.md5 != '' and local_md5 != '' and local_md5 == task.md5:
        logger.info('skipping identical file: {}'.format(task.local_path))
        return False

    logger.info('downloading file ({}): {}'.format(task.md5, task.local_path))
    _save_content(cloud_drive, task)

    if task.md5 != '':
        written_md5 = file_fingerprint(task.local_path)
        if written_md5 != task.md5:
            raise RemoteFetchError(task.remote_id, task.local_path,
                                   'checksum mismatch, expected {} got {}'.format(task.md5, written_md5))

    return True


def download_task_with_retries(cloud_drive, task, max_attempts=default_max_attempts,
                               retry_wait_secs=default_retry_wait_secs):
    """
    Calls download_task up to max_attempts times, sleeping attempt * retry_wait_secs
    seconds after each failure. The last failure is re-raised.
    """
    for attempt in range(1, max_attempts + 1):
        try:
            return download_task(cloud_drive, task)
        except (RemoteFetchError, LocalWriteError) as err:
            if attempt >= max_attempts:
                raise

            sleep_secs = attempt * retry_wait_secs
            logger.warning('retry [{:02d}] in {}s, err = {}'.format(attempt, sleep_secs, err))
            time.sleep(sleep_secs)


def execute_tasks(cloud_drive, tasks, list_file_path,
                  max_attempts=default_max_attempts,
                  retry_wait_secs=default_retry_wait_secs,
                  checkpoint_every=default_checkpoint_every,
                  skip_failed=False):
    """
    Downloads every task that isn't done, in list order, marking each done as
    it completes. This is a generator - each iteration yields an
    (index, task) tuple once that task has been handled, so the caller can
    stop between files by closing it.

    The list is saved to list_file_path every checkpoint_every completed
    tasks, and always when the generator finishes, fails or is closed.

    :param cloud_drive: object with fetch_content (see GoogleDrive).
    :param tasks: list of Task instances, updated in place.
    :param skip_failed: if False (the default) a task that fails max_attempts
    times stops the run and its error is raised. If True, the task is left
    not done, the run continues and IncompleteDownloadError is raised at the end.
    """
    total = len(tasks)
    completed_since_checkpoint = 0
    failed = []

    logger.info('Total files: {}'.format(total))

    try:
        for i, task in enumerate(tasks):
            if task.done is True:
                logger.info('Skipping: {:05d} / {:05d}, file: {}'.format(i, total, task.local_path))
                yield i, task
                continue

            logger.info('Downloading: {:05d} / {:05d} ({:.2f} %)'.format(i, total, i * 100.0 / total))

            try:
                download_task_with_retries(cloud_drive, task, max_attempts=max_attempts,
                                           retry_wait_secs=retry_wait_secs)
            except (RemoteFetchError, LocalWriteError) as err:
                if skip_failed is False:
                    logger.error('download err = {}'.format(err))
                    raise

                logger.error('giving up on file, err = {}'.format(err))
                failed.append(task)
                yield i, task
                continue

            task.done = True
            completed_since_checkpoint += 1

            if completed_since_checkpoint >= checkpoint_every:
                checkpoint_task_list(tasks, list_file_path)
                completed_since_checkpoint = 0

            yield i, task
    finally:
        checkpoint_task_list(tasks, list_file_path)

    if len(failed) > 0:
        raise IncompleteDownloadError(failed)
