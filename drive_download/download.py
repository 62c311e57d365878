import contextlib
import logging

from drive_download import transfer, walker
from drive_download.errors import StoreLoadError
from drive_download.task_list import checkpoint_task_list, load_task_list


logger = logging.getLogger(__name__)


def load_or_build_task_list(cloud_drive, root_id, local_dest_path, list_file_path,
                            page_size=walker.default_page_size):
    """
    :return: the tasks saved in list_file_path, or, if that can't be loaded,
    a fresh list from walking the remote tree (saved straight away).
    """
    try:
        tasks = load_task_list(list_file_path)
        logger.info('Loaded {} tasks from {}'.format(len(tasks), list_file_path))
        return tasks
    except StoreLoadError as err:
        logger.info('Load list file err = {}, listing remote files...'.format(err))

    tasks = walker.walk(cloud_drive, root_id, local_dest_path, page_size=page_size)
    checkpoint_task_list(tasks, list_file_path)

    return tasks


def download_store(cloud_drive, root_id, local_dest_path, list_file_path,
                   page_size=walker.default_page_size,
                   max_attempts=transfer.default_max_attempts,
                   retry_wait_secs=transfer.default_retry_wait_secs,
                   checkpoint_every=transfer.default_checkpoint_every,
                   skip_failed=False):
    """
    Mirrors the remote file or folder root_id to local_dest_path.

    This is a generator function, yielding an (index, task, total) tuple as
    each task is handled. Re-running with the same list_file_path resumes
    where the last run stopped.

    :param cloud_drive: an authenticated drive client (see GoogleDrive).
    :param root_id: remote file or folder id.
    :param local_dest_path: local directory (or file path when root_id is a file).
    :param list_file_path: where the task list is kept between runs.
    """
    tasks = load_or_build_task_list(cloud_drive, root_id, local_dest_path, list_file_path,
                                    page_size=page_size)

    # closing() makes sure the final checkpoint is written if our caller stops early
    with contextlib.closing(transfer.execute_tasks(cloud_drive, tasks, list_file_path,
                                                   max_attempts=max_attempts,
                                                   retry_wait_secs=retry_wait_secs,
                                                   checkpoint_every=checkpoint_every,
                                                   skip_failed=skip_failed)) as progress:
        for i, task in progress:
            yield i, task, len(tasks)
