"""
The persisted list of download tasks.

The list file is a JSON array of {"id": , "path": , "md5": , "done": ,}
objects, one per remote file, in download order. It is the only state
carried between runs, so it is kept human readable - entries can be pruned
or have "done" reset by hand.
"""

import json
import logging
import os

from drive_download.errors import (StoreSaveError, TaskListCorruptError,
                                   TaskListNotFoundError)


logger = logging.getLogger(__name__)


class Task(object):
    """
    One remote file to download.

    done is only set once a file whose md5 matches (when md5 is known) has
    been written to local_path.
    """

    __slots__ = ('remote_id', 'local_path', 'md5', 'done')

    def __init__(self, remote_id, local_path, md5='', done=False):
        self.remote_id = remote_id
        self.local_path = local_path
        self.md5 = md5
        self.done = done

    def to_dict(self):
        return {'id': self.remote_id,
                'path': self.local_path,
                'md5': self.md5,
                'done': self.done}

    @classmethod
    def from_dict(cls, d):
        if not isinstance(d, dict):
            raise ValueError('Task entry must be an object, got {!r}'.format(d))

        try:
            remote_id = d['id']
            local_path = d['path']
        except KeyError as err:
            raise ValueError('Task entry {!r} is missing key {}'.format(d, err))

        md5 = d.get('md5', '')
        done = d.get('done', False)

        if not isinstance(remote_id, str) or remote_id == '':
            raise ValueError('Task entry {!r} has an invalid id'.format(d))
        if not isinstance(local_path, str) or local_path == '':
            raise ValueError('Task entry {!r} has an invalid path'.format(d))
        if not isinstance(md5, str):
            raise ValueError('Task entry {!r} has an invalid md5'.format(d))
        if not isinstance(done, bool):
            raise ValueError('Task entry {!r} has an invalid done flag'.format(d))

        return cls(remote_id, local_path, md5=md5, done=done)

    def __eq__(self, other):
        if not isinstance(other, Task):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self):
        return 'Task(remote_id={!r}, local_path={!r}, md5={!r}, done={!r})'.format(
            self.remote_id, self.local_path, self.md5, self.done)


def load_task_list(list_file_path):
    """
    :param list_file_path:
    :return: list of Task instances, in file order.
    Raises TaskListNotFoundError if there is no file and TaskListCorruptError
    if it can't be parsed.
    """
    if not list_file_path:
        raise TaskListNotFoundError('No task list file specified')

    try:
        with open(list_file_path, 'r', encoding='utf-8') as f:
            raw = json.load(f)
    except FileNotFoundError:
        raise TaskListNotFoundError('Task list file {} doesn\'t exist'.format(list_file_path))
    except (OSError, ValueError) as err:
        raise TaskListCorruptError('Unable to read task list file {}: {}'.format(list_file_path, err))

    if not isinstance(raw, list):
        raise TaskListCorruptError('Task list file {} doesn\'t contain a list'.format(list_file_path))

    try:
        return [Task.from_dict(d) for d in raw]
    except ValueError as err:
        raise TaskListCorruptError('Task list file {}: {}'.format(list_file_path, err))


def save_task_list(tasks, list_file_path):
    """
    Writes the whole list to a temporary file next to list_file_path then
    moves it into place, so a crash mid-write leaves the previous list intact.
    Raises StoreSaveError.
    """
    if not list_file_path:
        raise StoreSaveError('No task list file specified')

    tmp_path = list_file_path + '.tmp'

    try:
        parent_dir = os.path.dirname(os.path.abspath(list_file_path))
        os.makedirs(parent_dir, exist_ok=True)

        with open(tmp_path, 'w', encoding='utf-8') as f:
            json.dump([t.to_dict() for t in tasks], f, indent=2, ensure_ascii=False)
            f.write('\n')
            f.flush()
            os.fsync(f.fileno())

        os.replace(tmp_path, list_file_path)
    except OSError as err:
        try:
            if os.path.isfile(tmp_path):
                os.remove(tmp_path)
        except OSError as remove_err:
            logger.debug('Unable to remove {}: {}'.format(tmp_path, remove_err))
        raise StoreSaveError('Unable to save task list file {}: {}'.format(list_file_path, err))


def checkpoint_task_list(tasks, list_file_path):
    """
    Best effort save - a failure only means redundant work on the next run.

    :return: True if the list was saved.
    """
    try:
        save_task_list(tasks, list_file_path)
    except StoreSaveError as err:
        logger.warning('Checkpoint failed: {}'.format(err))
        return False

    logger.debug('Saved task list to {}'.format(list_file_path))
    return True
