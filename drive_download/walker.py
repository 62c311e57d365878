import collections
import logging
import os

import requests

from drive_download.errors import RemoteListError
from drive_download.task_list import Task


logger = logging.getLogger(__name__)

default_page_size = 100

_placeholder_name = '_'


def local_name(remote_name):
    """
    A remote name as one local path component. Drive names may contain '/'
    or be '..', the result always stays inside the parent folder.
    """
    separators = [s for s in (os.sep, os.altsep) if s]

    name = remote_name.lstrip(''.join(separators))
    for sep in separators:
        name = name.replace(sep, _placeholder_name)

    if name in ('', os.curdir, os.pardir):
        return _placeholder_name

    return name


def _list_folder(cloud_drive, folder_id, page_size):
    """
    Generator over every child entry of a folder, fetching pages until the
    drive returns no next page token.
    """
    page_token = None
    page_index = 0

    while True:
        logger.debug('[{:03d}] listing folder: {}'.format(page_index, folder_id))
        entries, page_token = cloud_drive.list_children(folder_id, page_token=page_token,
                                                        page_size=page_size)

        if page_index == 0 and len(entries) == 0 and not page_token:
            logger.info('No files found in folder: {}'.format(folder_id))

        for entry in entries:
            yield entry

        if not page_token:
            logger.debug('[{:03d}] finished'.format(page_index))
            break

        page_index += 1


def walk(cloud_drive, root_id, root_local_path, page_size=default_page_size):
    """
    Breadth first walk of the remote tree under root_id.

    Children of a folder map to os.path.join(<folder local path>, <child name>),
    the root folder itself maps to root_local_path. If root_id is a file the
    single task's path is root_local_path, or the file's name inside it when
    root_local_path is an existing directory.

    :param cloud_drive: object with get_metadata and list_children (see GoogleDrive).
    :param root_id: remote file or folder id.
    :param root_local_path: local destination for root_id.
    :param page_size: number of entries requested per listing page.
    :return: list of Task instances, one per remote file, none done.
    Raises RemoteListError if any metadata or listing request fails.
    """
    tasks = []
    queue = collections.deque([(root_id, root_local_path)])
    folder_count = 0

    while len(queue) > 0:
        item_id, item_local_path = queue.popleft()

        try:
            item = cloud_drive.get_metadata(item_id)
        except (requests.RequestException, OSError, ValueError, KeyError) as err:
            raise RemoteListError(item_id, err) from err

        if item['is_folder'] is False:
            # Only the root can be a file here
            if os.path.isdir(item_local_path):
                item_local_path = os.path.join(item_local_path, local_name(item['name']))
            tasks.append(Task(item['id'], item_local_path, md5=item['md5']))
            continue

        logger.info('>> list folder: {} [{}]'.format(item['id'], item['name']))
        folder_count += 1

        try:
            for child in _list_folder(cloud_drive, item['id'], page_size):
                child_local_path = os.path.join(item_local_path, local_name(child['name']))

                if child['is_folder'] is True:
                    queue.append((child['id'], child_local_path))
                else:
                    tasks.append(Task(child['id'], child_local_path, md5=child['md5']))
        except (requests.RequestException, OSError, ValueError, KeyError) as err:
            raise RemoteListError(item['id'], err) from err

    logger.info('Found {} files in {} folders'.format(len(tasks), folder_count))

    return tasks
