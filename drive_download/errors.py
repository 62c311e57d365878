class DriveDownloadError(Exception):
    """Base class for errors raised while mirroring a drive tree."""


class RemoteListError(DriveDownloadError, ConnectionError):
    """Reading a folder's metadata or listing its children failed."""

    def __init__(self, container_id, cause):
        super().__init__('Unable to list folder {}: {}'.format(container_id, cause))
        self.container_id = container_id
        self.cause = cause


class _TaskError(DriveDownloadError):

    def __init__(self, message, remote_id, local_path, cause=None):
        super().__init__('{} (id: {}, path: {}): {}'.format(message, remote_id, local_path, cause))
        self.remote_id = remote_id
        self.local_path = local_path
        self.cause = cause


class RemoteFetchError(_TaskError, ConnectionError):
    def __init__(self, remote_id, local_path, cause=None):
        super().__init__('Unable to download file', remote_id, local_path, cause)


class LocalWriteError(_TaskError, OSError):
    def __init__(self, remote_id, local_path, cause=None):
        super().__init__('Unable to save file', remote_id, local_path, cause)


class StoreLoadError(DriveDownloadError):
    """The task list file couldn't be loaded. Callers rebuild the list."""


class TaskListNotFoundError(StoreLoadError, FileNotFoundError):
    pass


class TaskListCorruptError(StoreLoadError, ValueError):
    pass


class StoreSaveError(DriveDownloadError, OSError):
    pass


class IncompleteDownloadError(DriveDownloadError):
    """Raised at the end of a skip-failed run if any task is still not done."""

    def __init__(self, failed_tasks):
        super().__init__('{} file(s) failed to download: {}'.format(
            len(failed_tasks), ', '.join(t.local_path for t in failed_tasks)))
        self.failed_tasks = failed_tasks
