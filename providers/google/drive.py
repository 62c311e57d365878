import datetime
import logging
import os
import time

import requests

import providers.google.auth as auth
from common import http_server_utils
import common.config_utils as config_utils
from providers.google.server_metadata import GoogleServerData
from providers.google.utils import process_google_response_for_errors


logger = logging.getLogger(__name__)

readonly_scope = 'https://www.googleapis.com/auth/drive.readonly'

_entry_fields = 'id, name, mimeType, md5Checksum'


def is_folder_mime_type(mime_type):
    return mime_type is not None and mime_type.endswith('folder')


def to_remote_entry(file_resource):
    """
    :param file_resource: a Drive v3 file resource dict.
    :return: a {'id': , 'name': , 'is_folder': , 'md5': ,} dict.
    """
    is_folder = is_folder_mime_type(file_resource.get('mimeType'))
    return {
        'id': file_resource['id'],
        'name': file_resource.get('name', ''),
        'is_folder': is_folder,
        'md5': '' if is_folder else file_resource.get('md5Checksum', ''),
    }


class GoogleDrive(object):
    """
    Read only access to a Google drive - folder metadata, paged folder
    listings and file content.

    Auth state is pickled to token_file_path and refreshed when close to
    expiry. Pass auth_config to supply the auth state directly instead of
    loading it.
    """

    def __init__(self, token_file_path, auth_config=None):
        self._token_file_path = token_file_path
        self._api_drive_endpoint_prefix = http_server_utils.join_url_components(
            [GoogleServerData.apis_domain, 'drive/v3'])

        if auth_config is not None:
            self._config = {'auth': auth_config}
        else:
            self._load_config()

    def _save_config(self):
        if self._token_file_path:
            config_utils.save_config(self._config, self._token_file_path)

    def _load_config(self):
        try:
            self._config = config_utils.get_config(self._token_file_path)
        except (OSError, EOFError, ValueError) as err:
            logger.warning('Failed to open google drive token file {} ({}), '
                           'user will need to authenticate before accessing the drive.'.format(
                               self._token_file_path, err))
            self._config = {}

    def _get_auth_header(self):
        return 'Bearer ' + self._config['auth']['access_token']

    def _refresh_token_required(self):
        if 'expires_at' not in self._config['auth']:
            return False

        # refresh if we only have 5 minutes left
        return (self._config['auth']['expires_at'] <
                datetime.datetime.now(tz=datetime.timezone.utc) + datetime.timedelta(minutes=5))

    def _do_request(self, method, url, headers=None, params=None, error_500_retries=0,
                    stream=False):
        """
        Does a standard requests call with the passed params but also:
            1. Checks to see if a token refresh is required
            2. Sets the authorization header
            3. Retries with a doubling sleep on Google's 500 errors

        :param method: one of 'get', 'post'
        :param error_500_retries: set to the number of retries when encountering
        Google's pesky 500 Server Error: Internal Server Error error.
        :return: whatever is returned from a requests call
        """
        if 'auth' not in self._config:
            raise PermissionError('No google drive credentials - run the authorization first.')

        if self._refresh_token_required():
            self.refresh_token()

        headers = dict(headers or {})
        retries = 0
        current_sleep_time = 1

        while True:
            headers['Authorization'] = self._get_auth_header()
            r = requests.request(method, url, headers=headers, params=params, stream=stream)
            if r.status_code < 500 or retries >= error_500_retries:
                break

            logger.warning('Received an HTTP {} error from the Google server...'.format(r.status_code))
            r.close()
            time.sleep(current_sleep_time)
            retries += 1
            current_sleep_time *= 2

        return r

    @staticmethod
    def required_config_is_present(token_file_path):
        return os.path.exists(token_file_path)

    def run_token_acquisition(self):
        self._config['auth'] = auth.get_access_tokens(readonly_scope,
                                                      GoogleServerData.client_id,
                                                      GoogleServerData.client_secret)
        self._config['auth']['expires_at'] = \
            datetime.datetime.now(tz=datetime.timezone.utc) + datetime.timedelta(
                seconds=int(self._config['auth']['expires_in']))

        self._save_config()

    def refresh_token(self):
        logger.info('Refreshing google access token...')

        res_dict = auth.refresh_token(
            GoogleServerData.client_id,
            GoogleServerData.client_secret,
            self._config['auth']['refresh_token'])

        self._config['auth'].update(res_dict)
        self._config['auth']['expires_at'] =\
            datetime.datetime.now(tz=datetime.timezone.utc) + datetime.timedelta(
                seconds=int(res_dict['expires_in']))

        self._save_config()

    def revoke_token(self):
        auth.revoke_token(self._config['auth']['access_token'])
        self._config['auth'] = {}
        self._save_config()

    def get_metadata(self, item_id):
        """
        :param item_id: a file or folder id.
        :return: a remote entry dict (see to_remote_entry).
        """
        r = self._do_request('get',
                             http_server_utils.join_url_components(
                                 [self._api_drive_endpoint_prefix, 'files', item_id]),
                             params={'fields': _entry_fields, 'supportsAllDrives': 'true'},
                             error_500_retries=5)
        process_google_response_for_errors(r, logger)
        return to_remote_entry(r.json())

    def list_children(self, container_id, page_token=None, page_size=100):
        """
        Gets one page of a folder's (non trashed) children.

        :param container_id: the folder id.
        :param page_token: the token returned with the previous page, None for the first.
        :param page_size:
        :return: a (list of remote entry dicts, next_page_token) tuple. next_page_token
        is '' when there are no more pages.
        """
        params = {
            'q': '\'{}\' in parents and trashed = false'.format(container_id),
            'fields': 'nextPageToken, files({})'.format(_entry_fields),
            'pageSize': page_size,
            'spaces': 'drive',
            'supportsAllDrives': 'true',
            'includeItemsFromAllDrives': 'true',
        }
        if page_token:
            params['pageToken'] = page_token

        r = self._do_request('get', http_server_utils.join_url_components(
            [self._api_drive_endpoint_prefix, 'files']),
                             params=params,
                             error_500_retries=5)
        process_google_response_for_errors(r, logger)

        response_dict = r.json()
        entries = [to_remote_entry(f) for f in response_dict.get('files', [])]

        return entries, response_dict.get('nextPageToken', '')

    def fetch_content(self, file_id, chunk_size=1024 * 1024):
        """
        Streams a file's data. This is a generator, the request is only
        made when iteration starts.

        :param file_id:
        :param chunk_size:
        :return: generator of bytes chunks.
        """
        with self._do_request('get',
                              http_server_utils.join_url_components(
                                  [self._api_drive_endpoint_prefix, 'files', file_id]),
                              params={'alt': 'media', 'supportsAllDrives': 'true'},
                              stream=True) as r:
            r.raise_for_status()

            for chunk in r.iter_content(chunk_size=chunk_size):
                if chunk:
                    yield chunk
