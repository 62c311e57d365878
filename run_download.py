"""
A script to download a google drive file or folder tree to a local directory.

The list of files to download is saved next to the destination (or at
--list_file) so an interrupted download can be resumed by running the same
command again.
"""

import argparse
import logging
import sys

import drive_download.download as download
from common import config_utils
from common.basic_utils import check_for_user_quit
from drive_download.errors import DriveDownloadError
from providers.google.drive import GoogleDrive
from providers.google.server_metadata import GoogleServerData


def main(args):

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format='%(asctime)s %(levelname)s %(name)s: %(message)s')

    try:
        config = config_utils.load_download_config(
            {'src': args.src,
             'dst': args.dst,
             'list_file': args.list_file,
             'cred_file': args.cred_file,
             'token_file': args.token_file,
             'page_size': args.page_size,
             'skip_failed': True if args.skip_failed else None},
            config_file_path=args.config)
    except (OSError, ValueError) as err:
        print('Unable to load config: {}'.format(err))
        return 2

    GoogleServerData.set_to_google_server()

    # Check that any initial authentication has been done:
    if GoogleDrive.required_config_is_present(config['token_file']) is False:
        print('It doesn\'t appear you have completed the required authentication step, '
              'run run_authorization.py first (token file {} is missing).'.format(config['token_file']))
        return 2

    try:
        GoogleServerData.load_client_credentials(config['cred_file'])
    except (OSError, ValueError) as err:
        print('Unable to read client credentials file {}: {}'.format(config['cred_file'], err))
        return 2

    cloud_drive = GoogleDrive(config['token_file'])

    print('==============================================================')
    print("Preparing to download - press \'q\' then enter to stop the download.")
    print('')

    done_count = 0
    total = 0
    result = 0

    try:
        for i, task, total in download.download_store(cloud_drive,
                                                      config['src'],
                                                      config['dst'],
                                                      config['list_file'],
                                                      page_size=config['page_size'],
                                                      skip_failed=config['skip_failed']):
            if task.done:
                done_count += 1

            if check_for_user_quit() is True:
                break
    except DriveDownloadError as err:
        print('Download failed: {}'.format(err))
        if getattr(err, 'cause', None) is not None:
            print('Cause: {}'.format(err.cause))
        print('Run the same command again to resume from {}'.format(config['list_file']))
        result = 1

    print('==============================================================')
    print('Downloaded {} of {} files'.format(done_count, total))
    print('')

    return result


if __name__ == '__main__':

    parser = argparse.ArgumentParser(description=
                                     'Downloads the specified file or folder on google drive to a '
                                     'local location, resuming any earlier interrupted download.')

    parser.add_argument('src', type=str, nargs='?', default=None,
                        help='Source file or folder id in google drive (or GD_SRC / config file).')
    parser.add_argument('dst', type=str, nargs='?', default=None,
                        help='Destination directory. For a single file src this is the file path, '
                             'unless it is an existing directory (or GD_DST / config file).')
    parser.add_argument('--list_file', type=str, default=None,
                        help='The list of files to be downloaded, created automatically. '
                             'Defaults to <dst>.download-list.json.')
    parser.add_argument('--cred_file', type=str, default=None,
                        help='credentials.json file for the Google Drive API from the gcloud console '
                             'https://console.developers.google.com/apis/library/drive.googleapis.com')
    parser.add_argument('--token_file', type=str, default=None,
                        help='The file that stores access and refresh tokens, created by run_authorization.py.')
    parser.add_argument('--page_size', type=int, default=None,
                        help='Number of entries to request per folder listing page.')
    parser.add_argument('--skip_failed', action='store_true',
                        help='Carry on with the remaining files when a file fails to download.')
    parser.add_argument('--config', type=str, default=None,
                        help='JSON config file. Defaults to {} in the current directory, '
                             'if present.'.format(config_utils.config_file_name))
    parser.add_argument('--verbose', action='store_true', help='Debug logging.')

    sys.exit(main(parser.parse_args()))
