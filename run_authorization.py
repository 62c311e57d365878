"""
A script to run the google drive authorization procedure, storing the access
and refresh tokens used by run_download.py.
"""

import argparse
import logging

from providers.google.drive import GoogleDrive
from providers.google.server_metadata import GoogleServerData


def main(args):

    logging.basicConfig(level=logging.INFO)

    # Set server addresses
    GoogleServerData.set_to_google_server()
    GoogleServerData.load_client_credentials(args.cred_file)

    drive = GoogleDrive(args.token_file)

    if args.op == 'init':
        if GoogleDrive.required_config_is_present(args.token_file):
            print('Token file already exists - this will redo authorization.')

        drive.run_token_acquisition()
    elif args.op == 'refresh' or args.op == 'revoke':
        if GoogleDrive.required_config_is_present(args.token_file) is False:
            print('Token file doesn\'t exist. Run init first.')
        else:
            if args.op == 'refresh':
                drive.refresh_token()
            else:
                drive.revoke_token()


if __name__ == '__main__':
    parser = argparse.ArgumentParser(description=
                                     'Run the authorization process so that the download script '
                                     'has read only access to your google drive.')

    parser.add_argument('--op', type=str, choices=['init', 'refresh', 'revoke'],
                        default='init',
                        help='The operation to perform. Defaults to initial authorization.')
    parser.add_argument('--cred_file', type=str, default='credentials.json',
                        help='credentials.json file for the Google Drive API from the gcloud console.')
    parser.add_argument('--token_file', type=str, default='token.data',
                        help='The file that will store the access and refresh tokens.')

    main(parser.parse_args())
