import json


class GoogleServerData(object):
    """
    Holds fields to specify how to access the drive server.
    One of the set_to_* class methods MUST be called before accessing
    google services, and load_client_credentials before any auth operation.
    """

    client_id = ''
    client_secret = ''

    user_form_domain = 'https://accounts.google.com'
    access_token_domain = 'https://oauth2.googleapis.com'
    apis_domain = 'https://www.googleapis.com'

    @classmethod
    def set_to_google_server(cls):
        cls.user_form_domain = 'https://accounts.google.com'
        cls.access_token_domain = 'https://oauth2.googleapis.com'
        cls.apis_domain = 'https://www.googleapis.com'

    @classmethod
    def set_to_own_server(cls, domain):
        cls.user_form_domain = domain
        cls.access_token_domain = domain
        cls.apis_domain = domain

    @classmethod
    def load_client_credentials(cls, cred_file_path):
        """
        Reads the OAuth client id and secret from a credentials.json file
        downloaded from the Google cloud console
        (https://console.developers.google.com/apis/library/drive.googleapis.com).

        Raises ValueError if the file doesn't hold client credentials.
        """
        with open(cred_file_path, 'r') as f:
            cred_dict = json.load(f)

        for section in ['installed', 'web']:
            if section in cred_dict:
                client = cred_dict[section]
                break
        else:
            client = cred_dict

        if 'client_id' not in client or 'client_secret' not in client:
            raise ValueError('No client_id/client_secret in credentials file {}'.format(cred_file_path))

        cls.client_id = client['client_id']
        cls.client_secret = client['client_secret']
