import json
import os
import pickle


config_file_name = 'config-download.json'
env_prefix = 'GD_'

_download_defaults = {
    'src': '',
    'dst': '',
    'list_file': '',
    'cred_file': 'credentials.json',
    'token_file': 'token.data',
    'page_size': 100,
    'skip_failed': False,
}

_true_strings = ['1', 'true', 'yes', 'on']


def save_config(config_object, config_file_path):
    # Just using pickle

    with open(config_file_path, 'wb') as f:
        pickle.dump(config_object, f)


def get_config(config_file_path):

    with open(config_file_path, 'rb') as f:
        try:
            return pickle.load(f)
        except (pickle.UnpicklingError, EOFError) as err:
            raise ValueError('Unable to read config file {}: {}'.format(config_file_path, err))


def _coerce(key, value):
    default = _download_defaults[key]

    if isinstance(default, bool):
        if isinstance(value, str):
            return value.strip().lower() in _true_strings
        return bool(value)

    if isinstance(default, int):
        try:
            value = int(value)
        except (TypeError, ValueError):
            raise ValueError('Config value {} must be an integer, got {!r}'.format(key, value))
        if value < 1:
            raise ValueError('Config value {} must be positive, got {}'.format(key, value))
        return value

    return str(value)


def default_list_file_path(dst):
    return os.path.normpath(dst) + '.download-list.json'


def load_download_config(cli_values, config_file_path=None, environ=None):
    """
    Builds the download settings. Later sources win:
        1. built in defaults
        2. the JSON config file (config-download.json in the current directory
           if config_file_path isn't given - a missing default file is fine)
        3. GD_<KEY> environment variables, e.g. GD_SRC, GD_LIST_FILE
        4. cli_values entries that aren't None

    :param cli_values: dict of values from the command line.
    :return: a {'src': , 'dst': , 'list_file': , 'cred_file': , 'token_file': ,
    'page_size': , 'skip_failed': ,} dict.
    """
    if environ is None:
        environ = os.environ

    result = dict(_download_defaults)

    if config_file_path is None:
        config_file_path = os.path.join(os.getcwd(), config_file_name)
        required = False
    else:
        required = True

    if required or os.path.exists(config_file_path):
        with open(config_file_path, 'r') as f:
            file_values = json.load(f)

        if not isinstance(file_values, dict):
            raise ValueError('Config file {} must hold a JSON object'.format(config_file_path))

        for k, v in file_values.items():
            if k in result and v is not None:
                result[k] = _coerce(k, v)

    for k in _download_defaults:
        env_key = env_prefix + k.upper()
        if env_key in environ and environ[env_key] != '':
            result[k] = _coerce(k, environ[env_key])

    for k, v in cli_values.items():
        if k in result and v is not None:
            result[k] = _coerce(k, v)

    if result['src'] == '':
        raise ValueError('No source file/folder id given')
    if result['dst'] == '':
        raise ValueError('No destination path given')

    if result['list_file'] == '':
        result['list_file'] = default_list_file_path(result['dst'])

    return result
