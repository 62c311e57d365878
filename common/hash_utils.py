import hashlib
import logging


logger = logging.getLogger(__name__)

empty_file_md5_hex_str = 'd41d8cd98f00b204e9800998ecf8427e'

_read_chunk_size = 64 * 1024


def _calc_file_hash(hasher_name, file_path, return_hex):
    hasher = hashlib.new(hasher_name)
    with open(file_path, 'rb') as f:
        while True:
            bytes = f.read(_read_chunk_size)
            if len(bytes) > 0:
                hasher.update(bytes)
            else:
                break

    if return_hex is True:
        return hasher.hexdigest()

    return hasher.digest()


def calc_file_md5_hex_str(file_path):
    return _calc_file_hash('md5', file_path, True)


def file_fingerprint(file_path):
    """
    The md5 hex string of a local file, the same digest Google Drive reports
    as md5Checksum.

    :param file_path:
    :return: the hex string, or '' if the file doesn't exist or can't be read.
    """
    try:
        return calc_file_md5_hex_str(file_path)
    except OSError as err:
        logger.debug('Unable to fingerprint {}: {}'.format(file_path, err))
        return ''
