import logging
import select
import sys


logger = logging.getLogger(__name__)


def check_for_user_quit(stream=None):
    """
    Non-blocking check for a 'q' typed (then enter) on stdin. Drains whatever
    input is waiting.

    :return: True if the user asked to quit.
    """
    if stream is None:
        stream = sys.stdin

    user_quit = False

    while True:
        try:
            rlist, _, _ = select.select([stream], [], [], 0)
        except (OSError, ValueError):
            # Not selectable (closed, or not a socket/pipe on windows)
            break

        if not rlist:
            break

        char = stream.read(1)
        if char == '':
            break
        if char.lower() == 'q':
            user_quit = True

    if user_quit:
        logger.info('User requested quit...')

    return user_quit
