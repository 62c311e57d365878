import socket
from contextlib import closing
from http.server import BaseHTTPRequestHandler
from urllib import parse


def find_free_port():
    with closing(socket.socket(socket.AF_INET, socket.SOCK_STREAM)) as s:
        s.bind(('', 0))
        s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        return s.getsockname()[1]


class MyHttpServerBaseHandler(BaseHTTPRequestHandler):
    def send_success_response(self, response_content_string='',
                              extra_headers=None, code=200):
        if isinstance(response_content_string, str):
            response_content = response_content_string.encode()
        else:
            response_content = response_content_string

        self.send_response(code)
        self.send_header("Content-Length", str(len(response_content)))

        for k, v in (extra_headers or {}).items():
            self.send_header(k, v)

        self.end_headers()
        if len(response_content) > 0:
            self.wfile.write(response_content)


def query_string_to_dict_without_lists(query_string):
    return dict([(key, val) if len(val) > 1 else [key, val[0]]
                 for key, val in parse.parse_qs(query_string).items()])


def join_url_components(components):
    """
    All I want is a url equivalent of join...
    :param components: string or list of strings
    :return: string
    """
    if isinstance(components, list) is False:
        return components.strip('/')

    result = components[0].strip('/')
    for component in components[1:]:
        result += '/' + component.strip('/')

    return result
