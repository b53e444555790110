import json
import pathlib
import sys
from http import HTTPStatus

import requests
from requests.structures import CaseInsensitiveDict

sys.path.insert(0, str(pathlib.Path(__file__).resolve().parents[1]))

from shopify_admin.client import ShopifyClient
from shopify_admin.session import ShopifySession
from shopify_admin.transport import Transport

FIXTURES = pathlib.Path(__file__).resolve().parent / "fixtures"


def load_fixture(name):
    return json.loads((FIXTURES / name).read_text())


def make_response(status_code, body=b"", headers=None):
    resp = requests.Response()
    resp.status_code = status_code
    if not isinstance(body, (bytes, str)):
        body = json.dumps(body)
    resp._content = body.encode() if isinstance(body, str) else body
    resp._content_consumed = True
    resp.headers = CaseInsensitiveDict(headers or {})
    try:
        resp.reason = HTTPStatus(status_code).phrase
    except ValueError:
        resp.reason = ""
    return resp


class ListTransport(Transport):
    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = []

    def send(self, request, timeout):
        self.calls.append(request)
        resp = self.responses.pop(0)
        if isinstance(resp, Exception):
            raise resp
        return resp


class SleepRecorder:
    def __init__(self):
        self.waits = []

    def __call__(self, seconds):
        self.waits.append(seconds)


def make_client(transport, **options):
    options.setdefault("api_version", "2024-01")
    return ShopifyClient(ShopifySession("fooshop", "abcd", transport=transport, **options))
