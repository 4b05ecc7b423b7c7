import json

import pytest
import requests

from cloud_queues.opencloud_driver import OpenCloudDriver
from cloud_queues.service import Service

ENDPOINT = 'https://ord.queues.api.rackspacecloud.com/v1/123456'

REASONS = {
    200: 'OK',
    201: 'Created',
    204: 'No Content',
    404: 'Not Found',
    500: 'Internal Server Error',
}


def make_response(status, body=None):
    response = requests.Response()
    response.status_code = status
    response.reason = REASONS.get(status, '')
    if body is None:
        response._content = b''
    else:
        response._content = json.dumps(body).encode('utf-8')
        response.headers['Content-Type'] = 'application/json'
    return response


class FakeSession:
    """Stands in for requests.Session: replays queued responses and records requests."""

    def __init__(self, default=None):
        self.responses = []
        self.requests = []
        self.default = default

    def add(self, *responses):
        for response in responses:
            if isinstance(response, int):
                response = make_response(response)
            self.responses.append(response)

    def request(self, method, url, params=None, data=None, json=None, headers=None, timeout=None):
        self.requests.append({
            'method': method,
            'url': url,
            'params': params,
            'data': data,
            'json': json,
            'headers': headers or {},
        })
        if self.responses:
            response = self.responses.pop(0)
        elif self.default is not None:
            response = make_response(self.default)
        else:
            raise AssertionError(f"Unexpected request: {method} {url}")
        response.url = url
        return response

    def post(self, url, **kwargs):
        return self.request('POST', url, **kwargs)

    @property
    def last(self):
        return self.requests[-1]

    def methods(self):
        return [(r['method'], r['url']) for r in self.requests]


def claimed(queue, *bodies, claim_id='51db7067821e727dc24df754'):
    """Body of a claim response for the given message bodies."""
    return [
        {
            'body': body,
            'age': 239,
            'ttl': 300,
            'href': f"/v1/queues/{queue}/messages/51db6f78c508f17ddc9243{i:02d}?claim_id={claim_id}",
        }
        for i, body in enumerate(bodies)
    ]


def listed(queue, bodies, next_marker=None):
    """Body of a message listing page."""
    page = {
        'messages': [
            {'body': body, 'age': 10, 'ttl': 300, 'href': f"/v1/queues/{queue}/messages/m{i}"}
            for i, body in enumerate(bodies)
        ],
        'links': [],
    }
    if next_marker:
        page['links'].append({
            'rel': 'next',
            'href': f"/v1/queues/{queue}/messages?marker={next_marker}&echo=true&limit=10",
        })
    return page


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def service(session):
    return Service(
        url=ENDPOINT,
        token='my-token',
        client_id='my-client',
        name='cloudQueues',
        region='ORD',
        url_type='publicURL',
        session=session,
    )


@pytest.fixture
def driver(service):
    return OpenCloudDriver(service)
