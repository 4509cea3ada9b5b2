import threading
import time

import pytest
import requests


class FakeResponse:
    def __init__(self, status_code=200, content=b"", content_type="text/html", url=None):
        self.status_code = status_code
        self.content = content
        self.headers = {"Content-Type": content_type} if content_type else {}
        self.url = url

    @property
    def text(self):
        return self.content.decode("utf-8")


class FakeSession:
    """Stands in for requests.Session; routes URLs to canned responses."""

    def __init__(self, routes=None, delay=0.0):
        self.routes = dict(routes or {})
        self.delay = delay
        self.calls = []
        self.in_flight = 0
        self.max_in_flight = 0
        self._lock = threading.Lock()

    def get(self, url, timeout=None, **kwargs):
        with self._lock:
            self.calls.append(url)
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                time.sleep(self.delay)
            route = self.routes.get(url)
            if route is None:
                return FakeResponse(404, b"", url=url)
            if isinstance(route, Exception):
                raise route
            if route.url is None:
                route.url = url
            return route
        finally:
            with self._lock:
                self.in_flight -= 1


def html_page(url, body, title="Test Page"):
    return FakeResponse(
        200,
        f"<html><head><title>{title}</title></head><body>{body}</body></html>".encode("utf-8"),
        "text/html; charset=utf-8",
        url=url,
    )


def image(content_type="image/png", data=b"\x89PNG\r\n\x1a\nfake"):
    return FakeResponse(200, data, content_type)


@pytest.fixture
def make_session():
    return FakeSession


@pytest.fixture
def page_response():
    return html_page


@pytest.fixture
def image_response():
    return image


@pytest.fixture
def connection_error():
    return requests.ConnectionError("connection refused")
