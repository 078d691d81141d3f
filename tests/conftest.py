"""
Pytest configuration and fixtures for the fic2epub tests.

No test touches the network: pages are served by ``ScriptedFetcher``, a
``PageFetcher`` whose ``get`` replays canned responses per URL.
"""

import json
import os
import tempfile
from pathlib import Path

# Keep the package's rotating log file out of the working tree
os.environ.setdefault('FIC2EPUB_LOG_DIR', os.path.join(tempfile.gettempdir(), 'fic2epub-test-logs'))

import pytest
import requests

from fic2epub.exceptions import FetchError
from fic2epub.fetcher import PageFetcher, RetryPolicy

PNG_BYTES = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01"


class FakeResponse:
    def __init__(self, body, content_type=None):
        self.body = body
        self.headers = {'Content-Type': content_type} if content_type else {}

    @property
    def text(self):
        if isinstance(self.body, bytes):
            return self.body.decode('utf-8')
        if isinstance(self.body, (dict, list)):
            return json.dumps(self.body)
        return self.body

    @property
    def content(self):
        if isinstance(self.body, bytes):
            return self.body
        return self.text.encode('utf-8')

    def json(self):
        if isinstance(self.body, (dict, list)):
            return self.body
        return json.loads(self.text)


class ScriptedFetcher(PageFetcher):
    """Serves canned responses; each URL maps to a list replayed in order.

    The last entry of a list is repeated once the others are used up. An
    exception instance in the list is raised instead of returned.
    """

    def __init__(self, routes=None, retry_policy=None, cookies=None):
        super().__init__(session=requests.Session(), retry_policy=retry_policy or RetryPolicy())
        self.routes = {url: list(script) for url, script in (routes or {}).items()}
        self.calls = []
        for name, value in (cookies or {}).items():
            self.session.cookies.set(name, value)

    def add(self, url, *responses):
        self.routes[url] = list(responses)

    def get(self, url, **kwargs):
        self.calls.append((url, kwargs.get('params')))
        script = self.routes.get(url)
        if not script:
            raise FetchError(url, "Request failed: 404 Client Error")
        item = script.pop(0) if len(script) > 1 else script[0]
        if isinstance(item, Exception):
            raise item
        if isinstance(item, FakeResponse):
            return item
        return FakeResponse(item)

    def call_count(self, url):
        return sum(1 for called, _ in self.calls if called == url)


def rrl_fiction_html(title="Test Fic", author="Jane Doe", cover="/covers/test-fic.png", chapters=()):
    """A Royal Road fiction page with the given chapter (slug, title) pairs."""
    cover_tag = f'<img class="thumbnail" property="image" src="{cover}"/>' if cover else ''
    rows = "\n".join(
        f'<tr><td><a href="/fiction/12345/test-fic/chapter/{i}/{slug}">{name}</a></td>'
        f'<td><a href="/fiction/12345/test-fic/chapter/{i}/{slug}"><time>{i} days ago</time></a></td></tr>'
        for i, (slug, name) in enumerate(chapters, 1)
    )
    title_tag = f'<h2 property="name">{title}</h2>' if title else '<h2 property="name"></h2>'
    return f"""<html><head><title>{title} | Royal Road</title></head><body>
<div class="fic-header">
{cover_tag}
<div class="fic-title">
{title_tag}
<h4><span property="name">by {author}</span></h4>
</div>
</div>
<table id="chapters"><tbody>
{rows}
</tbody></table>
</body></html>"""


def rrl_chapter_html(title, body):
    return f"""<html><body>
<div class="fic-header"><div class="md-text-left"><h2>{title}</h2></div></div>
<div class="portlet-body"><div class="chapter-content">{body}</div></div>
</body></html>"""


RRL_BROKEN_PAGE = "<html><body><p>Too many requests</p></body></html>"


@pytest.fixture
def temp_test_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def debug_dir(temp_test_dir, monkeypatch):
    """Point saved failure pages at a temporary directory."""
    path = temp_test_dir / "debug"
    monkeypatch.setenv('FIC2EPUB_DEBUG_DIR', str(path))
    return path


@pytest.fixture
def scripted_fetcher():
    return ScriptedFetcher()


@pytest.fixture
def rrl_fiction(scripted_fetcher):
    """The 'Test Fic' Royal Road fiction with three chapters and a cover."""
    chapters = [("one", "Chapter One"), ("two", "Chapter Two"), ("three", "Chapter Three")]
    scripted_fetcher.add("https://www.royalroad.com/fiction/12345",
                         rrl_fiction_html(chapters=chapters))
    scripted_fetcher.add("https://www.royalroad.com/covers/test-fic.png",
                         FakeResponse(PNG_BYTES, 'image/png'))
    for i, (slug, name) in enumerate(chapters, 1):
        scripted_fetcher.add(
            f"https://www.royalroad.com/fiction/12345/test-fic/chapter/{i}/{slug}",
            rrl_chapter_html(name, f'<p>Body of {name}.</p><div class="nav-buttons"><a href="#">Next</a></div>'),
        )
    return scripted_fetcher


# Pytest configuration
def pytest_configure(config):
    """Configure pytest."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")


def pytest_collection_modifyitems(config, items):
    """Add markers based on test names."""
    for item in items:
        if "scenario" in item.name or "integration" in item.name:
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)
