"""Tests for the Royal Road adapter."""

from bs4 import BeautifulSoup
import pytest

from conftest import RRL_BROKEN_PAGE, rrl_chapter_html, rrl_fiction_html
from fic2epub.exceptions import MissingTitleError
from fic2epub.royalroad_adapter import RoyalRoadAdapter

FICTION_URL = "https://www.royalroad.com/fiction/12345"


def soup_of(markup):
    return BeautifulSoup(markup, "html.parser")


@pytest.fixture
def adapter(scripted_fetcher):
    return RoyalRoadAdapter(FICTION_URL, scripted_fetcher)


@pytest.mark.parametrize("url,expected", [
    ("https://www.royalroad.com/fiction/12345", "12345"),
    ("https://www.royalroad.com/fiction/12345/test-fic", "12345"),
    ("https://royalroadl.com/fiction/777/", "777"),
])
def test_fiction_id(url, expected, scripted_fetcher):
    adapter = RoyalRoadAdapter(url, scripted_fetcher)
    assert adapter.fiction_id() == expected
    assert adapter.identifier() == f"royalroad-{expected}"


def test_extract_metadata(adapter):
    metadata = adapter.extract_metadata(soup_of(rrl_fiction_html(title="Mother of Learning", author="nobody103")))
    assert metadata == {"title": "Mother of Learning", "author": "nobody103", "identifier": "royalroad-12345"}


def test_missing_title_raises_and_saves_page(adapter, debug_dir):
    with pytest.raises(MissingTitleError):
        adapter.extract_metadata(soup_of(rrl_fiction_html(title="")))
    saved = list(debug_dir.glob("failed_royalroad_missing_title_*.html"))
    assert len(saved) == 1
    assert FICTION_URL in saved[0].read_text(encoding="utf-8")


def test_cover_locator(adapter):
    assert adapter.extract_cover_locator(soup_of(rrl_fiction_html())) == "/covers/test-fic.png"
    assert adapter.extract_cover_locator(soup_of(rrl_fiction_html(cover=None))) is None


def test_enumerate_chapters_in_document_order(adapter):
    chapters = [("prologue", "Prologue"), ("one", "1. Beginnings"), ("two", "2. Middles")]
    result = adapter.enumerate_chapters(soup_of(rrl_fiction_html(chapters=chapters)))
    assert result == [
        ("https://www.royalroad.com/fiction/12345/test-fic/chapter/1/prologue", "Prologue"),
        ("https://www.royalroad.com/fiction/12345/test-fic/chapter/2/one", "1. Beginnings"),
        ("https://www.royalroad.com/fiction/12345/test-fic/chapter/3/two", "2. Middles"),
    ]


def test_enumerate_chapters_keeps_duplicate_titles(adapter):
    chapters = [("a", "Interlude"), ("b", "Interlude")]
    result = adapter.enumerate_chapters(soup_of(rrl_fiction_html(chapters=chapters)))
    assert [title for _, title in result] == ["Interlude", "Interlude"]


def test_enumerate_chapters_empty_list(adapter):
    assert adapter.enumerate_chapters(soup_of(rrl_fiction_html(chapters=()))) == []


def test_chapter_marker(adapter):
    assert adapter.is_chapter_loaded(soup_of(rrl_chapter_html("Ch", "<p>x</p>")))
    assert not adapter.is_chapter_loaded(soup_of(RRL_BROKEN_PAGE))


def test_fetch_and_sanitize_chapter(rrl_fiction):
    adapter = RoyalRoadAdapter(FICTION_URL, rrl_fiction)
    url = "https://www.royalroad.com/fiction/12345/test-fic/chapter/2/two"
    assert adapter.fetch_and_sanitize_chapter(url) == "<p>Body of Chapter Two.</p>"


def test_chapter_refetched_until_marker_present(scripted_fetcher):
    url = "https://www.royalroad.com/fiction/12345/test-fic/chapter/1/one"
    scripted_fetcher.add(url, RRL_BROKEN_PAGE, RRL_BROKEN_PAGE, rrl_chapter_html("One", "<p>finally</p>"))
    adapter = RoyalRoadAdapter(FICTION_URL, scripted_fetcher)
    assert adapter.fetch_and_sanitize_chapter(url) == "<p>finally</p>"
    assert scripted_fetcher.call_count(url) == 3


def test_nested_markup_keeps_word_spacing(adapter):
    page = rrl_fiction_html(title="Test <em>Fic</em>", author='<a href="/profile/1">Jane Doe</a>')
    metadata = adapter.extract_metadata(soup_of(page))
    assert metadata["title"] == "Test Fic"
    assert metadata["author"] == "Jane Doe"


def test_chapter_link_with_nested_markup(adapter):
    page = soup_of("""<table id="chapters"><tr><td>
<a href="/fiction/12345/test-fic/chapter/1/start"><span>Chapter 1:</span> The
   Start</a></td></tr></table>""")
    assert adapter.enumerate_chapters(page) == [
        ("https://www.royalroad.com/fiction/12345/test-fic/chapter/1/start", "Chapter 1: The Start"),
    ]
