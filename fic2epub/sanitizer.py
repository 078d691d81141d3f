"""
Chapter sanitization rules.

Each adapter declares an ordered tuple of rules. Tree rules edit the parsed
fragment, text rules run on the serialized markup afterwards. The rules only
remove things, so running the same rule set twice gives the same markup.
"""
import re
from dataclasses import dataclass, field

from bs4 import BeautifulSoup

from .logging import logger


@dataclass(frozen=True)
class RemoveElements:
    """Delete every element matching a CSS selector, children included."""
    selector: str
    on_tree = True

    def apply(self, soup):
        removed = 0
        for tag in soup.select(self.selector):
            # A match nested inside an earlier match is already gone
            if tag.decomposed:
                continue
            tag.decompose()
            removed += 1
        return removed


@dataclass(frozen=True)
class RemoveStyleBlocks(RemoveElements):
    """Delete embedded ``<style>`` blocks; styling lives in the book stylesheet."""
    selector: str = 'style'


@dataclass(frozen=True)
class StripAttribute:
    """Drop a presentational attribute from matching elements, keeping the elements."""
    selector: str
    attribute: str
    on_tree = True

    def apply(self, soup):
        stripped = 0
        for tag in soup.select(self.selector):
            if tag.attrs.pop(self.attribute, None) is not None:
                stripped += 1
        return stripped


@dataclass(frozen=True)
class StripPattern:
    """Remove every match of a regular expression from the serialized markup."""
    pattern: str
    flags: int = 0
    regex: re.Pattern = field(init=False, repr=False, compare=False)
    on_tree = False

    def __post_init__(self):
        object.__setattr__(self, 'regex', re.compile(self.pattern, self.flags))

    def apply(self, markup):
        return self.regex.subn('', markup)


def sanitize_fragment(fragment, rules, parser='html.parser'):
    """Apply ``rules`` in order to a chapter markup fragment.

    Args:
        fragment (str): Inner markup of the chapter content element
        rules (iterable): Rule objects (RemoveElements, StripAttribute, ...)
        parser (str): BeautifulSoup tree builder

    Returns:
        str: The cleaned fragment.
    """
    rules = tuple(rules)
    soup = BeautifulSoup(fragment or '', parser)

    for rule in rules:
        if rule.on_tree:
            hits = rule.apply(soup)
            if hits:
                logger.trace(f"    [SANITIZE] {rule!r} matched {hits} element(s)")

    markup = soup.decode()

    for rule in rules:
        if not rule.on_tree:
            markup, hits = rule.apply(markup)
            if hits:
                logger.trace(f"    [SANITIZE] {rule!r} removed {hits} match(es)")

    # Removals leave neighbouring whitespace strings that a fresh parse would
    # merge, so return the reparsed form
    return BeautifulSoup(markup, parser).decode().strip()
