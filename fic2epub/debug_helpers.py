"""
Debug utilities for scraping diagnostics.
Works with any adapter to help diagnose parsing failures.
"""
import os
import re
from datetime import datetime

from .config import get_debug_dir
from .logging import logger


def log_html_structure(soup, url, adapter_name="unknown"):
    """Log a short outline of a page that could not be parsed."""
    logger.debug(f"[DEBUG] HTML Structure Analysis for {adapter_name} adapter")
    logger.debug(f"[DEBUG] URL: {url}")

    title_tag = soup.find('title')
    logger.debug(f"[DEBUG] Page title: {title_tag.text.strip() if title_tag else 'No title found'}")

    # Check for common anti-bot indicators
    if soup.find(string=re.compile(r"checking your browser|cloudflare|please wait", re.IGNORECASE)):
        logger.warning("[DEBUG] Possible anti-bot protection detected")

    divs_with_classes = soup.find_all('div', class_=True)
    logger.debug(f"[DEBUG] Found {len(divs_with_classes)} divs with classes")
    for i, div in enumerate(divs_with_classes[:20]):
        classes = ' '.join(div.get('class', []))
        text_preview = div.get_text().strip()[:50]
        logger.debug(f"[DEBUG]   Div {i+1}: class='{classes}' preview='{text_preview}...'")


def save_failed_html(soup, url, adapter_name, error_type="content_extraction", debug_dir=None):
    """Save HTML to file when parsing fails for manual inspection."""
    log_html_structure(soup, url, adapter_name)
    try:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filename = f"failed_{adapter_name}_{error_type}_{timestamp}.html"
        debug_dir = debug_dir or get_debug_dir()
        os.makedirs(debug_dir, exist_ok=True)

        filepath = os.path.join(debug_dir, filename)
        with open(filepath, 'w', encoding='utf-8') as f:
            f.write(f"<!-- URL: {url} -->\n")
            f.write(f"<!-- Adapter: {adapter_name} -->\n")
            f.write(f"<!-- Error Type: {error_type} -->\n")
            f.write(f"<!-- Timestamp: {timestamp} -->\n")
            f.write(str(soup.prettify()))

        logger.info(f"[DEBUG] Failed HTML saved to: {filepath}")
        return filepath
    except OSError as e:
        logger.error(f"[DEBUG] Failed to save HTML file: {e}")
        return None
