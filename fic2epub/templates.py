"""
Markup templates for the generated EPUB.

Every document in the book is rendered from one of the fixed templates below
with ``str.format``. Titles and paths are escaped here; chapter bodies are
already-sanitized markup and are inserted verbatim.
"""
import html

STYLESHEET_PATH = "text/style.css"

CHAPTER_TEMPLATE = """<?xml version="1.0" encoding="utf-8"?>
<!DOCTYPE html>
<html xmlns="http://www.w3.org/1999/xhtml" xmlns:epub="http://www.idpf.org/2007/ops">
<head>
<title>{title}</title>
<link href="style.css" type="text/css" rel="stylesheet"/>
</head>
<body>
<h2 class="chapter-title">{title}</h2>
{body}
</body>
</html>
"""

COVER_TEMPLATE = """<?xml version="1.0" encoding="utf-8"?>
<!DOCTYPE html>
<html xmlns="http://www.w3.org/1999/xhtml" xmlns:epub="http://www.idpf.org/2007/ops">
<head>
<title>Cover</title>
<link href="style.css" type="text/css" rel="stylesheet"/>
</head>
<body>
<div class="cover">
<img src="../{image_path}" alt="Cover"/>
</div>
</body>
</html>
"""

NAV_TEMPLATE = """<?xml version="1.0" encoding="utf-8"?>
<!DOCTYPE html>
<html xmlns="http://www.w3.org/1999/xhtml" xmlns:epub="http://www.idpf.org/2007/ops">
<head>
<title>{title}</title>
<link href="{stylesheet}" type="text/css" rel="stylesheet"/>
</head>
<body>
<nav epub:type="toc" id="toc">
<h1>{title}</h1>
<ol>
{items}
</ol>
</nav>
</body>
</html>
"""

NAV_ITEM_TEMPLATE = '<li><a href="{path}">{title}</a></li>'

NCX_TEMPLATE = """<?xml version="1.0" encoding="utf-8"?>
<ncx xmlns="http://www.daisy.org/z3986/2005/ncx/" version="2005-1">
<head>
<meta name="dtb:uid" content="{identifier}"/>
<meta name="dtb:depth" content="1"/>
<meta name="dtb:totalPageCount" content="0"/>
<meta name="dtb:maxPageNumber" content="0"/>
</head>
<docTitle>
<text>{title}</text>
</docTitle>
<navMap>
{points}
</navMap>
</ncx>
"""

NCX_POINT_TEMPLATE = """<navPoint id="navPoint-{order}" playOrder="{order}">
<navLabel><text>{title}</text></navLabel>
<content src="{path}"/>
</navPoint>"""

MAIN_CSS = """a:link,
a:visited {
    color: #329FCF;
    text-decoration: none;
}
a:hover,
a:active {
    color: #f9f9f9;
    text-decoration: none;
}
img {
    max-width: 100%;
}
h2.chapter-title {
    text-align: center;
    margin-bottom: 1.5em;
}
div.cover {
    text-align: center;
    padding: 0;
    margin: 0;
}
.spoiler_header {
    background: #FFF;
    border: 1px solid #CCC;
    padding: 4px;
    margin: 4px 0 0 0;
    color: #000;
}
.spoiler_body {
    background: inherit;
    padding: 4px;
    border: 1px solid #CCC;
    border-top: 0;
    color: inherit;
    margin: 0 0 4px 0;
}
table {
    background: rgb(0, 75, 122);
    margin: 10px auto;
    width: 90%;
    border: none;
    box-shadow: rgba(0, 0, 0, 0.75) 1px 1px 1px;
}
table tr td,
table tr th,
table thead th {
    margin: 3px;
    padding: 5px;
    color: rgb(204, 204, 204);
    background: rgba(0, 0, 0, 0.1);
    border: 1px solid rgba(255, 255, 255, 0.25) !important;
}
"""


def _escape(value):
    return html.escape(str(value or ""), quote=True)


def render_chapter(title, body):
    """Render one chapter document."""
    return CHAPTER_TEMPLATE.format(title=_escape(title), body=body or "")


def render_cover(image_path):
    """Render the cover page for an image stored at ``image_path`` (book-relative)."""
    return COVER_TEMPLATE.format(image_path=_escape(image_path))


def render_nav(title, ledger, stylesheet=STYLESHEET_PATH):
    """Render the EPUB 3 navigation document.

    Args:
        title (str): Book title
        ledger (iterable): Dicts with ``path`` and ``title``, in reading order
        stylesheet (str): Stylesheet path relative to the nav document

    Returns:
        str: XHTML navigation document
    """
    items = "\n".join(
        NAV_ITEM_TEMPLATE.format(path=_escape(entry["path"]), title=_escape(entry["title"]))
        for entry in ledger
    )
    return NAV_TEMPLATE.format(title=_escape(title), stylesheet=_escape(stylesheet), items=items)


def render_ncx(title, identifier, ledger):
    """Render the NCX table of contents mirroring :func:`render_nav`."""
    points = "\n".join(
        NCX_POINT_TEMPLATE.format(order=order, path=_escape(entry["path"]), title=_escape(entry["title"]))
        for order, entry in enumerate(ledger, 1)
    )
    return NCX_TEMPLATE.format(identifier=_escape(identifier), title=_escape(title), points=points)
