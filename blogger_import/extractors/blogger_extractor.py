import xml.etree.ElementTree as ET

from blogger_import.models import Category, Entry, Feed, Link
from blogger_import.utils.errors import MalformedInputError


def _text(element):
    """Return the text of ``element`` or ``None`` when it is missing or empty."""
    if element is None:
        return None
    return element.text if element.text is not None else None


def _parse_entry(entry, q):
    """Convert one ``<entry>`` element into an :class:`Entry`.

    Args:
        entry (Element): The ``<entry>`` element.
        q (callable): Qualifies a local tag name with the feed's namespace.

    Returns:
        Entry: The parsed entry with its categories and links in document order.
    """
    author = entry.find(q('author'))
    author_name = _text(author.find(q('name'))) if author is not None else None

    categories = [
        Category(term=cat.get('term'), scheme=cat.get('scheme'))
        for cat in entry.findall(q('category'))
        if cat.get('term')
    ]
    links = [
        Link(rel=link.get('rel'), href=link.get('href'), type=link.get('type'), title=link.get('title'))
        for link in entry.findall(q('link'))
    ]

    return Entry(
        title=_text(entry.find(q('title'))),
        content=_text(entry.find(q('content'))),
        published=_text(entry.find(q('published'))),
        author=author_name.strip() if author_name else None,
        categories=tuple(categories),
        links=tuple(links),
    )


def parse_feed(xml_document):
    """Parse a Blogger export into a :class:`Feed`.

    The document must be an Atom feed: a root ``feed`` element (in the Atom
    namespace or without a namespace) containing zero or more ``entry``
    elements.  Entries without content are kept; classification drops them
    later.

    Args:
        xml_document (str | bytes): The complete XML document.

    Returns:
        Feed: The entries in document order.

    Raises:
        MalformedInputError: If the document is not well-formed XML or its
            root element is not ``feed``.
    """
    if not xml_document or not xml_document.strip():
        raise MalformedInputError("The export document is empty")
    try:
        root = ET.fromstring(xml_document)
    except ET.ParseError as e:
        raise MalformedInputError(f"Invalid XML: {e}") from e

    namespace = ''
    local_name = root.tag
    if root.tag.startswith('{'):
        namespace, local_name = root.tag[1:].split('}', 1)
    if local_name != 'feed':
        raise MalformedInputError(f"Expected a 'feed' root element, found '{local_name}'")

    def q(tag):
        return f'{{{namespace}}}{tag}' if namespace else tag

    try:
        entries = tuple(_parse_entry(entry, q) for entry in root.findall(q('entry')))
    except ValueError as e:
        raise MalformedInputError(f"Invalid entry in feed: {e}") from e
    return Feed(title=_text(root.find(q('title'))), entries=entries)


def parse_feed_file(file_path):
    """Read ``file_path`` as bytes and parse it with :func:`parse_feed`.

    Raises:
        FileNotFoundError: If the export file does not exist.
        MalformedInputError: See :func:`parse_feed`.
    """
    with open(file_path, mode='rb') as f:
        return parse_feed(f.read())
