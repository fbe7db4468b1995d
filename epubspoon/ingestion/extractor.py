"""EPUB content extractor: container bytes to per-chapter plain text."""

import io
import logging
import posixpath
import warnings
import zipfile
import zlib
from urllib.parse import unquote

import chardet
from bs4 import BeautifulSoup, XMLParsedAsHTMLWarning
from lxml import etree

from epubspoon.config import ExtractionConfig
from epubspoon.errors import NoExtractableText, UnreadableContainer
from epubspoon.models.book import ExtractedBook

logger = logging.getLogger(__name__)

CONTAINER_PATH = "META-INF/container.xml"
UNKNOWN_TITLE = "Unknown"

# Elements whose end marks a text boundary. A newline is appended to each so
# adjacent blocks do not run together once whitespace is collapsed.
BLOCK_TAGS: list[str] = [
    "address", "article", "aside", "blockquote", "br", "dd", "div", "dl",
    "dt", "figcaption", "footer", "h1", "h2", "h3", "h4", "h5", "h6",
    "header", "hr", "li", "ol", "p", "pre", "section", "td", "th", "tr", "ul",
]

_XML_PARSER = etree.XMLParser(resolve_entities=False, no_network=True)

# Raised by ZipFile.read for a member that is present but cannot be decoded.
_CORRUPT_MEMBER_ERRORS = (zipfile.BadZipFile, zlib.error, NotImplementedError)

# XHTML chapters go through the lenient HTML parser.
warnings.filterwarnings("ignore", category=XMLParsedAsHTMLWarning)


class EpubExtractor:
    """Decodes an EPUB container into a title and ordered chapter texts.

    Reads ``META-INF/container.xml`` to locate the package document, walks
    the spine in reading order, strips non-text elements from each content
    document and keeps the chapters that survive boilerplate filtering.

    Args:
        config: ExtractionConfig with the boilerplate keyword set, the
                length threshold below which keywords apply, and the
                tags to strip.
    """

    def __init__(self, config: ExtractionConfig | None = None) -> None:
        self._config = config or ExtractionConfig()

    def extract(self, data: bytes) -> ExtractedBook:
        """Extract the title and chapter texts from EPUB bytes.

        Args:
            data: Raw bytes of the .epub file.

        Returns:
            An ExtractedBook with at least one chapter.

        Raises:
            UnreadableContainer: If the archive, container descriptor or
                package document is missing or malformed.
            NoExtractableText: If no chapter survived filtering.
        """
        try:
            archive = zipfile.ZipFile(io.BytesIO(data))
        except zipfile.BadZipFile as e:
            raise UnreadableContainer(f"Not a zip archive: {e}") from e

        with archive:
            opf_path = self._find_package_path(archive)
            opf_root = self._parse_xml(archive, opf_path, "package document")

            title = self._read_title(opf_root)
            manifest = self._read_manifest(opf_root)
            opf_dir = posixpath.dirname(opf_path)

            chapter_texts: list[str] = []
            for idref in self._read_spine(opf_root):
                entry = manifest.get(idref)
                if entry is None:
                    logger.debug("Spine item '%s' not in manifest", idref)
                    continue

                href, media_type = entry
                if media_type and "html" not in media_type.lower():
                    continue

                raw = self._read_member(archive, opf_dir, href)
                if raw is None:
                    logger.warning("Spine item '%s' points to missing file: %s", idref, href)
                    continue

                text = self.html_to_text(self._decode(raw, href))
                if self.is_discarded(text):
                    logger.debug("Skipping '%s': empty or boilerplate (%d chars)", href, len(text))
                    continue

                chapter_texts.append(text)

        if not chapter_texts:
            raise NoExtractableText(f"No chapter text survived filtering in '{title}'")

        logger.info("Extracted %d chapters from '%s'", len(chapter_texts), title)
        return ExtractedBook(title=title, chapter_texts=chapter_texts)

    def html_to_text(self, html: str) -> str:
        """Convert a content document to visible plain text.

        Removes images, tables, inline SVG, scripts, styles and navigation
        landmarks, then collapses all whitespace runs to single spaces.

        Args:
            html: The HTML/XHTML source.

        Returns:
            Trimmed plain text; empty if the document has no visible text.
        """
        soup = BeautifulSoup(html, "lxml")

        for tag in soup(self._config.stripped_tags):
            tag.decompose()

        for tag in soup(BLOCK_TAGS):
            tag.append("\n")

        root = soup.body or soup
        return " ".join(root.get_text().split())

    def is_boilerplate(self, text: str) -> bool:
        """Check whether text contains any boilerplate keyword."""
        lower = text.lower()
        return any(keyword in lower for keyword in self._config.boilerplate_keywords)

    def is_discarded(self, text: str) -> bool:
        """Decide whether a chapter candidate is dropped.

        Only short pages are checked for keywords; a long chapter that
        mentions "copyright" is kept.
        """
        if not text.strip():
            return True
        return len(text) < self._config.min_chapter_chars and self.is_boilerplate(text)

    def _find_package_path(self, archive: zipfile.ZipFile) -> str:
        """Locate the package document via the container descriptor."""
        root = self._parse_xml(archive, CONTAINER_PATH, "container descriptor")
        rootfiles = root.xpath("//*[local-name()='rootfile']/@full-path")
        if not rootfiles or not str(rootfiles[0]).strip():
            raise UnreadableContainer("Container descriptor names no package document")
        return str(rootfiles[0]).strip()

    def _parse_xml(self, archive: zipfile.ZipFile, path: str, what: str) -> etree._Element:
        try:
            raw = archive.read(path)
        except KeyError as e:
            raise UnreadableContainer(f"Missing {what}: {path}") from e
        except _CORRUPT_MEMBER_ERRORS as e:
            raise UnreadableContainer(f"Corrupt {what} {path}: {e}") from e

        try:
            return etree.fromstring(raw, parser=_XML_PARSER)
        except etree.XMLSyntaxError as e:
            raise UnreadableContainer(f"Malformed {what} {path}: {e}") from e

    def _read_title(self, opf_root: etree._Element) -> str:
        titles = opf_root.xpath(
            "//*[local-name()='metadata']//*[local-name()='title']/text()"
        )
        for title in titles:
            if str(title).strip():
                return str(title).strip()
        return UNKNOWN_TITLE

    def _read_manifest(self, opf_root: etree._Element) -> dict[str, tuple[str, str]]:
        """Map manifest item ids to (href, media type)."""
        manifest: dict[str, tuple[str, str]] = {}
        for item in opf_root.xpath("//*[local-name()='manifest']/*[local-name()='item']"):
            item_id = item.get("id")
            href = item.get("href")
            if item_id and href:
                manifest[item_id] = (href, item.get("media-type") or "")
        return manifest

    def _read_spine(self, opf_root: etree._Element) -> list[str]:
        idrefs = opf_root.xpath(
            "//*[local-name()='spine']/*[local-name()='itemref']/@idref"
        )
        return [str(idref) for idref in idrefs if str(idref)]

    def _read_member(self, archive: zipfile.ZipFile, opf_dir: str, href: str) -> bytes | None:
        """Read a manifest href relative to the package document directory.

        Tries the href as written, then percent-decoded.

        Raises:
            UnreadableContainer: If the member exists but is corrupt.
        """
        href = href.split("#", 1)[0]
        for candidate in (href, unquote(href)):
            path = posixpath.normpath(posixpath.join(opf_dir, candidate))
            try:
                return archive.read(path)
            except KeyError:
                continue
            except _CORRUPT_MEMBER_ERRORS as e:
                raise UnreadableContainer(f"Corrupt content document {path}: {e}") from e
        return None

    def _decode(self, raw: bytes, name: str) -> str:
        """Decode a content document, UTF-8 first, then detected encoding."""
        try:
            return raw.decode("utf-8-sig")
        except UnicodeDecodeError:
            pass

        detected = chardet.detect(raw)
        encoding = detected.get("encoding") or "utf-8"
        confidence = detected.get("confidence") or 0

        if confidence < 0.7:
            logger.warning(
                "Low confidence encoding detection for %s: %s (%.0f%%)",
                name,
                encoding,
                confidence * 100,
            )

        try:
            return raw.decode(encoding)
        except (UnicodeDecodeError, LookupError):
            logger.error("Failed to decode %s, replacing invalid bytes", name)
            return raw.decode("utf-8", errors="replace")
