"""
Preprocessor: bytes → text → parsed document.

- Detects the charset (Content-Type header, then <meta>), applying the
  WHATWG label remapping browsers use, and decodes with replacement
- Strips characters that make tree builders misbehave (NULs, C0 controls)
- Builds a BeautifulSoup tree with a lenient-first builder fallback chain

Design principle: NEVER FAIL on bad HTML. Malformed markup is repaired by the
tree builder; ParseError is reserved for input no builder can tokenize.

Pipeline position: between the fetcher (or caller-supplied text) and the
Extractor.
"""

import codecs
import re
from typing import Optional
from bs4 import BeautifulSoup

from .logger import get_module_logger
from .exceptions import ParseError

logger = get_module_logger("preprocessor")

# Matches charset=... inside a Content-Type value (header or http-equiv meta)
CONTENT_TYPE_CHARSET_PATTERN = re.compile(r'charset\s*=\s*["\']?\s*([^\s"\';>]+)', re.IGNORECASE)

SURROGATE_PATTERN = re.compile('[\ud800-\udfff]')


class Preprocessor:
    """Decodes, sanitizes and parses untrusted HTML."""

    # WHATWG encoding spec: browsers silently remap these charsets.
    # https://encoding.spec.whatwg.org/#names-and-labels
    # Every browser treats "iso-8859-1" as "windows-1252": the two agree on
    # 0x00–0x7F but windows-1252 defines printable characters in 0x80–0x9F.
    # Matching that keeps extracted text identical to what a user sees.
    WHATWG_CHARSET_MAP = {
        'iso-8859-1': 'windows-1252',
        'iso8859-1': 'windows-1252',
        'iso88591': 'windows-1252',
        'latin-1': 'windows-1252',
        'latin1': 'windows-1252',
        'us-ascii': 'windows-1252',
        'ascii': 'windows-1252',
        'iso-8859-9': 'windows-1254',
        'iso-8859-11': 'windows-874',
        # UTF-7 is never honoured by browsers (script-smuggling vector)
        'utf-7': 'utf-8',
        'unicode-1-1-utf-7': 'utf-8',
    }

    # Tree builders in order of preference. html5lib implements the full
    # WHATWG parsing algorithm and recovers from anything a browser would;
    # lxml is faster but less faithful; html.parser ships with Python.
    TREE_BUILDERS = ('html5lib', 'lxml', 'html.parser')

    @classmethod
    def normalize_charset(cls, charset: Optional[str]) -> Optional[str]:
        """Apply the WHATWG mapping and drop labels Python has no codec for."""
        if not charset:
            return None
        charset = charset.strip().strip('"\'').lower()
        charset = cls.WHATWG_CHARSET_MAP.get(charset, charset)
        try:
            codecs.lookup(charset)
        except LookupError:
            logger.debug(f"Unknown charset label: {charset}")
            return None
        return charset

    @classmethod
    def charset_from_content_type(cls, content_type: Optional[str]) -> Optional[str]:
        """Extract the charset parameter from a Content-Type header value."""
        if not content_type:
            return None
        m = CONTENT_TYPE_CHARSET_PATTERN.search(content_type)
        if not m:
            return None
        return cls.normalize_charset(m.group(1))

    @classmethod
    def detect_charset_from_bytes(cls, raw_bytes: bytes) -> str:
        """
        Detect charset from raw HTML bytes by scanning the first 2048 bytes
        for <meta charset=...> or <meta http-equiv="Content-Type" content="...; charset=...">.

        Returns the browser-equivalent charset or 'utf-8' as default.
        """
        # The HTML spec says charset declarations must appear within the
        # first 1024 bytes; 2048 leaves room for sloppy pages.
        head_str = raw_bytes[:2048].decode('ascii', errors='ignore')

        charset = None

        # Modern form: <meta charset="...">
        m = re.search(r'<meta[^>]+charset=["\']?\s*([^\s"\';>]+)', head_str, re.IGNORECASE)
        if m:
            charset = m.group(1)

        # Legacy form: <meta http-equiv="Content-Type" content="...; charset=...">
        if not charset:
            m = re.search(
                r'<meta[^>]+content=["\'][^"\']*charset=([^\s"\';>]+)',
                head_str, re.IGNORECASE
            )
            if m:
                charset = m.group(1)

        return cls.normalize_charset(charset) or 'utf-8'

    def decode(self, raw_bytes: bytes, content_type: Optional[str] = None) -> tuple[str, str]:
        """
        Decode a response body.

        Priority: byte-order mark, Content-Type charset, <meta> declaration,
        then UTF-8. Undecodable bytes become U+FFFD instead of raising.

        Returns:
            Tuple of (text, charset used)
        """
        if raw_bytes.startswith(codecs.BOM_UTF8):
            return raw_bytes[len(codecs.BOM_UTF8):].decode('utf-8', errors='replace'), 'utf-8'

        charset = self.charset_from_content_type(content_type) or self.detect_charset_from_bytes(raw_bytes)
        logger.debug(f"Decoding body as {charset}")
        return raw_bytes.decode(charset, errors='replace'), charset

    def sanitize(self, html: str) -> tuple[str, list[str]]:
        """
        Remove characters that are never valid in HTML text.

        Returns:
            Tuple of (sanitized HTML, list of warnings)
        """
        warnings = []
        sanitized = html

        # Lone surrogates (from lenient decoding upstream) can't be re-encoded
        # by the tree builders; each becomes one U+FFFD.
        sanitized = SURROGATE_PATTERN.sub('\ufffd', sanitized)

        if '\x00' in sanitized:
            sanitized = sanitized.replace('\x00', '')
            warnings.append("Removed NULL bytes")

        # Control characters other than tab/newline/CR/form feed
        control_chars = ''.join(chr(c) for c in range(32) if c not in (9, 10, 12, 13))
        if any(c in sanitized for c in control_chars):
            sanitized = sanitized.translate(str.maketrans('', '', control_chars))
            warnings.append("Removed control characters")

        return sanitized, warnings

    def parse(self, html: str) -> tuple[BeautifulSoup, list[str]]:
        """
        Build a document tree, falling back through TREE_BUILDERS.

        Returns:
            Tuple of (soup, warnings)

        Raises:
            ParseError: If no tree builder could parse the input
        """
        sanitized, warnings = self.sanitize(html)
        errors = {}

        for builder in self.TREE_BUILDERS:
            try:
                soup = BeautifulSoup(sanitized, builder)
            except Exception as e:
                # FeatureNotFound (builder not installed) lands here as well
                logger.warning(f"{builder} parsing failed: {e}")
                warnings.append(f"{builder} parsing failed: {e}")
                errors[builder] = str(e)
                continue
            return soup, warnings

        raise ParseError("Document could not be parsed by any tree builder", details=errors)
