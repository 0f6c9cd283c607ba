import hashlib
import re

# Punctuation that does not change what a claim asserts. Comparison and numeric
# symbols (< > = % + - . in numbers) are kept.
_SOFT_PUNCTUATION = re.compile(r'[!?"\'“”‘’(),;:]')


def normalize_whitespace(text):
    """Collapse runs of whitespace and trim. Claims are plain text; nothing else is touched."""
    return re.sub(r'\s+', ' ', text or '').strip()


def normalize_claim(text):
    """Lowercase, drop soft punctuation and trailing full stops. Used for duplicate detection."""
    text = normalize_whitespace(text).lower()
    text = _SOFT_PUNCTUATION.sub('', text)
    text = re.sub(r'\.+(\s|$)', r'\1', text)
    return normalize_whitespace(text)


def claim_fingerprint(text):
    """Stable sha256 hex digest of the normalized claim text."""
    return hashlib.sha256(normalize_claim(text).encode('utf-8')).hexdigest()


def title_from_text(text, max_chars=100):
    """First max_chars characters of the claim, cut on a word boundary."""
    text = normalize_whitespace(text)
    if len(text) <= max_chars:
        return text
    cut = text[:max_chars].rsplit(' ', 1)[0]
    return (cut or text[:max_chars]) + '...'
