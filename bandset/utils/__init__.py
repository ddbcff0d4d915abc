import re

from bandset.errors import ValidationError

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def normalize_email(email: str | None) -> str:
    """Return ``email`` stripped and lower-cased, or raise if it is malformed."""
    email = (email or '').strip().lower()
    if not _EMAIL_RE.match(email):
        raise ValidationError('Invalid email')
    return email


def slugify(text: str, fallback: str = 'setlist') -> str:
    """Lower-case ``text`` reduced to ``[a-z0-9-]`` for use in file names."""
    slug = re.sub(r'[^a-z0-9]+', '-', (text or '').lower()).strip('-')
    return slug or fallback
