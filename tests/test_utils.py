from types import SimpleNamespace

import pytest

from bandset.errors import ValidationError
from bandset.utils import normalize_email, slugify
from bandset.utils.pdf import render_setlist_pdf


def test_normalize_email():
    assert normalize_email("  Bob@Example.COM ") == "bob@example.com"
    with pytest.raises(ValidationError):
        normalize_email("not-an-email")
    with pytest.raises(ValidationError):
        normalize_email(None)


def test_slugify():
    assert slugify("Summer Fair 2031!") == "summer-fair-2031"
    assert slugify("***") == "setlist"


def _item(title, notes=None, key=None, lyrics="la la\nla"):
    return SimpleNamespace(notes=notes, song=SimpleNamespace(title=title, key=key, lyrics=lyrics))


def test_render_setlist_pdf():
    data = render_setlist_pdf("Gig", [_item("Alpha", notes="loud", key="G"), _item("Bravo")], subtitle="Town Hall")
    assert data.startswith(b"%PDF")


def test_render_long_setlist_spans_pages():
    items = [_item(f"Song {n}", lyrics="\n".join(["line"] * 10)) for n in range(40)]
    short = render_setlist_pdf("Long", items[:1], include_lyrics=True)
    long = render_setlist_pdf("Long", items, include_lyrics=True)
    assert long.startswith(b"%PDF")
    assert len(long) > len(short)
