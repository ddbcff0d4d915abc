import io

from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

MARGIN = 40
LINE_HEIGHT = 20


def render_setlist_pdf(title: str, items, subtitle: str | None = None, include_lyrics: bool = False) -> bytes:
    """Render an ordered setlist as a PDF document.

    ``items`` yields objects with ``position``, ``notes`` and a ``song``
    relationship, in running order."""
    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=A4)
    pdf.setTitle(title)
    width, height = A4
    y = height - MARGIN

    def line(text: str, font: str = "Helvetica", size: int = 12, indent: int = 0) -> None:
        nonlocal y
        if y < MARGIN:
            pdf.showPage()
            y = height - MARGIN
        pdf.setFont(font, size)
        pdf.drawString(MARGIN + indent, y, text)
        y -= LINE_HEIGHT

    line(title, "Helvetica-Bold", 16)
    if subtitle:
        line(subtitle, size=10)
    y -= LINE_HEIGHT / 2
    for number, item in enumerate(items, start=1):
        song = item.song
        text = f"{number}. {song.title}"
        if song.key:
            text += f" ({song.key})"
        line(text)
        if item.notes:
            line(item.notes, "Helvetica-Oblique", 10, indent=20)
        if include_lyrics and song.lyrics:
            for lyric in song.lyrics.splitlines():
                line(lyric, size=9, indent=20)
    pdf.save()
    return buffer.getvalue()
