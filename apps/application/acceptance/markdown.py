import html
import re
import nh3

ALLOWED_HTML_TAGS = {
    'p',
    'h1',
    'h2',
    'h3',
    'h4',
    'ul',
    'li',
    'strong',
    'em',
    'br',
}
ALLOWED_HTML_ATTRIBUTES = {}

HEADING_PATTERN = re.compile(r'^(#{1,4})\s+(.*)$')
BULLET_PATTERN = re.compile(r'^[-*]\s+(.*)$')
BOLD_PATTERN = re.compile(r'\*\*(.+?)\*\*')
ITALIC_PATTERN = re.compile(r'\*(.+?)\*')


def _inline(text: str) -> str:
    text = html.escape(text, quote=False)
    text = BOLD_PATTERN.sub(r'<strong>\1</strong>', text)
    return ITALIC_PATTERN.sub(r'<em>\1</em>', text)


def render_markdown(markdown: str) -> str:
    """Render the subset of markdown used by legal documents to sanitised HTML."""
    parts = []
    paragraph = []
    items = []

    def flush_paragraph():
        if paragraph:
            parts.append('<p>' + '<br>'.join(paragraph) + '</p>')
            paragraph.clear()

    def flush_list():
        if items:
            parts.append('<ul>' + ''.join(f'<li>{item}</li>' for item in items) + '</ul>')
            items.clear()

    for raw_line in (markdown or '').splitlines():
        line = raw_line.strip()
        if not line:
            flush_paragraph()
            flush_list()
            continue

        heading = HEADING_PATTERN.match(line)
        if heading:
            flush_paragraph()
            flush_list()
            level = len(heading.group(1))
            parts.append(f'<h{level}>{_inline(heading.group(2))}</h{level}>')
            continue

        bullet = BULLET_PATTERN.match(line)
        if bullet:
            flush_paragraph()
            items.append(_inline(bullet.group(1)))
            continue

        flush_list()
        paragraph.append(_inline(line))

    flush_paragraph()
    flush_list()
    return nh3.clean(''.join(parts), tags=ALLOWED_HTML_TAGS, attributes=ALLOWED_HTML_ATTRIBUTES)
