"""
Index and navigation builders for Notepress.

Everything in here works on page records (plain dicts) that the processors
have already produced, and returns either HTML fragments or new records that
go through the same page template as everything else.
"""

import html
import re
from datetime import datetime
from urllib.parse import quote

SECTION_ARTICLES = 'articles'
SECTION_TAGS = 'tags'
SECTION_RANKINGS = 'rankings'
SECTION_QUOTES = 'quotes'
SECTION_GALLERY = 'gallery'

ARTICLE_INDEX_PATH = 'index.html'
TAG_INDEX_PATH = 'tags.html'
RANKINGS_INDEX_PATH = 'game-rankings/index.html'
QUOTES_PATH = 'quotes.html'
GALLERY_INDEX_PATH = 'gallery/index.html'


def slugify(text):
    """Turn a tag or directory name into a URL/anchor-safe slug."""
    text = text.lower()
    text = re.sub(r"[^\w]+", "-", text, flags=re.UNICODE)
    text = text.strip("-_").replace("_", "-")
    return text or "item"


def parse_iso_date(value):
    """Parse a YYYY-MM-DD date, returning None for anything else."""
    if not value:
        return None
    try:
        return datetime.strptime(str(value).strip()[:10], '%Y-%m-%d')
    except ValueError:
        return None


def sort_articles(records):
    """Newest first by date_published; undated articles last, ties by title."""
    dated = []
    undated = []
    for record in records:
        published = parse_iso_date(record.get('date_published'))
        if published is None:
            undated.append(record)
        else:
            dated.append((published, record))

    dated.sort(key=lambda item: item[1].get('title', '').lower())
    dated.sort(key=lambda item: item[0], reverse=True)
    undated.sort(key=lambda r: r.get('title', '').lower())
    return [record for _, record in dated] + undated


def tag_href(tag, relative_path=''):
    return f"{relative_path}{TAG_INDEX_PATH}#tag-{slugify(tag)}"


def build_tag_links(tags, relative_path=''):
    """Template-friendly list of {name, href} for an article's tags."""
    return [{'name': tag, 'href': tag_href(tag, relative_path)} for tag in tags]


def build_nav_links(records):
    """
    Derive sitewide navigation entries from the collected records.

    Returns a list of dicts with 'title', 'path' and 'section'. Sections only
    appear when they have content, in a fixed order.
    """
    sections = {record.get('section') for record in records}
    has_tags = any(record.get('tags') for record in records
                   if record.get('section') == SECTION_ARTICLES)

    links = [{'title': 'Home', 'path': ARTICLE_INDEX_PATH, 'section': SECTION_ARTICLES}]
    if has_tags:
        links.append({'title': 'Tags', 'path': TAG_INDEX_PATH, 'section': SECTION_TAGS})
    if SECTION_RANKINGS in sections:
        links.append({'title': 'Game Rankings', 'path': RANKINGS_INDEX_PATH, 'section': SECTION_RANKINGS})
    if SECTION_QUOTES in sections:
        links.append({'title': 'Quotes', 'path': QUOTES_PATH, 'section': SECTION_QUOTES})
    if SECTION_GALLERY in sections:
        links.append({'title': 'Gallery', 'path': GALLERY_INDEX_PATH, 'section': SECTION_GALLERY})
    return links


def render_nav(links, relative_path='', current_section=None):
    """Render the navigation fragment for a page sitting at relative_path."""
    items = []
    for link in links:
        current = ' aria-current="page"' if link['section'] == current_section else ''
        items.append(
            f'<li><a href="{relative_path}{link["path"]}"{current}>{html.escape(link["title"])}</a></li>'
        )
    return '<nav><ul>' + ''.join(items) + '</ul></nav>'


def _article_entry(record, relative_path):
    parts = [f'<a href="{relative_path}{quote(record["path"])}">{html.escape(record.get("title", ""))}</a>']
    if record.get('date_published'):
        published = html.escape(record['date_published'])
        parts.append(f'<time datetime="{published}">{published}</time>')
    if record.get('tags'):
        tag_items = ', '.join(
            f'<a href="{link["href"]}">{html.escape(link["name"])}</a>'
            for link in build_tag_links(record['tags'], relative_path)
        )
        parts.append(f'<span class="tags">{tag_items}</span>')
    return '<li>' + ' '.join(parts) + '</li>'


def build_article_index(records, title='Articles'):
    """Build the site's front page record listing every article."""
    articles = sort_articles([r for r in records if r.get('section') == SECTION_ARTICLES])
    entries = '\n'.join(_article_entry(record, '') for record in articles)
    return {
        'title': title,
        'date_published': None,
        'date_updated': None,
        'tags': [],
        'content': f'<ul class="article-index">{entries}</ul>',
        'path': ARTICLE_INDEX_PATH,
        'section': SECTION_ARTICLES,
    }


def group_by_tag(records):
    """
    Map each tag to its articles, ordered case-insensitively.

    Tags that differ only by case are one tag; it is shown with the spelling
    of the newest article that uses it.
    """
    names = {}
    groups = {}
    articles = sort_articles([r for r in records if r.get('section') == SECTION_ARTICLES])
    for record in articles:
        for tag in record.get('tags', []):
            key = tag.lower()
            names.setdefault(key, tag)
            if record not in groups.setdefault(key, []):
                groups[key].append(record)
    return {names[key]: groups[key] for key in sorted(groups)}


def build_tag_index(records):
    """Build the tags.html record: one anchored section per tag."""
    sections = []
    for tag, articles in group_by_tag(records).items():
        entries = '\n'.join(_article_entry(record, '') for record in articles)
        sections.append(
            f'<section id="tag-{slugify(tag)}"><h2>{html.escape(tag)}</h2>'
            f'<ul>{entries}</ul></section>'
        )
    return {
        'title': 'Tags',
        'date_published': None,
        'date_updated': None,
        'tags': [],
        'content': '\n'.join(sections),
        'path': TAG_INDEX_PATH,
        'section': SECTION_TAGS,
    }


def build_section_index(records, section, title, index_path):
    """Build a listing page for rankings or gallery albums, sorted by title."""
    members = sorted(
        (r for r in records if r.get('section') == section),
        key=lambda r: r.get('title', '').lower()
    )
    index_dir = index_path.rsplit('/', 1)[0] + '/' if '/' in index_path else ''
    entries = []
    for record in members:
        href = quote(record['path'][len(index_dir):] if record['path'].startswith(index_dir) else record['path'])
        line = f'<li><a href="{href}">{html.escape(record.get("title", ""))}</a>'
        if record.get('date_updated'):
            updated = html.escape(record['date_updated'])
            line += f' <time datetime="{updated}">{updated}</time>'
        entries.append(line + '</li>')
    updated_dates = [r['date_updated'] for r in members if r.get('date_updated')]
    return {
        'title': title,
        'date_published': None,
        'date_updated': max(updated_dates) if updated_dates else None,
        'tags': [],
        'content': '<ul>' + '\n'.join(entries) + '</ul>',
        'path': index_path,
        'section': section,
    }
