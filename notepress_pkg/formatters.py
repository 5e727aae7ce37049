"""
Formatters for line-oriented notes files (rankings and quotes).
"""

import os
import html
import logging
from datetime import datetime, timezone

from .navigation import SECTION_RANKINGS, SECTION_QUOTES, QUOTES_PATH

RANKINGS_SUFFIX = 'Rankings.txt'
RANKINGS_DIR = 'game-rankings'

logger = logging.getLogger('Notepress.formatters')


def modified_date(path):
    """File modification time as a UTC YYYY-MM-DD string."""
    mtime = os.stat(path).st_mtime
    return datetime.fromtimestamp(mtime, tz=timezone.utc).strftime('%Y-%m-%d')


def read_lines(path):
    """Non-blank, stripped lines of a text file."""
    with open(path, 'r', encoding='utf-8-sig') as f:
        text = f.read()
    return [line.strip() for line in text.split('\n') if line.strip()]


def ranking_title(filename):
    """'ZeldaRankings.txt' -> 'My Ranking of the Zelda Games'."""
    name = filename.replace('.txt', '').replace('Rankings', '')
    return f"My Ranking of the {name} Games"


def format_ranking(path):
    """Build the page record for a *Rankings.txt file."""
    filename = os.path.basename(path)
    lines = read_lines(path)
    items = '\n'.join(f'<li>{html.escape(line)}</li>' for line in lines)
    return {
        'title': ranking_title(filename),
        'date_published': None,
        'date_updated': modified_date(path),
        'tags': [],
        'content': f'<ol>{items}</ol>',
        'path': f"{RANKINGS_DIR}/{filename.replace('.txt', '.html')}",
        'section': SECTION_RANKINGS,
        'source': path,
    }


def format_quotes(path):
    """Build the page record for the quotes file."""
    lines = read_lines(path)
    paragraphs = '\n'.join(f'<p>{html.escape(line)}</p>' for line in lines)
    return {
        'title': 'Quotes',
        'date_published': None,
        'date_updated': modified_date(path),
        'tags': [],
        'content': f'<div>{paragraphs}</div>',
        'path': QUOTES_PATH,
        'section': SECTION_QUOTES,
        'source': path,
    }


def process_rankings(files):
    """Format every rankings file, skipping the ones that cannot be read."""
    records = []
    for path in files:
        try:
            records.append(format_ranking(path))
        except (IOError, OSError, UnicodeDecodeError) as e:
            logger.error(f"Failed to read rankings file {path}: {e}")
    return records


def process_quotes(path):
    """Format the quotes file; None when it is missing or unreadable."""
    if not os.path.isfile(path):
        logger.warning(f"Quotes file not found: {path}")
        return None
    try:
        return format_quotes(path)
    except (IOError, OSError, UnicodeDecodeError) as e:
        logger.error(f"Failed to read quotes file {path}: {e}")
        return None
