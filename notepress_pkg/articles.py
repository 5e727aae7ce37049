import os
import re
import html
import logging
import mistune
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name, TextLexer
from pygments.styles import get_style_by_name
from pygments.util import ClassNotFound

from .navigation import SECTION_ARTICLES

ARTICLE_EXTENSIONS = ('.html', '.md')

# An optional <pre> wrapper is swallowed together with the <code> element.
CODE_BLOCK_RE = re.compile(
    r'(<pre[^>]*>\s*)?<code class="language-([\w+#-]+)">(.*?)</code>(?(1)\s*</pre>)',
    re.DOTALL
)


def title_from_filename(file_path):
    """'my-first_post.html' -> 'My First Post'."""
    stem = os.path.splitext(os.path.basename(file_path))[0]
    return re.sub(r'[-_]+', ' ', stem).strip().title() or 'Untitled'


def parse_metadata_block(text):
    """
    Split a leading <!-- ... --> metadata block from the body.

    Returns (metadata, body_lines). When the text does not open with a
    comment line, or the comment is never closed, metadata is empty and the
    body is the whole text.
    """
    lines = text.lstrip('\ufeff').split('\n')
    if not lines or lines[0].strip() != '<!--':
        return {}, lines

    metadata = {}
    for i in range(1, len(lines)):
        line = lines[i].strip()
        if line == '-->':
            return metadata, lines[i + 1:]
        key, _, value = line.partition(':')
        key = key.strip()
        value = value.strip()
        if key and value:
            metadata[key] = value
    return {}, lines


def parse_tags(value):
    if not value:
        return []
    return [tag.strip() for tag in value.split(',') if tag.strip()]


class ArticleProcessor:
    """Turn article source files into page records."""

    def __init__(self, pages_dir, highlight_style='default'):
        self.pages_dir = pages_dir
        self.highlight_style = highlight_style
        self.logger = logging.getLogger('Notepress.articles')

        try:
            get_style_by_name(highlight_style)
        except ClassNotFound:
            raise ValueError(f"Unknown highlight style: {highlight_style}")
        self.formatter = HtmlFormatter(style=highlight_style, cssclass='highlight')
        self.markdown_parser = self.create_markdown_parser()

    def create_markdown_parser(self):
        """Create a Mistune markdown parser whose code blocks carry a language class."""
        class CustomRenderer(mistune.HTMLRenderer):
            def __init__(self):
                super().__init__(escape=False)
            def block_code(self, code, info=None):
                escaped_code = mistune.escape(code)
                lang = info.strip().split(None, 1)[0] if info and info.strip() else None
                if lang:
                    return '<pre><code class="language-{}">{}</code></pre>\n'.format(lang, escaped_code)
                return '<pre><code>{}</code></pre>\n'.format(escaped_code)
        return mistune.create_markdown(
            renderer=CustomRenderer(),
            plugins=['table', 'task_lists', 'strikethrough']
        )

    def highlight_code(self, code, language):
        try:
            lexer = get_lexer_by_name(language)
        except ClassNotFound:
            self.logger.debug(f"No lexer for '{language}', using plain text")
            lexer = TextLexer()
        return highlight(code, lexer, self.formatter)

    def highlight_code_blocks(self, content):
        """Replace every language-tagged <code> element with highlighted HTML."""
        def replace(match):
            language = match.group(2)
            code = html.unescape(match.group(3))
            return self.highlight_code(code, language).rstrip('\n')
        return CODE_BLOCK_RE.sub(replace, content)

    def stylesheet(self):
        """CSS for the configured highlight style."""
        return self.formatter.get_style_defs('.highlight')

    def parse_article(self, text, file_path='', is_markdown=False):
        """Parse article text into a normalized record (without output path)."""
        metadata, body_lines = parse_metadata_block(text)
        body = '\n'.join(body_lines).strip()
        if is_markdown:
            body = self.markdown_parser(body).strip()

        return {
            'title': metadata.get('title') or title_from_filename(file_path),
            'date_published': metadata.get('date_published') or None,
            'date_updated': metadata.get('date_updated') or None,
            'tags': parse_tags(metadata.get('tags')),
            'content': self.highlight_code_blocks(body),
        }

    def output_path(self, file_path):
        relative = os.path.relpath(file_path, self.pages_dir)
        stem = os.path.splitext(relative)[0]
        return stem.replace(os.sep, '/') + '.html'

    def process(self, file_path):
        """Read and parse one article; None when the file cannot be read."""
        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                text = f.read()
        except (IOError, OSError, UnicodeDecodeError) as e:
            self.logger.error(f"Failed to read article {file_path}: {e}")
            return None

        record = self.parse_article(text, file_path, is_markdown=file_path.endswith('.md'))
        record['path'] = self.output_path(file_path)
        record['section'] = SECTION_ARTICLES
        record['source'] = file_path
        self.logger.debug(f"Parsed article {file_path} -> {record['path']}")
        return record
