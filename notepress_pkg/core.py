import os
import glob
import shutil
import logging
import posixpath
from datetime import datetime
from importlib import resources
from urllib.parse import quote
from xml.sax.saxutils import escape
from email.utils import formatdate
from concurrent.futures import ThreadPoolExecutor, as_completed
from jinja2 import Environment, FileSystemLoader, TemplateNotFound, TemplateError

from .articles import ArticleProcessor, ARTICLE_EXTENSIONS
from . import formatters
from .formatters import RANKINGS_SUFFIX
from .gallery import GalleryProcessor
from .navigation import (
    SECTION_ARTICLES, SECTION_RANKINGS, SECTION_GALLERY,
    RANKINGS_INDEX_PATH, GALLERY_INDEX_PATH,
    build_nav_links, render_nav, build_tag_links, sort_articles,
    build_article_index, build_tag_index, build_section_index, parse_iso_date,
)

# Files processed serially below this count.
PARALLEL_THRESHOLD = 12
FEED_SIZE = 20


class InfoFilter(logging.Filter):
    """Filter to allow only selected INFO messages to be shown in the console."""
    def filter(self, record):
        if record.levelno >= logging.WARNING:
            return True
        allowed_messages = [
            "Starting site build",
            "Site build completed in",
            "Total articles generated:",
            "Total rankings generated:",
            "Total albums generated:",
            "Total pages written:",
            "Building article index",
            "Building tag index",
            "Generating RSS feed",
            "Generating XML sitemap",
        ]
        return any(msg in record.getMessage() for msg in allowed_messages)


def package_path(*parts):
    """Filesystem path of a resource bundled with the package."""
    return str(resources.files('notepress_pkg').joinpath(*parts))


def calculate_relative_path(page_path):
    """'a/b/page.html' -> '../../'; pages at the site root get ''."""
    rel_path = posixpath.relpath('.', posixpath.dirname(page_path) or '.')
    if rel_path == '.':
        return ''
    return rel_path + '/'


class Notepress:
    def __init__(self, pages_dir='pages', notes_dir='notes', gallery_dir='gallery',
                 templates_dir='templates', template_name='template.html',
                 output_dir='output', assets_dir='assets', quotes_file='Quotes.txt',
                 site_title=None, site_url=None, highlight_style='default',
                 thumbnail_size=400, workers=None, log_dir='logs'):
        self.pages_dir = pages_dir
        self.notes_dir = notes_dir
        self.gallery_dir = gallery_dir
        self.templates_dir = templates_dir
        self.template_name = template_name
        self.output_dir = output_dir
        self.assets_dir = assets_dir
        self.quotes_file = quotes_file
        self.site_title = site_title
        self.site_url = site_url.rstrip('/') if site_url else None
        self.workers = workers
        self.log_dir = log_dir
        self.build_date = datetime.now().strftime('%Y-%m-%d')

        self.articles_generated = 0
        self.rankings_generated = 0
        self.albums_generated = 0
        self.images_processed = 0
        self.pages_written = 0
        self.write_errors = 0
        self.records = []

        self.setup_logging()

        # Fall back to the bundled template when the project has none
        if not os.path.isabs(self.templates_dir) and not os.path.exists(self.templates_dir):
            self.templates_dir = package_path('templates')

        self.env = Environment(loader=FileSystemLoader(self.templates_dir))
        try:
            self.template = self.env.get_template(self.template_name)
        except TemplateNotFound:
            raise FileNotFoundError(
                f"Template '{self.template_name}' not found in {self.templates_dir}"
            )

        self.article_processor = ArticleProcessor(self.pages_dir, highlight_style)
        self.gallery_processor = GalleryProcessor(self.gallery_dir, self.output_dir, thumbnail_size)

    def setup_logging(self):
        """Set up logging configuration."""
        self.logger = logging.getLogger('Notepress')
        self.logger.setLevel(logging.INFO)

        if not self.logger.handlers:
            # Console handler with filter
            console_handler = logging.StreamHandler()
            console_handler.setLevel(logging.INFO)
            console_handler.addFilter(InfoFilter())
            console_formatter = logging.Formatter('%(message)s')
            console_handler.setFormatter(console_formatter)
            self.logger.addHandler(console_handler)

            # File handler for all logs
            if self.log_dir:
                os.makedirs(self.log_dir, exist_ok=True)
                log_filename = datetime.now().strftime('notepress_%Y-%m-%d_%H-%M-%S.log')
                log_filepath = os.path.join(self.log_dir, log_filename)

                file_handler = logging.FileHandler(log_filepath, encoding='utf-8')
                file_handler.setLevel(logging.DEBUG)
                file_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
                file_handler.setFormatter(file_formatter)
                self.logger.addHandler(file_handler)

    # Discovery

    def find_article_files(self):
        """All article sources under the pages directory, sorted."""
        if not os.path.isdir(self.pages_dir):
            self.logger.warning(f"Pages directory not found: {self.pages_dir}")
            return []
        files = []
        for ext in ARTICLE_EXTENSIONS:
            pattern = os.path.join(glob.escape(self.pages_dir), '**', f'*{ext}')
            files.extend(path for path in glob.glob(pattern, recursive=True) if os.path.isfile(path))
        return sorted(files)

    def find_ranking_files(self):
        if not os.path.isdir(self.notes_dir):
            self.logger.warning(f"Notes directory not found: {self.notes_dir}")
            return []
        pattern = os.path.join(glob.escape(self.notes_dir), f'*{RANKINGS_SUFFIX}')
        return sorted(path for path in glob.glob(pattern) if os.path.isfile(path))

    def quotes_path(self):
        return os.path.join(self.notes_dir, self.quotes_file)

    # Output directory

    def create_output_dir(self):
        """Empty the output directory, keeping dot-entries such as .git."""
        output_abs = os.path.realpath(self.output_dir)
        cwd = os.path.realpath(os.getcwd())
        if output_abs == cwd or cwd.startswith(output_abs.rstrip(os.sep) + os.sep):
            raise ValueError(f"Refusing to clean output directory {self.output_dir}: it contains the working directory")

        if not os.path.exists(self.output_dir):
            os.makedirs(self.output_dir, exist_ok=True)
            return

        preserved_items = []
        for item in os.listdir(self.output_dir):
            item_path = os.path.join(self.output_dir, item)
            if item.startswith('.'):
                preserved_items.append(item)
                continue
            if os.path.isdir(item_path) and not os.path.islink(item_path):
                shutil.rmtree(item_path)
            else:
                os.remove(item_path)

        if preserved_items:
            self.logger.info(f"Preserved files in output: {', '.join(preserved_items)}")

    def copy_assets_to_output(self):
        """Copy the assets directory (or the bundled one) to output/assets."""
        output_assets_dir = os.path.join(self.output_dir, 'assets')
        source = self.assets_dir if self.assets_dir and os.path.isdir(self.assets_dir) else package_path('assets')
        try:
            shutil.copytree(source, output_assets_dir, dirs_exist_ok=True)
            self.logger.info(f"Copied assets from {source}")
        except (IOError, OSError) as e:
            self.logger.error(f"Failed to copy assets from {source}: {e}")

        css_path = os.path.join(output_assets_dir, 'css', 'highlight.css')
        if not os.path.exists(css_path):
            try:
                os.makedirs(os.path.dirname(css_path), exist_ok=True)
                with open(css_path, 'w', encoding='utf-8') as f:
                    f.write(self.article_processor.stylesheet())
            except (IOError, OSError) as e:
                self.logger.error(f"Failed to write highlight stylesheet {css_path}: {e}")

    # Processing

    def _run_adaptive(self, func, items, label):
        """Run func over items, in a thread pool once there are enough of them."""
        results = []
        if len(items) >= PARALLEL_THRESHOLD:
            self.logger.info(f"Using thread pool for {len(items)} {label}")
            with ThreadPoolExecutor(max_workers=self.workers) as executor:
                futures = {executor.submit(func, item): item for item in items}
                for future in as_completed(futures):
                    item = futures[future]
                    try:
                        result = future.result()
                    except Exception as e:
                        self.logger.error(f"Error processing {item}: {e}")
                        continue
                    if result:
                        results.append(result)
        else:
            self.logger.info(f"Using single-threaded processing for {len(items)} {label}")
            for item in items:
                try:
                    result = func(item)
                except Exception as e:
                    self.logger.error(f"Error processing {item}: {e}")
                    continue
                if result:
                    results.append(result)
        # as_completed order is arbitrary
        return sorted(results, key=lambda r: r['path'])

    def process_articles(self):
        records = self._run_adaptive(self.article_processor.process, self.find_article_files(), 'articles')
        self.articles_generated = len(records)
        return records

    def process_rankings(self):
        records = formatters.process_rankings(self.find_ranking_files())
        self.rankings_generated = len(records)
        return records

    def process_albums(self):
        if not os.path.isdir(self.gallery_dir):
            self.logger.warning(f"Gallery directory not found: {self.gallery_dir}")
            return []
        records = self._run_adaptive(self.gallery_processor.format_album,
                                     self.gallery_processor.find_albums(), 'albums')
        self.albums_generated = len(records)
        self.images_processed = sum(r.get('image_count', 0) for r in records)
        return records

    def collect_records(self):
        """Parse every content source into page records."""
        records = []
        records.extend(self.process_articles())
        records.extend(self.process_rankings())
        if os.path.isdir(self.notes_dir):
            quotes = formatters.process_quotes(self.quotes_path())
            if quotes:
                records.append(quotes)
        records.extend(self.process_albums())
        return records

    def build_index_records(self, records):
        """Derive the generated index pages from the content records."""
        sections = {r['section'] for r in records}
        self.logger.info("Building article index")
        indexes = [build_article_index(records, self.site_title or 'Articles')]
        if any(r.get('tags') for r in records if r['section'] == SECTION_ARTICLES):
            self.logger.info("Building tag index")
            indexes.append(build_tag_index(records))
        if SECTION_RANKINGS in sections:
            indexes.append(build_section_index(records, SECTION_RANKINGS, 'Game Rankings', RANKINGS_INDEX_PATH))
        if SECTION_GALLERY in sections:
            indexes.append(build_section_index(records, SECTION_GALLERY, 'Gallery', GALLERY_INDEX_PATH))
        return indexes

    # Rendering and writing

    def render_page(self, record, nav_links):
        """Render one record through the shared template."""
        relative_path = calculate_relative_path(record['path'])
        context = dict(record)
        context.update(
            nav=render_nav(nav_links, relative_path, record.get('section')),
            tag_links=build_tag_links(record.get('tags', []), relative_path),
            relative_path=relative_path,
            site_title=self.site_title,
            site_url=self.site_url,
            build_date=self.build_date,
        )
        try:
            return self.template.render(**context)
        except TemplateError as e:
            self.logger.error(f"Template error rendering {record['path']}: {e}")
            return None
        except Exception as e:
            self.logger.error(f"Unexpected error rendering {record['path']}: {e}")
            return None

    def write_page(self, relative_path, html):
        output_file_path = os.path.join(self.output_dir, *relative_path.split('/'))
        try:
            os.makedirs(os.path.dirname(output_file_path), exist_ok=True)
            with open(output_file_path, 'w', encoding='utf-8') as output_file:
                output_file.write(html)
            self.logger.debug(f"Generated HTML: {output_file_path}")
            return True
        except (IOError, OSError) as e:
            self.logger.error(f"Failed to write HTML file {output_file_path}: {e}")
            self.write_errors += 1
            return False

    def write_pages(self, records, nav_links):
        """Render and write records; the first record claiming a path wins.

        Callers pass generated index records first so that their fixed paths
        cannot be taken by content.
        """
        written = set()
        for record in records:
            if record['path'] in written:
                self.logger.warning(f"Skipping {record.get('source', record['path'])}: {record['path']} already written")
                continue
            written.add(record['path'])
            html = self.render_page(record, nav_links)
            if html is not None and self.write_page(record['path'], html):
                self.pages_written += 1

    def build(self):
        """Main build process."""
        self.logger.info("Starting site build...")

        self.create_output_dir()
        self.copy_assets_to_output()

        content_records = self.collect_records()
        index_records = self.build_index_records(content_records)
        self.records = content_records + index_records

        nav_links = build_nav_links(self.records)
        self.write_pages(index_records + content_records, nav_links)

        if self.site_url:
            self.generate_rss_feed()
            self.generate_xml_sitemap()
        else:
            self.logger.debug("Skipping RSS feed and XML sitemap (no site_url).")

    # Feeds

    def page_url(self, record):
        return f"{self.site_url}/{quote(record['path'])}"

    def generate_rss_feed(self):
        """Generate an RSS 2.0 feed of the newest dated articles."""
        site_name = self.site_title or self.site_url
        articles = [r for r in sort_articles(r for r in self.records if r['section'] == SECTION_ARTICLES)
                    if parse_iso_date(r.get('date_published'))]

        rss_content = f'''<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
<channel>
<title>{escape(site_name)}</title>
<link>{escape(self.site_url)}/</link>
<description>Latest articles from {escape(site_name)}</description>
<lastBuildDate>{formatdate()}</lastBuildDate>
'''
        for record in articles[:FEED_SIZE]:
            link = escape(self.page_url(record))
            pub_date = formatdate(parse_iso_date(record['date_published']).timestamp())
            rss_content += f'''
<item>
<title>{escape(record['title'])}</title>
<link>{link}</link>
<pubDate>{pub_date}</pubDate>
<guid>{link}</guid>
</item>'''

        rss_content += '''
</channel>
</rss>'''

        rss_output_dir = os.path.join(self.output_dir, 'feed')
        os.makedirs(rss_output_dir, exist_ok=True)
        rss_file = os.path.join(rss_output_dir, 'index.xml')
        try:
            with open(rss_file, 'w', encoding='utf-8') as f:
                f.write(rss_content)
            self.logger.info("Generating RSS feed")
        except (IOError, OSError) as e:
            self.logger.error(f"Failed to write RSS feed file {rss_file}: {e}")
            return False
        return True

    def generate_xml_sitemap(self):
        """Generate XML sitemap covering every page."""
        sitemap_content = '''<?xml version="1.0" encoding="UTF-8"?>
<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">
'''
        for record in sorted(self.records, key=lambda r: r['path']):
            lastmod = (parse_iso_date(record.get('date_updated'))
                       or parse_iso_date(record.get('date_published'))
                       or datetime.now())
            sitemap_content += self.format_xml_sitemap_entry(self.page_url(record), lastmod)
        sitemap_content += '</urlset>'

        sitemap_file = os.path.join(self.output_dir, 'sitemap.xml')
        try:
            with open(sitemap_file, 'w', encoding='utf-8') as f:
                f.write(sitemap_content)
            self.logger.info("Generating XML sitemap")
        except (IOError, OSError) as e:
            self.logger.error(f"Failed to write sitemap file {sitemap_file}: {e}")
            return False
        return True

    def format_xml_sitemap_entry(self, url, lastmod):
        """Format a single sitemap entry."""
        return f'''<url>
<loc>{escape(url)}</loc>
<lastmod>{lastmod.strftime('%Y-%m-%d')}</lastmod>
</url>
'''
