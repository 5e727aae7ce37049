"""Test configuration and fixtures for Notepress tests."""

import pytest
import tempfile
import shutil
import logging
from pathlib import Path
from PIL import Image


@pytest.fixture(autouse=True)
def reset_notepress_logger():
    """Drop handlers added by Notepress so each test starts from a clean logger."""
    yield
    logger = logging.getLogger('Notepress')
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_dir = tempfile.mkdtemp()
    yield temp_dir
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def mock_pages_dir(temp_dir):
    """Create a pages directory with HTML and Markdown articles."""
    pages_dir = Path(temp_dir) / 'pages'
    nested_dir = pages_dir / 'nested'
    nested_dir.mkdir(parents=True)

    (pages_dir / 'first-post.html').write_text("""<!--
title: First Post
date_published: 2024-10-08
date_updated: 2024-10-09
tags: python, web
-->
<h2>Hello</h2>
<pre><code class="language-python">print(&quot;hi&quot;)</code></pre>
""", encoding='utf-8')

    (nested_dir / 'second.md').write_text("""<!--
title: Second Post
date_published: 2024-11-01
tags: Python
-->
# Heading

```python
x = 1
```
""", encoding='utf-8')

    (pages_dir / 'draft_notes.html').write_text("<p>No metadata here.</p>\n", encoding='utf-8')

    return str(pages_dir)


@pytest.fixture
def mock_notes_dir(temp_dir):
    """Create a notes directory with rankings and quotes."""
    notes_dir = Path(temp_dir) / 'notes'
    notes_dir.mkdir()

    (notes_dir / 'ZeldaRankings.txt').write_text(
        "  Breath of the Wild  \n\nOcarina of Time\n", encoding='utf-8'
    )
    (notes_dir / 'MarioRankings.txt').write_text("Super Mario 64\n", encoding='utf-8')
    (notes_dir / 'Quotes.txt').write_text(
        "Simplicity is prerequisite for reliability.\n\n  Less is more.\n", encoding='utf-8'
    )
    (notes_dir / 'Shopping.txt').write_text("milk\n", encoding='utf-8')

    return str(notes_dir)


@pytest.fixture
def mock_gallery_dir(temp_dir):
    """Create a gallery directory with one album, an empty album and a loose image."""
    gallery_dir = Path(temp_dir) / 'gallery'
    album_dir = gallery_dir / 'summer_trip'
    album_dir.mkdir(parents=True)
    (gallery_dir / 'empty').mkdir()

    Image.new('RGB', (800, 600), color='red').save(album_dir / 'beach.png', 'PNG')
    Image.new('RGB', (300, 900), color='blue').save(album_dir / 'cliff.jpg', 'JPEG')
    Image.new('RGB', (10, 10), color='green').save(gallery_dir / 'loose.png', 'PNG')

    return str(gallery_dir)


@pytest.fixture
def mock_templates_dir(temp_dir):
    """Create a templates directory with a minimal page template."""
    templates_dir = Path(temp_dir) / 'templates'
    templates_dir.mkdir()

    (templates_dir / 'template.html').write_text("""<!DOCTYPE html>
<html>
<head><title>{{ title }}</title></head>
<body>
{{ nav }}
<main data-section="{{ section }}">{{ content }}</main>
{% for tag in tag_links %}<a class="tag" href="{{ tag.href }}">{{ tag.name }}</a>{% endfor %}
<footer data-root="{{ relative_path }}">{{ date_updated or '' }}</footer>
</body>
</html>""", encoding='utf-8')

    return str(templates_dir)


@pytest.fixture
def mock_output_dir(temp_dir):
    """Create a mock output directory."""
    output_dir = Path(temp_dir) / 'output'
    output_dir.mkdir()
    return str(output_dir)


@pytest.fixture
def mock_assets_dir(temp_dir):
    """Create an assets directory with a stylesheet."""
    assets_dir = Path(temp_dir) / 'assets' / 'css'
    assets_dir.mkdir(parents=True)
    (assets_dir / 'style.css').write_text("body { color: black; }\n", encoding='utf-8')
    return str(assets_dir.parent)
