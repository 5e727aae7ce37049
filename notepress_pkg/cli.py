#!/usr/bin/env python3
"""
Command-line interface for Notepress - static site generator.
"""

import os
import sys
import time
import shutil
import argparse
from typing import List, Optional
from . import __version__
from .core import Notepress, package_path
from .settings import NotepressSettings

SAMPLE_ARTICLE = """<!--
title: Hello, Notepress
date_published: 2024-10-08
tags: meta, getting started
-->
<p>This is your first article. Everything below the comment block is the body.</p>
<pre><code class="language-python">print("highlighted with Pygments")
</code></pre>
"""

SAMPLE_RANKINGS = """Breath of the Wild
Ocarina of Time
Majora's Mask
"""

SAMPLE_QUOTES = """Simplicity is prerequisite for reliability.
Make it work, make it right, make it fast.
"""


def _write_if_missing(path: str, content: str) -> None:
    if os.path.exists(path):
        print(f"File already exists: {os.path.relpath(path)}")
        return
    with open(path, 'w', encoding='utf-8') as f:
        f.write(content)
    print(f"Created file: {os.path.relpath(path)}")


def create_starter_structure() -> None:
    """Create complete starter structure with template, content, and assets."""
    current_dir = os.getcwd()

    directories = ['templates', 'pages', 'notes', 'gallery', 'assets/css']
    for directory in directories:
        dir_path = os.path.join(current_dir, directory)
        if os.path.exists(dir_path):
            print(f"Directory already exists: {directory}")
        else:
            os.makedirs(dir_path, exist_ok=True)
            print(f"Created directory: {directory}")

    # Copy bundled template and stylesheet
    try:
        for source_dir, dest_dir, extension in [
            (package_path('templates'), os.path.join(current_dir, 'templates'), '.html'),
            (package_path('assets', 'css'), os.path.join(current_dir, 'assets', 'css'), '.css'),
        ]:
            for filename in os.listdir(source_dir):
                if not filename.endswith(extension):
                    continue
                dest_path = os.path.join(dest_dir, filename)
                if os.path.exists(dest_path):
                    print(f"File already exists: {os.path.relpath(dest_path)}")
                else:
                    shutil.copy2(os.path.join(source_dir, filename), dest_path)
                    print(f"Created file: {os.path.relpath(dest_path)}")
    except OSError as e:
        print(f"Warning: Could not copy bundled files: {e}")

    _write_if_missing(os.path.join(current_dir, 'pages', 'hello-notepress.html'), SAMPLE_ARTICLE)
    _write_if_missing(os.path.join(current_dir, 'notes', 'ZeldaRankings.txt'), SAMPLE_RANKINGS)
    _write_if_missing(os.path.join(current_dir, 'notes', 'Quotes.txt'), SAMPLE_QUOTES)

    print("\nStarter structure created successfully!")
    print("\nNext steps:")
    print("1. Edit the configuration file (notepress.yml)")
    print("2. Add articles to 'pages/', rankings and quotes to 'notes/', albums to 'gallery/'")
    print("3. Run 'notepress' to build your site")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Notepress - Static Site Generator')
    parser.add_argument('--output', type=str,
                        help='Output directory for generated site')
    parser.add_argument('--pages', type=str,
                        help='Directory containing articles (*.html, *.md)')
    parser.add_argument('--notes', type=str,
                        help='Directory containing *Rankings.txt and the quotes file')
    parser.add_argument('--gallery', type=str,
                        help='Directory containing one subdirectory per image album')
    parser.add_argument('--templates', type=str,
                        help='Templates directory')
    parser.add_argument('--template', type=str,
                        help='Page template file name inside the templates directory')
    parser.add_argument('--assets', type=str,
                        help='Assets directory to copy to output')
    parser.add_argument('--site-title', type=str, help='Site title')
    parser.add_argument('--site-url', type=str,
                        help='Site URL for the RSS feed and sitemap')
    parser.add_argument('--highlight-style', type=str,
                        help='Pygments style used for code blocks')
    parser.add_argument('--thumbnail-size', type=int,
                        help='Bounding box in pixels for gallery thumbnails')
    parser.add_argument('--workers', type=int,
                        help='Maximum worker threads for large builds')
    parser.add_argument('--init', type=str, choices=['yml', 'yaml', 'json'],
                        help='Create a sample configuration file and starter structure')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)

    # Handle init command
    if args.init:
        settings_loader = NotepressSettings()
        config_path = settings_loader.create_sample_config(args.init)
        print(f"Created sample configuration file: {config_path}")

        print("\nCreating starter project structure...")
        create_starter_structure()
        return

    # Load settings from configuration file
    settings_loader = NotepressSettings()
    settings_loader.load_settings()

    # Command line arguments take precedence
    args_dict = {k: v for k, v in vars(args).items() if v is not None and k != 'init'}
    final_settings = settings_loader.merge_with_args(args_dict)

    output_dir = os.path.expanduser(final_settings['output'])

    overall_start_time = time.time()

    try:
        generator = Notepress(
            pages_dir=final_settings['pages'],
            notes_dir=final_settings['notes'],
            gallery_dir=final_settings['gallery'],
            templates_dir=final_settings['templates'],
            template_name=final_settings['template'],
            output_dir=output_dir,
            assets_dir=final_settings['assets'],
            quotes_file=final_settings['quotes_file'],
            site_title=final_settings['site_title'],
            site_url=final_settings['site_url'],
            highlight_style=final_settings['highlight_style'],
            thumbnail_size=final_settings['thumbnail_size'],
            workers=final_settings['workers'],
            log_dir=final_settings['log_dir'],
        )

        generator.build()

        # Show build statistics
        total_time = time.time() - overall_start_time
        generator.logger.info(f"Site build completed in {total_time:.6f} seconds.")
        generator.logger.info(f"Total articles generated: {generator.articles_generated}")
        generator.logger.info(f"Total rankings generated: {generator.rankings_generated}")
        generator.logger.info(f"Total albums generated: {generator.albums_generated} ({generator.images_processed} images)")
        generator.logger.info(f"Total pages written: {generator.pages_written}")

    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
