import os
import html
import shutil
import logging
from urllib.parse import quote
from PIL import Image, ImageOps, UnidentifiedImageError

from .navigation import SECTION_GALLERY, slugify
from .formatters import modified_date

IMAGE_EXTENSIONS = ('.jpg', '.jpeg', '.png', '.gif', '.webp', '.bmp', '.tiff')
GALLERY_DIR = 'gallery'
# Album slugs that would land on the gallery listing page.
RESERVED_SLUGS = ('index',)


def album_title(dirname):
    """'summer_trip-2024' -> 'Summer Trip 2024'."""
    return dirname.replace('-', ' ').replace('_', ' ').strip().title() or 'Album'


def album_slug_for(dirname):
    """Slug for an album page, kept clear of the gallery listing path."""
    slug = slugify(dirname)
    if slug in RESERVED_SLUGS:
        slug = f"{slug}-album"
    return slug


def thumbnail_name(image_name):
    """'photo.JPG' -> 'photo-jpg.webp', so same-stem images get distinct thumbnails."""
    stem, ext = os.path.splitext(image_name)
    return f"{stem}-{ext.lstrip('.').lower()}.webp"


def list_images(directory):
    """Image files directly inside a directory, ordered by file name."""
    try:
        names = os.listdir(directory)
    except OSError:
        return []
    return sorted(
        os.path.join(directory, name) for name in names
        if name.lower().endswith(IMAGE_EXTENSIONS) and os.path.isfile(os.path.join(directory, name))
    )


class GalleryProcessor:
    """Copy album images into the site, make thumbnails and build album pages."""

    def __init__(self, gallery_dir, output_dir, thumbnail_size=400):
        self.gallery_dir = gallery_dir
        self.output_dir = output_dir
        self.thumbnail_size = max(1, int(thumbnail_size))
        self.logger = logging.getLogger('Notepress.gallery')

    def find_albums(self):
        """Immediate subdirectories of the gallery root that contain images."""
        if not os.path.isdir(self.gallery_dir):
            return []
        albums = []
        for name in sorted(os.listdir(self.gallery_dir)):
            path = os.path.join(self.gallery_dir, name)
            if os.path.isdir(path) and not name.startswith('.') and list_images(path):
                albums.append(path)
        return albums

    def make_thumbnail(self, image_path, thumb_path):
        """Write a WebP thumbnail and return its (width, height)."""
        with Image.open(image_path) as img:
            img.seek(0)
            thumb = ImageOps.exif_transpose(img)
        if thumb.mode not in ('RGB', 'RGBA'):
            has_alpha = 'A' in thumb.getbands() or 'transparency' in thumb.info
            thumb = thumb.convert('RGBA' if has_alpha else 'RGB')
        thumb.thumbnail((self.thumbnail_size, self.thumbnail_size))
        thumb.save(thumb_path, 'WEBP')
        return thumb.size

    def process_image(self, image_path, album_output_dir, album_slug):
        """Copy one image and thumbnail it; returns the <figure> markup or None."""
        name = os.path.basename(image_path)
        stem = os.path.splitext(name)[0]
        thumbs_dir = os.path.join(album_output_dir, 'thumbs')
        thumb_name = thumbnail_name(name)
        thumb_path = os.path.join(thumbs_dir, thumb_name)
        try:
            os.makedirs(thumbs_dir, exist_ok=True)
            width, height = self.make_thumbnail(image_path, thumb_path)
            shutil.copy2(image_path, os.path.join(album_output_dir, name))
        except (UnidentifiedImageError, IOError, OSError, ValueError) as e:
            self.logger.error(f"Failed to process image {image_path}: {e}")
            return None

        self.logger.debug(f"Copied image {image_path} with thumbnail {thumb_path}")
        original_href = f"{album_slug}/{quote(name)}"
        thumb_href = f"{album_slug}/thumbs/{quote(thumb_name)}"
        caption = html.escape(stem)
        return (
            f'<figure><a href="{original_href}">'
            f'<img src="{thumb_href}" width="{width}" height="{height}" alt="{caption}" loading="lazy">'
            f'</a><figcaption>{caption}</figcaption></figure>'
        )

    def format_album(self, directory):
        """Build the page record for one image directory."""
        dirname = os.path.basename(os.path.normpath(directory))
        album_slug = album_slug_for(dirname)
        album_output_dir = os.path.join(self.output_dir, GALLERY_DIR, album_slug)
        os.makedirs(album_output_dir, exist_ok=True)

        images = list_images(directory)
        figures = []
        for image_path in images:
            figure = self.process_image(image_path, album_output_dir, album_slug)
            if figure:
                figures.append(figure)

        dates = [modified_date(path) for path in images]
        return {
            'title': album_title(dirname),
            'date_published': None,
            'date_updated': max(dates) if dates else None,
            'tags': [],
            'content': '<div class="gallery">' + '\n'.join(figures) + '</div>',
            'path': f"{GALLERY_DIR}/{album_slug}.html",
            'section': SECTION_GALLERY,
            'source': directory,
            'image_count': len(figures),
        }
