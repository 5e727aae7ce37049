"""Tests for image directory processing."""

import os
from PIL import Image

import sys
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from notepress_pkg.gallery import GalleryProcessor, album_title, album_slug_for, list_images, thumbnail_name


class TestGallery:
    """Test cases for GalleryProcessor."""

    def test_album_title(self):
        """Test directory names become readable titles."""
        assert album_title('summer_trip-2024') == 'Summer Trip 2024'

    def test_list_images(self, mock_gallery_dir):
        """Test only image files are listed, sorted by name."""
        album = os.path.join(mock_gallery_dir, 'summer_trip')
        with open(os.path.join(album, 'notes.txt'), 'w') as f:
            f.write('not an image')
        names = [os.path.basename(p) for p in list_images(album)]
        assert names == ['beach.png', 'cliff.jpg']

    def test_find_albums(self, mock_gallery_dir, mock_output_dir):
        """Test empty directories and loose root images are not albums."""
        processor = GalleryProcessor(mock_gallery_dir, mock_output_dir)
        albums = processor.find_albums()
        assert [os.path.basename(a) for a in albums] == ['summer_trip']

    def test_find_albums_missing_root(self, temp_dir, mock_output_dir):
        """Test a missing gallery root yields no albums."""
        processor = GalleryProcessor(os.path.join(temp_dir, 'nope'), mock_output_dir)
        assert processor.find_albums() == []

    def test_format_album(self, mock_gallery_dir, mock_output_dir):
        """Test images are copied, thumbnailed and listed in the album page."""
        processor = GalleryProcessor(mock_gallery_dir, mock_output_dir, thumbnail_size=200)
        record = processor.format_album(os.path.join(mock_gallery_dir, 'summer_trip'))

        album_out = os.path.join(mock_output_dir, 'gallery', 'summer-trip')
        assert os.path.exists(os.path.join(album_out, 'beach.png'))
        assert os.path.exists(os.path.join(album_out, 'cliff.jpg'))

        with Image.open(os.path.join(album_out, 'thumbs', 'beach-png.webp')) as thumb:
            assert thumb.size == (200, 150)
        with Image.open(os.path.join(album_out, 'thumbs', 'cliff-jpg.webp')) as thumb:
            assert max(thumb.size) == 200

        assert record['title'] == 'Summer Trip'
        assert record['path'] == 'gallery/summer-trip.html'
        assert record['section'] == 'gallery'
        assert record['image_count'] == 2
        assert record['content'].startswith('<div class="gallery">')
        assert '<a href="summer-trip/beach.png">' in record['content']
        assert 'src="summer-trip/thumbs/beach-png.webp" width="200" height="150"' in record['content']
        assert record['content'].index('beach') < record['content'].index('cliff')

    def test_format_album_skips_broken_images(self, mock_gallery_dir, mock_output_dir):
        """Test files Pillow cannot open are skipped."""
        album = os.path.join(mock_gallery_dir, 'summer_trip')
        with open(os.path.join(album, 'broken.png'), 'wb') as f:
            f.write(b'not really a png')

        processor = GalleryProcessor(mock_gallery_dir, mock_output_dir)
        record = processor.format_album(album)

        assert record['image_count'] == 2
        assert 'broken' not in record['content']

    def test_small_images_are_not_upscaled(self, temp_dir, mock_output_dir):
        """Test thumbnails never exceed the original size."""
        album = os.path.join(temp_dir, 'tiny')
        os.makedirs(album)
        Image.new('RGBA', (20, 10), color=(0, 0, 0, 0)).save(os.path.join(album, 'dot.png'))

        processor = GalleryProcessor(temp_dir, mock_output_dir)
        record = processor.format_album(album)

        assert 'width="20" height="10"' in record['content']

    def test_palette_images_are_converted(self, temp_dir, mock_output_dir):
        """Test palette-mode GIFs still produce a thumbnail."""
        album = os.path.join(temp_dir, 'anim')
        os.makedirs(album)
        Image.new('P', (50, 50)).save(os.path.join(album, 'frame.gif'))

        processor = GalleryProcessor(temp_dir, mock_output_dir)
        record = processor.format_album(album)

        assert record['image_count'] == 1
        assert os.path.exists(os.path.join(mock_output_dir, 'gallery', 'anim', 'thumbs', 'frame-gif.webp'))

    def test_thumbnail_name_keeps_extension(self):
        """Test thumbnails are named after the full file name."""
        assert thumbnail_name('photo.JPG') == 'photo-jpg.webp'
        assert thumbnail_name('photo.png') == 'photo-png.webp'

    def test_same_stem_images_get_separate_thumbnails(self, temp_dir, mock_output_dir):
        """Test photo.jpg and photo.png in one album do not share a thumbnail."""
        album = os.path.join(temp_dir, 'trip')
        os.makedirs(album)
        Image.new('RGB', (30, 10), 'red').save(os.path.join(album, 'photo.jpg'))
        Image.new('RGB', (10, 30), 'blue').save(os.path.join(album, 'photo.png'))

        processor = GalleryProcessor(temp_dir, mock_output_dir)
        record = processor.format_album(album)

        thumbs = os.path.join(mock_output_dir, 'gallery', 'trip', 'thumbs')
        assert sorted(os.listdir(thumbs)) == ['photo-jpg.webp', 'photo-png.webp']
        assert 'src="trip/thumbs/photo-jpg.webp" width="30" height="10"' in record['content']
        assert 'src="trip/thumbs/photo-png.webp" width="10" height="30"' in record['content']

    def test_index_album_does_not_take_listing_path(self, temp_dir, mock_output_dir):
        """Test an album directory named index gets its own page path."""
        assert album_slug_for('Index') == 'index-album'
        assert album_slug_for('index_page') == 'index-page'

        album = os.path.join(temp_dir, 'index')
        os.makedirs(album)
        Image.new('RGB', (10, 10)).save(os.path.join(album, 'a.png'))

        record = GalleryProcessor(temp_dir, mock_output_dir).format_album(album)

        assert record['path'] == 'gallery/index-album.html'
        assert 'src="index-album/thumbs/a-png.webp"' in record['content']
        assert os.path.exists(os.path.join(mock_output_dir, 'gallery', 'index-album', 'a.png'))

    def test_exif_orientation_is_applied(self, temp_dir, mock_output_dir):
        """Test a photo tagged as rotated gets an upright thumbnail."""
        album = os.path.join(temp_dir, 'phone')
        os.makedirs(album)
        exif = Image.Exif()
        exif[0x0112] = 6
        Image.new('RGB', (40, 20)).save(os.path.join(album, 'portrait.jpg'), exif=exif)

        record = GalleryProcessor(temp_dir, mock_output_dir).format_album(album)

        assert 'width="20" height="40"' in record['content']
        thumb_path = os.path.join(mock_output_dir, 'gallery', 'phone', 'thumbs', 'portrait-jpg.webp')
        with Image.open(thumb_path) as thumb:
            assert thumb.size == (20, 40)
