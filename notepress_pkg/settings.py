#!/usr/bin/env python3
"""
Settings loader for Notepress static site generator.
Supports configuration from notepress.yml, notepress.yaml, or notepress.json files.
"""

import os
import json
import yaml
from typing import Dict, Any, Optional


class NotepressSettings:
    """Load and manage Notepress configuration settings."""

    # Default configuration
    DEFAULT_SETTINGS = {
        'output': 'output',
        'pages': 'pages',
        'notes': 'notes',
        'gallery': 'gallery',
        'templates': 'templates',
        'template': 'template.html',
        'assets': 'assets',
        'quotes_file': 'Quotes.txt',
        'site_title': None,
        'site_url': None,
        'highlight_style': 'default',
        'thumbnail_size': 400,
        'workers': None,
        'log_dir': 'logs',
    }

    # Config file names to look for (in order of preference)
    CONFIG_FILES = ['notepress.yml', 'notepress.yaml', 'notepress.json']

    def __init__(self, config_dir: str = None):
        """
        Initialize settings loader.

        Args:
            config_dir: Directory to look for config files. Defaults to current directory.
        """
        self.config_dir = config_dir or os.getcwd()
        self.settings = self.DEFAULT_SETTINGS.copy()
        self.config_file_path = None

    def load_settings(self) -> Dict[str, Any]:
        """
        Load settings from configuration file if it exists.

        Returns:
            Dictionary of configuration settings
        """
        config_file = self._find_config_file()

        if config_file:
            self.config_file_path = config_file
            try:
                loaded_settings = self._load_config_file(config_file)
                if loaded_settings:
                    if not isinstance(loaded_settings, dict):
                        raise ValueError("top level must be a mapping")
                    # Merge with defaults, giving preference to loaded settings
                    self.settings.update(loaded_settings)
                    print(f"Loaded configuration from: {os.path.relpath(config_file)}")
            except (ValueError, IOError) as e:
                print(f"Warning: Failed to load config file {config_file}: {e}")

        return self.settings.copy()

    def _find_config_file(self) -> Optional[str]:
        """
        Find the first available configuration file.

        Returns:
            Path to config file or None if not found
        """
        for filename in self.CONFIG_FILES:
            config_path = os.path.join(self.config_dir, filename)
            if os.path.exists(config_path):
                return config_path
        return None

    def _load_config_file(self, config_path: str) -> Dict[str, Any]:
        """
        Load configuration from a file.

        Args:
            config_path: Path to the configuration file

        Returns:
            Dictionary of configuration settings
        """
        file_ext = os.path.splitext(config_path)[1].lower()
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                if file_ext in ['.yml', '.yaml']:
                    return yaml.safe_load(f) or {}
                elif file_ext == '.json':
                    return json.load(f) or {}
                else:
                    raise ValueError(f"Unsupported config file format: {file_ext}")
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file {config_path}: {e}")
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in configuration file {config_path}: {e}")
        except (IOError, OSError) as e:
            raise IOError(f"Error reading configuration file {config_path}: {e}")

    def create_sample_config(self, file_format: str = 'yml') -> str:
        """
        Create a sample configuration file.

        Args:
            file_format: Format for config file ('yml', 'yaml', or 'json')

        Returns:
            Path to created sample config file
        """
        filename = f'notepress.{file_format}'
        config_path = os.path.join(self.config_dir, filename)
        if os.path.exists(config_path):
            print(f"Configuration file already exists: {filename}")
            return config_path

        sample_config = {
            'site_title': 'My Notes',
            'site_url': 'https://example.com',
            'output': 'output',
            'pages': 'pages',
            'notes': 'notes',
            'gallery': 'gallery',
            'templates': 'templates',
            'template': 'template.html',
            'assets': 'assets',
            'quotes_file': 'Quotes.txt',
            'highlight_style': 'default',
            'thumbnail_size': 400,
        }

        try:
            with open(config_path, 'w', encoding='utf-8') as f:
                if file_format in ['yml', 'yaml']:
                    f.write("# Notepress Configuration File\n\n")
                    f.write("# Site information\n")
                    f.write("site_title: My Notes\n")
                    f.write("site_url: https://example.com  # enables sitemap.xml and feed/index.xml\n\n")
                    f.write("# Content locations\n")
                    f.write("pages: pages        # articles (*.html, *.md), searched recursively\n")
                    f.write("notes: notes        # *Rankings.txt and the quotes file\n")
                    f.write("quotes_file: Quotes.txt\n")
                    f.write("gallery: gallery    # one subdirectory per album\n\n")
                    f.write("# Build settings\n")
                    f.write("output: output\n")
                    f.write("templates: templates\n")
                    f.write("template: template.html\n")
                    f.write("assets: assets\n")
                    f.write("highlight_style: default  # any Pygments style name\n")
                    f.write("thumbnail_size: 400\n")
                elif file_format == 'json':
                    json.dump(sample_config, f, indent=2)
                else:
                    raise ValueError(f"Unsupported config file format: {file_format}")
        except (IOError, OSError) as e:
            raise IOError(f"Error writing configuration file {config_path}: {e}")

        return config_path

    def merge_with_args(self, args_dict: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge configuration settings with command-line arguments.
        Command-line arguments take precedence over config file settings.

        Args:
            args_dict: Dictionary of command-line arguments

        Returns:
            Merged configuration dictionary
        """
        merged = self.settings.copy()

        # Override with non-None command line arguments
        for key, value in args_dict.items():
            if value is not None:
                merged[key] = value

        return merged
