"""
Test suite for PathResolver component
Following TDD approach with AAA pattern and descriptive naming
"""

import pytest
from pathlib import Path
from unittest.mock import patch
from enigma_export.path_resolver import PathResolver


class TestPathResolver:
    """Test suite for default destination derivation"""

    def test_resolve_joins_url_path_under_base_directory(self, tmp_path):
        """
        Test that the export URL's path becomes a relative path under base
        """
        # Arrange
        resolver = PathResolver(tmp_path)

        # Act
        result = resolver.resolve('https://exports.enigma.io/exports/abc123.csv.gz?sig=xyz')

        # Assert
        assert result == tmp_path / 'exports' / 'abc123.csv.gz'

    def test_resolve_without_base_directory_uses_home(self, tmp_path):
        """
        Test that the home directory is the default base
        """
        # Arrange
        with patch.object(Path, 'home', return_value=tmp_path):
            resolver = PathResolver()

        # Act
        result = resolver.resolve('https://exports.enigma.io/abc.csv.gz')

        # Assert
        assert result == tmp_path / 'abc.csv.gz'

    @pytest.mark.parametrize('url', [
        'https://exports.enigma.io',
        'https://exports.enigma.io/',
        'https://exports.enigma.io/exports/',
    ])
    def test_resolve_without_file_name_raises_value_error(self, tmp_path, url):
        """
        Test that URLs without a file component are rejected
        """
        # Arrange
        resolver = PathResolver(tmp_path)

        # Act & Assert
        with pytest.raises(ValueError):
            resolver.resolve(url)

    def test_resolve_rejects_parent_directory_segments(self, tmp_path):
        """
        Test that URL paths cannot escape the base directory
        """
        # Arrange
        resolver = PathResolver(tmp_path)

        # Act & Assert
        with pytest.raises(ValueError):
            resolver.resolve('https://exports.enigma.io/../../etc/passwd')
