#!/usr/bin/env python3
"""
Configuration settings for taxonomy builds.

Limits guard the HTTP layer against oversized imports; the engine itself has
no limits. Every value can be overridden through environment variables.
"""

import logging

from .env_utils import read_flag, read_limit, read_origins

logger = logging.getLogger(__name__)


class TaxonomyConfig:
    """Taxonomy build configuration.

    Defaults fit a large organization's framework import (a few thousand
    requirements) with headroom. Values are read at import time; call
    ``TaxonomyConfig.reload()`` after changing the environment.
    """

    # Spreadsheet data rows accepted by a single labeled build
    MAX_IMPORT_ROWS = read_limit("TAXONOMY_MAX_IMPORT_ROWS", 20000)

    # Entities plus leaf items accepted by a single referenced build
    MAX_ENTITIES = read_limit("TAXONOMY_MAX_ENTITIES", 50000)

    # Import preview opens with every root expanded
    EXPAND_ROOTS_BY_DEFAULT = read_flag("TAXONOMY_EXPAND_ROOTS", True)

    CORS_ORIGINS = read_origins("CORS_ORIGINS", ["http://localhost:3000"])

    @classmethod
    def reload(cls) -> None:
        """Re-read every setting from the environment."""
        cls.MAX_IMPORT_ROWS = read_limit("TAXONOMY_MAX_IMPORT_ROWS", 20000)
        cls.MAX_ENTITIES = read_limit("TAXONOMY_MAX_ENTITIES", 50000)
        cls.EXPAND_ROOTS_BY_DEFAULT = read_flag("TAXONOMY_EXPAND_ROOTS", True)
        cls.CORS_ORIGINS = read_origins("CORS_ORIGINS", ["http://localhost:3000"])
        logger.debug(
            f"Taxonomy config reloaded: rows={cls.MAX_IMPORT_ROWS}, entities={cls.MAX_ENTITIES}"
        )

    @classmethod
    def get_limit(cls, kind: str) -> int:
        """Get the size limit for a build kind.

        Args:
            kind: One of 'labeled', 'referenced'

        Returns:
            Maximum number of input records for this kind of build
        """
        limits = {
            "labeled": cls.MAX_IMPORT_ROWS,
            "referenced": cls.MAX_ENTITIES,
        }
        return limits.get(kind, 1000)  # Default fallback


# Singleton instance
taxonomy_config = TaxonomyConfig()
