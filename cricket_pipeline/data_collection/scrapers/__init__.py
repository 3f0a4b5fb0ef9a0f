"""
Data Collection Scrapers Package

One extractor per data kind plus the refresh orchestrator. Import concrete
scrapers from their modules directly, e.g.:

    from cricket_pipeline.data_collection.scrapers.points_table_scraper import PointsTableScraper
"""

__all__ = []
