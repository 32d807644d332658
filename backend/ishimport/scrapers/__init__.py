"""Fetcher package: import all fetchers to trigger @register_source decorators."""

from ishimport.scrapers.osonish import OsonishFetcher  # noqa: F401
