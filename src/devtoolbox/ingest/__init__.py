"""devtoolbox ingest pipeline: repository, web and file producers."""

from devtoolbox.ingest.base import BaseFetcher, IngestError
from devtoolbox.ingest.files import FileReader
from devtoolbox.ingest.github import GitHubFetcher
from devtoolbox.ingest.pipeline import ingest, make_fetcher, refresh_source
from devtoolbox.ingest.web import SsrfError, WebFetcher

__all__ = [
    "BaseFetcher",
    "FileReader",
    "GitHubFetcher",
    "IngestError",
    "SsrfError",
    "WebFetcher",
    "ingest",
    "make_fetcher",
    "refresh_source",
]
