"""Exception hierarchy shared by the scrape pipeline and the metadata loader."""

from __future__ import annotations


class ExporterError(Exception):
    """Root of every error the exporter raises on purpose."""


class ScrapeError(ExporterError):
    """A single scrape could not produce a metric set."""


class UpstreamUnreachable(ScrapeError):
    """Connection failure or timeout while talking to the stat endpoint."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"{url} unreachable: {reason}")
        self.url = url
        self.reason = reason


class UpstreamError(ScrapeError):
    """The stat endpoint answered with a non-success status."""

    def __init__(self, url: str, status_code: int) -> None:
        super().__init__(f"{url} returned HTTP {status_code}")
        self.url = url
        self.status_code = status_code


class MalformedDocument(ScrapeError):
    """The status document violates the nginx-rtmp stat schema."""

    def __init__(self, message: str, path: str = "") -> None:
        super().__init__(f"{path}: {message}" if path else message)
        self.path = path
