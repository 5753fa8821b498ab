from .errors import ExporterError, MalformedDocument, ScrapeError, UpstreamError, UpstreamUnreachable
from .fetcher import fetch_status
from .models import Application, BuildInfo, Client, Server, StatusDocument, Stream, Traffic
from .parser import parse_status

__all__ = [
    "ExporterError",
    "ScrapeError",
    "UpstreamUnreachable",
    "UpstreamError",
    "MalformedDocument",
    "fetch_status",
    "parse_status",
    "StatusDocument",
    "BuildInfo",
    "Traffic",
    "Server",
    "Application",
    "Stream",
    "Client",
]
