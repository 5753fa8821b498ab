#!/usr/bin/env python3
"""nginx-rtmp-exporter: Prometheus exporter for nginx-rtmp ``/stat`` pages.

Usage:
    python exporter.py --scrape-url http://nginx/stat                 # defaults, port 9114
    python exporter.py --scrape-url http://nginx/stat --metadata meta.toml --format toml
    python exporter.py -c exporter.yaml --port 9200                   # config file + override

Send SIGHUP to reload the metadata file without restarting.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import httpx
import uvicorn
import yaml
from fastapi import FastAPI
from fastapi.responses import PlainTextResponse, Response

from exposition import CONTENT_TYPE, EXPORTER_VERSION, scrape
from overlay import FORMATS, MetadataError, OverlayStore
from rtmp import ScrapeError
from rtmp.fetcher import DEFAULT_TIMEOUT

logger = logging.getLogger("nginx_rtmp_exporter")


# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

class ConfigError(Exception):
    """Startup configuration is missing or invalid."""


@dataclass(frozen=True)
class ExporterConfig:
    scrape_url: str
    host: str = "127.0.0.1"
    port: int = 9114
    metadata: Path | None = None
    format: str = "json"
    timeout: float = DEFAULT_TIMEOUT
    log_level: str = "info"


CONFIG_KEYS = ("scrape_url", "host", "port", "metadata", "format", "timeout", "log_level")
LOG_LEVELS = ("debug", "info", "warning", "error")


def load_config_file(path: Path) -> dict[str, Any]:
    """Parse an exporter.yaml file into a dict of known keys."""
    try:
        with open(path) as f:
            raw = yaml.safe_load(f) or {}
    except OSError as e:
        raise ConfigError(f"cannot read config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML in {path}: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigError(f"{path}: top level must be a mapping")
    unknown = sorted(set(raw) - set(CONFIG_KEYS))
    if unknown:
        raise ConfigError(f"{path}: unknown keys: {', '.join(unknown)}")
    return raw


def build_config(file_values: dict[str, Any], overrides: dict[str, Any]) -> ExporterConfig:
    """Merge config file values with CLI flags (flags win) and validate."""
    merged = {**file_values, **{k: v for k, v in overrides.items() if v is not None}}
    if not merged.get("scrape_url"):
        raise ConfigError("scrape_url is required (--scrape-url or config file)")
    scrape_url = str(merged["scrape_url"])
    try:
        url = httpx.URL(scrape_url)
    except httpx.InvalidURL as e:
        raise ConfigError(f"invalid scrape_url {scrape_url!r}: {e}") from e
    if url.scheme not in ("http", "https") or not url.host:
        raise ConfigError(f"scrape_url must be an http:// or https:// URL: {scrape_url!r}")

    fmt = str(merged.get("format", "json")).lower()
    if fmt not in FORMATS:
        raise ConfigError(f"format must be one of: {', '.join(FORMATS)}")

    log_level = str(merged.get("log_level", "info")).lower()
    if log_level not in LOG_LEVELS:
        raise ConfigError(f"log_level must be one of: {', '.join(LOG_LEVELS)}")

    try:
        port = int(merged.get("port", 9114))
        timeout = float(merged.get("timeout", DEFAULT_TIMEOUT))
    except (TypeError, ValueError) as e:
        raise ConfigError(f"invalid number in config: {e}") from e
    if not 0 < port < 65536:
        raise ConfigError(f"port out of range: {port}")
    if timeout <= 0:
        raise ConfigError(f"timeout must be positive: {timeout}")

    metadata = merged.get("metadata")
    return ExporterConfig(
        scrape_url=scrape_url,
        host=str(merged.get("host", "127.0.0.1")),
        port=port,
        metadata=Path(metadata) if metadata else None,
        format=fmt,
        timeout=timeout,
        log_level=log_level,
    )


# ---------------------------------------------------------------------------
# Shared state: configuration and the current metadata overlay
# ---------------------------------------------------------------------------

_config: ExporterConfig | None = None
_store: OverlayStore = OverlayStore()


def configure(config: ExporterConfig, store: OverlayStore) -> None:
    global _config, _store
    _config = config
    _store = store


def _reload_overlay() -> None:
    try:
        _store.reload()
    except MetadataError as e:
        logger.error("metadata reload failed, keeping previous overlay: %s", e)
    else:
        logger.info("metadata reloaded from %s", _store.path)


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Install the SIGHUP reload handler for the lifetime of the server."""
    loop = asyncio.get_running_loop()
    hup = getattr(signal, "SIGHUP", None)
    installed = False
    if hup is not None and _store.path is not None:
        try:
            loop.add_signal_handler(hup, _reload_overlay)
            installed = True
        except (NotImplementedError, RuntimeError, ValueError) as e:
            logger.warning("SIGHUP reload unavailable: %s", e)
    yield
    if installed:
        loop.remove_signal_handler(hup)


app = FastAPI(title="nginx-rtmp-exporter", lifespan=lifespan)


@app.get("/", response_class=PlainTextResponse)
async def index():
    return f"nginx-rtmp-exporter {EXPORTER_VERSION}\nMetrics are served at /metrics\n"


@app.get("/metrics")
async def metrics():
    """Scrape nginx-rtmp and return the exposition payload, or 502 with no body."""
    if _config is None:
        logger.error("metrics requested before the exporter was configured")
        return Response(status_code=503)
    try:
        payload = await scrape(_config.scrape_url, _store.current, timeout=_config.timeout)
    except ScrapeError as e:
        logger.error("scrape failed: %s", e)
        return Response(status_code=502)
    return Response(content=payload, media_type=CONTENT_TYPE)


# ---------------------------------------------------------------------------
# CLI entrypoint
# ---------------------------------------------------------------------------

def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Prometheus exporter for NGINX servers running the nginx-rtmp-module",
    )
    parser.add_argument("-c", "--config", help="Path to an exporter.yaml config file")
    parser.add_argument("--scrape-url", help="The RTMP statistics endpoint of NGINX")
    parser.add_argument("--host", help="Bind address (default: 127.0.0.1)")
    parser.add_argument("-p", "--port", type=int, help="Port (default: 9114)")
    parser.add_argument("--metadata", help="Optional path to a metadata file")
    parser.add_argument("--format", choices=FORMATS, help="Metadata file format (default: json)")
    parser.add_argument("--timeout", type=float, help=f"Upstream timeout in seconds (default: {DEFAULT_TIMEOUT})")
    parser.add_argument("--log-level", choices=LOG_LEVELS,
                        help="Log level (default: info)")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    overrides = {k: getattr(args, k) for k in CONFIG_KEYS}

    try:
        file_values = load_config_file(Path(args.config)) if args.config else {}
        config = build_config(file_values, overrides)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    logger.info("nginx-rtmp-exporter v%s", EXPORTER_VERSION)

    store = OverlayStore(config.metadata, config.format)
    try:
        store.reload()
    except MetadataError as e:
        logger.error("failed to load metadata: %s", e)
        sys.exit(1)
    configure(config, store)

    logger.info("scraping %s, listening on http://%s:%d", config.scrape_url, config.host, config.port)
    uvicorn.run(app, host=config.host, port=config.port, log_level=config.log_level)


if __name__ == "__main__":
    main()
