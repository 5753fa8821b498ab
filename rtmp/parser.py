"""Parse the nginx-rtmp ``/stat`` XML document into :mod:`rtmp.models`.

Known elements are decoded strictly; anything not on the allow-list of a
container is skipped so that newer nginx-rtmp builds (or forks adding extra
elements) keep working.
"""

from __future__ import annotations

import math
from xml.etree.ElementTree import Element, ParseError

from defusedxml import DefusedXmlException
from defusedxml import ElementTree

from .errors import MalformedDocument
from .models import Application, BuildInfo, Client, Server, StatusDocument, Stream, Traffic

ROOT_TAG = "rtmp"


def _find_text(elem: Element, tag: str, path: str, required: bool = True) -> str | None:
    child = elem.find(tag)
    if child is None:
        if required:
            raise MalformedDocument(f"missing <{tag}>", path)
        return None
    return (child.text or "").strip()


def _unsigned(elem: Element, tag: str, path: str, required: bool = True) -> int | None:
    raw = _find_text(elem, tag, path, required)
    if raw is None:
        return None
    try:
        value = int(raw)
    except ValueError:
        raise MalformedDocument(f"<{tag}> is not an integer: {raw!r}", path) from None
    if value < 0:
        raise MalformedDocument(f"<{tag}> is negative: {value}", path)
    return value


def _signed(elem: Element, tag: str, path: str) -> int | None:
    raw = _find_text(elem, tag, path, required=False)
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        raise MalformedDocument(f"<{tag}> is not an integer: {raw!r}", path) from None


def _rate(elem: Element, tag: str, path: str) -> float:
    """Bandwidth in bits per second; nginx reports integers but floats are accepted."""
    raw = _find_text(elem, tag, path)
    try:
        value: float = int(raw)
    except ValueError:
        try:
            value = float(raw)
        except ValueError:
            raise MalformedDocument(f"<{tag}> is not a number: {raw!r}", path) from None
    if not math.isfinite(value) or value < 0:
        raise MalformedDocument(f"<{tag}> is not a non-negative rate: {raw!r}", path)
    return value


def _traffic(elem: Element, path: str) -> Traffic:
    return Traffic(
        bytes_in=_unsigned(elem, "bytes_in", path),
        bytes_out=_unsigned(elem, "bytes_out", path),
        bw_in=_rate(elem, "bw_in", path),
        bw_out=_rate(elem, "bw_out", path),
    )


def _parse_client(elem: Element, path: str) -> Client:
    return Client(
        id=_unsigned(elem, "id", path),
        avsync=_signed(elem, "avsync", path),
        publishing=elem.find("publishing") is not None,
    )


def _has_audio(stream: Element) -> bool:
    # nginx-rtmp always writes <audio>, but leaves it empty until it has seen an audio header
    audio = stream.find("meta/audio")
    return audio is not None and len(audio) > 0


def _parse_stream(elem: Element, path: str) -> Stream:
    name = _find_text(elem, "name", path)
    path = f"{path}/stream[{name}]"
    clients = tuple(
        _parse_client(c, f"{path}/client[{i}]") for i, c in enumerate(elem.findall("client"))
    )
    nclients = _unsigned(elem, "nclients", path, required=False)
    return Stream(
        name=name,
        traffic=_traffic(elem, path),
        bw_audio=_rate(elem, "bw_audio", path),
        bw_video=_rate(elem, "bw_video", path),
        nclients=len(clients) if nclients is None else nclients,
        has_audio=_has_audio(elem),
        clients=clients,
    )


def _parse_application(elem: Element, path: str) -> Application:
    name = _find_text(elem, "name", path)
    path = f"{path}/application[{name}]"
    streams: list[Stream] = []
    # <live> is absent for vod-only applications
    for live in elem.findall("live"):
        streams.extend(_parse_stream(s, path) for s in live.findall("stream"))
    return Application(name=name, streams=tuple(streams))


def _parse_server(elem: Element, index: int) -> Server:
    path = f"/rtmp/server[{index}]"
    return Server(
        applications=tuple(_parse_application(a, path) for a in elem.findall("application"))
    )


def parse_status(raw: bytes | str) -> StatusDocument:
    """Decode one ``/stat`` response body.

    Raises:
        MalformedDocument: the body is not XML, the root is not ``<rtmp>``, a
            required element is missing or a numeric element does not hold a
            valid value.
    """
    try:
        root = ElementTree.fromstring(raw)
    except (ParseError, DefusedXmlException) as e:
        raise MalformedDocument(f"invalid XML: {e}") from e

    if root.tag != ROOT_TAG:
        raise MalformedDocument(f"unexpected root element <{root.tag}>")

    path = "/rtmp"
    build = BuildInfo(
        nginx_version=_find_text(root, "nginx_version", path, required=False) or "",
        rtmp_version=_find_text(root, "nginx_rtmp_version", path, required=False) or "",
        compiler=_find_text(root, "compiler", path, required=False) or "",
    )
    return StatusDocument(
        build=build,
        traffic=_traffic(root, path),
        servers=tuple(_parse_server(s, i) for i, s in enumerate(root.findall("server"))),
        uptime=_unsigned(root, "uptime", path, required=False),
        naccepted=_unsigned(root, "naccepted", path, required=False),
    )
