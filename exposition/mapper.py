"""Map a parsed status document plus the metadata overlay to metric families.

``map_families`` is a pure function of its two arguments: no clock, no
registry, no state carried between scrapes.
"""

from __future__ import annotations

import platform
from importlib.metadata import PackageNotFoundError, version
from typing import Iterable, Sequence

from prometheus_client.core import CounterMetricFamily, GaugeMetricFamily, Metric

from overlay import MetadataOverlay
from rtmp.models import StatusDocument

try:
    EXPORTER_VERSION = version("nginx-rtmp-exporter")
except PackageNotFoundError:
    EXPORTER_VERSION = "0.0.0"

STREAM_LABELS = ("application", "stream")


class _FamilyBuilder:
    """Creates families that all carry the overlay's constant labels last."""

    def __init__(self, overlay: MetadataOverlay) -> None:
        self.const_names = list(overlay.global_fields)
        self.const_values = list(overlay.global_fields.values())

    def gauge(self, name: str, documentation: str, labels: Sequence[str] = ()) -> GaugeMetricFamily:
        return GaugeMetricFamily(name, documentation, labels=[*labels, *self.const_names])

    def counter(self, name: str, documentation: str, labels: Sequence[str] = ()) -> CounterMetricFamily:
        return CounterMetricFamily(name, documentation, labels=[*labels, *self.const_names])

    def add(self, family: Metric, label_values: Iterable[str], value: float) -> None:
        family.add_metric([*label_values, *self.const_values], value)


def _exporter_families(b: _FamilyBuilder, doc: StatusDocument, overlay: MetadataOverlay) -> list[Metric]:
    build = b.gauge(
        "nginx_rtmp_exporter_build_info",
        "A metric with constant value '1', labelled with nginx-rtmp-exporter's build information.",
        ["version", "python_version"],
    )
    b.add(build, [EXPORTER_VERSION, platform.python_version()], 1)
    families: list[Metric] = [build]

    if overlay.fields:
        fields = b.gauge(
            "nginx_rtmp_exporter_metadata_fields",
            "A metric with constant value '1', labelled with available metadata fields.",
            ["field"],
        )
        for name in overlay.fields:
            b.add(fields, [name], 1)
        families.append(fields)

    live = {s.name for _, s in doc.streams()}
    entries = overlay.entries(live)
    if entries:
        values = b.gauge(
            "nginx_rtmp_exporter_metadata_values",
            "A metric with constant value '1', labelled with available metadata values.",
            ["stream", "field", "value"],
        )
        for entry in entries:
            b.add(values, entry, 1)
        families.append(values)
    return families


def _server_families(b: _FamilyBuilder, doc: StatusDocument) -> list[Metric]:
    nginx_build = b.gauge(
        "nginx_build_info",
        "A metric with constant value '1', labelled with NGINX's build info.",
        ["version", "compiler", "rtmp_version"],
    )
    b.add(nginx_build, [doc.build.nginx_version, doc.build.compiler, doc.build.rtmp_version], 1)

    app_count = b.gauge(
        "nginx_rtmp_application_count",
        "A metric tracking the number of NGINX RTMP applications.",
    )
    b.add(app_count, [], len(doc.applications))

    active = b.gauge(
        "nginx_rtmp_active_streams",
        "A metric tracking the number of active RTMP streams.",
    )
    b.add(active, [], len(doc.streams()))

    # Resets in upstream counters are passed through untouched.
    bytes_in = b.counter(
        "nginx_rtmp_incoming_bytes_total",
        "A metric tracking the total number of incoming bytes processed.",
    )
    b.add(bytes_in, [], doc.traffic.bytes_in)

    bytes_out = b.counter(
        "nginx_rtmp_outgoing_bytes_total",
        "A metric tracking the total number of outgoing bytes processed.",
    )
    b.add(bytes_out, [], doc.traffic.bytes_out)

    bw_in = b.gauge(
        "nginx_rtmp_incoming_bandwidth",
        "A metric tracking the incoming bandwidth to the server.",
    )
    b.add(bw_in, [], doc.traffic.bw_in)

    bw_out = b.gauge(
        "nginx_rtmp_outgoing_bandwidth",
        "A metric tracking the outgoing bandwidth from the server.",
    )
    b.add(bw_out, [], doc.traffic.bw_out)

    families: list[Metric] = [nginx_build, app_count, active, bytes_in, bytes_out, bw_in, bw_out]

    # Only reported by nginx-rtmp builds that write <uptime> and <naccepted>.
    if doc.uptime is not None:
        uptime = b.gauge(
            "nginx_rtmp_uptime_seconds",
            "A metric tracking the number of seconds the NGINX worker has been running.",
        )
        b.add(uptime, [], doc.uptime)
        families.append(uptime)

    if doc.naccepted is not None:
        accepted = b.counter(
            "nginx_rtmp_accepted_connections_total",
            "A metric tracking the total number of accepted RTMP connections.",
        )
        b.add(accepted, [], doc.naccepted)
        families.append(accepted)

    return families


def _stream_families(b: _FamilyBuilder, doc: StatusDocument, overlay: MetadataOverlay) -> list[Metric]:
    labels = [*STREAM_LABELS, *overlay.fields]
    suffix = "labelled by stream, application and metadata fields."

    bytes_in = b.counter(
        "nginx_rtmp_stream_incoming_bytes_total",
        f"A metric tracking the total received bytes from a stream, {suffix}",
        labels,
    )
    bytes_out = b.counter(
        "nginx_rtmp_stream_outgoing_bytes_total",
        f"A metric tracking the total sent bytes by a given stream, {suffix}",
        labels,
    )
    bw_in = b.gauge(
        "nginx_rtmp_stream_incoming_bandwidth",
        f"A metric tracking the incoming bandwidth of a given stream, {suffix}",
        labels,
    )
    bw_out = b.gauge(
        "nginx_rtmp_stream_outgoing_bandwidth",
        f"A metric tracking the outgoing bandwidth of a given stream, {suffix}",
        labels,
    )
    bw_video = b.gauge(
        "nginx_rtmp_stream_bandwidth_video",
        f"A metric tracking the video bandwidth of a given stream, {suffix}",
        labels,
    )
    bw_audio = b.gauge(
        "nginx_rtmp_stream_bandwidth_audio",
        f"A metric tracking the audio bandwidth of a given stream, {suffix}",
        labels,
    )
    avsync = b.gauge(
        "nginx_rtmp_stream_publisher_avsync",
        f"A metric tracking the A-V sync value of a given stream, {suffix}",
        labels,
    )
    clients = b.gauge(
        "nginx_rtmp_stream_total_clients",
        f"A metric tracking the number of clients connected to a given stream, {suffix}",
        labels,
    )

    for app, stream in doc.streams():
        values = [app.name, stream.name, *overlay.values_for(stream.name)]
        b.add(bytes_in, values, stream.traffic.bytes_in)
        b.add(bytes_out, values, stream.traffic.bytes_out)
        b.add(bw_in, values, stream.traffic.bw_in)
        b.add(bw_out, values, stream.traffic.bw_out)
        b.add(bw_video, values, stream.bw_video)
        b.add(bw_audio, values, stream.bw_audio)
        b.add(clients, values, stream.nclients)
        if stream.publisher_avsync is not None:
            b.add(avsync, values, stream.publisher_avsync)

    return [bytes_in, bytes_out, bw_in, bw_out, bw_video, bw_audio, avsync, clients]


def map_families(doc: StatusDocument, overlay: MetadataOverlay) -> list[Metric]:
    """Build the complete, ordered metric family list for one scrape."""
    b = _FamilyBuilder(overlay)
    return [
        *_exporter_families(b, doc, overlay),
        *_server_families(b, doc),
        *_stream_families(b, doc, overlay),
    ]
