"""
Status Parser Tests

Tests for turning the nginx-rtmp /stat XML into the typed status model.
"""
import pytest

from conftest import make_app, make_stat, make_stream
from rtmp import MalformedDocument, parse_status


def test_parses_realistic_stat_document(stat_xml):
    """The captured nginx-rtmp document decodes into the full model."""
    # Act
    doc = parse_status(stat_xml)

    # Assert - build and process info
    assert doc.build.nginx_version == "1.21.1"
    assert doc.build.rtmp_version == "1.1.4"
    assert doc.build.compiler == "gcc 10.2.1 20210110 (Debian 10.2.1-6)"
    assert doc.uptime == 3600
    assert doc.naccepted == 7

    # Assert - aggregate traffic
    assert doc.traffic.bytes_in == 987654321
    assert doc.traffic.bytes_out == 1234567890
    assert doc.traffic.bw_in == 4194304
    assert doc.traffic.bw_out == 8388608

    # Assert - applications and streams
    assert [a.name for a in doc.applications] == ["live", "vod"]
    assert [s.name for _, s in doc.streams()] == ["cam1", "cam2"]


def test_stream_fields_and_publisher(stat_xml):
    doc = parse_status(stat_xml)
    cam1, cam2 = doc.applications[0].streams

    assert cam1.traffic.bytes_in == 37500000
    assert cam1.bw_audio == 128000
    assert cam1.bw_video == 2372000
    assert cam1.nclients == 2
    assert len(cam1.clients) == 2
    assert cam1.publisher.id == 3
    assert cam1.publisher_avsync == -12

    # cam2 has a publisher but an empty <audio/> block
    assert cam2.publisher is not None
    assert cam2.has_audio is False
    assert cam2.publisher_avsync is None


def test_vod_application_without_live_block_has_no_streams(stat_xml):
    doc = parse_status(stat_xml)
    assert doc.applications[1].streams == ()


def test_missing_containers_yield_empty_lists():
    """No <server>, no <application>: valid document with nothing in it."""
    doc = parse_status(make_stat().replace(b"<server>\n\n</server>", b""))

    assert doc.servers == ()
    assert doc.applications == []
    assert doc.streams() == []


def test_unknown_elements_are_ignored():
    stream = make_stream("cam1").replace("<name>", "<shiny_new_field>7</shiny_new_field><name>")
    xml = make_stat(make_app("live", stream), root_extra="<future_counter>9</future_counter>")

    doc = parse_status(xml)

    assert doc.streams()[0][1].name == "cam1"


def test_client_count_falls_back_to_client_elements():
    stream = make_stream("cam1", publisher_avsync=0).replace("<nclients>3</nclients>", "")
    doc = parse_status(make_stat(make_app("live", stream)))

    assert doc.streams()[0][1].nclients == 1


def test_float_bandwidth_is_accepted():
    stream = make_stream("cam1").replace("<bw_in>10</bw_in>", "<bw_in>10.5</bw_in>")
    doc = parse_status(make_stat(make_app("live", stream)))

    assert doc.streams()[0][1].traffic.bw_in == 10.5


@pytest.mark.parametrize(
    "xml, match",
    [
        (b"<rtmp><bw_in>", "invalid XML"),
        (b"<nginx><bw_in>0</bw_in></nginx>", "unexpected root element <nginx>"),
        (make_stat().replace(b"<bytes_in>0</bytes_in>", b""), "missing <bytes_in>"),
        (make_stat().replace(b"<bytes_out>0</bytes_out>", b"<bytes_out>lots</bytes_out>"), "not an integer"),
        (make_stat().replace(b"<bytes_out>0</bytes_out>", b"<bytes_out>-5</bytes_out>"), "negative"),
        (make_stat().replace(b"<bw_in>0</bw_in>", b"<bw_in>-1.5</bw_in>"), "non-negative rate"),
    ],
)
def test_structural_violations_raise_malformed_document(xml, match):
    with pytest.raises(MalformedDocument, match=match):
        parse_status(xml)


def test_stream_missing_required_counter_fails_whole_document():
    """A stream is never half-parsed: missing counters abort the document."""
    stream = make_stream("cam1").replace("<bw_video>0</bw_video>", "")

    with pytest.raises(MalformedDocument, match="stream\\[cam1\\].*missing <bw_video>"):
        parse_status(make_stat(make_app("live", stream)))


def test_application_without_name_is_malformed():
    with pytest.raises(MalformedDocument, match="missing <name>"):
        parse_status(make_stat("<application><live></live></application>"))


def test_negative_avsync_is_allowed():
    doc = parse_status(make_stat(make_app("live", make_stream("cam1", publisher_avsync=-40, audio=True))))

    assert doc.streams()[0][1].publisher_avsync == -40


def test_entity_expansion_is_rejected():
    xml = b"""<?xml version="1.0"?>
<!DOCTYPE rtmp [<!ENTITY a "aaaaaaaa">]>
<rtmp><bw_in>&a;</bw_in></rtmp>"""

    with pytest.raises(MalformedDocument, match="invalid XML"):
        parse_status(xml)
