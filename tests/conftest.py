"""
Pytest configuration and shared fixtures for exporter tests.
"""
from pathlib import Path

import pytest

from overlay import MetadataOverlay

DATA_DIR = Path(__file__).parent / "data"


def make_stat(applications: str = "", root_extra: str = "") -> bytes:
    """Build a minimal /stat document around the given <application> blocks."""
    return f"""<?xml version="1.0" encoding="utf-8" ?>
<rtmp>
<nginx_version>1.25.3</nginx_version>
<nginx_rtmp_version>1.1.4</nginx_rtmp_version>
<compiler>gcc 12.2.0</compiler>
<bw_in>0</bw_in>
<bytes_in>0</bytes_in>
<bw_out>0</bw_out>
<bytes_out>0</bytes_out>
{root_extra}
<server>
{applications}
</server>
</rtmp>""".encode()


def make_stream(name: str, publisher_avsync: int | None = None, audio: bool = False,
                bytes_in: int = 1000, bytes_out: int = 2000, bw_in: int = 10,
                bw_out: int = 20, clients: int = 3) -> str:
    """Build one <stream> block; a publisher client is added when avsync is given."""
    publisher = ""
    if publisher_avsync is not None:
        publisher = (
            f"<client><id>1</id><address>10.0.0.1</address><time>10</time>"
            f"<avsync>{publisher_avsync}</avsync><publishing/><active/></client>"
        )
    audio_block = "<audio><codec>AAC</codec></audio>" if audio else "<audio></audio>"
    return f"""<stream>
<name>{name}</name>
<bw_in>{bw_in}</bw_in><bytes_in>{bytes_in}</bytes_in>
<bw_out>{bw_out}</bw_out><bytes_out>{bytes_out}</bytes_out>
<bw_audio>0</bw_audio><bw_video>0</bw_video>
{publisher}
<meta><video><codec>H264</codec></video>{audio_block}</meta>
<nclients>{clients}</nclients>
</stream>"""


def make_app(name: str, *streams: str) -> str:
    return f"<application><name>{name}</name><live>{''.join(streams)}</live></application>"


@pytest.fixture
def stat_xml() -> bytes:
    """A realistic /stat document captured from nginx-rtmp 1.1.4."""
    return (DATA_DIR / "stat.xml").read_bytes()


@pytest.fixture
def cam1_xml() -> bytes:
    """One application `live` with one stream `cam1`."""
    return make_stat(make_app("live", make_stream("cam1")))


@pytest.fixture
def region_overlay() -> MetadataOverlay:
    return MetadataOverlay.build(["region"], {"cam1": {"region": "eu"}})
