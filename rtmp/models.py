"""Typed view of the nginx-rtmp ``/stat`` document."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class BuildInfo:
    nginx_version: str = ""
    rtmp_version: str = ""
    compiler: str = ""


@dataclass(frozen=True)
class Traffic:
    """Byte totals and current bandwidth in both directions."""

    bytes_in: int
    bytes_out: int
    bw_in: float
    bw_out: float


@dataclass(frozen=True)
class Client:
    id: int
    avsync: int | None = None
    publishing: bool = False


@dataclass(frozen=True)
class Stream:
    name: str
    traffic: Traffic
    bw_audio: float
    bw_video: float
    nclients: int
    has_audio: bool = False
    clients: tuple[Client, ...] = ()

    @property
    def publisher(self) -> Client | None:
        for client in self.clients:
            if client.publishing:
                return client
        return None

    @property
    def publisher_avsync(self) -> int | None:
        """A-V sync of the publishing client, only when the stream carries audio."""
        if not self.has_audio:
            return None
        pub = self.publisher
        if pub is None:
            return None
        return pub.avsync


@dataclass(frozen=True)
class Application:
    name: str
    streams: tuple[Stream, ...] = ()


@dataclass(frozen=True)
class Server:
    applications: tuple[Application, ...] = ()


@dataclass(frozen=True)
class StatusDocument:
    build: BuildInfo
    traffic: Traffic
    servers: tuple[Server, ...] = ()
    uptime: int | None = None
    naccepted: int | None = None

    @property
    def applications(self) -> list[Application]:
        return [app for srv in self.servers for app in srv.applications]

    def streams(self) -> list[tuple[Application, Stream]]:
        """Every (application, stream) pair in document order."""
        return [(app, s) for app in self.applications for s in app.streams]
