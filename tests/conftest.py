"""
Pytest fixtures for template resolution tests.

구성:
- tar.gz 아카이브 생성 헬퍼 (wrapper 디렉터리 포함)
- httpx.MockTransport 기반 가짜 아카이브 서버 (ETag / 304 지원)
- 가짜 서버에 연결된 ConditionalFetcher
"""

import io
import tarfile
from collections.abc import Generator
from dataclasses import dataclass, field
from pathlib import Path

import httpx
import pytest

from blueprint.core.fetch import ConditionalFetcher

# =============================================================================
# Archive Helpers
# =============================================================================


def make_tarball(files: dict[str, bytes | str], wrapper: str | None = "repo-main") -> bytes:
    """
    tar.gz 바이트 생성.

    Args:
        files: {상대 경로: 내용}
        wrapper: 최상위 wrapper 디렉터리 이름 (None이면 wrapper 없이)

    Returns:
        gzip 압축된 tar 바이트
    """
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as tar:
        if wrapper is not None:
            info = tarfile.TarInfo(wrapper)
            info.type = tarfile.DIRTYPE
            info.mode = 0o755
            tar.addfile(info)

        for rel_path, content in files.items():
            data = content.encode() if isinstance(content, str) else content
            name = f"{wrapper}/{rel_path}" if wrapper is not None else rel_path
            info = tarfile.TarInfo(name)
            info.size = len(data)
            info.mode = 0o644
            tar.addfile(info, io.BytesIO(data))

    return buf.getvalue()


# =============================================================================
# Fake Archive Server
# =============================================================================


@dataclass
class FakeArchiveServer:
    """
    URL별 (본문, ETag)를 제공하는 가짜 서버.

    - If-None-Match == 현재 ETag → 304
    - 등록 안 된 URL → 404
    - requests에 모든 요청 기록
    """

    resources: dict[str, tuple[bytes, str | None]] = field(default_factory=dict)
    requests: list[httpx.Request] = field(default_factory=list)

    def publish(self, url: str, body: bytes, etag: str | None = '"v1"') -> None:
        self.resources[url] = (body, etag)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        resource = self.resources.get(str(request.url))
        if resource is None:
            return httpx.Response(404, content=b"not found")

        body, etag = resource
        if etag is not None and request.headers.get("If-None-Match") == etag:
            return httpx.Response(304)

        headers = {"ETag": etag} if etag is not None else {}
        return httpx.Response(200, content=body, headers=headers)

    def requests_for(self, url: str) -> list[httpx.Request]:
        return [r for r in self.requests if str(r.url) == url]


@pytest.fixture
def archive_server() -> FakeArchiveServer:
    """가짜 아카이브 서버."""
    return FakeArchiveServer()


@pytest.fixture
def fetcher(archive_server: FakeArchiveServer) -> Generator[ConditionalFetcher, None, None]:
    """가짜 서버에 연결된 ConditionalFetcher."""
    client = httpx.Client(transport=httpx.MockTransport(archive_server.handler))
    with ConditionalFetcher(client=client) as f:
        yield f
    client.close()


@pytest.fixture
def cache_root(tmp_path: Path) -> Path:
    """테스트용 캐시 루트 (아직 생성 안 됨)."""
    return tmp_path / "cache"


@pytest.fixture
def make_archive():
    """make_tarball 헬퍼를 fixture로 제공."""
    return make_tarball
