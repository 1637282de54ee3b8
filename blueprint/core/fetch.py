"""
조건부 다운로드: URL → 파일, ETag 기반 재검증

규칙:
- prior_token 있으면 If-None-Match 전송, 304면 dest 변경 없음
- 본문은 temp 파일에 받은 뒤 rename (중간 상태 없음)
- 토큰은 본문 쓰기가 끝난 뒤에만 갱신
- 새 응답에 ETag가 없으면 기존 토큰 파일 삭제 (다른 바이트를 가리키므로)
- 전송 실패/비성공 상태 → DownloadError, 재시도 없음
"""

import logging
import os
from pathlib import Path
from types import TracebackType

import httpx

from blueprint.domain.constants import (
    DOWNLOAD_CHUNK_SIZE,
    DOWNLOAD_TEMP_SUFFIX,
    HTTP_TIMEOUT_SECONDS,
    TOKEN_SUFFIX,
)
from blueprint.domain.errors import DownloadError

logger = logging.getLogger(__name__)


def token_path_for(dest: Path) -> Path:
    """
    재검증 토큰 파일 경로.

    dest와 같은 기본 이름, 다른 확장자: cache/x.tar.gz → cache/x.tar.etag
    """
    return dest.with_suffix(TOKEN_SUFFIX)


def read_token(dest: Path) -> str | None:
    """저장된 토큰 읽기 (없거나 비어 있으면 None)."""
    token_path = token_path_for(dest)
    if not token_path.exists():
        return None
    token = token_path.read_text(encoding="utf-8").strip()
    return token or None


class ConditionalFetcher:
    """
    ETag 기반 조건부 다운로더.

    사용법:
        with ConditionalFetcher() as fetcher:
            modified = fetcher.fetch(url, dest, read_token(dest))
    """

    def __init__(
        self,
        client: httpx.Client | None = None,
        timeout: float = HTTP_TIMEOUT_SECONDS,
    ):
        """
        Args:
            client: 주입할 httpx.Client (None이면 생성, close() 시 함께 닫음)
            timeout: 요청 timeout (초)
        """
        self._owns_client = client is None
        self._client = client or httpx.Client(follow_redirects=True, timeout=timeout)

    def __enter__(self) -> "ConditionalFetcher":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def fetch(self, url: str, dest: Path, prior_token: str | None = None) -> bool:
        """
        URL을 dest로 다운로드.

        Args:
            url: 다운로드 URL
            dest: 저장 경로 (덮어씀)
            prior_token: 이전 응답의 ETag

        Returns:
            True면 dest 갱신됨, False면 304 (변경 없음)

        Raises:
            DownloadError: 전송 실패, 비성공 상태
        """
        headers = {}
        if prior_token:
            headers["If-None-Match"] = prior_token

        temp_path = dest.with_name(dest.name + DOWNLOAD_TEMP_SUFFIX)

        try:
            with self._client.stream("GET", url, headers=headers) as response:
                if prior_token and response.status_code == httpx.codes.NOT_MODIFIED:
                    logger.debug(f"Not modified: {url}")
                    return False

                if not response.is_success:
                    raise DownloadError(
                        url,
                        f"GET {url} returned {response.status_code}",
                        status=response.status_code,
                    )

                etag = response.headers.get("ETag")
                with open(temp_path, "wb") as f:
                    for chunk in response.iter_bytes(DOWNLOAD_CHUNK_SIZE):
                        f.write(chunk)

        except httpx.HTTPError as e:
            _discard(temp_path)
            raise DownloadError(url, f"GET {url} failed: {e}") from e
        except BaseException:
            _discard(temp_path)
            raise

        os.replace(temp_path, dest)
        logger.info(f"Downloaded {url} → {dest}")

        # 본문이 자리를 잡은 뒤에만 토큰 갱신
        token_path = token_path_for(dest)
        if etag:
            token_path.write_text(etag, encoding="utf-8")
        elif token_path.exists():
            token_path.unlink()

        return True


def _discard(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        logger.warning(f"Failed to remove partial download {path}: {e}")
