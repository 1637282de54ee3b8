"""
아카이브 캐시: 저장소 스냅샷 fetch-or-reuse → 추출 → 평탄화

흐름 (materialize):
1. cache_root 생성
2. artifact = cache_root/{cache_key}.tar.gz
3. 신선도 정책
   - artifact 없음 → 무조건 다운로드 (토큰 없이)
   - 마지막 수정 후 60초 초과 → 저장된 토큰으로 조건부 다운로드
   - 60초 이내 → 네트워크 호출 없이 그대로 사용
4. digest = sha256(artifact) → out_dir = cache_root/{cache_key}-{digest}
   이미 있으면 추출 생략 (동일 바이트 = 동일 디렉터리)
5. temp 디렉터리에 추출 + 평탄화 후 out_dir로 rename

동시성:
- 캐시 디렉터리 락 없음. "out_dir 존재" 체크는 best-effort fast path
- rename 경합에서 지면 temp 트리 삭제 후 기존 out_dir 반환
- 중단된 프로세스가 남긴 오래된 .extract-* 디렉터리는 다음 추출 때 정리
"""

import logging
import os
import shutil
import tarfile
import tempfile
import time
import zlib
from collections.abc import Callable
from pathlib import Path

from blueprint.core.fetch import ConditionalFetcher, read_token
from blueprint.core.hashing import compute_file_hash
from blueprint.domain.constants import (
    ARCHIVE_SUFFIX,
    EXTRACT_TEMP_PREFIX,
    FRESHNESS_WINDOW_SECONDS,
    STALE_EXTRACT_SECONDS,
)
from blueprint.domain.errors import ArchiveError, ArchiveLayoutError
from blueprint.domain.models import RepositoryReference

logger = logging.getLogger(__name__)


class ArchiveCache:
    """
    저장소 스냅샷 캐시.

    구조:
    <cache_root>/
    ├── github_acme_web_main.tar.gz
    ├── github_acme_web_main.tar.etag
    └── github_acme_web_main-<sha256>/   # 평탄화된 트리
    """

    def __init__(
        self,
        cache_root: Path,
        fetcher: ConditionalFetcher | None = None,
        freshness_window: float = FRESHNESS_WINDOW_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        """
        Args:
            cache_root: 캐시 루트 (외부에서 결정된 경로)
            fetcher: 조건부 다운로더 (None이면 필요할 때 생성 후 닫음)
            freshness_window: 네트워크 확인 생략 구간 (초)
            clock: 현재 시각 (epoch 초)
        """
        self.cache_root = cache_root
        self.freshness_window = freshness_window
        self._fetcher = fetcher
        self._clock = clock

    def archive_path(self, ref: RepositoryReference) -> Path:
        return self.cache_root / f"{ref.cache_key()}{ARCHIVE_SUFFIX}"

    def materialize(self, ref: RepositoryReference) -> Path:
        """
        참조를 평탄화된 로컬 디렉터리로 변환.

        Args:
            ref: 저장소 참조

        Returns:
            추출 트리 경로 ({cache_key}-{digest})

        Raises:
            DownloadError: 다운로드 실패
            ArchiveError: 압축 해제 불가
            ArchiveLayoutError: 최상위 엔트리가 디렉터리 하나가 아님
            OSError: 파일시스템 실패
        """
        self.cache_root.mkdir(parents=True, exist_ok=True)

        key = ref.cache_key()
        archive = self.archive_path(ref)
        self._refresh(ref, archive)

        digest = compute_file_hash(archive)
        out_dir = self.cache_root / f"{key}-{digest}"

        if out_dir.exists():
            logger.debug(f"Cache hit: {out_dir}")
            return out_dir

        return self._extract(archive, out_dir)

    # =========================================================================
    # Freshness
    # =========================================================================

    def _refresh(self, ref: RepositoryReference, archive: Path) -> None:
        if not archive.exists():
            self._download(ref.archive_link(), archive, None)
            return

        age = self._clock() - archive.stat().st_mtime
        if age <= self.freshness_window:
            # 최근 다운로드: 토큰 확인도 하지 않음
            logger.debug(f"Reusing {archive.name} ({age:.0f}s old)")
            return

        self._download(ref.archive_link(), archive, read_token(archive))

    def _download(self, url: str, archive: Path, token: str | None) -> bool:
        if self._fetcher is not None:
            return self._fetcher.fetch(url, archive, token)

        with ConditionalFetcher() as fetcher:
            return fetcher.fetch(url, archive, token)

    # =========================================================================
    # Extraction
    # =========================================================================

    def _sweep_stale_extractions(self) -> None:
        """
        중단된 추출이 남긴 .extract-* 디렉터리 정리.

        다른 프로세스가 진행 중인 추출을 지우지 않도록 STALE_EXTRACT_SECONDS보다
        오래된 것만 삭제.
        """
        now = self._clock()
        for entry in self.cache_root.iterdir():
            if not entry.name.startswith(EXTRACT_TEMP_PREFIX) or not entry.is_dir():
                continue
            try:
                age = now - entry.stat().st_mtime
            except FileNotFoundError:
                continue
            if age <= STALE_EXTRACT_SECONDS:
                continue
            logger.info(f"Removing stale extraction {entry.name}")
            shutil.rmtree(entry, ignore_errors=True)

    def _extract(self, archive: Path, out_dir: Path) -> Path:
        self._sweep_stale_extractions()
        temp_dir = Path(tempfile.mkdtemp(prefix=EXTRACT_TEMP_PREFIX, dir=self.cache_root))

        try:
            # mkdtemp는 0o700: 복사본 루트 권한이 여기서 따라감
            temp_dir.chmod(0o755)

            try:
                with tarfile.open(archive, "r:gz") as tar:
                    tar.extractall(temp_dir, filter="data")
            except (tarfile.TarError, EOFError, zlib.error) as e:
                raise ArchiveError(str(archive), f"cannot unpack {archive.name}: {e}") from e

            flatten(temp_dir, archive_name=archive.name)

            try:
                os.rename(temp_dir, out_dir)
            except OSError:
                if not out_dir.is_dir():
                    raise
                # 다른 프로세스가 먼저 추출 완료
                logger.debug(f"{out_dir.name} appeared during extraction, discarding ours")
                shutil.rmtree(temp_dir)
                return out_dir

        except BaseException:
            shutil.rmtree(temp_dir, ignore_errors=True)
            raise

        logger.info(f"Extracted {archive.name} → {out_dir}")
        return out_dir


def flatten(root: Path, archive_name: str = "") -> None:
    """
    유일한 최상위 wrapper 디렉터리를 걷어냄.

    root/X/a, root/X/b → root/a, root/b

    wrapper 안에 wrapper와 같은 이름의 자식이 있어도 충돌하지 않도록
    wrapper를 먼저 임시 이름으로 옮긴 뒤 자식을 끌어올림.

    Args:
        root: 추출 루트
        archive_name: 에러 컨텍스트용 아카이브 이름

    Raises:
        ArchiveLayoutError: 최상위 엔트리가 디렉터리 하나가 아님
    """
    entries = sorted(root.iterdir())
    if len(entries) != 1 or not entries[0].is_dir() or entries[0].is_symlink():
        raise ArchiveLayoutError(archive_name or str(root), [e.name for e in entries])

    # wrapper 자식 이름과 겹치지 않는 이름으로 옮겨 둠
    taken = {child.name for child in entries[0].iterdir()}
    parked = f"{EXTRACT_TEMP_PREFIX}wrapper"
    while parked in taken:
        parked += "_"

    wrapper = root / parked
    entries[0].rename(wrapper)

    for child in wrapper.iterdir():
        child.rename(root / child.name)

    wrapper.rmdir()


def materialize(
    ref: RepositoryReference,
    cache_root: Path,
    fetcher: ConditionalFetcher | None = None,
) -> Path:
    """ArchiveCache(cache_root, fetcher).materialize(ref) 단축형."""
    return ArchiveCache(cache_root, fetcher).materialize(ref)
