"""
템플릿 해석기: 이름 (+ 카탈로그 스코프) → 엔트리 → 로컬 디렉터리

흐름:
1. check_name
2. 스코프 지정 시 해당 카탈로그에서만 조회
   - "local" → 로컬 카탈로그
   - 원격 이름 → 해당 원격 카탈로그 (설정에 없으면 UNKNOWN_CATALOG)
3. 스코프 없으면 로컬 먼저, 이후 원격을 설정 순서대로 (첫 정확 일치)
4. materialize → 경로 반환 (scaffold는 대상 디렉터리로 복사까지)

원격 카탈로그는 필요할 때 한 번만 가져와 resolver 안에서 재사용.
"""

import logging
import shutil
from collections.abc import Iterator
from pathlib import Path

from blueprint.core.fetch import ConditionalFetcher
from blueprint.domain.constants import LOCAL_CATALOG_NAME
from blueprint.domain.errors import CatalogError, ErrorCodes
from blueprint.templates.catalog import Catalog
from blueprint.templates.entry import CatalogEntry, check_name
from blueprint.templates.remote import Config, RemoteCatalog
from blueprint.templates.search import ComposedResult, aggregate

logger = logging.getLogger(__name__)


class TemplateResolver:
    """로컬 카탈로그 + 설정의 원격 카탈로그에 걸친 템플릿 해석."""

    def __init__(
        self,
        local_catalog: Catalog,
        config: Config,
        cache_root: Path,
        fetcher: ConditionalFetcher | None = None,
    ):
        """
        Args:
            local_catalog: 미리 로드된 로컬 카탈로그
            config: 미리 로드된 설정
            cache_root: 캐시 루트 (외부에서 결정된 경로)
            fetcher: 조건부 다운로더 (None이면 다운로드마다 생성)
        """
        self.local_catalog = local_catalog
        self.config = config
        self.cache_root = cache_root
        self.fetcher = fetcher
        self._remote_cache: dict[str, Catalog] = {}

    # =========================================================================
    # Catalogs
    # =========================================================================

    def remote_catalog(self, remote: RemoteCatalog) -> Catalog:
        """원격 카탈로그 (resolver 안에서 memoize)."""
        catalog = self._remote_cache.get(remote.name)
        if catalog is None:
            catalog = remote.get_catalog(self.cache_root, self.fetcher)
            self._remote_cache[remote.name] = catalog
        return catalog

    def iter_remote_catalogs(self) -> Iterator[tuple[str, Catalog]]:
        """설정 순서대로 (이름, 카탈로그). 필요한 만큼만 가져옴."""
        for remote in self.config.remote_catalogs:
            yield remote.name, self.remote_catalog(remote)

    def catalog(self, scope: str) -> Catalog:
        """
        스코프 이름 → 카탈로그.

        Raises:
            CatalogError: UNKNOWN_CATALOG
            CatalogRetrievalError: 원격 카탈로그 획득 실패
        """
        if scope == LOCAL_CATALOG_NAME:
            return self.local_catalog

        remote = self.config.find_remote(scope)
        if remote is None:
            raise CatalogError(
                ErrorCodes.UNKNOWN_CATALOG,
                f"Invalid catalog: {scope}",
                catalog=scope,
            )
        return self.remote_catalog(remote)

    # =========================================================================
    # Search / Find
    # =========================================================================

    def search(self, term: str) -> ComposedResult:
        """로컬 → 원격 순서로 부분 문자열 검색."""
        return aggregate(term, self.local_catalog, self.iter_remote_catalogs())

    def find(self, name: str, scope: str | None = None) -> CatalogEntry:
        """
        이름으로 템플릿 조회.

        Args:
            name: 템플릿 이름
            scope: "local", 원격 카탈로그 이름, 또는 None (전체)

        Returns:
            CatalogEntry

        Raises:
            InvalidNameError: 이름 문자 집합 위반
            CatalogError: UNKNOWN_CATALOG, TEMPLATE_NOT_FOUND
            CatalogRetrievalError: 원격 카탈로그 획득 실패
        """
        check_name(name)

        if scope is not None:
            entry = self.catalog(scope).find_exact(name)
        else:
            entry = self.local_catalog.find_exact(name)
            if entry is None:
                entry = self._find_in_remotes(name)

        if entry is None:
            raise CatalogError(
                ErrorCodes.TEMPLATE_NOT_FOUND,
                f"Unknown template: {name}",
                name=name,
                scope=scope,
            )
        return entry

    def _find_in_remotes(self, name: str) -> CatalogEntry | None:
        for catalog_name, catalog in self.iter_remote_catalogs():
            entry = catalog.find_exact(name)
            if entry is not None:
                logger.debug(f"Found '{name}' in remote catalog '{catalog_name}'")
                return entry
        return None

    # =========================================================================
    # Resolve / Scaffold
    # =========================================================================

    def resolve(self, name: str, scope: str | None = None) -> Path:
        """이름 → materialize된 템플릿 디렉터리."""
        entry = self.find(name, scope)
        return entry.materialize(self.cache_root, self.fetcher)

    def scaffold(
        self,
        name: str,
        directory: Path,
        scope: str | None = None,
        allow_dirty: bool = False,
    ) -> Path:
        """
        템플릿을 대상 디렉터리로 복사.

        대상 검사는 다운로드 전에 수행. 캐시 트리는 수정하지 않음.

        Args:
            name: 템플릿 이름
            directory: 새 프로젝트 디렉터리
            scope: 카탈로그 스코프
            allow_dirty: 비어 있지 않은 디렉터리 허용

        Returns:
            directory

        Raises:
            CatalogError: TARGET_NOT_DIRECTORY, TARGET_NOT_EMPTY, 조회 실패
        """
        check_target_directory(directory, allow_dirty)

        source = self.resolve(name, scope)

        directory.mkdir(parents=True, exist_ok=True)
        shutil.copytree(source, directory, symlinks=True, dirs_exist_ok=True)

        logger.info(f"Copied template '{name}' from {source} → {directory}")
        return directory


def check_target_directory(directory: Path, allow_dirty: bool = False) -> None:
    """
    복사 대상 검증.

    Raises:
        CatalogError: TARGET_NOT_DIRECTORY, TARGET_NOT_EMPTY
    """
    if not directory.exists():
        return

    if not directory.is_dir():
        raise CatalogError(
            ErrorCodes.TARGET_NOT_DIRECTORY,
            f"{directory} already exists and is not a directory",
            directory=str(directory),
        )

    if not allow_dirty and any(directory.iterdir()):
        raise CatalogError(
            ErrorCodes.TARGET_NOT_EMPTY,
            f"{directory} already exists and is not empty",
            directory=str(directory),
        )
