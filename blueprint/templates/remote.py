"""
원격 카탈로그 선언 + 설정 모델

규칙:
- 원격 카탈로그 = 저장소 스냅샷 안의 카탈로그 파일 (기본 index.toml)
- 획득 실패(다운로드/IO/파싱)는 CatalogRetrievalError로 감싸서 전파
- "local"은 로컬 카탈로그 예약 이름: 원격 이름으로 사용 불가
- 원격 카탈로그 순서 = 설정 파일 순서 (검색/조회 우선순위)
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from blueprint.core.archive_cache import ArchiveCache
from blueprint.core.fetch import ConditionalFetcher
from blueprint.domain.constants import DEFAULT_REMOTE_CATALOG_PATH, LOCAL_CATALOG_NAME
from blueprint.domain.errors import (
    ArchiveError,
    ArchiveLayoutError,
    BlueprintError,
    CatalogFormatError,
    CatalogRetrievalError,
    ConfigError,
    DownloadError,
    ErrorCodes,
)
from blueprint.domain.models import RepositoryReference
from blueprint.templates.catalog import Catalog, load_catalog

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RemoteCatalog:
    """원격 카탈로그 선언."""

    name: str
    repository: RepositoryReference
    description: str | None = None
    path: str = DEFAULT_REMOTE_CATALOG_PATH  # 저장소 안 카탈로그 파일 경로

    def get_catalog(
        self,
        cache_root: Path,
        fetcher: ConditionalFetcher | None = None,
    ) -> Catalog:
        """
        저장소를 materialize한 뒤 카탈로그 파일 로드.

        Args:
            cache_root: 캐시 루트
            fetcher: 조건부 다운로더

        Returns:
            Catalog

        Raises:
            CatalogRetrievalError: kind = download | io | deserialize
        """
        try:
            tree = ArchiveCache(cache_root, fetcher).materialize(self.repository)
            catalog = load_catalog(tree / self.path)
        except DownloadError as e:
            raise CatalogRetrievalError(self.name, "download", e) from e
        except (OSError, ArchiveError, ArchiveLayoutError) as e:
            raise CatalogRetrievalError(self.name, "io", e) from e
        except BlueprintError as e:
            # CatalogFormatError, UnknownProviderError
            raise CatalogRetrievalError(self.name, "deserialize", e) from e

        logger.debug(f"Loaded remote catalog '{self.name}' ({len(catalog)} templates)")
        return catalog

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name}
        if self.description is not None:
            data["description"] = self.description
        data.update(self.repository.to_dict())
        data["path"] = self.path
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RemoteCatalog":
        """
        Raises:
            ConfigError: 구조 오류
            UnknownProviderError: 알 수 없는 provider
        """
        if not isinstance(data, dict) or not isinstance(data.get("name"), str):
            raise ConfigError(
                ErrorCodes.CONFIG_FORMAT,
                "remote catalog declaration needs a 'name'",
                record=data,
            )

        try:
            repository = RepositoryReference.from_dict(data)
        except CatalogFormatError as e:
            raise ConfigError(
                ErrorCodes.CONFIG_FORMAT,
                f"remote catalog '{data['name']}': {e.message}",
                name=data["name"],
            ) from e

        description = data.get("description")
        return cls(
            name=data["name"],
            repository=repository,
            description=None if description is None else str(description),
            path=str(data.get("path", DEFAULT_REMOTE_CATALOG_PATH)),
        )


@dataclass
class Config:
    """
    설정 파일 모델.

    파일 구조:
        remote_catalog:
          - name: community
            owner: acme
            repository: templates
            path: index.toml
    """

    remote_catalogs: list[RemoteCatalog] = field(default_factory=list)

    def find_remote(self, name: str) -> RemoteCatalog | None:
        for remote in self.remote_catalogs:
            if remote.name == name:
                return remote
        return None

    def add_remote(self, remote: RemoteCatalog) -> None:
        """
        원격 카탈로그 선언 추가 (맨 뒤).

        Raises:
            ConfigError: RESERVED_CATALOG_NAME, REMOTE_CATALOG_EXISTS
        """
        if remote.name == LOCAL_CATALOG_NAME:
            raise ConfigError(
                ErrorCodes.RESERVED_CATALOG_NAME,
                f"Cannot add a remote catalog named '{LOCAL_CATALOG_NAME}'",
            )
        if self.find_remote(remote.name) is not None:
            raise ConfigError(
                ErrorCodes.REMOTE_CATALOG_EXISTS,
                f"Remote catalog '{remote.name}' already exists",
                name=remote.name,
            )
        self.remote_catalogs.append(remote)

    def remove_remote(self, name: str) -> RemoteCatalog:
        """
        Raises:
            ConfigError: RESERVED_CATALOG_NAME, REMOTE_CATALOG_NOT_FOUND
        """
        if name == LOCAL_CATALOG_NAME:
            raise ConfigError(
                ErrorCodes.RESERVED_CATALOG_NAME,
                f"Cannot remove catalog named '{LOCAL_CATALOG_NAME}'",
            )
        remote = self.find_remote(name)
        if remote is None:
            raise ConfigError(
                ErrorCodes.REMOTE_CATALOG_NOT_FOUND,
                f"No remote called '{name}' found",
                name=name,
            )
        self.remote_catalogs.remove(remote)
        return remote

    def get_all_remote_catalogs(
        self,
        cache_root: Path,
        fetcher: ConditionalFetcher | None = None,
    ) -> list[tuple[str, Catalog]]:
        """설정 순서대로 (이름, 카탈로그). 하나라도 실패하면 CatalogRetrievalError."""
        return [
            (remote.name, remote.get_catalog(cache_root, fetcher))
            for remote in self.remote_catalogs
        ]

    def to_dict(self) -> dict[str, Any]:
        return {"remote_catalog": [remote.to_dict() for remote in self.remote_catalogs]}

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "Config":
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ConfigError(ErrorCodes.CONFIG_FORMAT, "config must be a mapping")

        records = data.get("remote_catalog") or []
        if not isinstance(records, list):
            raise ConfigError(ErrorCodes.CONFIG_FORMAT, "remote_catalog must be a list")

        return cls(remote_catalogs=[RemoteCatalog.from_dict(record) for record in records])
