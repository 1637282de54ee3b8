"""
카탈로그 엔트리: 저장소 기반 템플릿 | 로컬 경로 템플릿

규칙:
- 동일성/정렬은 name만으로 결정 (정확한 문자열 비교)
- 엔트리는 불변 (검색 결과가 카탈로그 수정 후에도 유효)
- 역직렬화는 구조로 판별: path 있으면 로컬, 아니면 owner+repository로 저장소
- 이름 문자 집합 [A-Za-z0-9_-]은 쓰기 시점 가드 (읽기 시에는 검사 안 함)
"""

import string
from abc import ABC, abstractmethod
from dataclasses import dataclass
from functools import total_ordering
from pathlib import Path
from typing import Any

from blueprint.core.archive_cache import ArchiveCache
from blueprint.core.fetch import ConditionalFetcher
from blueprint.domain.errors import CatalogFormatError, InvalidNameError
from blueprint.domain.models import RepositoryReference, SetupKind

# =============================================================================
# Name Validation
# =============================================================================

NAME_ALLOWED_CHARS = frozenset(string.ascii_letters + string.digits + "-_")


def check_name(name: str) -> None:
    """
    템플릿 이름 검증.

    규칙:
    - ASCII 영문자, 숫자, '-', '_'만 허용
    - 빈 이름은 위반 문자가 없으므로 통과 (조회 단계에서 not found)

    Args:
        name: 검증할 이름

    Raises:
        InvalidNameError: 첫 위반 문자와 위치 포함
    """
    for index, char in enumerate(name):
        if char not in NAME_ALLOWED_CHARS:
            raise InvalidNameError(name, char, index)


# =============================================================================
# Entries
# =============================================================================


@total_ordering
class CatalogEntry(ABC):
    """템플릿 정의 공통 인터페이스."""

    name: str
    description: str | None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CatalogEntry):
            return NotImplemented
        return self.name == other.name

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, CatalogEntry):
            return NotImplemented
        return self.name < other.name

    def __hash__(self) -> int:
        return hash(self.name)

    @abstractmethod
    def materialize(
        self,
        cache_root: Path,
        fetcher: ConditionalFetcher | None = None,
    ) -> Path:
        """복사해 갈 수 있는 로컬 디렉터리 경로 반환."""

    @abstractmethod
    def one_line_summary(self) -> str:
        """목록/검색 출력용 한 줄 요약."""

    @abstractmethod
    def to_dict(self) -> dict[str, Any]:
        """카탈로그 파일 레코드."""


@dataclass(frozen=True, eq=False)
class RepositoryTemplate(CatalogEntry):
    """원격 저장소 스냅샷 템플릿."""

    name: str
    repository: RepositoryReference
    description: str | None = None
    issue: int | None = None  # 템플릿이 추가된 이슈 번호
    setup: SetupKind | None = None

    def materialize(
        self,
        cache_root: Path,
        fetcher: ConditionalFetcher | None = None,
    ) -> Path:
        return ArchiveCache(cache_root, fetcher).materialize(self.repository)

    def one_line_summary(self) -> str:
        summary = f"{self.name} => {self.repository.browse_link()}"
        if self.description:
            summary += f" {self.description}"
        if self.issue is not None:
            summary += f" [for issue {self.issue}]"
        return summary

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name}
        if self.description is not None:
            data["description"] = self.description
        data.update(self.repository.to_dict())
        if self.issue is not None:
            data["issue"] = self.issue
        if self.setup is not None:
            data["setup"] = self.setup.value
        return data


@dataclass(frozen=True, eq=False)
class LocalTemplate(CatalogEntry):
    """로컬 디렉터리 템플릿. 캐시/복사 없이 경로 그대로 사용."""

    name: str
    path: Path
    description: str | None = None

    def materialize(
        self,
        cache_root: Path,
        fetcher: ConditionalFetcher | None = None,
    ) -> Path:
        return self.path

    def one_line_summary(self) -> str:
        summary = f"{self.name} => {self.path}"
        if self.description:
            summary += f" {self.description}"
        return summary

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name}
        if self.description is not None:
            data["description"] = self.description
        data["path"] = str(self.path)
        return data


# =============================================================================
# Deserialization
# =============================================================================


def entry_from_dict(data: dict[str, Any]) -> CatalogEntry:
    """
    레코드 → 엔트리 (구조적 판별).

    판별 순서:
    1. path 있음 → LocalTemplate
    2. owner, repository 있음 → RepositoryTemplate
    3. 그 외 → CatalogFormatError

    Args:
        data: 카탈로그 파일의 template 레코드

    Returns:
        CatalogEntry

    Raises:
        CatalogFormatError: 필수 필드 누락, 잘못된 값
        UnknownProviderError: 알 수 없는 provider
    """
    if not isinstance(data, dict):
        raise CatalogFormatError(f"template record must be a mapping, got {type(data).__name__}")

    name = data.get("name")
    if not isinstance(name, str):
        raise CatalogFormatError("template record is missing 'name'", record=data)

    description = data.get("description")
    if description is not None:
        description = str(description)

    if "path" in data:
        path = data["path"]
        if not isinstance(path, str):
            raise CatalogFormatError(f"template '{name}': path must be a string", name=name)
        return LocalTemplate(name=name, path=Path(path), description=description)

    if "owner" in data and "repository" in data:
        return RepositoryTemplate(
            name=name,
            repository=RepositoryReference.from_dict(data),
            description=description,
            issue=_parse_issue(name, data.get("issue")),
            setup=_parse_setup(name, data.get("setup")),
        )

    raise CatalogFormatError(
        f"template '{name}' has neither 'path' nor 'owner' and 'repository'",
        name=name,
    )


def _parse_issue(name: str, value: Any) -> int | None:
    if value is None:
        return None
    # bool은 int 하위 타입이라 별도 제외
    if isinstance(value, bool) or not isinstance(value, int):
        raise CatalogFormatError(f"template '{name}': issue must be an integer", name=name)
    return value


def _parse_setup(name: str, value: Any) -> SetupKind | None:
    if value is None:
        return None
    try:
        return SetupKind(value)
    except ValueError as e:
        raise CatalogFormatError(
            f"template '{name}': unknown setup kind {value!r}",
            name=name,
            allowed=[kind.value for kind in SetupKind],
        ) from e
