"""
검색 결과 집계: 여러 카탈로그의 find 결과를 세 단계 bucket으로 병합

규칙:
- bucket: name_and_description > name_only > description_only (출력 우선순위)
- compose: 모든 hit에 출처 카탈로그 라벨 부착
- merge: bucket별 이어붙이기, 왼쪽 결과가 항상 먼저
- 호출 순서: 로컬 카탈로그 먼저, 원격 카탈로그는 설정 순서대로
- 카탈로그는 독립 namespace: 같은 이름이 다른 라벨로 여러 번 나올 수 있음
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from blueprint.domain.constants import LOCAL_SEARCH_LABEL

if TYPE_CHECKING:
    from blueprint.templates.catalog import Catalog
    from blueprint.templates.entry import CatalogEntry


@dataclass
class FindResult:
    """단일 카탈로그 검색 결과."""

    name_and_description: list["CatalogEntry"] = field(default_factory=list)
    name_only: list["CatalogEntry"] = field(default_factory=list)
    description_only: list["CatalogEntry"] = field(default_factory=list)

    def compose(self, label: str) -> "ComposedResult":
        """모든 hit에 출처 라벨 부착."""
        return ComposedResult(
            name_and_description=[SearchHit(label, e) for e in self.name_and_description],
            name_only=[SearchHit(label, e) for e in self.name_only],
            description_only=[SearchHit(label, e) for e in self.description_only],
        )

    def is_empty(self) -> bool:
        return not (self.name_and_description or self.name_only or self.description_only)


@dataclass(frozen=True)
class SearchHit:
    """출처 카탈로그 라벨이 붙은 검색 hit."""

    catalog: str
    entry: "CatalogEntry"

    def __str__(self) -> str:
        return f"[{self.catalog}] {self.entry.one_line_summary()}"


@dataclass
class ComposedResult:
    """여러 카탈로그에 걸친 검색 결과."""

    name_and_description: list[SearchHit] = field(default_factory=list)
    name_only: list[SearchHit] = field(default_factory=list)
    description_only: list[SearchHit] = field(default_factory=list)

    def extend(self, other: "ComposedResult") -> None:
        """other의 hit을 bucket별로 뒤에 추가 (제자리)."""
        self.name_and_description.extend(other.name_and_description)
        self.name_only.extend(other.name_only)
        self.description_only.extend(other.description_only)

    def merge(self, other: "ComposedResult") -> "ComposedResult":
        """self 다음 other 순서로 합친 새 결과."""
        merged = ComposedResult(
            name_and_description=list(self.name_and_description),
            name_only=list(self.name_only),
            description_only=list(self.description_only),
        )
        merged.extend(other)
        return merged

    def buckets(self) -> list[tuple[str, list[SearchHit]]]:
        """
        출력용 (제목, hit 목록) 쌍. 빈 bucket 포함, 우선순위 순서.
        """
        return [
            ("Templates that matched both name and description", self.name_and_description),
            ("Templates that matched only name", self.name_only),
            ("Templates that matched only description", self.description_only),
        ]

    def is_empty(self) -> bool:
        return len(self) == 0

    def __len__(self) -> int:
        return len(self.name_and_description) + len(self.name_only) + len(self.description_only)


def aggregate(
    term: str,
    local_catalog: "Catalog",
    remote_catalogs: Iterable[tuple[str, "Catalog"]] = (),
) -> ComposedResult:
    """
    로컬 → 원격 순서로 검색 결과 병합.

    Args:
        term: 검색어
        local_catalog: 로컬 카탈로그 (라벨 "<local>")
        remote_catalogs: (이름, 카탈로그) 쌍, 설정 순서

    Returns:
        ComposedResult
    """
    result = local_catalog.find(term).compose(LOCAL_SEARCH_LABEL)

    for name, catalog in remote_catalogs:
        result.extend(catalog.find(term).compose(name))

    return result
