"""
카탈로그: 이름 중복 없는, 이름 순으로 정렬된 템플릿 집합

규칙:
- 같은 이름 insert는 no-op (기존 엔트리 유지). 교체는 remove 후 insert
- find: 이름/설명 부분 문자열 매칭 (대소문자 무시) → both / name_only / description_only
- find_exact: 이름 정확히 일치하는 엔트리 (최대 1개)
- for_remote: 원격 공유용 카탈로그면 로컬 템플릿 추가 불가 (add_template에서 강제)
- 파일 수정은 FileLock으로 직렬화 (load → 수정 → 원자적 저장)
- 파일 포맷은 확장자로 결정: .toml (tomllib / tomli_w), 그 외 YAML
"""

import logging
import tomllib
from collections.abc import Callable, Generator, Iterable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import tomli_w
import yaml
from filelock import FileLock, Timeout

from blueprint.core.atomic_io import atomic_write_text
from blueprint.domain.constants import CATALOG_LOCK_TIMEOUT_SECONDS
from blueprint.domain.errors import CatalogError, CatalogFormatError, ErrorCodes
from blueprint.templates.entry import CatalogEntry, LocalTemplate, check_name, entry_from_dict
from blueprint.templates.search import FindResult

logger = logging.getLogger(__name__)


# =============================================================================
# Catalog
# =============================================================================


class Catalog:
    """
    템플릿 카탈로그.

    파일 구조:
        for_remote: false
        template:
          - name: web-api
            owner: acme
            repository: web-api-template
          - name: scratch
            path: /home/me/templates/scratch
    """

    def __init__(self, entries: Iterable[CatalogEntry] = (), for_remote: bool = False):
        self.for_remote = for_remote
        self._entries: dict[str, CatalogEntry] = {}
        for entry in entries:
            self.insert(entry)

    def __iter__(self) -> Iterator[CatalogEntry]:
        return iter(sorted(self._entries.values()))

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, item: object) -> bool:
        if isinstance(item, CatalogEntry):
            item = item.name
        return item in self._entries

    def __repr__(self) -> str:
        return f"Catalog(for_remote={self.for_remote}, names={self.names()})"

    def names(self) -> list[str]:
        return sorted(self._entries)

    # =========================================================================
    # Mutation
    # =========================================================================

    def insert(self, entry: CatalogEntry) -> bool:
        """
        엔트리 추가.

        Returns:
            True면 추가됨, False면 같은 이름이 이미 있어 아무것도 안 함
        """
        if entry.name in self._entries:
            return False
        self._entries[entry.name] = entry
        return True

    def remove(self, name: str) -> bool:
        """이름으로 삭제. 있었으면 True."""
        return self._entries.pop(name, None) is not None

    # =========================================================================
    # Lookup
    # =========================================================================

    def find(self, term: str) -> FindResult:
        """
        부분 문자열 검색.

        - 이름과 설명 모두 포함 → name_and_description
        - 이름만 → name_only
        - 설명만 → description_only
        - 둘 다 아님 → 제외

        각 bucket은 카탈로그 이름 순서를 따름. 랭킹/퍼지 매칭 없음.

        Args:
            term: 검색어 (대소문자 무시)

        Returns:
            FindResult
        """
        needle = term.casefold()
        result = FindResult()

        for entry in self:
            in_name = needle in entry.name.casefold()
            in_description = (
                entry.description is not None and needle in entry.description.casefold()
            )

            if in_name and in_description:
                result.name_and_description.append(entry)
            elif in_name:
                result.name_only.append(entry)
            elif in_description:
                result.description_only.append(entry)

        return result

    def find_exact(self, name: str) -> CatalogEntry | None:
        """이름이 정확히 같은 엔트리 (없으면 None)."""
        return self._entries.get(name)

    # =========================================================================
    # Serialization
    # =========================================================================

    def to_dict(self) -> dict[str, Any]:
        return {
            "for_remote": self.for_remote,
            "template": [entry.to_dict() for entry in self],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "Catalog":
        """
        파싱된 카탈로그 파일 → Catalog.

        이름 검사는 하지 않음 (쓰기 시점 가드).
        같은 이름이 여러 번 나오면 처음 것이 남음.

        Raises:
            CatalogFormatError: 구조 오류
        """
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise CatalogFormatError(
                f"catalog must be a mapping, got {type(data).__name__}"
            )

        for_remote = data.get("for_remote", False)
        if not isinstance(for_remote, bool):
            raise CatalogFormatError("for_remote must be a boolean", value=for_remote)

        records = data.get("template") or []
        if not isinstance(records, list):
            raise CatalogFormatError("template must be a list of records")

        return cls((entry_from_dict(record) for record in records), for_remote=for_remote)


# =============================================================================
# Mutation Policies
# =============================================================================


def add_template(catalog: Catalog, entry: CatalogEntry) -> None:
    """
    정책을 확인하고 엔트리 추가.

    Raises:
        InvalidNameError: 이름 문자 집합 위반
        CatalogError: TEMPLATE_EXISTS, LOCAL_IN_REMOTE_CATALOG
    """
    if catalog.for_remote and isinstance(entry, LocalTemplate):
        raise CatalogError(
            ErrorCodes.LOCAL_IN_REMOTE_CATALOG,
            "Local templates may not be added to catalogs intended to be used remotely",
            name=entry.name,
        )

    check_name(entry.name)

    existing = catalog.find_exact(entry.name)
    if existing is not None:
        raise CatalogError(
            ErrorCodes.TEMPLATE_EXISTS,
            f"Template '{entry.name}' already exists, pointing to {existing.one_line_summary()}",
            name=entry.name,
        )

    catalog.insert(entry)


def remove_template(catalog: Catalog, name: str) -> None:
    """
    이름 확인 후 삭제.

    Raises:
        InvalidNameError: 이름 문자 집합 위반
        CatalogError: TEMPLATE_NOT_FOUND
    """
    check_name(name)

    if not catalog.remove(name):
        raise CatalogError(
            ErrorCodes.TEMPLATE_NOT_FOUND,
            f"Template '{name}' doesn't exist in catalog",
            name=name,
        )


# =============================================================================
# Persistence
# =============================================================================


def parse_catalog(text: str, fmt: str = "yaml") -> Catalog:
    """
    카탈로그 텍스트 파싱.

    Args:
        text: 파일 내용
        fmt: "yaml" 또는 "toml"

    Raises:
        CatalogFormatError: 파싱/구조 오류
    """
    try:
        if fmt == "toml":
            data = tomllib.loads(text)
        else:
            data = yaml.safe_load(text)
    except (tomllib.TOMLDecodeError, yaml.YAMLError) as e:
        raise CatalogFormatError(f"cannot parse {fmt} catalog: {e}") from e

    return Catalog.from_dict(data)


def catalog_format(path: Path) -> str:
    return "toml" if path.suffix.lower() == ".toml" else "yaml"


def load_catalog(path: Path, missing_ok: bool = False) -> Catalog:
    """
    카탈로그 파일 로드 (.toml → tomllib, 그 외 → YAML).

    Args:
        path: 카탈로그 파일
        missing_ok: True면 파일이 없을 때 빈 카탈로그

    Raises:
        CatalogFormatError: 파싱/구조 오류
        OSError: 읽기 실패
    """
    if missing_ok and not path.exists():
        return Catalog()

    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise CatalogFormatError(
            f"catalog {path.name} is not valid UTF-8: {e}",
            path=str(path),
        ) from e

    return parse_catalog(text, catalog_format(path))


def save_catalog(path: Path, catalog: Catalog) -> None:
    """
    카탈로그를 원자적 저장 (.toml → tomli_w, 그 외 → YAML).

    TOML에는 null이 없으므로 값이 없는 필드는 to_dict에서 이미 빠져 있어야 함.
    """
    if catalog_format(path) == "toml":
        text = tomli_w.dumps(catalog.to_dict())
    else:
        text = yaml.safe_dump(
            catalog.to_dict(),
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False,
        )
    atomic_write_text(path, text)


@contextmanager
def _catalog_lock(path: Path) -> Generator[None, None, None]:
    """
    카탈로그 파일 락.

    Raises:
        CatalogError: CATALOG_LOCK_TIMEOUT
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    lock = FileLock(path.with_name(path.name + ".lock"), timeout=CATALOG_LOCK_TIMEOUT_SECONDS)

    try:
        lock.acquire()
    except Timeout as e:
        raise CatalogError(
            ErrorCodes.CATALOG_LOCK_TIMEOUT,
            f"Failed to acquire lock for catalog '{path}'",
            path=str(path),
            timeout=CATALOG_LOCK_TIMEOUT_SECONDS,
        ) from e

    try:
        yield
    finally:
        lock.release()


def edit_catalog(path: Path, edit: Callable[[Catalog], None]) -> Catalog:
    """
    락 안에서 load → edit → save.

    파일이 없으면 빈 카탈로그에서 시작.
    edit가 예외를 던지면 저장하지 않음.

    Args:
        path: 카탈로그 파일
        edit: 카탈로그를 제자리에서 수정하는 함수

    Returns:
        저장된 카탈로그
    """
    with _catalog_lock(path):
        catalog = load_catalog(path, missing_ok=True)
        edit(catalog)
        save_catalog(path, catalog)
        logger.info(f"Saved catalog {path} ({len(catalog)} templates)")
        return catalog
