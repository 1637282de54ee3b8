"""
Error definitions for template resolution.

규칙:
- 조용한 실패 금지 → 모든 실패는 BlueprintError 하위 타입으로 명시적 전파
- 재시도/백오프 없음: 호출자가 그대로 받음
- fatal/recoverable 구분 없음, code(에러 종류)만 존재
- 파일시스템 OSError는 캐시 계층에서 그대로 전파 (감싸지 않음)
"""

from typing import Any


class BlueprintError(Exception):
    """
    blueprint 공통 에러.

    Usage:
        raise CatalogError(ErrorCodes.TEMPLATE_NOT_FOUND, "Unknown template: x", name="x")
    """

    def __init__(self, code: str, message: str, **context: Any) -> None:
        self.code = code
        self.message = message
        self.context = context
        super().__init__(f"[{code}] {message}")

    def to_dict(self) -> dict[str, Any]:
        """로그/JSON 직렬화용."""
        return {
            "code": self.code,
            "message": self.message,
            **self.context,
        }


# =============================================================================
# Download / Archive
# =============================================================================

class DownloadError(BlueprintError):
    """전송 실패 또는 비성공 HTTP 상태."""

    def __init__(self, url: str, message: str, status: int | None = None) -> None:
        context: dict[str, Any] = {"url": url}
        if status is not None:
            context["status"] = status
        super().__init__(ErrorCodes.DOWNLOAD_FAILED, message, **context)
        self.url = url
        self.status = status


class ArchiveError(BlueprintError):
    """압축 해제 불가 (손상된 tar.gz)."""

    def __init__(self, archive: str, message: str) -> None:
        super().__init__(ErrorCodes.ARCHIVE_CORRUPT, message, archive=archive)


class ArchiveLayoutError(BlueprintError):
    """
    최상위 엔트리 형태 위반 (precondition).

    추출 결과 최상위에는 wrapper 디렉터리가 정확히 하나 있어야 함.
    """

    def __init__(self, archive: str, entries: list[str]) -> None:
        super().__init__(
            ErrorCodes.ARCHIVE_LAYOUT,
            f"expected exactly one top-level directory, found {len(entries)}",
            archive=archive,
            entries=entries,
        )
        self.entries = entries


# =============================================================================
# Catalog
# =============================================================================

class CatalogError(BlueprintError):
    """카탈로그 정책 위반, 템플릿 조회 실패."""


class CatalogFormatError(BlueprintError):
    """카탈로그/템플릿 레코드 역직렬화 실패."""

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(ErrorCodes.CATALOG_FORMAT, message, **context)


class CatalogRetrievalError(BlueprintError):
    """
    원격 카탈로그 획득 실패.

    kind:
    - download: DownloadError (전송/상태 코드)
    - io: 파일시스템 또는 압축 해제 실패
    - deserialize: 카탈로그 파일 파싱 실패
    """

    def __init__(self, catalog: str, kind: str, cause: Exception) -> None:
        super().__init__(
            ErrorCodes.CATALOG_RETRIEVAL_FAILED,
            f"Cannot get catalog '{catalog}': {cause}",
            catalog=catalog,
            kind=kind,
        )
        self.kind = kind


class UnknownProviderError(BlueprintError):
    """알 수 없는 git provider 토큰."""

    def __init__(self, value: str) -> None:
        super().__init__(
            ErrorCodes.UNKNOWN_PROVIDER,
            f"no such git provider: {value!r}",
            value=value,
        )
        self.value = value


class InvalidNameError(BlueprintError):
    """템플릿 이름 문자 집합 위반. 위반 문자와 위치를 보고."""

    def __init__(self, name: str, char: str, index: int) -> None:
        super().__init__(
            ErrorCodes.INVALID_TEMPLATE_NAME,
            f"invalid character {char!r} at {index}",
            name=name,
            char=char,
            index=index,
        )
        self.char = char
        self.index = index


class ConfigError(BlueprintError):
    """설정 파일 파싱/수정 실패."""


# =============================================================================
# Error Codes
# =============================================================================

class ErrorCodes:
    """에러 코드 상수."""

    # === Download / Cache ===
    DOWNLOAD_FAILED = "DOWNLOAD_FAILED"
    ARCHIVE_CORRUPT = "ARCHIVE_CORRUPT"
    ARCHIVE_LAYOUT = "ARCHIVE_LAYOUT"

    # === Catalog ===
    CATALOG_FORMAT = "CATALOG_FORMAT"
    CATALOG_RETRIEVAL_FAILED = "CATALOG_RETRIEVAL_FAILED"
    CATALOG_LOCK_TIMEOUT = "CATALOG_LOCK_TIMEOUT"
    UNKNOWN_PROVIDER = "UNKNOWN_PROVIDER"
    INVALID_TEMPLATE_NAME = "INVALID_TEMPLATE_NAME"
    TEMPLATE_EXISTS = "TEMPLATE_EXISTS"
    TEMPLATE_NOT_FOUND = "TEMPLATE_NOT_FOUND"
    LOCAL_IN_REMOTE_CATALOG = "LOCAL_IN_REMOTE_CATALOG"
    UNKNOWN_CATALOG = "UNKNOWN_CATALOG"

    # === Config ===
    CONFIG_FORMAT = "CONFIG_FORMAT"
    RESERVED_CATALOG_NAME = "RESERVED_CATALOG_NAME"
    REMOTE_CATALOG_EXISTS = "REMOTE_CATALOG_EXISTS"
    REMOTE_CATALOG_NOT_FOUND = "REMOTE_CATALOG_NOT_FOUND"

    # === Scaffold ===
    TARGET_NOT_DIRECTORY = "TARGET_NOT_DIRECTORY"
    TARGET_NOT_EMPTY = "TARGET_NOT_EMPTY"
