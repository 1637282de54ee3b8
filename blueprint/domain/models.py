"""
Data models: git provider, repository reference, setup kind.

규칙:
- RepositoryReference는 불변 (frozen)
- provider별 URL 템플릿: browse / archive
- 구문 검증 없음: 잘못된 owner/repo/revision은 다운로드 단계에서 실패로 드러남
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from blueprint.domain.constants import DEFAULT_REVISION
from blueprint.domain.errors import CatalogFormatError, UnknownProviderError

# =============================================================================
# Enums
# =============================================================================


class GitProvider(str, Enum):
    """원격 저장소 호스트."""

    GITHUB = "github"
    GITLAB = "gitlab"

    @classmethod
    def parse(cls, value: str) -> "GitProvider":
        """
        provider 토큰 파싱.

        허용: github, GitHub, gitlab, GitLab

        Raises:
            UnknownProviderError: 그 외 토큰
        """
        provider = _PROVIDER_TOKENS.get(value)
        if provider is None:
            raise UnknownProviderError(value)
        return provider


_PROVIDER_TOKENS = {
    "github": GitProvider.GITHUB,
    "GitHub": GitProvider.GITHUB,
    "gitlab": GitProvider.GITLAB,
    "GitLab": GitProvider.GITLAB,
}

_BROWSE_LINKS = {
    GitProvider.GITHUB: "https://github.com/{owner}/{repository}/tree/{revision}",
    GitProvider.GITLAB: "https://gitlab.com/{owner}/{repository}/-/tree/{revision}",
}

_ARCHIVE_LINKS = {
    GitProvider.GITHUB: "https://github.com/{owner}/{repository}/archive/{revision}.tar.gz",
    GitProvider.GITLAB: (
        "https://gitlab.com/api/v4/projects/{owner}%2F{repository}"
        "/repository/archive.tar.gz?sha={revision}"
    ),
}


class SetupKind(str, Enum):
    """템플릿 복사 후 설정 방식 태그 (실행은 외부 hook 담당)."""

    RUST = "rust"
    NPM = "npm"


# =============================================================================
# Repository Reference
# =============================================================================


@dataclass(frozen=True)
class RepositoryReference:
    """(provider, owner, repository, revision)으로 식별되는 원격 스냅샷."""

    owner: str
    repository: str
    revision: str = DEFAULT_REVISION
    provider: GitProvider = GitProvider.GITHUB

    def browse_link(self) -> str:
        return _BROWSE_LINKS[self.provider].format(**self._url_params())

    def archive_link(self) -> str:
        return _ARCHIVE_LINKS[self.provider].format(**self._url_params())

    def cache_key(self) -> str:
        """
        캐시 파일 기본 이름.

        포맷: {provider}_{owner}_{repository}_{revision}
        """
        return f"{self.provider.value}_{self.owner}_{self.repository}_{self.revision}"

    def _url_params(self) -> dict[str, str]:
        return {
            "owner": self.owner,
            "repository": self.repository,
            "revision": self.revision,
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "provider": self.provider.value,
            "owner": self.owner,
            "repository": self.repository,
            "revision": self.revision,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RepositoryReference":
        """
        레코드에서 생성. provider, revision은 생략 가능.

        Raises:
            CatalogFormatError: owner/repository 누락
            UnknownProviderError: 알 수 없는 provider
        """
        missing = [key for key in ("owner", "repository") if key not in data]
        if missing:
            raise CatalogFormatError(
                f"repository record is missing {', '.join(missing)}",
                missing=missing,
            )

        provider = data.get("provider")
        return cls(
            owner=str(data["owner"]),
            repository=str(data["repository"]),
            revision=str(data.get("revision", DEFAULT_REVISION)),
            provider=GitProvider.GITHUB if provider is None else GitProvider.parse(str(provider)),
        )
