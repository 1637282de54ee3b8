"""
test_resolver.py - 템플릿 해석 / 복사 테스트

DoD:
- 스코프 없음: 로컬 먼저, 원격은 설정 순서
- 스코프 지정: 해당 카탈로그만 ("local" 또는 원격 이름)
- 원격 카탈로그는 resolver 안에서 한 번만 가져옴
- scaffold: 대상 검사 → materialize → 복사
"""

from pathlib import Path

import pytest

from blueprint.domain.errors import CatalogError, CatalogRetrievalError, ErrorCodes, InvalidNameError
from blueprint.domain.models import RepositoryReference
from blueprint.templates.catalog import Catalog
from blueprint.templates.entry import LocalTemplate, RepositoryTemplate
from blueprint.templates.remote import Config, RemoteCatalog
from blueprint.templates.resolver import TemplateResolver, check_target_directory

INDEX_REF = RepositoryReference("acme", "templates")
WEB_REF = RepositoryReference("acme", "web-template")

INDEX_TOML = """
for_remote = true

[[template]]
name = "web"
owner = "acme"
repository = "web-template"
description = "Remote web starter"

[[template]]
name = "rest-api"
owner = "acme"
repository = "rest-api-template"
description = "REST service"
"""


@pytest.fixture
def local_template_dir(tmp_path: Path) -> Path:
    path = tmp_path / "templates" / "scratch"
    (path / "src").mkdir(parents=True)
    (path / "README.md").write_text("# scratch")
    (path / "src" / "main.py").write_text("print('scratch')\n")
    return path


@pytest.fixture
def local_catalog(local_template_dir: Path) -> Catalog:
    return Catalog([LocalTemplate("scratch", local_template_dir, "Local scratch")])


@pytest.fixture
def published(archive_server, make_archive):
    """원격 카탈로그 + web 템플릿 게시."""
    archive_server.publish(INDEX_REF.archive_link(), make_archive({"index.toml": INDEX_TOML}))
    archive_server.publish(
        WEB_REF.archive_link(),
        make_archive({"package.json": "{}", "src/index.js": "// web"}),
    )
    return archive_server


@pytest.fixture
def resolver(local_catalog, cache_root, fetcher) -> TemplateResolver:
    config = Config([RemoteCatalog("community", INDEX_REF)])
    return TemplateResolver(local_catalog, config, cache_root, fetcher)


class TestFind:
    """TemplateResolver.find 테스트."""

    def test_local_first_without_network(self, resolver, archive_server):
        """로컬에 있으면 원격 카탈로그를 가져오지 않음."""
        entry = resolver.find("scratch")

        assert isinstance(entry, LocalTemplate)
        assert archive_server.requests == []

    def test_falls_back_to_remote(self, resolver, published):
        """로컬에 없으면 원격."""
        entry = resolver.find("web")

        assert isinstance(entry, RepositoryTemplate)
        assert entry.description == "Remote web starter"

    def test_local_shadows_remote(self, local_catalog, cache_root, fetcher, published):
        """같은 이름이면 로컬 우선."""
        local_catalog.insert(RepositoryTemplate("web", RepositoryReference("me", "mine")))
        resolver = TemplateResolver(
            local_catalog, Config([RemoteCatalog("community", INDEX_REF)]), cache_root, fetcher
        )

        assert resolver.find("web").repository.owner == "me"
        assert resolver.find("web", "community").repository.owner == "acme"

    def test_scoped_local(self, resolver, published):
        """"local" 스코프는 로컬만."""
        with pytest.raises(CatalogError) as exc_info:
            resolver.find("web", "local")

        assert exc_info.value.code == ErrorCodes.TEMPLATE_NOT_FOUND

    def test_unknown_scope(self, resolver):
        """설정에 없는 스코프 → UNKNOWN_CATALOG."""
        with pytest.raises(CatalogError) as exc_info:
            resolver.find("web", "elsewhere")

        assert exc_info.value.code == ErrorCodes.UNKNOWN_CATALOG

    def test_not_found(self, resolver, published):
        """어디에도 없음 → TEMPLATE_NOT_FOUND."""
        with pytest.raises(CatalogError) as exc_info:
            resolver.find("nope")

        assert exc_info.value.code == ErrorCodes.TEMPLATE_NOT_FOUND

    def test_empty_name_not_found(self, resolver, published):
        """빈 이름은 이름 검증을 통과하고 조회에서 실패."""
        with pytest.raises(CatalogError) as exc_info:
            resolver.find("")

        assert exc_info.value.code == ErrorCodes.TEMPLATE_NOT_FOUND

    def test_invalid_name(self, resolver, archive_server):
        """이름 검증이 조회보다 먼저."""
        with pytest.raises(InvalidNameError):
            resolver.find("../etc")

        assert archive_server.requests == []

    def test_remote_failure_propagates(self, resolver):
        """원격 카탈로그 획득 실패 → CatalogRetrievalError."""
        with pytest.raises(CatalogRetrievalError):
            resolver.find("web")

    def test_remote_catalog_memoized(self, resolver, published):
        """원격 카탈로그는 한 번만 가져옴."""
        resolver.find("web")
        resolver.find("rest-api")
        resolver.search("web")

        assert len(published.requests_for(INDEX_REF.archive_link())) == 1


class TestSearch:
    """TemplateResolver.search 테스트."""

    def test_local_and_remote_labels(self, resolver, published):
        """로컬 라벨 <local>, 원격은 카탈로그 이름."""
        result = resolver.search("s")

        hits = [
            (hit.catalog, hit.entry.name)
            for _, bucket in result.buckets()
            for hit in bucket
        ]
        assert ("<local>", "scratch") in hits
        assert ("community", "rest-api") in hits

    def test_case_insensitive(self, resolver, published):
        """rest → REST service 매칭."""
        result = resolver.search("rest")

        assert [h.entry.name for h in result.name_and_description] == ["rest-api"]


class TestResolve:
    """resolve 테스트."""

    def test_local_path(self, resolver, local_template_dir):
        """로컬 템플릿 → 저장된 경로."""
        assert resolver.resolve("scratch") == local_template_dir

    def test_repository_tree(self, resolver, published, cache_root):
        """저장소 템플릿 → 캐시의 평탄화된 트리."""
        path = resolver.resolve("web")

        assert path.parent == cache_root
        assert path.name.startswith("github_acme_web-template_main-")
        assert (path / "package.json").exists()


class TestScaffold:
    """scaffold 테스트."""

    def test_copies_local_template(self, resolver, tmp_path, local_template_dir):
        """로컬 템플릿 복사, 원본 유지."""
        target = tmp_path / "new-project"

        result = resolver.scaffold("scratch", target)

        assert result == target
        assert (target / "README.md").read_text() == "# scratch"
        assert (target / "src" / "main.py").exists()
        assert (local_template_dir / "README.md").exists()

    def test_copies_repository_template(self, resolver, published, tmp_path):
        """저장소 템플릿 복사, 캐시 트리는 그대로."""
        target = tmp_path / "app"

        resolver.scaffold("web", target, scope="community")
        (target / "package.json").write_text('{"name": "app"}')

        cached = resolver.resolve("web")
        assert (target / "src" / "index.js").read_text() == "// web"
        assert (cached / "package.json").read_text() == "{}"

    def test_existing_empty_directory(self, resolver, tmp_path):
        """빈 디렉터리는 허용."""
        target = tmp_path / "empty"
        target.mkdir()

        resolver.scaffold("scratch", target)

        assert (target / "README.md").exists()

    def test_non_empty_directory_rejected_before_download(
        self, resolver, archive_server, tmp_path
    ):
        """비어 있지 않으면 다운로드 전에 거부."""
        target = tmp_path / "dirty"
        target.mkdir()
        (target / "keep.txt").write_text("keep")

        with pytest.raises(CatalogError) as exc_info:
            resolver.scaffold("web", target)

        assert exc_info.value.code == ErrorCodes.TARGET_NOT_EMPTY
        assert archive_server.requests == []

    def test_allow_dirty(self, resolver, tmp_path):
        """allow_dirty면 기존 파일 유지하며 복사."""
        target = tmp_path / "dirty"
        target.mkdir()
        (target / "keep.txt").write_text("keep")

        resolver.scaffold("scratch", target, allow_dirty=True)

        assert (target / "keep.txt").read_text() == "keep"
        assert (target / "README.md").exists()


class TestCheckTargetDirectory:
    """check_target_directory 테스트."""

    def test_missing_ok(self, tmp_path):
        """없는 경로 허용."""
        check_target_directory(tmp_path / "new")

    def test_file_rejected(self, tmp_path):
        """파일 → TARGET_NOT_DIRECTORY (allow_dirty여도)."""
        target = tmp_path / "file.txt"
        target.write_text("x")

        with pytest.raises(CatalogError) as exc_info:
            check_target_directory(target, allow_dirty=True)

        assert exc_info.value.code == ErrorCodes.TARGET_NOT_DIRECTORY
