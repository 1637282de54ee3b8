"""
Templates layer: 템플릿 카탈로그/검색/해석 모듈.

역할:
- 템플릿 엔트리 + 이름 검증 (entry.py)
- 카탈로그 CRUD + 파일 저장 (catalog.py)
- 다중 카탈로그 검색 병합 (search.py)
- 원격 카탈로그 + 설정 모델 (remote.py)
- 이름 → 디렉터리 해석, 복사 (resolver.py)
"""

from .catalog import (
    Catalog,
    add_template,
    edit_catalog,
    load_catalog,
    parse_catalog,
    remove_template,
    save_catalog,
)
from .entry import (
    CatalogEntry,
    LocalTemplate,
    RepositoryTemplate,
    check_name,
    entry_from_dict,
)
from .remote import Config, RemoteCatalog
from .resolver import TemplateResolver, check_target_directory
from .search import ComposedResult, FindResult, SearchHit, aggregate

__all__ = [
    # entry
    "CatalogEntry",
    "RepositoryTemplate",
    "LocalTemplate",
    "check_name",
    "entry_from_dict",
    # catalog
    "Catalog",
    "add_template",
    "remove_template",
    "parse_catalog",
    "load_catalog",
    "save_catalog",
    "edit_catalog",
    # search
    "FindResult",
    "ComposedResult",
    "SearchHit",
    "aggregate",
    # remote
    "RemoteCatalog",
    "Config",
    # resolver
    "TemplateResolver",
    "check_target_directory",
]
