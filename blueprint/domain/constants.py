"""
Domain Constants: 캐시 레이아웃, 기본값.

캐시 디렉터리 레이아웃은 외부 점검/정리 도구가 의존하는 계약:
<cache_root>/
├── {provider}_{owner}_{repo}_{revision}.tar.gz      # 마지막으로 받은 아카이브
├── {provider}_{owner}_{repo}_{revision}.tar.etag    # 재검증 토큰 (ETag)
└── {provider}_{owner}_{repo}_{revision}-{sha256}/   # 추출 트리 (0개 이상)
"""

# =============================================================================
# Cache Layout
# =============================================================================

ARCHIVE_SUFFIX = ".tar.gz"
# Path.with_suffix 기준: x.tar.gz → x.tar.etag
TOKEN_SUFFIX = ".etag"
DIGEST_ALGORITHM = "sha256"
EXTRACT_TEMP_PREFIX = ".extract-"
DOWNLOAD_TEMP_SUFFIX = ".part"

# 이 시간(초) 안에 받은 아카이브는 네트워크 확인 없이 재사용
FRESHNESS_WINDOW_SECONDS = 60.0

# 이보다 오래된 .extract-* 디렉터리는 중단된 추출의 잔해로 보고 삭제
STALE_EXTRACT_SECONDS = 3600.0

# =============================================================================
# Network
# =============================================================================

HTTP_TIMEOUT_SECONDS = 60.0
DOWNLOAD_CHUNK_SIZE = 64 * 1024

# =============================================================================
# Catalog / Config Defaults
# =============================================================================

DEFAULT_REVISION = "main"
DEFAULT_REMOTE_CATALOG_PATH = "index.toml"

# 스코프 지정 시 로컬 카탈로그를 가리키는 예약 이름
LOCAL_CATALOG_NAME = "local"
# 검색 결과에서 로컬 카탈로그 출처 표시
LOCAL_SEARCH_LABEL = "<local>"

CATALOG_LOCK_TIMEOUT_SECONDS = 10.0
