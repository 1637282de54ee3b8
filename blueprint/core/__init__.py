"""
Core layer: 캐시 핵심 모듈.

역할:
- content digest (hashing.py)
- ETag 조건부 다운로드 (fetch.py)
- 아카이브 캐시: 신선도 정책, 추출, 평탄화 (archive_cache.py)
"""

from .archive_cache import ArchiveCache, flatten, materialize
from .fetch import ConditionalFetcher, read_token, token_path_for
from .hashing import compute_bytes_hash, compute_file_hash

__all__ = [
    # hashing
    "compute_bytes_hash",
    "compute_file_hash",
    # fetch
    "ConditionalFetcher",
    "read_token",
    "token_path_for",
    # archive_cache
    "ArchiveCache",
    "flatten",
    "materialize",
]
