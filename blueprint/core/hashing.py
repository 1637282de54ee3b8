"""
해시 계산: 아카이브 content digest

규칙:
- 동일 바이트 → 동일 digest (캐시 디렉터리 구분자)
- 16진수 소문자 문자열
- 기본 SHA-256
"""

import hashlib
from pathlib import Path

from blueprint.domain.constants import DIGEST_ALGORITHM


def compute_bytes_hash(data: bytes, algorithm: str = DIGEST_ALGORITHM) -> str:
    """
    바이트 버퍼 해시 계산.

    Args:
        data: 해시할 바이트
        algorithm: 해시 알고리즘 (기본: sha256)

    Returns:
        해시 문자열
    """
    return hashlib.new(algorithm, data).hexdigest()


def compute_file_hash(file_path: Path, algorithm: str = DIGEST_ALGORITHM) -> str:
    """
    파일 해시 계산.

    파일 전체를 메모리에 올리지 않고 청크 단위로 읽음.
    compute_bytes_hash(file_path.read_bytes())와 같은 값.

    Args:
        file_path: 파일 경로
        algorithm: 해시 알고리즘 (기본: sha256)

    Returns:
        해시 문자열
    """
    h = hashlib.new(algorithm)
    with open(file_path, "rb") as f:
        for chunk in iter(lambda: f.read(8192), b""):
            h.update(chunk)
    return h.hexdigest()
