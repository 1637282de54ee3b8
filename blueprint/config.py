"""
설정 파일 로드/저장 + 로깅 설정.

설정 파일 (YAML):
    remote_catalog:
      - name: community
        description: Community templates
        provider: github
        owner: acme
        repository: templates
        revision: main
        path: index.toml

경로 탐색(플랫폼 config/cache 디렉터리)은 호출자 담당: 여기서는 받은 경로만 사용.
"""

import logging
from pathlib import Path

import yaml

from blueprint.core.atomic_io import atomic_write_text
from blueprint.domain.errors import ConfigError, ErrorCodes
from blueprint.templates.remote import Config

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: int = logging.INFO) -> None:
    """임베딩 CLI용 로깅 설정."""
    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)


def load_config(config_path: Path) -> Config:
    """
    설정 파일 로드.

    파일이 없으면 빈 설정 (원격 카탈로그 없음).

    Args:
        config_path: 설정 파일 경로

    Returns:
        Config

    Raises:
        ConfigError: CONFIG_FORMAT
    """
    if not config_path.exists():
        return Config()

    try:
        with open(config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (yaml.YAMLError, UnicodeDecodeError) as e:
        raise ConfigError(
            ErrorCodes.CONFIG_FORMAT,
            f"Cannot parse config file {config_path}: {e}",
            path=str(config_path),
        ) from e

    return Config.from_dict(data)


def save_config(config_path: Path, config: Config) -> None:
    """설정을 YAML로 원자적 저장."""
    text = yaml.safe_dump(
        config.to_dict(),
        default_flow_style=False,
        allow_unicode=True,
        sort_keys=False,
    )
    atomic_write_text(config_path, text)
