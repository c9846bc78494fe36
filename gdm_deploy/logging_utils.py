import logging
import os
import sys


LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def setup_logging(verbose: bool = False) -> None:
    """
    플러그인 로그 설정. stdout 으로 내보내 gcloud 출력과 같은 CI 로그에 남긴다.

    PLUGIN_LOG_LEVEL 이 있으면 verbose 보다 우선한다.
    """
    level = logging.DEBUG if verbose else logging.INFO
    override = os.getenv("PLUGIN_LOG_LEVEL", "").strip().upper()
    if override in {"DEBUG", "INFO", "WARNING", "ERROR"}:
        level = getattr(logging, override)

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        stream=sys.stdout,
    )


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
