"""
gcp_auth
--------

서비스 계정 자격 증명(JSON)을 임시 파일로 내려놓고
`gcloud auth activate-service-account` 로 활성화하는 유틸.

임시 키 파일은 with 블록을 벗어나는 모든 경로(성공/실패)에서 삭제를 시도한다.
플러그인은 일회용 컨테이너 안에서 돈다고 가정하므로 삭제 실패는 경고로만 남긴다.
"""

from __future__ import annotations

import os
from contextlib import contextmanager
from typing import Iterator

from .config import ExecutionParameters
from .errors import CommandError, CredentialActivationError, CredentialWriteError
from .logging_utils import get_logger
from .subprocess_utils import run_command, trace


logger = get_logger(__name__)


def _write_key_file(token: str, path: str) -> None:
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "w", encoding="utf-8") as f:
        f.write(token)
    # 이미 있던 파일이면 O_CREAT 의 mode 가 적용되지 않으므로 다시 맞춘다.
    os.chmod(path, 0o600)


def _remove_key_file(path: str) -> None:
    try:
        os.remove(path)
    except OSError as e:
        logger.warning("임시 키 파일 삭제 실패: %s (%s)", path, e)


@contextmanager
def credential_file(token: str, path: str) -> Iterator[str]:
    """
    token 을 path 에 0600 권한으로 쓰고 경로를 넘겨준다.
    블록이 끝나면(예외 포함) 파일을 지운다.
    """
    try:
        _write_key_file(token, path)
    except OSError as e:
        # 일부만 쓰인 파일이 남았을 수 있다.
        if os.path.exists(path):
            _remove_key_file(path)
        raise CredentialWriteError(f"키 파일을 쓸 수 없습니다: {path} ({e})") from e

    logger.debug("임시 키 파일 생성: %s", path)
    try:
        yield path
    finally:
        _remove_key_file(path)


def activate_service_account(params: ExecutionParameters, key_path: str) -> None:
    cmd = [
        params.gcloud_cmd,
        "auth",
        "activate-service-account",
        "--key-file",
        key_path,
    ]
    trace(cmd)
    try:
        run_command(cmd)
    except CommandError as e:
        raise CredentialActivationError(f"서비스 계정을 활성화할 수 없습니다: {e}") from e
    logger.info("서비스 계정 활성화 완료")
