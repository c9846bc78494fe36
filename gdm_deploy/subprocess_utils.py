from __future__ import annotations

import subprocess
import sys
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence, TextIO

from .errors import CommandError
from .logging_utils import get_logger


logger = get_logger(__name__)


@dataclass(frozen=True)
class RunResult:
    returncode: int


def trace(cmd: Sequence[str], stream: Optional[TextIO] = None) -> None:
    """
    실행(예정)인 외부 명령을 `+ <argv>` 한 줄로 출력한다.
    CI 로그에서 어떤 명령이 나갔는지 추적하기 위한 용도.
    """
    out = stream if stream is not None else sys.stdout
    out.write("+ " + " ".join(cmd) + "\n")
    out.flush()


def run_command(
    cmd: Sequence[str],
    *,
    cwd: str | None = None,
    env: Mapping[str, str] | None = None,
    timeout: float | None = None,
) -> RunResult:
    """
    subprocess 실행 공통 유틸.

    stdout/stderr 는 캡처하지 않고 부모 프로세스 것을 그대로 물려준다.
    (gcloud 진행 로그가 CI 로그에 바로 흘러가도록)
    """
    logger.debug("명령 실행: %s", " ".join(cmd))

    try:
        result = subprocess.run(  # noqa: S603
            list(cmd),
            check=False,
            cwd=cwd,
            env=dict(env) if env is not None else None,
            timeout=timeout,
        )
    except FileNotFoundError as e:
        raise CommandError(
            f"필요한 명령을 찾을 수 없습니다: {cmd[0]} (gcloud 가 설치되어 있는지 확인하세요)",
            cmd=cmd,
        ) from e
    except subprocess.TimeoutExpired as e:
        raise CommandError(
            f"명령 실행이 {timeout}초 안에 끝나지 않았습니다: {' '.join(cmd)}",
            cmd=cmd,
        ) from e

    if result.returncode != 0:
        raise CommandError(
            f"명령 실행 실패: {' '.join(cmd)} (exit={result.returncode})",
            cmd=cmd,
            returncode=result.returncode,
        )

    return RunResult(returncode=result.returncode)
