"""
errors
------

파이프라인 단계별 예외 정의.
모든 예외는 실행 전체를 중단시키며, CLI 최상단에서 메시지를 출력하고 exit 1 로 끝난다.
"""

from __future__ import annotations

from typing import Sequence


class GdmDeployError(RuntimeError):
    """이 패키지에서 발생하는 모든 예외의 베이스."""


_FIELD_LABELS = {
    "token": "service account credential",
}


class MissingRequiredParameter(GdmDeployError):
    def __init__(self, field: str) -> None:
        self.field = field
        label = _FIELD_LABELS.get(field)
        shown = f"{field} ({label})" if label else field
        super().__init__(f"필수 파라미터가 누락되었습니다: {shown}")


class InvalidVarsPayload(GdmDeployError):
    pass


class CommandError(GdmDeployError):
    """외부 명령 실행 실패 (exit != 0, 실행 파일 없음, 타임아웃)."""

    def __init__(self, message: str, *, cmd: Sequence[str], returncode: int | None = None) -> None:
        self.cmd = list(cmd)
        self.returncode = returncode
        super().__init__(message)


class CredentialWriteError(GdmDeployError):
    pass


class CredentialActivationError(GdmDeployError):
    pass


class TemplateNotFound(GdmDeployError):
    pass


class TemplateReadError(GdmDeployError):
    pass


class TemplateParseError(GdmDeployError):
    pass


class TemplateRenderError(GdmDeployError):
    pass


class OutputWriteError(GdmDeployError):
    pass


class DeploymentExecutionError(GdmDeployError):
    pass
