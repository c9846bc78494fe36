from __future__ import annotations

import json
import os
from dataclasses import dataclass, field, fields, replace
from typing import Dict, List, Mapping, Optional, Union

from dotenv import load_dotenv

from .errors import InvalidVarsPayload, MissingRequiredParameter


DEFAULT_ACTION = "update"
DEFAULT_CONFIG_TEMPLATE = ".gdm.yml"
DEFAULT_OUTPUT_FILE = ".drone-gdm.yml"
DEFAULT_KEY_FILE = "/tmp/gcloud.json"

SDK_PATH = "/google-cloud-sdk"
DEFAULT_GCLOUD_CMD = f"{SDK_PATH}/bin/gcloud"

# JSON 값 전체를 표현하는 재귀 타입 (str/number/bool/null/list/object)
VarValue = Union[str, int, float, bool, None, List["VarValue"], Dict[str, "VarValue"]]
Vars = Dict[str, VarValue]


def load_env_file(path: Optional[str]) -> bool:
    """
    PLUGIN_ENV_FILE 로 지정된 dotenv 파일이 있으면 먼저 로드한다.
    이미 설정된 프로세스 환경변수는 덮어쓰지 않는다.
    """
    if not path:
        return False
    if not os.path.exists(path):
        return False
    return load_dotenv(path, override=False)


def parse_vars(raw: Optional[str]) -> Vars:
    """
    PLUGIN_VARS(JSON 객체 문자열)를 템플릿 변수 매핑으로 변환한다.
    값이 아예 없거나 빈 문자열일 때만 빈 매핑을 돌려준다. 공백만 있는 값은 JSON 이 아니므로 실패한다.
    """
    if raw is None or raw == "":
        return {}
    try:
        data = json.loads(raw)
    except ValueError as e:
        raise InvalidVarsPayload(f"vars 를 JSON 으로 해석할 수 없습니다: {e}") from e
    if not isinstance(data, dict):
        raise InvalidVarsPayload(
            f"vars 는 JSON 객체여야 합니다 (받은 타입: {type(data).__name__})"
        )
    return data


def project_from_token(token: str) -> str:
    """서비스 계정 JSON 에서 project_id 를 꺼낸다. 없거나 해석 불가면 빈 문자열."""
    try:
        data = json.loads(token)
    except ValueError:
        return ""
    if not isinstance(data, dict):
        return ""
    project_id = data.get("project_id")
    if not isinstance(project_id, str):
        return ""
    return project_id.strip()


@dataclass(frozen=True)
class ExecutionParameters:
    # 필수 공통
    deployment: str = ""
    token: str = ""
    project: str = ""

    # gcloud pass-through
    action: str = DEFAULT_ACTION
    async_: bool = False
    preview: bool = False
    create_policy: str = ""
    delete_policy: str = ""
    description: str = ""

    # 파일 경로
    config_template: str = DEFAULT_CONFIG_TEMPLATE
    output_file: str = DEFAULT_OUTPUT_FILE
    gcloud_cmd: str = ""
    key_file: str = DEFAULT_KEY_FILE

    vars: Vars = field(default_factory=dict)

    # 토글
    dry_run: bool = False
    verbose: bool = False

    def __repr__(self) -> str:
        # 로그에 자격 증명이 그대로 남지 않도록 token 은 가린다.
        shown = []
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name == "token" and value:
                value = "***"
            shown.append(f"{f.name}={value!r}")
        return f"ExecutionParameters({', '.join(shown)})"


def _strip(value: Optional[str]) -> str:
    return (value or "").strip()


def resolve_params(params: ExecutionParameters) -> ExecutionParameters:
    """
    필수 파라미터를 검증하고 기본값을 채운 새 ExecutionParameters 를 돌려준다.
    원본 객체는 변경하지 않는다.

    검증 순서: token → deployment → project.
    project 가 비어 있으면 token(서비스 계정 JSON)의 project_id 를 사용한다.
    """
    token = _strip(params.token)
    if not token:
        raise MissingRequiredParameter("token")

    deployment = _strip(params.deployment)
    if not deployment:
        raise MissingRequiredParameter("deployment")

    # drone-gke 와 같은 방식으로 token 의 project 를 기본값으로 쓴다.
    # 다른 프로젝트에 배포 권한을 받은 서비스 계정이라면 project 를 명시해야 한다.
    project = _strip(params.project)
    if not project:
        project = project_from_token(token)
        if not project:
            raise MissingRequiredParameter("project")

    return replace(
        params,
        token=token,
        deployment=deployment,
        project=project,
        action=_strip(params.action) or DEFAULT_ACTION,
        create_policy=_strip(params.create_policy),
        delete_policy=_strip(params.delete_policy),
        description=_strip(params.description),
        config_template=_strip(params.config_template) or DEFAULT_CONFIG_TEMPLATE,
        output_file=_strip(params.output_file) or DEFAULT_OUTPUT_FILE,
        gcloud_cmd=_strip(params.gcloud_cmd) or DEFAULT_GCLOUD_CMD,
        key_file=_strip(params.key_file) or DEFAULT_KEY_FILE,
    )


def params_from_mapping(values: Mapping[str, object]) -> ExecutionParameters:
    """CLI 옵션 dict 처럼 이름이 맞는 값만 골라 ExecutionParameters 를 만든다."""
    names = {f.name for f in fields(ExecutionParameters)}
    return ExecutionParameters(**{k: v for k, v in values.items() if k in names and v is not None})
