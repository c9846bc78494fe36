"""
template
--------

배포 설정 템플릿(.gdm.yml)을 PLUGIN_VARS 로 렌더링한다.

- Jinja2 + StrictUndefined: 템플릿이 참조하는 변수가 vars 에 없으면 빈 값으로 채우지 않고 실패한다.
  Jinja2 기본 전역(range, namespace 등)과 파이썬 속성(dict.items, str.upper 등)으로도 대체되지 않는다.
- drone-gdm 시절의 Go 템플릿 표기(`{{.name}}`, `{{ .a.b }}`)도 그대로 받는다.
- 렌더링 결과는 임시 파일에 쓴 뒤 os.replace 로 교체하므로, 중간에 죽어도 잘린 설정 파일이 남지 않는다.
"""

from __future__ import annotations

import json
import os
import re
import sys
import tempfile
from pathlib import Path
from typing import Any, Mapping, Optional, TextIO

from jinja2 import DictLoader, Environment, StrictUndefined, TemplateError, TemplateSyntaxError

from .config import ExecutionParameters
from .errors import (
    OutputWriteError,
    TemplateNotFound,
    TemplateParseError,
    TemplateReadError,
    TemplateRenderError,
)
from .logging_utils import get_logger


logger = get_logger(__name__)

_ACTION_BLOCK = re.compile(r"(\{\{-?)(.*?)(-?\}\})", re.S)
# 식 안에서 참조의 시작에 오는 '.' (a.b 의 '.' 이나 1.5 의 '.' 은 제외)
_LEADING_DOT = re.compile(r"(?<![\w)\]}'\"])\.(?=[A-Za-z_])")


def convert_go_references(source: str) -> str:
    """`{{ .name }}` 형태를 Jinja2 의 `{{ name }}` 로 바꾼다."""

    def _sub(m: re.Match[str]) -> str:
        return m.group(1) + _LEADING_DOT.sub("", m.group(2)) + m.group(3)

    return _ACTION_BLOCK.sub(_sub, source)


def _finalize(value: Any) -> Any:
    # YAML/JSON 에 그대로 넣을 수 있도록 스칼라는 JSON 표기로 출력
    if value is True:
        return "true"
    if value is False:
        return "false"
    if value is None:
        return "null"
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return value


# vars 에서 온 JSON 값. 이 타입에는 파이썬 속성(items, upper 등)으로 빠지는 경로를 열지 않는다.
_JSON_SCALARS = (str, int, float, bool, type(None))
_JSON_SEQUENCES = (list, tuple, str)


class _StrictDataEnvironment(Environment):
    """
    `a.b` / `a["b"]` 를 JSON 데이터에 대해서는 키/인덱스 조회로만 해석한다.
    없는 키는 파이썬 속성으로 대체하지 않고 undefined 로 돌려 렌더링을 실패시킨다.
    """

    def getattr(self, obj: Any, attribute: str) -> Any:
        if isinstance(obj, Mapping):
            try:
                return obj[attribute]
            except KeyError:
                return self.undefined(obj=obj, name=attribute)
        if isinstance(obj, (list, tuple) + _JSON_SCALARS):
            return self.undefined(obj=obj, name=attribute)
        return super().getattr(obj, attribute)

    def getitem(self, obj: Any, argument: Any) -> Any:
        if isinstance(obj, Mapping) or isinstance(obj, _JSON_SEQUENCES):
            try:
                return obj[argument]
            except (KeyError, IndexError, TypeError):
                return self.undefined(obj=obj, name=argument)
        return super().getitem(obj, argument)


def _environment(name: str, source: str) -> Environment:
    env = _StrictDataEnvironment(
        loader=DictLoader({name: source}),
        undefined=StrictUndefined,
        keep_trailing_newline=True,
        autoescape=False,
        finalize=_finalize,
    )
    # range/dict/namespace 같은 기본 전역이 vars 에 없는 이름을 대신 채우지 않도록 비운다.
    env.globals.clear()
    return env


def render_template(source: str, variables: Mapping[str, Any], name: str = "template") -> str:
    """템플릿 문자열을 렌더링한다. 파일 I/O 는 하지 않는다."""
    env = _environment(name, convert_go_references(source))
    try:
        tmpl = env.get_template(name)
    except TemplateSyntaxError as e:
        raise TemplateParseError(f"템플릿 파싱 실패: {name}:{e.lineno}: {e.message}") from e

    try:
        return tmpl.render(dict(variables))
    except (TemplateError, TypeError, ValueError) as e:
        raise TemplateRenderError(f"템플릿 렌더링 실패: {name}: {e}") from e


def _write_atomic(path: Path, content: str) -> None:
    directory = path.parent
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=str(directory))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.chmod(tmp_name, 0o644)
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.remove(tmp_name)
        raise


def interpolate_template(params: ExecutionParameters, base_dir: Optional[str] = None) -> Path:
    """
    작업 디렉토리 기준 config_template 을 읽어 렌더링하고 output_file 에 쓴다.

    Returns:
        렌더링된 설정 파일 경로
    """
    wd = Path(base_dir) if base_dir is not None else Path(os.getcwd())
    in_path = wd / params.config_template
    out_path = wd / params.output_file

    if not in_path.exists():
        raise TemplateNotFound(f"템플릿을 찾을 수 없습니다: {in_path}")

    try:
        source = in_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise TemplateReadError(f"템플릿을 읽을 수 없습니다: {in_path} ({e})") from e

    rendered = render_template(source, params.vars, name=in_path.name)

    try:
        _write_atomic(out_path, rendered)
    except OSError as e:
        raise OutputWriteError(f"배포 설정 파일을 쓸 수 없습니다: {out_path} ({e})") from e

    logger.info("배포 설정 생성: %s -> %s", in_path.name, out_path)
    return out_path


def dump_data(caption: str, data: Any, stream: Optional[TextIO] = None) -> None:
    w = stream if stream is not None else sys.stdout
    w.write(f"---START {caption}---\n")
    try:
        w.write(json.dumps(data, indent="\t", default=str) + "\n")
    finally:
        w.write(f"---END {caption}---\n")


def dump_file(caption: str, path: os.PathLike[str] | str, stream: Optional[TextIO] = None) -> None:
    w = stream if stream is not None else sys.stdout
    w.write(f"---START {caption}---\n")
    try:
        try:
            w.write(Path(path).read_text(encoding="utf-8") + "\n")
        except OSError as e:
            w.write(f"error reading file: {e}\n")
    finally:
        w.write(f"---END {caption}---\n")
