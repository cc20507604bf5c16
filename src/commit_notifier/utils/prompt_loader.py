"""
프롬프트 로더

prompts/<name>.yaml 에서 system_prompt / human_prompt 템플릿을 읽고
{commit_message}, {file_path}, {diff} 같은 자리표시자를 채웁니다.
"""
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Tuple

import yaml

from commit_notifier.utils.logger import get_logger

logger = get_logger(__name__)

PROMPTS_DIR = Path(__file__).parent.parent / "prompts"


@dataclass(frozen=True)
class PromptTemplate:
    """system/human 프롬프트 한 쌍"""
    system: str = ""
    human: str = ""

    @property
    def is_empty(self) -> bool:
        return not (self.system or self.human)

    def render(self, **values) -> Tuple[str, str]:
        """
        자리표시자 치환

        값 안의 중괄호는 다시 해석되지 않으므로 diff를 그대로 넣어도 됩니다.
        템플릿에 없는 값이 필요하면 치환하지 않은 원문을 반환합니다.
        """
        try:
            return self.system.format(**values), self.human.format(**values)
        except (KeyError, IndexError) as e:
            logger.warning(f"Missing prompt variable {e}; using template text as is")
            return self.system, self.human


class PromptLoader:
    """YAML 프롬프트 템플릿 로더 (이름별 캐시)"""

    def __init__(self, prompts_dir: Optional[str] = None):
        self.prompts_dir = Path(prompts_dir) if prompts_dir else PROMPTS_DIR
        self._cache: Dict[str, PromptTemplate] = {}

    def load(self, name: str) -> PromptTemplate:
        """
        템플릿 로드. 파일이 없거나 읽을 수 없으면 빈 템플릿 반환

        Args:
            name: 확장자를 뺀 파일 이름 (예: commit_review)
        """
        if name in self._cache:
            return self._cache[name]

        path = self.prompts_dir / f"{name}.yaml"
        if not path.exists():
            logger.error(f"Prompt file not found: {path}")
            return PromptTemplate()

        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Error loading prompt {name}: {e}")
            return PromptTemplate()

        template = PromptTemplate(
            system=str(data.get("system_prompt") or ""),
            human=str(data.get("human_prompt") or "")
        )
        self._cache[name] = template
        return template

    def get_prompt(self, name: str, **values) -> Tuple[str, str]:
        """템플릿을 로드해 (system, human) 문자열로 렌더링"""
        return self.load(name).render(**values)
