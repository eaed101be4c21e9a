"""Prompt loading and rendering utilities."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateNotFound

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"

CREATE_TEMPLATE = "webpage/create.md"
MODIFY_TEMPLATE = "webpage/modify.md"


@dataclass(frozen=True)
class PromptEntry:
    """Loaded prompt content and metadata."""

    content: str
    metadata: dict[str, Any]


def _split_front_matter(source: str) -> tuple[str, str | None]:
    if source.startswith("---"):
        parts = source.split("---", 2)
        if len(parts) == 3:
            return parts[2].lstrip(), parts[1]
    return source, None


class FrontMatterLoader(FileSystemLoader):
    """Jinja2 loader that strips YAML front matter."""

    def get_source(self, environment: Environment, template: str):  # type: ignore[override]
        source, filename, uptodate = super().get_source(environment, template)
        body, _ = _split_front_matter(source)
        return body, filename, uptodate


class PromptLoader:
    """Load and render Markdown prompt templates."""

    def __init__(self, prompts_dir: Path | str | None = None) -> None:
        self.prompts_dir = Path(prompts_dir) if prompts_dir else TEMPLATES_DIR
        self.cache: dict[str, PromptEntry] = {}
        self._env = Environment(
            loader=FrontMatterLoader(str(self.prompts_dir)),
            undefined=StrictUndefined,
        )

    def load(self, prompt_path: str) -> str:
        """
        Load a prompt body without rendering it.

        Args:
            prompt_path: Relative path (e.g., "webpage/create.md")

        Returns:
            Prompt content with front matter removed
        """
        if prompt_path in self.cache:
            return self.cache[prompt_path].content

        file_path = self.prompts_dir / prompt_path
        if not file_path.exists():
            raise FileNotFoundError(f"Prompt not found: {file_path}")

        body, front_matter = _split_front_matter(file_path.read_text(encoding="utf-8"))
        metadata = (yaml.safe_load(front_matter) or {}) if front_matter else {}
        self.cache[prompt_path] = PromptEntry(content=body, metadata=metadata)
        return body

    def render(self, prompt_path: str, **variables: Any) -> str:
        """Render a prompt with Jinja2, failing on missing variables."""
        try:
            template = self._env.get_template(prompt_path)
        except TemplateNotFound as exc:
            raise FileNotFoundError(f"Prompt not found: {prompt_path}") from exc
        return template.render(**variables)

    def get_metadata(self, prompt_path: str) -> dict[str, Any]:
        """Return front matter metadata for a prompt (loads if needed)."""
        if prompt_path not in self.cache:
            self.load(prompt_path)
        return self.cache[prompt_path].metadata


def build_prompt(
    user_request: str,
    previous_html: str | None,
    loader: PromptLoader | None = None,
) -> str:
    """Frame a request as a fresh page or as an edit of ``previous_html``."""
    loader = loader or PromptLoader()
    if previous_html:
        return loader.render(
            MODIFY_TEMPLATE,
            user_request=user_request,
            previous_html=previous_html,
        )
    return loader.render(CREATE_TEMPLATE, user_request=user_request)
