"""Prompt templates for page generation."""

from .loader import CREATE_TEMPLATE, MODIFY_TEMPLATE, PromptLoader, build_prompt

__all__ = ["CREATE_TEMPLATE", "MODIFY_TEMPLATE", "PromptLoader", "build_prompt"]
