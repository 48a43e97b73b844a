"""Prompt construction for the language model."""

from mindsync.services.prompt.prompt_builder import CompletionPrompt, PromptBuilder

__all__ = ["CompletionPrompt", "PromptBuilder"]
