"""Prompt assembly for document generation."""

from .builder import PromptBuilder, doc_type_name, render_metadata_summary

__all__ = ["PromptBuilder", "doc_type_name", "render_metadata_summary"]
