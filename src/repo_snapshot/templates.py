"""Prompt templates wrapping a snapshot.

Built-in templates embed the snapshot in fixed instructions. Custom templates
come from a YAML file holding a list of mappings::

    - id: tests
      label: Write tests
      description: Ask for missing unit tests.
      prompt: |
        Write pytest tests for the code below.
        {context}

The `{context}` placeholder is replaced once by the snapshot.
"""

from __future__ import annotations

from collections.abc import Callable
from textwrap import dedent
from typing import TYPE_CHECKING

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from repo_snapshot.logging import logger

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

CONTEXT_PLACEHOLDER = "{context}"
DEFAULT_TEMPLATE_ID = "default"


class Template(BaseModel):
    """A named way of turning a snapshot into a prompt."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    id: str
    label: str
    description: str = ""
    build: Callable[[str], str] = Field(..., exclude=True)


class CustomTemplate(BaseModel):
    """User-defined template as written in the templates file."""

    id: str = ""
    label: str = "Custom Template"
    description: str = "User defined template"
    prompt: str = CONTEXT_PLACEHOLDER

    def to_template(self, position: int) -> Template:
        prompt = self.prompt
        return Template(
            id=self.id or f"custom-{position}",
            label=self.label,
            description=self.description,
            build=lambda context: prompt.replace(CONTEXT_PLACEHOLDER, context, 1),
        )


def _wrap(text: str) -> Callable[[str], str]:
    body = dedent(text).strip()
    return lambda context: body.replace(CONTEXT_PLACEHOLDER, context, 1)


BUILT_IN_TEMPLATES: tuple[Template, ...] = (
    Template(
        id=DEFAULT_TEMPLATE_ID,
        label="Standard Context (Raw)",
        description="Copies code and structure without additional instructions.",
        build=lambda context: context,
    ),
    Template(
        id="review",
        label="Code Review & Best Practices",
        description="Deep analysis of code quality, clean code, and performance.",
        build=_wrap("""
            You are an expert Principal Software Engineer. I have provided the project structure and source code below.
            Your task is to perform a comprehensive Code Review.

            # Focus Areas:
            1. **Code Quality**: Clean code principles, DRY, separation of concerns.
            2. **Performance**: Identify potential bottlenecks or inefficient logic.
            3. **Safety**: Spot potential bugs or race conditions.
            4. **Modern Practices**: Suggest modern alternatives to outdated patterns used here.

            # Project Context:
            {context}

            # Instructions:
            Provide your review in a structured format with priority levels (High/Medium/Low) for each suggestion.
        """),
    ),
    Template(
        id="bugfix",
        label="Find Bugs & Error Handling",
        description="Scans for logical bugs, edge cases, and poor error handling.",
        build=_wrap("""
            You are an expert Debugger and QA Engineer. Analyze the following project code specifically for BUGS and LOGICAL ERRORS.

            # Look for:
            - Unhandled exceptions / edge cases.
            - Race conditions or async/await mistakes.
            - Memory leaks or resource management issues.
            - Logic errors that deviate from standard patterns.

            # Project Context:
            {context}

            # Output:
            List the detected issues. For each issue, explain *why* it is a bug and provide the *corrected* code snippet.
        """),
    ),
    Template(
        id="explain",
        label="Explain Architecture",
        description="Explains workflow, folder structure, and project goals.",
        build=_wrap("""
            You are a Technical Lead onboarding a new developer.
            Read the following project structure and code.

            # Task:
            1. **High-Level Summary**: What does this project do?
            2. **Architecture**: Explain the folder structure and how components interact.
            3. **Key Files**: Highlight the most important files and their roles.

            # Project Context:
            {context}
        """),
    ),
    Template(
        id="security",
        label="Security Audit",
        description="Checks for vulnerabilities (XSS, Injection, Secrets, etc.).",
        build=_wrap("""
            You are a Cybersecurity Expert. Perform a Security Audit on the provided code.

            # Audit Checklist:
            - Injection vulnerabilities (SQL, NoSQL, Command).
            - Hardcoded secrets or credentials.
            - Insecure data handling (PII exposure).
            - XSS or CSRF vulnerabilities (if web-based).

            # Project Context:
            {context}

            # Report:
            Provide a security report listing vulnerabilities by severity (Critical/High/Medium) and mitigation steps.
        """),
    ),
    Template(
        id="refactor",
        label="Refactoring Suggestions",
        description="Suggestions to improve maintainability and structure.",
        build=_wrap("""
            You are a Refactoring Specialist. I want to improve the maintainability of this code.

            # Task:
            Identify complex functions, duplicate logic, or messy components that should be refactored.
            Propose a cleaner, more modular implementation.

            # Project Context:
            {context}
        """),
    ),
)


def load_custom_templates(path: Path | None) -> list[Template]:
    """Read user-defined templates from a YAML file.

    A missing file gives no template. Invalid entries are skipped with a warning.

    Args:
        path (Path | None): the YAML file, or None

    Returns:
        list[Template]: the custom templates, in file order
    """
    if path is None or not path.is_file():
        return []
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or []
    if isinstance(data, dict):
        data = data.get("templates", [])
    if not isinstance(data, list):
        logger.warning("invalid_templates_file", path=str(path))
        return []

    templates: list[Template] = []
    for position, item in enumerate(data, start=1):
        try:
            templates.append(CustomTemplate.model_validate(item).to_template(position))
        except ValidationError as e:
            logger.warning("invalid_custom_template", path=str(path), position=position, error=str(e))
    return templates


def get_templates(custom: Sequence[Template] = ()) -> list[Template]:
    """Built-in templates followed by the custom ones."""
    return [*BUILT_IN_TEMPLATES, *custom]


def apply_template(snapshot: str, template_id: str, custom: Sequence[Template] = ()) -> str:
    """Wrap a snapshot with the template `template_id`.

    An unknown id falls back to the first template (the raw snapshot).

    Args:
        snapshot (str): the snapshot text
        template_id (str): the template to apply
        custom (Sequence[Template]): user-defined templates

    Returns:
        str: the prompt
    """
    templates = get_templates(custom)
    template = next((t for t in templates if t.id == template_id), None)
    if template is None:
        logger.info("unknown_template", template_id=template_id, fallback=templates[0].id)
        template = templates[0]
    return template.build(snapshot)
