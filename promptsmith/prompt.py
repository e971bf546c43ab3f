"""Prompt file parser with frontmatter and {{}} variable support.

Prompt file layout:
    ---
    name: summarizer
    description: Summarize an article
    model_hint: gpt-4o
    variables:
      - name: article
        type: string
        required: true
    ---
    Summarize the following article:
    {{article}}

Rules:
- Frontmatter is optional; it must open the file (leading whitespace allowed)
- {{name}} is a variable; {{#section}} and {{/section}} are not
- Duplicate variable names are reported once, in order of first appearance
- Frontmatter variables, when declared, are authoritative over extracted ones
"""

import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import yaml

from .errors import PromptParseError

FRONTMATTER_DELIMITER = "---"


@dataclass
class Variable:
    """A template variable, declared in frontmatter or extracted from the body."""
    name: str
    type: str = "string"
    required: bool = True
    default: Any = None
    values: List[str] = field(default_factory=list)  # For enum type

    def to_dict(self) -> Dict[str, Any]:
        data = {"name": self.name, "type": self.type, "required": self.required}
        if self.default is not None:
            data["default"] = self.default
        if self.values:
            data["values"] = self.values
        return data


@dataclass
class Frontmatter:
    name: str = ""
    description: str = ""
    model_hint: str = ""
    variables: List[Variable] = field(default_factory=list)


@dataclass
class ParsedPrompt:
    """Result of parsing one prompt file."""
    raw_content: str
    content: str  # Body without frontmatter
    frontmatter: Optional[Frontmatter] = None
    extracted_vars: List[str] = field(default_factory=list)

    @property
    def has_frontmatter(self) -> bool:
        return self.frontmatter is not None

    @property
    def name(self) -> str:
        if self.frontmatter and self.frontmatter.name:
            return self.frontmatter.name
        return ""

    @property
    def description(self) -> str:
        if self.frontmatter:
            return self.frontmatter.description
        return ""

    def variables(self) -> List[Variable]:
        if self.frontmatter and self.frontmatter.variables:
            return list(self.frontmatter.variables)
        return [Variable(name=v) for v in self.extracted_vars]

    def variables_json(self) -> str:
        """Serialized variable list stored on each version."""
        return json.dumps([v.to_dict() for v in self.variables()], separators=(",", ":"))

    def metadata_json(self) -> str:
        """Serialized metadata stored on each version."""
        metadata = {}
        if self.frontmatter and self.frontmatter.model_hint:
            metadata["model_hint"] = self.frontmatter.model_hint
        if not metadata:
            return "{}"
        return json.dumps(metadata, separators=(",", ":"))


class PromptTemplateParser:
    """Parser for prompt files."""

    # Pattern to match {{variable}}, excluding {{#section}} and {{/section}}
    VARIABLE_PATTERN = re.compile(r'\{\{([^#/}][^}]*)\}\}')

    def parse(self, content: str) -> ParsedPrompt:
        """Split frontmatter from body and extract variables.

        Args:
            content: Full prompt file content

        Returns:
            ParsedPrompt

        Raises:
            PromptParseError: If the frontmatter is not valid YAML mapping
        """
        parsed = ParsedPrompt(raw_content=content, content=content)

        if content.strip().startswith(FRONTMATTER_DELIMITER):
            parts = content.split(FRONTMATTER_DELIMITER, 2)
            if len(parts) >= 3:
                parsed.frontmatter = self._parse_frontmatter(parts[1].strip())
                parsed.content = parts[2].strip()

        parsed.extracted_vars = self.extract_variable_names(parsed.content)
        return parsed

    def extract_variable_names(self, template: str) -> List[str]:
        """Extract all unique variable names from template.

        Args:
            template: Prompt body with {{}} syntax

        Returns:
            List of unique variable names (in order of first appearance)
        """
        seen = set()
        names = []

        for match in self.VARIABLE_PATTERN.findall(template):
            name = match.strip()
            if name and name not in seen:
                seen.add(name)
                names.append(name)

        return names

    def _parse_frontmatter(self, text: str) -> Frontmatter:
        try:
            data = yaml.safe_load(text) if text else {}
        except yaml.YAMLError as e:
            raise PromptParseError(f"failed to parse frontmatter: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise PromptParseError("failed to parse frontmatter: expected a mapping")

        variables = []
        for item in data.get("variables") or []:
            if not isinstance(item, dict) or not item.get("name"):
                raise PromptParseError("failed to parse frontmatter: each variable needs a name")
            variables.append(Variable(
                name=str(item["name"]),
                type=str(item.get("type") or "string"),
                required=bool(item.get("required", False)),
                default=item.get("default"),
                values=[str(v) for v in item.get("values") or []]
            ))

        return Frontmatter(
            name=str(data.get("name") or ""),
            description=str(data.get("description") or ""),
            model_hint=str(data.get("model_hint") or ""),
            variables=variables
        )


def parse_prompt(content: str) -> ParsedPrompt:
    """Convenience wrapper around PromptTemplateParser().parse."""
    return PromptTemplateParser().parse(content)
