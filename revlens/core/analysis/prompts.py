"""Prompt templates for the analysis generator.

One template per analysis kind:
1. code_analysis - overview, functions, patterns, issues, dependencies (JSON)
2. documentation - technical documentation (Markdown)
3. pattern_detection - design patterns and anti-patterns (JSON)
4. dependency_map - inter-file dependencies from the file list (JSON)
"""

from dataclasses import dataclass
from typing import List, Optional


@dataclass
class FileInput:
    """A project file as seen by the generator."""
    name: str
    language: str
    content: Optional[str] = None


def format_sources(files: List[FileInput], max_chars: int) -> str:
    """Concatenate text files under a character budget, one fenced block each."""
    parts = []
    remaining = max_chars
    for f in files:
        if not f.content or remaining <= 0:
            continue
        body = f.content[:remaining]
        remaining -= len(body)
        parts.append(f"### {f.name} ({f.language})\n```{f.language}\n{body}\n```")
    return "\n\n".join(parts)


def format_file_list(files: List[FileInput]) -> str:
    return "\n".join(f"- {f.name} ({f.language})" for f in files)


def primary_language(files: List[FileInput]) -> str:
    """Most common language among the files, ignoring unknown."""
    counts = {}
    for f in files:
        if f.language and f.language != "unknown":
            counts[f.language] = counts.get(f.language, 0) + 1
    if not counts:
        return "unknown"
    return max(sorted(counts), key=counts.get)


def build_code_analysis_prompt(language: str, sources: str) -> str:
    return f"""Analyze the following {language} code and provide, as JSON:

1. An overview of the code and its purpose
2. The main functions and methods
3. Design patterns in use
4. Potential problems and suggested improvements
5. An analysis of its dependencies

Code:
{sources}

Respond with JSON only."""


def build_documentation_prompt(language: str, sources: str) -> str:
    return f"""Write technical documentation for the following {language} code. Include:

1. API reference (functions and methods)
2. Architecture overview
3. Usage examples
4. Configuration
5. Troubleshooting

Code:
{sources}

Respond in Markdown."""


def build_pattern_detection_prompt(language: str, sources: str) -> str:
    return f"""Analyze the following {language} code and identify the design patterns and anti-patterns it uses:

1. Design patterns (Singleton, Factory, Observer, ...)
2. Anti-patterns (God Object, Spaghetti Code, ...)
3. An assessment of code quality
4. Refactoring suggestions

Code:
{sources}

Respond with JSON only."""


def build_dependency_map_prompt(file_list: str) -> str:
    return f"""Analyze the dependencies between the following files and describe the project structure:

Files:
{file_list}

Provide, as JSON:
1. A map of dependencies between files
2. An analysis of the module structure
3. Any circular dependencies
4. Suggestions for improving the architecture

Respond with JSON only."""
