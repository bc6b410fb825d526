"""Language detection from file names.

Used to annotate uploaded files for display and for analysis prompts.
"""

import os
from typing import Dict

UNKNOWN_LANGUAGE = "unknown"

# Extension → language mapping
LANGUAGE_EXTENSIONS: Dict[str, str] = {
    ".go": "go",
    ".js": "javascript",
    ".ts": "typescript",
    ".jsx": "javascript",
    ".tsx": "typescript",
    ".py": "python",
    ".java": "java",
    ".c": "c",
    ".cpp": "cpp",
    ".cc": "cpp",
    ".cxx": "cpp",
    ".h": "c",
    ".hpp": "cpp",
    ".cs": "csharp",
    ".php": "php",
    ".rb": "ruby",
    ".rs": "rust",
    ".swift": "swift",
    ".kt": "kotlin",
    ".scala": "scala",
    ".r": "r",
    ".sql": "sql",
    ".sh": "shell",
    ".bash": "shell",
    ".zsh": "shell",
    ".ps1": "powershell",
    ".html": "html",
    ".htm": "html",
    ".css": "css",
    ".scss": "scss",
    ".sass": "sass",
    ".json": "json",
    ".xml": "xml",
    ".yaml": "yaml",
    ".yml": "yaml",
    ".toml": "toml",
    ".md": "markdown",
    ".txt": "text",
    ".dockerfile": "dockerfile",
}

# Extensionless convention files, matched on basename or "<name>.<suffix>"
CONVENTION_FILES: Dict[str, str] = {
    "dockerfile": "dockerfile",
    "makefile": "makefile",
}


def detect_language(filename: str) -> str:
    """Detect the language tag for a file name.

    Args:
        filename: File name or path

    Returns:
        Language identifier, or "unknown" when nothing matches
    """
    _, ext = os.path.splitext(filename)
    language = LANGUAGE_EXTENSIONS.get(ext.lower())
    if language:
        return language

    base_name = os.path.basename(filename).lower()
    for convention, tag in CONVENTION_FILES.items():
        if base_name == convention or base_name.startswith(convention + "."):
            return tag

    return UNKNOWN_LANGUAGE
