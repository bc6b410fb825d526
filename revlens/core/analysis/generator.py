"""Analysis generator: turns a project's files into an analysis document.

Uses whatever LLM is installed on ``llama_index.core.Settings``. When no
LLM is configured (or mock mode is on) a deterministic canned response is
returned per analysis kind, so the pipeline runs end to end offline.
"""

import json
import logging
import os
from typing import Any, Dict, List, Optional

from llama_index.core import Settings

from . import prompts
from .models import AnalysisType
from .prompts import FileInput

logger = logging.getLogger(__name__)


class GenerationError(RuntimeError):
    """The LLM call failed or returned nothing usable."""


def build_llm(model: str, temperature: float):
    """Construct the OpenAI LLM when an API key is available, else None."""
    if not os.getenv("OPENAI_API_KEY"):
        logger.info("OPENAI_API_KEY not set, analysis generation will use mock output")
        return None

    from llama_index.llms.openai import OpenAI

    return OpenAI(model=model, temperature=temperature)


class AnalysisGenerator:
    """Generate analysis text for one analysis kind.

    Args:
        llm: LlamaIndex LLM; falls back to ``Settings.llm`` when None
        mock: Force deterministic mock output
        max_input_chars: Budget for concatenated source content
    """

    def __init__(self, llm=None, mock: bool = False, max_input_chars: int = 60_000):
        self._llm = llm
        self.mock = mock
        self.max_input_chars = max_input_chars

    def generate(self, kind: str, files: List[FileInput]) -> str:
        if self.mock:
            return self._mock_response(kind, files)

        llm = self._llm or self._settings_llm()
        if llm is None:
            return self._mock_response(kind, files)

        prompt = self._build_prompt(kind, files)
        try:
            response = llm.complete(prompt)
        except Exception as e:
            raise GenerationError(f"LLM call failed for {kind}: {e}") from e

        text = (response.text or "").strip()
        if not text:
            raise GenerationError(f"LLM returned an empty response for {kind}")
        return text

    @staticmethod
    def _settings_llm():
        # Resolving Settings.llm with nothing installed tries the default
        # provider, which raises without credentials.
        try:
            return Settings.llm
        except (ImportError, ValueError) as e:
            logger.debug(f"No LLM configured: {e}")
            return None

    def _build_prompt(self, kind: str, files: List[FileInput]) -> str:
        if kind == AnalysisType.DEPENDENCY_MAP.value:
            return prompts.build_dependency_map_prompt(prompts.format_file_list(files))

        language = prompts.primary_language(files)
        sources = prompts.format_sources(files, self.max_input_chars)

        if kind == AnalysisType.DOCUMENTATION.value:
            return prompts.build_documentation_prompt(language, sources)
        if kind == AnalysisType.PATTERN_DETECTION.value:
            return prompts.build_pattern_detection_prompt(language, sources)
        return prompts.build_code_analysis_prompt(language, sources)

    # ── Mock output ─────────────────────────────────────────────────────

    def _mock_response(self, kind: str, files: List[FileInput]) -> str:
        if kind == AnalysisType.CODE_ANALYSIS.value:
            return json.dumps({
                "overview": "Mock code analysis",
                "functions": [],
                "patterns": [],
                "issues": [],
                "dependencies": [],
                "files_analyzed": len(files),
            })

        if kind == AnalysisType.DOCUMENTATION.value:
            return (
                "# Project documentation\n\n"
                "## Overview\nMock documentation.\n\n"
                "## Files\n" + prompts.format_file_list(files) + "\n"
            )

        if kind == AnalysisType.PATTERN_DETECTION.value:
            return json.dumps({
                "design_patterns": [],
                "anti_patterns": [],
                "quality_score": None,
                "suggestions": [],
            })

        if kind == AnalysisType.DEPENDENCY_MAP.value:
            return json.dumps(self._mock_dependency_map(files))

        return f"Mock {kind} result for {len(files)} file(s)"

    @staticmethod
    def _mock_dependency_map(files: List[FileInput]) -> Dict[str, Any]:
        modules: Dict[str, List[str]] = {}
        for f in files:
            modules.setdefault(f.language, []).append(f.name)
        return {
            "dependencies": {f.name: [] for f in files},
            "modules": modules,
            "circular_dependencies": [],
            "suggestions": [],
        }


def to_file_inputs(files: List[Dict[str, Any]]) -> List[FileInput]:
    """Adapt ProjectManager file dicts (with content) to generator input."""
    return [
        FileInput(
            name=f["name"],
            language=f.get("language") or "unknown",
            content=f.get("content"),
        )
        for f in files
    ]


def describe_llm(llm: Optional[Any]) -> str:
    if llm is None:
        return "mock"
    return getattr(llm, "model", None) or type(llm).__name__
