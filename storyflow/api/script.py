"""
Script Analysis Service
=======================

Turns raw story text into a structured ScriptAnalysis.
"""

import logging

from ..core.exceptions import ValidationError
from ..models.script import ScriptAnalysis
from .base import BaseGenerationService
from .factory import register_capability

logger = logging.getLogger(__name__)


@register_capability("script_analysis")
class ScriptAnalysisService(BaseGenerationService):
    """Client for the script analysis capability."""

    @property
    def capability_name(self) -> str:
        return "script_analysis"

    async def analyze(self, story_text: str) -> ScriptAnalysis:
        """
        Analyze a story.

        Args:
            story_text: The story to analyze

        Returns:
            Parsed ScriptAnalysis

        Raises:
            ValidationError: If the story is empty (no request is sent)
        """
        if not story_text or not story_text.strip():
            raise ValidationError(
                "Script text cannot be empty",
                field="story",
                constraint="non-empty",
            )

        data = await self._post({"story": story_text})
        analysis = ScriptAnalysis.from_response(data)
        logger.info(f"Analyzed script '{analysis.title}' with {len(analysis.characters)} characters")
        return analysis
