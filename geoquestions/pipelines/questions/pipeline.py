"""
Question Pipeline
Runs answered questions against the working map mask and dispatches
hider-mode answering and preview export by question kind
"""
import logging
from typing import Any, Dict, Iterable, Optional

from shapely.geometry.base import BaseGeometry

from ...services.cache.resolution_cache import ResolutionCache
from ...services.notifications import NotificationCenter, notification_center
from .context import MapContext
from .errors import QuestionResolutionError
from .matching import MatchingResolver
from .measuring import MeasuringResolver
from .schema import MatchingQuestion, Question

logger = logging.getLogger(__name__)


class QuestionPipeline:
    """
    Entry point for a game session: one matching and one measuring resolver
    sharing the same places provider, map context and notifier
    """

    def __init__(
        self,
        places,
        context: MapContext,
        notifier: Optional[NotificationCenter] = None,
    ):
        self.context = context
        self.notifier = notifier or notification_center
        self.matching = MatchingResolver(places, context, self.notifier, ResolutionCache("matching"))
        self.measuring = MeasuringResolver(places, context, self.notifier, ResolutionCache("measuring"))

    def _resolver(self, question: Question):
        if isinstance(question, MatchingQuestion):
            return self.matching
        return self.measuring

    async def adjust_mask(self, questions: Iterable[Question], mask: Optional[BaseGeometry] = None) -> Dict[str, Any]:
        """
        Narrow the working mask by each answered question in order

        Args:
            questions: Answered question descriptors
            mask: Starting mask (defaults to the context's working mask)

        Returns:
            dict: {"success", "mask", "applied": [types], "failed": [{"type", "error"}]}
        """
        current = mask if mask is not None else self.context.mask
        if current is None:
            return {"success": False, "error": "No working mask to adjust"}

        applied = []
        failed = []
        for question in questions:
            try:
                adjusted = await self._resolver(question).adjust(question, current)
            except QuestionResolutionError as e:
                logger.error(f"❌ {question.type.value} question could not be applied: {e}")
                failed.append({"type": question.type.value, "error": str(e)})
                continue
            current = adjusted
            applied.append(question.type.value)

        logger.info(f"✅ Mask adjusted by {len(applied)} questions, {len(failed)} failed")
        return {
            "success": not failed,
            "mask": current,
            "applied": applied,
            "failed": failed,
        }

    async def hiderify(self, question: Question) -> Question:
        return await self._resolver(question).hiderify(question)

    async def planning_polygon(self, question: Question):
        return await self._resolver(question).planning_polygon(question)
