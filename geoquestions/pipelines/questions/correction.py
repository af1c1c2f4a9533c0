"""
Self-correction of boundary answers.

The working mask is adjusted as if the seeker's assumed answer were true.
The hider then sits either inside that adjusted region or in its
complement. Landing in the complement means the assumed answer is wrong, so
the outcome flag is flipped. For a fixed boundary, hider positions strictly
inside and strictly outside the adjusted region always end with opposite
flags.
"""
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from shapely.geometry import Point
from shapely.geometry.base import BaseGeometry

from ..geometry.geo_utils import holed_mask
from .errors import GeometryOperationFailed

logger = logging.getLogger(__name__)

Adjuster = Callable[[BaseGeometry], Awaitable[Optional[BaseGeometry]]]


@dataclass(frozen=True)
class AdjustmentResult:
    """Outcome of one self-correction pass; unresolved is not the same as a False answer"""

    resolved: bool
    feature: Optional[BaseGeometry] = None
    flipped: bool = False
    reason: Optional[str] = None

    @classmethod
    def unresolved(cls, reason: str) -> "AdjustmentResult":
        return cls(resolved=False, reason=reason)


async def holed_adjustment(adjust: Adjuster, mask: BaseGeometry) -> AdjustmentResult:
    """
    Complement of the adjusted mask, with one retry on an inverted mask

    The second attempt feeds the inverse of the working mask to the adjuster
    and uses its output as-is. If that fails too the pass is unresolved.
    """
    try:
        adjusted = await adjust(mask)
        return AdjustmentResult(resolved=True, feature=holed_mask(adjusted))
    except GeometryOperationFailed as e:
        logger.debug(f"🔁 Mask adjustment failed ({e}); retrying on inverted mask")

    try:
        feature = await adjust(holed_mask(mask))
    except GeometryOperationFailed as e:
        logger.info(f"🤷 Question left unadjusted: {e}")
        return AdjustmentResult.unresolved(str(e))
    if feature is None:
        return AdjustmentResult.unresolved("Adjustment produced no geometry")
    return AdjustmentResult(resolved=True, feature=feature)


def flip_if_inside(feature: BaseGeometry, hider: Point, assumed: bool) -> bool:
    """Invert the assumed answer when the hider lies in feature (boundary counts as inside)"""
    if feature.intersects(hider):
        return not assumed
    return assumed


async def apply_then_test_then_flip(
    question,
    field_name: str,
    adjust: Adjuster,
    mask: BaseGeometry,
    hider: Point,
) -> AdjustmentResult:
    """
    Apply the question's boundary to mask, test the hider against the
    complement and flip question.<field_name> when it falls there

    The descriptor is left untouched when the pass is unresolved.
    """
    result = await holed_adjustment(adjust, mask)
    if not result.resolved:
        return result

    assumed = getattr(question, field_name)
    answer = flip_if_inside(result.feature, hider, assumed)
    setattr(question, field_name, answer)
    return AdjustmentResult(resolved=True, feature=result.feature, flipped=answer != assumed)
