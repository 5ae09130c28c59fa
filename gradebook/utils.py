"""
Score arithmetic for the gradebook app.
"""
import logging
from decimal import Decimal, ROUND_HALF_UP

from . import config

logger = logging.getLogger(__name__)


def quantize_score(value):
    places = Decimal(1).scaleb(-int(config.SCORE_DECIMAL_PLACES))
    return Decimal(value).quantize(places, rounding=ROUND_HALF_UP)


def compute_weighted_score(scores):
    """
    Weighted final score from (score, weight) pairs.

    With weights adding up to 100 this is sum(score * weight) / 100. Any other
    weight total is normalized, sum(score * weight) / sum(weight), so a set of
    categories weighted 30/30/30 still yields a score on the 0-100 scale.
    Empty input or a zero weight total gives 0.

    Args:
        scores: iterable of (score, weight) pairs (Decimal, int or numeric str)

    Returns:
        Decimal: score rounded half-up to SCORE_DECIMAL_PLACES
    """
    weighted_sum = Decimal('0')
    total_weight = Decimal('0')
    for score, weight in scores:
        score = Decimal(str(score))
        weight = Decimal(str(weight))
        weighted_sum += score * weight
        total_weight += weight

    if total_weight == 0:
        return quantize_score(0)

    if total_weight != config.FULL_WEIGHT:
        logger.warning(
            f"Category weights add up to {total_weight}, not {config.FULL_WEIGHT}; "
            f"normalizing the final score"
        )
    return quantize_score(weighted_sum / total_weight)


def determine_result(final_score, min_passing_score):
    """'pass' when the score reaches the passing mark (inclusive), else 'fail'."""
    if Decimal(str(final_score)) >= Decimal(str(min_passing_score)):
        return 'pass'
    return 'fail'


def summarize_scores(final_scores):
    """
    Aggregate statistics for a list of final scores.

    Returns a dict with average/max/min (None when the list is empty).
    """
    final_scores = [Decimal(str(s)) for s in final_scores]
    if not final_scores:
        return {'average': None, 'max': None, 'min': None}
    return {
        'average': quantize_score(sum(final_scores) / len(final_scores)),
        'max': max(final_scores),
        'min': min(final_scores),
    }
