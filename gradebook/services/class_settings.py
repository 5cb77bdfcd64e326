import logging
from typing import List

from gradebook.services.metrics import ColorThresholds, RankingWeights
from roster.models import DEFAULT_COLOR_THRESHOLDS, DEFAULT_RANKING_WEIGHTS

logger = logging.getLogger(__name__)


class SettingsValidationError(Exception):
    def __init__(self, errors: List[str]):
        super().__init__("; ".join(errors))
        self.errors = errors


def default_weights() -> RankingWeights:
    return RankingWeights(**DEFAULT_RANKING_WEIGHTS)


def default_thresholds() -> ColorThresholds:
    return ColorThresholds(**DEFAULT_COLOR_THRESHOLDS)


def validate_ranking_weights(weights: RankingWeights) -> List[str]:
    errors = []
    for name in ("casas_reading", "casas_listening", "tests", "attendance"):
        value = getattr(weights, name)
        if not isinstance(value, int) or isinstance(value, bool) or value < 0:
            errors.append(f"Weight '{name}' must be a non-negative integer.")
    if not errors and weights.total != 100:
        errors.append(f"Ranking weights must total 100% (currently {weights.total}%).")
    return errors


def validate_color_thresholds(thresholds: ColorThresholds) -> List[str]:
    for name in ("good", "warning"):
        value = getattr(thresholds, name)
        if not isinstance(value, int) or isinstance(value, bool) or not 0 <= value <= 100:
            return [f"Threshold '{name}' must be an integer between 0 and 100."]
    if thresholds.good <= thresholds.warning:
        return ["The 'good' threshold must be greater than the 'warning' threshold."]
    return []


def save_class_settings(klass, weights: RankingWeights, thresholds: ColorThresholds):
    """
    Persist weights and thresholds together. Raises SettingsValidationError
    and leaves the class untouched if either group is invalid.
    """
    errors = validate_ranking_weights(weights) + validate_color_thresholds(thresholds)
    if errors:
        logger.info("Class settings rejected", extra={"class_id": klass.id, "errors": errors})
        raise SettingsValidationError(errors)

    klass.weight_casas_reading = weights.casas_reading
    klass.weight_casas_listening = weights.casas_listening
    klass.weight_tests = weights.tests
    klass.weight_attendance = weights.attendance
    klass.threshold_good = thresholds.good
    klass.threshold_warning = thresholds.warning
    klass.save(
        update_fields=[
            "weight_casas_reading",
            "weight_casas_listening",
            "weight_tests",
            "weight_attendance",
            "threshold_good",
            "threshold_warning",
            "updated_at",
        ]
    )
    return klass


def reset_class_settings(klass):
    return save_class_settings(klass, default_weights(), default_thresholds())
