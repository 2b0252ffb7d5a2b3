from .base import Normalizer
from .rules import RuleNormalizer, Coercion, FieldRule, FIELD_RULES, stringify
from voicenotes.types import CategorizedRecord, NormalizedRecord


def get_default_normalizer(summary_policy: str = "drop") -> Normalizer:
    """Factory for the normalizer the pipeline uses."""
    return RuleNormalizer(summary_policy=summary_policy)


def normalize(record: CategorizedRecord, title_field: str, summary_policy: str = "drop") -> NormalizedRecord:
    """Shape a categorized record into page properties for a database whose title property is `title_field`."""
    return get_default_normalizer(summary_policy).normalize_record(record, title_field)


__all__ = [
    "get_default_normalizer",
    "normalize",
    "RuleNormalizer",
    "Normalizer",
    "Coercion",
    "FieldRule",
    "FIELD_RULES",
    "stringify",
]
