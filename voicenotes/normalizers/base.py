# voicenotes/normalizers/base.py
from typing import Protocol
from voicenotes.types import CategorizedRecord, NormalizedRecord

class Normalizer(Protocol):
    def normalize_record(self, rec: CategorizedRecord, title_field: str) -> NormalizedRecord:
        """Return a NEW page-properties mapping. Do not mutate `rec`."""
        ...
