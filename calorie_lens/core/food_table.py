import json
import re
from pathlib import Path

from calorie_lens.core.labels import normalize_label
from calorie_lens.core.types import FoodRecord


class FoodTable:
    """Reference calories, food keywords and non-food labels loaded from a JSON data file.

    Loaded once and only read afterwards, so a single instance is shared by every request.
    """

    def __init__(self, path: str):
        self._path = self._resolve_path(path)
        raw = self._load_raw(self._path)
        self._records = self._load_records(raw.get('foods'))
        self._by_key = {record.key: record for record in self._records}
        # Longest key first so 'fried rice' wins over 'rice'; sorted() is stable, table order breaks ties.
        self._partial_order = sorted(self._records, key=lambda record: len(record.key), reverse=True)
        self._food_keywords = self._load_terms(raw.get('food_keywords'))
        self._generic_keywords = self._load_terms(raw.get('generic_keywords'))
        self._non_food_pattern = self._word_pattern(self._load_terms(raw.get('non_food_labels')))

    def _resolve_path(self, path: str) -> Path:
        candidate = Path(path)
        if candidate.exists() or candidate.is_absolute():
            return candidate
        module_root = Path(__file__).resolve().parents[1]
        fallback = module_root / 'data' / 'foods.json'
        if fallback.exists():
            return fallback
        return candidate

    @property
    def path(self) -> Path:
        return self._path

    @property
    def size(self) -> int:
        return len(self._records)

    def _load_raw(self, path: Path) -> dict:
        if not path.exists():
            return {}
        raw = json.loads(path.read_text(encoding='utf-8'))
        return raw if isinstance(raw, dict) else {}

    def _load_records(self, rows) -> list[FoodRecord]:
        if not isinstance(rows, list):
            return []
        records: list[FoodRecord] = []
        seen: set[str] = set()
        for row in rows:
            if not isinstance(row, dict):
                continue
            key = normalize_label(str(row.get('key') or ''))
            if not key or key in seen:
                continue
            try:
                calories = int(row.get('calories'))
            except (TypeError, ValueError):
                continue
            portion = str(row.get('portion') or '100g').strip()
            seen.add(key)
            records.append(FoodRecord(key=key, calories=calories, portion=portion))
        return records

    def _load_terms(self, values) -> list[str]:
        if not isinstance(values, list):
            return []
        terms: list[str] = []
        for value in values:
            term = str(value or '').strip().lower()
            if term and term not in terms:
                terms.append(term)
        return terms

    def _word_pattern(self, terms: list[str]) -> re.Pattern | None:
        if not terms:
            return None
        # Whole words only: 'table' blocks 'coffee table' but not 'vegetable'.
        alternatives = '|'.join(re.escape(term) for term in sorted(terms, key=len, reverse=True))
        return re.compile(rf'\b(?:{alternatives})\b')

    def lookup(self, identifier: str) -> FoodRecord | None:
        normalized = normalize_label(identifier)
        if not normalized:
            return None

        exact = self._by_key.get(normalized)
        if exact is not None:
            return exact

        for record in self._partial_order:
            if record.key in normalized or normalized in record.key:
                return record
        return None

    def is_food(self, identifier: str) -> bool:
        normalized = normalize_label(identifier)
        return any(keyword in normalized for keyword in self._food_keywords)

    def is_generic_food(self, identifier: str) -> bool:
        normalized = normalize_label(identifier)
        return any(keyword in normalized for keyword in self._generic_keywords)

    def is_non_food(self, identifier: str) -> bool:
        if self._non_food_pattern is None:
            return False
        return self._non_food_pattern.search(normalize_label(identifier)) is not None
