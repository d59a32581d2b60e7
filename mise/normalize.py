"""Normalization of free-text recipe fields.

Recipe pages describe quantities, durations and yields in loosely structured
text. The helpers here turn them into the numbers and labels stored on
``Recipe`` and ``Ingredient`` rows. Every function is total: unparseable input
falls back to a default instead of raising.
"""
import math
import re
from typing import Iterable, List, NamedTuple, Optional
from urllib.parse import urlparse

from .translate import ALLERGENS

DEFAULT_UNIT = "Stück"
# upper bound for portions and minutes taken from a page
MAX_COUNT = 10_000

# Small synonyms map: variant -> canonical
SYNONYMS = {
    "aubergine": "eggplant",
    "melanzani": "eggplant",
    "courgette": "zucchini",
    "capsicum": "bell pepper",
    "paprikaschote": "paprika",
    "scallion": "green onion",
    "frühlingszwiebel": "green onion",
    "cilantro": "coriander",
    "erdapfel": "kartoffel",
    "erdäpfel": "kartoffel",
    "paradeiser": "tomate",
    "obers": "sahne",
    "schlagobers": "sahne",
    "topfen": "quark",
    "karfiol": "blumenkohl",
    "faschiertes": "hackfleisch",
}

# Lowercased, without trailing dot
UNITS = {
    "g", "gr", "gramm", "kg", "kilogramm", "mg",
    "ml", "cl", "dl", "l", "liter",
    "el", "tl", "msp", "prise", "prisen", "schuss", "spritzer",
    "stk", "stück", "bund", "dose", "dosen", "pkg", "pck", "packung",
    "päckchen", "becher", "tasse", "tassen", "glas", "zehe", "zehen",
    "scheibe", "scheiben", "blatt", "blätter", "stange", "stangen",
    "kopf", "würfel", "handvoll", "zweig", "zweige", "esslöffel",
    "teelöffel",
    "cup", "cups", "tbsp", "tsp", "tablespoon", "tablespoons", "teaspoon",
    "teaspoons", "oz", "lb", "lbs", "pinch", "clove", "cloves", "can",
    "cans", "slice", "slices", "bunch",
}

VULGAR_FRACTIONS = {
    "½": "1/2",
    "⅓": "1/3",
    "⅔": "2/3",
    "¼": "1/4",
    "¾": "3/4",
    "⅕": "1/5",
    "⅛": "1/8",
}

_QTY_RE = re.compile(
    r"^(?P<qty>\d+\s+\d+/\d+"
    r"|\d+/\d+"
    r"|\d+(?:[.,]\d+)?(?:\s*[-–]\s*\d+(?:[.,]\d+)?)?)"
    r"\s*(?P<rest>.*)$"
)
_ISO_DURATION_RE = re.compile(
    r"^P(?:(?P<days>\d+(?:\.\d+)?)D)?"
    r"(?:T(?:(?P<hours>\d+(?:\.\d+)?)H)?"
    r"(?:(?P<minutes>\d+(?:\.\d+)?)M)?"
    r"(?:(?P<seconds>\d+(?:\.\d+)?)S)?)?$",
    re.IGNORECASE,
)
_INT_RE = re.compile(r"(\d+)")


class ParsedIngredient(NamedTuple):
    name: str
    amount: float
    unit: str


def _singularize(word: str) -> str:
    w = word
    if w.endswith("ies") and len(w) > 3:
        return w[:-3] + "y"
    if w.endswith("es") and len(w) > 3:
        return w[:-2]
    if w.endswith("s") and len(w) > 3:
        return w[:-1]
    return w


def normalize_ingredient(s: str) -> str:
    """Canonical lowercase key for an ingredient name."""
    if not s:
        return ""
    w = " ".join(s.strip().lower().split())
    if w in SYNONYMS:
        return SYNONYMS[w]
    w = _singularize(w)
    return SYNONYMS.get(w, w)


def _expand_fractions(text: str) -> str:
    for char, frac in VULGAR_FRACTIONS.items():
        text = re.sub(
            r"(\d+)?\s*" + char,
            lambda m, frac=frac: f"{m.group(1)} {frac}" if m.group(1) else frac,
            text,
        )
    return text


def parse_quantity(text: str) -> Optional[float]:
    """Parse ``2``, ``1,5``, ``1/2``, ``1 1/2`` or ``2-3`` (lower bound)."""
    text = text.strip()
    if not text:
        return None
    text = re.split(r"\s*[-–]\s*", text)[0]
    total = 0.0
    for part in text.split():
        if "/" in part:
            num, denom = part.split("/", 1)
            try:
                n = float(num.replace(",", "."))
                d = float(denom.replace(",", "."))
            except ValueError:
                return None
            if d == 0:
                return None
            total += n / d
        else:
            try:
                total += float(part.replace(",", "."))
            except ValueError:
                return None
    if not math.isfinite(total):
        return None
    return round(total, 3)


def _is_unit(token: str) -> bool:
    return token.lower().rstrip(".") in UNITS


def parse_ingredient_line(text: str) -> ParsedIngredient:
    """Split a free-text ingredient line into name, amount and unit.

    "100 g Mehl" -> ("Mehl", 100.0, "g"); "1/2 Tasse Milch" ->
    ("Milch", 0.5, "Tasse"); "Salz" -> ("Salz", 1.0, "Stück").
    """
    raw = " ".join(str(text or "").split())
    if not raw:
        return ParsedIngredient("", 1.0, DEFAULT_UNIT)
    line = _expand_fractions(raw)

    amount = None
    rest = line
    m = _QTY_RE.match(line)
    if m:
        amount = parse_quantity(m.group("qty"))
        rest = m.group("rest")

    unit = DEFAULT_UNIT
    tokens = rest.split(" ", 1)
    if tokens and tokens[0] and _is_unit(tokens[0]):
        unit = tokens[0].rstrip(".")
        rest = tokens[1] if len(tokens) > 1 else ""

    name = rest.strip(" ,;-") or raw
    if not amount:
        amount = 1.0
    return ParsedIngredient(name, amount, unit)


def parse_duration(value) -> int:
    """Minutes from an ISO-8601 duration (``PT1H30M``) or a number in text."""
    if value is None or value == "" or isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            return 0
        return min(max(0, int(value)), MAX_COUNT)
    text = str(value).strip()
    m = _ISO_DURATION_RE.match(text)
    if m and any(m.groupdict().values()):
        parts = {k: float(v) if v else 0.0 for k, v in m.groupdict().items()}
        minutes = (
            parts["days"] * 1440
            + parts["hours"] * 60
            + parts["minutes"]
            + parts["seconds"] / 60
        )
        if not math.isfinite(minutes):
            return 0
        return min(int(math.ceil(minutes)), MAX_COUNT)
    number = _first_int(text)
    return number if number is not None else 0


def _first_int(text: str) -> Optional[int]:
    """First run of digits in ``text``, capped at MAX_COUNT."""
    m = _INT_RE.search(text)
    if not m:
        return None
    digits = m.group(1).lstrip("0") or "0"
    if len(digits) > len(str(MAX_COUNT)):
        return MAX_COUNT
    return min(int(digits), MAX_COUNT)


def parse_yield(value, default: int = 4) -> int:
    if isinstance(value, (list, tuple)):
        value = value[0] if value else None
    if isinstance(value, bool) or value is None:
        return default
    if isinstance(value, (int, float)):
        if not math.isfinite(value) or value < 1:
            return default
        return min(int(value), MAX_COUNT)
    number = _first_int(str(value))
    if number is not None and number >= 1:
        return number
    return default


def is_http_url(url: Optional[str]) -> bool:
    parsed = urlparse((url or "").strip())
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def normalize_allergens(codes: Optional[Iterable[str]]) -> List[str]:
    """Uppercase, deduplicated EU-14 codes; unknown codes are dropped."""
    if not codes:
        return []
    return sorted({str(c).strip().upper() for c in codes} & set(ALLERGENS))


def haccp_status(
    temperature: float,
    temp_min: float,
    temp_max: float,
    critical_margin: float = 3.0,
) -> str:
    if temp_min <= temperature <= temp_max:
        return "OK"
    deviation = temp_min - temperature if temperature < temp_min else temperature - temp_max
    if deviation > critical_margin:
        return "CRITICAL"
    return "WARNING"
