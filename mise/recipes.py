import json
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

BUNDLED_RECIPES = Path(__file__).resolve().parent / "data" / "recipes.json"


def load_recipes(path=BUNDLED_RECIPES):
    """Load recipes from a JSON file and return a list of dicts.

    Args:
        path (str or Path): Path to the JSON file, the bundled Austrian
            recipe set by default.

    Returns:
        list: list of recipe dictionaries, empty when the file is missing.
    """
    p = Path(path)
    if not p.exists():
        logger.warning("recipe file %s not found", p)
        return []
    with p.open("r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise ValueError(f"{p} must contain a JSON list of recipes")
    return data
