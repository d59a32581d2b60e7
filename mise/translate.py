from typing import List

# EU-14 allergen letter codes (Austrian labelling) -> names per language
ALLERGENS = {
    "A": {"de": "Glutenhaltiges Getreide", "en": "Gluten"},
    "B": {"de": "Krebstiere", "en": "Crustaceans"},
    "C": {"de": "Eier", "en": "Eggs"},
    "D": {"de": "Fisch", "en": "Fish"},
    "E": {"de": "Erdnüsse", "en": "Peanuts"},
    "F": {"de": "Soja", "en": "Soy"},
    "G": {"de": "Milch", "en": "Milk"},
    "H": {"de": "Schalenfrüchte", "en": "Nuts"},
    "L": {"de": "Sellerie", "en": "Celery"},
    "M": {"de": "Senf", "en": "Mustard"},
    "N": {"de": "Sesam", "en": "Sesame"},
    "O": {"de": "Sulfite", "en": "Sulphites"},
    "P": {"de": "Lupinen", "en": "Lupin"},
    "R": {"de": "Weichtiere", "en": "Molluscs"},
}

# Keys are language codes (ISO 639-1) -> mapping of label key -> text.
TRANSLATIONS = {
    "de": {
        # meals
        "breakfast": "Frühstück",
        "lunch": "Mittagessen",
        "dinner": "Abendessen",
        # courses
        "soup": "Suppe",
        "main_meat": "Fleisch",
        "side1": "Beilage 1",
        "side2": "Beilage 2",
        "main_veg": "Vegetarisch",
        "dessert": "Dessert",
        "main": "Gericht",
        # schedule entry types
        "shift": "Schicht",
        "vacation": "Urlaub",
        "sick": "Krank",
        "off": "Frei",
        "wor": "Freier Tag",
        # legacy shift names
        "early": "Früh",
        "late": "Spät",
        "night": "Nacht",
        # recipe card
        "Ingredients": "Zutaten",
        "Steps": "Zubereitung",
        "Allergens": "Allergene",
        "Category": "Kategorie",
        "Portions": "Portionen",
        "Prep time": "Zubereitungszeit",
        "Source": "Quelle",
        "No allergens": "Keine Allergene",
        "min": "Min.",
    },
    "en": {
        "breakfast": "Breakfast",
        "lunch": "Lunch",
        "dinner": "Dinner",
        "soup": "Soup",
        "main_meat": "Meat",
        "side1": "Side 1",
        "side2": "Side 2",
        "main_veg": "Vegetarian",
        "dessert": "Dessert",
        "main": "Dish",
        "shift": "Shift",
        "vacation": "Vacation",
        "sick": "Sick",
        "off": "Off",
        "wor": "Day off",
        "early": "Early",
        "late": "Late",
        "night": "Night",
        "min": "min",
    },
}


def translate_text(text: str, lang: str) -> str:
    if not lang or not text:
        return text
    mapping = TRANSLATIONS.get(lang.lower())
    if not mapping:
        return text
    key = text.strip()
    if key in mapping:
        return mapping[key]
    lower = key.lower()
    if lower in mapping:
        return mapping[lower]
    cap = key.capitalize()
    if cap in mapping:
        return mapping[cap]
    return text


def translate_list(items: List[str], lang: str) -> List[str]:
    if not lang:
        return items
    return [translate_text(i, lang) for i in items]


def allergen_name(code: str, lang: str = "de") -> str:
    entry = ALLERGENS.get((code or "").upper())
    if not entry:
        return code
    return entry.get(lang, entry["de"])
