from mise.translate import allergen_name, translate_list, translate_text


def test_translate_text_german_and_english():
    assert translate_text("lunch", "de") == "Mittagessen"
    assert translate_text("lunch", "en") == "Lunch"
    assert translate_text("vacation", "DE") == "Urlaub"


def test_translate_text_case_insensitive_lookup():
    assert translate_text("Breakfast", "de") == "Frühstück"
    assert translate_text("ingredients", "de") == "Zutaten"


def test_translate_text_unknown_language_or_word():
    assert translate_text("lunch", "pl") == "lunch"
    assert translate_text("Gulasch", "de") == "Gulasch"
    assert translate_text("lunch", "") == "lunch"


def test_translate_list():
    assert translate_list(["early", "late", "night"], "de") == ["Früh", "Spät", "Nacht"]
    assert translate_list(["early"], None) == ["early"]


def test_allergen_name():
    assert allergen_name("g", "en") == "Milk"
    assert allergen_name("A") == "Glutenhaltiges Getreide"
    assert allergen_name("C", "pl") == "Eier"
    assert allergen_name("Z") == "Z"
