import re
from datetime import date, datetime
from types import SimpleNamespace

import pytest

from mise import export, models


def test_safe_filename():
    assert export.safe_filename("Käse Spätzle!") == "Käse_Spätzle_"
    assert export.safe_filename("") == "export"


def test_format_amount_uses_decimal_comma():
    assert export.format_amount(2.0) == "2"
    assert export.format_amount(0.5) == "0,5"
    assert export.format_amount(1.25) == "1,25"


def test_german_dates():
    assert export.de_date(date(2024, 3, 5)) == "05.03.2024"
    assert export.de_date_range(date(2024, 3, 5), date(2024, 3, 11)) == "05. März - 11. März 2024"
    assert len(export.date_range(date(2024, 2, 27), date(2024, 3, 1))) == 4


def test_check_format():
    assert export.check_format("PDF") == "pdf"
    assert export.check_format("docx", allowed=("pdf", "docx")) == "docx"
    with pytest.raises(ValueError, match="Use 'pdf' or 'xlsx'"):
        export.check_format("csv")
    with pytest.raises(ValueError):
        export.check_format(None)


def test_render_recipe_rejects_unknown_format():
    recipe = models.Recipe(name="Tafelspitz", category="Mains", portions=4, prep_time=0, allergens=[], steps=[])
    with pytest.raises(ValueError, match="Use 'pdf' or 'docx'"):
        export.render_recipe(recipe, [], "odt")


def test_render_recipe_docx():
    recipe = models.Recipe(
        name="Tafelspitz", category="Mains", portions=4, prep_time=180, allergens=["L"], steps=["Kochen"]
    )
    ingredients = [models.Ingredient(name="Rindfleisch", amount=1.5, unit="kg", allergens=[])]
    content, media_type, filename = export.render_recipe(recipe, ingredients, "docx")
    assert content.startswith(b"PK")
    assert media_type == export.DOCX_MEDIA_TYPE
    assert filename == "Tafelspitz.docx"


def test_haccp_pdf_groups_by_fridge():
    fridge = SimpleNamespace(id=1, name="Kühlraum", temp_min=0.0, temp_max=4.0)
    logs = [
        SimpleNamespace(
            fridge_id=1,
            fridge=fridge,
            temperature=3.0,
            timestamp=datetime(2024, 5, 1, 8, 0),
            status="OK",
            user="Koch",
            notes=None,
        )
    ]
    assert export.haccp_pdf([fridge], logs, date(2024, 5, 2)).startswith(b"%PDF")
    assert export.haccp_pdf([fridge], [], date(2024, 5, 2)).startswith(b"%PDF")


def test_schedule_pdf_breaks_pages_for_many_staff():
    staff = [SimpleNamespace(id=i, name=f"Mitarbeiter {i}") for i in range(40)]
    early = SimpleNamespace(name="Frühstück", start_time="06:00", end_time="14:30")
    entries = [
        SimpleNamespace(staff_id=0, date=date(2024, 5, 6), type="shift", shift=None, shift_type=early),
        SimpleNamespace(staff_id=1, date=date(2024, 5, 6), type="shift", shift="late", shift_type=None),
        SimpleNamespace(staff_id=2, date=date(2024, 5, 7), type="vacation", shift=None, shift_type=None),
        SimpleNamespace(staff_id=3, date=date(2024, 5, 11), type="sick", shift=None, shift_type=None),
    ]
    content = export.schedule_pdf(staff, entries, [early], date(2024, 5, 6), date(2024, 5, 12))
    assert content.startswith(b"%PDF")
    pages = re.search(rb"/Count (\d+)", content)
    assert int(pages.group(1)) >= 2


def test_schedule_cell_texts():
    early = SimpleNamespace(name="Frühstück", start_time="06:00", end_time="14:30")
    shift = SimpleNamespace(type="shift", shift=None, shift_type=early)
    legacy = SimpleNamespace(type="shift", shift="night", shift_type=None)
    off = SimpleNamespace(type="off", shift=None, shift_type=None)
    assert export._schedule_cell(shift) == ("06:00", None)
    assert export._schedule_cell(legacy) == ("Nacht", None)
    assert export._schedule_cell(off) == ("X", None)
    assert export._schedule_cell(None) == ("", None)


def test_haccp_rows_cut_after_twenty():
    logs = [
        SimpleNamespace(temperature=2.0, timestamp=datetime(2024, 5, 1, 8, i), status="OK", user="Koch")
        for i in range(25)
    ]
    rows, hidden = export.haccp_log_rows(logs)
    assert len(rows) == 1 + export.HACCP_ROWS_PER_FRIDGE
    assert rows[1] == ["01.05.2024 08:00", "2°C", "OK", "Koch"]
    assert hidden == 5
    assert export.more_entries(hidden) == "... und 5 weitere Einträge"

    rows, hidden = export.haccp_log_rows(logs[:3])
    assert len(rows) == 4
    assert hidden == 0
