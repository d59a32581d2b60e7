"""Document exports: PDF (ReportLab), XLSX (XlsxWriter) and DOCX (python-docx).

Every builder returns the finished file as bytes; the routers wrap them in a
download response. Labels are German, matching the kitchen's paper forms.
"""
import io
import re
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Sequence
from xml.sax.saxutils import escape

import xlsxwriter
from docx import Document
from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.pdfgen import canvas
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from . import models
from .translate import translate_text

PDF_MEDIA_TYPE = "application/pdf"
XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
DOCX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

ORANGE = colors.HexColor("#F37021")
DARK_GRAY = colors.HexColor("#333333")
LIGHT_GRAY = colors.HexColor("#666666")

WEEKDAYS_DE = ["Montag", "Dienstag", "Mittwoch", "Donnerstag", "Freitag", "Samstag", "Sonntag"]
WEEKDAYS_SHORT_DE = ["Mo", "Di", "Mi", "Do", "Fr", "Sa", "So"]
MONTHS_DE = [
    "Januar", "Februar", "März", "April", "Mai", "Juni",
    "Juli", "August", "September", "Oktober", "November", "Dezember",
]

MEAL_ORDER = ["breakfast", "lunch", "dinner"]
HACCP_ROWS_PER_FRIDGE = 20

# schedule grid cell: entry type -> (text, background)
SCHEDULE_CELLS = {
    "vacation": ("U", colors.HexColor("#90EE90")),
    "sick": ("K", colors.HexColor("#FFB6C1")),
    "off": ("X", None),
    "wor": ("WOR", None),
}


def safe_filename(name: str) -> str:
    return re.sub(r"[^a-zA-Z0-9äöüÄÖÜß]", "_", name or "") or "export"


def de_date(d: date) -> str:
    return d.strftime("%d.%m.%Y")


def de_long_date(d: date, with_year: bool = False) -> str:
    text = f"{d.day:02d}. {MONTHS_DE[d.month - 1]}"
    return f"{text} {d.year}" if with_year else text


def de_date_range(start: date, end: date) -> str:
    return f"{de_long_date(start)} - {de_long_date(end, with_year=True)}"


def format_amount(amount: float) -> str:
    return f"{amount:g}".replace(".", ",")


def date_range(start: date, end: date) -> List[date]:
    days = []
    current = start
    while current <= end:
        days.append(current)
        current += timedelta(days=1)
    return days


def _styles():
    styles = getSampleStyleSheet()
    styles.add(ParagraphStyle("Centered", parent=styles["Normal"], alignment=TA_CENTER))
    styles.add(
        ParagraphStyle(
            "TitleCentered", parent=styles["Title"], alignment=TA_CENTER, fontSize=20
        )
    )
    return styles


def _p(text, style) -> Paragraph:
    return Paragraph(escape(str(text)), style)


def _build_pdf(story, pagesize=A4, margin=50, on_page=None) -> bytes:
    buf = io.BytesIO()
    doc = SimpleDocTemplate(
        buf,
        pagesize=pagesize,
        leftMargin=margin,
        rightMargin=margin,
        topMargin=margin,
        bottomMargin=margin,
    )
    if on_page:
        doc.build(story, onFirstPage=on_page, onLaterPages=on_page)
    else:
        doc.build(story)
    return buf.getvalue()


def _xlsx(sheet_name: str, columns: Sequence[tuple], rows: Iterable[Sequence]) -> bytes:
    """Single-sheet workbook; ``columns`` holds (header, width) pairs."""
    buf = io.BytesIO()
    workbook = xlsxwriter.Workbook(buf, {"in_memory": True})
    sheet = workbook.add_worksheet(sheet_name)
    bold = workbook.add_format({"bold": True})
    for col, (header, width) in enumerate(columns):
        sheet.set_column(col, col, width)
        sheet.write(0, col, header, bold)
    for row_num, row in enumerate(rows, start=1):
        for col, value in enumerate(row):
            sheet.write(row_num, col, value)
    workbook.close()
    return buf.getvalue()


# --- recipes -------------------------------------------------------------


def _recipe_meta(recipe: models.Recipe, time_label: str = "Zubereitungszeit") -> str:
    return (
        f"Kategorie: {recipe.category} | Portionen: {recipe.portions} | "
        f"{time_label}: {recipe.prep_time} Min."
    )


def _ingredient_line(ing: models.Ingredient) -> str:
    allergens = f" ({', '.join(ing.allergens)})" if ing.allergens else ""
    return f"• {format_amount(ing.amount)} {ing.unit} {ing.name}{allergens}"


def recipe_pdf(recipe: models.Recipe, ingredients: List[models.Ingredient]) -> bytes:
    styles = _styles()
    story = [
        _p(recipe.name, styles["Title"]),
        _p(_recipe_meta(recipe), styles["Normal"]),
        Spacer(1, 12),
    ]
    if recipe.allergens:
        story.append(
            Paragraph(
                "<b>Allergene:</b> " + escape(", ".join(recipe.allergens)),
                styles["Normal"],
            )
        )
        story.append(Spacer(1, 12))
    story.append(_p("Zutaten:", styles["Heading2"]))
    for ing in ingredients:
        story.append(_p(_ingredient_line(ing), styles["Normal"]))
    story.append(Spacer(1, 12))
    story.append(_p("Zubereitung:", styles["Heading2"]))
    for idx, step in enumerate(recipe.steps or [], start=1):
        story.append(_p(f"{idx}. {step}", styles["Normal"]))
        story.append(Spacer(1, 6))
    return _build_pdf(story)


def recipe_docx(recipe: models.Recipe, ingredients: List[models.Ingredient]) -> bytes:
    document = Document()
    document.add_heading(recipe.name, level=1)
    document.add_paragraph(_recipe_meta(recipe, time_label="Zeit"))
    if recipe.allergens:
        para = document.add_paragraph()
        para.add_run("Allergene: ").bold = True
        para.add_run(", ".join(recipe.allergens))
    document.add_heading("Zutaten:", level=2)
    for ing in ingredients:
        document.add_paragraph(_ingredient_line(ing))
    document.add_heading("Zubereitung:", level=2)
    for idx, step in enumerate(recipe.steps or [], start=1):
        document.add_paragraph(f"{idx}. {step}")
    buf = io.BytesIO()
    document.save(buf)
    return buf.getvalue()


def render_recipe(recipe: models.Recipe, ingredients, fmt: str):
    """(content, media type, filename) for a recipe export format."""
    if fmt == "pdf":
        return recipe_pdf(recipe, ingredients), PDF_MEDIA_TYPE, f"{safe_filename(recipe.name)}.pdf"
    if fmt == "docx":
        return recipe_docx(recipe, ingredients), DOCX_MEDIA_TYPE, f"{safe_filename(recipe.name)}.docx"
    raise ValueError("Unsupported format. Use 'pdf' or 'docx'")


# --- haccp ---------------------------------------------------------------


def haccp_log_rows(fridge_logs: List[models.HaccpLog]):
    """Table rows for one fridge and the number of logs left out."""
    rows = [["Datum/Zeit", "Temp.", "Status", "Benutzer"]]
    for log in fridge_logs[:HACCP_ROWS_PER_FRIDGE]:
        rows.append(
            [
                log.timestamp.strftime("%d.%m.%Y %H:%M"),
                f"{format_amount(log.temperature)}°C",
                log.status,
                log.user,
            ]
        )
    return rows, max(0, len(fridge_logs) - HACCP_ROWS_PER_FRIDGE)


def more_entries(hidden: int) -> str:
    return f"... und {hidden} weitere Einträge"


def haccp_pdf(
    fridges: List[models.Fridge],
    logs: List[models.HaccpLog],
    generated_on: date,
) -> bytes:
    styles = _styles()
    story = [
        _p("HACCP Temperaturbericht", styles["TitleCentered"]),
        _p(f"Erstellt am: {de_date(generated_on)}", styles["Centered"]),
        Spacer(1, 24),
    ]
    by_fridge: Dict[int, List[models.HaccpLog]] = {}
    for log in logs:
        by_fridge.setdefault(log.fridge_id, []).append(log)

    for fridge in fridges:
        fridge_logs = by_fridge.get(fridge.id)
        if not fridge_logs:
            continue
        story.append(_p(fridge.name, styles["Heading2"]))
        story.append(
            _p(
                f"Sollbereich: {format_amount(fridge.temp_min)}°C bis "
                f"{format_amount(fridge.temp_max)}°C",
                styles["Normal"],
            )
        )
        story.append(Spacer(1, 6))
        rows, hidden = haccp_log_rows(fridge_logs)
        table = Table(rows, colWidths=[120, 60, 70, 200], hAlign="LEFT")
        style = [
            ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
            ("FONTSIZE", (0, 0), (-1, -1), 9),
            ("LINEBELOW", (0, 0), (-1, 0), 0.5, DARK_GRAY),
        ]
        for i, log in enumerate(fridge_logs[:HACCP_ROWS_PER_FRIDGE], start=1):
            if log.status != "OK":
                style.append(("TEXTCOLOR", (2, i), (2, i), colors.red))
        table.setStyle(TableStyle(style))
        story.append(table)
        if hidden:
            story.append(_p(more_entries(hidden), styles["Normal"]))
        story.append(Spacer(1, 18))

    if not logs:
        story.append(
            _p("Keine HACCP-Einträge im ausgewählten Zeitraum.", styles["Centered"])
        )
    return _build_pdf(story)


# --- menu plans ----------------------------------------------------------


def _menu_rows(plans: List[models.MenuPlan]):
    """Plans grouped by date, each entry as (meal, course, recipe name, portions)."""
    by_date: Dict[date, list] = {}
    for plan in plans:
        name = plan.recipe.name if plan.recipe else "-"
        by_date.setdefault(plan.date, []).append(
            (plan.meal, plan.course or "main", name, plan.portions)
        )
    return dict(sorted(by_date.items()))


def menu_plan_xlsx(plans: List[models.MenuPlan]) -> bytes:
    rows = []
    for day, entries in _menu_rows(plans).items():
        for meal, course, name, portions in entries:
            rows.append(
                [
                    de_date(day),
                    translate_text(meal, "de"),
                    translate_text(course, "de"),
                    name,
                    portions,
                ]
            )
    columns = [("Datum", 15), ("Mahlzeit", 15), ("Gang", 15), ("Rezept", 30), ("Portionen", 12)]
    return _xlsx("Menüplan", columns, rows)


def _banner(title: str, subtitle: str, footer: str, height: float = 80):
    def draw(pdf: canvas.Canvas, doc):
        width, page_height = doc.pagesize
        pdf.saveState()
        if pdf.getPageNumber() == 1:
            pdf.setFillColor(ORANGE)
            pdf.rect(0, page_height - height, width, height, stroke=0, fill=1)
            pdf.setFillColor(colors.white)
            pdf.setFont("Helvetica-Bold", 24)
            pdf.drawCentredString(width / 2, page_height - height / 2, title)
            pdf.setFont("Helvetica", 11)
            pdf.drawCentredString(width / 2, page_height - height / 2 - 20, subtitle)
        pdf.setFillColor(LIGHT_GRAY)
        pdf.setFont("Helvetica", 8)
        pdf.drawCentredString(width / 2, 20, footer)
        pdf.restoreState()

    return draw


def menu_plan_pdf(plans: List[models.MenuPlan], start: date, end: date) -> bytes:
    styles = _styles()
    day_style = ParagraphStyle(
        "DayHeader", parent=styles["Normal"], textColor=colors.white,
        fontName="Helvetica-Bold", fontSize=13,
    )
    meal_style = ParagraphStyle(
        "MealHeader", parent=styles["Normal"], textColor=ORANGE,
        fontName="Helvetica-Bold", fontSize=11, spaceBefore=4,
    )
    entry_style = ParagraphStyle(
        "Entry", parent=styles["Normal"], fontSize=9, leftIndent=12, textColor=DARK_GRAY,
    )

    story = [Spacer(1, 50)]
    grouped = _menu_rows(plans)
    for day, entries in grouped.items():
        label = f"{WEEKDAYS_DE[day.weekday()]}, {day.day}. {MONTHS_DE[day.month - 1]}"
        header = Table([[_p(label, day_style)]], colWidths=[495])
        header.setStyle(
            TableStyle([("BACKGROUND", (0, 0), (-1, -1), ORANGE), ("LEFTPADDING", (0, 0), (-1, -1), 10)])
        )
        story.append(header)
        for meal in MEAL_ORDER:
            meal_entries = [e for e in entries if e[0] == meal]
            if not meal_entries:
                continue
            story.append(_p(translate_text(meal, "de").upper(), meal_style))
            for _, course, name, portions in meal_entries:
                story.append(
                    Paragraph(
                        f'<font color="#666666">{escape(translate_text(course, "de"))}:</font> '
                        f"<b>{escape(name)}</b> "
                        f'<font color="#666666">({portions} Port.)</font>',
                        entry_style,
                    )
                )
        story.append(Spacer(1, 12))

    if not grouped:
        story.append(_p("Keine Einträge im ausgewählten Zeitraum.", styles["Centered"]))

    banner = _banner("MENÜPLAN", de_date_range(start, end), "Mise | Menüplan")
    return _build_pdf(story, margin=40, on_page=banner)


# --- guest counts --------------------------------------------------------


def guest_counts_xlsx(counts: List[models.GuestCount]) -> bytes:
    rows = [
        [
            de_date(c.date),
            translate_text(c.meal, "de"),
            c.adults,
            c.children,
            c.adults + c.children,
            c.notes or "",
        ]
        for c in counts
    ]
    columns = [
        ("Datum", 15), ("Mahlzeit", 15), ("Erwachsene", 12),
        ("Kinder", 12), ("Gesamt", 12), ("Notizen", 30),
    ]
    return _xlsx("Gästezahlen", columns, rows)


def guest_counts_pdf(counts: List[models.GuestCount], start: date, end: date) -> bytes:
    styles = _styles()
    story = [
        _p("Gästezahlen", styles["TitleCentered"]),
        _p(f"{de_date(start)} bis {de_date(end)}", styles["Centered"]),
        Spacer(1, 24),
    ]
    by_date: Dict[date, List[models.GuestCount]] = {}
    for count in counts:
        by_date.setdefault(count.date, []).append(count)

    for day in sorted(by_date):
        story.append(
            _p(f"{WEEKDAYS_DE[day.weekday()]}, {de_long_date(day)}", styles["Heading3"])
        )
        day_counts = sorted(by_date[day], key=lambda c: MEAL_ORDER.index(c.meal))
        for c in day_counts:
            story.append(
                _p(
                    f"{translate_text(c.meal, 'de')}: {c.adults} Erw. + {c.children} Kinder "
                    f"= {c.adults + c.children} Gesamt",
                    styles["Normal"],
                )
            )
        total = sum(c.adults + c.children for c in day_counts)
        story.append(_p(f"Tagessumme: {total}", styles["Normal"]))
        story.append(Spacer(1, 8))

    if not counts:
        story.append(_p("Keine Einträge im ausgewählten Zeitraum.", styles["Centered"]))
    return _build_pdf(story)


# --- schedule ------------------------------------------------------------


def _shift_label(entry: models.ScheduleEntry) -> str:
    if entry.shift_type is not None:
        return entry.shift_type.name
    if entry.shift:
        return translate_text(entry.shift, "de")
    return "-"


def schedule_xlsx(entries: List[models.ScheduleEntry]) -> bytes:
    rows = [
        [
            de_date(e.date),
            e.staff.name if e.staff else "Unbekannt",
            translate_text(e.type, "de"),
            _shift_label(e) if e.type == "shift" else "-",
            e.notes or "",
        ]
        for e in entries
    ]
    columns = [("Datum", 15), ("Mitarbeiter", 20), ("Typ", 12), ("Schicht", 14), ("Notizen", 30)]
    return _xlsx("Dienstplan", columns, rows)


def _schedule_cell(entry: Optional[models.ScheduleEntry]):
    if entry is None:
        return "", None
    if entry.type in SCHEDULE_CELLS:
        return SCHEDULE_CELLS[entry.type]
    if entry.type == "shift":
        if entry.shift_type is not None:
            return entry.shift_type.start_time[:5], None
        if entry.shift:
            return translate_text(entry.shift, "de"), None
    return "", None


def schedule_pdf(
    staff: List[models.Staff],
    entries: List[models.ScheduleEntry],
    shift_types: List[models.ShiftType],
    start: date,
    end: date,
) -> bytes:
    """Landscape staff x day grid in the layout of a paper duty roster."""
    page_w, page_h = landscape(A4)
    margin = 30
    name_w = 100
    row_h = 22
    days = date_range(start, end)
    day_w = min(90.0, (page_w - 2 * margin - name_w) / max(len(days), 1))
    by_key = {(e.staff_id, e.date): e for e in entries}
    weekend_header = colors.HexColor("#FFD700")
    weekend_cell = colors.HexColor("#FFFACD")
    header_bg = colors.HexColor("#F0F0F0")

    buf = io.BytesIO()
    pdf = canvas.Canvas(buf, pagesize=(page_w, page_h))

    def cell(x, y, w, fill, text="", font="Helvetica", size=7):
        pdf.setFillColor(fill or colors.white)
        pdf.setStrokeColor(colors.HexColor("#BBBBBB"))
        pdf.rect(x, y, w, row_h, stroke=1, fill=1)
        if text:
            pdf.setFillColor(DARK_GRAY)
            pdf.setFont(font, size)
            pdf.drawCentredString(x + w / 2, y + row_h / 2 - size / 3, text)

    def header_row(y):
        cell(margin, y, name_w, header_bg, "Mitarbeiter", "Helvetica-Bold", 9)
        for i, d in enumerate(days):
            weekend = d.weekday() >= 5
            x = margin + name_w + i * day_w
            cell(x, y, day_w, weekend_header if weekend else header_bg)
            pdf.setFillColor(DARK_GRAY)
            pdf.setFont("Helvetica-Bold", 8)
            pdf.drawCentredString(x + day_w / 2, y + 12, WEEKDAYS_SHORT_DE[d.weekday()])
            pdf.setFont("Helvetica", 7)
            pdf.drawCentredString(x + day_w / 2, y + 4, f"{d.day}.{d.month}")

    pdf.setFillColor(ORANGE)
    pdf.rect(0, page_h - 50, page_w, 50, stroke=0, fill=1)
    pdf.setFillColor(colors.white)
    pdf.setFont("Helvetica-Bold", 20)
    pdf.drawCentredString(page_w / 2, page_h - 28, "DIENSTPLAN")
    pdf.setFont("Helvetica", 10)
    pdf.drawCentredString(page_w / 2, page_h - 43, de_date_range(start, end))

    y = page_h - 65 - row_h
    header_row(y)
    for member in staff:
        y -= row_h
        if y < margin + 60:
            pdf.showPage()
            y = page_h - margin - row_h
            header_row(y)
            y -= row_h
        cell(margin, y, name_w, colors.HexColor("#FAFAFA"), member.name[:20], "Helvetica-Bold", 8)
        for i, d in enumerate(days):
            text, fill = _schedule_cell(by_key.get((member.id, d)))
            if fill is None and d.weekday() >= 5:
                fill = weekend_cell
            cell(margin + name_w + i * day_w, y, day_w, fill, text)

    # legend
    y -= 25
    pdf.setFillColor(DARK_GRAY)
    pdf.setFont("Helvetica-Bold", 8)
    pdf.drawString(margin, y, "Legende:")
    y -= 14
    legend_x = margin
    pdf.setFont("Helvetica", 7)
    for text, fill in [
        ("U = Urlaub", SCHEDULE_CELLS["vacation"][1]),
        ("K = Krank", SCHEDULE_CELLS["sick"][1]),
        ("X = Frei", colors.white),
        ("WOR = Freier Tag", colors.white),
    ]:
        pdf.setFillColor(fill)
        pdf.rect(legend_x, y, 10, 10, stroke=1, fill=1)
        pdf.setFillColor(DARK_GRAY)
        pdf.drawString(legend_x + 14, y + 2, text)
        legend_x += 80
    if shift_types:
        y -= 15
        services = "  ".join(
            f"{st.name} ({st.start_time[:5]}-{st.end_time[:5]})" for st in shift_types
        )
        pdf.drawString(margin, y, f"Dienste: {services}")

    pdf.setFillColor(colors.HexColor("#999999"))
    pdf.drawCentredString(page_w / 2, 20, "Mise | Dienstplan")
    pdf.save()
    return buf.getvalue()


def check_format(fmt: str, allowed=("pdf", "xlsx")) -> str:
    fmt = (fmt or "").lower()
    if fmt not in allowed:
        options = " or ".join(f"'{a}'" for a in allowed)
        raise ValueError(f"Unsupported format. Use {options}")
    return fmt
