# app/shared/services/invoice_renderer.py
"""Printable HTML invoice for a saved bill."""
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

from app.config.settings import settings
from app.shared.services.bill_notification import format_currency
from app.shared.services.pricing import TAX_RATE
from app.shared.time_utils import utcnow

TEMPLATES_DIR = Path(__file__).resolve().parents[2] / "templates"
INVOICE_TEMPLATE = "invoice.html"


def format_percent(value: float) -> str:
    """10 -> '10%', 12.5 -> '12.5%'"""
    text = f"{float(value or 0):.2f}".rstrip("0").rstrip(".")
    return f"{text}%"


def invoice_number(sale_id: int) -> str:
    return f"#DRG-{sale_id:06d}"


_environment = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=select_autoescape(["html"])
)
_environment.filters["currency"] = format_currency
_environment.filters["percent"] = format_percent


def render_invoice(sale, items, employee) -> str:
    issued = sale.created_at or utcnow()
    context = {
        "shop_name": settings.shop_name,
        "invoice_number": invoice_number(sale.id),
        "issued_date": f"{issued:%B} {issued.day}, {issued.year}",
        "issued_time": f"{issued:%I:%M %p} UTC",
        "sale": sale,
        "items": items,
        "mechanic_name": employee.character_name if employee else "N/A",
        "tax_percentage": TAX_RATE * 100,
    }
    return _environment.get_template(INVOICE_TEMPLATE).render(**context)
