# app/shared/services/bill_notification.py
"""
Builds the Discord embed mirrored for every sale.

The same layout is used when the bill is first posted and whenever it is
edited (save changes, verification, fake flag), only title, colour, footer
and images change.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from app.config.settings import settings
from app.shared.time_utils import utcnow, to_utc_z

COLOR_UNVERIFIED = 0xDC2626
COLOR_VERIFIED = 0x10B981
COLOR_FAKE = 0xFBBF24

CAR_IMAGE_FILENAME = "car_image.jpg"
MECHANIC_SHEET_FILENAME = "mechanic_sheet.jpg"

MAX_LISTED_ITEMS = 2


@dataclass(frozen=True)
class BillLine:
    name: str
    category: str
    type: str
    quantity: int
    price: float


@dataclass(frozen=True)
class BillDetails:
    sale_id: int
    date: str
    mechanic_name: str
    mechanic_discord_id: str
    customer_name: str
    plate_number: str
    amount: float
    items: List[BillLine] = field(default_factory=list)

    @property
    def total_items(self) -> int:
        return len(self.items)


def format_currency(amount: float) -> str:
    """Whole amounts drop the decimals: $1,386 and $1,386.5"""
    text = f"{round(float(amount or 0), 2):,.2f}".rstrip("0").rstrip(".")
    return f"${text}"


def format_bill_date(moment: datetime) -> str:
    return f"{moment:%B} {moment.day}, {moment.year} at {moment:%I:%M %p} UTC"


def bill_details_from_sale(sale, items, employee) -> BillDetails:
    """Snapshot of a persisted sale in the shape the embed needs"""
    return BillDetails(
        sale_id=sale.id,
        date=format_bill_date(sale.created_at or utcnow()),
        mechanic_name=employee.character_name,
        mechanic_discord_id=employee.discord_id,
        customer_name=sale.customer_name,
        plate_number=sale.vehicle_plate,
        amount=float(sale.total_amount or 0),
        items=[
            BillLine(
                name=item.item_name,
                category=item.item_category,
                type=item.item_type,
                quantity=item.quantity,
                price=float(item.price)
            )
            for item in items
        ]
    )


def format_items_list(items: List[BillLine]) -> str:
    lines = [
        f"{idx}. **{item.name}** ({item.type}) - {item.category}\n"
        f"   Qty: {item.quantity} × {format_currency(item.price)} = "
        f"{format_currency(item.price * item.quantity)}"
        for idx, item in enumerate(items[:MAX_LISTED_ITEMS], start=1)
    ]
    text = "\n".join(lines)

    remaining = len(items) - MAX_LISTED_ITEMS
    if remaining > 0:
        text += f"\n\n*...and {remaining} more item{'s' if remaining > 1 else ''}*"

    return text or "No items"


def build_fields(details: BillDetails, weekly_sales: float) -> List[Dict[str, Any]]:
    return [
        {"name": "📅 Date", "value": details.date, "inline": True},
        {
            "name": "🔧 Mechanic",
            "value": f"{details.mechanic_name} (<@{details.mechanic_discord_id}>)",
            "inline": True
        },
        {"name": "👤 Customer", "value": details.customer_name, "inline": True},
        {"name": "🚗 Vehicle Plate", "value": details.plate_number, "inline": True},
        {"name": "📦 Total Items", "value": str(details.total_items), "inline": True},
        {"name": "💰 Bill Amount", "value": format_currency(details.amount), "inline": True},
        {
            "name": "📊 Weekly Sales (This Mechanic)",
            "value": format_currency(weekly_sales),
            "inline": False
        },
        {"name": "🛠️ Items & Services", "value": format_items_list(details.items), "inline": False},
    ]


def _verification_field(value: str) -> Dict[str, Any]:
    return {"name": "✅ Verification Status", "value": value, "inline": False}


def _footer(details: BillDetails, is_fake: bool = False) -> Dict[str, str]:
    text = f"Bill ID: #{details.sale_id} | {settings.shop_name}"
    if is_fake:
        text += " | MARKED AS FAKE"
    return {"text": text}


def build_created_embed(
    details: BillDetails,
    weekly_sales: float,
    is_verified: bool,
    images_attached: bool = False,
    auto_verified_label: str = "**AUTO-VERIFIED**",
    now: Optional[datetime] = None
) -> Dict[str, Any]:
    """Embed for the first post of a bill"""
    fields = build_fields(details, weekly_sales)
    if is_verified:
        fields.append(_verification_field(
            "**VERIFIED** - Images attached below" if images_attached else auto_verified_label
        ))

    embed: Dict[str, Any] = {
        "title": "✅ New Bill Created (Verified)" if is_verified else "🧾 New Bill Created",
        "color": COLOR_VERIFIED if is_verified else COLOR_UNVERIFIED,
        "fields": fields,
        "footer": _footer(details),
        "timestamp": to_utc_z(now or utcnow()),
    }

    if images_attached:
        embed["image"] = {"url": f"attachment://{CAR_IMAGE_FILENAME}"}
        embed["thumbnail"] = {"url": f"attachment://{MECHANIC_SHEET_FILENAME}"}

    return embed


def build_updated_embed(
    details: BillDetails,
    weekly_sales: float,
    is_fake: bool,
    is_verified: bool,
    images_attached: bool = False,
    image_url: Optional[str] = None,
    thumbnail_url: Optional[str] = None,
    now: Optional[datetime] = None
) -> Dict[str, Any]:
    """
    Embed for an edit of an existing bill message.

    ``images_attached`` means new files travel with the edit; otherwise any
    ``image_url``/``thumbnail_url`` read from the current message are kept.
    """
    has_images = images_attached or bool(image_url and thumbnail_url)
    verified = is_verified or has_images

    fields = build_fields(details, weekly_sales)
    if verified:
        fields.append(_verification_field(
            "**VERIFIED** - Images attached below" if has_images else "**VERIFIED**"
        ))

    if is_fake:
        title, color = "⚠️ FAKE BILL (MARKED)", COLOR_FAKE
    elif verified:
        title, color = "✅ Bill Verified", COLOR_VERIFIED
    else:
        title, color = "🧾 Bill Updated", COLOR_UNVERIFIED

    embed: Dict[str, Any] = {
        "title": title,
        "color": color,
        "fields": fields,
        "footer": _footer(details, is_fake),
        "timestamp": to_utc_z(now or utcnow()),
    }

    if images_attached:
        embed["image"] = {"url": f"attachment://{CAR_IMAGE_FILENAME}"}
        embed["thumbnail"] = {"url": f"attachment://{MECHANIC_SHEET_FILENAME}"}
    elif image_url and thumbnail_url:
        embed["image"] = {"url": image_url}
        embed["thumbnail"] = {"url": thumbnail_url}

    return embed
