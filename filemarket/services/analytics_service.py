import io
from datetime import datetime
from typing import List, Optional

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from sqlalchemy import and_, case, func
from sqlmodel import Session, select

from filemarket.constants.statuses import PurchaseStatus
from filemarket.exceptions import NotFound
from filemarket.models.category import Category
from filemarket.models.digital_file import DigitalFile
from filemarket.models.purchase import Purchase
from filemarket.models.user import User
from filemarket.schemas.file_schemas import FileRead
from filemarket.schemas.user_schemas import UserRead

COMPLETED = PurchaseStatus.completed.value


def trailing_months(now: datetime, count: int = 12) -> List[str]:
    year, month = now.year, now.month
    months = []
    for _ in range(count):
        months.append(f"{year:04d}-{month:02d}")
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return list(reversed(months))


def _overview(session: Session) -> dict:
    total_files = session.exec(select(func.count(DigitalFile.id))).one()
    total_users = session.exec(select(func.count(User.id))).one()

    by_status = session.exec(
        select(
            Purchase.status,
            func.count(Purchase.id),
            func.coalesce(func.sum(Purchase.amount), 0),
        ).group_by(Purchase.status)
    ).all()

    revenue_by_status = {
        status.value: {"count": 0, "amount": 0.0} for status in PurchaseStatus
    }
    for status, count, amount in by_status:
        revenue_by_status[status] = {"count": count, "amount": round(float(amount), 2)}

    return {
        "totalFiles": total_files,
        "totalUsers": total_users,
        "totalPurchases": sum(v["count"] for v in revenue_by_status.values()),
        "totalRevenue": revenue_by_status[COMPLETED]["amount"],
        "completedPurchases": revenue_by_status[COMPLETED]["count"],
        "pendingPurchases": revenue_by_status[PurchaseStatus.pending.value]["count"],
        "revenueByStatus": revenue_by_status,
    }


def _monthly_revenue(session: Session, now: datetime) -> List[dict]:
    months = trailing_months(now)
    first_year, first_month = (int(part) for part in months[0].split("-"))
    since = datetime(first_year, first_month, 1)

    rows = session.exec(
        select(Purchase.created_at, Purchase.amount)
        .where(Purchase.status == COMPLETED)
        .where(Purchase.created_at >= since)
    ).all()

    # bucketed here rather than in SQL: month formatting differs per database
    series = {month: {"month": month, "revenue": 0.0, "purchases": 0} for month in months}
    for created_at, amount in rows:
        bucket = series.get(f"{created_at:%Y-%m}")
        if bucket is None:
            continue
        bucket["revenue"] = round(bucket["revenue"] + amount, 2)
        bucket["purchases"] += 1

    return [series[month] for month in months]


def _top_files(session: Session, limit: int = 10) -> List[dict]:
    purchase_count = func.count(Purchase.id)
    rows = session.exec(
        select(
            DigitalFile.id,
            DigitalFile.title,
            DigitalFile.price,
            purchase_count,
            func.coalesce(func.sum(Purchase.amount), 0),
        )
        .outerjoin(
            Purchase,
            and_(Purchase.file_id == DigitalFile.id, Purchase.status == COMPLETED),
        )
        .group_by(DigitalFile.id, DigitalFile.title, DigitalFile.price)
        .order_by(purchase_count.desc(), DigitalFile.id)
        .limit(limit)
    ).all()

    return [
        {
            "id": file_id,
            "title": title,
            "price": price,
            "purchase_count": count,
            "total_revenue": round(float(revenue), 2),
        }
        for file_id, title, price, count, revenue in rows
    ]


def _recent_activity(session: Session, limit: int = 20) -> List[dict]:
    rows = session.exec(
        select(Purchase, User.name, DigitalFile.title)
        .join(User, User.id == Purchase.user_id)
        .join(DigitalFile, DigitalFile.id == Purchase.file_id)
        .order_by(Purchase.created_at.desc(), Purchase.id.desc())
        .limit(limit)
    ).all()

    return [
        {
            "type": "purchase",
            "id": purchase.id,
            "created_at": purchase.created_at,
            "status": purchase.status,
            "user_name": user_name,
            "file_title": file_title,
            "amount": purchase.amount,
        }
        for purchase, user_name, file_title in rows
    ]


def dashboard(session: Session, now: Optional[datetime] = None) -> dict:
    now = now or datetime.utcnow()
    return {
        "overview": _overview(session),
        "monthlyRevenue": _monthly_revenue(session, now),
        "topFiles": _top_files(session),
        "recentActivity": _recent_activity(session),
    }


def file_analytics(session: Session, file_id: int) -> dict:
    file = session.get(DigitalFile, file_id)
    if not file:
        raise NotFound("File not found")

    category = session.get(Category, file.category_id) if file.category_id else None
    completed_amount = case((Purchase.status == COMPLETED, Purchase.amount), else_=None)

    total_purchases, total_revenue, avg_amount = session.exec(
        select(
            func.count(Purchase.id),
            func.coalesce(func.sum(completed_amount), 0),
            func.avg(completed_amount),
        ).where(Purchase.file_id == file_id)
    ).one()

    history = session.exec(
        select(Purchase, User.name, User.email)
        .join(User, User.id == Purchase.user_id)
        .where(Purchase.file_id == file_id)
        .order_by(Purchase.created_at.desc(), Purchase.id.desc())
    ).all()

    return {
        "file": {
            **FileRead.from_row(file, category.name if category else None).model_dump(),
            "total_purchases": total_purchases,
            "total_revenue": round(float(total_revenue), 2),
            "avg_purchase_amount": round(float(avg_amount), 2) if avg_amount is not None else None,
        },
        "purchaseHistory": [
            {
                "id": purchase.id,
                "created_at": purchase.created_at,
                "amount": purchase.amount,
                "status": purchase.status,
                "user_name": name,
                "user_email": email,
            }
            for purchase, name, email in history
        ],
    }


def user_analytics(session: Session, user_id: int) -> dict:
    user = session.get(User, user_id)
    if not user:
        raise NotFound("User not found")

    spent = case((Purchase.status == COMPLETED, Purchase.amount), else_=0)
    total_purchases, total_spent, last_purchase = session.exec(
        select(
            func.count(Purchase.id),
            func.coalesce(func.sum(spent), 0),
            func.max(Purchase.created_at),
        ).where(Purchase.user_id == user_id)
    ).one()

    history = session.exec(
        select(Purchase, DigitalFile.title, DigitalFile.preview_url)
        .join(DigitalFile, DigitalFile.id == Purchase.file_id)
        .where(Purchase.user_id == user_id)
        .order_by(Purchase.created_at.desc(), Purchase.id.desc())
    ).all()

    return {
        "user": {
            **UserRead.model_validate(user).model_dump(),
            "total_purchases": total_purchases,
            "total_spent": round(float(total_spent), 2),
            "last_purchase_date": last_purchase,
        },
        "purchaseHistory": [
            {
                **purchase.model_dump(),
                "file_title": title,
                "preview_url": preview_url,
            }
            for purchase, title, preview_url in history
        ],
    }


def export_dashboard_workbook(data: dict) -> bytes:
    wb = Workbook()
    thin = Border(
        left=Side(style="thin"),
        right=Side(style="thin"),
        top=Side(style="thin"),
        bottom=Side(style="thin"),
    )
    header_font = Font(bold=True, color="FFFFFF")
    header_fill = PatternFill("solid", fgColor="4F81BD")
    center = Alignment(horizontal="center")

    def header(ws, titles):
        ws.append(titles)
        for cell in ws[1]:
            cell.font = header_font
            cell.fill = header_fill
            cell.border = thin
            cell.alignment = center

    overview = data["overview"]
    ws = wb.active
    ws.title = "Overview"
    header(ws, ["Metric", "Value"])
    for label, key in (
        ("Total Files", "totalFiles"),
        ("Total Users", "totalUsers"),
        ("Total Purchases", "totalPurchases"),
        ("Completed Purchases", "completedPurchases"),
        ("Pending Purchases", "pendingPurchases"),
        ("Total Revenue", "totalRevenue"),
    ):
        ws.append([label, overview[key]])

    ws = wb.create_sheet("Monthly Revenue")
    header(ws, ["Month", "Revenue", "Purchases"])
    for row in data["monthlyRevenue"]:
        ws.append([row["month"], row["revenue"], row["purchases"]])

    ws = wb.create_sheet("Top Files")
    header(ws, ["ID", "Title", "Price", "Purchases", "Revenue"])
    for row in data["topFiles"]:
        ws.append([
            row["id"], row["title"], row["price"],
            row["purchase_count"], row["total_revenue"],
        ])

    for sheet in wb.worksheets:
        for column in sheet.columns:
            width = max(len(str(cell.value or "")) for cell in column) + 2
            sheet.column_dimensions[column[0].column_letter].width = min(width, 60)

    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()
