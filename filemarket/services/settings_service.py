from datetime import datetime
from typing import Dict

from sqlmodel import Session, select

from filemarket.models.site_setting import SiteSetting

DEFAULT_SITE_SETTINGS: Dict[str, str] = {
    "site_name": "File Market",
    "currency": "USD",
    "tax_rate": "0",
}


def get_site_settings(session: Session) -> dict:
    rows = session.exec(
        select(SiteSetting).where(SiteSetting.key_name.in_(DEFAULT_SITE_SETTINGS))
    ).all()

    values = dict(DEFAULT_SITE_SETTINGS)
    values.update({row.key_name: row.value for row in rows if row.value is not None})

    try:
        tax_rate = float(values["tax_rate"])
    except (TypeError, ValueError):
        tax_rate = 0.0

    return {
        "site_name": values["site_name"],
        "currency": values["currency"],
        "tax_rate": tax_rate,
    }


def update_site_settings(session: Session, changes: dict) -> dict:
    for key, value in changes.items():
        row = session.exec(
            select(SiteSetting).where(SiteSetting.key_name == key)
        ).first()
        if row is None:
            row = SiteSetting(key_name=key)
        row.value = str(value)
        row.updated_at = datetime.utcnow()
        session.add(row)

    session.commit()
    return get_site_settings(session)
