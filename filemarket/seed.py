"""Create the admin account and the default categories.

    python -m filemarket.seed

Safe to run repeatedly; existing rows are left alone.
"""

import logging

from slugify import slugify
from sqlmodel import Session, select

from filemarket.config import settings
from filemarket.database import create_db_and_tables, engine
from filemarket.models.category import Category
from filemarket.models.user import User
from filemarket.utils.hash import hash_password

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES = [
    ("Graphics", "Logos, illustrations and design assets"),
    ("Templates", "Resume, presentation and document templates"),
    ("E-books", "Guides and books in digital formats"),
    ("Software", "Scripts, plugins and tools"),
    ("Audio", "Music, sound effects and samples"),
]


def seed_admin(session: Session) -> User:
    admin = session.exec(select(User).where(User.email == settings.admin_email)).first()
    if admin:
        logger.info(f"Admin {admin.email} already exists")
        return admin

    admin = User(
        name="Administrator",
        email=settings.admin_email,
        password=hash_password(settings.admin_password),
        is_admin=True,
        is_verified=True,
    )
    session.add(admin)
    session.commit()
    session.refresh(admin)
    logger.info(f"Created admin {admin.email}")
    return admin


def seed_categories(session: Session) -> int:
    created = 0
    for name, description in DEFAULT_CATEGORIES:
        slug = slugify(name)
        exists = session.exec(
            select(Category).where((Category.name == name) | (Category.slug == slug))
        ).first()
        if exists:
            continue
        session.add(Category(name=name, slug=slug, description=description))
        created += 1

    session.commit()
    logger.info(f"Created {created} categories")
    return created


def main():
    logging.basicConfig(level=settings.log_level)
    create_db_and_tables()
    with Session(engine) as session:
        seed_admin(session)
        seed_categories(session)


if __name__ == "__main__":
    main()
