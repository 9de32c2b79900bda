"""Create the schema and seed the default kettles."""

import logging

from sqlalchemy import select

from kettle_stage.db.session import SessionLocal, create_tables
from kettle_stage.models import Kettle

logger = logging.getLogger(__name__)

DEFAULT_KETTLES: tuple[tuple[str, str, str], ...] = (
    ("campus-chaos", "Campus Chaos", "Dorm drama, roommate rants, and lecture legends."),
    ("situationships", "Situationships", "Red flags, green texts, and delulu lore."),
    ("workplace-whispers", "Workplace Whispers", "Boss gossip, Slack screenshots, and HR horror stories."),
    ("main-character", "Main Character Energy", "When you ARE the plot twist."),
    ("tech-tea", "Tech Tea", "Startup drama, code drama, and interview horror stories."),
)


def init_db(seed: bool = True) -> int:
    """Create all tables and insert any missing default kettles.

    Returns the number of kettles inserted.
    """
    create_tables()
    if not seed:
        return 0

    inserted = 0
    with SessionLocal() as db:
        existing = set(db.execute(select(Kettle.slug)).scalars())
        for slug, name, description in DEFAULT_KETTLES:
            if slug in existing:
                continue
            db.add(Kettle(slug=slug, name=name, description=description, icon="☕"))
            inserted += 1
        db.commit()
    return inserted


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    count = init_db()
    logger.info("Database initialized (%d kettles seeded).", count)


if __name__ == "__main__":
    main()
