import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import logging
from src.extensions import db
# Import all model files
import models  # noqa: F401

logger = logging.getLogger(__name__)


def create_tables(drop_existing=False):
    """Create the schema directly, for development databases not managed by Flask-Migrate."""
    if drop_existing:
        db.drop_all()
    db.create_all()
    tables = sorted(db.metadata.tables)
    logger.info("Tables ready: %s", ", ".join(tables))
    return tables


if __name__ == "__main__":
    from src.main import create_app
    app = create_app()
    with app.app_context():
        create_tables(drop_existing="--drop" in sys.argv)
