"""
Clear CV files and guest contact data whose retention date has passed.
Meant for a daily cron job.
Run: python -m scripts.purge_expired_applications
"""
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.db.session import SessionLocal
from app.services.application_service import purge_expired_applications
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


if __name__ == "__main__":
    db = SessionLocal()
    try:
        count = purge_expired_applications(db)
        print(f"[SUCCESS] {count} application(s) purged")
    except Exception as e:
        db.rollback()
        logger.error(f"Purge failed: {e}", exc_info=True)
        sys.exit(1)
    finally:
        db.close()
