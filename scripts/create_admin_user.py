"""
Create an admin account, or promote an existing user to admin.
Run: python -m scripts.create_admin_user admin@example.com --password 'S3cret-pass'
"""
import argparse
import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.db.session import SessionLocal
from app.db.init_db import init_db
from app.db.models.user import User, UserRole, UserType
from app.core.security import hash_password
from app.services.entitlement_service import get_or_create_subscription
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def create_admin(email: str, password: str = None, name: str = None) -> bool:
    """Create or promote the user. Returns False when nothing could be done."""
    db = SessionLocal()
    try:
        user = db.query(User).filter(User.email == email.lower()).first()

        if not user:
            if not password:
                logger.error(f"User {email} not found and no password provided. Cannot create user.")
                return False

            logger.info(f"Creating new admin user: {email}")
            user = User(
                email=email.lower(),
                name=name or "Admin",
                password_hash=hash_password(password),
                role=UserRole.ADMIN,
                user_type=UserType.COMPANY,
                onboarding_completed=True,
            )
            db.add(user)
            db.commit()
            db.refresh(user)
            get_or_create_subscription(db, user)
        else:
            logger.info(f"Promoting existing user: {email} (ID: {user.id})")
            user.role = UserRole.ADMIN
            user.suspended = False
            db.commit()

        logger.info(f"User {email} is now an admin (ID: {user.id})")
        return True

    except Exception as e:
        db.rollback()
        logger.error(f"Error creating admin user: {e}", exc_info=True)
        return False
    finally:
        db.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create or promote a Selectif admin account")
    parser.add_argument("email")
    parser.add_argument("--password", help="Required when the user does not exist yet")
    parser.add_argument("--name")
    args = parser.parse_args()

    init_db()
    if not create_admin(args.email, args.password, args.name):
        print(f"\n[ERROR] Failed to setup admin {args.email}")
        sys.exit(1)
    print(f"\n[SUCCESS] {args.email} is now an admin")
