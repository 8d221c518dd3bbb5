from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.db.base import Base


class Subscription(Base):
    """
    Per-user entitlement record.

    Limits are copied from the plan catalog when the plan changes, so an
    admin can grant a custom limit without a new plan. None means unlimited.
    """
    __tablename__ = "subscriptions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)

    plan = Column(String, nullable=False, default="COMPANY_FREE", index=True)
    status = Column(String, nullable=False, default="ACTIVE")  # ACTIVE | CANCELED | PAST_DUE

    # Limits
    max_jobs = Column(Integer, nullable=True)
    max_apps_per_job = Column(Integer, nullable=True)
    max_ai_analyses_month = Column(Integer, nullable=True)

    # Usage, reset lazily on the first check of a new calendar month
    ai_analyses_used = Column(Integer, nullable=False, default=0)
    ai_usage_reset_at = Column(DateTime(timezone=True), nullable=True)

    current_period_end = Column(DateTime(timezone=True), nullable=True)

    # Promo
    promo_code_id = Column(Integer, ForeignKey("promo_codes.id", ondelete="SET NULL"), nullable=True)
    discount_percent = Column(Float, nullable=True)
    discount_amount = Column(Float, nullable=True)

    # Stripe
    stripe_customer_id = Column(String, nullable=True, index=True)
    stripe_checkout_session_id = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    user = relationship("User", back_populates="subscription")
    promo_code = relationship("PromoCode")

    def __repr__(self):
        return f"<Subscription(user_id={self.user_id}, plan='{self.plan}', ai_used={self.ai_analyses_used})>"
