from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey
from sqlalchemy.sql import func
from app.db.base import Base


class PricingPromotion(Base):
    """
    Time-boxed public discount on a plan's list price.

    At most one promotion per plan is active at a time.
    """
    __tablename__ = "pricing_promotions"

    id = Column(Integer, primary_key=True, index=True)
    plan = Column(String, nullable=False, index=True)
    discount_percent = Column(Integer, nullable=False)
    label = Column(String, nullable=True)
    valid_from = Column(DateTime(timezone=True), nullable=True)
    valid_until = Column(DateTime(timezone=True), nullable=True)
    active = Column(Boolean, nullable=False, default=True)

    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
