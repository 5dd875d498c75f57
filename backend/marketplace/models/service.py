"""
Service Listing Model
A service offered by a provider, booked by customers at an hourly rate.
"""

from sqlalchemy import Boolean, Column, ForeignKey, Integer, JSON, Numeric, String
from sqlalchemy.orm import relationship

from marketplace.core.constants import DEFAULT_SERVICE_DURATION
from marketplace.models.base import BaseModel


class Service(BaseModel):
    """
    Catalog entry.

    The hourly ``rate`` is read once when a booking is created; later rate
    changes never touch existing bookings.
    """

    __tablename__ = "services"

    provider_id = Column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    title = Column(String(100), nullable=False)
    description = Column(String(500), nullable=False)
    category = Column(String(30), nullable=False, index=True)
    rate = Column(Numeric(10, 2), nullable=False, comment="Hourly rate")
    duration = Column(
        Integer,
        default=DEFAULT_SERVICE_DURATION,
        nullable=False,
        comment="Typical duration in minutes"
    )
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    tags = Column(JSON, default=list, nullable=False)
    images = Column(JSON, default=list, nullable=False)
    requirements = Column(JSON, default=list, nullable=False)

    provider = relationship("User", lazy="joined")

    def __repr__(self):
        return f"<Service(id={self.id}, title={self.title}, rate={self.rate})>"
