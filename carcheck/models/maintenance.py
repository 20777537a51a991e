from sqlalchemy import Column, Date, DateTime, Float, ForeignKey, Integer, String, Text, func
from carcheck.core.db import Base


class MaintenanceRecord(Base):
    __tablename__ = "maintenance_records"
    id = Column(Integer, primary_key=True, index=True)
    car_id = Column(Integer, ForeignKey("cars.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String(100), nullable=False)  # oil change, periodic service, inspection ...
    date = Column(Date, nullable=False)
    mileage = Column(Integer, nullable=True)
    notes = Column(Text, nullable=True)
    cost = Column(Float, nullable=True)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
