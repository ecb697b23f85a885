"""SQLAlchemy ORM models for the trip data warehouse."""

from sqlalchemy import Boolean, Column, Date, DateTime, Float, ForeignKey, Integer, String
from sqlalchemy.orm import DeclarativeBase, relationship


class Base(DeclarativeBase):
    pass


class DimLocation(Base):
    __tablename__ = "dim_locations"

    location_id = Column(Integer, primary_key=True, autoincrement=False)
    location_name = Column(String(200), nullable=False)
    city = Column(String(100), nullable=False)

    pickups = relationship(
        "FactTrip", foreign_keys="FactTrip.pickup_location_id", back_populates="pickup_location"
    )
    dropoffs = relationship(
        "FactTrip", foreign_keys="FactTrip.dropoff_location_id", back_populates="dropoff_location"
    )


class DimCalendar(Base):
    __tablename__ = "dim_calendar"

    date = Column(Date, primary_key=True)
    day_name = Column(String(10), nullable=False)  # e.g. Monday
    day_num = Column(Integer, nullable=False)  # ISO weekday, Monday = 1
    month = Column(Integer, nullable=False)
    month_name = Column(String(10), nullable=False)
    year = Column(Integer, nullable=False)
    week_of_year = Column(Integer, nullable=False)
    is_weekend = Column(Boolean, nullable=False)


class FactTrip(Base):
    __tablename__ = "fact_trips"

    trip_id = Column(String(50), primary_key=True)
    pickup_time = Column(DateTime, nullable=False, index=True)
    dropoff_time = Column(DateTime, nullable=False)
    passenger_count = Column(Integer, nullable=False)
    trip_distance = Column(Float, nullable=False, default=0.0)
    pickup_location_id = Column(Integer, ForeignKey("dim_locations.location_id"), nullable=False)
    dropoff_location_id = Column(Integer, ForeignKey("dim_locations.location_id"), nullable=False)
    fare_amount = Column(Float, nullable=False, default=0.0)
    surge_fee = Column(Float, nullable=False, default=0.0)
    vehicle_type = Column(String(50), nullable=False)
    payment_type = Column(String(50), nullable=False)

    # Pickup is the relationship filters follow; dropoff is only joined on request
    pickup_location = relationship(
        "DimLocation", foreign_keys=[pickup_location_id], back_populates="pickups"
    )
    dropoff_location = relationship(
        "DimLocation", foreign_keys=[dropoff_location_id], back_populates="dropoffs"
    )
