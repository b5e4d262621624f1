from datetime import datetime
from enum import Enum

from sqlalchemy import (
    Column, Integer, String, Float, Date,
    DateTime, ForeignKey, Index, create_engine
)
from sqlalchemy.orm import declarative_base, relationship


Base = declarative_base()


class MileageInputPreference(str, Enum):
    """How a vehicle's fillups record mileage. Fixed for the vehicle's lifetime."""

    ODOMETER = "odometer"  # Absolute odometer reading per fillup
    DISTANCE = "distance"  # Point-to-point distance since the previous fillup


class Vehicle(Base):
    """A vehicle whose fuel fillups are tracked."""

    __tablename__ = 'vehicles'

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    initial_odometer = Column(Integer, nullable=False, default=0)
    mileage_input_preference = Column(
        String(20),
        nullable=False,
        default=MileageInputPreference.ODOMETER.value
    )
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow)

    # Relationships
    fillups = relationship(
        'Fillup',
        back_populates='vehicle',
        cascade='all, delete-orphan',
        order_by='Fillup.date'
    )

    @property
    def preference(self) -> MileageInputPreference:
        return MileageInputPreference(self.mileage_input_preference)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'initial_odometer': self.initial_odometer,
            'mileage_input_preference': self.mileage_input_preference,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }


class Fillup(Base):
    """A single refueling event with its derived fields."""

    __tablename__ = 'fillups'
    __table_args__ = (
        Index('ix_fillups_vehicle_date', 'vehicle_id', 'date', 'id'),
    )

    id = Column(Integer, primary_key=True)
    vehicle_id = Column(Integer, ForeignKey('vehicles.id'), nullable=False)
    date = Column(Date, nullable=False)
    fuel_amount = Column(Float, nullable=False)  # litres
    total_price = Column(Float, nullable=False)

    # Exactly one of these is user supplied, depending on the vehicle
    odometer = Column(Integer)  # absolute reading (odometer vehicles)
    distance_traveled = Column(Float)  # supplied (distance vehicles) or derived

    # Derived
    fuel_consumption = Column(Float)  # L/100km
    price_per_liter = Column(Float)

    created_at = Column(DateTime(timezone=True), default=datetime.utcnow)

    # Relationships
    vehicle = relationship('Vehicle', back_populates='fillups')

    def apply_derived(self, validated):
        """Copy derived fields from a ValidatedFillup."""
        self.distance_traveled = validated.distance_traveled
        self.fuel_consumption = validated.fuel_consumption
        self.price_per_liter = validated.price_per_liter

    def to_dict(self):
        return {
            'id': self.id,
            'vehicle_id': self.vehicle_id,
            'date': self.date.isoformat() if self.date else None,
            'fuel_amount': self.fuel_amount,
            'total_price': self.total_price,
            'odometer': self.odometer,
            'distance_traveled': self.distance_traveled,
            'fuel_consumption': self.fuel_consumption,
            'price_per_liter': self.price_per_liter,
        }


def get_engine(database_url):
    """Create database engine."""
    return create_engine(database_url, pool_pre_ping=True)
