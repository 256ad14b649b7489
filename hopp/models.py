from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from sqlalchemy import Boolean, Date, DateTime, Float, ForeignKey, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hopp.database import Base


class Brewery(Base):
    __tablename__ = "breweries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_pet_friendly: Mapped[bool] = mapped_column(Boolean, default=False)
    has_outdoor_seating: Mapped[bool] = mapped_column(Boolean, default=False)
    has_food_trucks: Mapped[bool] = mapped_column(Boolean, default=False)
    has_wifi: Mapped[bool] = mapped_column(Boolean, default=False)
    has_na_beer: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    events: Mapped[List["Event"]] = relationship(back_populates="brewery")
    beer_releases: Mapped[List["BeerRelease"]] = relationship(back_populates="brewery")


class Event(Base):
    __tablename__ = "events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    brewery_id: Mapped[int] = mapped_column(Integer, ForeignKey("breweries.id"), nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    event_date: Mapped[date] = mapped_column(Date, nullable=False)
    start_time: Mapped[Optional[str]] = mapped_column(Text, nullable=True)  # "HH:MM:SS"
    end_time: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    cost: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_recurring: Mapped[bool] = mapped_column(Boolean, default=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    featured: Mapped[bool] = mapped_column(Boolean, default=False)
    source_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    brewery: Mapped["Brewery"] = relationship(back_populates="events")


class BeerRelease(Base):
    __tablename__ = "beer_releases"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    brewery_id: Mapped[int] = mapped_column(Integer, ForeignKey("breweries.id"), nullable=False)
    beer_name: Mapped[str] = mapped_column(Text, nullable=False)
    beer_type: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    release_date: Mapped[str] = mapped_column(Text, nullable=False)  # ISO date or raw "3/14"
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    abv: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    source_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    brewery: Mapped["Brewery"] = relationship(back_populates="beer_releases")
