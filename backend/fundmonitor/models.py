# backend/fundmonitor/models.py
from datetime import date
from decimal import Decimal

from sqlalchemy import String, Date, Numeric, Index
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


class OwnershipEntry(Base):
    """
    One signed cost movement for a project held by a vehicle.

    Rows are immutable facts: the cost basis of a position as of a date is the
    sum of delta_cost for every row reported on or before that date.
    """
    __tablename__ = "ownership_entries"
    __table_args__ = (
        Index("ix_ownership_vehicle_date", "vehicle_id", "date_reported"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    ownership_id: Mapped[str | None] = mapped_column(String, nullable=True)
    vehicle_id: Mapped[str] = mapped_column(String, index=True)
    project_id: Mapped[str] = mapped_column(String, index=True)
    asset_class: Mapped[str | None] = mapped_column(String, nullable=True)  # e.g. "Equity", "Tokens"
    date_reported: Mapped[date] = mapped_column(Date)
    delta_cost: Mapped[Decimal] = mapped_column(Numeric(20, 2), default=Decimal("0"))

    # "Established", "Top Up", "Divested", "Partially Divested", ...
    ownership_type: Mapped[str | None] = mapped_column(String, nullable=True)
    outcome_type: Mapped[str | None] = mapped_column(String, nullable=True)
    overall_valuation: Mapped[Decimal | None] = mapped_column(Numeric(20, 2), nullable=True)


class FundMarketValue(Base):
    """Point-in-time market value of a project/asset class at a portfolio date."""
    __tablename__ = "fund_market_values"
    __table_args__ = (
        Index("ix_fund_mv_vehicle_date", "vehicle_id", "portfolio_date"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    vehicle_id: Mapped[str] = mapped_column(String, index=True)
    project_id: Mapped[str] = mapped_column(String, index=True)
    asset_class: Mapped[str | None] = mapped_column(String, nullable=True)
    portfolio_date: Mapped[date] = mapped_column(Date)
    unrealized_market_value: Mapped[Decimal | None] = mapped_column(Numeric(20, 2), nullable=True)
    realized_market_value: Mapped[Decimal | None] = mapped_column(Numeric(20, 2), nullable=True)


class FundFlow(Base):
    """Capital call, distribution or other cash flow of a TBV vehicle."""
    __tablename__ = "fund_flows"

    id: Mapped[int] = mapped_column(primary_key=True)
    tbv_vehicle_id: Mapped[str] = mapped_column(String, index=True)
    flow_date: Mapped[date] = mapped_column(Date)
    flow_type: Mapped[str] = mapped_column(String)  # "Capital Called", "Distribution", ...
    flow_amount: Mapped[Decimal] = mapped_column(Numeric(20, 2))


class FundLedgerEntry(Base):
    """Reported NAV of a TBV vehicle."""
    __tablename__ = "fund_ledger"

    id: Mapped[int] = mapped_column(primary_key=True)
    tbv_vehicle_id: Mapped[str] = mapped_column(String, index=True)
    date_reported: Mapped[date] = mapped_column(Date)
    nav: Mapped[Decimal | None] = mapped_column(Numeric(20, 2), nullable=True)


class VehiclePerformance(Base):
    """Reported TVPI/DPI multiples of a TBV vehicle."""
    __tablename__ = "vehicle_performance"

    id: Mapped[int] = mapped_column(primary_key=True)
    tbv_vehicle_id: Mapped[str] = mapped_column(String, index=True)
    date_reported: Mapped[date] = mapped_column(Date)
    tvpi: Mapped[Decimal | None] = mapped_column(Numeric(12, 6), nullable=True)
    dpi: Mapped[Decimal | None] = mapped_column(Numeric(12, 6), nullable=True)


class FundClosing(Base):
    """
    Link between an investing vehicle and the TBV funds that closed into it.

    A vehicle may be linked to several TBV funds; each has its own flows,
    ledger and performance records keyed by tbv_vehicle_id.
    """
    __tablename__ = "fund_closings"

    id: Mapped[int] = mapped_column(primary_key=True)
    vehicle_id: Mapped[str] = mapped_column(String, index=True)
    tbv_fund: Mapped[str | None] = mapped_column(String, nullable=True)
    tbv_vehicle_id: Mapped[str | None] = mapped_column(String, nullable=True)
