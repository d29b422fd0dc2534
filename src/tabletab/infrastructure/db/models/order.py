from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    BigInteger,
    Boolean,
    DateTime,
    ForeignKey,
    ForeignKeyConstraint,
    Index,
    Integer,
    String,
    func,
    text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    pass


class OrderModel(Base):
    __tablename__ = "orders"

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    table_id: Mapped[str] = mapped_column(String(50), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    total_cents: Mapped[int] = mapped_column(BigInteger, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    bill_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    is_completed: Mapped[bool] = mapped_column(
        Boolean,
        server_default=text("false"),
        nullable=False,
    )
    served_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    version: Mapped[int] = mapped_column(Integer, server_default=text("1"), nullable=False)

    batches: Mapped[list["OrderBatchModel"]] = relationship(
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderBatchModel.position",
    )

    __table_args__ = (
        Index(
            "uq_orders_active_table",
            "table_id",
            unique=True,
            postgresql_where=text("NOT is_completed"),
        ),
        Index("ix_orders_table_created_at", "table_id", "created_at"),
        Index("ix_orders_is_completed_created_at", "is_completed", "created_at"),
        Index("ix_orders_completed_at", "completed_at"),
    )


class OrderBatchModel(Base):
    __tablename__ = "order_batches"

    order_id: Mapped[str] = mapped_column(
        String(50),
        ForeignKey("orders.id", ondelete="CASCADE"),
        primary_key=True,
    )
    batch_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    total_cents: Mapped[int] = mapped_column(BigInteger, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    order: Mapped[OrderModel] = relationship(back_populates="batches")
    lines: Mapped[list["OrderBatchLineModel"]] = relationship(
        back_populates="batch",
        cascade="all, delete-orphan",
        order_by="OrderBatchLineModel.position",
    )


class OrderBatchLineModel(Base):
    __tablename__ = "order_batch_lines"

    order_id: Mapped[str] = mapped_column(String(50), primary_key=True)
    batch_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    position: Mapped[int] = mapped_column(Integer, primary_key=True)
    menu_item_id: Mapped[str] = mapped_column(String(100), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    unit_price_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)

    batch: Mapped[OrderBatchModel] = relationship(back_populates="lines")

    __table_args__ = (
        ForeignKeyConstraint(
            ["order_id", "batch_id"],
            ["order_batches.order_id", "order_batches.batch_id"],
            ondelete="CASCADE",
        ),
    )
