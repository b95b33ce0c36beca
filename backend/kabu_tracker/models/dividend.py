"""
Dividend Model - 配当履歴
"""

from sqlalchemy import Column, Integer, Float, DateTime, ForeignKey
from sqlalchemy.sql import func
from ..database import Base


class Dividend(Base):
    """配当履歴モデル (append-only, one row per recorded payment)"""

    __tablename__ = "dividends"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    stock_id = Column(Integer, ForeignKey("stocks.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = Column(Float, nullable=False)  # 配当金額
    year = Column(Integer, nullable=False)  # 年度
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<Dividend(stock_id={self.stock_id}, year={self.year}, amount={self.amount})>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "stock_id": self.stock_id,
            "amount": self.amount,
            "year": self.year,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
