"""
Stock Model - 保有銘柄

銘柄コード・保有ポジション・キャッシュ済みの業種/配当性向
"""

from sqlalchemy import Column, Integer, String, Float, DateTime
from sqlalchemy.sql import func
from ..database import Base


class Stock(Base):
    """保有銘柄モデル"""

    __tablename__ = "stocks"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # 銘柄情報
    code = Column(String(4), nullable=False, unique=True, index=True)  # 銘柄コード (4桁)
    name = Column(String, nullable=False)  # 銘柄名

    # 保有情報 (purchase_amount is stored as entered, not derived from price * shares)
    purchase_price = Column(Float, nullable=False, default=0)  # 取得株価
    shares = Column(Integer, nullable=False, default=0)  # 株数
    purchase_amount = Column(Float, nullable=False, default=0)  # 取得時金額

    # 注釈
    dividend_amount = Column(Float, nullable=True)  # 設定配当金 (1株あたり年間)
    memo = Column(String(100), nullable=True)  # メモ
    industry = Column(String, nullable=True)  # 業種
    payout_ratio = Column(Float, nullable=True)  # 配当性向 (%)

    # 時間情報
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<Stock(code='{self.code}', name='{self.name}', shares={self.shares})>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "code": self.code,
            "name": self.name,
            "purchase_price": self.purchase_price,
            "shares": self.shares,
            "purchase_amount": self.purchase_amount,
            "dividend_amount": self.dividend_amount,
            "memo": self.memo,
            "industry": self.industry,
            "payout_ratio": self.payout_ratio,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
