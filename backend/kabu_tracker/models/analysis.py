"""
Analysis Model - AI分析履歴

AI が生成した分析テキストと、そこから抽出した理論株価の監査ログ
"""

from sqlalchemy import Column, Integer, Float, DateTime, Text, ForeignKey
from sqlalchemy.sql import func
from ..database import Base


class Analysis(Base):
    """AI分析結果モデル (never updated after insert)"""

    __tablename__ = "analyses"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    stock_id = Column(Integer, ForeignKey("stocks.id", ondelete="CASCADE"), nullable=False, index=True)
    theoretical_price = Column(Float, nullable=True)  # 理論株価 (抽出失敗時は NULL)
    analysis_text = Column(Text, nullable=False)  # 分析全文
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<Analysis(stock_id={self.stock_id}, theoretical_price={self.theoretical_price})>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "stock_id": self.stock_id,
            "theoretical_price": self.theoretical_price,
            "analysis_text": self.analysis_text,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
