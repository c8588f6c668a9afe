from sqlalchemy import Column, Integer, Numeric, DateTime, UniqueConstraint

from database.conexion import Base
from utils.timezone import utc_now


class MonthlySummary(Base):
    """Resumen mensual de reservas y cobros (se regenera bajo demanda)"""
    __tablename__ = "monthly_summaries"
    __table_args__ = (
        UniqueConstraint('month', 'year', name='uq_monthly_summary_month_year'),
    )

    id = Column(Integer, primary_key=True, index=True)
    month = Column(Integer, nullable=False)
    year = Column(Integer, nullable=False)
    total_reservations = Column(Integer, nullable=False, default=0)
    total_payments = Column(Integer, nullable=False, default=0)
    total_revenue = Column(Numeric(14, 2), nullable=False, default=0)
    created_at = Column(DateTime, default=utc_now, nullable=False)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now, nullable=False)

    def __repr__(self):
        return f"<MonthlySummary({self.month:02d}/{self.year}, revenue={self.total_revenue})>"
