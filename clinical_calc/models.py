"""
SQLAlchemy ORM Models
======================
Defines the tables behind the measurement history.

Entity Relationships:
  - Patient (1) ---> (N) AnthropometryRecord : one record per measurement session

Each record keeps the raw input and the full calculation result as JSON, plus
a few headline values in their own columns so history can be charted without
decoding the JSON.
"""

from datetime import date, datetime

from sqlalchemy import (
    JSON,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from clinical_calc.core.database import Base


# ============================================================
# PATIENT: Identified by the caller's own patient identifier
# ============================================================
class Patient(Base):
    """
    A patient whose measurements are tracked over time.

    `external_id` is the identifier used by the calling application; the
    numeric `id` is internal and only used for the foreign key.
    """
    __tablename__ = "patients"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    external_id: Mapped[str] = mapped_column(String(100), nullable=False, unique=True, index=True)
    full_name: Mapped[str | None] = mapped_column(String(255), nullable=True, default=None)

    # "male" / "female", as used by the calculation services
    sex: Mapped[str | None] = mapped_column(String(10), nullable=True, default=None)
    birth_date: Mapped[date | None] = mapped_column(Date, nullable=True, default=None)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    records: Mapped[list["AnthropometryRecord"]] = relationship(
        "AnthropometryRecord", back_populates="patient",
        cascade="all, delete-orphan",
        order_by="AnthropometryRecord.measured_at",
    )

    def __repr__(self) -> str:
        return f"<Patient(id={self.id}, external_id='{self.external_id}')>"


# ============================================================
# ANTHROPOMETRY RECORD: One evaluated measurement session
# ============================================================
class AnthropometryRecord(Base):
    __tablename__ = "anthropometry_records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    patient_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, index=True
    )

    # When the measurement was taken (not when it was stored)
    measured_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)

    weight_kg: Mapped[float] = mapped_column(Float, nullable=False)
    height_cm: Mapped[float] = mapped_column(Float, nullable=False)
    age_years: Mapped[float] = mapped_column(Float, nullable=False)
    sex: Mapped[str] = mapped_column(String(10), nullable=False)

    raw_input: Mapped[dict] = mapped_column(JSON, nullable=False)
    result: Mapped[dict] = mapped_column(JSON, nullable=False)

    # Headline values; None when the sub-result could not be computed
    body_fat_percent: Mapped[float | None] = mapped_column(Float, nullable=True, default=None)
    muscle_mass_kg: Mapped[float | None] = mapped_column(Float, nullable=True, default=None)
    endomorphy: Mapped[float | None] = mapped_column(Float, nullable=True, default=None)
    mesomorphy: Mapped[float | None] = mapped_column(Float, nullable=True, default=None)
    ectomorphy: Mapped[float | None] = mapped_column(Float, nullable=True, default=None)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    patient: Mapped["Patient"] = relationship("Patient", back_populates="records")

    def __repr__(self) -> str:
        return (
            f"<AnthropometryRecord(id={self.id}, patient_id={self.patient_id}, "
            f"measured_at={self.measured_at})>"
        )
