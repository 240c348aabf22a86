from sqlalchemy import Column, Integer, Float, UniqueConstraint, Enum as SAEnum

from app.db.session import Base
from app.models.enums import ClassType, PackageLabel, enum_values


class PriceRule(Base):
    __tablename__ = "prices"

    id = Column(Integer, primary_key=True, index=True)
    class_type = Column(
        SAEnum(ClassType, name="classtype", values_callable=enum_values), nullable=False
    )
    duration = Column(Integer, nullable=False)
    package = Column(
        SAEnum(PackageLabel, name="packagelabel", values_callable=enum_values), nullable=False
    )
    price = Column(Float, nullable=False)

    __table_args__ = (
        UniqueConstraint("class_type", "duration", "package", name="uq_price_rule"),
    )
