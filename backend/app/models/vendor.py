from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func
from app.db.base import Base


class Vendor(Base):
    """
    One store. The id is the normalized store name ("Main Store" -> "main_store")
    and is the partition key for every product and transaction.
    """
    __tablename__ = "vendors"

    id = Column(String(255), primary_key=True, index=True)
    # Nullable: rows created before passwords existed are admitted without one
    password = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<Vendor id={self.id}>"
