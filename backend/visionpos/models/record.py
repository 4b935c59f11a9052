"""Generic keyed record: products, transactions, users and settings share it."""

from sqlalchemy import JSON, PrimaryKeyConstraint, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from visionpos.db.base import Base


class Record(Base):
    __tablename__ = "records"
    __table_args__ = (
        PrimaryKeyConstraint("collection", "key", name="pk_records"),
    )

    collection: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    key: Mapped[str] = mapped_column(String(255), nullable=False)
    data: Mapped[dict] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"), nullable=False
    )

    def __repr__(self) -> str:
        return f"<Record {self.collection}/{self.key}>"
