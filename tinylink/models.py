from sqlalchemy import Boolean, Column, DateTime, Integer, String

from tinylink.database import Base


class ShortLink(Base):
    __tablename__ = "short_links"

    id = Column(Integer, primary_key=True, index=True)
    # unique across all rows; a soft-deleted row is revived in place on reuse
    code = Column(String(8), unique=True, index=True, nullable=False)
    target_url = Column(String(2048), nullable=False)
    deleted = Column(Boolean, default=False, nullable=False, index=True)
    total_clicks = Column(Integer, default=0, nullable=False)
    last_clicked = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
