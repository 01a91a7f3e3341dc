from sqlalchemy import Column, String, Text, DateTime
from share_app.database.connection import Base


class KVEntry(Base):
    """
    One key of the flat metadata namespace.

    The SQL backend stores the key-value store as a single table; there is no
    relational structure, relationships live in key prefixes ("url:", "file:",
    "text:", "list:").

    - namespace separates record keys from analytics counters
    - expires_at is only set for TTL'd keys (listing index, daily counters)
    """
    __tablename__ = "kv_entries"

    namespace = Column(String(32), primary_key=True, default="")
    # Composite primary key doubles as the uniqueness guarantee for add()
    key = Column(String(255), primary_key=True)
    value = Column(Text, nullable=False)
    expires_at = Column(DateTime, nullable=True, index=True)  # naive UTC
