from sqlalchemy import JSON, Column, DateTime, ForeignKey, String, func
from database import Base


class User(Base):
    __tablename__ = "users"

    # uid comes from the identity provider, we never generate it
    id = Column(String, primary_key=True, index=True)
    email = Column(String, nullable=True)
    created_at = Column(DateTime, server_default=func.now())


class Resume(Base):
    __tablename__ = "resumes"

    # ids are unique per user only: (user_id, id) is the key
    user_id = Column(String, ForeignKey("users.id"), primary_key=True, index=True)
    id = Column(String, primary_key=True, index=True)

    # the whole camelCase resume document
    data = Column(JSON, nullable=False)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )
