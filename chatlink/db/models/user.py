from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String

from chatlink.db.database import Base


class User(Base):
    """Модель пользователя"""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(100), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    icon = Column(String(255), nullable=False, default="")  # Ссылка на аватар
    created_at = Column(DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f"<User(id={self.id}, username={self.username!r})>"
