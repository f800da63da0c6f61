"""
Condo Billing - User Preference Model
Preferências de listagem por usuário (ordenação de faturas)
"""
import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, ForeignKey

from app.database import Base


class UserPreference(Base):
    __tablename__ = "user_preferences"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)

    # Nulos = usar padrão da configuração
    invoice_sort_field = Column(String(30))
    invoice_sort_direction = Column(String(4))

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
