from sqlalchemy import Column, Integer, Numeric, String, DateTime, JSON
from datetime import datetime
from .database import Base


class Registration(Base):
    """
    Inscrição enviada para pagamento.
    """
    __tablename__ = "registrations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    document = Column(String(11), nullable=False, index=True)
    email = Column(String(200), nullable=False, index=True)
    phone = Column(String(50), nullable=False)
    birth_date = Column(String(10), nullable=False)
    school = Column(String(200), nullable=True)
    choreographer = Column(String(200), nullable=True)
    notes = Column(String(1000), nullable=True)
    selected_events = Column(JSON, nullable=False)
    participant_counts = Column(JSON, nullable=False)
    participants = Column(JSON, nullable=False)
    total_amount = Column(Numeric(10, 2), nullable=False)
    status = Column(String(20), nullable=False, default="pendente")
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
