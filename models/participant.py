from sqlalchemy import Column, Integer, String, BigInteger, Boolean, JSON
from models.base import Base, TimestampMixin


class Participant(Base, TimestampMixin):
    __tablename__ = "participants"

    id = Column(String(36), primary_key=True)
    name = Column(String(255), nullable=False)
    student_id = Column(String(64), nullable=False, index=True)
    section = Column(String(16), nullable=False, default="Other")

    # Epoch milliseconds, written by the client
    started_at = Column(BigInteger, nullable=False)
    completed_at = Column(BigInteger, nullable=True)
    time_taken = Column(Integer, nullable=True)

    score = Column(Integer, default=0, nullable=False)
    total_points = Column(Integer, default=0, nullable=False)
    answers = Column(JSON, nullable=False, default=list)
    submitted = Column(Boolean, default=False, nullable=False)
