from sqlalchemy import Column, Integer, String, Text, JSON
from models.base import Base, TimestampMixin


class Question(Base, TimestampMixin):
    __tablename__ = "questions"

    id = Column(String(36), primary_key=True)
    type = Column(String(16), nullable=False)
    section = Column(String(16), default="Other", nullable=False, index=True)
    title = Column(String(255), nullable=False, default="")
    description = Column(Text, nullable=False, default="")
    points = Column(Integer, nullable=False, default=10)
    order = Column(Integer, nullable=False, default=0, index=True)

    # syntax / mcq
    language = Column(String(32), nullable=True)
    # syntax
    buggy_code = Column(Text, nullable=True)
    correct_code = Column(Text, nullable=True)
    # mcq
    code_snippet = Column(Text, nullable=True)
    options = Column(JSON, nullable=True)
    correct_option_index = Column(Integer, nullable=True)
    # casestudy
    scenario = Column(Text, nullable=True)
    accepted_answers = Column(JSON, nullable=True)
