from sqlalchemy import Column, Integer, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class User(Base):
    """Row of the ``users`` table.

    The table is owned by the database; the service only reads and writes
    rows and never creates or alters the schema itself.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(Text, nullable=False)
    department = Column(Text, nullable=False)
    email = Column(Text, nullable=False)
