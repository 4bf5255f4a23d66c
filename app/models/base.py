# app/models/base.py
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """
    Base class for all ORM models.

    Identity (users), practitioner profiles and prescriptions
    all inherit from this class.
    """

    pass
