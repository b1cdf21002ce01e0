# models/company.py
from sqlalchemy import Column, String, DateTime, func
from sqlalchemy.orm import relationship
from .base import Base, new_uuid


class Company(Base):
     """
     Company model - the tenant that owns a group of users.

     Managed by the company administration screens; the auth flow only reads
     the name and logo to brand verification emails.
     """
     __tablename__ = "companies"

     id = Column(String(36), primary_key=True, default=new_uuid)
     name = Column(String(255), nullable=False)
     logo_url = Column(String(500), nullable=True)
     created_at = Column(DateTime, server_default=func.now(), nullable=False)

     # Relationships
     users = relationship("User", back_populates="company")

     def __repr__(self):
          return f"<Company(id={self.id}, name='{self.name}')>"
