from sqlalchemy import Column, Integer, String, Text, ForeignKey
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import TimestampMixin


class Client(Base, TimestampMixin):
    __tablename__ = "clients"

    id = Column(Integer, primary_key=True, index=True)
    company_name = Column(String, nullable=False)
    contact_person = Column(String, nullable=True)
    email = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    alternate_phone = Column(String, nullable=True)
    address = Column(Text, nullable=True)
    status = Column(String, nullable=False, default="active")  # 'active' | 'archived'

    # Credentials for the client's own deployment, used to push license expiry dates
    backend_base_url = Column(String, nullable=True)
    api_user_name = Column(String, nullable=True)
    api_password = Column(String, nullable=True)

    sales = relationship("Sale", back_populates="client")
    job_cards = relationship("JobCard", back_populates="client")
    integrations = relationship(
        "ClientIntegration",
        back_populates="client",
        cascade="all, delete-orphan",
        order_by="ClientIntegration.label",
    )

    @property
    def license_configured(self) -> bool:
        return all(
            value is not None and value.strip()
            for value in (self.backend_base_url, self.api_user_name, self.api_password)
        )

    @property
    def display_name(self) -> str:
        if self.contact_person and self.contact_person.strip():
            return self.contact_person.strip()
        return self.company_name or "Valued Customer"


class ClientIntegration(Base, TimestampMixin):
    """A labelled value kept per client, such as a server address or a support login."""
    __tablename__ = "client_integrations"

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, index=True)
    label = Column(String, nullable=False)
    value = Column(Text, nullable=False)

    client = relationship("Client", back_populates="integrations")
