"""User model for the database."""

from sqlalchemy import Column, Integer, String, Date, Enum, ForeignKey

from components.core.database import Base
from components.plan.enums import CurrencyCode, LanguageCode


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class User(Base):
    """User owning plans; timezone and the active-plan pointer live here."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    login = Column(String(50), unique=True, nullable=False)
    registration_date = Column(Date, nullable=False)
    time_zone = Column(String(64), nullable=True)  # IANA name, default applies when empty
    currency = Column(
        Enum(CurrencyCode, name="currency_code", native_enum=False, values_callable=_enum_values),
        nullable=False,
        default=CurrencyCode.USD,
    )
    language = Column(
        Enum(LanguageCode, name="language_code", native_enum=False, values_callable=_enum_values),
        nullable=False,
        default=LanguageCode.EN,
    )
    active_plan_id = Column(
        Integer,
        ForeignKey("plans.id", use_alter=True, name="fk_users_active_plan_id", ondelete="SET NULL"),
        nullable=True,
    )
