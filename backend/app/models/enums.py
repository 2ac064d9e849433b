"""
User-facing enumerations.

Defines roles, languages and payment methods shared by parcels and wallets.
"""

import enum


class UserRole(str, enum.Enum):
    """
    User role enumeration.

    Roles:
        CUSTOMER: Sends parcels (default role)
        PARTNER: Operates a pickup/dropoff point or storefront
        DRIVER: Carries parcels between points
        PERSONNEL: Sorting/hub staff scanning parcels
        ADMIN: System-level access
        GUEST: Unregistered tracking access
    """
    CUSTOMER = "customer"
    PARTNER = "partner"
    DRIVER = "driver"
    PERSONNEL = "personnel"
    ADMIN = "admin"
    GUEST = "guest"


class Language(str, enum.Enum):
    """Preferred UI language."""
    EN = "en"
    AM = "am"


class PaymentMethod(str, enum.Enum):
    """Supported payment methods."""
    WALLET = "wallet"
    CASH_ON_DELIVERY = "cash_on_delivery"
    TELEBIRR = "telebirr"
    CHAPA = "chapa"
    ARIFPAY = "arifpay"
