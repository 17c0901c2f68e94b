"""
Pricing enumerations.
"""

import enum


class ItemType(str, enum.Enum):
    """
    Catalog item families a client price can target.

    Price resolution works on SERVICES; TOURS and EXPERIENCES share the
    same versioned client price table.
    """
    SERVICES = "SERVICES"
    TOURS = "TOURS"
    EXPERIENCES = "EXPERIENCES"
