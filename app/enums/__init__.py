"""
Enums Module
============

This module provides enumeration types for the AquaWise application.
Enums ensure type safety and consistency across the codebase.
"""

from app.enums.common import NotificationPriority, NotificationType, SoilMoistureAlertType
from app.enums.farm import CostCategory, PostCategory, SoilType, WaterRequirement

__all__ = [
    "CostCategory",
    "NotificationPriority",
    "NotificationType",
    "PostCategory",
    "SoilMoistureAlertType",
    "SoilType",
    "WaterRequirement",
]
