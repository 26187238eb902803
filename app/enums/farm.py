"""
Farm-related Enumerations
=========================

This module contains enums describing farms, crops, costs and community posts.
"""

from enum import Enum


class SoilType(str, Enum):
    """Soil classification for a farm"""

    CLAY = "clay"
    SANDY = "sandy"
    LOAMY = "loamy"
    SILTY = "silty"

    def __str__(self):
        return self.value


class WaterRequirement(str, Enum):
    """Relative water demand of a crop"""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    def __str__(self):
        return self.value


class CostCategory(str, Enum):
    """Farm expense categories"""

    WATER = "water"
    ELECTRICITY = "electricity"
    EQUIPMENT = "equipment"
    LABOR = "labor"
    MAINTENANCE = "maintenance"
    FUEL = "fuel"

    def __str__(self):
        return self.value


class PostCategory(str, Enum):
    """Community forum post categories"""

    TIPS = "tips"
    PROBLEMS = "problems"
    SUCCESS = "success"
    QUESTION = "question"
    WEATHER = "weather"

    def __str__(self):
        return self.value
