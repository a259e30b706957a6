"""Enum definitions for engagement service models."""

import enum


class AchievementRuleType(str, enum.Enum):
    HOURS = "hours"
    EVENTS = "events"
    FREQUENCY = "frequency"
    CERTIFICATION = "certification"
    CUSTOM = "custom"


class CertificateStatus(str, enum.Enum):
    ACTIVE = "active"
    REVOKED = "revoked"
