"""
Website / page / violation models.
"""
from complyai.features.websites.models.website import Website
from complyai.features.websites.models.page import Page
from complyai.features.websites.models.violation import Violation, ViolationSeverity

__all__ = ["Website", "Page", "Violation", "ViolationSeverity"]
