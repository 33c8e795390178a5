"""
Jewelry Pricing Package

Pricing and rate-table computation engine for multi-tenant jewelry shops.
Turns a shop's daily gold/silver rates and its category catalog into
customer prices, scrap values and derived rate tables.
"""

__version__ = "1.0.0"
