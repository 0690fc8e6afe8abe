# pricing_monitor/__init__.py
"""
PricingMonitor package initializer.
Defines package version.
"""
__version__ = "0.1.0"
