"""
ProRata INR - Billing Engine for Outdoor Advertising Campaigns.

A precision billing engine that converts monthly media rates, booking
date ranges and campaign line items into pro-rata rent, GST, discounts
and month-wise billing schedules.

Version: 0.1.0
"""

__version__ = "0.1.0"
__author__ = "ProRata Team"
