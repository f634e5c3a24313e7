"""Booking desk client."""
