"""Availability app package.

This app owns the availability ledger: one seat counter per excursion and
date, materialised lazily and mutated only through atomic conditional
updates so that concurrent bookings can never oversell a date.
"""
