"""Bookings app package.

This app orchestrates the purchase of excursion seats: seats are taken from
the availability ledger before payment is authorized, kept as a BookingHold
while the customer pays, and turned into a Reservation once the payment
gateway reports success. Holds that fail, time out or get cancelled give
their seats back to the ledger.
"""
