"""Catalog app package.

Read-only catalog of bookable excursions: capacity, price and title. The
booking core consumes it through `services.get_resource` only.
"""
