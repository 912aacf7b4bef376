"""Django applications of the excursion reservations project."""
