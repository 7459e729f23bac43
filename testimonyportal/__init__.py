"""Django project package for the testimony portal."""
