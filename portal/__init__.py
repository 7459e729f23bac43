"""Testimony portal application.

This package contains the views, forms, templates and service layer of the
testimony portal: a public wizard through which visitors submit
testimonies, and a back office through which administrators moderate them.
The portal keeps no database of its own; every record lives in the remote
testimonies API, which is wrapped by :mod:`portal.services.api_client`.
"""
