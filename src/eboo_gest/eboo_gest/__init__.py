"""Ebo'o Gest backend package.

Organized by feature modules (offline cache, employees, attendance kiosk,
audit, webhooks, ...) with a thin Flask controller layer on top of
service/repository layers.
"""
