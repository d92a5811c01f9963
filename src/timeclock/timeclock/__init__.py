"""Timeclock package.

Organized by feature modules (geo, qr, punch, kiosk, ...) with a thin Flask
controller layer on top of service/repository layers. The punch authorization
engine and the kiosk lockout guard have no Flask or database dependency.
"""
