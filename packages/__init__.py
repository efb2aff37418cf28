"""Shared receipt packages.

Modules here hold logic reused by the web app and any batch tooling; they
do no I/O and know nothing about Flask or the database.
"""
