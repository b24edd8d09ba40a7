"""Winx HR API — companies, users, employees and bulk employee import."""
