"""Tenant lifecycle feature modules."""
