"""Blueprints for the LiveScan web interface."""
