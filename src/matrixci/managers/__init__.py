"""Managers coordinating matrixci services."""
