"""Test execution services for matrixci."""

from .matrix_test_service import MatrixTestService, build_matrix_command

__all__ = ["MatrixTestService", "build_matrix_command"]
