# SPDX-License-Identifier: MIT
"""Utility modules for findwdk."""
