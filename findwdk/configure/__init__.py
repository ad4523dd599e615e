# SPDX-License-Identifier: MIT
"""Configure phase: host platform detection and program discovery."""
