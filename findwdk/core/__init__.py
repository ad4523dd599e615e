# SPDX-License-Identifier: MIT
"""Build model: nodes, targets and the project container."""
