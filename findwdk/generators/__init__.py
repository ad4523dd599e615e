# SPDX-License-Identifier: MIT
"""Build file generators for findwdk."""

from findwdk.generators.compile_commands import CompileCommandsGenerator
from findwdk.generators.generator import BaseGenerator, Generator

__all__ = [
    "BaseGenerator",
    "CompileCommandsGenerator",
    "Generator",
]
