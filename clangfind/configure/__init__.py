# SPDX-License-Identifier: MIT
"""Configuration inputs: host platform, user overrides and the llvm-config oracle."""
