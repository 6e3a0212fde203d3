# SPDX-License-Identifier: MIT
"""Core types shared by every stage of the discovery pipeline."""
