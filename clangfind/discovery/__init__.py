# SPDX-License-Identifier: MIT
"""Filesystem discovery: versions, naming templates, probing and selection."""
